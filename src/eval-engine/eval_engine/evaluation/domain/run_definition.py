"""RunDefinition — the immutable configuration of one evaluation run."""

from pydantic import Field, model_validator

from eval_engine.core.model import StoreDocument
from eval_engine.evaluation.domain.status import RunType

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 20


class RunDefinition(StoreDocument, frozen=True):
    """Created by the configuration layer; read once by the engine, never mutated.

    ``run_on_n_rows == 0`` means "all rows", bounded by the engine's
    unbounded row cap.
    """

    id: str = Field(min_length=1)
    name: str = ""
    run_type: RunType = RunType.PRODUCT
    dataset_id: str = Field(min_length=1)
    dataset_version_id: str = Field(min_length=1)
    prompt_id: str = Field(min_length=1)
    prompt_version_id: str = Field(min_length=1)
    model_identifier: str | None = None
    selected_eval_param_ids: list[str] = Field(default_factory=list)
    selected_summarization_def_ids: list[str] = Field(default_factory=list)
    run_on_n_rows: int = Field(default=0, ge=0)
    concurrency_limit: int = Field(default=3, ge=MIN_CONCURRENCY, le=MAX_CONCURRENCY)

    @model_validator(mode="after")
    def _requires_criteria(self) -> "RunDefinition":
        if not self.selected_eval_param_ids and not self.selected_summarization_def_ids:
            raise ValueError(
                "at least one evaluation parameter or summarization definition"
                " must be selected"
            )
        return self

    def row_limit(self, unbounded_row_cap: int) -> int:
        """Number of dataset rows this run may process at most."""
        if self.run_on_n_rows == 0:
            return unbounded_row_cap
        return min(self.run_on_n_rows, unbounded_row_cap)
