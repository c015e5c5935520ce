"""ConfigurationStore Protocol — the document store the engine reads and updates."""

from typing import Any, Protocol

from eval_engine.criteria.domain.parameter import EvaluationParameterDetail
from eval_engine.criteria.domain.summarization import SummarizationDefinition
from eval_engine.evaluation.domain.run_definition import RunDefinition
from eval_engine.evaluation.domain.run_state import RunState


class ConfigurationStore(Protocol):
    """Structural interface over the external configuration store.

    The engine owns no configuration documents: it reads run definitions and
    their referenced artifacts, and writes only run-state fields. Each
    ``update_run_state`` call must be atomic on its own; no transaction spans
    a whole run.
    """

    async def get_run_definition(self, run_id: str) -> RunDefinition: ...

    async def get_run_state(self, run_id: str) -> RunState: ...

    async def update_run_state(self, run_id: str, fields: dict[str, Any]) -> None:
        """Merge fields (camelCase wire names) into the run-state document.

        Only supplied keys change. A value of None removes the field.
        """
        ...

    async def get_dataset_rows(
        self, dataset_id: str, dataset_version_id: str, limit: int
    ) -> list[dict[str, Any]]:
        """Return up to limit mapped rows; ground truth carries a ``_gt_`` prefix."""
        ...

    async def get_evaluation_parameter_details(
        self, ids: list[str]
    ) -> list[EvaluationParameterDetail]: ...

    async def get_summarization_definitions(
        self, ids: list[str]
    ) -> list[SummarizationDefinition]: ...

    async def get_prompt_template(self, prompt_id: str, prompt_version_id: str) -> str: ...
