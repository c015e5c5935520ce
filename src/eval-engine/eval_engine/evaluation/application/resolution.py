"""Run resolution — turns a stored RunDefinition into executable inputs."""

from dataclasses import dataclass
from datetime import UTC, datetime

from eval_engine.config.domain.execution import ExecutionConfig
from eval_engine.criteria.domain.parameter import EvaluationParameterDetail
from eval_engine.criteria.domain.summarization import SummarizationDefinition
from eval_engine.dataset.domain.row import DatasetRow, split_mapped_row
from eval_engine.evaluation.domain.errors import DatasetEmptyError, RunResolutionError
from eval_engine.evaluation.domain.run_definition import RunDefinition
from eval_engine.store.domain.store import ConfigurationStore
from eval_engine.store.infrastructure.errors import DocumentNotFoundError


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ResolvedRun:
    """Everything a run needs, fetched once before any row is processed."""

    definition: RunDefinition
    parameters: list[EvaluationParameterDetail]
    summarizations: list[SummarizationDefinition]
    template: str
    rows: list[DatasetRow]

    @property
    def requested_ids(self) -> frozenset[str]:
        return frozenset(p.id for p in self.parameters)

    @property
    def rationale_required_ids(self) -> frozenset[str]:
        return frozenset(p.id for p in self.parameters if p.requires_rationale)

    @property
    def summarization_ids(self) -> frozenset[str]:
        return frozenset(s.id for s in self.summarizations)


async def resolve_dataset_rows(
    store: ConfigurationStore,
    definition: RunDefinition,
    execution: ExecutionConfig,
) -> list[DatasetRow]:
    """Fetch the run's dataset rows, bounded by its row cap.

    Raises:
        DatasetEmptyError: if no rows remain after mapping.
        StoreError / DatasetLoadError: if the dataset cannot be read.
    """
    mapped = await store.get_dataset_rows(
        definition.dataset_id,
        definition.dataset_version_id,
        definition.row_limit(unbounded_row_cap=execution.unbounded_row_cap),
    )
    if not mapped:
        raise DatasetEmptyError(dataset_version_id=definition.dataset_version_id)
    return [split_mapped_row(index=i, mapped=row) for i, row in enumerate(mapped)]


async def resolve_run(
    store: ConfigurationStore,
    run_id: str,
    execution: ExecutionConfig,
) -> ResolvedRun:
    """Resolve definition, criteria, prompt template and rows for run_id.

    Any EvalEngineError raised here is fatal to the run.
    """
    definition = await store.get_run_definition(run_id)
    try:
        parameters = await store.get_evaluation_parameter_details(
            list(definition.selected_eval_param_ids)
        )
        summarizations = (
            await store.get_summarization_definitions(
                list(definition.selected_summarization_def_ids)
            )
            if definition.selected_summarization_def_ids
            else []
        )
    except DocumentNotFoundError as exc:
        raise RunResolutionError(run_id=run_id, reason=str(exc)) from exc
    template = await store.get_prompt_template(
        definition.prompt_id, definition.prompt_version_id
    )
    rows = await resolve_dataset_rows(
        store=store, definition=definition, execution=execution
    )
    return ResolvedRun(
        definition=definition,
        parameters=parameters,
        summarizations=summarizations,
        template=template,
        rows=rows,
    )
