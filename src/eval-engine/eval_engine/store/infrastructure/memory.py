"""InMemoryConfigurationStore — a document store held in a Python dict."""

import asyncio
import copy
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from eval_engine.criteria.domain.parameter import EvaluationParameterDetail
from eval_engine.criteria.domain.summarization import SummarizationDefinition
from eval_engine.dataset.domain.mapping import DatasetVersion, map_rows
from eval_engine.dataset.infrastructure.file_reader import DatasetFileReader
from eval_engine.evaluation.domain.run_definition import RunDefinition
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.store.infrastructure.errors import (
    DocumentNotFoundError,
    MalformedDocumentError,
    StoreUnavailableError,
)

RUNS = "runs"
DATASETS = "datasets"
PROMPTS = "prompts"
EVALUATION_PARAMETERS = "evaluationParameters"
SUMMARIZATION_DEFINITIONS = "summarizationDefinitions"

COLLECTIONS = (RUNS, DATASETS, PROMPTS, EVALUATION_PARAMETERS, SUMMARIZATION_DEFINITIONS)

type Document = dict[str, Any]


class InMemoryConfigurationStore:
    """Satisfies the ConfigurationStore protocol over nested dicts.

    Layout mirrors the document database the console writes to::

        runs/{runId}                                  definition + state fields
        datasets/{datasetId}/versions/{versionId}     DatasetVersion
        prompts/{promptId}/versions/{versionId}       {"template": str}
        evaluationParameters/{id}                     EvaluationParameterDetail
        summarizationDefinitions/{id}                 SummarizationDefinition

    A run definition and its state share one document, as in the console.
    Subclasses persist the data by overriding ``_persist``.
    """

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        dataset_reader: DatasetFileReader | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}
        for collection in COLLECTIONS:
            self._data.setdefault(collection, {})
        self._dataset_reader = dataset_reader
        self._base_dir = base_dir or Path.cwd()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_run(self, definition: RunDefinition, state: RunState | None = None) -> None:
        document = definition.model_dump(by_alias=True, mode="json")
        document.update(
            (state or RunState()).model_dump(
                by_alias=True, mode="json", exclude_none=True
            )
        )
        self._data[RUNS][definition.id] = document

    def add_dataset_version(self, dataset_id: str, version: DatasetVersion) -> None:
        dataset = self._data[DATASETS].setdefault(dataset_id, {"versions": {}})
        dataset["versions"][version.id] = version.model_dump(
            by_alias=True, mode="json", exclude_none=True
        )

    def add_prompt_version(self, prompt_id: str, version_id: str, template: str) -> None:
        prompt = self._data[PROMPTS].setdefault(prompt_id, {"versions": {}})
        prompt["versions"][version_id] = {"template": template}

    def add_parameter(self, parameter: EvaluationParameterDetail) -> None:
        self._data[EVALUATION_PARAMETERS][parameter.id] = parameter.model_dump(
            by_alias=True, mode="json"
        )

    def add_summarization(self, definition: SummarizationDefinition) -> None:
        self._data[SUMMARIZATION_DEFINITIONS][definition.id] = definition.model_dump(
            by_alias=True, mode="json"
        )

    def run_document(self, run_id: str) -> Document:
        """Return a copy of the raw run document, for inspection."""
        return copy.deepcopy(self._document(RUNS, run_id))

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    # ------------------------------------------------------------------
    # ConfigurationStore protocol
    # ------------------------------------------------------------------

    async def get_run_definition(self, run_id: str) -> RunDefinition:
        return _validate(RunDefinition, self._document(RUNS, run_id), RUNS, run_id)

    async def get_run_state(self, run_id: str) -> RunState:
        return _validate(RunState, self._document(RUNS, run_id), RUNS, run_id)

    async def update_run_state(self, run_id: str, fields: dict[str, Any]) -> None:
        async with self._lock:
            document = self._document(RUNS, run_id)
            previous = copy.deepcopy(document)
            for key, value in fields.items():
                if value is None:
                    document.pop(key, None)
                else:
                    document[key] = copy.deepcopy(value)
            try:
                await self._persist()
            except Exception:
                self._data[RUNS][run_id] = previous
                raise

    async def get_dataset_rows(
        self, dataset_id: str, dataset_version_id: str, limit: int
    ) -> list[dict[str, Any]]:
        dataset = self._document(DATASETS, dataset_id)
        raw_version = dataset.get("versions", {}).get(dataset_version_id)
        if raw_version is None:
            raise DocumentNotFoundError(
                collection=f"{DATASETS}/{dataset_id}/versions",
                document_id=dataset_version_id,
            )
        version = _validate(DatasetVersion, raw_version, DATASETS, dataset_version_id)

        if version.rows is not None:
            raw_rows = copy.deepcopy(version.rows)
        elif version.storage_path:
            raw_rows = await self._read_dataset_file(version.storage_path)
        else:
            raise StoreUnavailableError(
                reason=f"dataset version '{dataset_version_id}' has no rows or storage path"
            )

        mapped = map_rows(
            raw_rows=raw_rows,
            column_mapping=version.column_mapping,
            ground_truth_mapping=version.ground_truth_mapping,
        )
        return mapped[:limit]

    async def get_evaluation_parameter_details(
        self, ids: list[str]
    ) -> list[EvaluationParameterDetail]:
        return [
            _validate(
                EvaluationParameterDetail,
                self._document(EVALUATION_PARAMETERS, parameter_id),
                EVALUATION_PARAMETERS,
                parameter_id,
            )
            for parameter_id in ids
        ]

    async def get_summarization_definitions(
        self, ids: list[str]
    ) -> list[SummarizationDefinition]:
        return [
            _validate(
                SummarizationDefinition,
                self._document(SUMMARIZATION_DEFINITIONS, definition_id),
                SUMMARIZATION_DEFINITIONS,
                definition_id,
            )
            for definition_id in ids
        ]

    async def get_prompt_template(self, prompt_id: str, prompt_version_id: str) -> str:
        prompt = self._document(PROMPTS, prompt_id)
        version = prompt.get("versions", {}).get(prompt_version_id)
        if version is None:
            raise DocumentNotFoundError(
                collection=f"{PROMPTS}/{prompt_id}/versions",
                document_id=prompt_version_id,
            )
        template = version.get("template")
        if not isinstance(template, str) or not template:
            raise StoreUnavailableError(
                reason=f"prompt version '{prompt_version_id}' has no template text"
            )
        return template

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _persist(self) -> None:
        """Hook for durable subclasses; the in-memory store keeps nothing else."""

    async def _read_dataset_file(self, storage_path: str) -> list[dict[str, Any]]:
        if self._dataset_reader is None:
            raise StoreUnavailableError(reason="no dataset reader configured")
        path = Path(storage_path)
        if not path.is_absolute():
            path = self._base_dir / path
        return await asyncio.to_thread(self._dataset_reader.read, path)

    def _document(self, collection: str, document_id: str) -> Document:
        document = self._data[collection].get(document_id)
        if document is None:
            raise DocumentNotFoundError(collection=collection, document_id=document_id)
        return document


def _validate[T: BaseModel](
    model: type[T], document: Document, collection: str, document_id: str
) -> T:
    try:
        return model.model_validate(document)
    except ValidationError as exc:
        raise MalformedDocumentError(
            collection=collection, document_id=document_id, reason=str(exc)
        ) from exc
