"""DataPreviewer — the data-preview side path of a run."""

from collections.abc import Callable
from datetime import datetime

from eval_engine.config.domain.execution import ExecutionConfig
from eval_engine.core.errors import EvalEngineError
from eval_engine.dataset.domain.row import GROUND_TRUTH_PREFIX
from eval_engine.evaluation.application.resolution import (
    resolve_dataset_rows,
    utc_now,
)
from eval_engine.evaluation.domain.errors import (
    DatasetEmptyError,
    RunNotStartableError,
)
from eval_engine.evaluation.domain.observer import RunObserver
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.evaluation.domain.state_machine import can_transition, transition
from eval_engine.evaluation.domain.status import RunStatus
from eval_engine.store.domain.store import ConfigurationStore

PREVIEW_FAILED_PREFIX = "Data preview failed: "


class DataPreviewer:
    """Resolves a run's dataset and stores a sample for inspection.

    Moves the run to DataPreviewed without invoking the judge, so the mapped
    input can be checked before an evaluation is started.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        execution: ExecutionConfig,
        observer: RunObserver,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._execution = execution
        self._observer = observer
        self._clock = clock

    async def preview(self, run_id: str) -> RunState:
        state = await self._store.get_run_state(run_id)
        if not can_transition(state.status, RunStatus.DATA_PREVIEWED):
            raise RunNotStartableError(run_id=run_id, status=state.status)

        try:
            definition = await self._store.get_run_definition(run_id)
            rows = await resolve_dataset_rows(
                store=self._store, definition=definition, execution=self._execution
            )
        except DatasetEmptyError:
            rows = []
        except EvalEngineError as exc:
            reason = f"{PREVIEW_FAILED_PREFIX}{exc}"
            status = (
                RunStatus.FAILED
                if state.status is RunStatus.FAILED
                else transition(state.status, RunStatus.FAILED)
            )
            self._observer.run_failed(run_id=run_id, reason=reason)
            await self._store.update_run_state(
                run_id,
                {
                    "status": status.value,
                    "errorMessage": reason,
                    "updatedAt": self._clock().isoformat(),
                },
            )
            return RunState(status=status, error_message=reason)

        sample = [
            {
                **row.input_data,
                **{f"{GROUND_TRUTH_PREFIX}{k}": v for k, v in row.ground_truth.items()},
            }
            for row in rows[: self._execution.preview_sample_size]
        ]
        status = transition(state.status, RunStatus.DATA_PREVIEWED)
        await self._store.update_run_state(
            run_id,
            {
                "status": status.value,
                "previewedDatasetSample": sample,
                "totalRowsInDataset": len(rows),
                "results": [],
                "errorMessage": None,
                "summaryMetrics": None,
                "updatedAt": self._clock().isoformat(),
            },
        )
        self._observer.run_previewed(
            run_id=run_id, total_rows=len(rows), sample_size=len(sample)
        )
        return RunState(
            status=status,
            previewed_dataset_sample=sample,
            total_rows_in_dataset=len(rows),
        )
