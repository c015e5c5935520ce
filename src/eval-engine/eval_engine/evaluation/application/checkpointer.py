"""ProgressCheckpointer — persists partial run progress to the configuration store."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from eval_engine.core.errors import EvalEngineError
from eval_engine.evaluation.domain.errors import CheckpointFailedError
from eval_engine.evaluation.domain.observer import RunObserver
from eval_engine.evaluation.domain.row_result import RowResult
from eval_engine.evaluation.domain.run_state import progress_percent
from eval_engine.evaluation.domain.status import RunStatus
from eval_engine.store.domain.store import ConfigurationStore


def dump_results(results: Sequence[RowResult]) -> list[dict[str, Any]]:
    """Serialize results in row order for the store."""
    ordered = sorted(results, key=lambda r: r.row_index)
    return [r.model_dump(by_alias=True, mode="json", exclude_none=True) for r in ordered]


class ProgressCheckpointer:
    """Writes ``{status, progress, results, updatedAt}`` while a run is Processing.

    Safe to call repeatedly. The progress written never goes below the last
    value written. A failed write is reported and retried on the next call;
    only ``max_consecutive_failures`` failures in a row are fatal.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        run_id: str,
        total_rows: int,
        max_consecutive_failures: int,
        observer: RunObserver,
        clock: Callable[[], datetime],
    ) -> None:
        self._store = store
        self._run_id = run_id
        self._total_rows = total_rows
        self._max_consecutive_failures = max_consecutive_failures
        self._observer = observer
        self._clock = clock
        self._last_progress = 0
        self._consecutive_failures = 0

    @property
    def last_progress(self) -> int:
        return self._last_progress

    async def checkpoint(self, results: Sequence[RowResult]) -> bool:
        """Persist the current Processing snapshot. Returns True if written.

        Raises:
            CheckpointFailedError: when the failure threshold is reached.
        """
        progress = max(
            self._last_progress,
            progress_percent(completed=len(results), total=self._total_rows),
        )
        fields = {
            "status": RunStatus.PROCESSING.value,
            "progress": progress,
            "results": dump_results(results),
            "updatedAt": self._clock().isoformat(),
        }
        try:
            await self._store.update_run_state(self._run_id, fields)
        except EvalEngineError as exc:
            self._consecutive_failures += 1
            self._observer.checkpoint_failed(
                run_id=self._run_id,
                consecutive_failures=self._consecutive_failures,
                reason=str(exc),
            )
            if self._consecutive_failures >= self._max_consecutive_failures:
                raise CheckpointFailedError(
                    run_id=self._run_id,
                    consecutive_failures=self._consecutive_failures,
                    reason=str(exc),
                ) from exc
            return False

        self._consecutive_failures = 0
        self._last_progress = progress
        self._observer.checkpoint_written(
            run_id=self._run_id, progress=progress, results=len(results)
        )
        return True

    async def finalize(self, fields: dict[str, Any]) -> None:
        """Write a terminal state. Failures propagate to the caller."""
        payload = {**fields, "updatedAt": self._clock().isoformat()}
        progress = payload.get("progress")
        if isinstance(progress, int):
            payload["progress"] = max(progress, self._last_progress)
        await self._store.update_run_state(self._run_id, payload)
        if isinstance(payload.get("progress"), int):
            self._last_progress = payload["progress"]
