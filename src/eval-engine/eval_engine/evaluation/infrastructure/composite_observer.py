"""CompositeRunObserver — fans out all events to a list of observers."""

from eval_engine.evaluation.domain.observer import RunObserver


class CompositeRunObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from RunObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[RunObserver]) -> None:
        self._observers = observers

    def run_started(self, run_id: str, total_rows: int, concurrency_limit: int) -> None:
        for obs in self._observers:
            obs.run_started(
                run_id=run_id,
                total_rows=total_rows,
                concurrency_limit=concurrency_limit,
            )

    def run_completed(
        self,
        run_id: str,
        processed_rows: int,
        failed_rows: int,
        elapsed_seconds: float,
    ) -> None:
        for obs in self._observers:
            obs.run_completed(
                run_id=run_id,
                processed_rows=processed_rows,
                failed_rows=failed_rows,
                elapsed_seconds=elapsed_seconds,
            )

    def run_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_failed(run_id=run_id, reason=reason)

    def run_cancel_requested(self, run_id: str) -> None:
        for obs in self._observers:
            obs.run_cancel_requested(run_id=run_id)

    def run_previewed(self, run_id: str, total_rows: int, sample_size: int) -> None:
        for obs in self._observers:
            obs.run_previewed(
                run_id=run_id, total_rows=total_rows, sample_size=sample_size
            )

    def run_progress(self, run_id: str, completed: int, total: int) -> None:
        for obs in self._observers:
            obs.run_progress(run_id=run_id, completed=completed, total=total)

    def row_started(self, run_id: str, row_index: int) -> None:
        for obs in self._observers:
            obs.row_started(run_id=run_id, row_index=row_index)

    def row_completed(self, run_id: str, row_index: int, judged_parameters: int) -> None:
        for obs in self._observers:
            obs.row_completed(
                run_id=run_id,
                row_index=row_index,
                judged_parameters=judged_parameters,
            )

    def row_elements_rejected(
        self, run_id: str, row_index: int, reasons: list[str]
    ) -> None:
        for obs in self._observers:
            obs.row_elements_rejected(
                run_id=run_id, row_index=row_index, reasons=reasons
            )

    def row_failed(self, run_id: str, row_index: int, reason: str) -> None:
        for obs in self._observers:
            obs.row_failed(run_id=run_id, row_index=row_index, reason=reason)

    def row_retry(
        self,
        run_id: str,
        row_index: int,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None:
        for obs in self._observers:
            obs.row_retry(
                run_id=run_id,
                row_index=row_index,
                attempt=attempt,
                reason=reason,
                backoff_seconds=backoff_seconds,
            )

    def checkpoint_written(self, run_id: str, progress: int, results: int) -> None:
        for obs in self._observers:
            obs.checkpoint_written(run_id=run_id, progress=progress, results=results)

    def checkpoint_failed(
        self, run_id: str, consecutive_failures: int, reason: str
    ) -> None:
        for obs in self._observers:
            obs.checkpoint_failed(
                run_id=run_id,
                consecutive_failures=consecutive_failures,
                reason=reason,
            )
