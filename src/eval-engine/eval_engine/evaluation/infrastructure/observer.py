"""StructlogRunObserver — production observer that delegates to structlog."""

import structlog


class StructlogRunObserver:
    """Logs run domain events to structlog.

    Does NOT inherit from RunObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(self, run_id: str, total_rows: int, concurrency_limit: int) -> None:
        self._log.info(
            "run.started",
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
        self._log.info(
            "run.completed",
            run_id=run_id,
            processed_rows=processed_rows,
            failed_rows=failed_rows,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def run_failed(self, run_id: str, reason: str) -> None:
        self._log.error("run.failed", run_id=run_id, reason=reason)

    def run_cancel_requested(self, run_id: str) -> None:
        self._log.warning("run.cancel_requested", run_id=run_id)

    def run_previewed(self, run_id: str, total_rows: int, sample_size: int) -> None:
        self._log.info(
            "run.previewed",
            run_id=run_id,
            total_rows=total_rows,
            sample_size=sample_size,
        )

    def run_progress(self, run_id: str, completed: int, total: int) -> None:
        self._log.info(
            "run.progress",
            run_id=run_id,
            completed=completed,
            total=total,
            percent=round(100.0 * completed / total, 1) if total else 0.0,
        )

    def row_started(self, run_id: str, row_index: int) -> None:
        self._log.debug("run.row.started", run_id=run_id, row_index=row_index)

    def row_completed(self, run_id: str, row_index: int, judged_parameters: int) -> None:
        self._log.info(
            "run.row.completed",
            run_id=run_id,
            row_index=row_index,
            judged_parameters=judged_parameters,
        )

    def row_elements_rejected(
        self, run_id: str, row_index: int, reasons: list[str]
    ) -> None:
        self._log.warning(
            "run.row.elements_rejected",
            run_id=run_id,
            row_index=row_index,
            rejected=len(reasons),
            reasons=reasons,
        )

    def row_failed(self, run_id: str, row_index: int, reason: str) -> None:
        self._log.error(
            "run.row.failed", run_id=run_id, row_index=row_index, reason=reason
        )

    def row_retry(
        self,
        run_id: str,
        row_index: int,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None:
        self._log.warning(
            "run.row.retry",
            run_id=run_id,
            row_index=row_index,
            attempt=attempt,
            reason=reason,
            backoff_seconds=backoff_seconds,
        )

    def checkpoint_written(self, run_id: str, progress: int, results: int) -> None:
        self._log.debug(
            "run.checkpoint.written",
            run_id=run_id,
            progress=progress,
            results=results,
        )

    def checkpoint_failed(
        self, run_id: str, consecutive_failures: int, reason: str
    ) -> None:
        self._log.warning(
            "run.checkpoint.failed",
            run_id=run_id,
            consecutive_failures=consecutive_failures,
            reason=reason,
        )
