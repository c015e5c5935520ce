"""Observer port for the evaluation domain — defines run events in domain language."""

from typing import Protocol


class RunObserver(Protocol):
    """Observer port emitting structured events while a run executes.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def run_started(self, run_id: str, total_rows: int, concurrency_limit: int) -> None: ...

    def run_completed(
        self,
        run_id: str,
        processed_rows: int,
        failed_rows: int,
        elapsed_seconds: float,
    ) -> None: ...

    def run_failed(self, run_id: str, reason: str) -> None: ...

    def run_cancel_requested(self, run_id: str) -> None: ...

    def run_previewed(self, run_id: str, total_rows: int, sample_size: int) -> None: ...

    def run_progress(self, run_id: str, completed: int, total: int) -> None: ...

    def row_started(self, run_id: str, row_index: int) -> None: ...

    def row_completed(
        self, run_id: str, row_index: int, judged_parameters: int
    ) -> None: ...

    def row_elements_rejected(
        self, run_id: str, row_index: int, reasons: list[str]
    ) -> None: ...

    def row_failed(self, run_id: str, row_index: int, reason: str) -> None: ...

    def row_retry(
        self,
        run_id: str,
        row_index: int,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None: ...

    def checkpoint_written(self, run_id: str, progress: int, results: int) -> None: ...

    def checkpoint_failed(
        self, run_id: str, consecutive_failures: int, reason: str
    ) -> None: ...
