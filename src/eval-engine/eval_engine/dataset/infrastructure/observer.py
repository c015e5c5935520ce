"""Structlog implementation of the DatasetObserver port."""

import structlog


class StructlogDatasetObserver:
    """Delegates dataset domain events to structlog.

    Satisfies the DatasetObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def dataset_reading_started(self, path: str) -> None:
        self._log.info("dataset.reading_started", path=path)

    def dataset_reading_completed(self, path: str, total_rows: int) -> None:
        self._log.info("dataset.reading_completed", path=path, total_rows=total_rows)

    def dataset_reading_failed(self, path: str, reason: str) -> None:
        self._log.error("dataset.reading_failed", path=path, reason=reason)
