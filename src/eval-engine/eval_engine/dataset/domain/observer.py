"""Observer port for the dataset domain — defines events in domain language."""

from typing import Protocol


class DatasetObserver(Protocol):
    def dataset_reading_started(self, path: str) -> None: ...

    def dataset_reading_completed(self, path: str, total_rows: int) -> None: ...

    def dataset_reading_failed(self, path: str, reason: str) -> None: ...
