"""Dataset file reader — reads raw records from CSV or JSONL files."""

import csv
import json
from pathlib import Path
from typing import Any

from eval_engine.dataset.domain.observer import DatasetObserver
from eval_engine.dataset.infrastructure.errors import DatasetLoadError


class DatasetFileReader:
    """Reads a ``.csv`` or ``.jsonl`` dataset file into a list of raw records."""

    def __init__(self, observer: DatasetObserver) -> None:
        self._observer = observer

    def read(self, path: Path, limit: int | None = None) -> list[dict[str, Any]]:
        """
        Read up to ``limit`` records from the file at path.

        For JSONL, ALL per-line errors within the requested range are collected
        before raising a single DatasetLoadError.

        Raises:
            DatasetLoadError: if the file is missing, has an unsupported
                extension, or contains malformed records.
        """
        path_str = str(path)
        self._observer.dataset_reading_started(path=path_str)

        suffix = path.suffix.lower()
        try:
            if suffix == ".csv":
                records = self._read_csv(path=path, limit=limit)
            elif suffix == ".jsonl":
                records = self._read_jsonl(path=path, limit=limit)
            else:
                raise DatasetLoadError(reason=f"unsupported file type: {path.name}")
        except FileNotFoundError:
            reason = f"file not found: {path_str}"
            self._observer.dataset_reading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason)
        except DatasetLoadError as exc:
            self._observer.dataset_reading_failed(path=path_str, reason=str(exc))
            raise

        self._observer.dataset_reading_completed(
            path=path_str, total_rows=len(records)
        )
        return records

    def _read_csv(self, path: Path, limit: int | None) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        with open(path, encoding="utf-8", newline="") as fh:
            reader = csv.DictReader(fh)
            for row in reader:
                if limit is not None and len(records) >= limit:
                    break
                if not any((value or "").strip() for value in row.values()):
                    continue
                records.append(
                    {
                        (key or "").strip(): (value or "").strip()
                        for key, value in row.items()
                    }
                )
        return records

    def _read_jsonl(self, path: Path, limit: int | None) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        errors: list[str] = []
        with open(path, encoding="utf-8") as fh:
            lines = [line for line in fh if line.strip()]
        if limit is not None:
            lines = lines[:limit]

        for index, line in enumerate(lines):
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                errors.append(f"line {index}: invalid JSON: {exc}")
                continue
            if not isinstance(data, dict):
                errors.append(f"line {index}: expected a JSON object")
                continue
            records.append(data)

        if errors:
            raise DatasetLoadError(reason="; ".join(errors))
        return records
