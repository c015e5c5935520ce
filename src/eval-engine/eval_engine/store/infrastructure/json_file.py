"""JsonFileConfigurationStore — the document store persisted as one JSON file."""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from eval_engine.dataset.infrastructure.file_reader import DatasetFileReader
from eval_engine.store.infrastructure.errors import StoreUnavailableError
from eval_engine.store.infrastructure.memory import InMemoryConfigurationStore


class JsonFileConfigurationStore(InMemoryConfigurationStore):
    """Durable variant of the in-memory store.

    Every run-state update rewrites the file through a temporary sibling and
    ``os.replace``, so each write is atomic and readers never observe a
    half-written document. Relative dataset storage paths resolve against the
    store file's directory.
    """

    def __init__(self, path: Path, dataset_reader: DatasetFileReader) -> None:
        self._path = path
        super().__init__(
            data=_read_json(path=path),
            dataset_reader=dataset_reader,
            base_dir=path.parent,
        )

    @property
    def path(self) -> Path:
        return self._path

    async def _persist(self) -> None:
        payload = json.dumps(self._data, indent=2, ensure_ascii=False)
        await asyncio.to_thread(_write_atomic, self._path, payload)


def _read_json(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise StoreUnavailableError(reason=f"store file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise StoreUnavailableError(reason=f"store file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise StoreUnavailableError(reason="store file must contain a JSON object")
    return data


def _write_atomic(path: Path, payload: str) -> None:
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise StoreUnavailableError(reason=f"cannot write {path}: {exc}") from exc
