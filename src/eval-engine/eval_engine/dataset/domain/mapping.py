"""Column mapping — turns raw dataset records into the mapped rows a run consumes."""

from typing import Any

from pydantic import Field

from eval_engine.core.model import StoreDocument
from eval_engine.dataset.domain.row import GROUND_TRUTH_PREFIX


class DatasetVersion(StoreDocument, frozen=True):
    """One immutable version of a dataset as registered in the store.

    Rows come either inline (``rows``) or from a CSV / JSONL file at
    ``storage_path``. ``column_mapping`` maps input names used by prompt
    placeholders to source columns; ``ground_truth_mapping`` maps evaluation
    parameter IDs to source columns holding the expected label.
    """

    id: str = Field(min_length=1)
    storage_path: str | None = None
    rows: list[dict[str, Any]] | None = None
    column_mapping: dict[str, str] = Field(default_factory=dict)
    ground_truth_mapping: dict[str, str] = Field(default_factory=dict)


def map_rows(
    raw_rows: list[dict[str, Any]],
    column_mapping: dict[str, str],
    ground_truth_mapping: dict[str, str],
) -> list[dict[str, Any]]:
    """Apply column and ground-truth mappings to raw records.

    Source column names match case-insensitively after trimming. Mapped columns
    absent from a record are set to None. Records where no mapped column is
    present are dropped. With an empty ``column_mapping`` every source column
    passes through under its own name.
    """
    mapped_rows: list[dict[str, Any]] = []
    for raw in raw_rows:
        normalized = {str(key).strip().lower(): key for key in raw}
        mapped: dict[str, Any] = {}
        has_data = False

        if column_mapping:
            for input_name, source_column in column_mapping.items():
                key = normalized.get(source_column.strip().lower())
                if key is None:
                    mapped[input_name] = None
                else:
                    mapped[input_name] = raw[key]
                    has_data = True
        else:
            mapped.update(raw)
            has_data = bool(raw)

        for parameter_id, source_column in ground_truth_mapping.items():
            key = normalized.get(source_column.strip().lower())
            gt_key = f"{GROUND_TRUTH_PREFIX}{parameter_id}"
            if key is None:
                mapped[gt_key] = None
            else:
                mapped[gt_key] = raw[key]
                has_data = True

        if has_data:
            mapped_rows.append(mapped)
    return mapped_rows
