"""DatasetRow — one mapped dataset row split into input columns and ground truth."""

from typing import Any

from pydantic import BaseModel, Field

GROUND_TRUTH_PREFIX = "_gt_"


class DatasetRow(BaseModel, frozen=True):
    """Immutable value object for one unit of work in a run."""

    index: int = Field(ge=0)
    input_data: dict[str, Any]
    ground_truth: dict[str, str] = Field(default_factory=dict)


def split_mapped_row(index: int, mapped: dict[str, Any]) -> DatasetRow:
    """Separate ``_gt_<parameterId>`` columns from input columns.

    Ground-truth values that are missing or blank are dropped so that the row
    counts as having no ground truth for that parameter.
    """
    input_data: dict[str, Any] = {}
    ground_truth: dict[str, str] = {}
    for key, value in mapped.items():
        if key.startswith(GROUND_TRUTH_PREFIX):
            if value is None or str(value).strip() == "":
                continue
            ground_truth[key[len(GROUND_TRUTH_PREFIX) :]] = str(value)
        else:
            input_data[key] = value
    return DatasetRow(index=index, input_data=input_data, ground_truth=ground_truth)
