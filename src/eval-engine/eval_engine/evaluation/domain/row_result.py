"""RowResult — the recorded outcome of one successfully processed dataset row."""

from typing import Any

from pydantic import Field

from eval_engine.core.model import StoreDocument


class ParameterJudgment(StoreDocument, frozen=True):
    chosen_label: str = Field(min_length=1)
    rationale: str | None = None


class RowResult(StoreDocument, frozen=True):
    """Produced exactly once per processed row; rows that fail produce none."""

    row_index: int = Field(ge=0)
    input_data: dict[str, Any]
    judge_output: dict[str, ParameterJudgment] = Field(default_factory=dict)
    summaries: dict[str, str] = Field(default_factory=dict)
    ground_truth: dict[str, str] | None = None
    prompt_sent: str = ""
