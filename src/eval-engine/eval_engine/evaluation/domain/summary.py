"""SummaryMetrics — aggregate statistics written once when a run completes."""

from pydantic import Field

from eval_engine.core.model import StoreDocument


class ParameterMetrics(StoreDocument, frozen=True):
    """Label distribution and (for ground-truth runs) accuracy for one parameter."""

    parameter_id: str
    parameter_name: str
    label_distribution: dict[str, int]
    label_percentages: dict[str, float]
    judged_rows: int = Field(ge=0)
    accuracy: float | None = None
    total_compared: int | None = None
    correct: int | None = None
    # Row indices whose judged label disagreed with the ground truth.
    mismatched_rows: list[int] | None = None


class SummaryMetrics(StoreDocument, frozen=True):
    total_rows: int = Field(ge=0)
    processed_rows: int = Field(ge=0)
    failed_rows: int = Field(ge=0)
    parameters: dict[str, ParameterMetrics] = Field(default_factory=dict)
    overall_accuracy: float | None = None
