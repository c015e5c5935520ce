"""RunState — the mutable execution record of a run, owned by the engine."""

from datetime import datetime
from typing import Any

from pydantic import Field

from eval_engine.core.model import StoreDocument
from eval_engine.evaluation.domain.row_result import RowResult
from eval_engine.evaluation.domain.status import RunStatus
from eval_engine.evaluation.domain.summary import SummaryMetrics


class RunState(StoreDocument):
    """Snapshot of a run's persisted state fields.

    The store holds these fields as a document that is updated incrementally
    with merge semantics; this model is the typed view of one read.
    """

    status: RunStatus = RunStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    results: list[RowResult] = Field(default_factory=list)
    summary_metrics: SummaryMetrics | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    first_row_full_prompt: str | None = None
    previewed_dataset_sample: list[dict[str, Any]] | None = None
    total_rows_in_dataset: int | None = None


def progress_percent(completed: int, total: int) -> int:
    """Integer percentage of completed over total, rounding halves up."""
    if total <= 0:
        return 0
    return min(100, (200 * completed + total) // (2 * total))
