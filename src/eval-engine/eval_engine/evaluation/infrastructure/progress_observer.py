"""ProgressRunObserver — renders a Rich row-progress bar to stderr."""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text

_SEGMENTS = (
    ("█", "bright_green"),
    ("█", "red"),
    ("▒", "grey50"),
    ("░", "dim white"),
)
_SEGMENT_LABELS = ("judged", "failed", "in flight", "pending")


class _CountsColumn(ProgressColumn):
    """Renders done+inflight/total, with failed rows appended in red."""

    def render(self, task: Task) -> Text:
        done = int(task.fields.get("done", 0))
        inflight = int(task.fields.get("inflight", 0))
        failed = int(task.fields.get("failed", 0))
        total = int(task.total or 0)
        text = Text.assemble(
            (str(done), "bright_green"),
            ("+", "dim white"),
            (str(inflight), "grey50"),
            ("/", "dim white"),
            (str(total), "default"),
        )
        if failed:
            text.append(f"  {failed} failed", style="red")
        return text


class _RowBarColumn(ProgressColumn):
    """Bar with one segment per row state: judged, failed, in flight, pending."""

    def __init__(self, width: int = 40) -> None:
        super().__init__()
        self.width = width

    def render(self, task: Task) -> Text:
        total = task.total or 0
        cells = [0, 0, 0, 0]
        if total > 0:
            failed = int(task.fields.get("failed", 0))
            done = int(task.completed)
            inflight = int(task.fields.get("inflight", 0))
            budget = self.width
            for i, rows in enumerate((done - failed, failed, inflight)):
                cells[i] = min(int(max(rows, 0) / total * self.width), budget)
                budget -= cells[i]
        cells[3] = self.width - sum(cells[:3])

        bar = Text()
        for (char, style), count in zip(_SEGMENTS, cells):
            bar.append(char * count, style=style)
        return bar


def _make_progress(console: Console) -> Progress:
    """Create a Progress instance with the standard column layout."""
    return Progress(
        TextColumn("{task.description}"),
        _RowBarColumn(width=40),
        _CountsColumn(),
        TimeElapsedColumn(),
        TextColumn("eta"),
        TimeRemainingColumn(),
        TextColumn("{task.fields[rate]}"),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressRunObserver:
    """Renders one Rich progress bar for the rows of a run on stderr.

    Only run_started, row_started, row_retry, run_progress, row_failed and the
    terminal events produce output; all other events are no-ops.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from RunObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._done = 0
        self._inflight = 0
        self._failed = 0
        self._total = 0
        self._task_id: TaskID | None = None
        self._progress: Progress | None = None
        self._live: Live | None = None

    @property
    def done(self) -> int:
        return self._done

    @property
    def inflight(self) -> int:
        return self._inflight

    @property
    def failed(self) -> int:
        return self._failed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._done = 0
        self._inflight = 0
        self._failed = 0
        self._total = 0
        self._task_id = None
        self._progress = None
        self._live = None

    def _rate_str(self) -> str:
        """Compute a rate string like '2.5s/row' or '--s/row'."""
        if self._progress is None or self._task_id is None:
            return "--s/row"
        task = self._progress.tasks[self._task_id]
        elapsed = task.elapsed
        if elapsed is not None and elapsed > 0 and task.completed > 0:
            return f"{elapsed / task.completed:.1f}s/row"
        return "--s/row"

    def _update_task(self) -> None:
        """Push current counters into the Rich task."""
        if self._disabled or self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            completed=self._done,
            done=self._done,
            inflight=self._inflight,
            failed=self._failed,
            rate=self._rate_str(),
        )

    def _stop(self) -> None:
        if self._live is not None:
            self._live.stop()
        self._reset()

    # ------------------------------------------------------------------
    # Observer events
    # ------------------------------------------------------------------

    def run_started(self, run_id: str, total_rows: int, concurrency_limit: int) -> None:
        # Reset state from any previous run.
        self._reset()
        self._total = total_rows

        if self._disabled:
            return

        console = Console(stderr=True)
        legend = Text("  ")
        for (char, style), label in zip(_SEGMENTS, _SEGMENT_LABELS):
            legend.append(char, style=style)
            legend.append(f" {label}  ")
        self._progress = _make_progress(console=console)
        self._task_id = self._progress.add_task(
            description=f"[bold]{run_id}[/bold]",
            total=float(total_rows),
            done=0,
            inflight=0,
            failed=0,
            rate="--s/row",
        )
        self._live = Live(
            Group(self._progress, Text(""), legend),
            console=console,
            refresh_per_second=10,
        )
        self._live.start()

    def run_completed(
        self,
        run_id: str,
        processed_rows: int,
        failed_rows: int,
        elapsed_seconds: float,
    ) -> None:
        self._stop()

    def run_failed(self, run_id: str, reason: str) -> None:
        self._stop()

    def run_cancel_requested(self, run_id: str) -> None:
        pass

    def run_previewed(self, run_id: str, total_rows: int, sample_size: int) -> None:
        pass

    def run_progress(self, run_id: str, completed: int, total: int) -> None:
        self._done = completed
        self._inflight = max(0, self._inflight - 1)
        self._update_task()

    def row_started(self, run_id: str, row_index: int) -> None:
        self._inflight += 1
        self._update_task()

    def row_completed(self, run_id: str, row_index: int, judged_parameters: int) -> None:
        pass

    def row_elements_rejected(
        self, run_id: str, row_index: int, reasons: list[str]
    ) -> None:
        pass

    def row_failed(self, run_id: str, row_index: int, reason: str) -> None:
        self._failed += 1
        self._update_task()

    def row_retry(
        self,
        run_id: str,
        row_index: int,
        attempt: int,
        reason: str,
        backoff_seconds: float,
    ) -> None:
        # The row stays in flight until its run_progress event.
        self._update_task()

    def checkpoint_written(self, run_id: str, progress: int, results: int) -> None:
        pass

    def checkpoint_failed(
        self, run_id: str, consecutive_failures: int, reason: str
    ) -> None:
        pass
