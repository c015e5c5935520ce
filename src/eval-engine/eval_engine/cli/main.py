"""CLI entrypoint for eval-engine — typer app with run, preview and show commands."""

import asyncio
import signal
import sys
from pathlib import Path

import structlog
import typer

from eval_engine.config.domain.config import EngineConfig
from eval_engine.config.domain.judge import JudgeConfig
from eval_engine.config.infrastructure.observer import StructlogConfigObserver
from eval_engine.config.infrastructure.yaml_loader import YamlConfigLoader
from eval_engine.core.errors import EvalEngineError
from eval_engine.dataset.infrastructure.file_reader import DatasetFileReader
from eval_engine.dataset.infrastructure.observer import StructlogDatasetObserver
from eval_engine.evaluation.application.executor import RunExecutor
from eval_engine.evaluation.application.previewer import DataPreviewer
from eval_engine.evaluation.domain.observer import RunObserver
from eval_engine.evaluation.domain.run_definition import RunDefinition
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.evaluation.domain.state_machine import is_terminal
from eval_engine.evaluation.domain.status import RunStatus
from eval_engine.evaluation.domain.summary import SummaryMetrics
from eval_engine.evaluation.infrastructure.composite_observer import (
    CompositeRunObserver,
)
from eval_engine.evaluation.infrastructure.observer import StructlogRunObserver
from eval_engine.evaluation.infrastructure.progress_observer import (
    ProgressRunObserver,
)
from eval_engine.judge.infrastructure.litellm import LiteLLMJudge
from eval_engine.judge.infrastructure.observer import StructlogJudgeObserver
from eval_engine.store.infrastructure.json_file import JsonFileConfigurationStore

app = typer.Typer(add_completion=False)

_CONFIG_OPTION = typer.Option(
    Path("./engine.yaml"),
    "--config",
    "-c",
    help="Path to engine config YAML",
)
_LOG_FORMAT_OPTION = typer.Option(
    "console",
    "--log-format",
    help="Log format: 'console' or 'json'",
)


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_config(config_path: Path) -> EngineConfig:
    return YamlConfigLoader(observer=StructlogConfigObserver()).load(path=config_path)


def _open_store(config: EngineConfig) -> JsonFileConfigurationStore:
    return JsonFileConfigurationStore(
        path=config.store.path,
        dataset_reader=DatasetFileReader(observer=StructlogDatasetObserver()),
    )


def _judge_config_for(config: EngineConfig, definition: RunDefinition) -> JudgeConfig:
    """The run's own model identifier wins over the configured default."""
    if definition.model_identifier:
        return config.judge.model_copy(update={"model": definition.model_identifier})
    return config.judge


def _run_observer(log_format: str) -> RunObserver:
    observers: list[RunObserver] = [StructlogRunObserver()]
    if log_format != "json":
        observers.append(ProgressRunObserver())
    return CompositeRunObserver(observers=observers)


async def _execute(config: EngineConfig, run_id: str, observer: RunObserver) -> RunState:
    store = _open_store(config=config)
    definition = await store.get_run_definition(run_id)
    judge = LiteLLMJudge(
        config=_judge_config_for(config=config, definition=definition),
        observer=StructlogJudgeObserver(),
    )
    executor = RunExecutor(
        store=store,
        judge=judge,
        execution=config.execution,
        observer=observer,
    )

    # Ctrl-C requests a cooperative cancel; in-flight rows finish first.
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, executor.cancel)
    try:
        return await executor.execute(run_id)
    finally:
        loop.remove_signal_handler(signal.SIGINT)


async def _preview(config: EngineConfig, run_id: str, observer: RunObserver) -> RunState:
    previewer = DataPreviewer(
        store=_open_store(config=config),
        execution=config.execution,
        observer=observer,
    )
    return await previewer.preview(run_id)


async def _show(config: EngineConfig, run_id: str) -> RunState:
    return await _open_store(config=config).get_run_state(run_id)


# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_WHITE = "\033[97m"

_STATUS_COLORS: dict[RunStatus, str] = {
    RunStatus.PENDING: _DIM,
    RunStatus.DATA_PREVIEWED: _BLUE,
    RunStatus.PROCESSING: _YELLOW,
    RunStatus.COMPLETED: _GREEN,
    RunStatus.FAILED: _RED,
}

# Width of the label distribution bar, in cells.
_BAR_W = 20
# Mismatched row indices listed per parameter before eliding the rest.
_MISMATCH_LIMIT = 20


def _accuracy_color(accuracy: float) -> str:
    if accuracy >= 80.0:
        return _GREEN
    if accuracy >= 50.0:
        return _YELLOW
    return _RED


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _print_metadata(run_id: str, state: RunState) -> None:
    status_color = _STATUS_COLORS.get(state.status, _WHITE)
    meta_rows: list[tuple[str, str]] = [
        ("Run ID", run_id),
        ("Status", f"{status_color}{state.status.value}{_RESET}"),
        ("Progress", f"{state.progress}%"),
        ("Results", str(len(state.results))),
    ]
    if state.total_rows_in_dataset is not None:
        meta_rows.append(("Rows in dataset", str(state.total_rows_in_dataset)))
    if state.completed_at is not None:
        meta_rows.append(("Completed at", state.completed_at.isoformat()))
    label_w = max(len(label) for label, _ in meta_rows)
    for label, value in meta_rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {_WHITE}{value}{_RESET}")
    if state.error_message:
        typer.echo("")
        typer.echo(f"  {_RED}{_BOLD}Error{_RESET}  {state.error_message}")


def _print_mismatches(rows: list[int]) -> None:
    shown = ", ".join(str(i) for i in rows[:_MISMATCH_LIMIT])
    if len(rows) > _MISMATCH_LIMIT:
        shown += f" (+{len(rows) - _MISMATCH_LIMIT} more)"
    typer.echo(f"  {_DIM}Mismatched rows{_RESET}  {_YELLOW}{shown}{_RESET}")


def _print_summary_metrics(summary: SummaryMetrics) -> None:
    """Render one label distribution table per parameter, with accuracy if known."""
    typer.echo("")
    typer.echo(
        f"  {_DIM}Rows{_RESET}  {_WHITE}{summary.processed_rows}/{summary.total_rows}"
        f" processed{_RESET}  {_RED if summary.failed_rows else _DIM}"
        f"{summary.failed_rows} failed{_RESET}"
    )

    for metrics in summary.parameters.values():
        typer.echo("")
        _rule(color=_BLUE)
        typer.echo(f"{_BLUE}{_BOLD}  {metrics.parameter_name}{_RESET}")
        _rule(color=_BLUE)
        if not metrics.label_distribution:
            typer.echo(f"  {_DIM}(no labels){_RESET}")
        label_w = max((len(label) for label in metrics.label_distribution), default=5)
        for label, count in metrics.label_distribution.items():
            pct = metrics.label_percentages.get(label, 0.0)
            filled = round(pct / 100 * _BAR_W)
            bar = f"{_CYAN}{'█' * filled}{_DIM}{'░' * (_BAR_W - filled)}{_RESET}"
            typer.echo(
                f"  {_WHITE}{label:<{label_w}}{_RESET}"
                f"  {count:>5}  {_DIM}{pct:>6.2f}%{_RESET}  {bar}"
            )
        if metrics.accuracy is not None:
            color = _accuracy_color(accuracy=metrics.accuracy)
            typer.echo(
                f"  {_DIM}Accuracy{_RESET}  {color}{metrics.accuracy:.2f}%{_RESET}"
                f"  {_DIM}({metrics.correct}/{metrics.total_compared} compared){_RESET}"
            )
        if metrics.mismatched_rows:
            _print_mismatches(rows=metrics.mismatched_rows)

    if summary.overall_accuracy is not None:
        color = _accuracy_color(accuracy=summary.overall_accuracy)
        typer.echo("")
        typer.echo(
            f"  {_GREEN}{_BOLD}Overall accuracy{_RESET}"
            f"  {color}{summary.overall_accuracy:.2f}%{_RESET}"
        )


def _print_preview(state: RunState) -> None:
    sample = state.previewed_dataset_sample or []
    if not sample:
        return
    typer.echo("")
    typer.echo(f"{_BLUE}{_BOLD}  Sample ({len(sample)} rows){_RESET}")
    for i, row in enumerate(sample):
        cells = ", ".join(f"{k}={str(v)[:30]!r}" for k, v in row.items())
        typer.echo(f"  {_DIM}{i:>3}{_RESET}  {cells}")


def _print_state(run_id: str, state: RunState, title: str) -> None:
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo(f"{_CYAN}{_BOLD}  eval-engine  ·  {title}{_RESET}")
    _rule(color=_CYAN)
    typer.echo("")
    _print_metadata(run_id=run_id, state=state)
    if state.summary_metrics is not None:
        _print_summary_metrics(summary=state.summary_metrics)
    _print_preview(state=state)
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo("")


@app.command()
def run(
    run_id: str = typer.Argument(..., help="ID of the run to execute"),
    config_path: Path = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Execute (or resubmit) an evaluation run."""
    try:
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path=config_path)
        state = asyncio.run(
            _execute(config=config, run_id=run_id, observer=_run_observer(log_format))
        )
        _print_state(run_id=run_id, state=state, title="Run Finished")
        if state.status is RunStatus.FAILED:
            sys.exit(1)
    except EvalEngineError as exc:
        typer.echo(str(exc))
        sys.exit(1)


@app.command()
def preview(
    run_id: str = typer.Argument(..., help="ID of the run to preview"),
    config_path: Path = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Resolve a run's dataset and store a sample without invoking the judge."""
    try:
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path=config_path)
        state = asyncio.run(
            _preview(config=config, run_id=run_id, observer=StructlogRunObserver())
        )
        _print_state(run_id=run_id, state=state, title="Data Preview")
        if state.status is RunStatus.FAILED:
            sys.exit(1)
    except EvalEngineError as exc:
        typer.echo(str(exc))
        sys.exit(1)


@app.command()
def show(
    run_id: str = typer.Argument(..., help="ID of the run to show"),
    config_path: Path = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Print the persisted state and summary of a run."""
    try:
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path=config_path)
        state = asyncio.run(_show(config=config, run_id=run_id))
        title = "Run State" if is_terminal(state.status) else "Run State (in progress)"
        _print_state(run_id=run_id, state=state, title=title)
    except EvalEngineError as exc:
        typer.echo(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    app()
