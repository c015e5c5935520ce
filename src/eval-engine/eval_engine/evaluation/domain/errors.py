"""Error types raised by the evaluation domain and application layers."""

from eval_engine.core.errors import EvalEngineError
from eval_engine.evaluation.domain.status import RunStatus


class InvalidTransitionError(EvalEngineError):
    """Raised when a run is asked to move between states the lifecycle forbids."""

    def __init__(self, current: RunStatus, target: RunStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Failed to transition run: {current.value} -> {target.value} is not allowed"
        )


class RunNotStartableError(EvalEngineError):
    """Raised when execution is requested for a run that is running or finished."""

    def __init__(self, run_id: str, status: RunStatus) -> None:
        self.run_id = run_id
        self.status = status
        super().__init__(
            f"Failed to start run '{run_id}': status is {status.value}"
        )


class RunResolutionError(EvalEngineError):
    """Raised when a run definition cannot be resolved into executable inputs."""

    def __init__(self, run_id: str, reason: str) -> None:
        super().__init__(f"Failed to resolve run '{run_id}': {reason}")


class DatasetEmptyError(EvalEngineError):
    """Raised when a run's dataset yields no rows after mapping."""

    def __init__(self, dataset_version_id: str) -> None:
        super().__init__(
            f"Failed to resolve dataset: version '{dataset_version_id}' has no"
            " processable rows"
        )


class CheckpointFailedError(EvalEngineError):
    """Raised when progress checkpoints keep failing past the tolerated threshold."""

    def __init__(self, run_id: str, consecutive_failures: int, reason: str) -> None:
        self.consecutive_failures = consecutive_failures
        super().__init__(
            f"Failed to checkpoint run '{run_id}' after {consecutive_failures}"
            f" consecutive attempts: {reason}"
        )


class JudgeTimeoutError(EvalEngineError):
    """Raised when a single judge call exceeds the per-call deadline."""

    def __init__(self, row_index: int, timeout_seconds: float) -> None:
        self.row_index = row_index
        super().__init__(
            f"Failed to judge row {row_index}: no response within"
            f" {timeout_seconds:g}s",
            retriable=True,
        )
