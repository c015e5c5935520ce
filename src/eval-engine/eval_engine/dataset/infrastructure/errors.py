"""Error types raised by dataset infrastructure."""

from eval_engine.core.errors import EvalEngineError


class DatasetLoadError(EvalEngineError):
    """Raised when a dataset file cannot be read or is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load dataset: {reason}")
