"""Base exception class for all eval-engine-specific errors."""


class EvalEngineError(Exception):
    """Base class for all eval-engine errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
