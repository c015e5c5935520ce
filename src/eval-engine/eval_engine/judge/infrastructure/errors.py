"""Error types raised by judge infrastructure."""

from eval_engine.core.errors import EvalEngineError


class JudgeInvocationError(EvalEngineError):
    """Raised when the judge cannot be invoked or the call fails."""

    def __init__(self, reason: str, retriable: bool = False) -> None:
        super().__init__(f"Failed to invoke judge: {reason}", retriable=retriable)
