"""Error types raised while validating judge output."""

from eval_engine.core.errors import EvalEngineError


class JudgeOutputParseError(EvalEngineError):
    """Raised when a judge response is not a JSON array at all."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to parse judge output: {reason}")
