"""Judge Protocol — structural interface for all judge model clients."""

from typing import Protocol

from eval_engine.judge.domain.response import JudgeResponse


class Judge(Protocol):
    """Structural interface satisfied by any judge implementation.

    Implementations must not retry internally. Failures are raised as
    JudgeInvocationError with ``retriable`` set for transient conditions
    (timeouts, rate limits, 5xx) and cleared for permanent ones.
    """

    async def generate(self, prompt: str, row_index: int) -> JudgeResponse: ...
