"""JudgeObserver port — domain events emitted during judge invocations."""

from typing import Protocol


class JudgeObserver(Protocol):
    """Observer port for judge domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def judge_generation_started(self, row_index: int, model: str) -> None: ...

    def judge_generation_completed(
        self,
        row_index: int,
        duration_ms: int,
        input_tokens: int | None,
        output_tokens: int | None,
    ) -> None: ...

    def judge_generation_failed(
        self, row_index: int, reason: str, retriable: bool
    ) -> None: ...

    def judge_high_temperature_warned(self, model: str, temperature: float) -> None: ...
