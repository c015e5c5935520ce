"""Structlog implementation of the JudgeObserver port."""

import structlog


class StructlogJudgeObserver:
    """Delegates judge domain events to structlog.

    Satisfies the JudgeObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def judge_generation_started(self, row_index: int, model: str) -> None:
        self._log.debug("judge.generation_started", row_index=row_index, model=model)

    def judge_generation_completed(
        self,
        row_index: int,
        duration_ms: int,
        input_tokens: int | None,
        output_tokens: int | None,
    ) -> None:
        self._log.info(
            "judge.generation_completed",
            row_index=row_index,
            duration_ms=duration_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    def judge_generation_failed(
        self, row_index: int, reason: str, retriable: bool
    ) -> None:
        log = self._log.warning if retriable else self._log.error
        log(
            "judge.generation_failed",
            row_index=row_index,
            reason=reason,
            retriable=retriable,
        )

    def judge_high_temperature_warned(self, model: str, temperature: float) -> None:
        self._log.warning(
            "judge.high_temperature_warned",
            model=model,
            temperature=temperature,
        )
