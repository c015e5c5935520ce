"""FakeJudgeObserver — records judge domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class JudgeGenerationStartedEvent:
    row_index: int
    model: str


@dataclass(frozen=True)
class JudgeGenerationCompletedEvent:
    row_index: int
    duration_ms: int
    input_tokens: int | None
    output_tokens: int | None


@dataclass(frozen=True)
class JudgeGenerationFailedEvent:
    row_index: int
    reason: str
    retriable: bool


@dataclass(frozen=True)
class JudgeHighTemperatureWarnedEvent:
    model: str
    temperature: float


class FakeJudgeObserver:
    """Records all emitted judge events as typed frozen dataclasses."""

    def __init__(self) -> None:
        self._started: list[JudgeGenerationStartedEvent] = []
        self._completed: list[JudgeGenerationCompletedEvent] = []
        self._failed: list[JudgeGenerationFailedEvent] = []
        self._temperature_warnings: list[JudgeHighTemperatureWarnedEvent] = []

    @property
    def started(self) -> list[JudgeGenerationStartedEvent]:
        return self._started

    @property
    def completed(self) -> list[JudgeGenerationCompletedEvent]:
        return self._completed

    @property
    def failed(self) -> list[JudgeGenerationFailedEvent]:
        return self._failed

    @property
    def temperature_warnings(self) -> list[JudgeHighTemperatureWarnedEvent]:
        return self._temperature_warnings

    def judge_generation_started(self, row_index: int, model: str) -> None:
        self._started.append(
            JudgeGenerationStartedEvent(row_index=row_index, model=model)
        )

    def judge_generation_completed(
        self,
        row_index: int,
        duration_ms: int,
        input_tokens: int | None,
        output_tokens: int | None,
    ) -> None:
        self._completed.append(
            JudgeGenerationCompletedEvent(
                row_index=row_index,
                duration_ms=duration_ms,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )
        )

    def judge_generation_failed(
        self, row_index: int, reason: str, retriable: bool
    ) -> None:
        self._failed.append(
            JudgeGenerationFailedEvent(
                row_index=row_index, reason=reason, retriable=retriable
            )
        )

    def judge_high_temperature_warned(self, model: str, temperature: float) -> None:
        self._temperature_warnings.append(
            JudgeHighTemperatureWarnedEvent(model=model, temperature=temperature)
        )
