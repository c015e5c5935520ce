"""ConcurrencyLimiter — bounded parallel execution with per-unit error isolation."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from eval_engine.evaluation.domain.run_definition import (
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
)

type UnitOfWork[T] = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class UnitOutcome[T]:
    """Result of one unit: exactly one of value / error is meaningful."""

    index: int
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConcurrencyLimiter:
    """Runs units of work with at most ``limit`` executing at once.

    Every unit runs to completion. An exception raised by one unit is captured
    in its outcome and never cancels its siblings. Completion order is
    unspecified; outcomes are returned in submission order.
    """

    def __init__(self, limit: int) -> None:
        if not MIN_CONCURRENCY <= limit <= MAX_CONCURRENCY:
            raise ValueError(
                f"concurrency limit must be between {MIN_CONCURRENCY} and"
                f" {MAX_CONCURRENCY}, got {limit}"
            )
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)

    @property
    def limit(self) -> int:
        return self._limit

    @asynccontextmanager
    async def released(self) -> AsyncIterator[None]:
        """Give the calling unit's slot back for the duration of the block.

        Used around retry backoff sleeps so waiting units do not starve others.
        The slot is re-acquired before the block exits.
        """
        self._semaphore.release()
        try:
            yield
        finally:
            await self._semaphore.acquire()

    async def run[T](self, units: Sequence[UnitOfWork[T]]) -> list[UnitOutcome[T]]:
        outcomes: list[UnitOutcome[T] | None] = [None] * len(units)

        async def _guarded(index: int, unit: UnitOfWork[T]) -> None:
            async with self._semaphore:
                try:
                    value = await unit()
                except Exception as exc:
                    outcomes[index] = UnitOutcome(index=index, error=exc)
                else:
                    outcomes[index] = UnitOutcome(index=index, value=value)

        async with asyncio.TaskGroup() as tg:
            for index, unit in enumerate(units):
                tg.create_task(_guarded(index=index, unit=unit))

        return [outcome for outcome in outcomes if outcome is not None]
