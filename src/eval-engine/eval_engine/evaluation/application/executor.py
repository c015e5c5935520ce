"""RunExecutor — orchestrates one evaluation run from start to terminal state."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from eval_engine.config.domain.execution import ExecutionConfig
from eval_engine.core.errors import EvalEngineError
from eval_engine.dataset.domain.row import DatasetRow
from eval_engine.evaluation.application.checkpointer import (
    ProgressCheckpointer,
    dump_results,
)
from eval_engine.evaluation.application.limiter import (
    ConcurrencyLimiter,
    UnitOfWork,
)
from eval_engine.evaluation.application.resolution import (
    ResolvedRun,
    resolve_run,
    utc_now,
)
from eval_engine.evaluation.domain.aggregator import aggregate_results
from eval_engine.evaluation.domain.errors import (
    CheckpointFailedError,
    JudgeTimeoutError,
    RunNotStartableError,
)
from eval_engine.evaluation.domain.observer import RunObserver
from eval_engine.evaluation.domain.row_result import ParameterJudgment, RowResult
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.evaluation.domain.state_machine import can_start, transition
from eval_engine.evaluation.domain.status import RunStatus, RunType
from eval_engine.judge.domain.judge import Judge
from eval_engine.judge.domain.response import JudgeResponse
from eval_engine.prompt.domain.builder import build_prompt, truncate_for_storage
from eval_engine.store.domain.store import ConfigurationStore
from eval_engine.validation.domain.validator import validate_judge_output

CANCELLED_REASON = "Run cancelled"


@dataclass
class _RunBuffer:
    """Shared mutable state of an in-flight run; guarded by ``lock``."""

    total_rows: int
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    results: list[RowResult] = field(default_factory=list)
    completed: int = 0
    failed: int = 0
    stop_reason: str | None = None


class RunExecutor:
    """Executes a run: resolve, fan out rows, checkpoint, aggregate, finish.

    Collaborators are injected so that the judge and the store can be replaced
    by in-memory fakes in tests. One executor instance drives one run at a
    time; ``cancel()`` may be called from another task while ``execute`` runs.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        judge: Judge,
        execution: ExecutionConfig,
        observer: RunObserver,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._judge = judge
        self._execution = execution
        self._observer = observer
        self._clock = clock
        self._cancel_requested = False
        self._buffer: _RunBuffer | None = None
        self._run_id: str | None = None

    def cancel(self) -> None:
        """Request cooperative cancellation of the current run.

        Rows that have not started are skipped; judge calls already in flight
        finish and their results are kept. The run then ends as Failed.
        """
        self._cancel_requested = True
        if self._buffer is not None and self._buffer.stop_reason is None:
            self._buffer.stop_reason = CANCELLED_REASON
        if self._run_id is not None:
            self._observer.run_cancel_requested(run_id=self._run_id)

    async def execute(self, run_id: str) -> RunState:
        """Run run_id to a terminal state and return the final RunState.

        Raises:
            RunNotStartableError: if the run is Processing or Completed; nothing
                is written in that case.
            StoreError: if the run document cannot be read at all, or a
                failure cannot be recorded.
        """
        self._run_id = run_id
        try:
            return await self._execute(run_id)
        finally:
            # A cancel applies to the run it arrived for, never to the next one.
            self._cancel_requested = False
            self._buffer = None
            self._run_id = None

    async def _execute(self, run_id: str) -> RunState:
        state = await self._store.get_run_state(run_id)
        if not can_start(state.status):
            raise RunNotStartableError(run_id=run_id, status=state.status)

        started_at = time.monotonic()

        try:
            resolved = await resolve_run(
                store=self._store, run_id=run_id, execution=self._execution
            )
        except EvalEngineError as exc:
            return await self._fail(run_id=run_id, current=state.status, reason=str(exc))

        status = transition(state.status, RunStatus.PROCESSING)
        first_prompt = build_prompt(
            template=resolved.template,
            row=resolved.rows[0].input_data,
            parameters=resolved.parameters,
            summarizations=resolved.summarizations,
        )
        try:
            await self._store.update_run_state(
                run_id,
                {
                    "status": status.value,
                    "progress": 0,
                    "results": [],
                    "summaryMetrics": None,
                    "errorMessage": None,
                    "completedAt": None,
                    "firstRowFullPrompt": first_prompt,
                    "updatedAt": self._clock().isoformat(),
                },
            )
        except EvalEngineError as exc:
            return await self._fail(run_id=run_id, current=status, reason=str(exc))

        total_rows = len(resolved.rows)
        concurrency = resolved.definition.concurrency_limit
        self._observer.run_started(
            run_id=run_id, total_rows=total_rows, concurrency_limit=concurrency
        )

        buffer = _RunBuffer(total_rows=total_rows)
        if self._cancel_requested:
            buffer.stop_reason = CANCELLED_REASON
        self._buffer = buffer
        checkpointer = ProgressCheckpointer(
            store=self._store,
            run_id=run_id,
            total_rows=total_rows,
            max_consecutive_failures=self._execution.max_consecutive_checkpoint_failures,
            observer=self._observer,
            clock=self._clock,
        )
        limiter = ConcurrencyLimiter(limit=concurrency)

        outcomes = await limiter.run(
            [
                self._row_unit(
                    run_id=run_id,
                    resolved=resolved,
                    row=row,
                    buffer=buffer,
                    checkpointer=checkpointer,
                    limiter=limiter,
                )
                for row in resolved.rows
            ]
        )
        for outcome in outcomes:
            if outcome.error is not None and not isinstance(
                outcome.error, EvalEngineError
            ):
                self._observer.row_failed(
                    run_id=run_id,
                    row_index=resolved.rows[outcome.index].index,
                    reason=repr(outcome.error),
                )

        results = sorted(buffer.results, key=lambda r: r.row_index)

        if buffer.stop_reason is not None:
            return await self._fail(
                run_id=run_id,
                current=status,
                reason=buffer.stop_reason,
                checkpointer=checkpointer,
                results=results,
            )

        return await self._complete(
            run_id=run_id,
            resolved=resolved,
            results=results,
            checkpointer=checkpointer,
            elapsed_seconds=time.monotonic() - started_at,
        )

    # ------------------------------------------------------------------
    # Per-row pipeline
    # ------------------------------------------------------------------

    def _row_unit(
        self,
        run_id: str,
        resolved: ResolvedRun,
        row: DatasetRow,
        buffer: _RunBuffer,
        checkpointer: ProgressCheckpointer,
        limiter: ConcurrencyLimiter,
    ) -> UnitOfWork[RowResult | None]:
        async def unit() -> RowResult | None:
            if buffer.stop_reason is not None:
                return None

            self._observer.row_started(run_id=run_id, row_index=row.index)
            result: RowResult | None = None
            try:
                result = await self._process_row(
                    run_id=run_id,
                    resolved=resolved,
                    row=row,
                    buffer=buffer,
                    limiter=limiter,
                )
            except EvalEngineError as exc:
                self._observer.row_failed(
                    run_id=run_id, row_index=row.index, reason=str(exc)
                )
                raise
            finally:
                await self._record(
                    run_id=run_id,
                    buffer=buffer,
                    result=result,
                    checkpointer=checkpointer,
                )
            return result

        return unit

    async def _process_row(
        self,
        run_id: str,
        resolved: ResolvedRun,
        row: DatasetRow,
        buffer: _RunBuffer,
        limiter: ConcurrencyLimiter,
    ) -> RowResult:
        prompt = build_prompt(
            template=resolved.template,
            row=row.input_data,
            parameters=resolved.parameters,
            summarizations=resolved.summarizations,
        )
        response = await self._generate_with_retry(
            run_id=run_id,
            row=row,
            prompt=prompt,
            buffer=buffer,
            limiter=limiter,
        )
        validated = validate_judge_output(
            raw=response.content,
            requested_ids=resolved.requested_ids,
            rationale_required_ids=resolved.rationale_required_ids,
            summarization_ids=resolved.summarization_ids,
        )
        if validated.rejected:
            self._observer.row_elements_rejected(
                run_id=run_id,
                row_index=row.index,
                reasons=[f"element {r.index}: {r.reason}" for r in validated.rejected],
            )

        is_ground_truth = resolved.definition.run_type is RunType.GROUND_TRUTH
        result = RowResult(
            row_index=row.index,
            input_data=row.input_data,
            judge_output={
                pid: ParameterJudgment(
                    chosen_label=judgment.chosen_label, rationale=judgment.rationale
                )
                for pid, judgment in validated.judgments.items()
            },
            summaries={
                pid: summary.generated_summary
                for pid, summary in validated.summaries.items()
            },
            ground_truth=dict(row.ground_truth)
            if is_ground_truth and row.ground_truth
            else None,
            prompt_sent=truncate_for_storage(
                prompt=prompt, limit=self._execution.prompt_storage_limit
            ),
        )
        self._observer.row_completed(
            run_id=run_id,
            row_index=row.index,
            judged_parameters=len(result.judge_output),
        )
        return result

    async def _generate_with_retry(
        self,
        run_id: str,
        row: DatasetRow,
        prompt: str,
        buffer: _RunBuffer,
        limiter: ConcurrencyLimiter,
    ) -> JudgeResponse:
        """Invoke the judge, retrying retriable failures with exponential backoff.

        The backoff sleep gives the worker slot back so other rows can proceed.
        No retry is attempted once the run is stopping.
        """
        retry_cfg = self._execution.retry
        backoff = float(retry_cfg.initial_backoff_seconds)
        attempt = 1
        while True:
            try:
                return await self._generate_once(prompt=prompt, row_index=row.index)
            except EvalEngineError as exc:
                if (
                    not exc.retriable
                    or attempt >= retry_cfg.max_attempts
                    or buffer.stop_reason is not None
                ):
                    raise
                self._observer.row_retry(
                    run_id=run_id,
                    row_index=row.index,
                    attempt=attempt,
                    reason=str(exc),
                    backoff_seconds=backoff,
                )
            async with limiter.released():
                await asyncio.sleep(backoff)
            backoff *= retry_cfg.backoff_multiplier
            attempt += 1

    async def _generate_once(self, prompt: str, row_index: int) -> JudgeResponse:
        timeout_seconds = self._execution.judge_call_timeout_seconds
        try:
            async with asyncio.timeout(timeout_seconds):
                return await self._judge.generate(prompt=prompt, row_index=row_index)
        except TimeoutError as exc:
            raise JudgeTimeoutError(
                row_index=row_index, timeout_seconds=timeout_seconds
            ) from exc

    async def _record(
        self,
        run_id: str,
        buffer: _RunBuffer,
        result: RowResult | None,
        checkpointer: ProgressCheckpointer,
    ) -> None:
        """Append a finished row and checkpoint on cadence.

        Holding the lock across the checkpoint write keeps every persisted
        snapshot a superset of the previous one.
        """
        async with buffer.lock:
            if result is None:
                buffer.failed += 1
            else:
                buffer.results.append(result)
            buffer.completed += 1
            self._observer.run_progress(
                run_id=run_id, completed=buffer.completed, total=buffer.total_rows
            )

            if buffer.stop_reason is not None:
                return
            on_cadence = buffer.completed % self._execution.checkpoint_every == 0
            if on_cadence or buffer.completed == buffer.total_rows:
                try:
                    await checkpointer.checkpoint(results=list(buffer.results))
                except CheckpointFailedError as exc:
                    buffer.stop_reason = str(exc)

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    async def _complete(
        self,
        run_id: str,
        resolved: ResolvedRun,
        results: list[RowResult],
        checkpointer: ProgressCheckpointer,
        elapsed_seconds: float,
    ) -> RunState:
        total_rows = len(resolved.rows)
        summary = aggregate_results(
            results=results,
            parameters=resolved.parameters,
            run_type=resolved.definition.run_type,
            total_rows=total_rows,
        )
        status = transition(RunStatus.PROCESSING, RunStatus.COMPLETED)
        completed_at = self._clock()
        try:
            await checkpointer.finalize(
                {
                    "status": status.value,
                    "progress": 100,
                    "results": dump_results(results),
                    "summaryMetrics": summary.model_dump(by_alias=True, mode="json"),
                    "completedAt": completed_at.isoformat(),
                    "previewedDatasetSample": None,
                    "totalRowsInDataset": None,
                }
            )
        except EvalEngineError as exc:
            return await self._fail(
                run_id=run_id,
                current=RunStatus.PROCESSING,
                reason=str(exc),
                results=results,
            )

        self._observer.run_completed(
            run_id=run_id,
            processed_rows=summary.processed_rows,
            failed_rows=summary.failed_rows,
            elapsed_seconds=elapsed_seconds,
        )
        return RunState(
            status=status,
            progress=100,
            results=results,
            summary_metrics=summary,
            completed_at=completed_at,
            updated_at=completed_at,
        )

    async def _fail(
        self,
        run_id: str,
        current: RunStatus,
        reason: str,
        checkpointer: ProgressCheckpointer | None = None,
        results: list[RowResult] | None = None,
    ) -> RunState:
        """Mark the run Failed and persist it immediately.

        A run that was already Failed (a resubmission that failed again) keeps
        its status and only gets the new error message.
        """
        status = (
            RunStatus.FAILED
            if current is RunStatus.FAILED
            else transition(current, RunStatus.FAILED)
        )
        self._observer.run_failed(run_id=run_id, reason=reason)

        fields: dict[str, Any] = {"status": status.value, "errorMessage": reason}
        if results is not None:
            fields["results"] = dump_results(results)

        if checkpointer is not None:
            await checkpointer.finalize(fields)
        else:
            await self._store.update_run_state(
                run_id, {**fields, "updatedAt": self._clock().isoformat()}
            )

        return RunState(
            status=status,
            progress=checkpointer.last_progress if checkpointer else 0,
            results=results or [],
            error_message=reason,
            updated_at=self._clock(),
        )
