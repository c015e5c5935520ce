"""LiteLLMJudge — judge implementation that calls a model through LiteLLM."""

import asyncio
import time

import litellm

from eval_engine.config.domain.judge import JudgeConfig
from eval_engine.judge.domain.observer import JudgeObserver
from eval_engine.judge.domain.response import JudgeResponse
from eval_engine.judge.domain.usage import UsageMetrics
from eval_engine.judge.infrastructure.errors import JudgeInvocationError

_SYSTEM_PROMPT = """\
You are an expert evaluator. Analyze the text you are given against the \
evaluation criteria and labels it describes. Choose exactly one of the listed \
labels for each evaluation parameter and write a concise summary for each \
summarization task. Respond with ONLY the JSON array described in the output \
format section, with no surrounding prose or markdown.
"""

_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    litellm.Timeout,
    litellm.RateLimitError,
    litellm.APIConnectionError,
    litellm.InternalServerError,
    litellm.ServiceUnavailableError,
    asyncio.TimeoutError,
)

_PERMANENT_ERRORS: tuple[type[BaseException], ...] = (
    litellm.AuthenticationError,
    litellm.NotFoundError,
    litellm.BadRequestError,
)


def is_transient(exc: BaseException) -> bool:
    """Classify a provider failure as worth retrying.

    Timeouts, rate limits, connection failures and 5xx responses are transient.
    Authentication, unknown model and bad request (schema rejection) are
    permanent, as is anything unrecognised.
    """
    if isinstance(exc, _PERMANENT_ERRORS):
        return False
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code == 429 or status_code >= 500
    return False


class LiteLLMJudge:
    """Judge implementation that delegates to an LLM via LiteLLM.

    One instance serves a whole run; it is constructed by the caller and
    injected into the executor. Each call carries ``config.timeout_seconds``
    so a stuck provider cannot hold a worker slot indefinitely.
    """

    def __init__(self, config: JudgeConfig, observer: JudgeObserver) -> None:
        litellm.suppress_debug_info = True
        self._config = config
        self._observer = observer

        if config.temperature > 0.0:
            self._observer.judge_high_temperature_warned(
                model=config.model,
                temperature=config.temperature,
            )

    @property
    def model(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, row_index: int) -> JudgeResponse:
        """Send prompt to the model and return its raw text response.

        Raises:
            JudgeInvocationError: if the call fails or returns no content;
                ``retriable`` reflects is_transient().
        """
        self._observer.judge_generation_started(
            row_index=row_index, model=self._config.model
        )

        start = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=self._config.model,
                temperature=self._config.temperature,
                timeout=self._config.timeout_seconds,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            retriable = is_transient(exc)
            self._observer.judge_generation_failed(
                row_index=row_index, reason=reason, retriable=retriable
            )
            raise JudgeInvocationError(reason=reason, retriable=retriable) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        content = response.choices[0].message.content
        if not isinstance(content, str) or not content.strip():
            reason = "judge returned an empty response"
            self._observer.judge_generation_failed(
                row_index=row_index, reason=reason, retriable=False
            )
            raise JudgeInvocationError(reason=reason)

        usage = _extract_usage(response)
        self._observer.judge_generation_completed(
            row_index=row_index,
            duration_ms=duration_ms,
            input_tokens=usage.input_tokens if usage else None,
            output_tokens=usage.output_tokens if usage else None,
        )
        return JudgeResponse(content=content, usage=usage)


def _extract_usage(response: object) -> UsageMetrics | None:
    usage = getattr(response, "usage", None)
    prompt_tokens = getattr(usage, "prompt_tokens", None)
    completion_tokens = getattr(usage, "completion_tokens", None)
    if not isinstance(prompt_tokens, int) or not isinstance(completion_tokens, int):
        return None
    return UsageMetrics(input_tokens=prompt_tokens, output_tokens=completion_tokens)
