"""JudgeResponse — the raw output of a single judge invocation."""

from pydantic import BaseModel, ConfigDict

from eval_engine.judge.domain.usage import UsageMetrics


class JudgeResponse(BaseModel):
    """Unparsed judge output; validation happens in the validation context.

    ``content`` is exactly what the model returned, so anything outside the
    expected JSON array is still visible to the validator.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    usage: UsageMetrics | None = None
