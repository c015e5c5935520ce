"""UsageMetrics — token consumption reported by a judge call."""

from pydantic import BaseModel, ConfigDict


class UsageMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_tokens: int
    output_tokens: int
