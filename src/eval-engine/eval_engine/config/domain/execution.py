"""Execution configuration models."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel, frozen=True):
    max_attempts: int = Field(default=1, ge=1)
    initial_backoff_seconds: float = Field(default=1.0, ge=0.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class ExecutionConfig(BaseModel, frozen=True):
    checkpoint_every: int = Field(default=2, ge=1)
    max_consecutive_checkpoint_failures: int = Field(default=3, ge=1)
    # Applied when a run asks for all rows (run_on_n_rows == 0).
    unbounded_row_cap: int = Field(default=5000, ge=1)
    preview_sample_size: int = Field(default=10, ge=0)
    prompt_storage_limit: int = Field(default=4000, ge=0)
    # Upper bound on one judge call, enforced around any Judge implementation.
    judge_call_timeout_seconds: float = Field(default=300.0, gt=0.0)
    retry: RetryConfig = RetryConfig()
