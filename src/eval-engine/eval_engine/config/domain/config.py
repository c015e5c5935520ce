"""Top-level EngineConfig aggregate — the root configuration object."""

from pydantic import BaseModel

from eval_engine.config.domain.execution import ExecutionConfig
from eval_engine.config.domain.judge import JudgeConfig
from eval_engine.config.domain.store import StoreConfig


class EngineConfig(BaseModel, frozen=True):
    """Root configuration aggregate for the run execution engine."""

    store: StoreConfig
    judge: JudgeConfig
    execution: ExecutionConfig = ExecutionConfig()
