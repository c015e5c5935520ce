"""SummarizationDefinition — a free-text summary task answered once per row."""

from pydantic import Field

from eval_engine.core.model import StoreDocument


class SummarizationDefinition(StoreDocument, frozen=True):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    definition: str = ""
    example: str | None = None
