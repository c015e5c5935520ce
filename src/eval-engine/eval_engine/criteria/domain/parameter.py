"""Evaluation parameter value objects — criteria the judge labels each row against."""

from pydantic import Field

from eval_engine.core.model import StoreDocument


class ParameterLabel(StoreDocument, frozen=True):
    """One of the closed set of labels a judge may choose for a parameter."""

    name: str = Field(min_length=1)
    definition: str = ""
    example: str | None = None


class EvaluationParameterDetail(StoreDocument, frozen=True):
    """A named criterion with its labels, resolved once before a run starts."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    definition: str = ""
    labels: list[ParameterLabel] = Field(default_factory=list)
    requires_rationale: bool = False
