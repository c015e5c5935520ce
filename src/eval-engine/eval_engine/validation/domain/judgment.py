"""Tagged outcomes of decoding one element of a judge response."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class RawJudgment(BaseModel):
    """Wire shape of one response element.

    Strict strings so that a number or list in place of a label is rejected
    rather than coerced. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    parameter_id: StrictStr = Field(alias="parameterId", min_length=1)
    chosen_label: StrictStr | None = Field(default=None, alias="chosenLabel")
    rationale: StrictStr | None = None
    generated_summary: StrictStr | None = Field(default=None, alias="generatedSummary")


@dataclass(frozen=True)
class ValidJudgment:
    parameter_id: str
    chosen_label: str
    rationale: str | None


@dataclass(frozen=True)
class ValidSummary:
    parameter_id: str
    generated_summary: str


@dataclass(frozen=True)
class InvalidElement:
    index: int
    reason: str


type ElementOutcome = ValidJudgment | ValidSummary | InvalidElement


@dataclass(frozen=True)
class ValidatedOutput:
    """Everything salvaged from one response plus what was rejected and why."""

    judgments: dict[str, ValidJudgment]
    summaries: dict[str, ValidSummary]
    rejected: list[InvalidElement]
