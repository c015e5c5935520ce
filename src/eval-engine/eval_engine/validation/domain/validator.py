"""OutputValidator — lenient, per-element validation of judge responses."""

import json
from collections.abc import Collection
from typing import Any

from pydantic import ValidationError

from eval_engine.validation.domain.errors import JudgeOutputParseError
from eval_engine.validation.domain.judgment import (
    ElementOutcome,
    InvalidElement,
    RawJudgment,
    ValidatedOutput,
    ValidJudgment,
    ValidSummary,
)


def parse_response_array(raw: str) -> list[Any]:
    """Decode raw as a JSON array; anything else is a parse failure.

    Only surrounding whitespace is tolerated. Prose or markdown fences around
    the array make the whole response unparseable.

    Raises:
        JudgeOutputParseError: if raw is not valid JSON or not an array.
    """
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise JudgeOutputParseError(reason=f"invalid JSON ({exc.msg})") from exc
    if not isinstance(decoded, list):
        raise JudgeOutputParseError(
            reason=f"expected a JSON array, got {type(decoded).__name__}"
        )
    return decoded


def decode_element(
    index: int,
    element: Any,
    requested_ids: Collection[str],
    rationale_required_ids: Collection[str],
    summarization_ids: Collection[str],
) -> ElementOutcome:
    """Decode a single response element into a tagged outcome. Never raises."""
    if not isinstance(element, dict):
        return InvalidElement(index=index, reason="element is not an object")

    claimed_id = element.get("parameterId")
    if (
        isinstance(claimed_id, str)
        and claimed_id not in rationale_required_ids
        and not isinstance(element.get("rationale"), str | None)
    ):
        # An unusable optional rationale is dropped; the label still counts.
        element = {k: v for k, v in element.items() if k != "rationale"}

    try:
        raw = RawJudgment.model_validate(element)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        return InvalidElement(index=index, reason=f"invalid field(s): {fields}")

    parameter_id = raw.parameter_id

    if parameter_id in summarization_ids:
        if not raw.generated_summary or not raw.generated_summary.strip():
            return InvalidElement(
                index=index,
                reason=f"summary '{parameter_id}' has no generatedSummary",
            )
        return ValidSummary(
            parameter_id=parameter_id, generated_summary=raw.generated_summary
        )

    if parameter_id not in requested_ids:
        return InvalidElement(
            index=index, reason=f"unknown parameterId '{parameter_id}'"
        )

    if not raw.chosen_label or not raw.chosen_label.strip():
        return InvalidElement(
            index=index, reason=f"parameter '{parameter_id}' has no chosenLabel"
        )

    rationale = raw.rationale if raw.rationale and raw.rationale.strip() else None
    if parameter_id in rationale_required_ids and rationale is None:
        return InvalidElement(
            index=index,
            reason=f"parameter '{parameter_id}' requires a rationale",
        )

    return ValidJudgment(
        parameter_id=parameter_id,
        chosen_label=raw.chosen_label,
        rationale=rationale,
    )


def validate_judge_output(
    raw: str,
    requested_ids: Collection[str],
    rationale_required_ids: Collection[str],
    summarization_ids: Collection[str] = (),
) -> ValidatedOutput:
    """Validate a judge response, keeping every well-formed element.

    A response that is not a JSON array raises. Otherwise each element is
    decoded on its own: missing parameters, unknown IDs and malformed elements
    are dropped and reported in ``rejected`` while the rest are retained. When
    an ID appears more than once the first valid element wins.

    Raises:
        JudgeOutputParseError: if raw is not a JSON array.
    """
    elements = parse_response_array(raw)

    judgments: dict[str, ValidJudgment] = {}
    summaries: dict[str, ValidSummary] = {}
    rejected: list[InvalidElement] = []

    for index, element in enumerate(elements):
        outcome = decode_element(
            index=index,
            element=element,
            requested_ids=requested_ids,
            rationale_required_ids=rationale_required_ids,
            summarization_ids=summarization_ids,
        )
        match outcome:
            case ValidJudgment(parameter_id=pid) if pid not in judgments:
                judgments[pid] = outcome
            case ValidSummary(parameter_id=pid) if pid not in summaries:
                summaries[pid] = outcome
            case InvalidElement():
                rejected.append(outcome)
            case _:
                rejected.append(
                    InvalidElement(index=index, reason="duplicate parameterId")
                )

    return ValidatedOutput(judgments=judgments, summaries=summaries, rejected=rejected)
