"""PromptBuilder — renders the full judge prompt for one dataset row."""

from collections.abc import Mapping, Sequence
from typing import Any

from eval_engine.criteria.domain.parameter import EvaluationParameterDetail
from eval_engine.criteria.domain.summarization import SummarizationDefinition

CRITERIA_HEADER = "--- DETAILED INSTRUCTIONS & CRITERIA ---"

_TASK_INSTRUCTIONS = """
Your task is to analyze the provided input data and then perform two types of tasks:
1.  **Evaluation Labeling**: For each specified Evaluation Parameter, choose the most appropriate label based on its definition and the input data.
2.  **Summarization**: For each specified Summarization Task, generate a concise summary based on its definition and the input data.
"""

_OUTPUT_FORMAT = """--- OUTPUT FORMAT ---
Respond with ONLY a JSON array. Do not add any text, explanation or markdown fences outside the array.
Each element of the array is a JSON object:
- For an Evaluation Parameter: {{"parameterId": "<Parameter ID>", "chosenLabel": "<label name>", "rationale": "<optional explanation>"}}
- For a Summarization Task: {{"parameterId": "<Task ID>", "generatedSummary": "<summary>"}}
Provide exactly one element for each of these IDs: {ids}
"""


def render_template(template: str, row: Mapping[str, Any]) -> str:
    """Substitute ``{{column}}`` placeholders with values from row.

    Replacement is literal, one column at a time. A None value renders as an
    empty string. Placeholders naming a column that is not in the row are left
    untouched.
    """
    rendered = template
    for column, value in row.items():
        replacement = "" if value is None else str(value)
        rendered = rendered.replace("{{" + column + "}}", replacement)
    return rendered


def _render_parameter(parameter: EvaluationParameterDetail) -> str:
    lines = [
        f"Parameter ID: {parameter.id}",
        f"Parameter Name: {parameter.name}",
        f"Definition: {parameter.definition}",
    ]
    if parameter.requires_rationale:
        lines.append(
            f"IMPORTANT: For this parameter ({parameter.name}), you MUST include"
            " a 'rationale'."
        )
    if parameter.labels:
        lines.append("Labels:")
        for label in parameter.labels:
            line = f'  - "{label.name}": {label.definition or "No def."}'
            if label.example:
                line += f' (e.g., "{label.example}")'
            lines.append(line)
    else:
        lines.append(" (No specific labels)")
    return "\n".join(lines) + "\n"


def _render_summarization(definition: SummarizationDefinition) -> str:
    lines = [
        f"Summarization Task ID: {definition.id}",
        f"Task Name: {definition.name}",
        f"Definition: {definition.definition}",
    ]
    if definition.example:
        lines.append(f'Example Hint: "{definition.example}"')
    lines.append("Provide summary.")
    return "\n".join(lines) + "\n"


def build_criteria_section(
    parameters: Sequence[EvaluationParameterDetail],
    summarizations: Sequence[SummarizationDefinition] = (),
) -> str:
    """Render the fixed instructions, the criteria and the output-format block.

    Criteria appear in the order given, which is the order the run definition
    selected them in, so the section is identical for every row of a run.
    """
    blocks: list[str] = [CRITERIA_HEADER + _TASK_INSTRUCTIONS]
    if parameters:
        blocks.append("\n".join(_render_parameter(p) for p in parameters))
    if summarizations:
        blocks.append("\n".join(_render_summarization(s) for s in summarizations))

    ids = [p.id for p in parameters] + [s.id for s in summarizations]
    blocks.append(_OUTPUT_FORMAT.format(ids=", ".join(ids)))
    return "\n".join(blocks)


def build_prompt(
    template: str,
    row: Mapping[str, Any],
    parameters: Sequence[EvaluationParameterDetail],
    summarizations: Sequence[SummarizationDefinition] = (),
) -> str:
    """Return the complete prompt sent to the judge for one row. Pure."""
    return (
        render_template(template=template, row=row)
        + "\n\n"
        + build_criteria_section(parameters=parameters, summarizations=summarizations)
    )


def truncate_for_storage(prompt: str, limit: int) -> str:
    """Shorten a prompt kept alongside a RowResult; limit 0 keeps nothing."""
    if len(prompt) <= limit:
        return prompt
    marker = "…[truncated]"
    if limit <= len(marker):
        return prompt[:limit]
    return prompt[: limit - len(marker)] + marker
