"""Tests for prompt rendering."""

from eval_engine.criteria.domain.parameter import (
    EvaluationParameterDetail,
    ParameterLabel,
)
from eval_engine.criteria.domain.summarization import SummarizationDefinition
from eval_engine.prompt.domain.builder import (
    CRITERIA_HEADER,
    build_criteria_section,
    build_prompt,
    render_template,
    truncate_for_storage,
)


def _sentiment(requires_rationale: bool = False) -> EvaluationParameterDetail:
    return EvaluationParameterDetail(
        id="P1",
        name="Sentiment",
        definition="Overall tone of the text.",
        labels=[
            ParameterLabel(name="Positive", definition="Upbeat", example="I love it"),
            ParameterLabel(name="Negative"),
        ],
        requires_rationale=requires_rationale,
    )


class TestRenderTemplate:
    """Placeholders are replaced literally from the row."""

    def test_replaces_every_occurrence(self) -> None:
        rendered = render_template("{{a}} and {{a}} then {{b}}", {"a": "x", "b": 2})

        assert rendered == "x and x then 2"

    def test_none_renders_empty(self) -> None:
        assert render_template("[{{a}}]", {"a": None}) == "[]"

    def test_unknown_placeholder_is_left_untouched(self) -> None:
        assert render_template("{{missing}}", {"a": "x"}) == "{{missing}}"

    def test_values_are_not_reinterpreted_as_format_strings(self) -> None:
        assert render_template("{{a}}", {"a": "{0} {b}"}) == "{0} {b}"


class TestCriteriaSection:
    """Criteria are described in a fixed, deterministic layout."""

    def test_lists_parameter_and_labels(self) -> None:
        section = build_criteria_section(parameters=[_sentiment()])

        assert section.startswith(CRITERIA_HEADER)
        assert "Parameter ID: P1" in section
        assert "Parameter Name: Sentiment" in section
        assert '  - "Positive": Upbeat (e.g., "I love it")' in section
        assert '  - "Negative": No def.' in section

    def test_rationale_requirement_is_stated(self) -> None:
        section = build_criteria_section(parameters=[_sentiment(requires_rationale=True)])

        assert "you MUST include a 'rationale'" in section

    def test_parameter_without_labels(self) -> None:
        parameter = EvaluationParameterDetail(id="P2", name="Free")

        assert " (No specific labels)" in build_criteria_section(parameters=[parameter])

    def test_summarization_tasks_are_listed(self) -> None:
        section = build_criteria_section(
            parameters=[_sentiment()],
            summarizations=[
                SummarizationDefinition(id="S1", name="Gist", example="One line")
            ],
        )

        assert "Summarization Task ID: S1" in section
        assert 'Example Hint: "One line"' in section

    def test_output_format_names_every_id_in_order(self) -> None:
        section = build_criteria_section(
            parameters=[_sentiment(), EvaluationParameterDetail(id="P2", name="X")],
            summarizations=[SummarizationDefinition(id="S1", name="Gist")],
        )

        assert "Provide exactly one element for each of these IDs: P1, P2, S1" in section
        assert '{"parameterId": "<Parameter ID>"' in section


class TestBuildPrompt:
    def test_rendered_template_precedes_criteria(self) -> None:
        prompt = build_prompt(
            template="Review: {{review}}",
            row={"review": "great"},
            parameters=[_sentiment()],
        )

        assert prompt.startswith("Review: great\n\n" + CRITERIA_HEADER)

    def test_is_deterministic(self) -> None:
        kwargs = {
            "template": "{{t}}",
            "row": {"t": "x"},
            "parameters": [_sentiment()],
        }

        assert build_prompt(**kwargs) == build_prompt(**kwargs)


class TestTruncateForStorage:
    def test_short_prompt_is_unchanged(self) -> None:
        assert truncate_for_storage("abc", limit=10) == "abc"

    def test_long_prompt_is_cut_with_marker(self) -> None:
        truncated = truncate_for_storage("x" * 100, limit=50)

        assert len(truncated) == 50
        assert truncated.endswith("…[truncated]")

    def test_zero_limit_keeps_nothing(self) -> None:
        assert truncate_for_storage("abc", limit=0) == ""
