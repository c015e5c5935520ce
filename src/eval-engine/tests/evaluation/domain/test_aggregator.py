"""Tests for aggregate_results."""

import pytest

from eval_engine.criteria.domain.parameter import (
    EvaluationParameterDetail,
    ParameterLabel,
)
from eval_engine.evaluation.domain.aggregator import aggregate_results
from eval_engine.evaluation.domain.row_result import ParameterJudgment, RowResult
from eval_engine.evaluation.domain.status import RunType


def _parameter(
    parameter_id: str = "P1", labels: tuple[str, ...] = ("A", "B", "C")
) -> EvaluationParameterDetail:
    return EvaluationParameterDetail(
        id=parameter_id,
        name=f"Name {parameter_id}",
        labels=[ParameterLabel(name=label) for label in labels],
    )


def _result(
    row_index: int,
    labels: dict[str, str],
    ground_truth: dict[str, str] | None = None,
) -> RowResult:
    return RowResult(
        row_index=row_index,
        input_data={},
        judge_output={
            pid: ParameterJudgment(chosen_label=label) for pid, label in labels.items()
        },
        ground_truth=ground_truth,
    )


class TestLabelDistribution:
    """Every defined label is counted, starting at zero."""

    def test_all_rows_same_label(self) -> None:
        results = [_result(i, {"P1": "A"}) for i in range(5)]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=5,
        )

        metrics = summary.parameters["P1"]
        assert metrics.label_distribution == {"A": 5, "B": 0, "C": 0}
        assert metrics.label_percentages["A"] == pytest.approx(100.0)
        assert metrics.label_percentages["B"] == pytest.approx(0.0)
        assert metrics.judged_rows == 5

    def test_invented_labels_are_counted(self) -> None:
        results = [_result(0, {"P1": "A"}), _result(1, {"P1": "Maybe"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=2,
        )

        assert summary.parameters["P1"].label_distribution["Maybe"] == 1

    def test_percentages_are_over_judged_rows(self) -> None:
        results = [
            _result(0, {"P1": "A"}),
            _result(1, {"P1": "B"}),
            _result(2, {}),
            _result(3, {"P1": "B"}),
        ]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=4,
        )

        metrics = summary.parameters["P1"]
        assert metrics.judged_rows == 3
        assert metrics.label_percentages["B"] == pytest.approx(200 / 3)

    def test_no_judgments_yields_zero_percentages(self) -> None:
        summary = aggregate_results(
            results=[],
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=3,
        )

        assert summary.parameters["P1"].label_percentages == {"A": 0.0, "B": 0.0, "C": 0.0}
        assert summary.failed_rows == 3
        assert summary.processed_rows == 0


class TestAccuracy:
    """Accuracy compares only rows that carry ground truth."""

    def test_rows_without_ground_truth_are_excluded_from_denominator(self) -> None:
        results = [_result(i, {"P1": "A"}, {"P1": "A"}) for i in range(4)]
        results += [_result(4, {"P1": "A"}, {"P1": "B"})]
        results += [_result(5, {"P1": "B"}, {"P1": "A"})]
        results += [_result(6, {"P1": "A"}), _result(7, {"P1": "A"}, {"P1": "  "})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.GROUND_TRUTH,
            total_rows=8,
        )

        metrics = summary.parameters["P1"]
        assert metrics.total_compared == 6
        assert metrics.correct == 4
        assert metrics.accuracy == pytest.approx(400 / 6)

    def test_comparison_ignores_case_and_whitespace(self) -> None:
        results = [_result(0, {"P1": " positive "}, {"P1": "Positive"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter(labels=("Positive", "Negative"))],
            run_type=RunType.GROUND_TRUTH,
            total_rows=1,
        )

        assert summary.parameters["P1"].accuracy == pytest.approx(100.0)

    def test_product_runs_have_no_accuracy(self) -> None:
        results = [_result(0, {"P1": "A"}, {"P1": "A"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=1,
        )

        assert summary.parameters["P1"].accuracy is None
        assert summary.parameters["P1"].total_compared is None
        assert summary.overall_accuracy is None

    def test_no_comparable_rows_leaves_accuracy_unset(self) -> None:
        summary = aggregate_results(
            results=[_result(0, {"P1": "A"})],
            parameters=[_parameter()],
            run_type=RunType.GROUND_TRUTH,
            total_rows=1,
        )

        assert summary.parameters["P1"].accuracy is None
        assert summary.parameters["P1"].total_compared == 0

    def test_overall_accuracy_is_mean_of_parameter_accuracies(self) -> None:
        results = [
            _result(0, {"P1": "A", "P2": "A"}, {"P1": "A", "P2": "B"}),
            _result(1, {"P1": "A", "P2": "A"}, {"P1": "A", "P2": "A"}),
        ]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter("P1"), _parameter("P2")],
            run_type=RunType.GROUND_TRUTH,
            total_rows=2,
        )

        assert summary.parameters["P1"].accuracy == pytest.approx(100.0)
        assert summary.parameters["P2"].accuracy == pytest.approx(50.0)
        assert summary.overall_accuracy == pytest.approx(75.0)


class TestMismatchedRows:
    """Ground-truth runs list the rows whose judged label disagreed."""

    def test_lists_disagreeing_rows_per_parameter(self) -> None:
        results = [
            _result(0, {"P1": "A", "P2": "B"}, {"P1": "A", "P2": "A"}),
            _result(1, {"P1": "B", "P2": "B"}, {"P1": "A", "P2": "B"}),
            _result(2, {"P1": "C", "P2": "C"}, {"P1": "a", "P2": "A"}),
        ]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter("P1"), _parameter("P2")],
            run_type=RunType.GROUND_TRUTH,
            total_rows=3,
        )

        assert summary.parameters["P1"].mismatched_rows == [1, 2]
        assert summary.parameters["P2"].mismatched_rows == [0, 2]

    def test_case_and_whitespace_differences_are_not_mismatches(self) -> None:
        results = [_result(0, {"P1": " b "}, {"P1": "B"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.GROUND_TRUTH,
            total_rows=1,
        )

        assert summary.parameters["P1"].mismatched_rows == []

    def test_rows_without_ground_truth_are_never_mismatches(self) -> None:
        results = [_result(0, {"P1": "A"}), _result(1, {"P1": "A"}, {"P1": " "})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.GROUND_TRUTH,
            total_rows=2,
        )

        assert summary.parameters["P1"].mismatched_rows == []

    def test_product_runs_have_no_mismatch_list(self) -> None:
        results = [_result(0, {"P1": "A"}, {"P1": "B"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.PRODUCT,
            total_rows=1,
        )

        assert summary.parameters["P1"].mismatched_rows is None

    def test_serialized_under_camel_case_key(self) -> None:
        results = [_result(3, {"P1": "A"}, {"P1": "B"})]

        summary = aggregate_results(
            results=results,
            parameters=[_parameter()],
            run_type=RunType.GROUND_TRUTH,
            total_rows=4,
        )

        dumped = summary.model_dump(by_alias=True, mode="json")
        assert dumped["parameters"]["P1"]["mismatchedRows"] == [3]
