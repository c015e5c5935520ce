"""ResultAggregator — computes label distributions and ground-truth accuracy."""

import statistics

from eval_engine.criteria.domain.parameter import EvaluationParameterDetail
from eval_engine.evaluation.domain.row_result import RowResult
from eval_engine.evaluation.domain.status import RunType
from eval_engine.evaluation.domain.summary import ParameterMetrics, SummaryMetrics


def _normalize(label: str) -> str:
    return label.strip().lower()


def _aggregate_parameter(
    parameter: EvaluationParameterDetail,
    results: list[RowResult],
    run_type: RunType,
) -> ParameterMetrics:
    # Defined labels always appear, even with a zero count.
    distribution: dict[str, int] = {label.name: 0 for label in parameter.labels}
    judged = 0
    compared = 0
    correct = 0
    mismatched: list[int] = []

    for result in results:
        judgment = result.judge_output.get(parameter.id)
        if judgment is None:
            continue
        judged += 1
        distribution[judgment.chosen_label] = (
            distribution.get(judgment.chosen_label, 0) + 1
        )

        if run_type is not RunType.GROUND_TRUTH or not result.ground_truth:
            continue
        expected = result.ground_truth.get(parameter.id)
        if expected is None or expected.strip() == "":
            continue
        compared += 1
        if _normalize(judgment.chosen_label) == _normalize(expected):
            correct += 1
        else:
            mismatched.append(result.row_index)

    percentages = {
        label: (count / judged * 100.0 if judged else 0.0)
        for label, count in distribution.items()
    }

    is_ground_truth = run_type is RunType.GROUND_TRUTH
    return ParameterMetrics(
        parameter_id=parameter.id,
        parameter_name=parameter.name,
        label_distribution=distribution,
        label_percentages=percentages,
        judged_rows=judged,
        accuracy=(correct / compared * 100.0) if is_ground_truth and compared else None,
        total_compared=compared if is_ground_truth else None,
        correct=correct if is_ground_truth else None,
        mismatched_rows=sorted(mismatched) if is_ground_truth else None,
    )


def aggregate_results(
    results: list[RowResult],
    parameters: list[EvaluationParameterDetail],
    run_type: RunType,
    total_rows: int,
) -> SummaryMetrics:
    """Aggregate every RowResult of a run into SummaryMetrics.

    Accuracy for a parameter is computed only over rows that carry both a
    judgment and a non-blank ground-truth label; rows missing either are left
    out of the denominator rather than counted as incorrect. Overall accuracy
    is the unweighted mean of the per-parameter accuracies that exist.
    Ground-truth runs also list, per parameter, the rows whose judged label
    disagreed with the expected one.
    """
    per_parameter = {
        parameter.id: _aggregate_parameter(
            parameter=parameter, results=results, run_type=run_type
        )
        for parameter in parameters
    }

    accuracies = [
        metrics.accuracy
        for metrics in per_parameter.values()
        if metrics.accuracy is not None
    ]

    return SummaryMetrics(
        total_rows=total_rows,
        processed_rows=len(results),
        failed_rows=max(0, total_rows - len(results)),
        parameters=per_parameter,
        overall_accuracy=statistics.mean(accuracies) if accuracies else None,
    )
