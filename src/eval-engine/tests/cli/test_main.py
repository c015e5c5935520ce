"""Tests for the eval-engine CLI commands."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from typer.testing import CliRunner

from eval_engine.cli.main import app
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.evaluation.domain.status import RunStatus
from eval_engine.evaluation.domain.summary import ParameterMetrics, SummaryMetrics
from eval_engine.store.infrastructure.memory import InMemoryConfigurationStore
from tests.evaluation.seed import RUN_ID, make_definition, make_rows, seed_run
from tests.judge.fake_judge import judgments_json

_ACOMPLETION = "eval_engine.judge.infrastructure.litellm.litellm.acompletion"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_workspace(
    tmp_path: Path, rows: int = 3, state: RunState | None = None, **definition: str
) -> Path:
    store = InMemoryConfigurationStore()
    seed_run(
        store, make_rows(rows), definition=make_definition(**definition), state=state
    )
    (tmp_path / "store.json").write_text(json.dumps(store.snapshot()), encoding="utf-8")
    config_path = tmp_path / "engine.yaml"
    config_path.write_text(
        "store:\n  path: store.json\njudge:\n  model: gpt-4o-mini\n",
        encoding="utf-8",
    )
    return config_path


def _run_document(tmp_path: Path) -> dict[str, Any]:
    data = json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))
    return data["runs"][RUN_ID]


def _response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    response.usage = None
    return response


def _invoke(*args: str) -> Any:
    return runner.invoke(app, [*args, "--log-format", "json"])


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRunCommand:
    def test_completes_run_and_persists_results(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path)
        mock = AsyncMock(return_value=_response(judgments_json({"P1": "B"})))

        with patch(_ACOMPLETION, new=mock):
            result = _invoke("run", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        assert "Completed" in result.stdout
        document = _run_document(tmp_path)
        assert document["status"] == RunStatus.COMPLETED.value
        assert document["progress"] == 100
        assert len(document["results"]) == 3
        assert mock.await_count == 3

    def test_run_model_identifier_overrides_configured_model(
        self, tmp_path: Path
    ) -> None:
        config_path = _write_workspace(tmp_path, model_identifier="openai/gpt-4.1")
        mock = AsyncMock(return_value=_response(judgments_json({"P1": "A"})))

        with patch(_ACOMPLETION, new=mock):
            result = _invoke("run", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        assert mock.call_args.kwargs["model"] == "openai/gpt-4.1"

    def test_rows_failing_at_the_judge_still_complete(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path)
        mock = AsyncMock(side_effect=RuntimeError("provider down"))

        with patch(_ACOMPLETION, new=mock):
            result = _invoke("run", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        document = _run_document(tmp_path)
        assert document["status"] == RunStatus.COMPLETED.value
        assert document["summaryMetrics"]["failedRows"] == 3

    def test_failed_run_exits_non_zero(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path, rows=0)

        with patch(_ACOMPLETION, new=AsyncMock()) as mock:
            result = _invoke("run", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 1
        document = _run_document(tmp_path)
        assert document["status"] == RunStatus.FAILED.value
        assert "no processable rows" in document["errorMessage"]
        mock.assert_not_awaited()

    def test_completed_run_cannot_be_restarted(self, tmp_path: Path) -> None:
        config_path = _write_workspace(
            tmp_path, state=RunState(status=RunStatus.COMPLETED, progress=100)
        )

        with patch(_ACOMPLETION, new=AsyncMock()) as mock:
            result = _invoke("run", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 1
        assert "Failed to start run" in result.stdout
        mock.assert_not_awaited()

    def test_unknown_run_exits_non_zero(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path)

        result = _invoke("run", "missing-run", "--config", str(config_path))

        assert result.exit_code == 1
        assert "not found" in result.stdout


# ---------------------------------------------------------------------------
# preview / show
# ---------------------------------------------------------------------------


class TestPreviewCommand:
    def test_stores_sample_without_calling_judge(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path, rows=4)

        with patch(_ACOMPLETION, new=AsyncMock()) as mock:
            result = _invoke("preview", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        document = _run_document(tmp_path)
        assert document["status"] == RunStatus.DATA_PREVIEWED.value
        assert document["totalRowsInDataset"] == 4
        assert len(document["previewedDatasetSample"]) == 4
        mock.assert_not_awaited()

    def test_empty_dataset_previews_successfully(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path, rows=0)

        result = _invoke("preview", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        document = _run_document(tmp_path)
        assert document["status"] == RunStatus.DATA_PREVIEWED.value
        assert document["totalRowsInDataset"] == 0
        assert document["previewedDatasetSample"] == []


class TestShowCommand:
    def test_prints_persisted_state(self, tmp_path: Path) -> None:
        config_path = _write_workspace(
            tmp_path,
            state=RunState(status=RunStatus.FAILED, error_message="judge exploded"),
        )

        result = _invoke("show", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        assert "Failed" in result.stdout
        assert "judge exploded" in result.stdout

    def test_non_terminal_state_is_marked_in_progress(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path)

        result = _invoke("show", RUN_ID, "--config", str(config_path))

        assert "in progress" in result.stdout

    def test_prints_ground_truth_mismatches(self, tmp_path: Path) -> None:
        metrics = ParameterMetrics(
            parameter_id="P1",
            parameter_name="Parameter P1",
            label_distribution={"A": 2, "B": 1},
            label_percentages={"A": 66.67, "B": 33.33},
            judged_rows=3,
            accuracy=33.33,
            total_compared=3,
            correct=1,
            mismatched_rows=[0, 2],
        )
        state = RunState(
            status=RunStatus.COMPLETED,
            progress=100,
            summary_metrics=SummaryMetrics(
                total_rows=3,
                processed_rows=3,
                failed_rows=0,
                parameters={"P1": metrics},
                overall_accuracy=33.33,
            ),
        )
        config_path = _write_workspace(tmp_path, state=state)

        result = _invoke("show", RUN_ID, "--config", str(config_path))

        assert result.exit_code == 0, result.output
        assert "Mismatched rows" in result.stdout
        assert "0, 2" in result.stdout


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class TestConfigErrors:
    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = _invoke("show", RUN_ID, "--config", str(tmp_path / "absent.yaml"))

        assert result.exit_code == 1
        assert "Failed to load config" in result.stdout

    def test_invalid_log_format(self, tmp_path: Path) -> None:
        config_path = _write_workspace(tmp_path)

        result = runner.invoke(
            app, ["show", RUN_ID, "--config", str(config_path), "--log-format", "xml"]
        )

        assert result.exit_code == 1
        assert "Invalid log format" in result.stdout
