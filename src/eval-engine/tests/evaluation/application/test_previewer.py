"""Tests for DataPreviewer."""

import pytest

from eval_engine.config.domain.execution import ExecutionConfig
from eval_engine.evaluation.application.previewer import DataPreviewer
from eval_engine.evaluation.domain.errors import RunNotStartableError
from eval_engine.evaluation.domain.run_state import RunState
from eval_engine.evaluation.domain.status import RunStatus
from tests.evaluation.fake_observer import FakeRunObserver
from tests.evaluation.seed import RUN_ID, make_definition, make_rows, seed_run
from tests.store.recording_store import RecordingStore


def _make_previewer(
    store: RecordingStore, sample_size: int = 10
) -> tuple[DataPreviewer, FakeRunObserver]:
    observer = FakeRunObserver()
    previewer = DataPreviewer(
        store=store,
        execution=ExecutionConfig(preview_sample_size=sample_size),
        observer=observer,
    )
    return previewer, observer


class TestPreview:
    """preview() stores a dataset sample and moves the run to DataPreviewed."""

    async def test_stores_sample_and_total(self) -> None:
        store = RecordingStore()
        seed_run(store, rows=make_rows(25))
        previewer, observer = _make_previewer(store=store, sample_size=10)

        state = await previewer.preview(RUN_ID)

        assert state.status is RunStatus.DATA_PREVIEWED
        doc = store.run_document(RUN_ID)
        assert doc["status"] == "DataPreviewed"
        assert doc["totalRowsInDataset"] == 25
        assert len(doc["previewedDatasetSample"]) == 10
        assert doc["previewedDatasetSample"][0] == {"text": "row 0"}
        assert observer.previewed[0].total_rows == 25

    async def test_total_respects_run_row_limit(self) -> None:
        store = RecordingStore()
        seed_run(store, rows=make_rows(25), definition=make_definition(run_on_n_rows=5))
        previewer, _ = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.total_rows_in_dataset == 5

    async def test_sample_keeps_ground_truth_columns(self) -> None:
        store = RecordingStore()
        seed_run(
            store,
            rows=[{"text": "a", "expected": "B"}],
            ground_truth_mapping={"P1": "expected"},
        )
        previewer, _ = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.previewed_dataset_sample is not None
        assert state.previewed_dataset_sample[0]["_gt_P1"] == "B"

    async def test_re_preview_is_allowed(self) -> None:
        store = RecordingStore()
        seed_run(store, rows=make_rows(3), state=RunState(status=RunStatus.DATA_PREVIEWED))
        previewer, _ = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.status is RunStatus.DATA_PREVIEWED

    async def test_preview_clears_previous_error(self) -> None:
        store = RecordingStore()
        seed_run(
            store,
            rows=make_rows(3),
            state=RunState(status=RunStatus.FAILED, error_message="old failure"),
        )
        previewer, _ = _make_previewer(store=store)

        await previewer.preview(RUN_ID)

        assert "errorMessage" not in store.run_document(RUN_ID)

    async def test_empty_dataset_previews_zero_rows(self) -> None:
        store = RecordingStore()
        seed_run(store, rows=[])
        previewer, observer = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.status is RunStatus.DATA_PREVIEWED
        assert state.previewed_dataset_sample == []
        assert state.total_rows_in_dataset == 0
        doc = store.run_document(RUN_ID)
        assert doc["status"] == "DataPreviewed"
        assert doc["previewedDatasetSample"] == []
        assert doc["totalRowsInDataset"] == 0
        assert observer.failed == []
        assert observer.previewed[0].total_rows == 0

    async def test_empty_dataset_preview_recovers_failed_run(self) -> None:
        store = RecordingStore()
        seed_run(
            store,
            rows=[],
            state=RunState(status=RunStatus.FAILED, error_message="no rows"),
        )
        previewer, _ = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.status is RunStatus.DATA_PREVIEWED
        assert "errorMessage" not in store.run_document(RUN_ID)

    async def test_resolution_failure_marks_run_failed(self) -> None:
        store = RecordingStore()
        seed_run(store, rows=make_rows(3))
        store.add_run(make_definition(dataset_version_id="v-missing"))
        previewer, observer = _make_previewer(store=store)

        state = await previewer.preview(RUN_ID)

        assert state.status is RunStatus.FAILED
        doc = store.run_document(RUN_ID)
        assert doc["status"] == "Failed"
        assert doc["errorMessage"].startswith("Data preview failed: ")
        assert len(observer.failed) == 1

    @pytest.mark.parametrize("status", [RunStatus.PROCESSING, RunStatus.COMPLETED])
    async def test_rejects_running_or_finished_runs(self, status: RunStatus) -> None:
        store = RecordingStore()
        seed_run(store, rows=make_rows(3), state=RunState(status=status))
        previewer, _ = _make_previewer(store=store)

        with pytest.raises(RunNotStartableError):
            await previewer.preview(RUN_ID)

        assert store.writes == []
