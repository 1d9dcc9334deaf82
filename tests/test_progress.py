"""
Tests for pipeline-side progress reporting.
"""

import pytest

from ingest_ops.db import IngestStatus
from ingest_ops.lifecycle import (
    InvalidState,
    RequestNotFound,
    advance_stage,
    check_invariants,
    mark_failed,
    mark_running,
    mark_succeeded,
)

from conftest import YOUTUBE_URL


@pytest.fixture
def queued(controller):
    return controller.submit(YOUTUBE_URL, "user-1")


class TestProgress:
    def test_full_successful_run(self, store, queued):
        running = mark_running(store, queued.id, "metadata")
        assert running.status == IngestStatus.RUNNING
        assert running.started_at is not None

        for stage in ("download", "transcribe", "summarize"):
            running = advance_stage(store, queued.id, stage)
            assert running.stage == stage
            assert check_invariants(running) == []

        done = mark_succeeded(store, queued.id, "episode-77")
        assert done.status == IngestStatus.SUCCEEDED
        assert done.stage is None
        assert done.episode_id == "episode-77"
        assert done.completed_at is not None
        assert check_invariants(done) == []

    def test_failed_run_keeps_error_payload(self, store, queued):
        mark_running(store, queued.id, "transcribe")
        failed = mark_failed(store, queued.id, "Transcription timed out", {"stage": "transcribe"})

        assert failed.status == IngestStatus.FAILED
        assert failed.error_message == "Transcription timed out"
        assert failed.error_details == {"stage": "transcribe"}
        assert failed.stage is None
        assert check_invariants(failed) == []

    def test_unknown_stage_is_accepted(self, store, queued):
        mark_running(store, queued.id)
        assert advance_stage(store, queued.id, "translate").stage == "translate"

    def test_cannot_advance_a_queued_request(self, store, queued):
        with pytest.raises(InvalidState):
            advance_stage(store, queued.id, "download")

    def test_cannot_succeed_twice(self, store, queued):
        mark_running(store, queued.id)
        mark_succeeded(store, queued.id, "ep-1")
        with pytest.raises(InvalidState):
            mark_succeeded(store, queued.id, "ep-2")

    def test_unknown_request(self, store, db):
        with pytest.raises(RequestNotFound):
            mark_running(store, "missing")
