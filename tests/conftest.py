"""
Shared fixtures: a throwaway SQLite database, a recording job runner and
fixed clocks.
"""

from datetime import date, datetime, timezone
from typing import Any

import pytest

from ingest_ops.config import Settings
from ingest_ops.db import (
    IngestRequestRecord,
    IngestRequestStore,
    IngestSource,
    IngestStatus,
    ReportStore,
    configure_database,
    get_engine,
    init_database,
)
from ingest_ops.jobs import JobRunner, JobRunnerError
from ingest_ops.lifecycle import LifecycleController


YOUTUBE_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
AUDIO_URL = "https://cdn.example.com/episodes/ep-42.mp3"


class FakeJobRunner(JobRunner):
    """Records every event and hands out sequential ids."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.fail = False
        self.return_ids = True

    def send_event(self, name: str, data: dict[str, Any]) -> list[str]:
        if self.fail:
            raise JobRunnerError("Job runner unreachable at http://localhost:8288: refused")
        self.events.append((name, data))
        return [f"evt-{len(self.events)}"] if self.return_ids else []

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ingest_ops.db'}",
        session_dir=str(tmp_path / "sessions"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def db(settings):
    """Fresh schema per test."""
    configure_database(settings.database_url)
    init_database()
    yield
    get_engine().dispose()


@pytest.fixture
def store(db):
    return IngestRequestStore()


@pytest.fixture
def report_store(db):
    return ReportStore()


@pytest.fixture
def runner():
    return FakeJobRunner()


@pytest.fixture
def controller(store, runner):
    return LifecycleController(store, runner)


@pytest.fixture
def fixed_today():
    """A Wednesday in Q1."""
    return date(2025, 2, 5)


@pytest.fixture
def fixed_now():
    return datetime(2025, 2, 5, 14, 30, tzinfo=timezone.utc)


def make_record(**overrides) -> IngestRequestRecord:
    """Detached record with sensible defaults, for pure (no database) tests."""
    created = datetime(2025, 2, 5, 12, 0, 0)
    values = dict(
        id="req-1",
        user_id="user-1",
        url=YOUTUBE_URL,
        source=IngestSource.YOUTUBE,
        status=IngestStatus.QUEUED,
        created_at=created,
        updated_at=created,
    )
    values.update(overrides)
    return IngestRequestRecord(**values)
