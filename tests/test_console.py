"""
Tests for the operator console: row actions, rendering and CLI commands.
"""

import argparse
import asyncio
import importlib
import json

import httpx
import pytest
from rich.console import Console

import ingest_ops.console.__main__ as console_main
from ingest_ops.config import get_settings
from ingest_ops.console.render import render_requests, row_actions, stage_badge
from ingest_ops.db import IngestStatus, get_engine, utcnow
from ingest_ops.sync import HttpSnapshotFetcher, SessionFlagStore

from conftest import FakeJobRunner, YOUTUBE_URL, make_record


class TestRowActions:
    def test_fresh_queued_request(self):
        assert row_actions(make_record()) == ["resend", "delete"]

    def test_queued_request_that_started(self):
        assert row_actions(make_record(started_at=utcnow())) == ["delete"]

    def test_failed_request(self):
        record = make_record(status=IngestStatus.FAILED, error_message="boom")
        assert row_actions(record) == ["retry", "delete"]

    @pytest.mark.parametrize("status", [IngestStatus.RUNNING, IngestStatus.SUCCEEDED])
    def test_only_delete_otherwise(self, status):
        assert row_actions(make_record(status=status)) == ["delete"]


class TestRender:
    def test_stage_only_while_running(self):
        assert stage_badge(make_record(status=IngestStatus.RUNNING, stage="transcribe")).plain == "transcribe"
        assert stage_badge(make_record(status=IngestStatus.FAILED, stage="transcribe")) is None

    def test_expanded_row_shows_error(self):
        record = make_record(id="abc", status=IngestStatus.FAILED, error_message="Download failed")
        out = Console(width=200, record=True)

        out.print(render_requests([record], expanded={"abc"}))

        assert "Download failed" in out.export_text()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the console at a throwaway database and session directory."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'console.db'}")
    monkeypatch.setenv("SESSION_DIR", str(tmp_path / "sessions"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("INTERNAL_API_KEY", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("JOB_RUNNER_HOSTED", raising=False)
    monkeypatch.delenv("JOB_RUNNER_DEV", raising=False)
    get_settings.cache_clear()

    runner = FakeJobRunner()
    monkeypatch.setattr(console_main, "EventApiJobRunner", lambda settings: runner)
    yield runner

    get_engine().dispose()
    get_settings.cache_clear()


class TestCommands:
    def test_period(self, cli_env, capsys):
        assert console_main.main(["period", "weekly", "--start", "2024-12-30"]) == 0
        assert "2025-W01" in capsys.readouterr().out

    def test_period_bad_key(self, cli_env):
        assert console_main.main(["period", "monthly", "--key", "2025-13"]) == 1

    def test_submit_then_list_json(self, cli_env, capsys):
        assert console_main.main(["init-db"]) == 0
        assert console_main.main(["submit", YOUTUBE_URL, "--user", "ops"]) == 0
        capsys.readouterr()

        assert console_main.main(["list", "--json"]) == 0
        (record,) = json.loads(capsys.readouterr().out)

        assert record["url"] == YOUTUBE_URL
        assert record["status"] == "queued"
        assert record["job_reference"] == "evt-1"

    def test_duplicate_submit_fails(self, cli_env):
        console_main.main(["init-db"])
        console_main.main(["submit", YOUTUBE_URL])
        assert console_main.main(["submit", YOUTUBE_URL]) == 1

    def test_runner_down_fails(self, cli_env):
        console_main.main(["init-db"])
        cli_env.fail = True
        assert console_main.main(["submit", YOUTUBE_URL]) == 1

    def test_pause_and_resume_are_per_session(self, cli_env):
        assert console_main.main(["--session", "op-1", "pause"]) == 0

        session_dir = get_settings().session_dir
        assert SessionFlagStore(session_dir, "op-1").load_paused() is True
        assert SessionFlagStore(session_dir, "op-2").load_paused() is False

        console_main.main(["--session", "op-1", "resume"])
        assert SessionFlagStore(session_dir, "op-1").load_paused() is False

    def test_expand_and_collapse(self, cli_env):
        console_main.main(["expand", "req-1"])
        flags = SessionFlagStore(get_settings().session_dir)
        assert flags.load_expanded() == {"req-1"}

        console_main.main(["collapse", "req-1"])
        assert flags.load_expanded() == set()

    def test_delete_with_yes(self, cli_env, capsys):
        console_main.main(["init-db"])
        console_main.main(["submit", YOUTUBE_URL])
        capsys.readouterr()
        console_main.main(["list", "--json"])
        (record,) = json.loads(capsys.readouterr().out)

        assert console_main.main(["delete", record["id"], "-y"]) == 0
        assert "Deleted" in capsys.readouterr().out

        console_main.main(["list", "--json"])
        assert json.loads(capsys.readouterr().out) == []

    def test_health_exit_codes(self, cli_env, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        get_settings.cache_clear()
        assert console_main.main(["health", "--json"]) == 2

        monkeypatch.setenv("JOB_RUNNER_HOSTED", "true")
        get_settings.cache_clear()
        assert console_main.main(["health", "--json"]) == 0


class TestEntryPoint:
    @pytest.mark.parametrize(
        "module",
        ["ingest_ops.console.__main__", "ingest_ops.__main__", "ingest_ops.sync", "ingest_ops.api"],
    )
    def test_modules_import(self, module):
        assert importlib.import_module(module) is not None

    def test_console_script_target(self):
        assert callable(console_main.main)


def recording_fetcher(calls, fail=False):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if fail:
            raise httpx.ConnectError("All connection attempts failed")
        return httpx.Response(200, json={"requests": [], "counts": {}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpSnapshotFetcher("http://api.test", client=http)


def watch_args(session="op"):
    return argparse.Namespace(remote="http://api.test", interval=0.01, session=session)


class TestWatch:
    async def test_paused_session_starts_without_fetching(self, cli_env, monkeypatch):
        """Should stay frozen and offline when the session was left paused."""
        calls = []
        monkeypatch.setattr(console_main, "http_snapshot_fetcher", lambda *a, **kw: recording_fetcher(calls))
        settings = get_settings()
        SessionFlagStore(settings.session_dir, "op").save_paused(True)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(console_main._watch(watch_args(), settings), timeout=0.5)

        assert calls == []

    async def test_unreachable_remote_keeps_watching(self, cli_env, monkeypatch):
        """Should swallow failed polls instead of ending the command."""
        calls = []
        monkeypatch.setattr(
            console_main, "http_snapshot_fetcher", lambda *a, **kw: recording_fetcher(calls, fail=True)
        )

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(console_main._watch(watch_args(), get_settings()), timeout=0.5)

        assert len(calls) >= 2
