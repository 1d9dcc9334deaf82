"""
Tests for the event-API job runner and the job-runner health probe.
"""

import json

import httpx
import pytest

from ingest_ops.config import Settings
from ingest_ops.jobs import (
    CLOUD_MODE_ON_LOCALHOST,
    DEV_SERVER_UNREACHABLE,
    EventApiJobRunner,
    JobRunnerError,
    probe_job_runner,
)


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestSettingsMode:
    def test_dev_outside_production(self):
        assert Settings(environment="development").job_runner_mode == "dev"
        assert Settings(environment="production", job_runner_dev=True).job_runner_mode == "dev"

    def test_cloud_in_production(self):
        settings = Settings(environment="production", cloud_url="https://inn.gs/")
        assert settings.job_runner_mode == "cloud"
        assert settings.job_runner_base_url == "https://inn.gs"


class TestEventApiJobRunner:
    def test_trigger_posts_event_and_returns_first_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ids": ["01HXYZ", "01HXZZ"], "status": 200})

        runner = EventApiJobRunner(Settings(event_key="k1"), client=mock_client(handler))

        assert runner.trigger("req-1", "https://youtu.be/abc") == "01HXYZ"
        assert seen["url"] == "http://localhost:8288/e/k1"
        assert seen["body"] == {
            "name": "episode/submitted",
            "data": {"requestId": "req-1", "url": "https://youtu.be/abc"},
        }

    def test_http_error_raises(self):
        runner = EventApiJobRunner(
            Settings(), client=mock_client(lambda r: httpx.Response(401, json={"error": "bad key"}))
        )
        with pytest.raises(JobRunnerError, match="401"):
            runner.send_event("report/backfill-daily", {})

    def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        runner = EventApiJobRunner(Settings(), client=mock_client(handler))
        with pytest.raises(JobRunnerError, match="unreachable"):
            runner.trigger("req-1", "https://youtu.be/abc")

    def test_missing_id_raises(self):
        runner = EventApiJobRunner(
            Settings(), client=mock_client(lambda r: httpx.Response(200, json={"ids": []}))
        )
        with pytest.raises(JobRunnerError, match="no event id"):
            runner.trigger("req-1", "https://youtu.be/abc")


class TestHealthProbe:
    def test_dev_server_reachable(self):
        def handler(request):
            assert request.url.path == "/health"
            return httpx.Response(200)

        health = probe_job_runner(Settings(), client=mock_client(handler))

        assert health.mode == "dev"
        assert health.dev_server_reachable is True
        assert health.error is None
        assert health.healthy
        assert health.to_dict()["healthy"] is True

    def test_dev_server_error_status(self):
        health = probe_job_runner(Settings(), client=mock_client(lambda r: httpx.Response(500)))

        assert health.dev_server_reachable is False
        assert health.error == "Dev server responded with status 500"
        assert health.issues == [DEV_SERVER_UNREACHABLE]
        assert not health.healthy

    def test_dev_server_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out")

        health = probe_job_runner(Settings(), client=mock_client(handler))
        assert health.error == "Dev server timeout (not responding)"
        assert DEV_SERVER_UNREACHABLE in health.issues

    def test_dev_server_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("All connection attempts failed")

        health = probe_job_runner(Settings(), client=mock_client(handler))
        assert health.error == "All connection attempts failed"

    def test_cloud_mode_on_localhost_flagged(self):
        health = probe_job_runner(Settings(environment="production"))

        assert health.mode == "cloud"
        assert health.is_localhost is True
        assert health.issues == [CLOUD_MODE_ON_LOCALHOST]

    def test_cloud_mode_on_managed_host_is_healthy(self):
        health = probe_job_runner(Settings(environment="production", hosted=True))
        assert health.healthy
        assert health.base_url == "https://inn.gs"

    def test_unexpected_error_degrades_instead_of_raising(self):
        def handler(request):
            raise RuntimeError("boom")

        health = probe_job_runner(Settings(), client=mock_client(handler))
        assert health.error == "boom"
        assert not health.healthy
