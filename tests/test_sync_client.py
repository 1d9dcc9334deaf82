"""
Tests for the asyncio live-sync loop and snapshot fetchers.
"""

import asyncio

import httpx
import pytest

from ingest_ops.db import IngestStatus
from ingest_ops.sync import (
    LiveSyncClient,
    SessionFlagStore,
    http_snapshot_fetcher,
    store_snapshot_fetcher,
)

from conftest import YOUTUBE_URL, make_record


def static_fetcher(*snapshots):
    """Return each snapshot in turn, then keep repeating the last one."""
    calls = {"n": 0}

    async def fetch():
        index = min(calls["n"], len(snapshots) - 1)
        calls["n"] += 1
        return snapshots[index]

    fetch.calls = calls
    return fetch


class TestTick:
    async def test_tick_applies_snapshot(self):
        client = LiveSyncClient(static_fetcher([make_record(id="a")]))

        assert await client.tick() is True
        assert [r.id for r in client.state.records] == ["a"]

    async def test_failed_fetch_is_swallowed(self):
        """Should keep the current list and retry on the next tick."""

        async def broken():
            raise httpx.ConnectError("connection refused")

        client = LiveSyncClient(broken)
        client.state.records = [make_record(id="a")]

        assert await client.tick() is False
        assert client.failures == 1
        assert [r.id for r in client.state.records] == ["a"]

    async def test_on_update_called(self):
        seen = []
        client = LiveSyncClient(static_fetcher([make_record()]), on_update=seen.append)
        await client.tick()
        assert seen == [client.state]


class TestPause:
    async def test_in_flight_result_discarded_after_pause(self):
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return [make_record(id="late")]

        client = LiveSyncClient(slow)
        pending = asyncio.create_task(client.tick())
        await asyncio.sleep(0)

        await client.pause()
        gate.set()

        assert await pending is False
        assert client.state.records == []

    async def test_pause_stops_polling_and_persists_flag(self, tmp_path):
        fetch = static_fetcher([make_record()])
        flags = SessionFlagStore(str(tmp_path), "op-1")
        client = LiveSyncClient(fetch, interval=0.01, flag_store=flags)

        await client.start()
        await asyncio.sleep(0.05)
        await client.pause()
        calls_at_pause = fetch.calls["n"]
        await asyncio.sleep(0.05)

        assert not client.running
        assert fetch.calls["n"] == calls_at_pause
        assert flags.load_paused() is True
        await client.stop()

    async def test_persisted_pause_prevents_start(self, tmp_path):
        flags = SessionFlagStore(str(tmp_path), "op-1")
        flags.save_paused(True)
        client = LiveSyncClient(static_fetcher([]), interval=0.01, flag_store=flags)

        await client.start()

        assert client.state.paused is True
        assert not client.running

    async def test_resume_restarts_polling(self, tmp_path):
        flags = SessionFlagStore(str(tmp_path), "op-1")
        fetch = static_fetcher([make_record(id="a")])
        client = LiveSyncClient(fetch, interval=0.01, flag_store=flags)
        await client.pause()

        await client.resume()
        await asyncio.sleep(0.05)

        assert client.running
        assert flags.load_paused() is False
        assert [r.id for r in client.state.records] == ["a"]
        await client.stop()


class TestLoop:
    async def test_polls_every_interval(self):
        fetch = static_fetcher([make_record(id="a")], [make_record(id="a"), make_record(id="b")])
        client = LiveSyncClient(fetch, interval=0.01)

        await client.start()
        await asyncio.sleep(0.06)
        await client.stop()

        assert fetch.calls["n"] >= 2
        assert [r.id for r in client.state.records] == ["a", "b"]

    async def test_ticks_overlap(self):
        """Should not wait for a slow fetch before starting the next one."""
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return []

        client = LiveSyncClient(slow, interval=0.01)
        await client.start()
        await asyncio.sleep(0.05)

        assert client.in_flight >= 2
        gate.set()
        await client.stop()
        assert client.in_flight == 0

    async def test_start_twice_is_harmless(self):
        client = LiveSyncClient(static_fetcher([]), interval=0.01)
        await client.start()
        task = client._loop_task
        await client.start()
        assert client._loop_task is task
        await client.stop()


class TestFetchers:
    async def test_http_fetcher_parses_snapshot(self):
        record = make_record(id="a", status=IngestStatus.RUNNING, stage="summarize")

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/admin/ingest"
            assert request.headers["X-Internal-Key"] == "secret"
            return httpx.Response(200, json={"requests": [record.to_dict()], "counts": {}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetch = http_snapshot_fetcher("http://api.test", client=http, api_key="secret")
            assert await fetch() == [record]

    async def test_http_fetcher_accepts_bare_list(self):
        record = make_record(id="a")

        def handler(request):
            return httpx.Response(200, json=[record.to_dict()])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            assert await http_snapshot_fetcher("http://api.test", client=http)() == [record]

    async def test_non_2xx_is_a_transient_failure(self):
        def handler(request):
            return httpx.Response(503, json={"error": "down"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = LiveSyncClient(http_snapshot_fetcher("http://api.test", client=http))
            assert await client.tick() is False
            assert client.failures == 1

    async def test_undecodable_body_is_a_transient_failure(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = LiveSyncClient(http_snapshot_fetcher("http://api.test", client=http))
            assert await client.tick() is False

    async def test_store_fetcher(self, controller, store):
        submitted = controller.submit(YOUTUBE_URL, "user-1")
        fetch = store_snapshot_fetcher(store, limit=10)
        assert [r.id for r in await fetch()] == [submitted.id]

    async def test_fetcher_closes_only_the_client_it_created(self):
        owned = http_snapshot_fetcher("http://api.test")
        inner = owned._http_client
        await owned.close()
        assert inner.is_closed

        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[]))) as http:
            async with http_snapshot_fetcher("http://api.test", client=http) as borrowed:
                assert await borrowed() == []
            assert not http.is_closed

    async def test_closed_fetcher_is_a_transient_failure(self):
        fetch = http_snapshot_fetcher("http://api.test")
        await fetch.close()
        client = LiveSyncClient(fetch)
        assert await client.tick() is False
