"""
Live status synchronization.

LiveSyncClient polls a snapshot source on a fixed interval and merges each
snapshot into a SyncViewState. Ticks are fire-and-forget: a slow fetch does
not delay the next one, so two fetches may be in flight at once and their
results are applied in completion order.

Pausing stops the interval and bumps a generation counter. Fetches already
in flight still finish, but their results belong to an older generation and
are dropped, so nothing changes on screen after a pause. Resuming starts a
new interval from scratch.

Fetch failures never surface: each one is logged at debug level as a
TransientSyncFailure and the next tick simply tries again.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence

import httpx

from ingest_ops.db import IngestRequestRecord, IngestRequestStore
from ingest_ops.logger import setup_logging
from .state import SessionFlagStore, SyncViewState


logger = setup_logging(logger_name="sync", log_file="logs/sync.log")

SnapshotFetcher = Callable[[], Awaitable[Sequence[IngestRequestRecord]]]

SNAPSHOT_PATH = "/api/admin/ingest"


class TransientSyncFailure(Exception):
    """A single poll failed (non-2xx, network error or undecodable body)."""


class LiveSyncClient:
    """
    Periodic snapshot poller for one operator view.

    Args:
        fetch_snapshot: Coroutine function returning the current snapshot
        state: View state to merge into (a fresh one if omitted)
        interval: Seconds between ticks
        flag_store: Where the pause flag is persisted for this session
        on_update: Optional callback invoked after each applied snapshot
    """

    def __init__(
        self,
        fetch_snapshot: SnapshotFetcher,
        state: Optional[SyncViewState] = None,
        interval: float = 5.0,
        flag_store: Optional[SessionFlagStore] = None,
        on_update: Optional[Callable[[SyncViewState], None]] = None,
    ):
        self.fetch_snapshot = fetch_snapshot
        self.state = state or SyncViewState()
        self.interval = interval
        self.flag_store = flag_store
        self.on_update = on_update

        self.generation = 0
        self.failures = 0
        self._loop_task: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()

        if self.flag_store is not None:
            self.state.paused = self.flag_store.load_paused()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        """Begin polling unless already running or paused."""
        if self.running:
            return
        if self.state.paused:
            logger.info("Live sync is paused for this session; not starting")
            return
        self._loop_task = asyncio.create_task(self._run())
        logger.info(f"Live sync started (interval {self.interval}s)")

    async def stop(self) -> None:
        """Cancel the interval and every in-flight tick."""
        await self._cancel_loop()
        for task in list(self._in_flight):
            task.cancel()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        self._in_flight.clear()
        logger.info("Live sync stopped")

    async def pause(self) -> None:
        self.generation += 1
        self.state.paused = True
        if self.flag_store is not None:
            self.flag_store.save_paused(True)
        await self._cancel_loop()
        logger.info("Live sync paused")

    async def resume(self) -> None:
        self.generation += 1
        self.state.paused = False
        if self.flag_store is not None:
            self.flag_store.save_paused(False)
        await self.start()

    async def tick(self) -> bool:
        """
        Fetch one snapshot and merge it.

        Returns:
            True if the snapshot was applied, False if the fetch failed or
            the result was stale.
        """
        generation = self.generation
        try:
            snapshot = await self._fetch()
        except TransientSyncFailure as failure:
            self.failures += 1
            logger.debug(f"Snapshot fetch failed, retrying next tick: {failure}")
            return False

        if generation != self.generation or self.state.paused:
            logger.debug(f"Discarding snapshot from generation {generation}")
            return False

        self.state.apply_snapshot(snapshot)
        if self.on_update is not None:
            self.on_update(self.state)
        return True

    async def _fetch(self) -> Sequence[IngestRequestRecord]:
        try:
            return await self.fetch_snapshot()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransientSyncFailure(f"{type(e).__name__}: {e}") from e

    async def _run(self) -> None:
        while True:
            task = asyncio.create_task(self.tick())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self.interval)

    async def _cancel_loop(self) -> None:
        task, self._loop_task = self._loop_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


class HttpSnapshotFetcher:
    """
    Fetch snapshots from the HTTP operator API.

    Non-2xx responses raise ``httpx.HTTPStatusError``, which the client
    treats as a transient failure. A client passed in stays owned by the
    caller; one created here is closed by ``close()``.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        api_key: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        self.url = base_url.rstrip("/") + SNAPSHOT_PATH
        self.headers = {"X-Internal-Key": api_key} if api_key else {}
        self.params = {"limit": limit} if limit else None
        self._owns_client = client is None
        self._http_client: Optional[httpx.AsyncClient] = client or httpx.AsyncClient(timeout=10.0)

    async def __call__(self) -> list[IngestRequestRecord]:
        if self._http_client is None:
            raise RuntimeError("Snapshot fetcher is closed")
        response = await self._http_client.get(self.url, headers=self.headers, params=self.params)
        response.raise_for_status()
        payload = response.json()
        items = payload["requests"] if isinstance(payload, dict) else payload
        return [IngestRequestRecord.from_dict(item) for item in items]

    async def close(self) -> None:
        if self._http_client is None:
            return
        if self._owns_client:
            await self._http_client.aclose()
            logger.debug(f"Closed snapshot client for {self.url}")
        self._http_client = None

    async def __aenter__(self) -> "HttpSnapshotFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def http_snapshot_fetcher(
    base_url: str,
    client: Optional[httpx.AsyncClient] = None,
    api_key: Optional[str] = None,
    limit: Optional[int] = None,
) -> HttpSnapshotFetcher:
    return HttpSnapshotFetcher(base_url, client=client, api_key=api_key, limit=limit)


def store_snapshot_fetcher(store: IngestRequestStore, limit: int = 50) -> SnapshotFetcher:
    """Read snapshots straight from the store, off the event loop."""

    async def fetch() -> list[IngestRequestRecord]:
        return await asyncio.to_thread(store.list_snapshot, limit)

    return fetch
