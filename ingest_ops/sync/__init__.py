"""
Live-status synchronization between the server snapshot and a client view.

- merge.py: merge_snapshot() (update in place, append new, never drop)
- state.py: SyncViewState and the per-session pause flag
- client.py: LiveSyncClient polling loop and snapshot fetchers
"""

from .merge import merge_snapshot, record_id
from .state import SessionFlagStore, SyncViewState
from .client import (
    HttpSnapshotFetcher,
    LiveSyncClient,
    TransientSyncFailure,
    http_snapshot_fetcher,
    store_snapshot_fetcher,
)

__all__ = [
    "HttpSnapshotFetcher",
    "merge_snapshot",
    "record_id",
    "SessionFlagStore",
    "SyncViewState",
    "LiveSyncClient",
    "TransientSyncFailure",
    "http_snapshot_fetcher",
    "store_snapshot_fetcher",
]
