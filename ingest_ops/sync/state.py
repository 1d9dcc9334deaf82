"""
Client-side state of the live status view.

SyncViewState holds what one operator currently sees: the ordered list of
records, which rows are expanded, whether live updates are paused and when
the last snapshot was applied. SessionFlagStore persists the pause flag for
the operator's session so that reopening the console keeps it.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from ingest_ops.db import IngestRequestRecord
from ingest_ops.logger import setup_logging
from .merge import merge_snapshot, record_id


logger = setup_logging(logger_name="sync", log_file="logs/sync.log")

PAUSED_FLAG = "paused"
EXPANDED_KEY = "expanded"


@dataclass
class SyncViewState:
    records: list[IngestRequestRecord] = field(default_factory=list)
    expanded: set[str] = field(default_factory=set)
    paused: bool = False
    last_synced_at: Optional[datetime] = None

    def apply_snapshot(self, snapshot: Sequence[IngestRequestRecord]) -> None:
        """Merge a snapshot; expanded rows and local order are left alone."""
        self.records = merge_snapshot(self.records, snapshot)
        self.last_synced_at = datetime.now(timezone.utc)

    def toggle_expanded(self, request_id: str) -> bool:
        """Flip a row's detail panel. Returns the new expanded state."""
        if request_id in self.expanded:
            self.expanded.discard(request_id)
            return False
        self.expanded.add(request_id)
        return True

    def remove_local(self, request_id: str) -> None:
        """Drop a row after the server confirmed its deletion."""
        self.records = [r for r in self.records if record_id(r) != request_id]
        self.expanded.discard(request_id)

    def find(self, request_id: str) -> Optional[IngestRequestRecord]:
        for record in self.records:
            if record_id(record) == request_id:
                return record
        return None


class SessionFlagStore:
    """
    Small JSON key-value file scoped to one operator session.

    Stored at ``<session_dir>/<session_id>.json``.
    """

    def __init__(self, session_dir: str, session_id: str = "default"):
        self.path = Path(session_dir) / f"{session_id}.json"

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def put(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def load_paused(self) -> bool:
        return bool(self.get(PAUSED_FLAG, False))

    def save_paused(self, paused: bool) -> None:
        self.put(PAUSED_FLAG, paused)

    def load_expanded(self) -> set[str]:
        return set(self.get(EXPANDED_KEY, []))

    def save_expanded(self, expanded: set[str]) -> None:
        self.put(EXPANDED_KEY, sorted(expanded))
