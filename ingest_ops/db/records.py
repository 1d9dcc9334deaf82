"""
Detached snapshots of ingest requests.

IngestRequestRecord mirrors one ``ingest_requests`` row as a plain dataclass so
that records can leave the session that loaded them, cross the HTTP boundary
as JSON, and be merged into the operator's local list by the sync client.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Optional

from .models import IngestRequest, IngestSource, IngestStatus


_DATETIME_FIELDS = ("created_at", "updated_at", "started_at", "completed_at")


@dataclass
class IngestRequestRecord:
    id: str
    user_id: str
    url: str
    source: IngestSource
    status: IngestStatus
    created_at: datetime
    updated_at: datetime
    stage: Optional[str] = None
    job_reference: Optional[str] = None
    episode_id: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[Any] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, row: IngestRequest) -> "IngestRequestRecord":
        """Copy every mapped column of an IngestRequest into a record."""
        return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngestRequestRecord":
        """
        Build a record from its JSON form (as produced by ``to_dict``).

        Unknown keys are ignored so newer servers can add fields.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["source"] = IngestSource(values["source"])
        values["status"] = IngestStatus(values["status"])
        for name in _DATETIME_FIELDS:
            if isinstance(values.get(name), str):
                values[name] = datetime.fromisoformat(values[name])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["source"] = self.source.value
        data["status"] = self.status.value
        for name in _DATETIME_FIELDS:
            if data[name] is not None:
                data[name] = data[name].isoformat()
        return data

    def evolve(self, **changes) -> "IngestRequestRecord":
        return replace(self, **changes)

    @property
    def is_terminal(self) -> bool:
        return self.status in (IngestStatus.SUCCEEDED, IngestStatus.FAILED)
