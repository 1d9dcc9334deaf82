"""Request and response bodies of the admin API."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel

from ingest_ops.db import IngestRequestRecord, IngestSource, ReportKind


class IngestSubmitIn(BaseModel):
    url: str
    user_id: str = "admin"
    source: Optional[IngestSource] = None


class ResendIn(BaseModel):
    requestId: str


class IngestRequestOut(BaseModel):
    id: str
    user_id: str
    url: str
    source: str
    status: str
    stage: Optional[str] = None
    job_reference: Optional[str] = None
    episode_id: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[Any] = None
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: IngestRequestRecord) -> "IngestRequestOut":
        return cls(**record.to_dict())


class IngestSnapshotOut(BaseModel):
    requests: list[IngestRequestOut]
    counts: dict[str, int]


class ResendOut(BaseModel):
    success: bool = True
    requestId: str
    jobReference: str


class DeleteOut(BaseModel):
    deleted: bool = True
    requestId: str


class ReportTriggerIn(BaseModel):
    kind: ReportKind
    preset: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None
    requested_by: str = "admin"


class ReportTriggerOut(BaseModel):
    kind: str
    start: date
    end: date
    key: str
    label: str
    event: str
    jobReference: Optional[str] = None


class BackfillOut(BaseModel):
    started: bool = True
    jobReference: Optional[str] = None
