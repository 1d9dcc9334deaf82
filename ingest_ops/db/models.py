"""
SQLAlchemy ORM models for ingest_ops.

This module defines the database schema using SQLAlchemy's declarative base.
All models inherit from Base and use consistent naming conventions.

Models:
    IngestRequest: One "process this URL into a summarized episode" unit of work
    Report: Ledger row for a generated (or generating) periodic report
    TimestampMixin: Provides created_at/updated_at timestamps

Enums:
    IngestStatus: Authoritative lifecycle status of an ingest request
    IngestSource: Kind of submitted URL
    ReportKind: Aggregation window of a report
    ReportStatus: Generation status of a report
"""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Enum,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (the store keeps every timestamp in UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """
    Mixin to add timestamp tracking to models.

    Provides:
        created_at: Timestamp when record was created
        updated_at: Timestamp when record was last modified

    Timestamps are produced application-side with microsecond precision so
    that snapshot ordering by creation time is stable on SQLite too.
    """

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class IngestStatus(str, PyEnum):
    """
    Lifecycle status of an ingest request.

        QUEUED: Accepted, waiting for the job runner to start it
        RUNNING: The pipeline is executing (see ``stage`` for the sub-phase)
        SUCCEEDED: Terminal, an episode was produced
        FAILED: Terminal until an operator retries it
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATUSES = (IngestStatus.SUCCEEDED, IngestStatus.FAILED)


class IngestSource(str, PyEnum):
    YOUTUBE = "youtube"
    AUDIO = "audio"


class ReportKind(str, PyEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class ReportStatus(str, PyEnum):
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class IngestRequest(Base, TimestampMixin):
    """
    Represents one submitted URL and its progress through the ingestion pipeline.

    Attributes:
        id: Primary key (UUID4 string)
        user_id: Owner of the submission
        url: Submitted URL (unique, duplicates are rejected at submission)
        source: Kind of URL (IngestSource)
        status: Authoritative lifecycle status (IngestStatus)
        stage: Diagnostic pipeline sub-phase, only set while RUNNING
        job_reference: Event id returned by the job runner for the live run
        episode_id: Produced artifact, only set when SUCCEEDED
        error_message: Short failure message, only set when FAILED
        error_details: Structured failure payload, only set when FAILED
        started_at: When the current run began
        completed_at: When the run reached SUCCEEDED or FAILED
        created_at / updated_at: From TimestampMixin
    """

    __tablename__ = "ingest_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    url = Column(String, nullable=False, unique=True)
    source = Column(Enum(IngestSource), nullable=False)

    # Lifecycle
    status = Column(
        Enum(IngestStatus),
        nullable=False,
        default=IngestStatus.QUEUED,
        server_default="QUEUED",
    )
    stage = Column(String, nullable=True)

    # External references
    job_reference = Column(String, nullable=True)
    episode_id = Column(String, nullable=True)

    # Failure payload
    error_message = Column(Text, nullable=True)
    error_details = Column(JSON, nullable=True)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return (
            f"<IngestRequest(id={self.id}, url='{self.url}', "
            f"status={self.status.value if self.status else None}, stage={self.stage})>"
        )


class Report(Base, TimestampMixin):
    """
    Ledger row for a periodic report, unique per (report_type, date key).

    ``date`` holds the canonical period key (``2025-02-03``, ``2025-W06``,
    ``2025-02``, ``2025-Q1``) used to deduplicate generation runs.
    """

    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint("report_type", "date", name="uq_reports_type_date"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    report_type = Column(Enum(ReportKind), nullable=False)
    date = Column(String, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    status = Column(
        Enum(ReportStatus), nullable=False, default=ReportStatus.GENERATING
    )
    generation_type = Column(String, nullable=False, default="manual")
    generated_by = Column(String, nullable=True)
    job_reference = Column(String, nullable=True)

    def __repr__(self):
        return f"<Report(type={self.report_type.value}, key={self.date}, status={self.status.value})>"
