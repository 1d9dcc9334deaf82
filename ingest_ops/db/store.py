"""
Storage collaborators for ingest requests and report ledger rows.

Both stores follow the session-per-operation pattern: every method opens its
own session through get_db_session(), commits, and hands back detached values
(IngestRequestRecord for requests, plain Report rows for reports).
"""

from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select

from ingest_ops.logger import log_function
from .records import IngestRequestRecord
from .database import get_db_session
from .models import (
    IngestRequest,
    IngestSource,
    IngestStatus,
    Report,
    ReportKind,
    ReportStatus,
    utcnow,
)


class IngestRequestStore:
    """CRUD and snapshot queries over the ``ingest_requests`` table."""

    @log_function(logger_name="database", log_args=True)
    def create(self, url: str, user_id: str, source: IngestSource) -> IngestRequestRecord:
        """
        Insert a new request in QUEUED status.

        Raises:
            sqlalchemy.exc.IntegrityError: If the URL is already tracked.
        """
        with get_db_session() as session:
            row = IngestRequest(
                url=url,
                user_id=user_id,
                source=source,
                status=IngestStatus.QUEUED,
            )
            session.add(row)
            session.commit()
            return IngestRequestRecord.from_orm(row)

    def get(self, request_id: str) -> Optional[IngestRequestRecord]:
        with get_db_session() as session:
            row = session.get(IngestRequest, request_id)
            return IngestRequestRecord.from_orm(row) if row else None

    def find_by_url(self, url: str) -> Optional[IngestRequestRecord]:
        with get_db_session() as session:
            row = session.execute(
                select(IngestRequest).where(IngestRequest.url == url).limit(1)
            ).scalar_one_or_none()
            return IngestRequestRecord.from_orm(row) if row else None

    @log_function(logger_name="database", log_args=True)
    def update(self, request_id: str, **fields: Any) -> Optional[IngestRequestRecord]:
        """
        Set the given columns on one request and bump ``updated_at``.

        Unlike a partial "non-None only" update, ``None`` values are written,
        which is how stage/error/timestamp columns get cleared.

        Returns:
            The updated record, or None if no request has this id.
        """
        with get_db_session() as session:
            row = session.get(IngestRequest, request_id)
            if row is None:
                return None
            for name, value in fields.items():
                if not hasattr(IngestRequest, name):
                    raise AttributeError(f"IngestRequest has no column '{name}'")
                setattr(row, name, value)
            row.updated_at = utcnow()
            session.commit()
            return IngestRequestRecord.from_orm(row)

    @log_function(logger_name="database", log_args=True)
    def delete(self, request_id: str) -> bool:
        """Remove one request. Returns False when nothing was deleted."""
        with get_db_session() as session:
            row = session.get(IngestRequest, request_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def list_snapshot(
        self, limit: int = 50, user_id: Optional[str] = None
    ) -> list[IngestRequestRecord]:
        """
        Current snapshot, newest first.

        Args:
            limit: Maximum number of requests returned.
            user_id: Restrict to one owner (the submitter's own status list).
        """
        with get_db_session() as session:
            query = select(IngestRequest)
            if user_id is not None:
                query = query.where(IngestRequest.user_id == user_id)
            query = query.order_by(
                IngestRequest.created_at.desc(), IngestRequest.id.desc()
            ).limit(limit)
            rows = session.execute(query).scalars().all()
            return [IngestRequestRecord.from_orm(row) for row in rows]

    def count_by_status(self) -> dict[str, int]:
        with get_db_session() as session:
            rows = session.execute(
                select(IngestRequest.status, func.count()).group_by(IngestRequest.status)
            ).all()
        counts = {status.value: 0 for status in IngestStatus}
        for status, count in rows:
            counts[status.value] = count
        return counts


class ReportStore:
    """Dedup ledger for report generation, keyed by (kind, canonical key)."""

    def get(self, kind: ReportKind, key: str) -> Optional[Report]:
        with get_db_session() as session:
            return session.execute(
                select(Report).where(Report.report_type == kind, Report.date == key)
            ).scalar_one_or_none()

    @log_function(logger_name="database", log_args=True)
    def mark_generating(
        self,
        kind: ReportKind,
        key: str,
        period_start: date,
        period_end: date,
        generation_type: str = "manual",
        generated_by: Optional[str] = None,
    ) -> Report:
        """Create the ledger row for ``(kind, key)`` or reset an existing one to GENERATING."""
        with get_db_session() as session:
            report = session.execute(
                select(Report).where(Report.report_type == kind, Report.date == key)
            ).scalar_one_or_none()
            if report is None:
                report = Report(report_type=kind, date=key)
                session.add(report)
            report.period_start = period_start
            report.period_end = period_end
            report.status = ReportStatus.GENERATING
            report.generation_type = generation_type
            report.generated_by = generated_by
            report.job_reference = None
            session.commit()
            return report

    def set_status(
        self,
        kind: ReportKind,
        key: str,
        status: ReportStatus,
        job_reference: Optional[str] = None,
    ) -> Optional[Report]:
        with get_db_session() as session:
            report = session.execute(
                select(Report).where(Report.report_type == kind, Report.date == key)
            ).scalar_one_or_none()
            if report is None:
                return None
            report.status = status
            if job_reference is not None:
                report.job_reference = job_reference
            session.commit()
            return report

    def list_keys(self, kind: ReportKind, limit: int = 30) -> list[Report]:
        with get_db_session() as session:
            return list(
                session.execute(
                    select(Report)
                    .where(Report.report_type == kind)
                    .order_by(Report.date.desc())
                    .limit(limit)
                ).scalars()
            )
