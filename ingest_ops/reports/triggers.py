"""
Manual report-generation triggers.

A trigger resolves the requested period, consults the ``reports`` ledger so
the same (kind, key) is never generated twice concurrently, and hands the
work to the job runner as a ``report/generate-<kind>`` event. Report content
itself is produced by the runner.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from ingest_ops.db import ReportKind, ReportStatus, ReportStore
from ingest_ops.jobs import JobRunner, JobRunnerError
from ingest_ops.lifecycle.errors import IngestOpsError
from ingest_ops.logger import setup_logging, log_function
from .periods import DateLike, ReportPeriod, quarter_of, resolve_period


logger = setup_logging(logger_name="reports", log_file="logs/reports.log")

BACKFILL_DAILY_EVENT = "report/backfill-daily"


class ReportAlreadyGenerating(IngestOpsError):
    def __init__(self, kind: ReportKind, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"A {kind.value} report is already being generated for {key}")


@dataclass
class TriggeredReport:
    period: ReportPeriod
    event_name: str
    job_reference: Optional[str]

    def to_dict(self) -> dict:
        return {
            **self.period.to_dict(),
            "event": self.event_name,
            "jobReference": self.job_reference,
        }


def event_name_for(kind: ReportKind) -> str:
    return f"report/generate-{kind.value}"


def build_event_data(period: ReportPeriod, requested_by: str) -> dict[str, Any]:
    """Payload of a ``report/generate-<kind>`` event."""
    data: dict[str, Any] = {
        "dateKey": period.key,
        "periodStart": period.start.isoformat(),
        "periodEnd": period.end.isoformat(),
        "userId": requested_by,
    }
    if period.kind == ReportKind.DAILY:
        data["date"] = period.start.isoformat()
    elif period.kind == ReportKind.WEEKLY:
        data["weekStart"] = period.start.isoformat()
        data["weekEnd"] = period.end.isoformat()
    elif period.kind == ReportKind.MONTHLY:
        data["year"] = period.start.year
        data["month"] = period.start.month
    else:
        data["year"] = period.start.year
        data["quarter"] = quarter_of(period.start)
    return data


class ReportGenerationTrigger:
    """
    Start report generation runs, at most one per (kind, key) at a time.

    Args:
        report_store: Ledger of report rows (ReportStore)
        runner: Job runner receiving the generation events
    """

    def __init__(self, report_store: ReportStore, runner: JobRunner):
        self.report_store = report_store
        self.runner = runner

    @log_function(logger_name="reports", log_args=True)
    def trigger(
        self,
        kind: Union[ReportKind, str],
        preset: Optional[str] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        now: Optional[DateLike] = None,
        requested_by: str = "system",
    ) -> TriggeredReport:
        """
        Request generation of one report.

        Raises:
            ValueError: If the period input cannot be resolved
            ReportAlreadyGenerating: If the same report is mid-generation
            JobRunnerError: If the event could not be sent (the ledger row
                is marked FAILED so the operator can trigger again)
        """
        period = resolve_period(kind, preset=preset, start=start, end=end, now=now)

        existing = self.report_store.get(period.kind, period.key)
        if existing is not None and existing.status == ReportStatus.GENERATING:
            raise ReportAlreadyGenerating(period.kind, period.key)

        self.report_store.mark_generating(
            period.kind,
            period.key,
            period.start,
            period.end,
            generation_type="manual",
            generated_by=requested_by,
        )

        event_name = event_name_for(period.kind)
        try:
            ids = self.runner.send_event(event_name, build_event_data(period, requested_by))
        except JobRunnerError:
            self.report_store.set_status(period.kind, period.key, ReportStatus.FAILED)
            raise

        job_reference = ids[0] if ids else None
        self.report_store.set_status(
            period.kind, period.key, ReportStatus.GENERATING, job_reference=job_reference
        )
        logger.info(f"Triggered {event_name} for {period.key} ({period.label})")
        return TriggeredReport(period=period, event_name=event_name, job_reference=job_reference)

    @log_function(logger_name="reports")
    def backfill_daily(self) -> Optional[str]:
        """Ask the runner to generate every missing daily report."""
        ids = self.runner.send_event(BACKFILL_DAILY_EVENT, {})
        return ids[0] if ids else None
