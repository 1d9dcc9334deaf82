"""
Tests for manual report-generation triggers and the report ledger.
"""

from datetime import date

import pytest

from ingest_ops.db import ReportKind, ReportStatus
from ingest_ops.jobs import JobRunnerError
from ingest_ops.reports import (
    BACKFILL_DAILY_EVENT,
    ReportAlreadyGenerating,
    ReportGenerationTrigger,
)


@pytest.fixture
def trigger(report_store, runner):
    return ReportGenerationTrigger(report_store, runner)


class TestTrigger:
    def test_weekly_event_payload(self, trigger, runner, report_store):
        triggered = trigger.trigger("weekly", start="2024-12-30", requested_by="ops")

        assert triggered.period.key == "2025-W01"
        assert triggered.job_reference == "evt-1"
        name, data = runner.events[0]
        assert name == "report/generate-weekly"
        assert data == {
            "dateKey": "2025-W01",
            "periodStart": "2024-12-30",
            "periodEnd": "2025-01-05",
            "userId": "ops",
            "weekStart": "2024-12-30",
            "weekEnd": "2025-01-05",
        }

        row = report_store.get(ReportKind.WEEKLY, "2025-W01")
        assert row.status == ReportStatus.GENERATING
        assert row.period_start == date(2024, 12, 30)
        assert row.job_reference == "evt-1"
        assert row.generated_by == "ops"

    def test_monthly_and_quarterly_carry_calendar_fields(self, trigger, runner):
        trigger.trigger("monthly", preset="last-month", now=date(2025, 1, 15))
        trigger.trigger(ReportKind.QUARTERLY, preset="last-quarter", now=date(2025, 1, 15))

        (_, monthly), (_, quarterly) = runner.events
        assert (monthly["dateKey"], monthly["year"], monthly["month"]) == ("2024-12", 2024, 12)
        assert (quarterly["dateKey"], quarterly["year"], quarterly["quarter"]) == ("2024-Q4", 2024, 4)

    def test_daily_carries_date(self, trigger, runner):
        trigger.trigger("daily", preset="yesterday", now=date(2025, 2, 5))
        assert runner.events[0][1]["date"] == "2025-02-04"

    def test_refuses_while_generating(self, trigger, runner):
        trigger.trigger("daily", start="2025-02-04")

        with pytest.raises(ReportAlreadyGenerating):
            trigger.trigger("daily", start="2025-02-04")
        assert len(runner.events) == 1

    def test_allows_regeneration_once_ready(self, trigger, report_store, runner):
        trigger.trigger("daily", start="2025-02-04")
        report_store.set_status(ReportKind.DAILY, "2025-02-04", ReportStatus.READY)

        trigger.trigger("daily", start="2025-02-04")

        assert len(runner.events) == 2
        assert report_store.get(ReportKind.DAILY, "2025-02-04").status == ReportStatus.GENERATING

    def test_runner_failure_marks_row_failed(self, trigger, report_store, runner):
        runner.fail = True
        with pytest.raises(JobRunnerError):
            trigger.trigger("daily", start="2025-02-04")

        assert report_store.get(ReportKind.DAILY, "2025-02-04").status == ReportStatus.FAILED

        runner.fail = False
        trigger.trigger("daily", start="2025-02-04")

    def test_bad_period_input(self, trigger, runner):
        with pytest.raises(ValueError):
            trigger.trigger("weekly", preset="next-week")
        assert runner.events == []

    def test_list_keys_newest_first(self, trigger, report_store):
        for day in ("2025-02-01", "2025-02-03", "2025-02-02"):
            trigger.trigger("daily", start=day)
        keys = [r.date for r in report_store.list_keys(ReportKind.DAILY)]
        assert keys == ["2025-02-03", "2025-02-02", "2025-02-01"]


class TestBackfill:
    def test_sends_backfill_event(self, trigger, runner):
        assert trigger.backfill_daily() == "evt-1"
        assert runner.events == [(BACKFILL_DAILY_EVENT, {})]
