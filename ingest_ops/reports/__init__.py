"""
Periodic reports: calendar periods, dedup keys and generation triggers.
"""

from .periods import (
    DEFAULT_PRESETS,
    PRESETS,
    DateRange,
    ReportPeriod,
    compute_key,
    compute_preset,
    iso_week,
    last_day_of_month,
    monday_of,
    month_range,
    parse_key,
    quarter_of,
    quarter_range,
    resolve_period,
    week_range,
)
from .triggers import (
    BACKFILL_DAILY_EVENT,
    ReportAlreadyGenerating,
    ReportGenerationTrigger,
    TriggeredReport,
    build_event_data,
)

__all__ = [
    "DEFAULT_PRESETS",
    "PRESETS",
    "DateRange",
    "ReportPeriod",
    "compute_key",
    "compute_preset",
    "iso_week",
    "last_day_of_month",
    "monday_of",
    "month_range",
    "parse_key",
    "quarter_of",
    "quarter_range",
    "resolve_period",
    "week_range",
    "BACKFILL_DAILY_EVENT",
    "ReportAlreadyGenerating",
    "ReportGenerationTrigger",
    "TriggeredReport",
    "build_event_data",
]
