"""
Calendar periods for report generation.

Every report covers an inclusive [start, end] date window and is stored under
a canonical key that deduplicates generation runs:

    daily      2025-02-03
    weekly     2025-W06   (ISO week and ISO week-year)
    monthly    2025-02
    quarterly  2025-Q1

All arithmetic is done on UTC calendar dates; weeks start on Monday
regardless of locale. Nothing here touches I/O.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple, Optional, Union

from ingest_ops.db import ReportKind


DateLike = Union[date, datetime, str]

PRESETS = (
    "yesterday",
    "today",
    "last-week",
    "this-week",
    "last-month",
    "this-month",
    "last-quarter",
    "this-quarter",
)

# Preset used when a report is requested without any period input
DEFAULT_PRESETS = {
    ReportKind.DAILY: "yesterday",
    ReportKind.WEEKLY: "last-week",
    ReportKind.MONTHLY: "last-month",
    ReportKind.QUARTERLY: "last-quarter",
}

_DAY_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEK_KEY = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_KEY = re.compile(r"^(\d{4})-Q([1-4])$")


class DateRange(NamedTuple):
    start: date
    end: date


@dataclass(frozen=True)
class ReportPeriod:
    kind: ReportKind
    start: date
    end: date
    key: str
    label: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "key": self.key,
            "label": self.label,
        }


def _to_date(value: Optional[DateLike]) -> date:
    """Normalize ``now``-style input to a UTC calendar date."""
    if value is None:
        return datetime.now(timezone.utc).date()
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def _to_kind(kind: Union[ReportKind, str]) -> ReportKind:
    return kind if isinstance(kind, ReportKind) else ReportKind(kind)


def monday_of(d: date) -> date:
    return d - timedelta(days=d.weekday())


def last_day_of_month(year: int, month: int) -> date:
    """Day 0 of the following month, i.e. its first day minus one."""
    if month == 12:
        first_of_next = date(year + 1, 1, 1)
    else:
        first_of_next = date(year, month + 1, 1)
    return first_of_next - timedelta(days=1)


def quarter_of(d: date) -> int:
    return (d.month - 1) // 3 + 1


def iso_week(d: date) -> tuple[int, int]:
    """
    ISO-8601 week of ``d`` as ``(iso_year, week)``.

    The week belongs to the year of its Thursday, so the first days of
    January can fall in the last week of the previous year and the last days
    of December in week 1 of the next.
    """
    thursday = d + timedelta(days=3 - d.weekday())
    return thursday.year, (thursday.timetuple().tm_yday - 1) // 7 + 1


def week_range(week_start: DateLike) -> DateRange:
    start = _to_date(week_start)
    return DateRange(start, start + timedelta(days=6))


def month_range(year: int, month: int) -> DateRange:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return DateRange(date(year, month, 1), last_day_of_month(year, month))


def quarter_range(year: int, quarter: int) -> DateRange:
    if not 1 <= quarter <= 4:
        raise ValueError(f"Invalid quarter: {quarter}")
    first_month = (quarter - 1) * 3 + 1
    return DateRange(
        date(year, first_month, 1), last_day_of_month(year, first_month + 2)
    )


def compute_preset(preset: str, now: Optional[DateLike] = None) -> DateRange:
    """
    Resolve a named preset relative to ``now``.

    Args:
        preset: One of PRESETS
        now: Reference instant (date, datetime or ISO string); aware
            datetimes are converted to UTC. Defaults to the current UTC date.

    Returns:
        DateRange with inclusive bounds

    Raises:
        ValueError: If the preset is unknown
    """
    today = _to_date(now)

    if preset == "yesterday":
        day = today - timedelta(days=1)
        return DateRange(day, day)
    if preset == "today":
        return DateRange(today, today)
    if preset == "this-week":
        return DateRange(monday_of(today), today)
    if preset == "last-week":
        return week_range(monday_of(today) - timedelta(days=7))
    if preset == "this-month":
        return DateRange(today.replace(day=1), today)
    if preset == "last-month":
        end = today.replace(day=1) - timedelta(days=1)
        return month_range(end.year, end.month)
    if preset == "this-quarter":
        return DateRange(quarter_range(today.year, quarter_of(today)).start, today)
    if preset == "last-quarter":
        quarter = quarter_of(today) - 1
        year = today.year
        if quarter == 0:
            quarter, year = 4, year - 1
        return quarter_range(year, quarter)

    raise ValueError(f"Unknown period preset: {preset!r}")


def compute_key(
    kind: Union[ReportKind, str], start: DateLike, end: Optional[DateLike] = None
) -> str:
    """
    Canonical dedup key of a period. Only ``start`` is used.
    """
    kind = _to_kind(kind)
    start = _to_date(start)

    if kind == ReportKind.DAILY:
        return start.isoformat()
    if kind == ReportKind.WEEKLY:
        year, week = iso_week(start)
        return f"{year}-W{week:02d}"
    if kind == ReportKind.MONTHLY:
        return f"{start.year}-{start.month:02d}"
    return f"{start.year}-Q{quarter_of(start)}"


def _label(kind: ReportKind, start: date, end: date, key: str) -> str:
    if kind == ReportKind.DAILY:
        return start.isoformat()
    if kind == ReportKind.WEEKLY:
        return f"{start:%b %d} - {end:%b %d, %Y} ({key})"
    if kind == ReportKind.MONTHLY:
        return f"{start:%B %Y}"
    return f"Q{quarter_of(start)} {start.year}"


def _natural_range(kind: ReportKind, start: date) -> DateRange:
    if kind == ReportKind.DAILY:
        return DateRange(start, start)
    if kind == ReportKind.WEEKLY:
        return week_range(monday_of(start))
    if kind == ReportKind.MONTHLY:
        return month_range(start.year, start.month)
    return quarter_range(start.year, quarter_of(start))


def _period(kind: ReportKind, start: date, end: date) -> ReportPeriod:
    key = compute_key(kind, start)
    return ReportPeriod(kind=kind, start=start, end=end, key=key, label=_label(kind, start, end, key))


def resolve_period(
    kind: Union[ReportKind, str],
    preset: Optional[str] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    now: Optional[DateLike] = None,
) -> ReportPeriod:
    """
    Turn operator input into a ReportPeriod.

    Either a preset or an explicit range is used. An explicit ``start``
    without ``end`` expands to the natural period containing it (the whole
    ISO week, month or quarter). With neither, the kind's default preset
    applies.

    Raises:
        ValueError: For unknown presets, malformed dates, or end < start
    """
    kind = _to_kind(kind)

    if preset is not None and start is not None:
        raise ValueError("Give either a preset or an explicit start date, not both")

    if start is not None:
        start = _to_date(start)
        if end is None:
            rng = _natural_range(kind, start)
        else:
            rng = DateRange(start, _to_date(end))
    else:
        rng = compute_preset(preset or DEFAULT_PRESETS[kind], now)

    if rng.end < rng.start:
        raise ValueError(f"Period ends before it starts: {rng.start} > {rng.end}")
    return _period(kind, rng.start, rng.end)


def parse_key(kind: Union[ReportKind, str], key: str) -> ReportPeriod:
    """
    Inverse of compute_key: the full period a canonical key names.

    Raises:
        ValueError: If the key does not match the kind's format
    """
    kind = _to_kind(kind)
    key = key.strip()

    if kind == ReportKind.DAILY:
        if not _DAY_KEY.match(key):
            raise ValueError(f"Malformed daily key: {key!r} (expected YYYY-MM-DD)")
        day = date.fromisoformat(key)
        return _period(kind, day, day)

    if kind == ReportKind.WEEKLY:
        match = _WEEK_KEY.match(key)
        if not match:
            raise ValueError(f"Malformed weekly key: {key!r} (expected YYYY-Www)")
        monday = date.fromisocalendar(int(match.group(1)), int(match.group(2)), 1)
        rng = week_range(monday)
        return _period(kind, rng.start, rng.end)

    if kind == ReportKind.MONTHLY:
        match = _MONTH_KEY.match(key)
        if not match:
            raise ValueError(f"Malformed monthly key: {key!r} (expected YYYY-MM)")
        rng = month_range(int(match.group(1)), int(match.group(2)))
        return _period(kind, rng.start, rng.end)

    match = _QUARTER_KEY.match(key)
    if not match:
        raise ValueError(f"Malformed quarterly key: {key!r} (expected YYYY-Qn)")
    rng = quarter_range(int(match.group(1)), int(match.group(2)))
    return _period(kind, rng.start, rng.end)
