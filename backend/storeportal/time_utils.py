from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


# Report windows selectable from the reports screen. None means "since epoch".
REPORT_RANGES: dict[str, Optional[timedelta]] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "all": None,
}
DEFAULT_REPORT_RANGE = "7d"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now).replace(day=1)


def report_window(range_key: str | None, now: datetime | None = None) -> tuple[str, datetime, datetime]:
    """
    Resolve a report range key into (key, start, end).

    Unknown keys fall back to the 7 day window, matching the reports screen.
    """
    now = now or utcnow()
    key = range_key if range_key in REPORT_RANGES else DEFAULT_REPORT_RANGE
    span = REPORT_RANGES[key]
    start = now - span if span is not None else datetime(1970, 1, 1)
    return key, start, now


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
