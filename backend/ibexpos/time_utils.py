from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """Subscription arithmetic; Jan 31 + 1 month lands on the last day of February."""
    return value + relativedelta(months=months)


def as_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Drivers hand timezone-aware values back on Postgres and naive ones on SQLite."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a date or datetime sent by the desktop client.

    Blank input gives None. A bare date is midnight, naive values are taken
    as UTC, and offsets (including a trailing Z) are converted to UTC.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_naive_utc(datetime.fromisoformat(text))


def coerce_datetime(value) -> Optional[datetime]:
    """Accept datetime, date or ISO string from a JSON payload."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return parse_iso_datetime(str(value))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a trailing Z; naive input is already UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = as_naive_utc(dt)
    return dt.replace(microsecond=0).isoformat() + "Z"
