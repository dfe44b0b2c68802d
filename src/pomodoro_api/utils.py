from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

_CALENDAR_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# PUBLIC_INTERFACE
def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are taken to already be in UTC; aware values are converted.
    Raises ValueError when the converted instant falls outside the datetime range.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError("timestamp out of range") from e


# PUBLIC_INTERFACE
def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD string.

    Returns None when the value is missing, not in that exact shape, or names a
    day that does not exist (e.g. 2024-02-30, 2024-13-01).
    """
    if value is None:
        return None
    s = value.strip()
    if not _CALENDAR_DATE.match(s):
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


# PUBLIC_INTERFACE
def start_of_day(day: date) -> datetime:
    """Return 00:00 UTC of the given calendar day."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


# PUBLIC_INTERFACE
def day_window(
    first: date, last: Optional[date] = None
) -> Tuple[datetime, Optional[datetime]]:
    """
    Return the half-open UTC interval [first 00:00, (last + 1) 00:00).

    With only `first` given the window covers that single day. When the last
    day is `date.max` the following midnight is not representable, so the
    upper bound is None (unbounded).
    """
    end_day = last if last is not None else first
    if end_day == date.max:
        return start_of_day(first), None
    return start_of_day(first), start_of_day(end_day + timedelta(days=1))


# PUBLIC_INTERFACE
def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero (10m59s -> 10)."""
    seconds = (to_utc(end) - to_utc(start)).total_seconds()
    return int(seconds / 60)
