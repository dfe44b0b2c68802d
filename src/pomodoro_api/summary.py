from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .errors import BadRequestError
from .models import SessionEntity, SessionKind
from .repositories import Repository, SessionQuery
from .schemas import DailySummary, SummaryOut
from .utils import day_window, elapsed_minutes, parse_calendar_date, to_utc

INVALID_DATE_MESSAGE = "Invalid date format. Use YYYY-MM-DD."
RANGE_ORDER_MESSAGE = "'to' must be greater than or equal to 'from'."


def _counted_minutes(session: SessionEntity) -> int:
    # Running sessions without an explicit value contribute nothing
    if session["actual_minutes"] is not None:
        return session["actual_minutes"]
    if session["ended_at"] is not None:
        return elapsed_minutes(session["started_at"], session["ended_at"])
    return 0


# PUBLIC_INTERFACE
def aggregate_days(sessions: Iterable[SessionEntity], start: date, end: date) -> List[DailySummary]:
    """
    Bucket sessions by the UTC date of started_at and total each day in [start, end].

    Every day of the range is present, ascending, including days without
    sessions. Sessions outside the range are ignored.
    """
    buckets: Dict[date, DailySummary] = {}
    for s in sessions:
        day = to_utc(s["started_at"]).date()
        if day < start or day > end:
            continue
        bucket = buckets.setdefault(day, DailySummary(date=day))
        minutes = _counted_minutes(s)
        if s["kind"] == SessionKind.FOCUS:
            bucket.focus_minutes += minutes
        else:
            bucket.break_minutes += minutes
        bucket.total_sessions += 1
        if s["ended_at"] is not None:
            bucket.completed_sessions += 1

    days: List[DailySummary] = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        days.append(buckets[day] if day in buckets else DailySummary(date=day))
    return days


# PUBLIC_INTERFACE
def get_summary(repo: Repository, from_value: Optional[str], to_value: Optional[str]) -> SummaryOut:
    """
    Build the dense daily summary for the inclusive range [from, to].

    Raises BadRequestError when either bound is not a YYYY-MM-DD date or when
    'to' precedes 'from'.
    """
    first = parse_calendar_date(from_value)
    last = parse_calendar_date(to_value)
    if first is None or last is None:
        raise BadRequestError(INVALID_DATE_MESSAGE)
    if last < first:
        raise BadRequestError(RANGE_ORDER_MESSAGE)

    window_start, window_end = day_window(first, last)
    sessions = repo.list_sessions(
        SessionQuery(started_from=window_start, started_before=window_end, newest_first=False)
    )
    return SummaryOut(from_=first, to=last, days=aggregate_days(sessions, first, last))
