"""
Session lifecycle: start, complete, fetch and list focus/break sessions.

A task has at most one running session. Completion happens exactly once and
fills in actual_minutes from the elapsed time unless the caller supplies it.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from .errors import BadRequestError, ConflictError, NotFoundError
from .models import SessionEntity
from .repositories import Repository, SessionQuery, active_session_conflict, missing_task
from .schemas import SessionCreate, SessionUpdate
from .utils import day_window, elapsed_minutes, parse_calendar_date, to_utc, utcnow

logger = logging.getLogger(__name__)

INVALID_DATE_MESSAGE = "Invalid date format. Use YYYY-MM-DD format."
END_BEFORE_START_MESSAGE = "'endedAt' must not be earlier than 'startedAt'."


def already_completed(session_id: int) -> ConflictError:
    return ConflictError(f"Session with ID {session_id} is already completed.")


# PUBLIC_INTERFACE
def start_session(repo: Repository, payload: SessionCreate) -> SessionEntity:
    """
    Start a running session for an existing task.

    Raises:
        NotFoundError: the task does not exist.
        ConflictError: the task already has a session without an end time.
    """
    if repo.get_task(payload.task_id) is None:
        raise missing_task(payload.task_id)

    if repo.find_active_session(payload.task_id) is not None:
        logger.info("Rejected session start: task_id=%s already has a running session", payload.task_id)
        raise active_session_conflict(payload.task_id)

    # The store re-checks both conditions inside the insert
    created = repo.create_session(payload)
    logger.info(
        "Session started id=%s task_id=%s kind=%s planned=%s",
        created["id"],
        created["task_id"],
        created["kind"].name,
        created["planned_minutes"],
    )
    return created


# PUBLIC_INTERFACE
def complete_session(
    repo: Repository,
    session_id: int,
    payload: SessionUpdate,
    now: Optional[datetime] = None,
) -> SessionEntity:
    """
    Complete a running session.

    The end time is payload.ended_at, or `now` (defaulting to the current UTC
    time). actual_minutes is computed from the elapsed whole minutes when the
    session has none yet; an explicit payload.actual_minutes replaces it.

    Raises:
        NotFoundError: no session with this id.
        ConflictError: the session already has an end time.
        BadRequestError: the end time precedes the start time.
    """
    session = repo.get_session(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if session["ended_at"] is not None:
        logger.info("Rejected completion: session id=%s already completed", session_id)
        raise already_completed(session_id)

    effective_end = to_utc(payload.ended_at) if payload.ended_at is not None else to_utc(now or utcnow())
    if effective_end < session["started_at"]:
        raise BadRequestError(END_BEFORE_START_MESSAGE)

    actual = session["actual_minutes"]
    if actual is None:
        actual = elapsed_minutes(session["started_at"], effective_end)
    if payload.actual_minutes is not None:
        actual = payload.actual_minutes

    completed = repo.complete_session(session_id, effective_end, actual)
    if completed is None:
        # Lost a race with another completion
        raise already_completed(session_id)

    logger.info("Session completed id=%s actual_minutes=%s", session_id, actual)
    return completed


# PUBLIC_INTERFACE
def get_session(repo: Repository, session_id: int) -> SessionEntity:
    """Return a session or raise NotFoundError."""
    session = repo.get_session(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session


# PUBLIC_INTERFACE
def list_sessions(repo: Repository, date: Optional[str] = None) -> List[SessionEntity]:
    """
    List sessions newest first, optionally limited to one UTC calendar day.

    An empty or missing date means no filter. Anything else must be a strict
    YYYY-MM-DD date or BadRequestError is raised.
    """
    if not date:
        return repo.list_sessions(SessionQuery(newest_first=True))

    day = parse_calendar_date(date)
    if day is None:
        raise BadRequestError(INVALID_DATE_MESSAGE)

    start, end = day_window(day)
    return repo.list_sessions(
        SessionQuery(started_from=start, started_before=end, newest_first=True)
    )
