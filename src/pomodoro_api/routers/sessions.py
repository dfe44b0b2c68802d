from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from .. import sessions as lifecycle
from ..repositories import Repository, get_repository
from ..schemas import SessionCreate, SessionOut, SessionUpdate

router = APIRouter(
    prefix="/api/sessions",
    tags=["sessions"],
)


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    return repo


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Start Session",
    description="Start a focus or break session for a task. A task can have only one running session.",
    responses={
        201: {"description": "Session started"},
        400: {"description": "Validation error"},
        404: {"description": "Task not found"},
        409: {"description": "The task already has a running session"},
    },
)
def start_session(
    payload: SessionCreate, response: Response, repo: Repository = Depends(_get_repo)
) -> SessionOut:
    """
    Start a session and point the Location header at it.
    """
    started = SessionOut.from_entity(lifecycle.start_session(repo, payload))
    response.headers["Location"] = f"{router.prefix}/{started.id}"
    return started


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[SessionOut],
    summary="List Sessions",
    description=(
        "List sessions, newest first.\n\n"
        "Query parameters:\n"
        "- date: YYYY-MM-DD; only sessions started on that UTC day are returned"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid date format"},
    },
)
def list_sessions(
    date: Optional[str] = Query(None, description="UTC calendar day, YYYY-MM-DD"),
    repo: Repository = Depends(_get_repo),
) -> List[SessionOut]:
    """
    List sessions, optionally for one UTC day.
    """
    return [SessionOut.from_entity(s) for s in lifecycle.list_sessions(repo, date)]


# PUBLIC_INTERFACE
@router.get(
    "/{session_id}",
    response_model=SessionOut,
    summary="Get Session",
    description="Get a single session by ID.",
    responses={
        200: {"description": "Session found"},
        404: {"description": "Session not found"},
    },
)
def get_session(session_id: int, repo: Repository = Depends(_get_repo)) -> SessionOut:
    """
    Get a session by ID.
    """
    return SessionOut.from_entity(lifecycle.get_session(repo, session_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{session_id}/complete",
    response_model=SessionOut,
    summary="Complete Session",
    description=(
        "Complete a running session. endedAt defaults to now; actualMinutes defaults to "
        "the elapsed whole minutes and overrides it when given."
    ),
    responses={
        200: {"description": "Session completed"},
        400: {"description": "Validation error"},
        404: {"description": "Session not found"},
        409: {"description": "Session already completed"},
    },
)
def complete_session(
    session_id: int,
    payload: Optional[SessionUpdate] = Body(default=None),
    repo: Repository = Depends(_get_repo),
) -> SessionOut:
    """
    Complete a session. An absent body behaves like an empty one.
    """
    completed = lifecycle.complete_session(repo, session_id, payload or SessionUpdate())
    return SessionOut.from_entity(completed)
