from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class SessionKind(IntEnum):
    """Kind of a Pomodoro interval. Serialized as its integer value."""

    FOCUS = 0
    BREAK = 1


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Stored representation of a task.

    Fields:
    - id: Unique integer identifier
    - title: Short title (1..100 chars, trimmed on input via schemas)
    - note: Optional free-form note (<= 1000 chars)
    - estimated_pomos: Optional estimate of focus intervals (1..100)
    - is_archived: Archived flag, False on creation
    - created_at: UTC creation timestamp, never changed after insert
    """

    id: int
    title: str
    note: Optional[str]
    estimated_pomos: Optional[int]
    is_archived: bool
    created_at: datetime


# PUBLIC_INTERFACE
class SessionEntity(TypedDict):
    """
    Stored representation of a focus/break session.

    A session is running while ended_at is None. actual_minutes stays None until
    completion unless a caller supplies it.
    """

    id: int
    task_id: int
    kind: SessionKind
    planned_minutes: int
    actual_minutes: Optional[int]
    started_at: datetime
    ended_at: Optional[datetime]
