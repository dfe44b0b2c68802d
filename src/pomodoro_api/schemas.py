from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constraints import (
    ACTUAL_MINUTES_MAX,
    ACTUAL_MINUTES_MIN,
    ESTIMATED_POMOS_MAX,
    ESTIMATED_POMOS_MIN,
    NOTE_MAX_LENGTH,
    PLANNED_MINUTES_MAX,
    PLANNED_MINUTES_MIN,
    TITLE_MAX_LENGTH,
)
from .models import SessionEntity, SessionKind, TaskEntity
from .utils import elapsed_minutes, to_utc

# Status labels derived from ended_at
STATUS_RUNNING = "Running"
STATUS_COMPLETED = "Completed"

# Field "date" below would shadow the type inside the class body
CalendarDay = date


class CamelModel(BaseModel):
    """
    Base model exchanging camelCase JSON while keeping snake_case attributes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("title is required")
    s = v.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


def _utc_or_none(v: Optional[datetime]) -> Optional[datetime]:
    return None if v is None else to_utc(v)


# PUBLIC_INTERFACE
class TaskCreate(CamelModel):
    """
    Schema for creating a new task. New tasks are never archived.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write quarterly report",
                "note": "Sections 1-3 first",
                "estimatedPomos": 4,
            }
        }
    )

    title: str = Field(..., description=f"Task title, 1-{TITLE_MAX_LENGTH} characters after trimming")
    note: Optional[str] = Field(default=None, description="Optional note", max_length=NOTE_MAX_LENGTH)
    estimated_pomos: Optional[int] = Field(
        default=None,
        description="Estimated number of focus sessions",
        ge=ESTIMATED_POMOS_MIN,
        le=ESTIMATED_POMOS_MAX,
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..100 length.
        """
        return _clean_title(v)


# PUBLIC_INTERFACE
class TaskUpdate(CamelModel):
    """
    Full-field update of a task. Omitted optional fields are cleared and an
    omitted isArchived means "not archived".
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write quarterly report",
                "note": None,
                "estimatedPomos": 5,
                "isArchived": True,
            }
        }
    )

    title: str = Field(..., description=f"Task title, 1-{TITLE_MAX_LENGTH} characters after trimming")
    note: Optional[str] = Field(default=None, description="Optional note", max_length=NOTE_MAX_LENGTH)
    estimated_pomos: Optional[int] = Field(
        default=None,
        description="Estimated number of focus sessions",
        ge=ESTIMATED_POMOS_MIN,
        le=ESTIMATED_POMOS_MAX,
    )
    is_archived: bool = Field(default=False, description="Archived flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)


# PUBLIC_INTERFACE
class TaskOut(CamelModel):
    """
    Task as returned by the API.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Write quarterly report",
                "note": "Sections 1-3 first",
                "estimatedPomos": 4,
                "isArchived": False,
                "createdAt": "2024-01-01T09:00:00Z",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str
    note: Optional[str] = None
    estimated_pomos: Optional[int] = None
    is_archived: bool
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")


# PUBLIC_INTERFACE
class SessionCreate(CamelModel):
    """
    Schema for starting a session. The session starts in the Running state.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "taskId": 1,
                "kind": 0,
                "plannedMinutes": 25,
                "startedAt": "2024-01-01T09:00:00Z",
            }
        }
    )

    task_id: int = Field(..., description="Task the session belongs to")
    kind: SessionKind = Field(..., description="0 = Focus, 1 = Break")
    planned_minutes: int = Field(..., ge=PLANNED_MINUTES_MIN, le=PLANNED_MINUTES_MAX)
    started_at: datetime = Field(..., description="Start time; values without an offset are UTC")

    @field_validator("started_at")
    @classmethod
    def normalize_started_at(cls, v: datetime) -> datetime:
        return to_utc(v)


# PUBLIC_INTERFACE
class SessionUpdate(CamelModel):
    """
    Body of the completion call. Both fields are optional.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"actualMinutes": 24, "endedAt": "2024-01-01T09:25:00Z"}}
    )

    actual_minutes: Optional[int] = Field(
        default=None,
        description="Overrides the computed duration when given",
        ge=ACTUAL_MINUTES_MIN,
        le=ACTUAL_MINUTES_MAX,
    )
    ended_at: Optional[datetime] = Field(
        default=None, description="End time; defaults to the time of the request"
    )

    @field_validator("ended_at")
    @classmethod
    def normalize_ended_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc_or_none(v)


# PUBLIC_INTERFACE
class SessionOut(CamelModel):
    """
    Session as returned by the API, including the derived status and duration.
    """

    id: int
    task_id: int
    kind: SessionKind
    planned_minutes: int
    actual_minutes: Optional[int] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: str = Field(..., description="'Running' or 'Completed'")
    duration_minutes: Optional[int] = Field(
        default=None, description="actualMinutes, else elapsed minutes once ended"
    )

    @classmethod
    def from_entity(cls, entity: SessionEntity) -> "SessionOut":
        return cls(
            **entity,
            status=session_status(entity),
            duration_minutes=duration_minutes(entity),
        )


# PUBLIC_INTERFACE
class DailySummary(CamelModel):
    """Totals for one UTC calendar day."""

    date: CalendarDay
    focus_minutes: int = 0
    break_minutes: int = 0
    total_sessions: int = 0
    completed_sessions: int = 0


# PUBLIC_INTERFACE
class SummaryOut(CamelModel):
    """
    Dense per-day summary for the inclusive range [from, to].
    """

    from_: date = Field(..., alias="from")
    to: date
    days: List[DailySummary]


# PUBLIC_INTERFACE
def session_status(entity: SessionEntity) -> str:
    """Return 'Completed' once ended_at is set, otherwise 'Running'."""
    return STATUS_COMPLETED if entity["ended_at"] is not None else STATUS_RUNNING


# PUBLIC_INTERFACE
def duration_minutes(entity: SessionEntity) -> Optional[int]:
    """
    actual_minutes when present, else whole elapsed minutes for an ended session,
    else None.
    """
    if entity["actual_minutes"] is not None:
        return entity["actual_minutes"]
    if entity["ended_at"] is not None:
        return elapsed_minutes(entity["started_at"], entity["ended_at"])
    return None


def task_out(entity: TaskEntity) -> TaskOut:
    return TaskOut(**entity)
