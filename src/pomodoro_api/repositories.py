from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import Iterable, List, Optional

from .errors import ConflictError, NotFoundError
from .models import SessionEntity, TaskEntity
from .schemas import SessionCreate, TaskCreate, TaskUpdate
from .settings import get_settings
from .utils import to_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionQuery:
    """
    Filters for listing sessions.

    started_from is inclusive and started_before exclusive, both compared
    against started_at in UTC.
    """
    started_from: Optional[datetime] = None
    started_before: Optional[datetime] = None
    task_id: Optional[int] = None
    active_only: bool = False
    newest_first: bool = True


def active_session_conflict(task_id: int) -> ConflictError:
    return ConflictError(f"There is already an active session for Task ID {task_id}.")


def missing_task(task_id: int) -> NotFoundError:
    return NotFoundError(f"Task with ID {task_id} not found.")


# PUBLIC_INTERFACE
class Repository(ABC):
    """Storage contract for tasks and their sessions."""

    @abstractmethod
    def create_task(self, data: TaskCreate) -> TaskEntity:
        """Create and return a new, unarchived TaskEntity."""

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        """Return a TaskEntity by id, or None if not found."""

    @abstractmethod
    def update_task(self, task_id: int, data: TaskUpdate) -> Optional[TaskEntity]:
        """Replace the mutable fields of a task. Return the updated entity or None if not found."""

    @abstractmethod
    def delete_task(self, task_id: int) -> bool:
        """Delete a task and its sessions. Return True if deleted, False if not found."""

    @abstractmethod
    def list_tasks(self, archived: Optional[bool] = None) -> List[TaskEntity]:
        """Return tasks ordered by id, optionally filtered by archived flag."""

    @abstractmethod
    def create_session(self, data: SessionCreate) -> SessionEntity:
        """
        Insert a running session.

        Raises NotFoundError if the task does not exist and ConflictError if the
        task already has a running session. Both checks happen within the write.
        """

    @abstractmethod
    def get_session(self, session_id: int) -> Optional[SessionEntity]:
        """Return a SessionEntity by id, or None if not found."""

    @abstractmethod
    def complete_session(
        self, session_id: int, ended_at: datetime, actual_minutes: Optional[int]
    ) -> Optional[SessionEntity]:
        """
        Set ended_at and actual_minutes on a running session.

        Returns None when no running session with that id exists, so a session
        completed concurrently is never completed twice.
        """

    @abstractmethod
    def list_sessions(self, query: Optional[SessionQuery] = None) -> List[SessionEntity]:
        """Return sessions matching the query, ordered by started_at."""

    def find_active_session(self, task_id: int) -> Optional[SessionEntity]:
        """Return the running session of a task, if any."""
        found = self.list_sessions(SessionQuery(task_id=task_id, active_only=True))
        return found[0] if found else None


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._tasks: dict[int, TaskEntity] = {}
        self._sessions: dict[int, SessionEntity] = {}
        self._next_task_id = 1
        self._next_session_id = 1

    def _now(self) -> datetime:
        return utcnow()

    # ---- tasks ----

    def create_task(self, data: TaskCreate) -> TaskEntity:
        with self._lock:
            entity: TaskEntity = {
                "id": self._next_task_id,
                "title": data.title,
                "note": data.note,
                "estimated_pomos": data.estimated_pomos,
                "is_archived": False,
                "created_at": self._now(),
            }
            self._next_task_id += 1
            self._tasks[entity["id"]] = entity
            return entity.copy()

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._tasks.get(task_id)
            return None if item is None else item.copy()

    def update_task(self, task_id: int, data: TaskUpdate) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._tasks.get(task_id)
            if existing is None:
                return None

            # id and created_at are never touched
            updated = existing.copy()
            updated["title"] = data.title
            updated["note"] = data.note
            updated["estimated_pomos"] = data.estimated_pomos
            updated["is_archived"] = data.is_archived

            self._tasks[task_id] = updated
            return updated.copy()

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                return False
            orphaned = [sid for sid, s in self._sessions.items() if s["task_id"] == task_id]
            for sid in orphaned:
                del self._sessions[sid]
            return True

    def list_tasks(self, archived: Optional[bool] = None) -> List[TaskEntity]:
        with self._lock:
            items: Iterable[TaskEntity] = self._tasks.values()
            if archived is not None:
                items = [t for t in items if t["is_archived"] == archived]
            return [t.copy() for t in sorted(items, key=lambda t: t["id"])]

    # ---- sessions ----

    def create_session(self, data: SessionCreate) -> SessionEntity:
        with self._lock:
            if data.task_id not in self._tasks:
                raise missing_task(data.task_id)
            if any(
                s["task_id"] == data.task_id and s["ended_at"] is None
                for s in self._sessions.values()
            ):
                raise active_session_conflict(data.task_id)

            entity: SessionEntity = {
                "id": self._next_session_id,
                "task_id": data.task_id,
                "kind": data.kind,
                "planned_minutes": data.planned_minutes,
                "actual_minutes": None,
                "started_at": to_utc(data.started_at),
                "ended_at": None,
            }
            self._next_session_id += 1
            self._sessions[entity["id"]] = entity
            return entity.copy()

    def get_session(self, session_id: int) -> Optional[SessionEntity]:
        with self._lock:
            item = self._sessions.get(session_id)
            return None if item is None else item.copy()

    def complete_session(
        self, session_id: int, ended_at: datetime, actual_minutes: Optional[int]
    ) -> Optional[SessionEntity]:
        with self._lock:
            existing = self._sessions.get(session_id)
            if existing is None or existing["ended_at"] is not None:
                return None
            updated = existing.copy()
            updated["ended_at"] = to_utc(ended_at)
            updated["actual_minutes"] = actual_minutes
            self._sessions[session_id] = updated
            return updated.copy()

    def list_sessions(self, query: Optional[SessionQuery] = None) -> List[SessionEntity]:
        q = query or SessionQuery()
        with self._lock:
            items: Iterable[SessionEntity] = self._sessions.values()

            if q.started_from is not None:
                lower = to_utc(q.started_from)
                items = [s for s in items if s["started_at"] >= lower]
            if q.started_before is not None:
                upper = to_utc(q.started_before)
                items = [s for s in items if s["started_at"] < upper]
            if q.task_id is not None:
                items = [s for s in items if s["task_id"] == q.task_id]
            if q.active_only:
                items = [s for s in items if s["ended_at"] is None]

            # Ties on started_at fall back to id so the order is stable
            ordered = sorted(
                items, key=lambda s: (s["started_at"], s["id"]), reverse=q.newest_first
            )
            return [s.copy() for s in ordered]


@lru_cache(maxsize=1)
def _build_repository() -> Repository:
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory storage; data is lost on restart")
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by the stdlib sqlite3 module

    The instance is built once and reused by every request.
    """
    return _build_repository()
