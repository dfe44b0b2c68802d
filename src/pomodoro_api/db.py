from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .models import SessionEntity, SessionKind, TaskEntity
from .repositories import (
    Repository,
    SessionQuery,
    active_session_conflict,
    missing_task,
)
from .schemas import SessionCreate, TaskCreate, TaskUpdate
from .utils import to_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    note: str = "note"
    estimated_pomos: str = "estimated_pomos"
    is_archived: str = "is_archived"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _SessionCols:
    table: str = "sessions"
    id: str = "id"
    task_id: str = "task_id"
    kind: str = "kind"
    planned_minutes: str = "planned_minutes"
    actual_minutes: str = "actual_minutes"
    started_at: str = "started_at"
    ended_at: str = "ended_at"


_T = _TaskCols()
_S = _SessionCols()


def _ts(value: datetime) -> str:
    # Fixed-width UTC text keeps lexical order equal to chronological order
    return to_utc(value).isoformat(timespec="microseconds")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return to_utc(datetime.fromisoformat(value))


class SQLiteRepository(Repository):
    """
    SQLite repository. Each operation opens its own connection and commits on success.

    One running session per task is enforced by a unique partial index, so the
    check cannot race with a concurrent insert.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("SQLite storage ready db=%s", db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.title} TEXT NOT NULL,
                    {_T.note} TEXT NULL,
                    {_T.estimated_pomos} INTEGER NULL,
                    {_T.is_archived} INTEGER NOT NULL DEFAULT 0,
                    {_T.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_S.table} (
                    {_S.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_S.task_id} INTEGER NOT NULL
                        REFERENCES {_T.table}({_T.id}) ON DELETE CASCADE,
                    {_S.kind} TEXT NOT NULL,
                    {_S.planned_minutes} INTEGER NOT NULL,
                    {_S.actual_minutes} INTEGER NULL,
                    {_S.started_at} TEXT NOT NULL,
                    {_S.ended_at} TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_is_archived ON {_T.table}({_T.is_archived})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_S.table}_started_at ON {_S.table}({_S.started_at})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_S.table}_task_id ON {_S.table}({_S.task_id})"
            )
            conn.execute(
                f"""
                CREATE UNIQUE INDEX IF NOT EXISTS ux_{_S.table}_active_task
                ON {_S.table}({_S.task_id}) WHERE {_S.ended_at} IS NULL
                """
            )

    def _row_to_task(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_T.id]),
            "title": str(row[_T.title]),
            "note": row[_T.note],
            "estimated_pomos": row[_T.estimated_pomos],
            "is_archived": bool(row[_T.is_archived]),
            "created_at": _parse_ts(row[_T.created_at]),  # type: ignore
        }

    def _row_to_session(self, row: sqlite3.Row) -> SessionEntity:
        # Kind is stored by name ("Focus"/"Break") so the table reads on its own
        return {
            "id": int(row[_S.id]),
            "task_id": int(row[_S.task_id]),
            "kind": SessionKind[str(row[_S.kind]).upper()],
            "planned_minutes": int(row[_S.planned_minutes]),
            "actual_minutes": row[_S.actual_minutes],
            "started_at": _parse_ts(row[_S.started_at]),  # type: ignore
            "ended_at": _parse_ts(row[_S.ended_at]),
        }

    def _fetch_task(self, conn: sqlite3.Connection, task_id: int) -> Optional[TaskEntity]:
        row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def _fetch_session(self, conn: sqlite3.Connection, session_id: int) -> Optional[SessionEntity]:
        row = conn.execute(f"SELECT * FROM {_S.table} WHERE {_S.id} = ?", (session_id,)).fetchone()
        return self._row_to_session(row) if row else None

    # ---- tasks ----

    def create_task(self, data: TaskCreate) -> TaskEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.title}, {_T.note}, {_T.estimated_pomos},
                    {_T.is_archived}, {_T.created_at})
                VALUES (?, ?, ?, 0, ?)
                """,
                (data.title, data.note, data.estimated_pomos, _ts(utcnow())),
            )
            created = self._fetch_task(conn, int(cur.lastrowid))
            assert created is not None
            return created

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            return self._fetch_task(conn, task_id)

    def update_task(self, task_id: int, data: TaskUpdate) -> Optional[TaskEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = ?, {_T.note} = ?, {_T.estimated_pomos} = ?, {_T.is_archived} = ?
                WHERE {_T.id} = ?
                """,
                (
                    data.title,
                    data.note,
                    data.estimated_pomos,
                    1 if data.is_archived else 0,
                    task_id,
                ),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_task(conn, task_id)

    def delete_task(self, task_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (task_id,))
            return cur.rowcount > 0

    def list_tasks(self, archived: Optional[bool] = None) -> List[TaskEntity]:
        where_sql = ""
        params: list = []
        if archived is not None:
            where_sql = f"WHERE {_T.is_archived} = ?"
            params.append(1 if archived else 0)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.table} {where_sql} ORDER BY {_T.id} ASC", params
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    # ---- sessions ----

    def create_session(self, data: SessionCreate) -> SessionEntity:
        with self._conn() as conn:
            if self._fetch_task(conn, data.task_id) is None:
                raise missing_task(data.task_id)
            try:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_S.table} ({_S.task_id}, {_S.kind}, {_S.planned_minutes},
                        {_S.actual_minutes}, {_S.started_at}, {_S.ended_at})
                    VALUES (?, ?, ?, NULL, ?, NULL)
                    """,
                    (
                        data.task_id,
                        SessionKind(data.kind).name.capitalize(),
                        data.planned_minutes,
                        _ts(data.started_at),
                    ),
                )
            except sqlite3.IntegrityError as e:
                # Either the partial unique index fired, or the task vanished in between
                if self._fetch_task(conn, data.task_id) is None:
                    raise missing_task(data.task_id) from e
                raise active_session_conflict(data.task_id) from e
            created = self._fetch_session(conn, int(cur.lastrowid))
            assert created is not None
            return created

    def get_session(self, session_id: int) -> Optional[SessionEntity]:
        with self._conn() as conn:
            return self._fetch_session(conn, session_id)

    def complete_session(
        self, session_id: int, ended_at: datetime, actual_minutes: Optional[int]
    ) -> Optional[SessionEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_S.table}
                SET {_S.ended_at} = ?, {_S.actual_minutes} = ?
                WHERE {_S.id} = ? AND {_S.ended_at} IS NULL
                """,
                (_ts(ended_at), actual_minutes, session_id),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_session(conn, session_id)

    def list_sessions(self, query: Optional[SessionQuery] = None) -> List[SessionEntity]:
        q = query or SessionQuery()
        clauses = []
        params: list = []

        if q.started_from is not None:
            clauses.append(f"{_S.started_at} >= ?")
            params.append(_ts(q.started_from))
        if q.started_before is not None:
            clauses.append(f"{_S.started_at} < ?")
            params.append(_ts(q.started_before))
        if q.task_id is not None:
            clauses.append(f"{_S.task_id} = ?")
            params.append(q.task_id)
        if q.active_only:
            clauses.append(f"{_S.ended_at} IS NULL")

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if q.newest_first else "ASC"
        order_sql = f"ORDER BY {_S.started_at} {direction}, {_S.id} {direction}"

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_S.table} {where_sql} {order_sql}", params
            ).fetchall()
            return [self._row_to_session(r) for r in rows]
