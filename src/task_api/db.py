from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional

from .errors import DuplicateError
from .filters import DateRange, FilterSpec
from .migrate import migrate
from .models import NewTask, TaskEntity
from .repositories import Repository, duplicated_due_date, duplicated_name


@dataclass(frozen=True)
class _Cols:
    table: str = "task"
    id: str = "id"
    name: str = "name"
    completed: str = "completed"
    due_date: str = "dueDate"


_COLS = _Cols()

# Wire column name -> SQL column
_ORDER_COLUMNS = {"name": _COLS.name, "completed": _COLS.completed, "dueDate": _COLS.due_date}

# SQLite INTEGER bounds; ids outside them cannot exist
_MIN_ID = -(2**63)
_MAX_ID = 2**63 - 1


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    The schema comes from the bundled migrations, which declare name and
    dueDate UNIQUE; constraint violations surface as DuplicateError.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        with self._conn() as conn:
            migrate(conn)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_COLS.id]),
            "name": str(row[_COLS.name]),
            "completed": bool(row[_COLS.completed]),
            "due_date": row[_COLS.due_date],
        }

    def _get(self, conn: sqlite3.Connection, task_id: int) -> Optional[TaskEntity]:
        if not _MIN_ID <= task_id <= _MAX_ID:
            return None
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    @staticmethod
    def _duplicate(exc: sqlite3.IntegrityError, task: NewTask) -> DuplicateError:
        if f"{_COLS.table}.{_COLS.due_date}" in str(exc):
            return duplicated_due_date()
        return duplicated_name(task.name)

    def create_task(self, task: NewTask) -> TaskEntity:
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.name}, {_COLS.completed}, {_COLS.due_date})
                    VALUES (?, ?, ?)
                    """,
                    (task.name, 1 if task.completed else 0, task.due_date),
                )
            except sqlite3.IntegrityError as exc:
                raise self._duplicate(exc, task) from exc
            created = self._get(conn, cur.lastrowid)
            assert created is not None
            return created

    def _find(self, column: str, value: str) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {column} = ?", (value,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_task_by_name(self, name: str) -> Optional[TaskEntity]:
        return self._find(_COLS.name, name)

    def get_task_by_due_date(self, due_date: str) -> Optional[TaskEntity]:
        return self._find(_COLS.due_date, due_date)

    def delete_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            current = self._get(conn, task_id)
            if current is None:
                return None
            conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            return current

    def update_task(self, task_id: int, task: NewTask) -> Optional[TaskEntity]:
        with self._conn() as conn:
            if self._get(conn, task_id) is None:
                return None
            try:
                conn.execute(
                    f"""
                    UPDATE {_COLS.table}
                    SET {_COLS.name} = ?, {_COLS.completed} = ?, {_COLS.due_date} = ?
                    WHERE {_COLS.id} = ?
                    """,
                    (task.name, 1 if task.completed else 0, task.due_date, task_id),
                )
            except sqlite3.IntegrityError as exc:
                raise self._duplicate(exc, task) from exc
            return self._get(conn, task_id)

    def list_tasks(self, spec: Optional[FilterSpec] = None) -> List[TaskEntity]:
        q = spec or FilterSpec()
        where_sql = ""
        params: list = []

        if q.filter is not None:
            if q.filter.column == "name":
                where_sql = f"WHERE {_COLS.name} LIKE ? ESCAPE '\\'"
                params.append(f"%{_escape_like(str(q.filter.value))}%")
            elif q.filter.column == "completed":
                where_sql = f"WHERE {_COLS.completed} = ?"
                params.append(1 if q.filter.value else 0)
            else:
                rng = q.filter.value
                assert isinstance(rng, DateRange)
                where_sql = f"WHERE {_COLS.due_date} BETWEEN ? AND ?"
                params.extend([rng.from_, rng.to])

        terms = [
            f"{_ORDER_COLUMNS[o.column]} {'DESC' if o.decreasing else 'ASC'}" for o in q.order_by or ()
        ]
        # id keeps the order stable between equal rows
        terms.append(f"{_COLS.id} ASC")
        order_sql = f"ORDER BY {', '.join(terms)}"

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} {order_sql}", params
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
