# src/task_reminder/tasks/task_store.py

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from ..storage.sqlite import column_adder, connect
from .task_models import DEFAULT_REMINDER_MINUTES, Task, TaskPriority

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store (task_table).

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Every task belongs to exactly one row of user_table; deleting that row removes
    the task (ON DELETE CASCADE). There is no caching layer: reads always reflect
    every committed write.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self._db_path)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS task_table (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_name TEXT NOT NULL,
                    due_date INTEGER NOT NULL,
                    reminder_minutes_before INTEGER NOT NULL DEFAULT {DEFAULT_REMINDER_MINUTES},
                    priority TEXT NOT NULL DEFAULT 'NORMAL',
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    user_id INTEGER NOT NULL
                        REFERENCES user_table(id) ON DELETE CASCADE
                )
                """
            )

            # Databases created before reminders/priorities existed lack these.
            add_col = column_adder(cur, "task_table")
            add_col("reminder_minutes_before", f"INTEGER NOT NULL DEFAULT {DEFAULT_REMINDER_MINUTES}")
            add_col("priority", "TEXT NOT NULL DEFAULT 'NORMAL'")

            cur.execute("CREATE INDEX IF NOT EXISTS index_task_table_user_id ON task_table(user_id)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        reminder = row["reminder_minutes_before"]
        return Task(
            id=int(row["id"]),
            task_name=str(row["task_name"] or ""),
            due_date=int(row["due_date"] or 0),
            reminder_minutes_before=int(reminder) if reminder is not None else DEFAULT_REMINDER_MINUTES,
            priority=TaskPriority.from_db(row["priority"]),
            is_completed=bool(row["is_completed"]),
            user_id=int(row["user_id"]),
        )

    def _fetch_all(self, sql: str, params: tuple) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM task_table")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def insert(self, task: Task) -> int:
        """Insert and return the new id (task.id is ignored)."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO task_table(
                    task_name, due_date, reminder_minutes_before,
                    priority, is_completed, user_id
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    task.task_name,
                    int(task.due_date),
                    int(task.reminder_minutes_before),
                    task.priority.name,
                    int(task.is_completed),
                    int(task.user_id),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for task insert")
            task_id = int(rowid)
            logger.debug(
                "Task added id=%s user_id=%s due_date=%s priority=%s",
                task_id,
                task.user_id,
                task.due_date,
                task.priority.name,
            )
            return task_id
        finally:
            conn.close()

    def update(self, task: Task) -> bool:
        """Replace every column of the row with task.id. Returns True if a row matched."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE task_table
                SET task_name = ?,
                    due_date = ?,
                    reminder_minutes_before = ?,
                    priority = ?,
                    is_completed = ?,
                    user_id = ?
                WHERE id = ?
                """,
                (
                    task.task_name,
                    int(task.due_date),
                    int(task.reminder_minutes_before),
                    task.priority.name,
                    int(task.is_completed),
                    int(task.user_id),
                    int(task.id),
                ),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete(self, task: Task) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM task_table WHERE id = ?", (int(task.id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_all_for_user(self, user_id: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM task_table WHERE user_id = ?", (int(user_id),))
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    def get_by_id(self, task_id: int) -> Task | None:
        rows = self._fetch_all("SELECT * FROM task_table WHERE id = ? LIMIT 1", (int(task_id),))
        return rows[0] if rows else None

    def list_by_user(self, user_id: int) -> list[Task]:
        """All tasks owned by user_id, soonest due first."""
        return self._fetch_all(
            "SELECT * FROM task_table WHERE user_id = ? ORDER BY due_date ASC, id ASC",
            (int(user_id),),
        )

    def list_incomplete(self) -> list[Task]:
        """Every incomplete task across users (reminder reconciliation)."""
        return self._fetch_all(
            "SELECT * FROM task_table WHERE is_completed = 0 ORDER BY due_date ASC, id ASC",
            (),
        )
