# src/task_reminder/reminders/alarm_store.py

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import ExactAlarmNotPermitted
from ..storage.sqlite import connect, table_columns

logger = logging.getLogger(__name__)

_ALARM_COLUMNS = "task_id, wake_at_ms, deliver_after_ms, title, body, big_text, exact, created_at"


@dataclass(frozen=True, slots=True)
class Alarm:
    task_id: int
    wake_at_ms: int
    deliver_after_ms: int  # == wake_at_ms for exact alarms
    title: str
    body: str
    big_text: str | None
    exact: bool
    alarm_id: int = 0  # row id; a re-armed task gets a new one, ids are never reused


class AlarmStore:
    """
    SQLite-backed one-shot alarms, at most one per task id.

    This is the local stand-in for a platform alarm service:
    - set_exact() fires at the wake time, but only if exact alarms are allowed
      (otherwise it raises ExactAlarmNotPermitted, like a missing privilege)
    - set_inexact() may fire up to inexact_window_ms late
    - setting an alarm for a task id replaces the previous one (new alarm_id)

    Firing goes through three steps keyed by alarm_id:
    try_claim() marks the row in flight, then complete() removes it after
    delivery or rearm() puts it back for a retry. cancel() deletes the row in
    any state, so a task closed mid-delivery is never re-armed. Claims left by
    a dead process are released when the store opens.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path = "alarms.sqlite3",
        *,
        allow_exact: bool = True,
        inexact_window_ms: int = 600_000,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self.allow_exact = bool(allow_exact)
        self.inexact_window_ms = max(0, int(inexact_window_ms))
        self._ensure_schema()
        released = self._release_claims()
        logger.info(
            "AlarmStore ready db=%s pending=%s exact=%s released_claims=%s",
            self._db_path,
            self.count_alarms(),
            self.allow_exact,
            released,
        )

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self._db_path)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'alarm_table'")
            legacy = cur.fetchone() is not None and "id" not in table_columns(cur, "alarm_table")
            if legacy:
                # Old layout keyed rows by task_id; rebuild with a row id.
                cur.execute("ALTER TABLE alarm_table RENAME TO alarm_table_old")
                cur.execute("DROP INDEX IF EXISTS idx_alarm_deliver")

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS alarm_table (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL UNIQUE,
                    wake_at_ms INTEGER NOT NULL,
                    deliver_after_ms INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    big_text TEXT,
                    exact INTEGER NOT NULL DEFAULT 1,
                    created_at REAL NOT NULL,
                    claimed_at REAL
                )
                """
            )

            if legacy:
                cur.execute(
                    f"INSERT INTO alarm_table({_ALARM_COLUMNS}) SELECT {_ALARM_COLUMNS} FROM alarm_table_old"
                )
                cur.execute("DROP TABLE alarm_table_old")
                logger.info("Schema migration: alarm_table rebuilt with row ids")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_alarm_deliver ON alarm_table(deliver_after_ms)")
            conn.commit()
        finally:
            conn.close()

    def _release_claims(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("UPDATE alarm_table SET claimed_at = NULL WHERE claimed_at IS NOT NULL")
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    @staticmethod
    def _row_to_alarm(row: sqlite3.Row) -> Alarm:
        return Alarm(
            task_id=int(row["task_id"]),
            wake_at_ms=int(row["wake_at_ms"]),
            deliver_after_ms=int(row["deliver_after_ms"]),
            title=str(row["title"] or ""),
            body=str(row["body"] or ""),
            big_text=row["big_text"],
            exact=bool(row["exact"]),
            alarm_id=int(row["id"]),
        )

    def _put(self, alarm: Alarm) -> None:
        conn = self._get_conn()
        try:
            # REPLACE drops the old row (claimed or not) and assigns a fresh id.
            conn.execute(
                f"""
                INSERT OR REPLACE INTO alarm_table({_ALARM_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(alarm.task_id),
                    int(alarm.wake_at_ms),
                    int(alarm.deliver_after_ms),
                    alarm.title,
                    alarm.body,
                    alarm.big_text,
                    int(alarm.exact),
                    time.time(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- alarm backend ----

    def set_exact(self, task_id: int, wake_at_ms: int, title: str, body: str, big_text: str | None) -> None:
        if not self.allow_exact:
            raise ExactAlarmNotPermitted()
        self._put(Alarm(task_id, wake_at_ms, wake_at_ms, title, body, big_text, True))
        logger.debug("Exact alarm set task_id=%s wake_at=%s", task_id, wake_at_ms)

    def set_inexact(self, task_id: int, wake_at_ms: int, title: str, body: str, big_text: str | None) -> None:
        deliver_after = int(wake_at_ms) + self.inexact_window_ms
        self._put(Alarm(task_id, wake_at_ms, deliver_after, title, body, big_text, False))
        logger.debug("Inexact alarm set task_id=%s wake_at=%s deliver_after=%s", task_id, wake_at_ms, deliver_after)

    def cancel(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM alarm_table WHERE task_id = ?", (int(task_id),))
            conn.commit()
            if cur.rowcount:
                logger.debug("Alarm cancelled task_id=%s", task_id)
        finally:
            conn.close()

    def pending_task_ids(self) -> set[int]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT task_id FROM alarm_table")
            return {int(r["task_id"]) for r in cur.fetchall()}
        finally:
            conn.close()

    # ---- dispatcher API ----

    def get(self, task_id: int) -> Alarm | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM alarm_table WHERE task_id = ?", (int(task_id),))
            row = cur.fetchone()
            return self._row_to_alarm(row) if row else None
        finally:
            conn.close()

    def list_due(self, *, now_ms: int, limit: int = 32) -> list[Alarm]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM alarm_table
                WHERE claimed_at IS NULL AND deliver_after_ms <= ?
                ORDER BY deliver_after_ms ASC, task_id ASC
                    LIMIT ?
                """,
                (int(now_ms), int(limit)),
            )
            return [self._row_to_alarm(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def try_claim(self, alarm: Alarm) -> bool:
        """
        Mark the alarm in flight if it is still the row we listed.

        A task re-armed (new alarm_id) or cancelled since list_due() is left alone.
        Returns True if the caller now owns this one-shot firing.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "UPDATE alarm_table SET claimed_at = ? WHERE id = ? AND claimed_at IS NULL",
                (time.time(), int(alarm.alarm_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def complete(self, alarm: Alarm) -> None:
        """Drop a claimed alarm after delivery."""
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM alarm_table WHERE id = ?", (int(alarm.alarm_id),))
            conn.commit()
        finally:
            conn.close()

    def rearm(self, alarm: Alarm, *, deliver_after_ms: int) -> bool:
        """
        Release a claimed alarm for a later retry.

        No-op (returns False) if the task was cancelled or re-armed meanwhile.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE alarm_table
                SET deliver_after_ms = ?, claimed_at = NULL
                WHERE id = ? AND claimed_at IS NOT NULL
                """,
                (int(deliver_after_ms), int(alarm.alarm_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def count_alarms(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM alarm_table")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()
