# src/task_reminder/users/user_store.py

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from ..core.errors import DuplicateEmailError
from ..storage.sqlite import column_adder, connect
from .user_models import User

logger = logging.getLogger(__name__)


class UserStore:
    """
    SQLite credential store (user_table).

    - email is the login key and is backed by a UNIQUE index, so two racing
      registrations cannot both land
    - update/delete match by id and touch at most one row
    - deleting a user cascades to task_table (foreign keys are enabled per connection)

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("UserStore ready db=%s", self._db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self._db_path)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS user_table (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL,
                    email TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    is_logged_in INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            add_col = column_adder(cur, "user_table")
            add_col("is_logged_in", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_user_email ON user_table(email)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            username=str(row["username"] or ""),
            email=str(row["email"] or ""),
            password_hash=str(row["password_hash"] or ""),
            is_logged_in=bool(row["is_logged_in"]),
        )

    def _fetch_one(self, sql: str, params: tuple) -> User | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            row = cur.fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    # ---- public API ----

    def insert(self, user: User) -> int:
        """Insert a new user and return the assigned id (user.id is ignored)."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    INSERT INTO user_table(username, email, password_hash, is_logged_in)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user.username, user.email, user.password_hash, int(user.is_logged_in)),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateEmailError() from e
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for user insert")
            logger.debug("User inserted id=%s email=%s", rowid, user.email)
            return int(rowid)
        finally:
            conn.close()

    def update(self, user: User) -> bool:
        """Replace every column of the row with user.id. Returns True if a row matched."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE user_table
                SET username = ?, email = ?, password_hash = ?, is_logged_in = ?
                WHERE id = ?
                """,
                (user.username, user.email, user.password_hash, int(user.is_logged_in), int(user.id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def update_username(self, user_id: int, username: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("UPDATE user_table SET username = ? WHERE id = ?", (username, int(user_id)))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "UPDATE user_table SET password_hash = ? WHERE id = ?",
                (password_hash, int(user_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete(self, user: User) -> bool:
        """Delete the user row; owned tasks go with it (ON DELETE CASCADE)."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM user_table WHERE id = ?", (int(user.id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def get_by_id(self, user_id: int) -> User | None:
        return self._fetch_one("SELECT * FROM user_table WHERE id = ? LIMIT 1", (int(user_id),))

    def get_by_email(self, email: str) -> User | None:
        return self._fetch_one("SELECT * FROM user_table WHERE email = ? LIMIT 1", (email,))

    def get_logged_in_user(self) -> User | None:
        """Most recently registered account that still has the session flag set."""
        return self._fetch_one(
            "SELECT * FROM user_table WHERE is_logged_in = 1 ORDER BY id DESC LIMIT 1",
            (),
        )

    def count_users(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM user_table")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()
