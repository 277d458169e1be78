# src/task_reminder/storage/sqlite.py

"""
Shared SQLite plumbing for the stores.

Every store opens a short-lived connection per call (no shared cursors), so the
stores are safe to use from worker threads.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


def connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), timeout=30.0)
    conn.row_factory = sqlite3.Row
    with contextlib.suppress(Exception):
        conn.execute("PRAGMA journal_mode=WAL")
    # Off by default in SQLite; task_table relies on ON DELETE CASCADE.
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def table_columns(cur: sqlite3.Cursor, table: str) -> set[str]:
    cur.execute(f"PRAGMA table_info({table})")
    return {row["name"] for row in cur.fetchall()}


def column_adder(cur: sqlite3.Cursor, table: str) -> Callable[[str, str], None]:
    """
    Return add_col(name, decl) that only issues ALTER TABLE for missing columns.

    Migration-safe schema evolution: create table if missing, then add columns.
    """
    cols = table_columns(cur, table)

    def add_col(name: str, decl: str) -> None:
        if name in cols:
            return
        cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
        cols.add(name)
        logger.info("Schema migration: added column %s.%s", table, name)

    return add_col
