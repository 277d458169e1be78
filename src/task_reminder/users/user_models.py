# src/task_reminder/users/user_models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    """
    Registered account.

    Notes:
    - id is 0 until the store assigns one on insert.
    - password_hash is a hex SHA-256 digest, never plaintext.
    - is_logged_in is a single session flag per account (no multi-device sessions).
    """

    username: str
    email: str
    password_hash: str
    is_logged_in: bool = False
    id: int = 0

    def __repr__(self) -> str:
        # Keep the hash out of logs and tracebacks.
        return f"User(id={self.id}, username={self.username!r}, email={self.email!r}, is_logged_in={self.is_logged_in})"
