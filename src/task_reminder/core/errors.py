# src/task_reminder/core/errors.py

"""
Error taxonomy shared by the services.

Every error carries a user-facing `message`. Services raise these internally and
convert them into a failed Result at their boundary, so none of them reaches the
presentation layer as an exception.
"""

from __future__ import annotations


class TaskReminderError(Exception):
    """Base class for all expected, user-facing failures."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskReminderError):
    """Bad input shape; the user can correct it."""

    default_message = "Invalid input"


class DuplicateEmailError(TaskReminderError):
    default_message = "User with this email already exists"


class NotFoundError(TaskReminderError):
    default_message = "User not found"


class InvalidCredentialsError(TaskReminderError):
    default_message = "Invalid password"


class PersistenceError(TaskReminderError):
    """A store write was acknowledged but is not visible on re-read."""

    default_message = "Change was not saved to database"


class StorageError(TaskReminderError):
    """Unclassified storage/runtime failure caught at a service boundary."""


class ExactAlarmNotPermitted(TaskReminderError):
    """Raised by an alarm backend that lacks the exact-alarm privilege."""

    default_message = "Exact alarms are not permitted"
