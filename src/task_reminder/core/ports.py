# src/task_reminder/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the services.

The services depend on Protocols instead of concrete implementations.
This keeps storage and the alarm/notification side swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Protocol

if TYPE_CHECKING:
    from ..reminders.notifications import ReminderNotification
    from ..tasks.task_models import Task
    from ..users.user_models import User


class UserRepo(Protocol):
    def insert(self, user: User) -> int: ...
    def update(self, user: User) -> bool: ...
    def update_username(self, user_id: int, username: str) -> bool: ...
    def update_password_hash(self, user_id: int, password_hash: str) -> bool: ...
    def delete(self, user: User) -> bool: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def get_logged_in_user(self) -> User | None: ...


class TaskRepo(Protocol):
    def insert(self, task: Task) -> int: ...
    def update(self, task: Task) -> bool: ...
    def delete(self, task: Task) -> bool: ...
    def delete_all_for_user(self, user_id: int) -> int: ...
    def get_by_id(self, task_id: int) -> Task | None: ...
    def list_by_user(self, user_id: int) -> list[Task]: ...
    def list_incomplete(self) -> list[Task]: ...


class ReminderScheduler(Protocol):
    """
    One-shot wake-up per task id.

    schedule() replaces any pending reminder for the same task id.
    Delivery is best-effort at-or-after wake_time_ms.
    """

    def schedule(
            self,
            task_id: int,
            wake_time_ms: int,
            title: str,
            body: str,
            *,
            big_text: str | None = None,
    ) -> None: ...

    def cancel(self, task_id: int) -> None: ...
    def pending_task_ids(self) -> set[int]: ...


class AlarmBackend(Protocol):
    """
    Platform-alarm side of the scheduler.

    set_exact() may raise ExactAlarmNotPermitted when the privilege is missing;
    set_inexact() may deliver later than requested.
    """

    def set_exact(self, task_id: int, wake_at_ms: int, title: str, body: str, big_text: str | None) -> None: ...
    def set_inexact(self, task_id: int, wake_at_ms: int, title: str, body: str, big_text: str | None) -> None: ...
    def cancel(self, task_id: int) -> None: ...
    def pending_task_ids(self) -> set[int]: ...


class AlarmQueue(Protocol):
    """
    Dispatcher side of the alarm backend: due alarms and one-shot claiming.

    A claimed alarm ends with complete() (delivered) or rearm() (retry later);
    rearm() returns False when the task was cancelled or re-armed meanwhile.
    """

    def list_due(self, *, now_ms: int, limit: int = 32) -> list[Any]: ...
    def try_claim(self, alarm: Any) -> bool: ...
    def complete(self, alarm: Any) -> None: ...
    def rearm(self, alarm: Any, *, deliver_after_ms: int) -> bool: ...


class OwnedReminders(Protocol):
    """Reminder side of account removal (implemented by TaskService)."""

    def owned_task_ids(self, user_id: int) -> Awaitable[list[int]]: ...
    def cancel_reminders(self, task_ids: list[int]) -> Awaitable[int]: ...


class Notifier(Protocol):
    """Connector-side port: how fired reminders reach the user."""

    def notify(self, notification: ReminderNotification) -> Awaitable[None]: ...
