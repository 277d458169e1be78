# src/task_reminder/reminders/notifications.py

from __future__ import annotations

from dataclasses import dataclass

REMINDER_TITLE = "Task Reminder"


@dataclass(frozen=True, slots=True)
class ReminderPayload:
    """What gets handed to the scheduler when a reminder is armed."""

    title: str
    body: str
    big_text: str


@dataclass(frozen=True, slots=True)
class ReminderNotification:
    """What the notifier shows once an alarm fires."""

    task_id: int
    title: str
    text: str
    big_text: str | None
    fired_at_ms: int


def reminder_payload(task_name: str) -> ReminderPayload:
    name = task_name or "Task"
    return ReminderPayload(
        title=REMINDER_TITLE,
        body=f"Don't forget: {name}",
        big_text=f"Your task '{name}' is due soon. Don't forget to complete it!",
    )
