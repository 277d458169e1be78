# src/task_reminder/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..core.clock import MILLIS_PER_MINUTE

DEFAULT_REMINDER_MINUTES = 60

# Offered in pickers; any non-negative minute count is still accepted.
REMINDER_OPTIONS: tuple[tuple[int, str], ...] = (
    (15, "15 minutes"),
    (30, "30 minutes"),
    (60, "1 hour"),
    (120, "2 hours"),
    (1440, "1 day"),
    (2880, "2 days"),
)


class TaskPriority(Enum):
    HIGH = ("High Priority", "Red")
    NORMAL = ("Normal Priority", "Orange")
    LOW = ("Low Priority", "Green")

    def __init__(self, display_name: str, color_name: str) -> None:
        self.display_name = display_name
        self.color_name = color_name

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.NORMAL
        try:
            return cls[raw.strip().upper()]
        except KeyError:
            return cls.NORMAL


@dataclass(frozen=True, slots=True)
class Task:
    task_name: str
    due_date: int  # epoch ms, date + time
    user_id: int
    reminder_minutes_before: int = DEFAULT_REMINDER_MINUTES
    priority: TaskPriority = TaskPriority.NORMAL
    is_completed: bool = False
    id: int = 0

    @property
    def reminder_at(self) -> int:
        """Reminder wake time in epoch ms."""
        return reminder_wake_time(self.due_date, self.reminder_minutes_before)


def reminder_wake_time(due_date: int, reminder_minutes_before: int) -> int:
    return int(due_date) - int(reminder_minutes_before) * MILLIS_PER_MINUTE


def reminder_label(minutes: int) -> str:
    for value, label in REMINDER_OPTIONS:
        if value == minutes:
            return label
    return f"{minutes} minutes"
