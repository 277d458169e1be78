# src/task_reminder/tasks/task_filters.py

"""List views over a user's tasks (pure functions, no I/O)."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from ..core.clock import to_local_datetime
from .task_models import Task, TaskPriority

FILTER_KINDS: tuple[str, ...] = (
    "all",
    "completed",
    "pending",
    "overdue",
    "high_priority",
    "normal_priority",
    "low_priority",
)

_TITLES = {
    "all": "All Tasks",
    "completed": "Completed Tasks",
    "pending": "Pending Tasks",
    "overdue": "Overdue Tasks",
    "high_priority": "High Priority Tasks",
    "normal_priority": "Normal Priority Tasks",
    "low_priority": "Low Priority Tasks",
}

_EMPTY_MESSAGES = {
    "completed": "No completed tasks yet. Complete some tasks to see them here!",
    "pending": "No pending tasks. You're all caught up!",
    "overdue": "No overdue tasks. Great job staying on schedule!",
    "high_priority": "No high priority tasks at the moment.",
    "normal_priority": "No normal priority tasks at the moment.",
    "low_priority": "No low priority tasks at the moment.",
}


def _predicate(kind: str, now_ms: int) -> Callable[[Task], bool]:
    if kind == "completed":
        return lambda t: t.is_completed
    if kind == "pending":
        return lambda t: not t.is_completed
    if kind == "overdue":
        return lambda t: not t.is_completed and t.due_date < now_ms
    if kind == "high_priority":
        return lambda t: t.priority is TaskPriority.HIGH
    if kind == "normal_priority":
        return lambda t: t.priority is TaskPriority.NORMAL
    if kind == "low_priority":
        return lambda t: t.priority is TaskPriority.LOW
    return lambda t: True


def filter_tasks(tasks: Iterable[Task], kind: str, *, now_ms: int) -> list[Task]:
    """Apply one of FILTER_KINDS; unknown kinds behave like "all"."""
    pred = _predicate((kind or "all").strip().lower(), now_ms)
    return [t for t in tasks if pred(t)]


def tasks_on_day(tasks: Iterable[Task], day: date) -> list[Task]:
    """Tasks due on the given local calendar day."""
    return [t for t in tasks if to_local_datetime(t.due_date).date() == day]


def search_tasks(
    tasks: Iterable[Task],
    *,
    day: date | None = None,
    priority: TaskPriority | None = None,
    completed: bool | None = None,
) -> list[Task]:
    """Combine optional filters; None means "don't filter on this"."""
    candidates = list(tasks) if day is None else tasks_on_day(tasks, day)
    return [
        t
        for t in candidates
        if (priority is None or t.priority is priority) and (completed is None or t.is_completed == completed)
    ]


def filter_title(kind: str) -> str:
    return _TITLES.get(kind, "Tasks")


def empty_state_message(kind: str) -> str:
    return _EMPTY_MESSAGES.get(kind, "No tasks found for this filter.")
