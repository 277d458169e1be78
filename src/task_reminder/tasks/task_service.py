# src/task_reminder/tasks/task_service.py

"""
Task service.

Validates and persists task mutations, and keeps the reminder scheduler in step:
exactly one pending reminder per incomplete task whose wake time is still in the
future, none for completed or deleted tasks.

Store write and scheduler call are two separate steps, not a transaction. If the
process dies between them the reminder can be missing or orphaned until the next
reconcile_reminders() pass. Scheduler failures are logged and never fail the
task mutation itself.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..core.clock import Clock, now_ms
from ..core.errors import NotFoundError, ValidationError
from ..core.ports import ReminderScheduler, TaskRepo
from ..core.results import Result, guard
from ..reminders.notifications import reminder_payload
from .task_models import DEFAULT_REMINDER_MINUTES, Task, TaskPriority

logger = logging.getLogger(__name__)


def _validate(task_name: str, reminder_minutes_before: int) -> None:
    if not task_name or not task_name.strip():
        raise ValidationError("Task name cannot be empty")
    if int(reminder_minutes_before) < 0:
        raise ValidationError("Reminder time cannot be negative")


class TaskService:
    def __init__(
        self,
        tasks: TaskRepo,
        scheduler: ReminderScheduler,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._tasks = tasks
        self._scheduler = scheduler
        self._clock = clock

    # ---- reminder side effects ----

    def _arm(self, task: Task) -> bool:
        """Schedule the reminder if the task is open and its wake time is still ahead."""
        if task.is_completed:
            return False

        wake_at = task.reminder_at
        if wake_at <= self._clock():
            # Past reminders are dropped, never fired late.
            logger.debug("Task %s reminder time %s already passed; not scheduled", task.id, wake_at)
            return False

        payload = reminder_payload(task.task_name)
        try:
            self._scheduler.schedule(
                task.id,
                wake_at,
                payload.title,
                payload.body,
                big_text=payload.big_text,
            )
        except Exception:
            logger.exception("Failed to schedule reminder task_id=%s", task.id)
            return False
        return True

    def _disarm(self, task_id: int) -> None:
        try:
            self._scheduler.cancel(task_id)
        except Exception:
            logger.exception("Failed to cancel reminder task_id=%s", task_id)

    # ---- queries ----

    async def list_for_user(self, user_id: int) -> list[Task]:
        """
        Tasks for user_id, soonest due first.

        Never raises: a storage failure is logged and reported as an empty list,
        so "no tasks" and "could not load" look the same here. Use load_tasks()
        to tell them apart.
        """
        try:
            tasks = await asyncio.to_thread(self._tasks.list_by_user, user_id)
        except Exception:
            logger.exception("Error loading tasks for user %s", user_id)
            return []
        logger.debug("Loaded %d tasks for user %s", len(tasks), user_id)
        return tasks

    async def load_tasks(self, user_id: int) -> Result[list[Task]]:
        return await guard(
            asyncio.to_thread(self._tasks.list_by_user, user_id),
            logger=logger,
            what="load_tasks",
        )

    async def get_task(self, task_id: int, *, user_id: int | None = None) -> Result[Task]:
        return await guard(
            asyncio.to_thread(self._get_task, task_id, user_id),
            logger=logger,
            what="get_task",
        )

    def _get_task(self, task_id: int, user_id: int | None) -> Task:
        task = self._tasks.get_by_id(task_id)
        if task is None or (user_id is not None and task.user_id != user_id):
            raise NotFoundError("Task not found")
        return task

    # ---- mutations ----

    async def create(
        self,
        task_name: str,
        due_date: int,
        reminder_minutes_before: int = DEFAULT_REMINDER_MINUTES,
        priority: TaskPriority = TaskPriority.NORMAL,
        *,
        user_id: int,
    ) -> Result[int]:
        return await guard(
            asyncio.to_thread(
                self._create,
                task_name,
                due_date,
                reminder_minutes_before,
                priority,
                user_id,
            ),
            logger=logger,
            what="create_task",
        )

    def _create(
        self,
        task_name: str,
        due_date: int,
        reminder_minutes_before: int,
        priority: TaskPriority,
        user_id: int,
    ) -> int:
        _validate(task_name, reminder_minutes_before)

        task = Task(
            task_name=task_name.strip(),
            due_date=int(due_date),
            reminder_minutes_before=int(reminder_minutes_before),
            priority=priority,
            is_completed=False,
            user_id=int(user_id),
        )
        task_id = self._tasks.insert(task)
        logger.info("Task created id=%s user_id=%s", task_id, user_id)

        self._arm(replace(task, id=task_id))
        return task_id

    async def update(self, task: Task) -> Result[Task]:
        return await guard(asyncio.to_thread(self._update, task), logger=logger, what="update_task")

    def _update(self, task: Task) -> Task:
        _validate(task.task_name, task.reminder_minutes_before)

        matched = self._tasks.update(task)

        # Unconditional cancel-then-maybe-reschedule keeps the reminder in step
        # whatever fields changed.
        self._disarm(task.id)
        if not matched:
            raise NotFoundError("Task not found")

        self._arm(task)
        logger.info("Task updated id=%s completed=%s", task.id, task.is_completed)
        return task

    async def toggle_completion(self, task: Task) -> Result[Task]:
        return await self.update(replace(task, is_completed=not task.is_completed))

    async def delete(self, task: Task) -> Result[None]:
        return await guard(asyncio.to_thread(self._delete, task), logger=logger, what="delete_task")

    def _delete(self, task: Task) -> None:
        self._tasks.delete(task)
        self._disarm(task.id)
        logger.info("Task deleted id=%s", task.id)

    # ---- maintenance ----

    async def reconcile_reminders(self) -> Result[int]:
        """
        Re-derive every reminder from the task table.

        Arms a reminder for each incomplete task with a future wake time and
        cancels pending reminders whose task is gone or completed. Returns the
        number of armed reminders.
        """
        return await guard(
            asyncio.to_thread(self._reconcile_reminders),
            logger=logger,
            what="reconcile_reminders",
        )

    def _reconcile_reminders(self) -> int:
        open_tasks = self._tasks.list_incomplete()
        open_ids = {t.id for t in open_tasks}

        for task_id in sorted(self._scheduler.pending_task_ids() - open_ids):
            self._disarm(task_id)

        armed = 0
        for task in open_tasks:
            self._disarm(task.id)
            if self._arm(task):
                armed += 1

        logger.info("Reminder reconciliation: open=%d armed=%d", len(open_tasks), armed)
        return armed

    async def owned_task_ids(self, user_id: int) -> list[int]:
        """Ids of every task of user_id (collected before the user row is deleted)."""
        tasks = await asyncio.to_thread(self._tasks.list_by_user, user_id)
        return [t.id for t in tasks]

    async def cancel_reminders(self, task_ids: list[int]) -> int:
        """Cancel reminders for tasks that are already gone (account removal)."""

        def _cancel_all() -> int:
            for task_id in task_ids:
                self._disarm(task_id)
            return len(task_ids)

        return await asyncio.to_thread(_cancel_all)
