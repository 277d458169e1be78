# src/task_reminder/reminders/scheduler.py

from __future__ import annotations

import logging

from ..core.errors import ExactAlarmNotPermitted
from ..core.ports import AlarmBackend

logger = logging.getLogger(__name__)


class AlarmReminderScheduler:
    """
    ReminderScheduler on top of an AlarmBackend.

    Tries an exact alarm first; without the exact-alarm privilege it degrades to
    an inexact one instead of failing. The past-wake-time check is the caller's
    job (TaskService), this class schedules whatever it is given.
    """

    def __init__(self, backend: AlarmBackend) -> None:
        self._backend = backend

    def schedule(
        self,
        task_id: int,
        wake_time_ms: int,
        title: str,
        body: str,
        *,
        big_text: str | None = None,
    ) -> None:
        try:
            self._backend.set_exact(task_id, wake_time_ms, title, body, big_text)
        except ExactAlarmNotPermitted:
            logger.warning("Exact alarm not permitted; falling back to inexact task_id=%s", task_id)
            self._backend.set_inexact(task_id, wake_time_ms, title, body, big_text)
        logger.info("Reminder scheduled task_id=%s wake_at=%s", task_id, wake_time_ms)

    def cancel(self, task_id: int) -> None:
        self._backend.cancel(task_id)

    def pending_task_ids(self) -> set[int]:
        return self._backend.pending_task_ids()
