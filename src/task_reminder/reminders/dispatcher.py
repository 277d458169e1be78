# src/task_reminder/reminders/dispatcher.py

from __future__ import annotations

"""
Reminder dispatcher.

A small polling loop that:
- fetches due alarms,
- claims them (one-shot: a claimed alarm is not listed again),
- hands a ReminderNotification to the injected notifier port,
- completes the alarm on delivery, or re-arms it for a later retry if delivery fails.

How a notification is shown (console, desktop, push) belongs to the notifier, not here.
"""

import asyncio
import logging

from ..core.clock import Clock, now_ms
from ..core.ports import AlarmQueue, Notifier
from .notifications import ReminderNotification

logger = logging.getLogger(__name__)


async def dispatch_due_alarms(
        alarms: AlarmQueue,
        notifier: Notifier,
        *,
        now: int,
        retry_delay_ms: int,
        batch_limit: int = 32,
) -> int:
    """Run one dispatcher tick. Returns the number of delivered reminders."""
    try:
        due = alarms.list_due(now_ms=now, limit=int(batch_limit))
    except Exception:
        logger.exception("list_due failed")
        return 0

    delivered = 0
    for alarm in due:
        try:
            claimed = alarms.try_claim(alarm)
        except Exception:
            logger.exception("try_claim failed task_id=%s", alarm.task_id)
            continue

        if not claimed:
            # Cancelled, re-armed or already claimed since list_due().
            continue

        notification = ReminderNotification(
            task_id=alarm.task_id,
            title=alarm.title,
            text=alarm.body,
            big_text=alarm.big_text,
            fired_at_ms=now,
        )

        try:
            await notifier.notify(notification)
        except Exception:
            logger.exception("Reminder delivery failed task_id=%s", alarm.task_id)
            try:
                if not alarms.rearm(alarm, deliver_after_ms=now + retry_delay_ms):
                    logger.info("Retry dropped task_id=%s (cancelled or re-armed meanwhile)", alarm.task_id)
            except Exception:
                logger.exception("rearm failed task_id=%s", alarm.task_id)
            continue

        delivered += 1
        logger.info("Reminder delivered task_id=%s", alarm.task_id)
        try:
            alarms.complete(alarm)
        except Exception:
            logger.exception("complete failed task_id=%s", alarm.task_id)

    return delivered


async def run_reminder_dispatcher(
        alarms: AlarmQueue,
        notifier: Notifier,
        *,
        clock: Clock = now_ms,
        interval_seconds: float = 15.0,
        retry_delay_seconds: float = 60.0,
        batch_limit: int = 32,
) -> None:
    """
    Simple polling dispatcher.

    Every interval_seconds, deliver every alarm whose delivery time has come.
    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    retry_ms = int(max(1.0, float(retry_delay_seconds)) * 1000)

    logger.info("Reminder dispatcher started (interval=%.2fs)", sleep_s)
    while True:
        await dispatch_due_alarms(
            alarms,
            notifier,
            now=clock(),
            retry_delay_ms=retry_ms,
            batch_limit=batch_limit,
        )
        await asyncio.sleep(sleep_s)
