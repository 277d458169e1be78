# tests/test_reminder_dispatcher.py

from __future__ import annotations

import asyncio

import pytest

from task_reminder.reminders.alarm_store import AlarmStore
from task_reminder.reminders.dispatcher import dispatch_due_alarms, run_reminder_dispatcher

from .fakes import FakeNotifier


def _arm(store: AlarmStore, task_id: int, wake_at: int) -> None:
    store.set_exact(task_id, wake_at, "Task Reminder", f"Don't forget: t{task_id}", f"big {task_id}")


@pytest.mark.asyncio
async def test_delivers_only_due_alarms_once(alarm_store: AlarmStore) -> None:
    _arm(alarm_store, 1, 1_000)
    _arm(alarm_store, 2, 5_000)
    notifier = FakeNotifier()

    n = await dispatch_due_alarms(alarm_store, notifier, now=2_000, retry_delay_ms=60_000)
    assert n == 1
    assert [x.task_id for x in notifier.shown] == [1]
    shown = notifier.shown[0]
    assert shown.title == "Task Reminder"
    assert shown.text == "Don't forget: t1"
    assert shown.big_text == "big 1"
    assert shown.fired_at_ms == 2_000

    # One-shot: the fired alarm is gone.
    assert await dispatch_due_alarms(alarm_store, notifier, now=3_000, retry_delay_ms=60_000) == 0
    assert alarm_store.pending_task_ids() == {2}


@pytest.mark.asyncio
async def test_failed_delivery_is_retried_later(alarm_store: AlarmStore) -> None:
    _arm(alarm_store, 1, 1_000)
    notifier = FakeNotifier(fail=True)

    assert await dispatch_due_alarms(alarm_store, notifier, now=1_000, retry_delay_ms=30_000) == 0
    assert alarm_store.get(1).deliver_after_ms == 31_000

    notifier.fail = False
    assert await dispatch_due_alarms(alarm_store, notifier, now=20_000, retry_delay_ms=30_000) == 0
    assert await dispatch_due_alarms(alarm_store, notifier, now=31_000, retry_delay_ms=30_000) == 1
    assert alarm_store.count_alarms() == 0


@pytest.mark.asyncio
async def test_cancelled_alarm_is_not_delivered(alarm_store: AlarmStore) -> None:
    _arm(alarm_store, 1, 1_000)
    alarm_store.cancel(1)
    notifier = FakeNotifier()

    assert await dispatch_due_alarms(alarm_store, notifier, now=10_000, retry_delay_ms=1_000) == 0
    assert notifier.shown == []


@pytest.mark.asyncio
async def test_dispatcher_loop_delivers_until_cancelled(alarm_store: AlarmStore) -> None:
    _arm(alarm_store, 1, 1_000)
    notifier = FakeNotifier()

    runner = asyncio.create_task(
        run_reminder_dispatcher(
            alarm_store,
            notifier,
            clock=lambda: 10_000,
            interval_seconds=0.01,
            retry_delay_seconds=1,
            batch_limit=10,
        )
    )

    await asyncio.sleep(0.1)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [x.task_id for x in notifier.shown] == [1], "Dispatcher should fire the alarm exactly once"


class CancellingNotifier:
    """Closes the task while the notification is being shown, then fails."""

    def __init__(self, store: AlarmStore) -> None:
        self.store = store

    async def notify(self, notification) -> None:
        self.store.cancel(notification.task_id)
        raise RuntimeError("display unavailable")


@pytest.mark.asyncio
async def test_failed_delivery_of_cancelled_task_is_not_retried(alarm_store: AlarmStore) -> None:
    _arm(alarm_store, 1, 1_000)

    n = await dispatch_due_alarms(alarm_store, CancellingNotifier(alarm_store), now=2_000, retry_delay_ms=1_000)

    assert n == 0
    assert alarm_store.get(1) is None
    assert await dispatch_due_alarms(alarm_store, FakeNotifier(), now=10_000, retry_delay_ms=1_000) == 0
