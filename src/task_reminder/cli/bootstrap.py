# src/task_reminder/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires stores, the alarm-backed reminder scheduler and the services into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..reminders.alarm_store import AlarmStore
from ..reminders.scheduler import AlarmReminderScheduler
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore
from ..users.auth_service import AuthService
from ..users.user_store import UserStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.alarms_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # user_table first: task_table references it.
    users = UserStore(settings.db_path)
    tasks = TaskStore(settings.db_path)
    alarms = AlarmStore(
        settings.alarms_db_path,
        allow_exact=settings.allow_exact_alarms,
        inexact_window_ms=int(settings.inexact_window_seconds * 1000),
    )

    task_service = TaskService(tasks, AlarmReminderScheduler(alarms))
    auth = AuthService(users, reminders=task_service)

    return AppState(
        settings=settings,
        users=users,
        tasks=tasks,
        alarms=alarms,
        auth=auth,
        task_service=task_service,
    )


def restore_session(state: AppState) -> None:
    """Pick up the account that was still signed in when the app last exited."""
    result = state.run(state.auth.current_user())
    if not result.ok:
        logger.warning("Could not restore session: %s", result.message)
        return
    state.current_user = result.value
    if state.current_user is not None:
        logger.info("Restored session for user id=%s", state.current_user.id)


def reconcile_reminders(state: AppState) -> None:
    result = state.run(state.task_service.reconcile_reminders())
    if not result.ok:
        logger.warning("Reminder reconciliation failed: %s", result.message)
