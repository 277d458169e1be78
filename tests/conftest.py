# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_reminder.core.state import AppState
from task_reminder.reminders.alarm_store import AlarmStore
from task_reminder.reminders.scheduler import AlarmReminderScheduler
from task_reminder.tasks.task_service import TaskService
from task_reminder.tasks.task_store import TaskStore
from task_reminder.users.auth_service import AuthService
from task_reminder.users.user_models import User
from task_reminder.users.user_store import UserStore

from .fakes import NOW_MS, FakeClock, FakeScheduler


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="task-reminder-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        db_path=tmp_path / "tasks.sqlite3",
        alarms_db_path=tmp_path / "alarms.sqlite3",
        default_reminder_minutes=60,
        allow_exact_alarms=True,
        inexact_window_seconds=600.0,
        dispatch_interval_seconds=0.01,
        dispatch_retry_seconds=1.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOW_MS)


@pytest.fixture()
def user_store(settings: SimpleNamespace) -> UserStore:
    return UserStore(settings.db_path)


@pytest.fixture()
def task_store(settings: SimpleNamespace, user_store: UserStore) -> TaskStore:
    # user_store first: task_table references user_table.
    return TaskStore(settings.db_path)


@pytest.fixture()
def alarm_store(settings: SimpleNamespace) -> AlarmStore:
    return AlarmStore(settings.alarms_db_path, inexact_window_ms=600_000)


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def task_service(task_store: TaskStore, scheduler: FakeScheduler, clock: FakeClock) -> TaskService:
    return TaskService(task_store, scheduler, clock=clock)


@pytest.fixture()
def auth(user_store: UserStore, task_service: TaskService) -> AuthService:
    return AuthService(user_store, reminders=task_service)


@pytest.fixture()
def owner(user_store: UserStore) -> User:
    """A stored user that tasks can reference."""
    user = User(username="alice", email="alice@example.com", password_hash="x" * 64)
    user_id = user_store.insert(user)
    return User(username=user.username, email=user.email, password_hash=user.password_hash, id=user_id)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    user_store: UserStore,
    task_store: TaskStore,
    alarm_store: AlarmStore,
) -> AppState:
    """
    AppState wired like the CLI does it, but on tmp databases.

    NOTE: We keep real SQLite stores and the alarm-backed scheduler here because
    their correctness is part of what we want to test. The service clock is the
    real one, so command tests use due dates far in the future.
    """
    task_service = TaskService(task_store, AlarmReminderScheduler(alarm_store))
    return AppState(
        settings=settings,
        users=user_store,
        tasks=task_store,
        alarms=alarm_store,
        auth=AuthService(user_store, reminders=task_service),
        task_service=task_service,
    )
