# src/task_reminder/core/state.py

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ..reminders.alarm_store import AlarmStore
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore
from ..users.auth_service import AuthService
from ..users.user_models import User
from ..users.user_store import UserStore

T = TypeVar("T")

CoroutineRunner = Callable[[Coroutine[Any, Any, T]], T]


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    users: UserStore
    tasks: TaskStore
    alarms: AlarmStore
    auth: AuthService
    task_service: TaskService

    # Signed-in account for this console session (None = signed out).
    current_user: User | None = None

    # How synchronous callers (commands) drive service coroutines.
    # The CLI swaps in a runner bound to its background event loop.
    run: CoroutineRunner = field(default=asyncio.run)
