# src/task_reminder/core/clock.py

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime

MILLIS_PER_MINUTE = 60_000

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def to_local_datetime(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000).astimezone()


def from_local_datetime(dt: datetime) -> int:
    """Naive datetimes are interpreted in local time."""
    return int(dt.timestamp() * 1000)


def format_date(epoch_ms: int) -> str:
    return to_local_datetime(epoch_ms).strftime("%b %d, %Y")


def format_time(epoch_ms: int) -> str:
    return to_local_datetime(epoch_ms).strftime("%H:%M")
