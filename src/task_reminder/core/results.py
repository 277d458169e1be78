# src/task_reminder/core/results.py

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import StorageError, TaskReminderError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """
    Outcome of a service call.

    Exactly one of `value` / `error` is meaningful:
    - ok=True  -> value holds the payload (may legitimately be None)
    - ok=False -> error holds a TaskReminderError with a user-facing message
    """

    ok: bool
    value: T | None = None
    error: TaskReminderError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: TaskReminderError) -> Result[T]:
        return cls(ok=False, error=error)

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    def unwrap(self) -> T:
        """Return the value or raise the carried error (handy in tests and scripts)."""
        if not self.ok:
            raise self.error if self.error is not None else StorageError()
        return self.value  # type: ignore[return-value]


async def guard(
    op: Awaitable[T],
    *,
    logger: logging.Logger,
    what: str,
) -> Result[T]:
    """
    Await `op` and fold its outcome into a Result.

    Expected errors become failures as-is. Anything else is logged with a
    traceback and reported as a generic StorageError.
    """
    try:
        return Result.success(await op)
    except TaskReminderError as e:
        logger.info("%s failed: %s", what, e.message)
        return Result.failure(e)
    except Exception:
        logger.exception("%s crashed", what)
        return Result.failure(StorageError())
