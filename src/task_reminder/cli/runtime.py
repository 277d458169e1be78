# src/task_reminder/cli/runtime.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackgroundLoop:
    """
    An asyncio event loop running in a daemon thread.

    The console REPL blocks in input(); the reminder dispatcher and the
    services need a live loop meanwhile.

    Synchronous callers submit coroutines with run(); long-lived coroutines
    (the dispatcher) are started with spawn() and cancelled on stop().
    """

    def __init__(self) -> None:
        self._ready = threading.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread = threading.Thread(target=self._run, name="task-reminder-loop", daemon=True)
        self._spawned: list[asyncio.Task[Any]] = []

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            with contextlib.suppress(Exception):
                loop.close()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("BackgroundLoop is not started")
        return self._loop

    def start(self, timeout: float = 5.0) -> BackgroundLoop:
        self._thread.start()
        if not self._ready.wait(timeout=timeout):
            raise RuntimeError("Background event loop did not start")
        logger.info("Background event loop started.")
        return self

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run coro on the background loop and block until it finishes."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Start a long-lived coroutine on the background loop."""

        async def _start() -> None:
            self._spawned.append(asyncio.create_task(coro))

        self.run(_start())

    def stop(self, timeout: float = 10.0) -> None:
        if self._loop is None:
            return

        async def _cancel_spawned() -> None:
            for task in self._spawned:
                task.cancel()
            for task in self._spawned:
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task

        try:
            self.run(_cancel_spawned())
        except Exception:
            logger.debug("Failed to cancel background tasks.", exc_info=True)

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        logger.info("Background event loop stopped.")
