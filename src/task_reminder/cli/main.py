# src/task_reminder/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the background event loop with the
reminder dispatcher, re-derives reminders from the task table, then runs the
console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, reconcile_reminders, restore_session
from ..cli.runtime import BackgroundLoop
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..logging_setup import setup_logging
from ..reminders.dispatcher import run_reminder_dispatcher

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/task_reminder")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "task-reminder"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runtime = BackgroundLoop().start()
    state.run = runtime.run

    # Reminders may have been lost or orphaned if the last run died between a
    # task write and the matching alarm call.
    reconcile_reminders(state)
    restore_session(state)

    runtime.spawn(
        run_reminder_dispatcher(
            state.alarms,
            ConsoleNotifier(),
            interval_seconds=settings.dispatch_interval_seconds,
            retry_delay_seconds=settings.dispatch_retry_seconds,
        )
    )

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            signal.signal(signal.SIGINT, _handle_signal)
            signal.signal(signal.SIGTERM, _handle_signal)
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runtime.stop()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
