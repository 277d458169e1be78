# src/task_reminder/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..reminders.notifications import ReminderNotification

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Notifier port that prints fired reminders into the console."""

    def __init__(self, stream=None) -> None:
        self._stream = stream

    async def notify(self, notification: ReminderNotification) -> None:
        out = self._stream or sys.stdout
        lines = [f"[{_ts_local()}] *** {notification.title}: {notification.text}"]
        if notification.big_text:
            lines.append(f"    {notification.big_text}")
        out.write("\n".join(lines) + "\n")
        out.flush()


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type commands. Use /help for the list. Use /exit to quit.\n")

    if state.current_user is not None:
        _print_ts(f"Signed in as {state.current_user.username}.")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for longer operations.
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is None:
            cmd_response = "Commands start with '/'. Use /help to list available commands."

        _print_ts(cmd_response)

    logger.info("Console connector finished.")
