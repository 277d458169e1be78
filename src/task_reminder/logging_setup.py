# src/task_reminder/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while reminders fire in the background.

    The dispatcher polls every few seconds and logs each delivery, and the
    stores log every schema check and row write at DEBUG. On the console only
    the dispatcher's problems (WARNING+) show; the file handler still gets all
    of it. Anything outside the task_reminder tree only surfaces at ERROR+.
    """

    _dispatcher = "task_reminder.reminders.dispatcher"

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(self._dispatcher):
            return record.levelno >= logging.WARNING
        if record.name.startswith("task_reminder."):
            return True
        # py.warnings (captured warnings) and third-party loggers.
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/task_reminder",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Console handler at console_level (filtered, see _ConsoleNoiseFilter) plus
    a task_reminder.log file handler at file_level under log_dir.

    Replaces any handlers already on the root logger; call once at startup.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "task_reminder.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # warnings.warn(...) -> logger "py.warnings"
    logging.captureWarnings(True)
