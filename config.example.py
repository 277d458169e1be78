# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
read by python-dotenv). Every key is optional; malformed values fall back to the default.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKR_APP_NAME": "App display name (default: task-reminder).",
    "TASKR_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TASKR_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "TASKR_DATA_DIR": "Local data directory (default: .local/task_reminder).",
    "TASKR_DB_PATH": "Users + tasks SQLite path (default: <data_dir>/tasks.sqlite3).",
    "TASKR_ALARMS_DB_PATH": "Pending reminder alarms SQLite path (default: <data_dir>/alarms.sqlite3).",
    # Reminders
    "TASKR_DEFAULT_REMINDER_MINUTES": "Lead time used by /add when --remind is omitted (default: 60).",
    "TASKR_ALLOW_EXACT_ALARMS": "Exact-alarm privilege; false forces inexact alarms (default: true).",
    "TASKR_INEXACT_WINDOW_SECONDS": "How late an inexact alarm may fire (default: 600).",
    "TASKR_DISPATCH_INTERVAL_SECONDS": "Reminder dispatcher poll interval, min 0.5 (default: 15).",
    "TASKR_DISPATCH_RETRY_SECONDS": "Retry delay after a failed delivery, min 1 (default: 60).",
}
