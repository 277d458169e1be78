"""Task reminders: accounts, per-user task lists and scheduled reminder notifications."""

__version__ = "0.1.0"
