# src/task_reminder/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import cast

from ..core.clock import format_date, format_time, from_local_datetime, now_ms
from ..core.state import AppState
from ..tasks.task_filters import (
    FILTER_KINDS,
    empty_state_message,
    filter_tasks,
    filter_title,
    search_tasks,
)
from ..tasks.task_models import REMINDER_OPTIONS, Task, TaskPriority, reminder_label

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "You are not signed in. Use /login or /register."


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting / parsing helpers ----


def format_task(task: Task) -> str:
    mark = "x" if task.is_completed else " "
    return (
        f"#{task.id} [{mark}] {task.task_name} | due {format_date(task.due_date)} {format_time(task.due_date)}"
        f" | {task.priority.display_name} | remind {reminder_label(task.reminder_minutes_before)} before"
    )


def parse_due(date_s: str, time_s: str) -> int:
    """'YYYY-MM-DD' + 'HH:MM' in local time -> epoch ms. Raises ValueError."""
    return from_local_datetime(datetime.strptime(f"{date_s} {time_s}", "%Y-%m-%d %H:%M"))


def parse_priority(raw: str) -> TaskPriority:
    try:
        return TaskPriority[raw.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown priority: {raw}") from None


def _load_owned_task(state: AppState, raw_id: str) -> Task | str:
    """Resolve '#12' / '12' to a task of the current user, or an error message."""
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN
    try:
        task_id = int(raw_id.lstrip("#"))
    except ValueError:
        return f"Not a task id: {raw_id}"
    result = state.run(state.task_service.get_task(task_id, user_id=user.id))
    if not result.ok:
        return result.message
    return cast(Task, result.value)


# ---- account commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_register(state: AppState, args: list[str]) -> str:
    """/register <username> <email> <password>"""
    if len(args) < 3:
        return "Usage: /register <username> <email> <password>"
    username, email, password = " ".join(args[:-2]), args[-2], args[-1]

    result = state.run(state.auth.register(username, email, password))
    if not result.ok:
        return result.message
    state.current_user = result.value
    return f"Welcome, {state.current_user.username}! Account created and signed in."


def cmd_login(state: AppState, args: list[str]) -> str:
    """/login <email> <password>"""
    if len(args) != 2:
        return "Usage: /login <email> <password>"

    result = state.run(state.auth.authenticate(args[0], args[1]))
    if not result.ok:
        return result.message
    state.current_user = result.value
    return "Login successful!"


def cmd_logout(state: AppState, args: list[str]) -> str:
    user = state.current_user
    if user is None:
        return "Already signed out."
    result = state.run(state.auth.sign_out(user))
    if not result.ok:
        return result.message
    state.current_user = None
    return "Signed out."


def cmd_whoami(state: AppState, args: list[str]) -> str:
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN
    result = state.run(state.auth.get_user(user.id))
    if result.ok:
        state.current_user = result.value
    user = state.current_user
    return f"{user.username} <{user.email}> (id={user.id})"


def cmd_rename(state: AppState, args: list[str]) -> str:
    """/rename <new username>"""
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN
    result = state.run(state.auth.update_username(user.id, " ".join(args)))
    if not result.ok:
        return result.message
    state.current_user = result.value
    return f"Profile updated. You are now {state.current_user.username}."


def cmd_passwd(state: AppState, args: list[str]) -> str:
    """/passwd <current> <new>"""
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN
    if len(args) != 2:
        return "Usage: /passwd <current password> <new password>"
    result = state.run(state.auth.change_password(user.id, args[0], args[1]))
    if not result.ok:
        return result.message
    state.current_user = result.value
    return "Password changed."


def cmd_delete_account(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/delete-account yes"""
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN
    if args != ["yes"]:
        return "This deletes your account and all of its tasks. Confirm with: /delete-account yes"

    if emit:
        emit("Deleting account...")
    result = state.run(state.auth.delete_account(user))
    if not result.ok:
        return result.message
    state.current_user = None
    return f"Account deleted ({result.value} reminders cancelled)."


# ---- task commands ----


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add <YYYY-MM-DD> <HH:MM> [--remind N] [--priority high|normal|low] <task name>"""
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN

    usage = "Usage: /add <YYYY-MM-DD> <HH:MM> [--remind N] [--priority high|normal|low] <task name>"
    if len(args) < 3:
        return usage

    reminder = int(getattr(state.settings, "default_reminder_minutes", 60))
    priority = TaskPriority.NORMAL
    rest = list(args[2:])
    name_parts: list[str] = []
    try:
        due = parse_due(args[0], args[1])
        while rest:
            tok = rest.pop(0)
            if tok == "--remind" and rest:
                reminder = int(rest.pop(0))
            elif tok == "--priority" and rest:
                priority = parse_priority(rest.pop(0))
            else:
                name_parts.append(tok)
    except ValueError as e:
        return f"{e}\n{usage}"

    result = state.run(
        state.task_service.create(
            " ".join(name_parts),
            due,
            reminder,
            priority,
            user_id=user.id,
        )
    )
    if not result.ok:
        return result.message
    return f"Task #{result.value} added."


_SEARCH_PRIORITY = {
    "high": TaskPriority.HIGH,
    "high_priority": TaskPriority.HIGH,
    "normal": TaskPriority.NORMAL,
    "normal_priority": TaskPriority.NORMAL,
    "low": TaskPriority.LOW,
    "low_priority": TaskPriority.LOW,
}
_SEARCH_COMPLETED = {"completed": True, "done": True, "pending": False}


def parse_search(tokens: list[str]) -> dict:
    """
    '2030-01-01 high pending' -> search_tasks() keyword arguments.

    Each token is a date (YYYY-MM-DD), a priority or a completion state, in any
    order. Raises ValueError on anything else or on a repeated criterion.
    """
    criteria: dict = {}

    def _set(key: str, value) -> None:
        if key in criteria:
            raise ValueError(f"More than one {key} given")
        criteria[key] = value

    for tok in tokens:
        low = tok.lower()
        if low in _SEARCH_PRIORITY:
            _set("priority", _SEARCH_PRIORITY[low])
        elif low in _SEARCH_COMPLETED:
            _set("completed", _SEARCH_COMPLETED[low])
        else:
            try:
                day = datetime.strptime(low, "%Y-%m-%d").date()
            except ValueError:
                raise ValueError(f"Unknown filter: {tok}") from None
            _set("day", day)
    return criteria


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list [all|completed|pending|overdue|high_priority|normal_priority|low_priority|YYYY-MM-DD]
    /list <YYYY-MM-DD> <high|normal|low> <completed|pending>   (any subset, any order)
    """
    user = state.current_user
    if user is None:
        return NOT_SIGNED_IN

    result = state.run(state.task_service.load_tasks(user.id))
    if not result.ok:
        return result.message
    tasks: list[Task] = result.value or []

    kind = args[0].lower() if len(args) == 1 else "all"
    if len(args) <= 1 and kind in FILTER_KINDS:
        shown = filter_tasks(tasks, kind, now_ms=now_ms())
        title = filter_title(kind)
        empty = empty_state_message(kind)
    else:
        try:
            criteria = parse_search(args)
        except ValueError as e:
            return f"{e}. Use one of: {', '.join(FILTER_KINDS)}, a date YYYY-MM-DD, or a combination."
        shown = search_tasks(tasks, **criteria)
        if list(criteria) == ["day"]:
            title = f"Tasks on {criteria['day'].isoformat()}"
            empty = empty_state_message("all")
        else:
            title = "Matching tasks"
            empty = "No tasks match this search."

    if not shown:
        if not tasks:
            return "No tasks yet. Use /add to create your first task!"
        return empty

    lines = [f"{title} ({len(shown)} of {len(tasks)} tasks):"]
    lines.extend(f"  {format_task(t)}" for t in shown)
    return "\n".join(lines)



def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <id> toggles completion."""
    if len(args) != 1:
        return "Usage: /done <task id>"
    task = _load_owned_task(state, args[0])
    if isinstance(task, str):
        return task

    result = state.run(state.task_service.toggle_completion(task))
    if not result.ok:
        return result.message
    updated = cast(Task, result.value)
    return f"Task #{updated.id} marked {'completed' if updated.is_completed else 'pending'}."


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> name|due|remind|priority <value...>"""
    usage = (
        "Usage: /edit <id> name <text> | due <YYYY-MM-DD> <HH:MM> | "
        "remind <minutes> | priority high|normal|low"
    )
    if len(args) < 3:
        return usage
    task = _load_owned_task(state, args[0])
    if isinstance(task, str):
        return task

    field_name, values = args[1].lower(), args[2:]
    try:
        if field_name == "name":
            updated = replace(task, task_name=" ".join(values))
        elif field_name == "due" and len(values) == 2:
            updated = replace(task, due_date=parse_due(values[0], values[1]))
        elif field_name == "remind":
            updated = replace(task, reminder_minutes_before=int(values[0]))
        elif field_name == "priority":
            updated = replace(task, priority=parse_priority(values[0]))
        else:
            return usage
    except ValueError as e:
        return f"{e}\n{usage}"

    result = state.run(state.task_service.update(updated))
    if not result.ok:
        return result.message
    return f"Task #{updated.id} updated."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <task id>"
    task = _load_owned_task(state, args[0])
    if isinstance(task, str):
        return task

    result = state.run(state.task_service.delete(task))
    if not result.ok:
        return result.message
    return f"Task #{task.id} deleted."


def cmd_reminders(state: AppState, args: list[str]) -> str:
    lines = ["Reminder options (minutes before due):"]
    lines.extend(f"  {minutes:>5} - {label}" for minutes, label in REMINDER_OPTIONS)
    lines.append("Any other non-negative number of minutes works too.")
    return "\n".join(lines)


def cmd_status(state: AppState, args: list[str]) -> str:
    user = state.current_user
    who = f"{user.username} (id={user.id})" if user else "signed out"
    exact = "exact" if state.alarms.allow_exact else "inexact only"
    return (
        "Status:\n"
        f"  User: {who}\n"
        f"  Database: {state.settings.db_path}\n"
        f"  Pending reminders: {state.alarms.count_alarms()} ({exact})"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("register", cmd_register, help_text="Create an account: /register <username> <email> <password>.")
registry.register("login", cmd_login, help_text="Sign in: /login <email> <password>.", aliases=["signin"])
registry.register("logout", cmd_logout, help_text="Sign out.", aliases=["signout"])
registry.register("whoami", cmd_whoami, help_text="Show the signed-in account.")
registry.register("rename", cmd_rename, help_text="Change your username: /rename <new name>.")
registry.register("passwd", cmd_passwd, help_text="Change password: /passwd <current> <new>.")
registry.register("add", cmd_add, help_text="Add a task: /add <YYYY-MM-DD> <HH:MM> [--remind N] [--priority P] <name>.")
registry.register("list", cmd_list, help_text="List tasks: /list [filter | YYYY-MM-DD [high|normal|low] [completed|pending]].", aliases=["ls"])
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> name|due|remind|priority <value>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("reminders", cmd_reminders, help_text="Show reminder lead-time options.")
registry.register("status", cmd_status, help_text="Show session, database and reminder status.")
registry.register("delete-account", cmd_delete_account, help_text="Delete your account and all tasks.")
