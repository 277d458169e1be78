# tests/test_commands.py

from __future__ import annotations

from task_reminder.cli.commands import NOT_SIGNED_IN, CommandRegistry, registry


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    notes: list[str] = []
    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BEE y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]
    assert "/a - a" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_task_commands_need_a_session(state) -> None:
    assert registry.handle(state, "/list") == NOT_SIGNED_IN
    assert registry.handle(state, "/add 2099-01-01 10:00 thing") == NOT_SIGNED_IN
    assert registry.handle(state, "/done 1") == NOT_SIGNED_IN


def test_register_add_list_done_delete(state) -> None:
    reply = registry.handle(state, "/register Alice alice@example.com secret1")
    assert reply == "Welcome, Alice! Account created and signed in."
    assert state.current_user is not None

    assert registry.handle(state, "/list") == "No tasks yet. Use /add to create your first task!"

    reply = registry.handle(state, "/add 2099-05-01 09:30 --remind 1440 --priority high Pay rent")
    assert reply.startswith("Task #") and reply.endswith(" added.")
    task_id = int(reply.split("#")[1].split()[0])
    assert state.alarms.pending_task_ids() == {task_id}

    listing = registry.handle(state, "/ls high_priority")
    assert "High Priority Tasks (1 of 1 tasks):" in listing
    assert "Pay rent" in listing
    assert "remind 1 day before" in listing

    assert registry.handle(state, "/list completed") == (
        "No completed tasks yet. Complete some tasks to see them here!"
    )
    assert "Pay rent" in registry.handle(state, "/list 2099-05-01")

    assert registry.handle(state, f"/done {task_id}") == f"Task #{task_id} marked completed."
    assert state.alarms.pending_task_ids() == set()
    assert registry.handle(state, f"/done #{task_id}") == f"Task #{task_id} marked pending."
    assert state.alarms.pending_task_ids() == {task_id}

    assert registry.handle(state, f"/edit {task_id} name Pay the rent") == f"Task #{task_id} updated."
    assert "Pay the rent" in registry.handle(state, "/list")

    assert registry.handle(state, f"/rm {task_id}") == f"Task #{task_id} deleted."
    assert state.alarms.count_alarms() == 0
    assert registry.handle(state, f"/done {task_id}") == "Task not found"


def test_add_rejects_bad_input(state) -> None:
    registry.handle(state, "/register Alice alice@example.com secret1")

    assert "Usage: /add" in registry.handle(state, "/add tomorrow")
    assert "Usage: /add" in registry.handle(state, "/add 2099-13-01 10:00 x")
    assert "Unknown priority" in registry.handle(state, "/add 2099-01-01 10:00 --priority urgent x")
    assert registry.handle(state, "/add 2099-01-01 10:00 --remind 5") == "Task name cannot be empty"


def test_tasks_are_private_to_their_owner(state) -> None:
    registry.handle(state, "/register Alice alice@example.com secret1")
    reply = registry.handle(state, "/add 2099-01-01 10:00 secret plan")
    task_id = int(reply.split("#")[1].split()[0])
    registry.handle(state, "/logout")

    registry.handle(state, "/register Bob bob@example.com secret2")
    assert registry.handle(state, f"/done {task_id}") == "Task not found"
    assert registry.handle(state, "/list") == "No tasks yet. Use /add to create your first task!"


def test_login_logout_and_account_commands(state) -> None:
    registry.handle(state, "/register Alice alice@example.com secret1")
    assert registry.handle(state, "/logout") == "Signed out."
    assert registry.handle(state, "/logout") == "Already signed out."

    assert registry.handle(state, "/login alice@example.com wrong-pass") == "Invalid password"
    assert registry.handle(state, "/login nobody@example.com secret1") == "User not found"
    assert registry.handle(state, "/login alice@example.com secret1") == "Login successful!"

    assert registry.handle(state, "/rename Alice Cooper") == "Profile updated. You are now Alice Cooper."
    assert registry.handle(state, "/whoami").startswith("Alice Cooper <alice@example.com>")
    assert registry.handle(state, "/passwd secret1 newsecret") == "Password changed."

    registry.handle(state, "/add 2099-01-01 10:00 one")
    notes: list[str] = []
    assert "Confirm with" in registry.handle(state, "/delete-account")
    reply = registry.handle(state, "/delete-account yes", emit=notes.append)
    assert reply == "Account deleted (1 reminders cancelled)."
    assert notes == ["Deleting account..."]
    assert state.current_user is None
    assert state.users.count_users() == 0
    assert state.tasks.count_tasks() == 0


def test_list_combines_date_priority_and_state(state) -> None:
    registry.handle(state, "/register Alice alice@example.com secret1")
    registry.handle(state, "/add 2099-05-01 09:00 --priority high Pay rent")
    registry.handle(state, "/add 2099-05-01 18:00 --priority low Water plants")
    reply = registry.handle(state, "/add 2099-05-02 09:00 --priority high Call bank")
    bank_id = int(reply.split("#")[1].split()[0])
    registry.handle(state, f"/done {bank_id}")

    listing = registry.handle(state, "/list 2099-05-01 high pending")
    assert "Matching tasks (1 of 3 tasks):" in listing
    assert "Pay rent" in listing
    assert "Water plants" not in listing

    listing = registry.handle(state, "/list HIGH done")
    assert "Call bank" in listing
    assert "Pay rent" not in listing

    assert registry.handle(state, "/list 2099-05-03 high") == "No tasks match this search."
    assert registry.handle(state, "/list high soon").startswith("Unknown filter: soon.")
    assert registry.handle(state, "/list high low").startswith("More than one priority given.")
