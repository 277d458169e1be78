# tests/test_auth_service.py

from __future__ import annotations

import hashlib

import pytest

from task_reminder.core.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from task_reminder.tasks.task_service import TaskService
from task_reminder.users.auth_service import AuthService
from task_reminder.users.passwords import hash_password, is_valid_email, verify_password
from task_reminder.users.user_store import UserStore

from .fakes import NOW_MS, FakeScheduler


class UndeletableUserStore(UserStore):
    """Every account delete hits a storage error."""

    def delete(self, user) -> bool:
        raise RuntimeError("database is locked")


class ForgetfulUserStore(UserStore):
    """Acknowledges profile writes but never stores them."""

    def update_username(self, user_id: int, username: str) -> bool:
        return True

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        return True


def test_password_hash_is_sha256_hex() -> None:
    digest = hash_password("secret1")
    assert digest == hashlib.sha256(b"secret1").hexdigest()
    assert verify_password("secret1", digest)
    assert not verify_password("secret2", digest)


@pytest.mark.parametrize(
    "email,ok",
    [
        ("a@b.co", True),
        ("first.last+tag@mail.example.org", True),
        ("no-at-sign", False),
        ("a@b", False),
        ("", False),
    ],
)
def test_email_format(email: str, ok: bool) -> None:
    assert is_valid_email(email) is ok


@pytest.mark.asyncio
async def test_register_signs_in_and_rejects_duplicate_email(auth: AuthService, user_store: UserStore) -> None:
    res = await auth.register("alice", "alice@example.com", "secret1")
    assert res.ok
    user = res.value
    assert user.id > 0
    assert user.is_logged_in is True
    assert user.password_hash == hash_password("secret1")

    stored = user_store.get_by_id(user.id)
    assert stored.is_logged_in is True

    dup = await auth.register("alice2", "alice@example.com", "another1")
    assert not dup.ok
    assert isinstance(dup.error, DuplicateEmailError)
    assert dup.message == "User with this email already exists"
    assert user_store.count_users() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,email,password,message",
    [
        ("alice", "not-an-email", "secret1", "Invalid email format"),
        ("alice", "alice@example.com", "12345", "Password must be at least 6 characters"),
        ("   ", "alice@example.com", "secret1", "Username cannot be empty"),
    ],
)
async def test_register_validation(auth: AuthService, username, email, password, message) -> None:
    res = await auth.register(username, email, password)
    assert not res.ok
    assert isinstance(res.error, ValidationError)
    assert res.message == message


@pytest.mark.asyncio
async def test_register_trims_email(auth: AuthService, user_store: UserStore) -> None:
    res = await auth.register("alice", "  alice@example.com ", "secret1")
    assert res.ok
    assert user_store.get_by_email("alice@example.com") is not None


@pytest.mark.asyncio
async def test_authenticate_paths(auth: AuthService, user_store: UserStore) -> None:
    user = (await auth.register("alice", "alice@example.com", "secret1")).value
    await auth.sign_out(user)

    empty = await auth.authenticate("", "secret1")
    assert empty.message == "Email and password cannot be empty"

    missing = await auth.authenticate("nobody@example.com", "secret1")
    assert isinstance(missing.error, NotFoundError)
    assert missing.message == "User not found"

    wrong = await auth.authenticate("alice@example.com", "wrong-password")
    assert isinstance(wrong.error, InvalidCredentialsError)
    assert wrong.message == "Invalid password"
    assert user_store.get_by_id(user.id).is_logged_in is False

    ok = await auth.authenticate("alice@example.com", "secret1")
    assert ok.ok
    assert ok.value.is_logged_in is True
    assert user_store.get_by_id(user.id).is_logged_in is True


@pytest.mark.asyncio
async def test_sign_out_is_idempotent_and_restores_nobody(auth: AuthService) -> None:
    user = (await auth.register("alice", "alice@example.com", "secret1")).value
    assert (await auth.current_user()).value == user

    first = await auth.sign_out(user)
    second = await auth.sign_out(user)
    assert first.ok and second.ok
    assert second.value.is_logged_in is False
    assert (await auth.current_user()).value is None


@pytest.mark.asyncio
async def test_sign_out_keeps_profile_edits_made_meanwhile(auth: AuthService) -> None:
    stale = (await auth.register("alice", "alice@example.com", "secret1")).value
    await auth.update_username(stale.id, "alice-renamed")

    signed_out = (await auth.sign_out(stale)).value
    assert signed_out.username == "alice-renamed"


@pytest.mark.asyncio
async def test_update_username(auth: AuthService) -> None:
    user = (await auth.register("alice", "alice@example.com", "secret1")).value

    blank = await auth.update_username(user.id, "  ")
    assert blank.message == "Username cannot be empty"

    missing = await auth.update_username(999, "x")
    assert isinstance(missing.error, NotFoundError)

    res = await auth.update_username(user.id, "Alice B.")
    assert res.ok
    assert res.value.username == "Alice B."
    assert (await auth.get_user(user.id)).value.username == "Alice B."


@pytest.mark.asyncio
async def test_change_password(auth: AuthService) -> None:
    user = (await auth.register("alice", "alice@example.com", "secret1")).value

    assert (await auth.change_password(user.id, "", "newsecret")).message == "Current password cannot be empty"
    assert (
        await auth.change_password(user.id, "secret1", "short")
    ).message == "New password must be at least 6 characters"

    wrong = await auth.change_password(user.id, "nope-nope", "newsecret")
    assert isinstance(wrong.error, InvalidCredentialsError)
    assert wrong.message == "Current password is incorrect"

    ok = await auth.change_password(user.id, "secret1", "newsecret")
    assert ok.ok
    await auth.sign_out(user)
    assert not (await auth.authenticate("alice@example.com", "secret1")).ok
    assert (await auth.authenticate("alice@example.com", "newsecret")).ok


@pytest.mark.asyncio
async def test_unsaved_profile_writes_are_reported(settings) -> None:
    auth = AuthService(ForgetfulUserStore(settings.db_path))
    user = (await auth.register("alice", "alice@example.com", "secret1")).value

    renamed = await auth.update_username(user.id, "bob")
    assert isinstance(renamed.error, PersistenceError)
    assert renamed.message == "Profile update was not saved to database"

    changed = await auth.change_password(user.id, "secret1", "newsecret")
    assert isinstance(changed.error, PersistenceError)
    assert changed.message == "Password change was not saved to database"


@pytest.mark.asyncio
async def test_delete_account_removes_tasks_and_reminders(
    auth: AuthService,
    task_service: TaskService,
    scheduler: FakeScheduler,
    user_store: UserStore,
) -> None:
    user = (await auth.register("alice", "alice@example.com", "secret1")).value
    for name in ("a", "b"):
        res = await task_service.create(name, NOW_MS + 10 * 3_600_000, 60, user_id=user.id)
        assert res.ok
    assert len(scheduler.pending) == 2

    res = await auth.delete_account(user)
    assert res.ok
    assert res.value == 2
    assert scheduler.pending == {}
    assert user_store.get_by_id(user.id) is None
    assert await task_service.list_for_user(user.id) == []

    again = await auth.delete_account(user)
    assert isinstance(again.error, NotFoundError)


@pytest.mark.asyncio
async def test_failed_account_delete_keeps_reminders(
    settings,
    task_service: TaskService,
    scheduler: FakeScheduler,
) -> None:
    users = UndeletableUserStore(settings.db_path)
    auth = AuthService(users, reminders=task_service)
    user = (await auth.register("alice", "alice@example.com", "secret1")).value
    task_id = (await task_service.create("Pay rent", NOW_MS + 10 * 3_600_000, 60, user_id=user.id)).value

    res = await auth.delete_account(user)

    assert not res.ok
    assert isinstance(res.error, StorageError)
    assert users.get_by_id(user.id) is not None
    assert [t.id for t in await task_service.list_for_user(user.id)] == [task_id]
    assert scheduler.pending_task_ids() == {task_id}
    assert ("cancel", task_id) not in scheduler.calls
