# src/task_reminder/users/auth_service.py

"""
Auth service.

Registration, sign-in/out and profile changes on top of a UserRepo.

Every public method is a coroutine that runs the blocking store work on a
worker thread and returns a Result; errors never cross this boundary as
exceptions.

Profile writes are verified by reading the row back (read-after-write). A write
the store acknowledged but that is not visible afterwards is reported as a
PersistenceError.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..core.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..core.ports import OwnedReminders, UserRepo
from ..core.results import Result, guard
from .passwords import hash_password, validate_new_password, validate_registration, verify_password
from .user_models import User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        users: UserRepo,
        *,
        reminders: OwnedReminders | None = None,
    ) -> None:
        self._users = users
        self._reminders = reminders

    # ---- registration / session ----

    async def register(self, username: str, email: str, password: str) -> Result[User]:
        return await guard(
            asyncio.to_thread(self._register, username, email.strip(), password),
            logger=logger,
            what="register",
        )

    def _register(self, username: str, email: str, password: str) -> User:
        validate_registration(username, email, password)

        logger.debug("Attempting to register user: %s, %s", username, email)

        # The UNIQUE index still catches a registration racing this lookup.
        if self._users.get_by_email(email) is not None:
            raise DuplicateEmailError()

        new_user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_logged_in=False,
        )
        user_id = self._users.insert(new_user)

        logged_in = replace(new_user, id=user_id, is_logged_in=True)
        self._users.update(logged_in)

        logger.info("User registered id=%s username=%s", logged_in.id, logged_in.username)
        return logged_in

    async def authenticate(self, email: str, password: str) -> Result[User]:
        return await guard(
            asyncio.to_thread(self._authenticate, email.strip(), password),
            logger=logger,
            what="authenticate",
        )

    def _authenticate(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationError("Email and password cannot be empty")

        user = self._users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid password")

        updated = replace(user, is_logged_in=True)
        self._users.update(updated)
        logger.info("User signed in id=%s", updated.id)
        return updated

    async def sign_out(self, user: User) -> Result[User]:
        return await guard(asyncio.to_thread(self._sign_out, user), logger=logger, what="sign_out")

    def _sign_out(self, user: User) -> User:
        # Start from the stored row so a stale in-memory copy cannot roll back profile edits.
        current = self._users.get_by_id(user.id) or user
        signed_out = replace(current, is_logged_in=False)
        self._users.update(signed_out)
        logger.info("User signed out id=%s", signed_out.id)
        return signed_out

    async def current_user(self) -> Result[User | None]:
        """The account whose session flag is still set, if any."""
        return await guard(
            asyncio.to_thread(self._users.get_logged_in_user),
            logger=logger,
            what="current_user",
        )

    async def get_user(self, user_id: int) -> Result[User]:
        return await guard(asyncio.to_thread(self._get_user, user_id), logger=logger, what="get_user")

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ---- profile ----

    async def update_username(self, user_id: int, new_username: str) -> Result[User]:
        return await guard(
            asyncio.to_thread(self._update_username, user_id, new_username),
            logger=logger,
            what="update_username",
        )

    def _update_username(self, user_id: int, new_username: str) -> User:
        if not new_username or not new_username.strip():
            raise ValidationError("Username cannot be empty")

        current = self._get_user(user_id)
        logger.debug("Updating profile for user %s: %s -> %s", user_id, current.username, new_username)

        self._users.update_username(user_id, new_username)

        verify = self._users.get_by_id(user_id)
        if verify is None or verify.username != new_username:
            logger.error(
                "Profile update verification failed. Expected: %s, Got: %s",
                new_username,
                verify.username if verify else None,
            )
            raise PersistenceError("Profile update was not saved to database")

        logger.info("Profile updated for user %s", user_id)
        return verify

    async def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
    ) -> Result[User]:
        return await guard(
            asyncio.to_thread(self._change_password, user_id, current_password, new_password),
            logger=logger,
            what="change_password",
        )

    def _change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        if not current_password:
            raise ValidationError("Current password cannot be empty")
        validate_new_password(new_password)

        user = self._get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            logger.warning("Current password verification failed for user %s", user_id)
            raise InvalidCredentialsError("Current password is incorrect")

        new_hash = hash_password(new_password)
        self._users.update_password_hash(user_id, new_hash)

        verify = self._users.get_by_id(user_id)
        if verify is None or verify.password_hash != new_hash:
            logger.error("Password change verification failed for user %s", user_id)
            raise PersistenceError("Password change was not saved to database")

        logger.info("Password changed for user %s", user_id)
        return verify

    # ---- account removal ----

    async def delete_account(self, user: User) -> Result[int]:
        """
        Delete the account and (by cascade) every task it owns.

        Task ids are collected first (the cascade removes the rows), and their
        reminders are cancelled only once the user row is gone. A failed delete
        leaves every reminder in place. Returns the number of cancelled reminders.
        """

        async def _op() -> int:
            task_ids: list[int] = []
            if self._reminders is not None:
                task_ids = await self._reminders.owned_task_ids(user.id)
            deleted = await asyncio.to_thread(self._users.delete, user)
            if not deleted:
                raise NotFoundError("User not found")
            cancelled = 0
            if self._reminders is not None:
                cancelled = await self._reminders.cancel_reminders(task_ids)
            logger.info("User deleted id=%s (reminders cancelled=%s)", user.id, cancelled)
            return cancelled

        return await guard(_op(), logger=logger, what="delete_account")
