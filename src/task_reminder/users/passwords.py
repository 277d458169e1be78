# src/task_reminder/users/passwords.py

"""
Credential helpers: password hashing and input validation.

Hashing is a fixed, unsalted SHA-256 over the UTF-8 password bytes, hex-encoded,
so existing hashes stay comparable byte-for-byte.
"""

from __future__ import annotations

import hashlib
import hmac
import re

from ..core.errors import ValidationError

MIN_PASSWORD_LENGTH = 6

# local@domain with at least one dot in the domain part.
EMAIL_REGEX = re.compile(
    r"[a-zA-Z0-9+._%\-]{1,256}"
    r"@"
    r"[a-zA-Z0-9][a-zA-Z0-9\-]{0,64}"
    r"(\.[a-zA-Z0-9][a-zA-Z0-9\-]{0,25})+"
)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    return hmac.compare_digest(hash_password(password).encode("utf-8"), password_hash.encode("utf-8"))


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_REGEX.fullmatch(email) is not None


def validate_registration(username: str, email: str, password: str) -> None:
    """Raise ValidationError naming the first violated rule."""
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not username or not username.strip():
        raise ValidationError("Username cannot be empty")


def validate_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
