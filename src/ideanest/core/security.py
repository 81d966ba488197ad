"""Password hashing and digest helpers."""

from __future__ import annotations

import hashlib
import re

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
_PASSWORD_RULES: tuple[tuple[str, str], ...] = (
    (r"[a-z]", "one lowercase letter"),
    (r"[A-Z]", "one uppercase letter"),
    (r"\d", "one number"),
    (r"[@$!%*?&]", "one special character"),
)


def get_password_hash(password: str) -> str:
    """Return a bcrypt hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Check ``plain`` against a stored bcrypt hash."""
    return pwd_context.verify(plain, hashed)


def password_problems(password: str) -> list[str]:
    """Return the password policy rules ``password`` violates.

    An empty list means the password is acceptable.
    """
    problems: list[str] = []
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        problems.append(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    for pattern, label in _PASSWORD_RULES:
        if re.search(pattern, password) is None:
            problems.append(f"Password must contain at least {label}")
    return problems


def sha256_hex(value: str) -> str:
    """Return the hex SHA-256 digest of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
