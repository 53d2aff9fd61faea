"""
auth/passwords.py -- Password hashing and strength policy.

Stateless functions over (hash, candidate) pairs. The User dataclass carries
only the hash; nothing here touches storage, so the algorithm can be swapped
or tested in isolation.

Passwords: bcrypt used directly (no passlib wrapper). bcrypt salts every hash
and its cost factor makes brute-force of a leaked store expensive. checkpw()
compares digests in constant time. Inputs over 72 bytes are rejected by the
strength policy because bcrypt cannot hash them faithfully.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

from auth.errors import ValidationError

MIN_PASSWORD_LENGTH = 8
_BCRYPT_MAX_BYTES = 72

WEAK_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters long and include uppercase, "
    "lowercase, number, and special character."
)


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Over-long input or a corrupt stored hash.
        return False


# Timing equalization dummy hash [C1].
# Computed once at import so the first login attempt is not measurably
# slower than later ones. Callers verify against it when a username does not
# exist, so "not found" costs the same bcrypt round as "wrong password".
DUMMY_HASH: str = hash_password("sessionguard_timing_dummy")


def is_strong_password(password: str) -> bool:
    """Length >= 8 with at least one upper, lower, digit and symbol."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return False
    if len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        return False
    has_upper = any(ch.isupper() for ch in password)
    has_lower = any(ch.islower() for ch in password)
    has_digit = any(ch.isdigit() for ch in password)
    has_symbol = any(not ch.isalnum() for ch in password)
    return has_upper and has_lower and has_digit and has_symbol


def check_password_strength(password: str) -> None:
    """Raise ValidationError if the password fails the strength policy."""
    if not is_strong_password(password):
        raise ValidationError(WEAK_PASSWORD_MESSAGE, field="password")
