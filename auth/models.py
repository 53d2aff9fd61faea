"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Password checks live
in auth/passwords.py and take a User's hash as input; stores and flows do
the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ADMIN_USERNAME = "admin"


class Role(str, Enum):
    admin = "admin"
    user = "user"


@dataclass
class User:
    """A registered end user.

    username and email are stored lower-cased; both are unique. id is an
    opaque random string assigned by UserStore.register(), never sequential.
    The administrator is NOT a User -- it has no record in the store.
    """

    username: str
    email: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Verified contents of a session token.

    subject is the user id for user sessions and "admin" for the admin session.
    email is None on admin tokens. token_id (the jti claim) makes every token
    unique even when two are minted in the same second for the same user.
    issued_at / expires_at are epoch seconds.
    """

    subject: str
    username: str
    role: Role
    issued_at: int
    expires_at: int
    token_id: str
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin
