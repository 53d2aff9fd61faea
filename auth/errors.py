"""
auth/errors.py -- Closed error taxonomy for the authentication core.

Every failure the core can report carries an ErrorKind. Callers (the flow
controller, the HTTP layer) switch on exc.kind instead of inspecting storage
error codes or message strings.

Layer rule: stdlib only.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    validation = "validation"
    duplicate = "duplicate"
    not_found = "not_found"
    invalid_credential = "invalid_credential"
    malformed = "malformed"
    expired = "expired"
    revoked = "revoked"


class AuthError(Exception):
    """Base class for all expected authentication failures.

    message is safe to show to the end user. field names the offending input
    for validation and duplicate errors ("username", "email", "password").
    """

    kind: ErrorKind

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(AuthError):
    kind = ErrorKind.validation


class DuplicateError(AuthError):
    kind = ErrorKind.duplicate


class NotFoundError(AuthError):
    kind = ErrorKind.not_found


class InvalidCredentialError(AuthError):
    kind = ErrorKind.invalid_credential


class MalformedTokenError(AuthError):
    kind = ErrorKind.malformed


class ExpiredTokenError(AuthError):
    kind = ErrorKind.expired


class RevokedTokenError(AuthError):
    kind = ErrorKind.revoked
