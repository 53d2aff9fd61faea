"""
auth/tokens.py -- Session token issuing and verification, plus the cookie helper.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub, username, role, iat, exp and a random jti (plus email for user
       sessions). Lifetime is fixed at 2 hours from issuance.

  Verification raises instead of returning None: MalformedTokenError for
       anything that fails to parse or whose signature does not validate,
       ExpiredTokenError once exp has passed. python-jose checks the signature
       before the claims, so a forged expired token is reported as malformed.

  SECRET_KEY: read once from the Settings object handed to TokenIssuer at
       startup. It is never logged and never leaves this object.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is
the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import ExpiredTokenError, MalformedTokenError
from auth.models import ADMIN_USERNAME, Claims, Role, User
from core.config import Settings

logger = logging.getLogger("sessionguard.auth")

_ALGORITHM = "HS256"

COOKIE_NAME = "token"

_REQUIRED_CLAIMS = ("sub", "username", "role", "iat", "exp", "jti")


class TokenIssuer:
    """Mints and checks signed session tokens.

    Usage:
        issuer = TokenIssuer(get_settings())
        token = issuer.issue_user(user)
        claims = issuer.verify_signature_and_expiry(token)
    """

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.secret_key
        self.ttl_seconds = settings.token_ttl_seconds

    def issue(self, subject_claims: dict, role: Role, now: datetime | None = None) -> str:
        """Encode a signed JWT for the given identity claims and role.

        Args:
            subject_claims: must hold "sub" and "username"; "email" is optional.
            role:           Role.admin or Role.user.
            now:            issuance time; defaults to the current UTC time.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            **subject_claims,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.ttl_seconds),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def issue_admin(self, now: datetime | None = None) -> str:
        return self.issue({"sub": ADMIN_USERNAME, "username": ADMIN_USERNAME}, Role.admin, now=now)

    def issue_user(self, user: User, now: datetime | None = None) -> str:
        return self.issue(
            {"sub": user.id, "username": user.username, "email": user.email},
            Role.user,
            now=now,
        )

    def verify_signature_and_expiry(self, token: str) -> Claims:
        """Decode and verify a JWT. Returns Claims or raises.

        Raises:
            ExpiredTokenError:   signature valid but exp has passed.
            MalformedTokenError: anything else -- unparseable, bad signature,
                                 missing claims, unknown role.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError("Session has expired.") from exc
        except JWTError as exc:
            raise MalformedTokenError("Invalid session token.") from exc

        if any(name not in payload for name in _REQUIRED_CLAIMS):
            raise MalformedTokenError("Invalid session token.")
        try:
            role = Role(payload["role"])
            return Claims(
                subject=str(payload["sub"]),
                username=str(payload["username"]),
                role=role,
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
                token_id=str(payload["jti"]),
                email=payload.get("email"),
            )
        except (TypeError, ValueError) as exc:
            raise MalformedTokenError("Invalid session token.") from exc


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, settings: Settings) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="strict": never sent on cross-site requests (CSRF mitigation).
    secure: only sent over HTTPS in a production deployment.
    max_age: matches the JWT lifetime so both expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
        max_age=settings.token_ttl_seconds,
    )


def clear_auth_cookie(response, settings: Settings) -> None:
    response.delete_cookie(
        COOKIE_NAME,
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )
