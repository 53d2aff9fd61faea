"""
auth/flows.py -- Register / login / logout orchestration.

AuthFlow is the only object the HTTP layer talks to. Each method ends in a
plain outcome dataclass; expected failures from the store and the token
layer (AuthError subclasses) are caught here and turned into a user-facing
message plus a status code, switching on the closed ErrorKind enum.
Unexpected exceptions are not caught -- the API's catch-all handler logs them
and returns a generic 500.

Login paths:
  - "admin" (any case) is the built-in administrator. The password is compared
    with ADMIN_PASSWORD in constant time; a mismatch fails immediately and
    never falls through to the user store.
  - Everyone else goes through UserStore.verify(), which runs bcrypt on both
    the "not found" and "wrong password" paths [C1].

Layer rule: no imports from api/.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from auth.errors import AuthError, ErrorKind, MalformedTokenError
from auth.models import ADMIN_USERNAME, Claims
from auth.passwords import DUMMY_HASH, verify_password
from auth.sessions import SessionVerifier
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings

logger = logging.getLogger("sessionguard.auth")

LOGIN_PATH = "/login"
USER_HOME_PATH = "/dashboard"
ADMIN_HOME_PATH = "/admin/home"

MISSING_FIELDS_MESSAGE = "None of the fields should be empty"

# Status code per error kind for the login and register flows.
_STATUS_BY_KIND = {
    ErrorKind.validation: 400,
    ErrorKind.duplicate: 400,
    ErrorKind.not_found: 401,
    ErrorKind.invalid_credential: 401,
}


@dataclass(frozen=True)
class RegisterOutcome:
    ok: bool
    redirect_to: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    status_code: int = 303


@dataclass(frozen=True)
class LoginOutcome:
    ok: bool
    token: str | None = None
    redirect_to: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    status_code: int = 303


@dataclass(frozen=True)
class LogoutOutcome:
    clear_cookie: bool = True
    redirect_to: str = LOGIN_PATH
    revoked: bool = False


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class AuthFlow:
    """Facade over the credential store, token issuer and session verifier.

    Usage:
        flow = AuthFlow(settings, store, issuer, verifier)
        outcome = flow.login("alice", "S3cure!pass")
        if outcome.ok:
            set_auth_cookie(response, outcome.token, settings)
    """

    def __init__(
        self,
        settings: Settings,
        store: UserStore,
        issuer: TokenIssuer,
        verifier: SessionVerifier,
    ) -> None:
        self._admin_password = settings.admin_password
        self.store = store
        self.issuer = issuer
        self.verifier = verifier

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def register(self, username: str | None, email: str | None, password: str | None) -> RegisterOutcome:
        if _is_blank(username) or _is_blank(email) or not password:
            return RegisterOutcome(
                ok=False,
                error=MISSING_FIELDS_MESSAGE,
                error_kind=ErrorKind.validation,
                status_code=400,
            )
        try:
            self.store.register(username, email, password)
        except AuthError as exc:
            logger.info("Registration rejected (%s)", exc.kind.value)
            return RegisterOutcome(
                ok=False,
                error=exc.message,
                error_kind=exc.kind,
                status_code=_STATUS_BY_KIND.get(exc.kind, 400),
            )
        return RegisterOutcome(ok=True, redirect_to=LOGIN_PATH)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, username: str | None, password: str | None) -> LoginOutcome:
        if _is_blank(username) or not password:
            return LoginOutcome(
                ok=False,
                error=MISSING_FIELDS_MESSAGE,
                error_kind=ErrorKind.validation,
                status_code=400,
            )

        if username.strip().lower() == ADMIN_USERNAME:
            return self._login_admin(password)

        try:
            user = self.store.verify(username, password)
        except AuthError as exc:
            logger.info("Login failed (%s)", exc.kind.value)
            return LoginOutcome(
                ok=False,
                error=exc.message,
                error_kind=exc.kind,
                status_code=_STATUS_BY_KIND.get(exc.kind, 401),
            )
        token = self.issuer.issue_user(user)
        logger.info("User %s logged in", user.id)
        return LoginOutcome(ok=True, token=token, redirect_to=USER_HOME_PATH)

    def _login_admin(self, password: str) -> LoginOutcome:
        # Burn one bcrypt round so the admin path costs what the user path does.
        verify_password(password, DUMMY_HASH)
        matched = bool(self._admin_password) and hmac.compare_digest(
            password.encode("utf-8"), self._admin_password.encode("utf-8")
        )
        if not matched:
            logger.warning("Admin login failed")
            return LoginOutcome(
                ok=False,
                error="Invalid password",
                error_kind=ErrorKind.invalid_credential,
                status_code=401,
            )
        logger.info("Admin logged in")
        return LoginOutcome(ok=True, token=self.issuer.issue_admin(), redirect_to=ADMIN_HOME_PATH)

    # ------------------------------------------------------------------
    # Logout / authenticate
    # ------------------------------------------------------------------

    def logout(self, token: str | None) -> LogoutOutcome:
        """Revoke the presented token (if any). Always clears the cookie."""
        revoked = False
        if token:
            revoked = self.verifier.revoke(token)
        return LogoutOutcome(revoked=revoked)

    def authenticate(self, token: str | None) -> Claims:
        """Return claims for a presented session token or raise a token AuthError."""
        if not token:
            raise MalformedTokenError("Authentication required.")
        return self.verifier.verify(token)
