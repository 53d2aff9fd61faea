"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session token is read from the "token" cookie only (set by POST /login).

try_get_current_claims() is the soft variant (returns None on failure).
get_current_claims() wraps it and raises HTTP 401 if unauthenticated.
require_admin() wraps get_current_claims() and raises HTTP 403 if not admin.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import AuthError, ErrorKind
from auth.flows import AuthFlow
from auth.models import Claims
from auth.tokens import COOKIE_NAME

_UNAUTHORIZED_MESSAGES = {
    ErrorKind.expired: "Session has expired. Please log in again.",
    ErrorKind.revoked: "Session has been logged out. Please log in again.",
}


def try_get_current_claims(request: Request) -> Claims | None:
    """Return the verified claims for the request's session cookie, or None.

    Never raises -- callers that need a hard 401 should use get_current_claims().
    """
    flow: AuthFlow = request.app.state.auth_flow
    try:
        return flow.authenticate(request.cookies.get(COOKIE_NAME))
    except AuthError:
        return None


def get_current_claims(request: Request) -> Claims:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: Claims = Depends(get_current_claims)): ...
    """
    flow: AuthFlow = request.app.state.auth_flow
    try:
        return flow.authenticate(request.cookies.get(COOKIE_NAME))
    except AuthError as exc:
        raise HTTPException(
            status_code=401,
            detail={
                "code": exc.kind.value,
                "message": _UNAUTHORIZED_MESSAGES.get(exc.kind, "Authentication required."),
            },
        ) from exc


def require_admin(request: Request) -> Claims:
    """Require admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin."""
    claims = get_current_claims(request)
    if not claims.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return claims
