"""
web/routes.py -- Browser-facing register / login / logout routes.

These routes take form posts and answer with redirects, the way a
server-rendered front end expects. View templates are not part of this
project: failures come back as the JSON error envelope with the matching
status code, and the landing pages return the session as JSON.

Routes:
  GET  /             -- redirect to the role landing page, or /login
  POST /register     -- create an account, 303 -> /login
  POST /login        -- set the "token" cookie, 303 -> /dashboard or /admin/home
  POST /logout       -- revoke the token, clear the cookie, 303 -> /login
  GET  /dashboard    -- user landing page (any session)
  GET  /admin/home   -- admin landing page (admin session only)

Form fields default to None so a missing field reaches AuthFlow and gets the
"None of the fields should be empty" message (400) instead of a 422.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.limiter import limiter, login_rate_limit
from api.models import ErrorDetail, ErrorResponse, LandingResponse, SessionResponse
from auth.dependencies import get_current_claims, require_admin, try_get_current_claims
from auth.flows import ADMIN_HOME_PATH, LOGIN_PATH, USER_HOME_PATH, AuthFlow
from auth.models import Claims
from auth.tokens import COOKIE_NAME, clear_auth_cookie, set_auth_cookie

logger = logging.getLogger("sessionguard.web")

router = APIRouter()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/")
def home(request: Request) -> RedirectResponse:
    claims = try_get_current_claims(request)
    if claims is None:
        return RedirectResponse(LOGIN_PATH, status_code=302)
    return RedirectResponse(ADMIN_HOME_PATH if claims.is_admin else USER_HOME_PATH, status_code=302)


@router.post("/register")
def register(
    request: Request,
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
):
    """Create an account and send the browser to the login page."""
    flow: AuthFlow = request.app.state.auth_flow
    outcome = flow.register(username, email, password)
    if not outcome.ok:
        return _error_response(outcome.status_code, outcome.error_kind.value, outcome.error)
    return RedirectResponse(outcome.redirect_to, status_code=303)


@router.post("/login")
@limiter.limit(login_rate_limit)  # brute-force mitigation -- FastAPI must register the limited wrapper
def login(
    request: Request,
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
):
    """Handle username/password login; set the session cookie on success."""
    flow: AuthFlow = request.app.state.auth_flow
    outcome = flow.login(username, password)
    if not outcome.ok:
        return _error_response(outcome.status_code, outcome.error_kind.value, outcome.error)

    resp = RedirectResponse(outcome.redirect_to, status_code=303)
    set_auth_cookie(resp, outcome.token, request.app.state.settings)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Revoke the session token if present, clear the cookie, go to /login.

    The token is revoked before the response is built, so the logout holds
    even if the client disconnects before reading the redirect.
    """
    flow: AuthFlow = request.app.state.auth_flow
    outcome = flow.logout(request.cookies.get(COOKIE_NAME))
    resp = RedirectResponse(outcome.redirect_to, status_code=303)
    if outcome.clear_cookie:
        clear_auth_cookie(resp, request.app.state.settings)
    return resp


@router.get("/dashboard", response_model=LandingResponse)
def dashboard(claims: Claims = Depends(get_current_claims)) -> LandingResponse:
    return LandingResponse(page="dashboard", session=SessionResponse.from_claims(claims))


@router.get("/admin/home", response_model=LandingResponse)
def admin_home(claims: Claims = Depends(require_admin)) -> LandingResponse:
    return LandingResponse(page="admin_home", session=SessionResponse.from_claims(claims))
