"""
api/routes/v1/auth.py -- JSON session endpoints for non-browser callers.

Routes:
  GET /api/v1/auth/me -- claims of the current session (requires auth)

The browser flow (register, login, logout, landing pages) lives in
web/routes.py. Both read the same "token" cookie through auth.dependencies.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import SessionResponse
from auth.dependencies import get_current_claims
from auth.models import Claims

# Auth policy:
# - GET /api/v1/auth/me: requires auth (get_current_claims)
router = APIRouter()


@router.get("/auth/me", response_model=SessionResponse)
async def me(claims: Claims = Depends(get_current_claims)) -> SessionResponse:
    """Return identity information for the current session."""
    return SessionResponse.from_claims(claims)
