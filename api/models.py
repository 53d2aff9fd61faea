"""
API response models for sessionguard HTTP endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import Claims


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


class SessionResponse(BaseModel):
    """The claims of the caller's current session.

    Returned by GET /api/v1/auth/me and the landing pages. email is None for
    the admin session.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    username: str
    email: Optional[str] = None
    role: str
    issued_at: int
    expires_at: int

    @classmethod
    def from_claims(cls, claims: Claims) -> "SessionResponse":
        return cls(
            subject=claims.subject,
            username=claims.username,
            email=claims.email,
            role=claims.role.value,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


class LandingResponse(BaseModel):
    """Body of the role landing pages (/dashboard, /admin/home)."""

    model_config = ConfigDict(frozen=True)

    page: str
    session: SessionResponse
