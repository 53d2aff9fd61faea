"""
tests/conftest.py -- Shared test fixtures for sessionguard tests.

This module provides:
  - settings:       a Settings object built directly (no .env lookup)
  - user_store:     an isolated named shared-memory SQLite UserStore
  - issuer / registry / verifier / flow: the auth core wired by hand
  - web_client:     TestClient over the assembled ASGI app with
                    follow_redirects=False and a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool, and the
concurrency tests use their own threads. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread.

Environment variables must be set before any api/ import so get_settings()
(used by the rate limiter) finds a SECRET_KEY and a generous login limit.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing api/ so get_settings() validates.
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef-0123456789")
os.environ.setdefault("ADMIN_PASSWORD", "Adm1n!secret")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.flows import AuthFlow
from auth.revocation import RevocationRegistry
from auth.sessions import SessionVerifier
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings

TEST_SECRET_KEY = "unit-test-signing-key-abcdefghijklmnopqrstuvwxyz"
TEST_ADMIN_PASSWORD = "Adm1n!secret"

_db_counter = itertools.count()


def make_settings(**overrides) -> Settings:
    values = {
        "secret_key": TEST_SECRET_KEY,
        "admin_password": TEST_ADMIN_PASSWORD,
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_user_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so tests never
                   share state.
    """
    return UserStore(f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true")


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = make_user_store(f"unit_{next(_db_counter)}")
    yield store
    store.close()


@pytest.fixture
def issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(settings)


@pytest.fixture
def registry() -> RevocationRegistry:
    return RevocationRegistry()


@pytest.fixture
def verifier(issuer: TokenIssuer, registry: RevocationRegistry) -> SessionVerifier:
    return SessionVerifier(issuer, registry)


@pytest.fixture
def flow(settings: Settings, user_store: UserStore, issuer: TokenIssuer, verifier: SessionVerifier) -> AuthFlow:
    return AuthFlow(settings, user_store, issuer, verifier)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test store into app.state so TestClient routes see
    an isolated test DB. No sweep task: tests call sweep() directly.
    """
    from api.main import build_auth_core

    @asynccontextmanager
    async def test_lifespan(app):
        build_auth_core(app, settings, user_store)
        yield

    return test_lifespan


@pytest.fixture
def web_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for the assembled app.

    follow_redirects=False is essential: tests assert on redirect Location
    headers and Set-Cookie attributes, which are invisible once the client
    follows the redirect.
    """
    from asgi import app

    store = make_user_store(f"web_{next(_db_counter)}")
    app.router.lifespan_context = _patch_lifespan(make_settings(), store)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=False) as client:
        yield client

    store.close()
    limiter.reset()


@pytest.fixture
def production_web_client() -> Generator[TestClient, None, None]:
    """Same as web_client but with ENVIRONMENT=production (Secure cookies)."""
    from asgi import app

    store = make_user_store(f"web_prod_{next(_db_counter)}")
    app.router.lifespan_context = _patch_lifespan(make_settings(environment="production"), store)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=False) as client:
        yield client

    store.close()
    limiter.reset()
