"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for sessionguard happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The same
      instance is handed to TokenIssuer, UserStore and AuthFlow at startup, so
      components never read configuration from module globals.

  Frozen model: once validation has run the Settings object is immutable.
      The signing key and admin password are read-only for the life of the
      process and need no synchronization.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. JWT signing
       relies on key entropy -- a short key weakens every issued token.

  [M7] A missing SECRET_KEY is a hard startup failure in every environment.
       Sessions are signed with it, so running without one is never valid.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessionguard.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'sessionguard_auth.db'}"

# Fixed session lifetime. Not an env setting: every token lives exactly 2 hours.
TOKEN_TTL_SECONDS = 2 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `secret_key` reads from SECRET_KEY, `environment` from ENVIRONMENT.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # "production" turns on the Secure cookie attribute; anything else is
    # treated as local development.
    environment: str = "development"
    # Empty string is the sentinel for "not configured". The model_validator
    # below raises on it, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    # Host headers accepted by TrustedHostMiddleware. JSON list in the env var.
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Shared secret for the built-in "admin" identity. Empty disables admin login.
    admin_password: str = ""
    revocation_sweep_seconds: int = 300

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def token_ttl_seconds(self) -> int:
        return TOKEN_TTL_SECONDS

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce SECRET_KEY policy [M6][M7] and warn on a missing admin secret.

        A missing or short SECRET_KEY raises ValueError, which aborts startup.
        A missing ADMIN_PASSWORD only disables the admin login path.
        """
        if not self.secret_key:
            raise ValueError(
                "SECRET_KEY is required. Set SECRET_KEY in your environment or .env file."
            )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if not self.admin_password:
            logger.warning("ADMIN_PASSWORD is not set -- admin login is disabled.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or construct Settings(...)
    directly and pass it to the components.
    """
    return Settings()
