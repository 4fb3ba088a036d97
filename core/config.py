"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the admin backend happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET).

  @model_validator(mode="after"): Enforces the signing secret policy. Dev mode
      (DEBUG=true) generates a key with a warning, production refuses to start
      without one.

Deployment mode:
  is_production is simply `not debug`. Production forces Secure on the admin
  session cookie; non-production deployments may serve the panel over plain
  HTTP on localhost.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
audit/, or content/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("wojp.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'wojp_admin.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    # Optional separate secret for the admin universe. Falls back to jwt_secret.
    admin_jwt_secret: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Sessions and cookies
    # ------------------------------------------------------------------

    # Forces Secure on the admin cookie outside production (e.g. staging on HTTPS).
    secure_cookies: bool = False
    # Non-production only: drop Secure from end-user session cookies so the
    # OAuth flow works over http://localhost.
    insecure_dev_cookies: bool = False
    admin_session_ttl_seconds: int = 7 * 24 * 60 * 60
    user_session_ttl_seconds: int = 365 * 24 * 60 * 60

    # ------------------------------------------------------------------
    # OAuth providers (optional -- empty string means provider is disabled)
    # ------------------------------------------------------------------

    github_client_id: str = ""
    github_client_secret: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""

    oidc_client_id: str = ""
    oidc_client_secret: str = ""
    oidc_discovery_url: str = ""
    oidc_display_name: str = "SSO"

    # End user provisioned with role "admin" on first OAuth login.
    owner_email: str = ""

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return not self.debug

    @property
    def admin_signing_secret(self) -> str:
        return self.admin_jwt_secret or self.jwt_secret

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if JWT_SECRET is missing.

        Both modes: reject keys shorter than 32 characters. HS256 relies on
            key entropy.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        if self.admin_jwt_secret and len(self.admin_jwt_secret) < 32:
            raise ValueError("ADMIN_JWT_SECRET must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
