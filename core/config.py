"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Astra docs API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. admin_token -> ADMIN_TOKEN). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates an ADMIN_TOKEN with a
      warning; production mode refuses to start without one.

Security notes:
  ADMIN_TOKEN gates user registration. An empty token would let anyone who
  sends an empty "token" field register accounts, so it is never allowed to
  stay empty after validation.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
documents/, or cache/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("astra.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # below either generates a dev token or raises, so callers never see "".
    admin_token: str = ""

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    # DATABASE_URL wins when set. Otherwise a PostgreSQL URL is assembled from
    # the DB_* variables, and with no DB_HOST a local SQLite file is used.
    database_url: str = ""
    db_host: str = ""
    db_port: int = 5432
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""
    db_connect_attempts: int = 10
    db_connect_delay: float = 3.0
    auto_migrate: bool = True

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    cache_ttl_seconds: int = 300  # 0 disables expiry
    uploads_dir: str = "uploads"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    rate_limit_enabled: bool = True
    auth_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_admin_token(self) -> "Settings":
        """Enforce the ADMIN_TOKEN policy.

        Dev mode (DEBUG=true): auto-generate a random token with a warning.
            The generated value is logged once so a developer can register
            the first user.

        Production mode (DEBUG=false or not set): refuse to start if
            ADMIN_TOKEN is missing.
        """
        if not self.admin_token:
            if self.debug:
                self.admin_token = secrets.token_urlsafe(24)
                logger.warning("Using auto-generated ADMIN_TOKEN %s (set ADMIN_TOKEN to pin it).", self.admin_token)
            else:
                raise ValueError(
                    "ADMIN_TOKEN is required in production mode. "
                    "Set ADMIN_TOKEN in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if self.cache_ttl_seconds < 0:
            raise ValueError("CACHE_TTL_SECONDS must be zero or positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
