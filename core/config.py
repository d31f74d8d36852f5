"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for DataWatchman happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. insee_api_key -> INSEE_API_KEY). Type coercion and validation are
      built in. List fields are read as JSON, e.g.
      ALLOWED_ORIGINS='["https://datawatchman.dev"]'.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used to reject plain-http origins in the
      allow-list and to refuse a production start without the USRN access
      password when one is required.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
reports/ or bduk/.
"""

import logging
from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("datawatchman.config")

_LOCALHOST_ORIGINS = ("http://localhost:3000", "http://localhost:8000")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. Credentials default to the empty
    string, which every consumer treats as "not configured".
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
    # "production" turns on HSTS and drops 'unsafe-eval' from the CSP.
    prod_env: str = "development"

    # ------------------------------------------------------------------
    # Request gating
    # ------------------------------------------------------------------

    allowed_origins: list[str] = ["https://datawatchman.dev", "https://www.datawatchman.dev"]
    allow_localhost: bool = False
    # Policy for requests carrying neither Origin nor Referer.
    # False = reject (strict). True = treat as same-origin and accept.
    allow_missing_origin: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "datawatchman.dev", "www.datawatchman.dev"]

    rate_limit_max: int = Field(default=30, gt=0)
    rate_limit_window_minutes: int = Field(default=30, gt=0)
    usrn_rate_limit_max: int = Field(default=20, gt=0)
    usrn_rate_limit_window_minutes: int = Field(default=30, gt=0)
    # Per-client (IP) throttle on the write endpoint, slowapi syntax.
    submission_rate_limit: str = "5/minute"

    max_body_bytes: int = Field(default=100 * 1024, gt=0)

    # ------------------------------------------------------------------
    # Outbound HTTP
    # ------------------------------------------------------------------

    http_timeout_seconds: float = Field(default=10.0, gt=0)
    insee_api_key: str = ""

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    # Submissions store (append-only). SQLAlchemy URL, e.g. postgresql://...
    database_url: str = ""
    # Analytical database holding the BDUK premises and OS identifier tables.
    analytics_db_url: str = ""
    bduk_table: str = ""
    os_identifiers_table: str = ""

    # ------------------------------------------------------------------
    # USRN lookup access
    # ------------------------------------------------------------------

    require_password: bool = True
    usrn_access_password: str = ""
    usrn_lookup_enabled: bool = True

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return self.prod_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        """The effective allow-list: configured origins plus localhost when enabled."""
        origins = list(self.allowed_origins)
        if self.allow_localhost:
            origins.extend(o for o in _LOCALHOST_ORIGINS if o not in origins)
        return origins

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Allow-list entries must be bare https origins (localhost excepted).

        An entry with a path or a trailing slash would never string-match a
        browser Origin header, so it is rejected here rather than silently
        ignored at request time.
        """
        for origin in self.allowed_origins:
            parts = urlsplit(origin)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"ALLOWED_ORIGINS entry is not an origin: {origin!r}")
            if parts.path or parts.query or parts.fragment:
                raise ValueError(f"ALLOWED_ORIGINS entry must not carry a path: {origin!r}")
            if parts.scheme != "https" and parts.hostname != "localhost":
                raise ValueError(f"ALLOWED_ORIGINS entry must use https: {origin!r}")
        return self

    @model_validator(mode="after")
    def validate_usrn_password(self) -> "Settings":
        """Refuse a production start when the USRN lookup needs a password nobody set.

        In debug mode the lookup simply answers 500 (configuration missing)
        until USRN_ACCESS_PASSWORD is provided, with a warning at startup.
        """
        if self.usrn_lookup_enabled and self.require_password and not self.usrn_access_password:
            if self.is_production:
                raise ValueError(
                    "USRN_ACCESS_PASSWORD is required in production when REQUIRE_PASSWORD is true. "
                    "Set it in your environment or .env file, or set USRN_LOOKUP_ENABLED=false."
                )
            logger.warning("USRN_ACCESS_PASSWORD is not set -- USRN lookups will fail until it is.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
