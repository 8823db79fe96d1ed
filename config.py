"""
Application configuration via pydantic-settings.

Every group reads the process environment and the project's .env file. The
groups are separate classes so the CLI bootstrap and the tests can build just
the piece they need; AppSettings composes all of them for the web app.

Environment variables (case-insensitive):

    MONGODB_URI, DB_NAME, USE_TRANSACTIONS
    API_KEY_PREFIX, API_KEY_BYTES, TOKEN_BYTES, MAX_ISSUANCE_ATTEMPTS,
    MAX_CASCADE_SIZE
    LOG_LEVEL, LOG_FORMAT, SAMPLE_RATE_AUTH, SAMPLE_RATE_LOOKUP
    SENTRY_DSN, SENTRY_SEND_PII, SENTRY_TRACES_SAMPLE_RATE,
    SENTRY_PROFILE_SAMPLE_RATE
    ENV, APP_NAME, CORS_ORIGINS, DOCS_URL
"""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class DatabaseSettings(_EnvSettings):
    mongodb_uri: str
    db_name: str = Field(default="keywarden", min_length=1)
    # Multi-document transactions need a replica set; on a standalone server
    # cascades fall back to per-statement atomicity.
    use_transactions: bool = True


class SecuritySettings(_EnvSettings):
    api_key_prefix: str = "kw_"
    api_key_bytes: int = Field(default=48, ge=32)
    token_bytes: int = Field(default=32, ge=32)
    max_issuance_attempts: int = Field(default=3, ge=1)
    max_cascade_size: int = Field(default=10_000, ge=1)

    @field_validator("api_key_prefix")
    @classmethod
    def _prefix_is_plain(cls, v: str) -> str:
        if not re.fullmatch(r"[a-z][a-z0-9]{0,7}_", v):
            raise ValueError("api_key_prefix must look like 'kw_'")
        return v


class LoggingSettings(_EnvSettings):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    sample_rate_auth: float = Field(default=0.10, ge=0.0, le=1.0)
    sample_rate_lookup: float = Field(default=0.20, ge=0.0, le=1.0)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return v


class SentrySettings(_EnvSettings):
    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(_EnvSettings):
    env: str = "development"
    app_name: str = "keywarden"
    cors_origins: list[str] = ["*"]
    # None hides the OpenAPI UI
    docs_url: Optional[str] = "/docs"

    db: Optional[DatabaseSettings] = None
    security: Optional[SecuritySettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _compose_groups(self) -> "AppSettings":
        self.db = self.db or DatabaseSettings()
        self.security = self.security or SecuritySettings()
        self.logging = self.logging or LoggingSettings()
        self.sentry = self.sentry or SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
