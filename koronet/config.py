# koronet/config.py
"""
Centralized configuration: every env var the service reads, in one place.

Env vars (all optional):
- PORT (default: 3000), HOST (default: 0.0.0.0)
- DB_USER (postgres), DB_HOST (postgres), DB_NAME (koronet),
  DB_PASSWORD (password), DB_PORT (5432)
- DATABASE_URL — overrides the DB_* fields when set (tests point it at SQLite)
- REDIS_HOST (redis), REDIS_PORT (6379), REDIS_PASSWORD (none)
- CORS_ORIGINS (default: *) — comma-separated
- ENVIRONMENT (default: development)
- LOG_LEVEL (default: INFO), LOG_AS_JSON (default: true)
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
"""

import os
from typing import List, Optional, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.engine import URL


class ConfigError(Exception):
    """Raised once at startup when the environment holds invalid values."""


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes")


class Settings(BaseModel):
    port: int = Field(3000, ge=1, le=65535)
    host: str = "0.0.0.0"

    db_user: str = "postgres"
    db_host: str = "postgres"
    db_name: str = "koronet"
    db_password: str = "password"
    db_port: int = Field(5432, ge=1, le=65535)
    database_url: Optional[str] = None

    redis_host: str = "redis"
    redis_port: int = Field(6379, ge=1, le=65535)
    redis_password: Optional[str] = None

    cors_origins: List[str] = ["*"]
    environment: str = "development"
    log_level: str = "INFO"
    log_as_json: bool = True
    prometheus_enabled: bool = True
    sentry_dsn: Optional[str] = None

    @field_validator("redis_password", "database_url", "sentry_dsn")
    @classmethod
    def empty_means_unset(cls, v):
        # REDIS_PASSWORD= in a compose file should behave like no password
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def sqlalchemy_url(self):
        """DATABASE_URL when set, otherwise a PostgreSQL URL built from DB_*."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "Settings":
        """Build and validate settings from the environment (os.environ by default)."""
        env = os.environ if environ is None else environ
        raw = {}
        for field in ("port", "host", "db_user", "db_host", "db_name", "db_password",
                      "db_port", "database_url", "redis_host", "redis_port",
                      "redis_password", "environment", "log_level", "sentry_dsn"):
            value = env.get(field.upper())
            if value is not None:
                raw[field] = value
        if env.get("CORS_ORIGINS"):
            raw["cors_origins"] = [o.strip() for o in env["CORS_ORIGINS"].split(",") if o.strip()]
        for flag in ("log_as_json", "prometheus_enabled"):
            value = env.get(flag.upper())
            if value is not None:
                raw[flag] = _as_bool(value)
        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
