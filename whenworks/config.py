"""Typed settings loaded from the environment.

One ``BaseSettings`` class per concern, each with its own env prefix,
grouped under ``Settings`` and cached by ``get_settings()``:

    from whenworks.config import get_settings
    window = get_settings().rate_limit.window_sec
"""

from functools import lru_cache
from typing import Annotated

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


# ENABLE_X=1 / REQUEST_DEBUG=yes style switches
Flag = Annotated[bool, BeforeValidator(_parse_flag)]


class RedisSettings(BaseSettings):
    """Redis backs the shared rate limit counters."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = "redis"
    port: int = 6379
    password: str = ""
    max_connections: int = 50
    pool_timeout_sec: float = Field(default=5.0, description="Wait for a free pool connection")
    health_check_interval: int = 30
    retry_on_timeout: bool = True
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


class PostgresSettings(BaseSettings):
    """Event and availability storage."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", extra="ignore", populate_by_name=True)

    host: str = "postgres"
    port: int = 5432
    user: str = "whenworks"
    password: str = ""
    database: str = Field(default="whenworks", validation_alias="POSTGRES_DB")
    sslmode: str = "disable"
    pool_min_size: int = 2
    pool_max_size: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    pool_max_lifetime: int = Field(default=1800, description="Recycle connections after this many seconds")
    pool_max_idle: int = Field(default=300, description="Close idle connections after this many seconds")

    def get_dsn(self) -> str:
        return (
            f"host={self.host} port={self.port} user={self.user} password={self.password} "
            f"dbname={self.database} sslmode={self.sslmode}"
        )


class CorsSettings(BaseSettings):
    """Browser origins allowed to call the API.

    ``CORS_ORIGINS`` is a comma-separated list; ``CORS_ORIGINS_REGEX``
    matches origins by pattern instead.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")
    origins_regex: str = Field(default="", validation_alias="CORS_ORIGINS_REGEX")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        # browsers reject credentials on wildcard or pattern-matched origins
        return self.origins != ["*"] and not self.origins_regex


class DebugSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    request: Flag = Field(default=False, alias="request_debug")


class FeatureSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    db: Flag = Field(default=False, alias="enable_db")
    rate_limit: Flag = Field(default=True, alias="enable_rate_limit")


class RateLimitSettings(BaseSettings):
    """Fixed-window limits on the write endpoints."""

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_", extra="ignore")

    create_event_limit: int = Field(default=10, description="Events per client per window")
    submit_limit: int = Field(default=30, description="Submissions per client per event per window")
    window_sec: int = 3600
    key_prefix: str = "ratelimit"


class SchedulingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCHEDULING_", extra="ignore")

    default_best_times: int = Field(default=3, description="Blocks returned when no limit is given")
    max_best_times: int = Field(default=50, description="Cap on the limit query parameter")
    max_dates: int = Field(default=31, description="Candidate dates allowed per event")


class Settings:
    """All configuration sections, each reading its own prefixed variables."""

    def __init__(self) -> None:
        self.redis = RedisSettings()
        self.postgres = PostgresSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()
        self.rate_limit = RateLimitSettings()
        self.scheduling = SchedulingSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    get_settings.cache_clear()
