"""Application startup and shutdown.

Builds the Redis client, rate limiters and (optionally) the Postgres pool,
and publishes them on ``whenworks.state`` for the dependencies module.
"""

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool
from redis.exceptions import RedisError

from whenworks import db, state
from whenworks.config import get_settings
from whenworks.rate_limit import (
    AllowAllRateLimiter,
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    create_event_limiter: RateLimiter | None = None
    submit_limiter: RateLimiter | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis:
    """Redis client on a blocking pool sized from REDIS_* settings."""
    cfg = get_settings().redis
    pool = RedisConnectionPool(
        host=cfg.host,
        port=cfg.port,
        password=cfg.password or None,
        max_connections=cfg.max_connections,
        timeout=cfg.pool_timeout_sec,
        health_check_interval=cfg.health_check_interval,
        socket_timeout=cfg.socket_timeout,
        socket_connect_timeout=cfg.socket_connect_timeout,
        retry_on_timeout=cfg.retry_on_timeout,
        decode_responses=True,
    )
    client = redis.Redis(connection_pool=pool)
    if hasattr(client, "__await__"):
        client = await client
    logger.info("Redis client ready (%s:%d)", cfg.host, cfg.port)
    return client


def build_rate_limiters(redis_client: redis.Redis | None) -> tuple[RateLimiter, RateLimiter]:
    """Limiters for (event creation, availability submission)."""
    settings = get_settings()
    limits = settings.rate_limit
    if not settings.features.rate_limit:
        return AllowAllRateLimiter(), AllowAllRateLimiter()
    if redis_client is None:
        logger.warning("Redis unavailable, using process-local rate limiting")
        return (
            InMemoryRateLimiter(limits.create_event_limit, limits.window_sec),
            InMemoryRateLimiter(limits.submit_limit, limits.window_sec),
        )
    return (
        RedisRateLimiter(
            redis_client,
            limits.create_event_limit,
            limits.window_sec,
            prefix=f"{limits.key_prefix}:create_event",
        ),
        RedisRateLimiter(
            redis_client,
            limits.submit_limit,
            limits.window_sec,
            prefix=f"{limits.key_prefix}:submit",
        ),
    )


async def init_database() -> bool:
    """Initialize the database pool when ENABLE_DB is set."""
    if not get_settings().features.db:
        return False
    try:
        await db.init_pool()
        return True
    except Exception as e:
        logger.warning("Failed to initialize database: %s", e)
    return False


async def connect_redis() -> redis.Redis | None:
    """A pinged Redis client, or None when Redis cannot be reached."""
    client = await init_redis()
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis unreachable at startup: %s", e)
        await client.aclose()
        return None
    return client


async def setup_resources(enable_db: bool = True) -> LifespanResources:
    resources = LifespanResources()
    resources.redis_client = await connect_redis()
    resources.create_event_limiter, resources.submit_limiter = build_rate_limiters(
        resources.redis_client
    )
    if enable_db:
        resources.db_enabled = await init_database()

    state.redis_client = resources.redis_client
    state.create_event_limiter = resources.create_event_limiter
    state.submit_limiter = resources.submit_limiter
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Failed to close database pool: %s", e)

    if resources.redis_client is not None:
        await resources.redis_client.aclose()

    state.redis_client = None
    state.create_event_limiter = None
    state.submit_limiter = None
