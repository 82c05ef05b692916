"""Dependency injection for FastAPI endpoints.

Controllers receive shared resources (Redis, rate limiters) through these
dependencies instead of reading module globals directly.

Usage in controllers:
    from whenworks.dependencies import EventLimiter

    @router.post("/events")
    async def create_event(limiter: EventLimiter):
        ...
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from whenworks import state
from whenworks.errors import ServiceUnavailableError
from whenworks.rate_limit import RateLimiter


def get_optional_redis() -> redis.Redis | None:
    """Get the Redis client if available, or None."""
    return state.redis_client


def get_create_event_limiter() -> RateLimiter:
    """Rate limiter for event creation.

    Raises:
        ServiceUnavailableError: If the lifespan did not set one up.
    """
    if state.create_event_limiter is None:
        raise ServiceUnavailableError(detail="Rate limiter not initialized")
    return state.create_event_limiter


def get_submit_limiter() -> RateLimiter:
    """Rate limiter for availability submissions.

    Raises:
        ServiceUnavailableError: If the lifespan did not set one up.
    """
    if state.submit_limiter is None:
        raise ServiceUnavailableError(detail="Rate limiter not initialized")
    return state.submit_limiter


OptionalRedis = Annotated[redis.Redis | None, Depends(get_optional_redis)]
EventLimiter = Annotated[RateLimiter, Depends(get_create_event_limiter)]
SubmitLimiter = Annotated[RateLimiter, Depends(get_submit_limiter)]
