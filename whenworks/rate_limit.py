"""Fixed-window rate limiting for write endpoints.

Controllers depend on the narrow ``RateLimiter`` interface. The Redis
implementation is shared across API instances; the in-memory one is
process-local and only used when Redis is not connected.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import redis.asyncio as redis

logger = logging.getLogger("whenworks.rate_limit")


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: int  # seconds


class RateLimiter(Protocol):
    async def check_and_consume(self, key: str) -> RateLimitResult: ...


class RedisRateLimiter:
    def __init__(
        self,
        redis_client: redis.Redis,
        limit: int,
        window_sec: int,
        prefix: str = "ratelimit",
    ) -> None:
        self.redis_client = redis_client
        self.limit = limit
        self.window_sec = window_sec
        self.prefix = prefix

    async def check_and_consume(self, key: str) -> RateLimitResult:
        redis_key = f"{self.prefix}:{key}"
        count = int(await self.redis_client.incr(redis_key))
        if count == 1:
            await self.redis_client.expire(redis_key, self.window_sec)
            ttl = self.window_sec
        else:
            ttl = int(await self.redis_client.ttl(redis_key))
            if ttl < 0:
                # key lost its expiry (e.g. crash between INCR and EXPIRE)
                await self.redis_client.expire(redis_key, self.window_sec)
                ttl = self.window_sec
        if count > self.limit:
            logger.info("rate_limit.denied key=%s count=%d limit=%d", key, count, self.limit)
            return RateLimitResult(allowed=False, remaining=0, reset_in=ttl)
        return RateLimitResult(allowed=True, remaining=self.limit - count, reset_in=ttl)


class InMemoryRateLimiter:
    def __init__(
        self,
        limit: int,
        window_sec: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_sec = window_sec
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}

    def _purge(self, now: float) -> None:
        expired = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
        for k in expired:
            del self._windows[k]

    async def check_and_consume(self, key: str) -> RateLimitResult:
        now = self._clock()
        self._purge(now)
        count, reset_at = self._windows.get(key, (0, now + self.window_sec))
        reset_in = max(1, math.ceil(reset_at - now))
        if count >= self.limit:
            logger.info("rate_limit.denied key=%s count=%d limit=%d", key, count, self.limit)
            return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in)
        self._windows[key] = (count + 1, reset_at)
        return RateLimitResult(allowed=True, remaining=self.limit - count - 1, reset_in=reset_in)


class AllowAllRateLimiter:
    """Used when rate limiting is disabled by configuration."""

    async def check_and_consume(self, key: str) -> RateLimitResult:
        return RateLimitResult(allowed=True, remaining=0, reset_in=0)
