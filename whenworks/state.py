import redis.asyncio as redis

from whenworks.rate_limit import RateLimiter

# Global runtime state initialized in main.lifespan
redis_client: redis.Redis | None = None
create_event_limiter: RateLimiter | None = None
submit_limiter: RateLimiter | None = None
