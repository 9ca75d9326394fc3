from functools import lru_cache

from recall.config import get_settings
from recall.services.rate_limit.limiter import RateLimiter
from recall.services.rate_limit.store import (
    InMemoryRateLimitStore,
    RateLimitStore,
    RedisRateLimitStore,
)

GENERATION_RESOURCE = "generation-requests"


def make_rate_limit_store() -> RateLimitStore:
    settings = get_settings()
    if settings.rate_limit.backend == "redis":
        from recall.db.redis.redis import get_redis_client

        return RedisRateLimitStore(get_redis_client(), prefix=settings.rate_limit.key_prefix)
    return InMemoryRateLimitStore()


@lru_cache(maxsize=1)
def make_generation_rate_limiter() -> RateLimiter:
    """Limiter guarding the AI generation endpoint, shared by every request."""
    settings = get_settings()
    return RateLimiter(
        store=make_rate_limit_store(),
        limit=settings.rate_limit.generation_limit,
        window_ms=settings.rate_limit.generation_window_ms,
    )
