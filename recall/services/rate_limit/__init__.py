from recall.services.rate_limit.limiter import RateLimiter
from recall.services.rate_limit.store import (
    InMemoryRateLimitStore,
    RateLimitEntry,
    RateLimitStore,
    RedisRateLimitStore,
)

__all__ = [
    "RateLimiter",
    "RateLimitEntry",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
]
