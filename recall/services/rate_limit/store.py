"""Counter stores for the fixed-window rate limiter.

``InMemoryRateLimitStore`` lives in one process: it does not survive restarts
and is not shared between instances. Multi-instance deployments should use
``RedisRateLimitStore``. Expired in-memory entries are pruned whenever a new
window is opened.
"""

import threading
from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol

from pydantic import BaseModel, Field
from redis.asyncio import Redis


class RateLimitEntry(BaseModel):
    count: int = Field(0, ge=0)
    reset_at: datetime


class RateLimitStore(Protocol):
    async def get(self, key: str) -> Optional[RateLimitEntry]:
        ...

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        ...

    async def increment(self, key: str) -> Optional[RateLimitEntry]:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class InMemoryRateLimitStore:
    """Lock-guarded dict of entries."""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            entry = self._entries.get(key)
            return entry.model_copy() if entry else None

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        # a fresh window starts ttl_ms before its reset_at; anything that
        # reset before that start is dead and is dropped here
        window_start = entry.reset_at - timedelta(milliseconds=ttl_ms)
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.reset_at < window_start]
            for stale in expired:
                del self._entries[stale]
            self._entries[key] = entry.model_copy()

    async def increment(self, key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.count += 1
            return entry.model_copy()

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisRateLimitStore:
    """Entries kept as redis hashes that expire together with their window."""

    def __init__(self, redis_client: Redis, prefix: str = "ratelimit"):
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    @staticmethod
    def _decode(raw: dict) -> Optional[RateLimitEntry]:
        if not raw or "reset_at" not in raw:
            return None
        return RateLimitEntry(
            count=int(raw.get("count", 0)),
            reset_at=datetime.fromisoformat(raw["reset_at"]),
        )

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        raw = await self._redis.hgetall(self._key(key))
        return self._decode(raw)

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        redis_key = self._key(key)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(redis_key)
            pipe.hset(
                redis_key,
                mapping={"count": entry.count, "reset_at": entry.reset_at.isoformat()},
            )
            pipe.pexpire(redis_key, ttl_ms)
            await pipe.execute()

    async def increment(self, key: str) -> Optional[RateLimitEntry]:
        redis_key = self._key(key)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hincrby(redis_key, "count", 1)
            pipe.pttl(redis_key)
            _, ttl = await pipe.execute()
        if ttl < 0:
            # the window expired before the increment and HINCRBY recreated
            # a bare hash without reset_at or ttl
            await self._redis.delete(redis_key)
            return None
        return await self.get(key)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def clear(self) -> None:
        async for redis_key in self._redis.scan_iter(match=f"{self._prefix}:*"):
            await self._redis.delete(redis_key)
