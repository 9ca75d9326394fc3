import asyncio
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from recall.clock import Clock, SystemClock
from recall.exceptions import RateLimitError
from recall.services.rate_limit.store import RateLimitEntry, RateLimitStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_WINDOW_MS = 3_600_000


class RateLimiter:
    """Fixed-window request counter per (subject, resource).

    A window starts with the first request, lasts ``window_ms`` and admits
    ``limit`` requests. Bursts across a window boundary are possible; this
    is an abuse guard, not a quota ledger.
    """

    def __init__(
        self,
        store: RateLimitStore,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
        clock: Optional[Clock] = None,
    ):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        self.store = store
        self.limit = limit
        self.window_ms = window_ms
        self.clock = clock or SystemClock()
        # serializes read-then-write per process; redis-backed limiters
        # running on several instances can still over-admit slightly
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(subject: str, resource: str) -> str:
        return f"{resource}:{subject}"

    def _is_expired(self, entry: Optional[RateLimitEntry], now: datetime) -> bool:
        return entry is None or entry.reset_at < now

    async def _open_window(self, key: str, now: datetime) -> RateLimitEntry:
        fresh = RateLimitEntry(
            count=1,
            reset_at=now + timedelta(milliseconds=self.window_ms),
        )
        await self.store.set(key, fresh, ttl_ms=self.window_ms)
        return fresh

    async def check(self, subject: str, resource: str) -> RateLimitEntry:
        """Count one request.

        :raises RateLimitError: when the budget for the current window is spent
        """
        key = self._key(subject, resource)
        async with self._lock:
            now = self.clock.now()
            entry = await self.store.get(key)

            if self._is_expired(entry, now):
                return await self._open_window(key, now)

            if entry.count >= self.limit:
                logger.warning(
                    f"Rate limit exceeded for {resource}",
                    extra={"subject": subject, "reset_at": entry.reset_at.isoformat()},
                )
                retry_after = math.ceil((entry.reset_at - now).total_seconds())
                raise RateLimitError(entry.reset_at, retry_after=max(0, retry_after))

            updated = await self.store.increment(key)
            if updated is None:
                # entry expired in the store between get and increment
                return await self._open_window(key, now)
            return updated

    async def remaining(self, subject: str, resource: str) -> int:
        entry = await self.store.get(self._key(subject, resource))
        if self._is_expired(entry, self.clock.now()):
            return self.limit
        return max(0, self.limit - entry.count)

    async def reset_at(self, subject: str, resource: str) -> Optional[datetime]:
        entry = await self.store.get(self._key(subject, resource))
        if self._is_expired(entry, self.clock.now()):
            return None
        return entry.reset_at

    async def clear(self, subject: str, resource: str) -> None:
        await self.store.delete(self._key(subject, resource))

    async def clear_all(self) -> None:
        await self.store.clear()
