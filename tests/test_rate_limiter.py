"""
Tests for the fixed-window rate limiter.

Tests cover:
- Window admission up to the limit
- Rejection without touching the counter
- Window expiry and reset
- Isolation per subject and per resource
- The redis-backed store
"""

import asyncio
import fnmatch
from datetime import timedelta

import pytest

from recall.exceptions import RateLimitError
from recall.services.rate_limit import (
    InMemoryRateLimitStore,
    RateLimitEntry,
    RateLimiter,
    RedisRateLimitStore,
)

RESOURCE = "generation-requests"


@pytest.fixture
def store():
    return InMemoryRateLimitStore()


@pytest.fixture
def limiter(store, clock):
    return RateLimiter(store, limit=10, window_ms=3_600_000, clock=clock)


class TestWindow:
    async def test_first_request_opens_window(self, limiter, clock):
        entry = await limiter.check("user-a", RESOURCE)
        assert entry.count == 1
        assert entry.reset_at == clock.now() + timedelta(hours=1)

    async def test_limit_requests_pass_then_reject(self, limiter, clock):
        for expected in range(1, 11):
            entry = await limiter.check("user-a", RESOURCE)
            assert entry.count == expected

        first_reset = entry.reset_at
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.check("user-a", RESOURCE)
        assert exc_info.value.reset_at == first_reset
        assert exc_info.value.retry_after == 3600

    async def test_rejection_does_not_increment(self, limiter, store):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)
        for _ in range(3):
            with pytest.raises(RateLimitError):
                await limiter.check("user-a", RESOURCE)

        entry = await store.get(f"{RESOURCE}:user-a")
        assert entry.count == 10

    async def test_window_reset_after_expiry(self, limiter, clock):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)
        reset_at = await limiter.reset_at("user-a", RESOURCE)

        clock.set(reset_at + timedelta(milliseconds=1))
        entry = await limiter.check("user-a", RESOURCE)

        assert entry.count == 1
        assert entry.reset_at == clock.now() + timedelta(hours=1)

    async def test_window_still_open_at_reset_instant(self, limiter, clock):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)
        clock.set(await limiter.reset_at("user-a", RESOURCE))

        with pytest.raises(RateLimitError):
            await limiter.check("user-a", RESOURCE)

    async def test_reset_at_stable_within_window(self, limiter, clock):
        first = await limiter.check("user-a", RESOURCE)
        clock.advance(minutes=30)
        second = await limiter.check("user-a", RESOURCE)
        assert second.reset_at == first.reset_at


class TestIsolation:
    async def test_subjects_do_not_share_budget(self, limiter):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)

        entry = await limiter.check("user-b", RESOURCE)
        assert entry.count == 1

    async def test_resources_do_not_share_budget(self, limiter):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)

        entry = await limiter.check("user-a", "exports")
        assert entry.count == 1


class TestIntrospection:
    async def test_remaining_counts_down(self, limiter):
        assert await limiter.remaining("user-a", RESOURCE) == 10
        for _ in range(4):
            await limiter.check("user-a", RESOURCE)
        assert await limiter.remaining("user-a", RESOURCE) == 6

    async def test_reset_at_none_without_window(self, limiter):
        assert await limiter.reset_at("user-a", RESOURCE) is None

    async def test_remaining_full_after_expiry(self, limiter, clock):
        await limiter.check("user-a", RESOURCE)
        clock.advance(hours=1, milliseconds=1)
        assert await limiter.remaining("user-a", RESOURCE) == 10
        assert await limiter.reset_at("user-a", RESOURCE) is None

    async def test_clear_subject(self, limiter):
        for _ in range(10):
            await limiter.check("user-a", RESOURCE)
        await limiter.clear("user-a", RESOURCE)
        assert (await limiter.check("user-a", RESOURCE)).count == 1

    async def test_clear_all(self, limiter, store):
        await limiter.check("user-a", RESOURCE)
        await limiter.check("user-b", RESOURCE)
        await limiter.clear_all()
        assert len(store) == 0


class TestConfiguration:
    def test_rejects_non_positive_limit(self, store):
        with pytest.raises(ValueError):
            RateLimiter(store, limit=0)

    def test_rejects_non_positive_window(self, store):
        with pytest.raises(ValueError):
            RateLimiter(store, window_ms=0)


class FakePipeline:
    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def delete(self, key):
        self._ops.append(("delete", (key,), {}))

    def hset(self, key, mapping):
        self._ops.append(("hset", (key,), {"mapping": mapping}))

    def pexpire(self, key, ttl_ms):
        self._ops.append(("pexpire", (key, ttl_ms), {}))

    def hincrby(self, key, field, amount):
        self._ops.append(("hincrby", (key, field, amount), {}))

    def pttl(self, key):
        self._ops.append(("pttl", (key,), {}))

    async def execute(self):
        results = []
        for name, args, kwargs in self._ops:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis with decode_responses=True."""

    def __init__(self):
        self.hashes = {}
        self.ttls = {}

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    async def hincrby(self, key, field, amount):
        fields = self.hashes.setdefault(key, {})
        value = int(fields.get(field, 0)) + amount
        fields[field] = str(value)
        return value

    async def pexpire(self, key, ttl_ms):
        self.ttls[key] = ttl_ms
        return True

    async def pttl(self, key):
        if key not in self.hashes:
            return -2
        return self.ttls.get(key, -1)

    async def exists(self, key):
        return int(key in self.hashes)

    async def delete(self, key):
        self.ttls.pop(key, None)
        return int(self.hashes.pop(key, None) is not None)

    async def scan_iter(self, match):
        for key in list(self.hashes):
            if fnmatch.fnmatch(key, match):
                yield key


class TestRedisStore:
    @pytest.fixture
    def redis(self):
        return FakeRedis()

    @pytest.fixture
    def redis_store(self, redis):
        return RedisRateLimitStore(redis, prefix="ratelimit")

    async def test_set_writes_prefixed_hash_with_ttl(self, redis, redis_store, clock):
        entry = RateLimitEntry(count=1, reset_at=clock.now() + timedelta(hours=1))
        await redis_store.set("generation-requests:u1", entry, ttl_ms=3_600_000)

        assert "ratelimit:generation-requests:u1" in redis.hashes
        assert redis.ttls["ratelimit:generation-requests:u1"] == 3_600_000
        assert await redis_store.get("generation-requests:u1") == entry

    async def test_get_missing_key(self, redis_store):
        assert await redis_store.get("missing") is None

    async def test_increment(self, redis_store, clock):
        entry = RateLimitEntry(count=1, reset_at=clock.now())
        await redis_store.set("k", entry, ttl_ms=1000)

        updated = await redis_store.increment("k")
        assert updated.count == 2
        assert updated.reset_at == entry.reset_at

    async def test_increment_missing_key(self, redis_store):
        assert await redis_store.increment("missing") is None

    async def test_increment_after_expiry_leaves_no_bare_hash(self, redis, redis_store):
        assert await redis_store.increment("gone") is None
        assert "ratelimit:gone" not in redis.hashes

    async def test_clear_only_touches_prefix(self, redis, redis_store, clock):
        redis.hashes["other:key"] = {"count": "1"}
        await redis_store.set("a", RateLimitEntry(count=1, reset_at=clock.now()), ttl_ms=1000)
        await redis_store.set("b", RateLimitEntry(count=1, reset_at=clock.now()), ttl_ms=1000)

        await redis_store.clear()
        assert list(redis.hashes) == ["other:key"]

    async def test_limiter_over_redis(self, redis_store, clock):
        limiter = RateLimiter(redis_store, limit=2, window_ms=60_000, clock=clock)
        await limiter.check("u1", RESOURCE)
        await limiter.check("u1", RESOURCE)
        with pytest.raises(RateLimitError):
            await limiter.check("u1", RESOURCE)
        assert await limiter.remaining("u1", RESOURCE) == 0


class YieldingStore(InMemoryRateLimitStore):
    """Hands control back to the event loop on every read."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)


class ExpiringStore(InMemoryRateLimitStore):
    """Drops the entry between the limiter's read and its increment."""

    async def increment(self, key):
        await self.delete(key)
        return None


class TestConcurrency:
    async def test_concurrent_checks_admit_exactly_limit(self, clock):
        limiter = RateLimiter(YieldingStore(), limit=10, window_ms=3_600_000, clock=clock)

        results = await asyncio.gather(
            *(limiter.check("user-a", RESOURCE) for _ in range(25)),
            return_exceptions=True,
        )

        admitted = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, RateLimitError)]
        assert len(admitted) == 10
        assert len(rejected) == 15
        assert sorted(entry.count for entry in admitted) == list(range(1, 11))


class TestExpiryRace:
    async def test_missing_entry_on_increment_opens_new_window(self, clock):
        store = ExpiringStore()
        limiter = RateLimiter(store, limit=10, window_ms=60_000, clock=clock)
        await limiter.check("user-a", RESOURCE)

        entry = await limiter.check("user-a", RESOURCE)

        assert entry.count == 1
        assert entry.reset_at == clock.now() + timedelta(minutes=1)
        assert await store.get(f"{RESOURCE}:user-a") == entry


class TestPruning:
    async def test_expired_entries_dropped_when_window_opens(self, limiter, store, clock):
        await limiter.check("user-a", RESOURCE)
        await limiter.check("user-b", RESOURCE)
        clock.advance(hours=1, seconds=1)

        await limiter.check("user-c", RESOURCE)

        assert len(store) == 1
        assert await store.get(f"{RESOURCE}:user-a") is None

    async def test_live_entries_survive(self, limiter, store, clock):
        await limiter.check("user-a", RESOURCE)
        clock.advance(minutes=30)

        await limiter.check("user-b", RESOURCE)

        assert len(store) == 2
        assert await limiter.remaining("user-a", RESOURCE) == 9
