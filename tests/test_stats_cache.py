"""Tests for the dashboard stats cache."""

import asyncio

import pytest

from server.stats_cache import MemoryCacheBackend, RedisCacheBackend, StatsCache
from server.types import AggregatedFileSummary, DashboardStats, SubjectStat


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingCompute:
    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay

    async def __call__(self, caller_id: str) -> DashboardStats:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return DashboardStats(
            total_files=self.calls,
            favorite_files=0,
            recent_uploads=[AggregatedFileSummary(id="Math-Main-1", name="a.pdf", uploaded_at="t", subject="Math")],
            subject_stats=[SubjectStat(subject="Math", file_count=self.calls)],
            last_updated="now",
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def compute():
    return CountingCompute()


@pytest.fixture
def cache(clock, compute):
    return StatsCache(MemoryCacheBackend(clock=clock), compute, ttl_seconds=60)


async def test_hit_within_ttl_does_not_recompute(cache, compute, clock):
    first = await cache.get_stats("u1")
    clock.now += 30
    second = await cache.get_stats("u1")

    assert compute.calls == 1
    assert second == first


async def test_expired_entry_is_recomputed(cache, compute, clock):
    await cache.get_stats("u1")
    clock.now += 61
    stats = await cache.get_stats("u1")

    assert compute.calls == 2
    assert stats.total_files == 2


async def test_force_refresh_bypasses_cache(cache, compute):
    await cache.get_stats("u1")
    stats = await cache.get_stats("u1", force_refresh=True)

    assert compute.calls == 2
    assert stats.total_files == 2
    # The forced result replaced the cached one
    assert (await cache.get_stats("u1")).total_files == 2


async def test_callers_are_cached_separately(cache, compute):
    await cache.get_stats("u1")
    await cache.get_stats("u2")

    assert compute.calls == 2


async def test_invalidate_drops_entry(cache, compute):
    await cache.get_stats("u1")
    await cache.invalidate("u1")
    await cache.get_stats("u1")

    assert compute.calls == 2


async def test_concurrent_misses_share_one_computation(clock):
    compute = CountingCompute(delay=0.02)
    cache = StatsCache(MemoryCacheBackend(clock=clock), compute, ttl_seconds=60)

    results = await asyncio.gather(*(cache.get_stats("u1") for _ in range(5)))

    assert compute.calls == 1
    assert all(r == results[0] for r in results)


async def test_compute_error_propagates_and_is_not_cached(clock):
    calls = []

    async def failing(caller_id):
        calls.append(caller_id)
        raise LookupError("no such user")

    cache = StatsCache(MemoryCacheBackend(clock=clock), failing, ttl_seconds=60)

    with pytest.raises(LookupError):
        await cache.get_stats("ghost")
    with pytest.raises(LookupError):
        await cache.get_stats("ghost")
    assert len(calls) == 2


async def test_backend_read_failure_falls_back_to_compute(compute):
    class BrokenBackend(MemoryCacheBackend):
        async def get(self, key):
            raise ConnectionError("redis down")

    cache = StatsCache(BrokenBackend(), compute, ttl_seconds=60)
    stats = await cache.get_stats("u1")

    assert stats.total_files == 1


def test_cache_key_format():
    assert StatsCache.cache_key("abc") == "dashboard:stats:abc"


async def test_redis_backend_uses_setex():
    class FakeRedis:
        def __init__(self):
            self.store = {}
            self.ttls = {}
            self.closed = False

        async def get(self, key):
            return self.store.get(key)

        async def setex(self, key, ttl, value):
            self.store[key] = value
            self.ttls[key] = ttl

        async def delete(self, key):
            self.store.pop(key, None)

        async def aclose(self):
            self.closed = True

    fake = FakeRedis()
    backend = RedisCacheBackend(client=fake)

    await backend.set("k", {"total_files": 1}, 60)
    assert fake.ttls["k"] == 60
    assert await backend.get("k") == {"total_files": 1}

    await backend.delete("k")
    assert await backend.get("k") is None

    await backend.close()
    assert fake.closed
