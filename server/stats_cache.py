"""Read-through cache of dashboard statistics."""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import redis.asyncio as redis_async

from common.logging_config import get_logger
from server import config
from server.types import DashboardStats

logger = get_logger(__name__)


class CacheBackend(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        pass


class MemoryCacheBackend(CacheBackend):
    """
    Per-process cache. Entries expire lazily on read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisCacheBackend(CacheBackend):
    """
    Cache shared by every server process through Redis; expiry is native (SETEX).
    """

    def __init__(self, url: str = None, client: Optional[redis_async.Redis] = None):
        self._client = client if client is not None else redis_async.from_url(
            url or config.REDIS_URL, decode_responses=True
        )

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        payload = await self._client.get(key)
        if payload is None:
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        await self._client.setex(key, ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


def create_cache_backend() -> CacheBackend:
    if config.REDIS_URL:
        logger.info("Using Redis stats cache")
        return RedisCacheBackend(config.REDIS_URL)
    logger.info("Using in-memory stats cache")
    return MemoryCacheBackend()


class StatsCache:
    """
    Cache in front of an expensive stats computation, keyed by caller.

    Concurrent misses for the same caller await one shared computation
    instead of each starting their own.
    """

    def __init__(
        self,
        backend: CacheBackend,
        compute: Callable[[str], Awaitable[DashboardStats]],
        ttl_seconds: int = None,
    ):
        self._backend = backend
        self._compute = compute
        self._ttl = ttl_seconds if ttl_seconds is not None else config.STATS_CACHE_TTL_SECONDS
        self._in_flight: Dict[str, asyncio.Task] = {}

    @staticmethod
    def cache_key(caller_id: str) -> str:
        return f"{config.STATS_CACHE_KEY_PREFIX}{caller_id}"

    async def _read(self, key: str) -> Optional[DashboardStats]:
        try:
            cached = await self._backend.get(key)
        except Exception as e:
            logger.warning(f"Stats cache read failed for {key}: {e}")
            return None
        if cached is None:
            return None
        return DashboardStats.from_dict(cached)

    async def _compute_and_store(self, caller_id: str) -> DashboardStats:
        stats = await self._compute(caller_id)
        try:
            await self._backend.set(self.cache_key(caller_id), stats.to_dict(), self._ttl)
        except Exception as e:
            logger.warning(f"Stats cache write failed for {caller_id}: {e}")
        return stats

    async def get_stats(self, caller_id: str, force_refresh: bool = False) -> DashboardStats:
        """
        Return cached stats, computing them on a miss or when forced.

        Errors from the computation (e.g. unknown caller) propagate to every
        waiter of that computation.
        """
        if not force_refresh:
            cached = await self._read(self.cache_key(caller_id))
            if cached is not None:
                logger.debug(f"Stats cache hit for {caller_id}")
                return cached

        task = self._in_flight.get(caller_id)
        if task is None:
            logger.debug(f"Computing stats for {caller_id} (forced={force_refresh})")
            task = asyncio.ensure_future(self._compute_and_store(caller_id))
            self._in_flight[caller_id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(caller_id, None))

        return await asyncio.shield(task)

    async def invalidate(self, caller_id: str) -> None:
        await self._backend.delete(self.cache_key(caller_id))
        logger.debug(f"Invalidated stats cache for {caller_id}")

    async def close(self) -> None:
        await self._backend.close()
