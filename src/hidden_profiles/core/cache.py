"""
Shared cache abstraction for derived, time-bounded values.

Values are JSON-serializable. Both implementations store the serialized form so
callers never share mutable state with the cache.
"""
import json
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from hidden_profiles.core.redis import RedisClient

logger = logging.getLogger(__name__)


class CacheWriteError(Exception):
    """Raised when a cache delete could not be confirmed."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Cache delete failed for key: {key}")


class SharedCache(Protocol):
    """Minimal cache contract: get, set with TTL, delete."""

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored. Raises CacheWriteError if unconfirmed."""
        ...


class RedisCache:
    """SharedCache backed by Redis, shared across processes and hosts."""

    def __init__(self, redis_client: RedisClient) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Any | None:
        data = await self._redis.get(key)
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError:
            logger.warning("cache_decode_failed key=%s", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._redis.setex(key, ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        """
        Remove a key.

        Raises:
            CacheWriteError: If Redis is unreachable or rejected the delete. A stale
                entry may still be live for other processes.
        """
        if not await self._redis.delete(key):
            raise CacheWriteError(key)


class MemoryCache:
    """
    In-process SharedCache.

    Used when Redis is disabled (single-process deployments) and in tests.
    Expired entries are dropped lazily on read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, data = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


def build_cache(redis_client: RedisClient | None) -> SharedCache:
    """
    Pick the cache backend.

    A configured Redis client is always used, even if it failed to connect: an
    unreachable Redis degrades reads to a permanent miss (recompute per request)
    and makes invalidations fail loudly. The in-process cache is only for deployments
    with Redis disabled, where a single process owns all invalidations.
    """
    if redis_client is not None:
        return RedisCache(redis_client)
    logger.info("Redis disabled, using in-process cache")
    return MemoryCache()


# Global cache state (set during app startup)
class _CacheState:
    """Container for the global shared cache."""

    cache: SharedCache | None = None


_state = _CacheState()


def get_shared_cache() -> SharedCache | None:
    """Get the global shared cache instance."""
    return _state.cache


def set_shared_cache(cache: SharedCache | None) -> None:
    """Set the global shared cache instance."""
    _state.cache = cache
