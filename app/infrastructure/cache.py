# app/infrastructure/cache.py
"""
Key/value backends for session storage.

Values are opaque strings (serialized sessions) stored with an idle TTL.
Backend faults never propagate: reads report a miss, writes report False.
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from app.db.redis_client import get_redis

logger = logging.getLogger(__name__)


class CacheAdapter:
    """Interface the session store talks to."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl: int) -> bool:
        """Store value for ttl seconds, replacing any previous value."""
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """True if something was removed."""
        raise NotImplementedError

    async def exists(self, key: str) -> bool:
        raise NotImplementedError


class RedisCache(CacheAdapter):
    """
    Redis backend (SESSION_BACKEND=redis).

    Expiry is left to Redis via SETEX, so sessions survive restarts and are
    shared between webhook workers.
    """

    def __init__(self, redis_client=None):
        self.redis = redis_client if redis_client is not None else get_redis()

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET failed for {key}: {e}")
            return None
        logger.debug(f"Redis {'hit' if value else 'miss'}: {key}")
        return value

    async def set(self, key: str, value: str, ttl: int) -> bool:
        try:
            await self.redis.setex(key, ttl, value)
        except Exception as e:
            logger.error(f"Redis SETEX failed for {key}: {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            removed = await self.redis.delete(key)
        except Exception as e:
            logger.error(f"Redis DEL failed for {key}: {e}")
            return False
        return removed > 0

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except Exception as e:
            logger.error(f"Redis EXISTS failed for {key}: {e}")
            return False


class InMemoryCache(CacheAdapter):
    """
    Process-local backend with per-entry TTL and an LRU size bound.

    Entries are (value, expires_at) in access order; the oldest entry is
    dropped when a new key would exceed max_size. Contents are lost on restart.
    """

    def __init__(self, max_size: int = 10_000, clock: Callable[[], float] = time.monotonic):
        self._entries: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self.max_size = max_size
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def _live_entry(self, key: str) -> Optional[Tuple[str, float]]:
        entry = self._entries.get(key)
        if entry is not None and entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _drop_expired_head(self) -> None:
        """Pop expired entries from the least recently used end until a live one."""
        now = self._clock()
        dropped = 0
        while self._entries:
            key, (_, expires_at) = next(iter(self._entries.items()))
            if expires_at > now:
                break
            del self._entries[key]
            dropped += 1
        if dropped:
            logger.debug(f"Expired {dropped} session(s)")

    async def get(self, key: str) -> Optional[str]:
        entry = self._live_entry(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry[0]

    async def set(self, key: str, value: str, ttl: int) -> bool:
        self._drop_expired_head()
        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest, _ = self._entries.popitem(last=False)
            logger.info(f"Session limit {self.max_size} reached, dropped {oldest}")

        self._entries[key] = (value, self._clock() + ttl)
        self._entries.move_to_end(key)
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None


# ============================================================
# FACTORY
# ============================================================

def get_cache_adapter(backend: str = "memory", max_size: int = 10_000) -> CacheAdapter:
    """
    Build the backend named by SESSION_BACKEND.

    Args:
        backend: "memory" or "redis"
        max_size: LRU bound, in-memory backend only
    """
    if backend == "memory":
        return InMemoryCache(max_size=max_size)
    if backend == "redis":
        return RedisCache()
    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = [
    "CacheAdapter",
    "RedisCache",
    "InMemoryCache",
    "get_cache_adapter",
]
