"""Key/value stores backing the AI response cache.

Stores support get-by-key, set-with-TTL-and-tags and invalidate-by-tag. Two
backends are provided: an in-process dictionary store and a Redis store for
multi-process deployments.

Example:
    >>> from aicache.cache.store import InMemoryCacheStore
    >>> store = InMemoryCacheStore(max_entries=100)
    >>> await store.set("key1", {"answer": 42}, ttl=60, tags=["agent:flint"])
    >>> await store.invalidate_by_tags(["agent:flint"])
    1
"""

from __future__ import annotations

import json
import logging
import threading
import time
from abc import abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence

from aicache.cache.entry import CachedEntry

if TYPE_CHECKING:
    from aicache.config import CacheSettings

logger = logging.getLogger(__name__)


class StoreBackend(str, Enum):
    """Available cache store backends."""

    MEMORY = "memory"
    REDIS = "redis"


class CacheStore(Protocol):
    """Protocol for cache store implementations.

    Every operation may raise; callers are expected to treat failures as
    non-fatal.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int, tags: Sequence[str]) -> None:
        """Store a value under key for ttl seconds, labelled with tags."""
        ...

    @abstractmethod
    async def invalidate_by_tags(self, tags: Sequence[str]) -> int:
        """Remove every entry carrying any of the tags.

        Returns:
            Number of removed entries
        """
        ...


@dataclass(slots=True)
class _StoredItem:
    value: Any
    expires_at: float
    tags: frozenset[str]


class InMemoryCacheStore(CacheStore):
    """
    Dictionary-backed cache store with lazy expiry and a tag index.

    Values are stored by reference, not copied: mutating a payload after
    ``set`` or after ``get`` changes the cached value seen by later readers.
    Treat cached payloads as read-only.

    Thread-safe for single-process deployments.
    For multi-process/distributed deployments, use RedisCacheStore.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the store.

        Args:
            max_entries: Capacity; the oldest inserted entry is evicted when full
            clock: Time source returning epoch seconds
        """
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.max_entries = max_entries
        self._clock = clock
        self._items: OrderedDict[str, _StoredItem] = OrderedDict()
        self._tag_index: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None

            if item.expires_at <= self._clock():
                self._remove(key)
                return None

            return item.value

    async def set(self, key: str, value: Any, ttl: int, tags: Sequence[str]) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")

        with self._lock:
            if key in self._items:
                self._remove(key)

            while len(self._items) >= self.max_entries:
                oldest = next(iter(self._items))
                logger.debug("Evicting cache entry to make room: %s", oldest[:50])
                self._remove(oldest)

            item = _StoredItem(value=value, expires_at=self._clock() + ttl, tags=frozenset(tags))
            self._items[key] = item
            for tag in item.tags:
                self._tag_index.setdefault(tag, set()).add(key)

    async def invalidate_by_tags(self, tags: Sequence[str]) -> int:
        with self._lock:
            keys: set[str] = set()
            for tag in tags:
                keys.update(self._tag_index.get(tag, ()))

            for key in keys:
                self._remove(key)

            return len(keys)

    async def invalidate(self, key: str) -> bool:
        """Remove a single entry. Returns True if it existed."""
        with self._lock:
            if key not in self._items:
                return False
            self._remove(key)
            return True

    def cleanup(self) -> int:
        """Purge expired entries. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, item in self._items.items() if item.expires_at <= now]
            for key in expired:
                self._remove(key)
            return len(expired)

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        return len(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._tag_index.clear()

    def _remove(self, key: str) -> None:
        # Caller holds the lock
        item = self._items.pop(key, None)
        if item is None:
            return
        for tag in item.tags:
            members = self._tag_index.get(tag)
            if members is None:
                continue
            members.discard(key)
            if not members:
                del self._tag_index[tag]


class RedisCacheStore(CacheStore):
    """
    Redis-backed cache store for distributed deployments.

    Entries are stored as JSON with a native Redis expiry. Each tag is a Redis
    set listing the keys it labels. Values must be ``CachedEntry`` instances or
    JSON-serializable data.

    Requires the redis package (``pip install 'aicache[redis]'``).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "aicache",
        client: Any = None,
    ) -> None:
        """
        Initialize Redis cache store.

        Args:
            redis_url: Redis connection URL
            key_prefix: Namespace prepended to every Redis key
            client: Pre-built ``redis.asyncio`` client (optional)
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._redis = client

    @property
    def redis(self) -> Any:
        """Lazy-load Redis client."""
        if self._redis is None:
            try:
                import redis.asyncio as redis_asyncio
            except ImportError as e:
                raise RuntimeError(
                    "Redis cache store requires 'redis' package. "
                    "Install with: pip install 'aicache[redis]'"
                ) from e

            self._redis = redis_asyncio.from_url(self.redis_url, decode_responses=True)
        return self._redis

    def _entry_key(self, key: str) -> str:
        return f"{self.key_prefix}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.key_prefix}:tag:{tag}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis.get(self._entry_key(key))
        if raw is None:
            return None

        data = json.loads(raw)
        if isinstance(data, dict) and data.get("__entry__"):
            return CachedEntry.from_dict(data["entry"])
        return data

    async def set(self, key: str, value: Any, ttl: int, tags: Sequence[str]) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")

        if isinstance(value, CachedEntry):
            document: Any = {"__entry__": True, "entry": value.to_dict()}
        else:
            document = value

        entry_key = self._entry_key(key)
        pipe = self.redis.pipeline()
        pipe.set(entry_key, json.dumps(document), ex=ttl)
        for tag in tags:
            tag_key = self._tag_key(tag)
            pipe.sadd(tag_key, entry_key)
            # Tag set lives as long as its longest-lived member
            pipe.expire(tag_key, ttl, gt=True)
            pipe.expire(tag_key, ttl, nx=True)
        await pipe.execute()

    async def invalidate_by_tags(self, tags: Sequence[str]) -> int:
        tag_keys = [self._tag_key(tag) for tag in tags]
        if not tag_keys:
            return 0

        members = await self.redis.sunion(tag_keys)
        removed = 0
        if members:
            removed = int(await self.redis.delete(*members))
        await self.redis.delete(*tag_keys)
        return removed

    async def close(self) -> None:
        """Close the Redis connection if one was opened."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def create_store(settings: Optional[CacheSettings] = None) -> CacheStore:
    """Factory function to create a cache store from settings.

    Args:
        settings: Cache settings. If None, uses the process settings.

    Returns:
        Configured cache store instance
    """
    if settings is None:
        from aicache.config import get_settings

        settings = get_settings()

    if settings.backend == StoreBackend.MEMORY:
        return InMemoryCacheStore(max_entries=settings.max_entries)
    elif settings.backend == StoreBackend.REDIS:
        return RedisCacheStore(redis_url=settings.redis_url, key_prefix=settings.key_prefix)
    else:
        msg = f"Unknown backend: {settings.backend}"
        raise ValueError(msg)
