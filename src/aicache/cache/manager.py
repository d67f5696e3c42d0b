"""AI response cache manager.

The manager owns the statistics of one cache and mediates every access to
the underlying store. Store failures are counted and logged, never raised:
a failed read behaves like a miss and a failed write is dropped, so caching
problems can only cost latency, never availability or correctness.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from aicache.cache.classifier import QueryType, classify
from aicache.cache.entry import CachedEntry, CacheStats
from aicache.cache.key import build_key
from aicache.cache.policy import CachePolicyConfig, resolve_ttl
from aicache.cache.store import CacheStore
from aicache.cache.tags import build_tags

logger = logging.getLogger(__name__)


def _short(key: str) -> str:
    return key if len(key) <= 50 else key[:50] + "..."


class CacheManager:
    """
    Cache manager for AI responses.

    Features:
    - Hit/miss/save/error accounting with a derived hit rate
    - Policy-driven TTL resolution and tagging on save
    - Hit count persistence that preserves the entry's expiry and tags
    - Tag-based group invalidation
    """

    def __init__(
        self,
        store: CacheStore,
        policy: Optional[CachePolicyConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize cache manager.

        Args:
            store: Backing key/value store
            policy: Cache policy (defaults to CachePolicyConfig())
            clock: Time source returning epoch seconds
        """
        self.store = store
        self.policy = policy if policy is not None else CachePolicyConfig()
        self._clock = clock
        self._stats = CacheStats()

    def build_key(
        self,
        message: str,
        agent_id: str,
        system_prompt: str,
        model_config: Optional[Mapping[str, Any]] = None,
        user_context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Compute the cache key of a request under the active policy."""
        return build_key(
            message,
            agent_id,
            system_prompt,
            model_config,
            user_context,
            personalize=self.policy.enable_personalization,
        )

    def classify(self, message: str, agent_id: Optional[str] = None) -> QueryType:
        """Classify a request using the policy's personalized agents."""
        return classify(message, agent_id, self.policy.personalized_agents)

    def now(self) -> float:
        return self._clock()

    async def get(self, key: str) -> Optional[CachedEntry[Any]]:
        """
        Look up a cached entry.

        On a hit the entry's hit count is incremented and written back on a
        best-effort basis.

        Returns:
            The cached entry, or None on a miss or store error
        """
        try:
            value = await self.store.get(key)
        except Exception:
            self._stats.errors += 1
            logger.warning("AI cache get failed for %s", _short(key), exc_info=True)
            return None

        if value is None:
            self._stats.misses += 1
            logger.debug("AI cache miss: %s", _short(key))
            return None

        now = self._clock()
        entry = value if isinstance(value, CachedEntry) else CachedEntry(payload=value, cached_at=now)
        entry.hit_count += 1
        self._stats.hits += 1

        # Entries written outside the manager carry no TTL to preserve
        if entry.ttl > 0:
            try:
                await self.store.set(key, entry, entry.remaining_ttl(now), entry.tags)
            except Exception:
                logger.warning(
                    "AI cache hit count update failed for %s", _short(key), exc_info=True
                )

        logger.debug(
            "AI cache hit: %s (hit_count=%d, age=%.1fs)",
            _short(key),
            entry.hit_count,
            now - entry.cached_at,
        )
        return replace(entry, tags=list(entry.tags))

    async def set(
        self,
        key: str,
        payload: Any,
        *,
        agent_id: Optional[str] = None,
        backend: Optional[str] = None,
        user_id: str | int | None = None,
        query_type: QueryType | str | None = None,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> Optional[CachedEntry[Any]]:
        """
        Cache a freshly computed response.

        Args:
            key: Cache key
            payload: Response to store verbatim
            agent_id: Answering agent (TTL table and tag)
            backend: Backend family (TTL table and tag)
            user_id: Requesting user (tag)
            query_type: Classification (TTL table and tag)
            ttl: Explicit TTL override in seconds
            tags: Additional invalidation tags

        Returns:
            The created entry, or None if the store rejected the write
        """
        resolved_ttl = resolve_ttl(
            self.policy,
            agent_id=agent_id,
            backend=backend,
            query_type=query_type,
            override=ttl,
        )
        entry_tags = sorted(
            build_tags(
                agent_id=agent_id,
                backend=backend,
                user_id=user_id,
                query_type=query_type,
                extra=tags,
            )
        )
        entry: CachedEntry[Any] = CachedEntry(
            payload=payload,
            cached_at=self._clock(),
            hit_count=0,
            ttl=resolved_ttl,
            tags=entry_tags,
        )

        try:
            await self.store.set(key, entry, resolved_ttl, entry_tags)
        except Exception:
            self._stats.errors += 1
            logger.warning("AI cache save failed for %s", _short(key), exc_info=True)
            return None

        self._stats.saves += 1
        logger.info(
            "AI cache save: %s (ttl=%dmin, type=%s, agent=%s, backend=%s)",
            _short(key),
            round(resolved_ttl / 60),
            QueryType(query_type).value if query_type else QueryType.GENERAL.value,
            agent_id,
            backend,
        )
        return replace(entry, tags=list(entry.tags))

    async def invalidate_by_tags(self, tags: Sequence[str]) -> int:
        """
        Remove every cached entry labelled with any of the tags.

        Returns:
            Number of removed entries (0 if the store failed)
        """
        try:
            removed = await self.store.invalidate_by_tags(list(tags))
        except Exception:
            self._stats.errors += 1
            logger.warning("AI cache invalidation failed for tags %s", list(tags), exc_info=True)
            return 0

        logger.info("AI cache invalidated %d entries for tags %s", removed, list(tags))
        return removed

    def stats(self) -> CacheStats:
        """Return a snapshot of the cache counters."""
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            saves=self._stats.saves,
            errors=self._stats.errors,
        )
