"""Cache utilities for AI response keys, TTL policies, stores and memoization."""

from __future__ import annotations

from aicache.cache.classifier import QueryType, classify
from aicache.cache.entry import CachedEntry, CacheStats
from aicache.cache.key import build_key, digest, hash_stable, normalize_input
from aicache.cache.manager import CacheManager
from aicache.cache.memoize import (
    AIResponse,
    CacheOptions,
    CacheRequest,
    with_cache,
    with_cache_entry,
)
from aicache.cache.policy import CachePolicyConfig, is_cache_enabled, resolve_ttl
from aicache.cache.store import (
    CacheStore,
    InMemoryCacheStore,
    RedisCacheStore,
    StoreBackend,
    create_store,
)
from aicache.cache.tags import ROOT_TAG, build_tags

__all__ = [
    "AIResponse",
    "CacheManager",
    "CacheOptions",
    "CachePolicyConfig",
    "CacheRequest",
    "CacheStats",
    "CacheStore",
    "CachedEntry",
    "InMemoryCacheStore",
    "QueryType",
    "ROOT_TAG",
    "RedisCacheStore",
    "StoreBackend",
    "build_key",
    "build_tags",
    "classify",
    "create_store",
    "digest",
    "hash_stable",
    "is_cache_enabled",
    "normalize_input",
    "resolve_ttl",
    "with_cache",
    "with_cache_entry",
]
