"""FastAPI dependencies for the cache admin API."""

from __future__ import annotations

from functools import lru_cache

from aicache.cache.manager import CacheManager
from aicache.config import create_cache_manager


@lru_cache
def get_cache_manager() -> CacheManager:
    """Get the process-wide cache manager built from settings."""
    return create_cache_manager()
