"""Cache configuration management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from aicache.cache.manager import CacheManager
from aicache.cache.policy import CachePolicyConfig
from aicache.cache.store import StoreBackend, create_store


class CacheSettings(BaseSettings):
    """Cache settings loaded from environment variables and .env file.

    Attributes:
        enabled: Global switch; False disables caching even if the policy enables it
        backend: Store backend (memory or redis)
        redis_url: Redis connection URL (redis backend only)
        key_prefix: Namespace for Redis keys (redis backend only)
        max_entries: Capacity of the in-memory store
        policy_file: Optional YAML policy file with TTL tables
        default_ttl: Default TTL in seconds when no policy file is given
        enable_personalization: Include user context in keys when no policy file is given
        cache_failed_responses: Cache failed AI responses when no policy file is given
        api_prefix: Route prefix of the admin HTTP API
    """

    model_config = SettingsConfigDict(
        env_prefix="AICACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Global caching enabled flag")
    backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Cache store backend")
    redis_url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    key_prefix: str = Field(default="aicache", description="Redis key namespace")
    max_entries: int = Field(default=10000, gt=0, description="In-memory store capacity")
    policy_file: Optional[Path] = Field(default=None, description="YAML cache policy file")
    default_ttl: int = Field(default=3600, gt=0, description="Default TTL in seconds")
    enable_personalization: bool = Field(
        default=True, description="Include user context in cache keys"
    )
    cache_failed_responses: bool = Field(
        default=True, description="Cache AI responses reporting success=False"
    )
    api_prefix: str = Field(default="/api/v1", description="Admin API route prefix")

    def to_policy(self) -> CachePolicyConfig:
        """Build the cache policy described by these settings.

        Raises:
            FileNotFoundError: If policy_file does not exist
            ValueError: If the policy file is malformed
        """
        if self.policy_file is not None:
            policy = CachePolicyConfig.from_yaml(self.policy_file)
        else:
            policy = CachePolicyConfig(
                default_ttl=self.default_ttl,
                enable_personalization=self.enable_personalization,
                cache_failed_responses=self.cache_failed_responses,
            )

        if not self.enabled:
            policy = policy.model_copy(update={"enable_caching": False})
        return policy


@lru_cache
def get_settings() -> CacheSettings:
    """Get cached settings instance."""
    return CacheSettings()


def create_cache_manager(settings: Optional[CacheSettings] = None) -> CacheManager:
    """Compose a cache manager from settings.

    Example:
        >>> manager = create_cache_manager(CacheSettings(backend="memory"))
        >>> manager.stats().total
        0
    """
    if settings is None:
        settings = get_settings()
    return CacheManager(create_store(settings), settings.to_policy())
