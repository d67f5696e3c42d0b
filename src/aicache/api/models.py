"""Pydantic models for cache admin API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CacheStatsResponse(BaseModel):
    """Cache counters of the serving process."""

    hits: int = Field(..., description="Successful lookups")
    misses: int = Field(..., description="Lookups that found nothing")
    saves: int = Field(..., description="Entries written")
    errors: int = Field(..., description="Recovered store failures")
    total: int = Field(..., description="Lookups (hits + misses)")
    hit_rate: float = Field(..., description="Hit rate in percent")


class InvalidateRequest(BaseModel):
    """Request payload for tag invalidation."""

    model_config = ConfigDict(extra="forbid")

    tags: list[str] = Field(..., description="Tags to invalidate (e.g. 'agent:flint', 'user:123')")


class InvalidateResponse(BaseModel):
    """Result of a tag invalidation."""

    tags: list[str] = Field(..., description="Tags that were invalidated")
    removed: int = Field(..., description="Number of removed entries")
