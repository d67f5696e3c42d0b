"""Cache administration API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from aicache.cache.manager import CacheManager
from aicache.cache.tags import ROOT_TAG

from ..deps import get_cache_manager
from ..models import CacheStatsResponse, InvalidateRequest, InvalidateResponse

router = APIRouter(tags=["cache"])


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(
    manager: CacheManager = Depends(get_cache_manager),
) -> CacheStatsResponse:
    """Return hit/miss/save/error counters and the hit rate."""
    return CacheStatsResponse(**manager.stats().to_dict())


@router.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate_cache(
    request: InvalidateRequest,
    manager: CacheManager = Depends(get_cache_manager),
) -> InvalidateResponse:
    """
    Invalidate cached responses by tag.

    Typical tags are ``agent:<id>`` to clear one agent's answers or
    ``user:<id>`` to clear one user's personalized answers.
    """
    tags = [tag.strip() for tag in request.tags if tag.strip()]
    if not tags:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_tags", "message": "At least one non-empty tag is required"},
        )

    removed = await manager.invalidate_by_tags(tags)
    return InvalidateResponse(tags=tags, removed=removed)


@router.delete("/cache", response_model=InvalidateResponse)
async def clear_cache(
    manager: CacheManager = Depends(get_cache_manager),
) -> InvalidateResponse:
    """Clear every cached AI response."""
    removed = await manager.invalidate_by_tags([ROOT_TAG])
    return InvalidateResponse(tags=[ROOT_TAG], removed=removed)
