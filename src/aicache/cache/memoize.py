"""Memoizing wrapper around AI backend calls.

``with_cache`` is the single entry point that ties a fetcher to the cache:
code that calls an AI backend passes the fully-formed request and a
zero-argument coroutine function performing the real call, and receives
either a cached or a freshly fetched response.

Example:
    >>> manager = CacheManager(InMemoryCacheStore())
    >>> request = CacheRequest(
    ...     message="What is your return policy?",
    ...     agent_id="beacon",
    ...     system_prompt="You are Beacon.",
    ...     model_params={"model": "gpt-4", "temperature": 0.7},
    ... )
    >>> response = await with_cache(manager, request, call_model)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from pydantic import BaseModel, Field

from aicache.cache.classifier import QueryType
from aicache.cache.entry import CachedEntry
from aicache.cache.manager import CacheManager
from aicache.cache.policy import is_cache_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]


class AIResponse(BaseModel):
    """Response shape returned by AI fetchers.

    The cache stores fetcher results verbatim; this model documents the
    conventional shape and is not required.
    """

    payload: Any = Field(..., description="Model output")
    tokens_used: int = Field(default=0, ge=0, description="Total tokens consumed")
    latency_ms: int = Field(default=0, ge=0, description="Backend latency in milliseconds")
    model_id: str = Field(default="", description="Model that produced the output")
    success: bool = Field(default=True, description="Backend reported a usable answer")
    error: Optional[str] = Field(default=None, description="Error message on failure")


@dataclass(frozen=True)
class CacheRequest:
    """
    Fully-formed AI request as seen by the cache.

    Attributes:
        message: User message
        agent_id: Answering agent (persona) identifier
        system_prompt: System prompt sent with the message
        model_params: Model configuration (model, temperature, max_tokens, ...)
        backend: Backend family (e.g. "openai", "langchain", "autogen")
        user_context: Optional user context with ``user_id`` and ``preferences``
    """

    message: str
    agent_id: str
    system_prompt: str
    model_params: Mapping[str, Any] = field(default_factory=dict)
    backend: Optional[str] = None
    user_context: Optional[Mapping[str, Any]] = None

    @property
    def user_id(self) -> Any:
        if not self.user_context:
            return None
        return self.user_context.get("user_id")


@dataclass(frozen=True)
class CacheOptions:
    """
    Per-call cache options.

    Attributes:
        query_type: Classification to use instead of the heuristic one
        ttl: TTL override in seconds
        tags: Additional invalidation tags
    """

    query_type: Optional[QueryType] = None
    ttl: Optional[int] = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Rejected here so a bad override never costs a backend call
        if self.ttl is not None and self.ttl <= 0:
            raise ValueError(f"TTL override must be positive, got {self.ttl}")


def _reports_failure(result: Any) -> bool:
    if isinstance(result, Mapping):
        return result.get("success") is False
    return getattr(result, "success", None) is False


async def with_cache_entry(
    manager: CacheManager,
    request: CacheRequest,
    fetcher: Fetcher[T],
    options: Optional[CacheOptions] = None,
) -> CachedEntry[T]:
    """
    Serve a request from the cache or fetch and cache it.

    Args:
        manager: Cache manager to use
        request: Request descriptor
        fetcher: Zero-argument coroutine function performing the real call
        options: Per-call options

    Returns:
        The stored entry on a hit, or a fresh entry (hit_count 0) wrapping the
        fetched result on a miss. Exceptions raised by the fetcher propagate.
    """
    options = options or CacheOptions()
    policy = manager.policy

    if not is_cache_enabled(
        policy,
        agent_id=request.agent_id,
        backend=request.backend,
        query_type=options.query_type,
    ):
        logger.debug("AI cache disabled for agent %s", request.agent_id)
        result = await fetcher()
        return CachedEntry(payload=result, cached_at=manager.now())

    key = manager.build_key(
        request.message,
        request.agent_id,
        request.system_prompt,
        request.model_params,
        request.user_context,
    )

    cached = await manager.get(key)
    if cached is not None:
        return cached

    result = await fetcher()

    query_type = options.query_type or manager.classify(request.message, request.agent_id)

    if _reports_failure(result) and not policy.cache_failed_responses:
        logger.debug("Not caching failed AI response for agent %s", request.agent_id)
        return CachedEntry(payload=result, cached_at=manager.now())

    entry = await manager.set(
        key,
        result,
        agent_id=request.agent_id,
        backend=request.backend,
        user_id=request.user_id,
        query_type=query_type,
        ttl=options.ttl,
        tags=options.tags,
    )
    if entry is None:
        return CachedEntry(payload=result, cached_at=manager.now())
    return entry


async def with_cache(
    manager: CacheManager,
    request: CacheRequest,
    fetcher: Fetcher[T],
    options: Optional[CacheOptions] = None,
) -> T:
    """Serve a request from the cache or fetch and cache it, returning the response."""
    entry = await with_cache_entry(manager, request, fetcher, options)
    return entry.payload
