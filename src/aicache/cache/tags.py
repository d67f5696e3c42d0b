"""Invalidation tags for cached AI responses.

Tags have the form ``scope:value`` and label entries for grouped clearing
(every answer of an agent, of a user, ...). Every entry carries the root tag
so that one invalidation clears all cached AI responses.
"""

from __future__ import annotations

from typing import Iterable, Optional

from aicache.cache.classifier import QueryType

ROOT_TAG = "ai_response"


def agent_tag(agent_id: str) -> str:
    return f"agent:{agent_id}"


def backend_tag(backend: str) -> str:
    return f"backend:{backend}"


def user_tag(user_id: str | int) -> str:
    return f"user:{user_id}"


def type_tag(query_type: QueryType | str) -> str:
    # Unrecognised classifications are tagged as given
    value = query_type.value if isinstance(query_type, QueryType) else str(query_type)
    return f"type:{value}"


def build_tags(
    agent_id: Optional[str] = None,
    backend: Optional[str] = None,
    user_id: str | int | None = None,
    query_type: QueryType | str | None = None,
    extra: Iterable[str] = (),
) -> frozenset[str]:
    """Derive the invalidation tags of a cache entry.

    Example:
        >>> sorted(build_tags(agent_id="flint", user_id=123))
        ['agent:flint', 'ai_response', 'user:123']
    """
    tags = {ROOT_TAG}

    if agent_id:
        tags.add(agent_tag(agent_id))
    if backend:
        tags.add(backend_tag(backend))
    if user_id is not None and str(user_id):
        tags.add(user_tag(user_id))
    if query_type:
        tags.add(type_tag(query_type))

    tags.update(tag.strip() for tag in extra if tag and tag.strip())
    return frozenset(tags)
