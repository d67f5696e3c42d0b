"""Heuristic query classification.

The classification describes how volatile or personalized an answer is
expected to be. It feeds TTL resolution and tagging only and never takes part
in the cache key.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import AbstractSet


class QueryType(str, Enum):
    """Coarse volatility classes of an AI request."""

    GENERAL = "general"
    PERSONALIZED = "personalized"
    TIME_SENSITIVE = "time_sensitive"
    KNOWLEDGE = "knowledge"


# Agents answering from live per-user account data
DEFAULT_PERSONALIZED_AGENTS: frozenset[str] = frozenset({"shopify-ai"})

_RECENCY_PATTERN = re.compile(r"\b(?:today|now|current|latest)")
_PERSONAL_PATTERN = re.compile(r"\b(?:my|i|me)\b")
_KNOWLEDGE_PATTERN = re.compile(r"\b(?:what is|how to|explain|define)")


def classify(
    message: str,
    agent_id: str | None = None,
    personalized_agents: AbstractSet[str] = DEFAULT_PERSONALIZED_AGENTS,
) -> QueryType:
    """Classify a request from its message and agent.

    Rules are checked in priority order: recency markers, first-person
    markers or a personalized agent, definitional phrasing, then general.

    Example:
        >>> classify("What is your return policy?", "beacon")
        <QueryType.KNOWLEDGE: 'knowledge'>
        >>> classify("What's the status of my order today?", "shopify-ai")
        <QueryType.TIME_SENSITIVE: 'time_sensitive'>
    """
    text = message.lower()

    if _RECENCY_PATTERN.search(text):
        return QueryType.TIME_SENSITIVE

    if _PERSONAL_PATTERN.search(text) or (agent_id is not None and agent_id in personalized_agents):
        return QueryType.PERSONALIZED

    if _KNOWLEDGE_PATTERN.search(text):
        return QueryType.KNOWLEDGE

    return QueryType.GENERAL
