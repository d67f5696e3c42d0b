"""Cache TTL and enablement policy.

This module holds the static policy that drives AI response caching: the
global switch, the TTL tables (per agent, per query classification and per
backend family) and the lists that exclude requests from caching.

TTL precedence is fixed: explicit override, agent table, classification
table, backend table, then the global default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from aicache.cache.classifier import DEFAULT_PERSONALIZED_AGENTS, QueryType


def _default_query_type_ttls() -> dict[QueryType, int]:
    return {
        QueryType.GENERAL: 60 * 60,
        QueryType.TIME_SENSITIVE: 15 * 60,
        QueryType.PERSONALIZED: 30 * 60,
        QueryType.KNOWLEDGE: 24 * 60 * 60,
    }


class CachePolicyConfig(BaseModel):
    """Configuration for cache TTL and behavior policies.

    All durations are in seconds and must be positive. The model is frozen and
    rejects unknown fields, so a malformed policy fails at construction time.

    Attributes:
        enable_caching: Global flag to enable/disable caching.
        enable_personalization: Include the user context in cache keys.
        default_ttl: TTL used when no table matches.
        query_type_ttls: TTL per query classification.
        agent_ttls: TTL per agent identifier; wins over classification.
        backend_ttls: TTL per backend family.
        disabled_agents: Agents whose requests are never cached.
        disabled_backends: Backend families whose requests are never cached.
        uncacheable_query_types: Classifications that are never cached.
        personalized_agents: Agents that always answer from live per-user data.
        cache_failed_responses: Store results that report ``success=False``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable_caching: bool = Field(default=True, description="Global caching enabled flag")
    enable_personalization: bool = Field(
        default=True, description="Include user context in cache keys"
    )
    default_ttl: int = Field(default=60 * 60, gt=0, description="Default TTL in seconds")
    query_type_ttls: dict[QueryType, PositiveInt] = Field(
        default_factory=_default_query_type_ttls,
        description="TTL per query classification in seconds",
    )
    agent_ttls: dict[str, PositiveInt] = Field(
        default_factory=dict, description="TTL per agent in seconds"
    )
    backend_ttls: dict[str, PositiveInt] = Field(
        default_factory=dict, description="TTL per backend family in seconds"
    )
    disabled_agents: frozenset[str] = Field(
        default_factory=frozenset, description="Agents excluded from caching"
    )
    disabled_backends: frozenset[str] = Field(
        default_factory=frozenset, description="Backend families excluded from caching"
    )
    uncacheable_query_types: frozenset[QueryType] = Field(
        default_factory=frozenset, description="Classifications excluded from caching"
    )
    personalized_agents: frozenset[str] = Field(
        default=DEFAULT_PERSONALIZED_AGENTS,
        description="Agents operating on live per-user account data",
    )
    cache_failed_responses: bool = Field(
        default=True, description="Cache fetcher results reporting success=False"
    )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> CachePolicyConfig:
        """
        Load a cache policy from a YAML file.

        Args:
            yaml_path: Path to YAML policy file

        Returns:
            CachePolicyConfig instance

        Raises:
            FileNotFoundError: If YAML file not found
            ValueError: If YAML structure is invalid
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Cache policy not found: {yaml_path}")

        with open(yaml_path, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Cache policy must be a mapping in {yaml_path}")

        return cls.model_validate(data)


def resolve_ttl(
    policy: CachePolicyConfig,
    agent_id: Optional[str] = None,
    backend: Optional[str] = None,
    query_type: QueryType | str | None = None,
    override: Optional[int] = None,
) -> int:
    """Resolve the TTL of a cache entry.

    The first match wins: explicit override, agent table, classification
    table, backend table, global default.

    Args:
        policy: Active cache policy.
        agent_id: Answering agent.
        backend: Backend family (e.g. "openai", "langchain").
        query_type: Query classification.
        override: Caller-supplied TTL in seconds for this call.

    Returns:
        TTL in seconds.

    Raises:
        ValueError: If the override is not positive or the classification is unknown.

    Example:
        >>> policy = CachePolicyConfig(agent_ttls={"shopify-ai": 900})
        >>> resolve_ttl(policy, agent_id="shopify-ai", query_type="time_sensitive")
        900
    """
    if override is not None:
        if override <= 0:
            raise ValueError(f"TTL override must be positive, got {override}")
        return override

    if agent_id and agent_id in policy.agent_ttls:
        return policy.agent_ttls[agent_id]

    if query_type is not None:
        query_type = QueryType(query_type)
        if query_type in policy.query_type_ttls:
            return policy.query_type_ttls[query_type]

    if backend and backend in policy.backend_ttls:
        return policy.backend_ttls[backend]

    return policy.default_ttl


def is_cache_enabled(
    policy: CachePolicyConfig,
    agent_id: Optional[str] = None,
    backend: Optional[str] = None,
    query_type: QueryType | str | None = None,
) -> bool:
    """Determine whether a request may use the cache at all.

    Example:
        >>> is_cache_enabled(CachePolicyConfig(disabled_agents={"morgan"}), agent_id="morgan")
        False
    """
    if not policy.enable_caching:
        return False

    if agent_id is not None and agent_id in policy.disabled_agents:
        return False

    if backend is not None and backend in policy.disabled_backends:
        return False

    if query_type is not None and QueryType(query_type) in policy.uncacheable_query_types:
        return False

    return True
