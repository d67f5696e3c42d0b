"""Cache entry and statistics records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


@dataclass(slots=True)
class CachedEntry(Generic[T]):
    """A cached AI response with its bookkeeping.

    ``ttl`` and ``tags`` are recorded at save time so that rewriting the entry
    after a hit keeps its original expiry and invalidation groups.
    """

    payload: T
    cached_at: float
    hit_count: int = 0
    ttl: int = 0
    tags: List[str] = field(default_factory=list)

    def remaining_ttl(self, now: float) -> int:
        """Seconds left before the entry expires, never below one."""
        return max(1, int(self.cached_at + self.ttl - now))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        payload: Any = self.payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        return {
            "payload": payload,
            "cached_at": self.cached_at,
            "hit_count": self.hit_count,
            "ttl": self.ttl,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CachedEntry[Any]:
        """Create from dictionary."""
        return cls(
            payload=data["payload"],
            cached_at=float(data["cached_at"]),
            hit_count=int(data.get("hit_count", 0)),
            ttl=int(data.get("ttl", 0)),
            tags=list(data.get("tags", [])),
        )


@dataclass(slots=True)
class CacheStats:
    """Running cache counters for the lifetime of a manager."""

    hits: int = 0
    misses: int = 0
    saves: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage rounded to two decimals."""
        if self.total == 0:
            return 0.0
        return round(self.hits / self.total * 100, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "saves": self.saves,
            "errors": self.errors,
            "total": self.total,
            "hit_rate": self.hit_rate,
        }
