"""
Component 5: State Memoization Cache

Maps a state fingerprint to the final heuristic value computed for it.

- Bounded by an entry count; the WHOLE cache is cleared before an insert
  would exceed the bound (no per-entry LRU bookkeeping)
- Statistics: hits, misses, sets, clears
- Strictly an optimization: values returned never depend on whether the
  cache is enabled

Author: AntPlan Development Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Optional

from cachetools import Cache

from component_10_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class CacheStatistics:
    """Statistics for a single cache."""

    cache_name: str
    hits: int = 0
    misses: int = 0
    sets: int = 0
    clears: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def total_requests(self) -> int:
        """Total cache requests (hits + misses)."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0.0-1.0)."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests


class HeuristicCache:
    """
    Fingerprint -> value cache with whole-cache eviction.

    Backed by a cachetools.Cache of the same capacity; the full clear runs
    before the library's own per-item eviction could trigger.

    Example:
        cache = HeuristicCache("antplan", capacity=500000)
        value = cache.get(state.fingerprint())
        if value is None:
            value = compute(state)
            cache.put(state.fingerprint(), value)
    """

    def __init__(self, name: str, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.name = name
        self.capacity = capacity
        self._entries: Cache = Cache(maxsize=capacity)
        self.statistics = CacheStatistics(cache_name=name)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable) -> Optional[Any]:
        """Cached value, or None (counted as miss)."""
        value = self._entries.get(key)
        if value is None:
            self.statistics.misses += 1
        else:
            self.statistics.hits += 1
        return value

    def put(self, key: Hashable, value: Any) -> None:
        """Store a value; clears everything first when at capacity."""
        if key not in self._entries and len(self._entries) >= self.capacity:
            self.clear()
        self._entries[key] = value
        self.statistics.sets += 1

    def clear(self) -> int:
        """Drop all entries. Returns the number removed."""
        count = len(self._entries)
        self._entries.clear()
        self.statistics.clears += 1
        logger.debug("Cache CLEARED: %s (%d entries)", self.name, count)
        return count

    def get_stats(self) -> Dict[str, Any]:
        stats = self.statistics
        return {
            "cache_name": self.name,
            "hits": stats.hits,
            "misses": stats.misses,
            "sets": stats.sets,
            "clears": stats.clears,
            "total_requests": stats.total_requests,
            "hit_rate": stats.hit_rate,
            "size": len(self._entries),
            "capacity": self.capacity,
            "created_at": stats.created_at.isoformat(),
        }


class VisitedStateSet:
    """
    Set of state fingerprints with whole-set clearing at capacity.

    Used by the lookahead probe to skip states already explored.
    """

    def __init__(self, capacity: int):
        self._cache = HeuristicCache("probe_visited", capacity)

    def add(self, fingerprint: int) -> bool:
        """Record a fingerprint. Returns False if it was already present."""
        if fingerprint in self._cache:
            return False
        self._cache.put(fingerprint, True)
        return True

    def __contains__(self, fingerprint: int) -> bool:
        return fingerprint in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    @property
    def clears(self) -> int:
        return self._cache.statistics.clears
