"""
infrastructure/cache_manager.py

Process-wide registry of shared heuristic caches.

Evaluators keep a private HeuristicCache by default. With
cache_scope="shared" they ask this registry for a cache named after
EvaluatorConfig.namespace_key(), so evaluators built for the same task with
value-equivalent options (e.g. one per search restart) reuse each other's
values while differently configured evaluators never mix.

    cache = get_cache_manager().get_or_register(config.namespace_key(), 500000)

Registration is guarded by an RLock; the caches themselves follow the
evaluator's single-threaded model.
"""

import threading
from typing import Any, Dict, List, Optional

from component_10_logging_config import get_logger
from component_5_state_cache import HeuristicCache

logger = get_logger(__name__)


class CacheManager:
    """Singleton mapping namespace -> HeuristicCache."""

    _instance: Optional["CacheManager"] = None
    _instance_lock = threading.RLock()

    def __new__(cls) -> "CacheManager":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance.caches = {}
                instance._registry_lock = threading.RLock()
                cls._instance = instance
                logger.debug("Shared cache registry created")
            return cls._instance

    caches: Dict[str, HeuristicCache]

    def register_cache(
        self, name: str, capacity: int, overwrite: bool = False
    ) -> HeuristicCache:
        """
        Create the named cache.

        Raises:
            ValueError: capacity <= 0, or the name is taken and overwrite is False
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        with self._registry_lock:
            replacing = name in self.caches
            if replacing and not overwrite:
                raise ValueError(f"Shared cache '{name}' exists (pass overwrite=True)")

            cache = self.caches[name] = HeuristicCache(name, capacity)
            logger.info(
                f"Shared cache {'replaced' if replacing else 'registered'}",
                extra={"namespace": name, "capacity": capacity},
            )
            return cache

    def get_or_register(self, name: str, capacity: int) -> HeuristicCache:
        """Named cache, created on first use. An existing cache keeps its capacity."""
        with self._registry_lock:
            cache = self.caches.get(name)
            if cache is None:
                return self.register_cache(name, capacity)
            if cache.capacity != capacity:
                logger.warning(
                    "Shared cache capacity mismatch, keeping existing",
                    extra={
                        "namespace": name,
                        "capacity": cache.capacity,
                        "requested": capacity,
                    },
                )
            return cache

    def get_cache(self, name: str) -> HeuristicCache:
        with self._registry_lock:
            try:
                return self.caches[name]
            except KeyError:
                raise ValueError(f"Shared cache '{name}' not registered") from None

    def unregister_cache(self, name: str) -> None:
        with self._registry_lock:
            self.get_cache(name)
            del self.caches[name]
        logger.info("Shared cache dropped", extra={"namespace": name})

    def invalidate(self, name: Optional[str] = None) -> int:
        """Clear one cache (or all when name is None); returns entries removed."""
        with self._registry_lock:
            targets = [self.get_cache(name)] if name is not None else self.caches.values()
            return sum(cache.clear() for cache in targets)

    def list_caches(self) -> List[str]:
        with self._registry_lock:
            return sorted(self.caches)

    def get_global_stats(self) -> Dict[str, Any]:
        """Totals over all shared caches plus the per-cache breakdown."""
        with self._registry_lock:
            per_cache = [cache.get_stats() for cache in self.caches.values()]

        hits = sum(stats["hits"] for stats in per_cache)
        misses = sum(stats["misses"] for stats in per_cache)
        lookups = hits + misses
        return {
            "total_caches": len(per_cache),
            "total_entries": sum(stats["size"] for stats in per_cache),
            "total_hits": hits,
            "total_misses": misses,
            "total_requests": lookups,
            "global_hit_rate": hits / lookups if lookups else 0.0,
            "cache_breakdown": per_cache,
        }


def get_cache_manager() -> CacheManager:
    return CacheManager()


def reset_cache_manager() -> None:
    """Forget every shared cache. Test helper."""
    with CacheManager._instance_lock:
        CacheManager._instance = None
