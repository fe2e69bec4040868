"""
infrastructure package

Shared infrastructure for the AntPlan heuristic evaluator.

Modules:
    - interfaces: Evaluator base interface and result type
    - cache_manager: Registry of process-wide shared caches
    - oracle_runtime: Reference-counted runtime with scoped exclusivity
"""

from infrastructure.interfaces import BaseHeuristicEvaluator, HeuristicResult
from infrastructure.oracle_runtime import OracleRuntime, get_oracle_runtime
from infrastructure.cache_manager import CacheManager, get_cache_manager

__all__ = [
    "BaseHeuristicEvaluator",
    "HeuristicResult",
    "OracleRuntime",
    "get_oracle_runtime",
    "CacheManager",
    "get_cache_manager",
]
