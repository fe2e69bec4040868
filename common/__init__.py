"""
Common constants for the AntPlan project.

This package provides centralized sentinels and default values used
throughout the AntPlan codebase.
"""

from common.constants import *

__all__ = [
    # Evaluation Results
    "DEAD_END",
    "MAX_FINITE_VALUE",
    "UNREACHED",
    "NO_OPERATOR",
    # Oracle Binding
    "DEFAULT_ENTRY_POINT",
    "DEFAULT_SEARCH_PATH",
    # Cache Configuration
    "DEFAULT_CACHE_CAPACITY",
    "FNV_OFFSET_BASIS",
    "FNV_PRIME",
    "FINGERPRINT_MASK",
    "GOLDEN_RATIO_64",
    # Lookahead Probe
    "DEFAULT_LOOKAHEAD_FREQUENCY",
    "DEFAULT_LOOKAHEAD_DEPTH",
    "DEFAULT_LOOKAHEAD_BUDGET",
    "DEFAULT_LOOKAHEAD_TOP_K",
    "DEFAULT_IMPROVEMENT_THRESHOLD",
    "PROBE_WARMUP_EVALUATIONS",
    "PROBE_MATURE_EVALUATIONS",
    "PROBE_VISITED_CAPACITY",
    # Composition
    "DEFAULT_FRONTIER_LIMIT",
]
