"""
Centralized constants for the AntPlan heuristic evaluator.

This module provides a single source of truth for sentinels, default option
values and tuning thresholds used throughout the AntPlan codebase.

Organization:
    - Evaluation Results: DEAD-END sentinel and value bounds
    - Oracle Binding: default entry point and search paths
    - Cache Configuration: capacity defaults and fingerprint constants
    - Lookahead Probe: schedule thresholds and default budgets
    - Composition: frontier scoring limits

Usage:
    from common.constants import DEAD_END, DEFAULT_CACHE_CAPACITY

Note:
    These constants define default values. EvaluatorConfig (antplan_config.py)
    can override the option defaults per evaluator instance.

Last Updated: 2026-10-19
"""

# =============================================================================
# Evaluation Results
# =============================================================================

DEAD_END: int = 2**31 - 1
"""
Reserved heuristic value for states proven unsolvable.

Matches the host search's "infinite" evaluation so it can be passed through
unchanged. Valid estimates are clamped to MAX_FINITE_VALUE.
"""

MAX_FINITE_VALUE: int = DEAD_END - 1

UNREACHED: int = -1
"""Proposition cost label for "not reached in this propagation pass"."""

NO_OPERATOR: int = -1
"""reached_by / action index marker for seeded propositions and synthetic operators."""

# =============================================================================
# Oracle Binding
# =============================================================================

DEFAULT_ENTRY_POINT: str = "anticipatory_cost_fn"

DEFAULT_SEARCH_PATH: str = "."
"""Always made importable for oracle modules (the working directory)."""

# =============================================================================
# Cache Configuration
# =============================================================================

DEFAULT_CACHE_CAPACITY: int = 500_000
"""
Maximum memoized states before the whole cache is cleared.

Rationale:
    Whole-cache clearing keeps lookups O(1) amortized without LRU
    bookkeeping. 500k integer entries stay well below 100 MB.
"""

FNV_OFFSET_BASIS: int = 0xCBF29CE484222325
FNV_PRIME: int = 0x100000001B3
FINGERPRINT_MASK: int = 0xFFFFFFFFFFFFFFFF
GOLDEN_RATIO_64: int = 0x9E3779B97F4A7C15
"""Added to every value before folding so value 0 still perturbs the hash."""

# =============================================================================
# Lookahead Probe
# =============================================================================

DEFAULT_LOOKAHEAD_FREQUENCY: int = 10
DEFAULT_LOOKAHEAD_DEPTH: int = 2
DEFAULT_LOOKAHEAD_BUDGET: int = 50
DEFAULT_LOOKAHEAD_TOP_K: int = 3
DEFAULT_IMPROVEMENT_THRESHOLD: float = 0.9

PROBE_WARMUP_EVALUATIONS: int = 1_000
"""Up to this many evaluations the probe runs at the configured frequency."""

PROBE_MATURE_EVALUATIONS: int = 10_000
"""
Evaluation count after which the probe runs at a quarter of its base rate.

- count < 1,000: every `frequency` evaluations
- count < 10,000: every `2 * frequency` evaluations
- otherwise: every `4 * frequency` evaluations
"""

PROBE_VISITED_CAPACITY: int = 100_000

# =============================================================================
# Composition
# =============================================================================

DEFAULT_FRONTIER_LIMIT: int = 64
"""Maximum oracle calls for frontier snapshots per evaluation (frontier_min)."""
