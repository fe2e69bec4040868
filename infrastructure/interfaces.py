"""
infrastructure/interfaces.py

Base interface for heuristic evaluators consumed by an outer search.

Interface Contract:
    Every evaluator returns a HeuristicResult per state:
    - one integer estimate (>= 0) or the DEAD_END sentinel
    - a set of action indices marked preferred for that state

Usage:
    from infrastructure.interfaces import BaseHeuristicEvaluator, HeuristicResult

    class GoalCountEvaluator(BaseHeuristicEvaluator):
        def evaluate(self, state) -> HeuristicResult:
            missing = sum(state[v] != g for v, g in self.task.goal.items())
            return HeuristicResult(value=missing)

        def get_stats(self) -> Dict[str, Any]:
            return {}
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

from common.constants import DEAD_END


@dataclass(frozen=True)
class HeuristicResult:
    """
    Result of one evaluation handed to the outer search.

    Attributes:
        value: Non-negative estimate, or DEAD_END
        preferred: Action indices worth expanding first. Only values are
            memoized, so this is always empty when cache_hit is True
        cache_hit: Value came from the memoization cache
        probed: A lookahead probe ran for this evaluation
    """

    value: int
    preferred: FrozenSet[int] = field(default_factory=frozenset)
    cache_hit: bool = False
    probed: bool = False

    def __post_init__(self):
        """Validate the value contract."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Heuristic value must be an int, got {self.value!r}")
        if self.value < 0 or self.value > DEAD_END:
            raise ValueError(
                f"Heuristic value must be in [0, DEAD_END], got {self.value}"
            )

    @property
    def is_dead_end(self) -> bool:
        return self.value == DEAD_END


class BaseHeuristicEvaluator(ABC):
    """
    Abstract base class for heuristic evaluators.

    Evaluators are called sequentially by the outer search, one state at a
    time; implementations may reuse per-evaluation scratch data and are not
    required to be re-entrant.
    """

    @abstractmethod
    def evaluate(self, state) -> HeuristicResult:
        """
        Evaluate one state.

        Args:
            state: Complete assignment of the task variables

        Returns:
            HeuristicResult with estimate and preferred actions
        """

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Counters collected since construction."""

    def compute_heuristic(self, state) -> int:
        """Convenience: only the estimate."""
        return self.evaluate(state).value

    def is_dead_end(self, state) -> bool:
        return self.evaluate(state).is_dead_end
