"""
Component 7: Heuristic Composer

Turns the relaxed distance and the oracle score into the single integer
handed to the outer search.

Strategies:
- relaxed: relaxed distance alone
- oracle: oracle score alone
- sum: relaxed distance + oracle score
- frontier_min: min over frontier propositions p of
  cost(p) + oracle(state with p's fact set); the state itself counts at 0

Relaxed dead ends short-circuit before the oracle is consulted. Oracle
faults under the dead_end failure policy also yield DEAD_END.

Author: AntPlan Development Team
Date: 2026-10-19
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from antplan_config import CompositionStrategy
from common.constants import DEAD_END, DEFAULT_FRONTIER_LIMIT, MAX_FINITE_VALUE, NO_OPERATOR
from component_10_logging_config import get_logger
from component_1_task_model import State
from component_2_proposition_space import Proposition
from component_3_relaxed_reachability import (
    ReachabilityResult,
    RelaxedReachabilityEngine,
)
from component_4_oracle import OracleScorer

logger = get_logger(__name__)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp_value(value: float) -> int:
    """Round and clamp into [0, MAX_FINITE_VALUE]."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return MAX_FINITE_VALUE if value > 0 else 0
    return min(max(round_half_away(value), 0), MAX_FINITE_VALUE)


class FrontierCollector:
    """
    Frontier visitor for the reachability engine.

    Keeps the first `limit` settled propositions that had to be achieved
    (facts already true in the state are covered by scoring the state).
    """

    def __init__(self, limit: int = DEFAULT_FRONTIER_LIMIT):
        self.limit = limit
        self.frontier: List[Proposition] = []

    def __call__(self, prop: Proposition) -> None:
        if prop.reached_by == NO_OPERATOR or len(self.frontier) >= self.limit:
            return
        self.frontier.append(prop)


@dataclass
class Composition:
    """
    Composed value of one state.

    Attributes:
        value: Final integer value (DEAD_END for dead ends)
        dead_end: The state was judged a dead end
        relaxed: Reachability result (None without relaxed distance)
        oracle_score: Oracle score of the state (None if not consulted)
        frontier_size: Frontier propositions scored (frontier_min only)
    """

    value: int
    dead_end: bool = False
    relaxed: Optional[ReachabilityResult] = None
    oracle_score: Optional[float] = None
    frontier_size: int = 0


class HeuristicComposer:
    """
    Runs the configured composition for one state at a time.

    The composer drives the reachability pass itself, since frontier_min
    has to observe the propagation while it runs.

    Example:
        composer = HeuristicComposer(CompositionStrategy.SUM, engine, scorer)
        composition = composer.compose(state)
    """

    def __init__(
        self,
        strategy: CompositionStrategy,
        engine: Optional[RelaxedReachabilityEngine] = None,
        scorer: Optional[OracleScorer] = None,
        frontier_limit: int = DEFAULT_FRONTIER_LIMIT,
    ):
        if strategy.needs_relaxed_distance and engine is None:
            raise ValueError(f"composition '{strategy.value}' needs a reachability engine")
        if strategy.needs_oracle and scorer is None:
            raise ValueError(f"composition '{strategy.value}' needs an oracle")

        self.strategy = strategy
        self.engine = engine
        self.scorer = scorer
        self.frontier_limit = frontier_limit

    def compose(self, state: State) -> Composition:
        relaxed = None
        collector = None
        if self.engine is not None:
            if self.strategy is CompositionStrategy.FRONTIER_MIN:
                collector = FrontierCollector(self.frontier_limit)
            relaxed = self.engine.compute(state, collector)
            if relaxed.dead_end:
                return Composition(DEAD_END, dead_end=True, relaxed=relaxed)

        if self.strategy is CompositionStrategy.RELAXED:
            return Composition(clamp_value(relaxed.distance), relaxed=relaxed)

        outcome = self.scorer.score_state(state)
        if outcome.dead_end:
            return Composition(
                DEAD_END, dead_end=True, relaxed=relaxed, oracle_score=outcome.value
            )

        if self.strategy is CompositionStrategy.ORACLE:
            total = outcome.value
        elif self.strategy is CompositionStrategy.SUM:
            total = relaxed.distance + outcome.value
        else:
            total = self._frontier_minimum(state, outcome.value, collector.frontier)

        return Composition(
            clamp_value(total),
            relaxed=relaxed,
            oracle_score=outcome.value,
            frontier_size=len(collector.frontier) if collector is not None else 0,
        )

    def _frontier_minimum(
        self, state: State, state_score: float, frontier: List[Proposition]
    ) -> float:
        best = state_score
        for prop in frontier:
            if prop.cost >= best:
                continue  # cost alone already exceeds the best combination
            outcome = self.scorer.score_state(
                state, override=(prop.fact.var, prop.fact.value)
            )
            if outcome.failed:
                continue
            best = min(best, prop.cost + outcome.value)

        logger.debug(
            "Frontier minimum",
            extra={"frontier": len(frontier), "state_score": state_score, "best": best},
        )
        return best
