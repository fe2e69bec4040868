"""
Component 6: Lookahead Probe

Bounded exploratory search from the evaluated state:
- Runs periodically, more often early in the search than later
- Scores successors with the oracle under a shared candidate budget
- Marks root actions leading to markedly better successors as preferred

The probe never changes the returned heuristic value; it only feeds the
preferred-operator side channel of the outer search.

Author: AntPlan Development Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from common.constants import (
    PROBE_MATURE_EVALUATIONS,
    PROBE_VISITED_CAPACITY,
    PROBE_WARMUP_EVALUATIONS,
)
from component_10_logging_config import PerformanceLogger, get_logger
from component_1_task_model import PlanningTask, State
from component_4_oracle import OracleScorer
from component_5_state_cache import VisitedStateSet

logger = get_logger(__name__)


# ============================================================================
# Schedule
# ============================================================================


class ProbeSchedule:
    """
    Decides on which evaluations the probe runs.

    Effective period:
    - first 1,000 evaluations: frequency
    - up to 10,000 evaluations: 2 * frequency
    - afterwards: 4 * frequency
    """

    def __init__(self, frequency: int):
        if frequency < 1:
            raise ValueError(f"frequency must be positive, got {frequency}")
        self.frequency = frequency
        self.evaluations = 0

    def effective_frequency(self) -> int:
        if self.evaluations <= PROBE_WARMUP_EVALUATIONS:
            return self.frequency
        if self.evaluations <= PROBE_MATURE_EVALUATIONS:
            return 2 * self.frequency
        return 4 * self.frequency

    def tick(self) -> bool:
        """Count one evaluation; True if the probe should run now."""
        self.evaluations += 1
        return self.evaluations % self.effective_frequency() == 0


# ============================================================================
# Probe
# ============================================================================


class ProbeBudget:
    """Candidate budget shared by every level of one probe."""

    def __init__(self, limit: int):
        self.remaining = limit

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def take(self) -> bool:
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True


@dataclass
class ProbeReport:
    """
    Outcome of one probe.

    Attributes:
        preferred: Root actions leading to an improving successor
        candidates_considered: Successors charged against the budget
        budget_left: Unused budget
        max_depth_reached: Deepest level whose successors were generated
        best_score: Lowest successor score seen (None if nothing was scored)
        improvements: Successors that beat their parent by the threshold
    """

    preferred: Set[int] = field(default_factory=set)
    candidates_considered: int = 0
    budget_left: int = 0
    max_depth_reached: int = 0
    best_score: Optional[float] = None
    improvements: int = 0


class LookaheadProbe:
    """
    Bounded branch-and-bound-lite probe.

    At every level, successors are scored by the oracle. A successor scoring
    below parent_cost * improvement_threshold is an improvement; below the
    root level it must also beat root_cost * improvement_threshold. Only
    improvements are kept: the top_k best mark the root action leading to
    them, and the probe recurses into those same top_k with one level less
    depth, using each successor's score as its cost. A path whose first
    step does not improve is therefore never credited.

    Preferred actions are always root actions, so every one of them is
    applicable in the evaluated state.
    """

    def __init__(
        self,
        task: PlanningTask,
        scorer: OracleScorer,
        depth: int,
        budget: int,
        improvement_threshold: float,
        top_k: int,
        visited_capacity: int = PROBE_VISITED_CAPACITY,
    ):
        self.task = task
        self.scorer = scorer
        self.depth = depth
        self.budget = budget
        self.improvement_threshold = improvement_threshold
        self.top_k = top_k
        self.visited = VisitedStateSet(visited_capacity)
        self.probes_run = 0

    def run(self, state: State, current_cost: float) -> ProbeReport:
        """
        Probe from the state.

        Args:
            state: Evaluated state
            current_cost: Its heuristic value

        Returns:
            ProbeReport (empty when the state has nothing to improve)
        """
        report = ProbeReport(budget_left=self.budget)
        if current_cost <= 0:
            return report

        self.probes_run += 1
        budget = ProbeBudget(self.budget)
        with PerformanceLogger(
            logger.logger, "Lookahead probe", depth=self.depth, budget=self.budget
        ):
            self._probe(
                state, current_cost, current_cost, self.depth, budget, None, report
            )

        report.budget_left = budget.remaining
        logger.debug(
            "Probe finished",
            extra={
                "preferred": len(report.preferred),
                "candidates": report.candidates_considered,
                "improvements": report.improvements,
            },
        )
        return report

    def _probe(
        self,
        state: State,
        current_cost: float,
        root_cost: float,
        depth: int,
        budget: ProbeBudget,
        root_action: Optional[int],
        report: ProbeReport,
    ) -> None:
        if depth <= 0 or budget.exhausted:
            return
        if not self.visited.add(state.fingerprint()):
            return

        level = self.depth - depth + 1
        report.max_depth_reached = max(report.max_depth_reached, level)

        scored: List[Tuple[float, int, State]] = []
        for action_index in self.task.applicable_actions(state):
            if not budget.take():
                break
            report.candidates_considered += 1

            successor = self.task.successor(state, action_index)
            score = self.scorer.try_score(successor)
            if score is None:
                continue  # faulted candidates are dropped
            scored.append((score, action_index, successor))
            if report.best_score is None or score < report.best_score:
                report.best_score = score

        scored.sort(key=lambda candidate: (candidate[0], candidate[1]))

        bound = min(current_cost, root_cost) * self.improvement_threshold
        improving = [candidate for candidate in scored if candidate[0] < bound]
        report.improvements += len(improving)

        for _, action_index, _ in improving[: self.top_k]:
            report.preferred.add(action_index if root_action is None else root_action)

        for score, action_index, successor in improving[: self.top_k]:
            if budget.exhausted:
                break
            self._probe(
                successor,
                score,
                root_cost,
                depth - 1,
                budget,
                action_index if root_action is None else root_action,
                report,
            )
