"""
Component 3: Relaxed Reachability Engine

Label-correcting forward propagation under delete relaxation:
- Priority-ordered propagation of proposition cost labels (h_max / h_add)
- Early termination once every goal proposition has been settled
- Dead-end detection (goal unreachable even under relaxation)
- Relaxed plan extraction and preferred-operator marking

The engine owns a PropositionSpace and resets it before every pass, so one
engine must not be used by two evaluations at the same time.

Author: AntPlan Development Team
Date: 2026-10-19
"""

import heapq
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Tuple

from antplan_config import RelaxedDistanceVariant
from common.constants import DEAD_END, NO_OPERATOR, UNREACHED
from component_10_logging_config import get_logger
from component_1_task_model import PlanningTask, State
from component_2_proposition_space import Proposition, PropositionSpace

logger = get_logger(__name__)

# Called once per settled proposition, in settling order
FrontierVisitor = Callable[[Proposition], None]


# ============================================================================
# Results
# ============================================================================


@dataclass
class ReachabilityResult:
    """
    Outcome of one propagation pass.

    Attributes:
        dead_end: Some goal proposition stayed unreached
        distance: Aggregated goal distance (DEAD_END if dead_end)
        goal_costs: Cost label of every goal proposition (-1 = unreached)
        settled: Propositions settled before termination
    """

    dead_end: bool
    distance: int
    goal_costs: List[int] = field(default_factory=list)
    settled: int = 0


@dataclass
class RelaxedPlanResult:
    """
    Relaxed plan extracted from the last propagation pass.

    Attributes:
        relaxed_plan: One flag per action, True if used by the relaxed plan
        preferred: Plan actions whose preconditions all hold in the state
        plan_cost: Summed cost of the plan actions (each action counted once)
    """

    relaxed_plan: List[bool]
    preferred: FrozenSet[int]
    plan_cost: int

    @property
    def actions(self) -> List[int]:
        return [index for index, used in enumerate(self.relaxed_plan) if used]


# ============================================================================
# Engine
# ============================================================================


class RelaxedReachabilityEngine:
    """
    Delete-relaxed reachability analysis for one task.

    Variants:
        MAX:      operator cost = max(cost, base_cost + precondition cost),
                  distance = max over goals
        ADDITIVE: operator cost = base_cost + sum of precondition costs,
                  distance = sum over goals
        FF:       additive propagation, distance = relaxed plan cost

    Example:
        engine = RelaxedReachabilityEngine(task, RelaxedDistanceVariant.MAX)
        result = engine.compute(state)
        if not result.dead_end:
            plan = engine.extract_relaxed_plan(state)
    """

    def __init__(self, task: PlanningTask, variant: RelaxedDistanceVariant):
        if variant is RelaxedDistanceVariant.NONE:
            raise ValueError("RelaxedReachabilityEngine needs a relaxed variant")

        self.task = task
        self.variant = variant
        self.space = PropositionSpace(task)
        self._queue: List[Tuple[int, int]] = []
        self._last_state: Optional[State] = None
        self._last_dead_end: bool = True

        # Operators without preconditions fire unconditionally
        self._unconditional = [
            op for op in self.space.operators if not op.preconditions
        ]

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _enqueue_if_better(self, prop_id: int, cost: int, op_id: int) -> None:
        prop = self.space.propositions[prop_id]
        if prop.cost == UNREACHED or cost < prop.cost:
            assert cost >= 0, "negative relaxed cost"
            prop.cost = cost
            prop.reached_by = op_id
            heapq.heappush(self._queue, (cost, prop_id))

    def compute(
        self, state: State, frontier_visitor: Optional[FrontierVisitor] = None
    ) -> ReachabilityResult:
        """
        Run one propagation pass from the state.

        Args:
            state: Evaluated state
            frontier_visitor: Called for every settled proposition until all
                goals are settled

        Returns:
            ReachabilityResult (distance is DEAD_END for dead ends)
        """
        space = self.space
        propositions = space.propositions
        operators = space.operators
        use_max = self.variant is RelaxedDistanceVariant.MAX

        space.reset()
        self._queue = []

        for prop_id in space.state_propositions(state):
            self._enqueue_if_better(prop_id, 0, NO_OPERATOR)
        for op in self._unconditional:
            self._enqueue_if_better(op.effect, op.base_cost, op.op_id)

        unsolved_goals = len(space.goal_propositions)
        settled = 0

        while self._queue and unsolved_goals > 0:
            distance, prop_id = heapq.heappop(self._queue)
            prop = propositions[prop_id]
            assert prop.cost != UNREACHED and prop.cost <= distance
            if prop.cost < distance:
                continue  # stale entry from before an improvement

            settled += 1
            if frontier_visitor is not None:
                frontier_visitor(prop)

            if prop.is_goal:
                unsolved_goals -= 1
                if unsolved_goals == 0:
                    break

            for op_id in prop.precondition_of:
                op = operators[op_id]
                op.unsatisfied_preconditions -= 1
                assert op.unsatisfied_preconditions >= 0
                if use_max:
                    op.cost = max(op.cost, op.base_cost + distance)
                else:
                    op.cost += distance
                if op.unsatisfied_preconditions == 0:
                    self._enqueue_if_better(op.effect, op.cost, op.op_id)

        goal_costs = [propositions[g].cost for g in space.goal_propositions]
        dead_end = any(cost == UNREACHED for cost in goal_costs)

        self._last_state = state
        self._last_dead_end = dead_end

        if dead_end:
            distance_value = DEAD_END
        elif not goal_costs:
            distance_value = 0
        elif use_max:
            distance_value = max(goal_costs)
        elif self.variant is RelaxedDistanceVariant.ADDITIVE:
            distance_value = sum(goal_costs)
        else:
            distance_value = self.extract_relaxed_plan(state).plan_cost

        return ReachabilityResult(
            dead_end=dead_end,
            distance=distance_value,
            goal_costs=goal_costs,
            settled=settled,
        )

    # ------------------------------------------------------------------
    # Relaxed plan extraction
    # ------------------------------------------------------------------

    def extract_relaxed_plan(self, state: State) -> RelaxedPlanResult:
        """
        Walk back from every goal along reached_by and collect the plan.

        An action is preferred when every precondition of its unary operator
        was true in the state (nothing had to be achieved first).

        Must follow compute() on the same state; dead ends yield an empty plan.
        """
        if self._last_state is not state and self._last_state != state:
            raise ValueError("extract_relaxed_plan() must follow compute() on the same state")

        propositions = self.space.propositions
        operators = self.space.operators
        actions = self.task.actions

        relaxed_plan = [False] * len(actions)
        preferred = set()
        plan_cost = 0

        if self._last_dead_end:
            return RelaxedPlanResult(relaxed_plan, frozenset(), 0)

        for prop in propositions:
            prop.marked = False

        worklist = list(self.space.goal_propositions)
        while worklist:
            prop = propositions[worklist.pop()]
            if prop.marked:
                continue
            prop.marked = True

            op_id = prop.reached_by
            if op_id == NO_OPERATOR:
                continue

            op = operators[op_id]
            is_preferred = True
            for precondition in op.preconditions:
                worklist.append(precondition)
                if propositions[precondition].reached_by != NO_OPERATOR:
                    is_preferred = False

            operator_no = op.operator_no
            if operator_no == NO_OPERATOR:
                plan_cost += op.base_cost
                continue
            if not relaxed_plan[operator_no]:
                relaxed_plan[operator_no] = True
                plan_cost += actions[operator_no].cost
            if is_preferred:
                assert actions[operator_no].is_applicable(state)
                preferred.add(operator_no)

        return RelaxedPlanResult(relaxed_plan, frozenset(preferred), plan_cost)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def proposition_cost(self, var: int, value: int) -> int:
        """Cost label from the last pass (-1 = unreached)."""
        return self.space.propositions[self.space.prop_id(var, value)].cost
