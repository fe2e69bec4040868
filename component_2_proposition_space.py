"""
Component 2: Proposition Space

Flattens the facts of a PlanningTask into one contiguous proposition index
space and projects every action effect onto a delete-relaxed unary operator.

- Proposition: one fact, with per-evaluation cost / reached_by / marked labels
- UnaryOperator: preconditions (PropIDs) -> one effect PropID
- PropositionSpace: arena of both, plus precondition_of adjacency

The arena is reused across evaluations; reset() restores the labels.

Author: AntPlan Development Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import List

from common.constants import NO_OPERATOR, UNREACHED
from component_10_logging_config import get_logger
from component_1_task_model import Fact, PlanningTask, State

logger = get_logger(__name__)


@dataclass
class Proposition:
    """
    One fact in the flattened index space.

    Attributes:
        prop_id: Global index
        fact: Originating (var, value)
        is_goal: Part of the goal
        cost: Best known relaxed distance (-1 = unreached)
        reached_by: Unary operator that set the current cost (-1 = seeded)
        marked: Visited during relaxed plan extraction
        precondition_of: Unary operators listing this proposition
    """

    prop_id: int
    fact: Fact
    is_goal: bool = False
    cost: int = UNREACHED
    reached_by: int = NO_OPERATOR
    marked: bool = False
    precondition_of: List[int] = field(default_factory=list)


@dataclass
class UnaryOperator:
    """
    Delete-relaxed projection of one action effect.

    Attributes:
        op_id: Index in the operator arena
        preconditions: Distinct PropIDs required
        effect: PropID achieved
        base_cost: Cost of the originating action
        operator_no: Originating action index (-1 if synthetic)
        unsatisfied_preconditions: Countdown during propagation
        cost: Accumulated cost bound during propagation
    """

    op_id: int
    preconditions: List[int]
    effect: int
    base_cost: int
    operator_no: int = NO_OPERATOR
    unsatisfied_preconditions: int = 0
    cost: int = 0


class PropositionSpace:
    """
    Arena of propositions and unary operators for one task.

    Variables own contiguous PropID ranges: prop_id = offset[var] + value.
    """

    def __init__(self, task: PlanningTask):
        self.task = task
        self.offsets: List[int] = []
        self.propositions: List[Proposition] = []

        for var_id, variable in enumerate(task.variables):
            self.offsets.append(len(self.propositions))
            for value in range(variable.domain_size):
                self.propositions.append(
                    Proposition(prop_id=len(self.propositions), fact=Fact(var_id, value))
                )

        self.goal_propositions: List[int] = []
        for var, value in sorted(task.goal.items()):
            prop_id = self.prop_id(var, value)
            self.propositions[prop_id].is_goal = True
            self.goal_propositions.append(prop_id)

        self.operators: List[UnaryOperator] = []
        self._build_unary_operators()

        logger.debug(
            "PropositionSpace built",
            extra={
                "propositions": len(self.propositions),
                "unary_operators": len(self.operators),
                "goals": len(self.goal_propositions),
            },
        )

    def _build_unary_operators(self) -> None:
        for action_index, action in enumerate(self.task.actions):
            base_preconditions = [
                self.prop_id(var, value) for var, value in action.preconditions.items()
            ]
            for effect in action.effects:
                effect_prop = self.prop_id(effect.var, effect.value)
                preconditions = base_preconditions + [
                    self.prop_id(var, value) for var, value in effect.conditions
                ]
                # Duplicates would decrement the countdown twice
                preconditions = sorted(set(preconditions))
                # An effect already required by a precondition is a no-op under relaxation
                if effect_prop in preconditions:
                    continue
                self._add_operator(preconditions, effect_prop, action.cost, action_index)

    def _add_operator(
        self, preconditions: List[int], effect: int, base_cost: int, operator_no: int
    ) -> None:
        op = UnaryOperator(
            op_id=len(self.operators),
            preconditions=preconditions,
            effect=effect,
            base_cost=base_cost,
            operator_no=operator_no,
        )
        self.operators.append(op)
        for prop_id in preconditions:
            self.propositions[prop_id].precondition_of.append(op.op_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def prop_id(self, var: int, value: int) -> int:
        return self.offsets[var] + value

    def state_propositions(self, state: State) -> List[int]:
        return [self.offsets[var] + value for var, value in enumerate(state)]

    # ------------------------------------------------------------------
    # Per-evaluation reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Restore all labels before a new propagation pass."""
        for prop in self.propositions:
            prop.cost = UNREACHED
            prop.reached_by = NO_OPERATOR
            prop.marked = False
        for op in self.operators:
            op.unsatisfied_preconditions = len(op.preconditions)
            op.cost = op.base_cost
