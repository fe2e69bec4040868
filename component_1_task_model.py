"""
Component 1: Finite-Domain Task Model

Core planning primitives consumed by the heuristic:
- Variable / Fact: finite-domain variables and their named values
- Effect / Action: grounded actions with (optionally conditional) effects
- State: immutable assignment of every variable, hashable and fingerprintable
- PlanningTask: variables + actions + goal, with applicability and successors

Tasks arrive already grounded; this module only validates and serves them.

Author: AntPlan Development Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from antplan_exceptions import InvalidTaskError, StateMismatchError
from common.constants import (
    FINGERPRINT_MASK,
    FNV_OFFSET_BASIS,
    FNV_PRIME,
    GOLDEN_RATIO_64,
)
from component_10_logging_config import get_logger

logger = get_logger(__name__)


# ============================================================================
# Variables and Facts
# ============================================================================


@dataclass(frozen=True)
class Variable:
    """
    Finite-domain variable over 0..domain_size-1.

    Attributes:
        name: Stable variable name (used in oracle snapshots)
        fact_names: One display name per value; defaults to "<name>=<value>"
    """

    name: str
    fact_names: Tuple[str, ...]

    def __init__(self, name: str, fact_names: Sequence[str] = (), domain_size: int = 0):
        names = tuple(fact_names)
        if not names:
            names = tuple(f"{name}={value}" for value in range(domain_size))
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "fact_names", names)

    @property
    def domain_size(self) -> int:
        return len(self.fact_names)


@dataclass(frozen=True, order=True)
class Fact:
    """A concrete (variable, value) assignment."""

    var: int
    value: int


# ============================================================================
# Actions
# ============================================================================


@dataclass(frozen=True)
class Effect:
    """
    Single effect var := value, applied when all conditions hold.

    Conditions are checked in the state the action is applied in.
    """

    var: int
    value: int
    conditions: Tuple[Tuple[int, int], ...] = ()

    def __init__(
        self, var: int, value: int, conditions: Optional[Mapping[int, int]] = None
    ):
        object.__setattr__(self, "var", var)
        object.__setattr__(self, "value", value)
        object.__setattr__(
            self, "conditions", tuple(sorted((conditions or {}).items()))
        )

    def fires_in(self, state: "State") -> bool:
        return all(state[var] == value for var, value in self.conditions)


@dataclass
class Action:
    """
    Grounded action with preconditions and effects.

    Attributes:
        name: Action identifier
        preconditions: Mapping var -> required value
        effects: Effects (a plain (var, value) mapping is accepted too)
        cost: Non-negative action cost (default 1)
    """

    name: str
    preconditions: Dict[int, int] = field(default_factory=dict)
    effects: List[Effect] = field(default_factory=list)
    cost: int = 1

    def __post_init__(self):
        if isinstance(self.effects, Mapping):
            self.effects = [Effect(var, value) for var, value in self.effects.items()]
        self.preconditions = dict(self.preconditions)
        self.effects = list(self.effects)

    def is_applicable(self, state: "State") -> bool:
        """Check if the action can be executed in the given state."""
        return all(state[var] == value for var, value in self.preconditions.items())

    def __str__(self):
        return self.name


# ============================================================================
# State
# ============================================================================


def fingerprint_values(values: Sequence[int]) -> int:
    """
    64-bit FNV-1a fold over all (var_id, value) pairs in variable order.

    Order-sensitive and not collision-free; good enough for advisory caches.
    """
    h = FNV_OFFSET_BASIS
    for var_id, value in enumerate(values):
        h ^= (value + GOLDEN_RATIO_64 + (var_id << 1)) & FINGERPRINT_MASK
        h = (h * FNV_PRIME) & FINGERPRINT_MASK
    return h


class State:
    """
    Immutable assignment of every variable to one value.

    States compare and hash by their values; fingerprint() is the 64-bit key
    used by the memoization cache and the lookahead probe.
    """

    __slots__ = ("_values", "_fingerprint")

    def __init__(self, values: Sequence[int]):
        self._values: Tuple[int, ...] = tuple(values)
        self._fingerprint: Optional[int] = None

    @property
    def values(self) -> Tuple[int, ...]:
        return self._values

    def __getitem__(self, var: int) -> int:
        return self._values[var]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def facts(self) -> Iterator[Fact]:
        for var, value in enumerate(self._values):
            yield Fact(var, value)

    def fingerprint(self) -> int:
        if self._fingerprint is None:
            self._fingerprint = fingerprint_values(self._values)
        return self._fingerprint

    def __hash__(self):
        return hash(self._values)

    def __eq__(self, other):
        if not isinstance(other, State):
            return False
        return self._values == other._values

    def __repr__(self):
        return f"State({list(self._values)})"


# ============================================================================
# Planning Task
# ============================================================================


class PlanningTask:
    """
    Grounded finite-domain planning task.

    Attributes:
        variables: Task variables
        actions: Grounded actions; their list index is the action index
        goal: Mapping var -> goal value
        initial_values: Optional initial assignment
    """

    def __init__(
        self,
        variables: Sequence[Variable],
        actions: Sequence[Action],
        goal: Mapping[int, int],
        initial_values: Optional[Sequence[int]] = None,
    ):
        self.variables: List[Variable] = list(variables)
        self.actions: List[Action] = list(actions)
        self.goal: Dict[int, int] = dict(goal)
        self.initial_values: Optional[Tuple[int, ...]] = (
            tuple(initial_values) if initial_values is not None else None
        )
        self._validate()

        logger.debug(
            "PlanningTask created",
            extra={
                "variables": len(self.variables),
                "actions": len(self.actions),
                "goals": len(self.goal),
            },
        )

    def _check_fact(self, var: int, value: int, where: str) -> None:
        if not 0 <= var < len(self.variables):
            raise InvalidTaskError(
                f"{where} references unknown variable {var}",
                context={"var": var, "num_variables": len(self.variables)},
            )
        if not 0 <= value < self.variables[var].domain_size:
            raise InvalidTaskError(
                f"{where} uses value {value} outside the domain of "
                f"'{self.variables[var].name}'",
                context={
                    "var": var,
                    "value": value,
                    "domain_size": self.variables[var].domain_size,
                },
            )

    def _validate(self) -> None:
        for var in self.variables:
            if var.domain_size < 1:
                raise InvalidTaskError(
                    f"Variable '{var.name}' has an empty domain",
                    context={"variable": var.name},
                )

        for index, action in enumerate(self.actions):
            where = f"Action {index} ({action.name})"
            if action.cost < 0:
                raise InvalidTaskError(
                    f"{where} has negative cost", context={"cost": action.cost}
                )
            for var, value in action.preconditions.items():
                self._check_fact(var, value, where)
            for effect in action.effects:
                self._check_fact(effect.var, effect.value, where)
                for var, value in effect.conditions:
                    self._check_fact(var, value, where)

        for var, value in self.goal.items():
            self._check_fact(var, value, "Goal")

        if self.initial_values is not None:
            self.validate_state(State(self.initial_values))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def num_variables(self) -> int:
        return len(self.variables)

    def fact_name(self, var: int, value: int) -> str:
        return self.variables[var].fact_names[value]

    def initial_state(self) -> State:
        if self.initial_values is None:
            raise InvalidTaskError("Task has no initial state")
        return State(self.initial_values)

    def validate_state(self, state: State) -> None:
        """
        Raises:
            StateMismatchError: Wrong arity or value outside a domain
        """
        if len(state) != len(self.variables):
            raise StateMismatchError(
                "State does not assign every task variable",
                expected_variables=len(self.variables),
                actual_variables=len(state),
            )
        for var, value in enumerate(state):
            if not 0 <= value < self.variables[var].domain_size:
                raise StateMismatchError(
                    f"Value {value} outside the domain of '{self.variables[var].name}'",
                    expected_variables=len(self.variables),
                    actual_variables=len(state),
                    context={"var": var, "value": value},
                )

    def is_goal(self, state: State) -> bool:
        return all(state[var] == value for var, value in self.goal.items())

    def applicable_actions(self, state: State) -> List[int]:
        """Indices of all actions applicable in the state."""
        return [
            index
            for index, action in enumerate(self.actions)
            if action.is_applicable(state)
        ]

    def successor(self, state: State, action_index: int) -> State:
        """
        Apply an action, returning the successor state.

        Raises:
            InvalidTaskError: If the action is not applicable
        """
        action = self.actions[action_index]
        if not action.is_applicable(state):
            raise InvalidTaskError(
                f"Action {action} not applicable in state",
                context={"action_index": action_index},
            )

        values = list(state.values)
        # Conditions are evaluated in the source state
        fired = [effect for effect in action.effects if effect.fires_in(state)]
        for effect in fired:
            values[effect.var] = effect.value
        return State(values)
