"""
Shared fixtures for the AntPlan test suite.

Tasks:
- two_var_task: A/B chain (set_A: A=0 -> A=1, set_B: A=1 -> B=1), goal B=1
- dead_end_task: goal value no action can produce
- corridor_task: robot walking along four cells, goal at the far end
"""

import pytest

from component_1_task_model import Action, Effect, PlanningTask, Variable
from infrastructure.cache_manager import reset_cache_manager
from infrastructure.oracle_runtime import reset_oracle_runtime
from antplan_config import set_config


@pytest.fixture(autouse=True)
def clean_process_state():
    """Fixture: Fresh runtime, cache registry and default config per test"""
    reset_oracle_runtime()
    reset_cache_manager()
    set_config(None)
    yield
    reset_oracle_runtime()
    reset_cache_manager()
    set_config(None)


@pytest.fixture
def two_var_task():
    """Fixture: Binary variables A, B; set_A enables set_B; goal B=1"""
    variables = [
        Variable("A", ["A=0", "A=1"]),
        Variable("B", ["B=0", "B=1"]),
    ]
    actions = [
        Action("set_A", preconditions={0: 0}, effects={0: 1}, cost=1),
        Action("set_B", preconditions={0: 1}, effects={1: 1}, cost=1),
    ]
    return PlanningTask(variables, actions, goal={1: 1}, initial_values=[0, 0])


@pytest.fixture
def dead_end_task():
    """Fixture: Goal C=1 is never produced by any action"""
    variables = [
        Variable("A", domain_size=2),
        Variable("C", domain_size=2),
    ]
    actions = [Action("set_A", preconditions={0: 0}, effects={0: 1})]
    return PlanningTask(variables, actions, goal={1: 1}, initial_values=[0, 0])


@pytest.fixture
def corridor_task():
    """Fixture: Robot in cells 0..3, moves left/right, goal cell 3"""
    variables = [Variable("robot", [f"at-cell{i}" for i in range(4)])]
    actions = []
    for cell in range(3):
        actions.append(
            Action(f"right-{cell}", preconditions={0: cell}, effects={0: cell + 1})
        )
        actions.append(
            Action(f"left-{cell + 1}", preconditions={0: cell + 1}, effects={0: cell})
        )
    return PlanningTask(variables, actions, goal={0: 3}, initial_values=[0])


@pytest.fixture
def conditional_task():
    """Fixture: 'press' sets light=1 only while power=1"""
    variables = [
        Variable("power", domain_size=2),
        Variable("light", domain_size=2),
    ]
    actions = [
        Action("switch_on", preconditions={0: 0}, effects={0: 1}, cost=2),
        Action("press", effects=[Effect(1, 1, conditions={0: 1})], cost=1),
    ]
    return PlanningTask(variables, actions, goal={1: 1}, initial_values=[0, 0])


@pytest.fixture
def initial_state(two_var_task):
    return two_var_task.initial_state()


def goal_distance_oracle(snapshot):
    """Counts how far the robot still has to walk in the corridor task."""
    cell = int(snapshot["robot"][len("at-cell"):])
    return 3 - cell


@pytest.fixture
def corridor_oracle():
    return goal_distance_oracle
