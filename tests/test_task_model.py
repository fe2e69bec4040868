"""
Tests for the finite-domain task model (component_1).

Covers:
- Variable / Fact construction
- State fingerprints and equality
- Task validation
- Applicability and successor generation (incl. conditional effects)
"""

import pytest

from antplan_exceptions import InvalidTaskError, StateMismatchError
from common.constants import FINGERPRINT_MASK, FNV_OFFSET_BASIS
from component_1_task_model import (
    Action,
    Effect,
    Fact,
    PlanningTask,
    State,
    Variable,
    fingerprint_values,
)


class TestVariablesAndFacts:
    """Tests for Variable and Fact"""

    def test_default_fact_names(self):
        """Test: Fact names default to '<name>=<value>'"""
        var = Variable("door", domain_size=3)

        assert var.domain_size == 3
        assert var.fact_names == ("door=0", "door=1", "door=2")

    def test_explicit_fact_names(self):
        """Test: Explicit names take precedence over domain_size"""
        var = Variable("door", ["open", "closed"], domain_size=5)

        assert var.domain_size == 2
        assert var.fact_names[1] == "closed"

    def test_facts_are_ordered_values(self):
        """Test: Facts compare by (var, value)"""
        assert Fact(0, 1) == Fact(0, 1)
        assert sorted([Fact(1, 0), Fact(0, 1)]) == [Fact(0, 1), Fact(1, 0)]


class TestStateFingerprint:
    """Tests for State hashing"""

    def test_equal_states_share_fingerprint(self):
        """Test: Equal values give equal fingerprints"""
        assert State([0, 1, 2]).fingerprint() == State((0, 1, 2)).fingerprint()

    def test_fingerprint_is_order_sensitive(self):
        """Test: Swapping values changes the fingerprint"""
        assert State([0, 1]).fingerprint() != State([1, 0]).fingerprint()

    def test_fingerprint_fits_64_bits(self):
        """Test: Fingerprint stays within 64 bits"""
        fp = State([7, 3, 9, 1, 0]).fingerprint()

        assert 0 <= fp <= FINGERPRINT_MASK

    def test_empty_state_is_offset_basis(self):
        """Test: Empty fold returns the FNV offset basis"""
        assert fingerprint_values([]) == FNV_OFFSET_BASIS

    def test_state_equality_and_hash(self):
        """Test: States work as dict keys"""
        seen = {State([0, 1]): "x"}

        assert seen[State([0, 1])] == "x"
        assert State([0, 1]) != (0, 1)

    def test_facts_iteration(self):
        """Test: facts() yields one Fact per variable"""
        assert list(State([1, 0]).facts()) == [Fact(0, 1), Fact(1, 0)]


class TestTaskValidation:
    """Tests for PlanningTask validation"""

    def test_unknown_variable_in_precondition(self):
        """Test: Precondition on a missing variable is rejected"""
        with pytest.raises(InvalidTaskError):
            PlanningTask(
                [Variable("A", domain_size=2)],
                [Action("bad", preconditions={3: 0}, effects={0: 1})],
                goal={0: 1},
            )

    def test_value_outside_domain_in_goal(self):
        """Test: Goal value outside the domain is rejected"""
        with pytest.raises(InvalidTaskError):
            PlanningTask([Variable("A", domain_size=2)], [], goal={0: 2})

    def test_negative_cost_rejected(self):
        """Test: Actions must not have negative cost"""
        with pytest.raises(InvalidTaskError):
            PlanningTask(
                [Variable("A", domain_size=2)],
                [Action("bad", effects={0: 1}, cost=-1)],
                goal={0: 1},
            )

    def test_empty_domain_rejected(self):
        """Test: Variables need at least one value"""
        with pytest.raises(InvalidTaskError):
            PlanningTask([Variable("A")], [], goal={})

    def test_missing_initial_state(self):
        """Test: initial_state() without initial values raises"""
        task = PlanningTask([Variable("A", domain_size=2)], [], goal={0: 1})

        with pytest.raises(InvalidTaskError):
            task.initial_state()

    def test_validate_state_arity(self, two_var_task):
        """Test: Wrong number of values is a StateMismatchError"""
        with pytest.raises(StateMismatchError) as exc_info:
            two_var_task.validate_state(State([0]))

        assert exc_info.value.context["expected_variables"] == 2
        assert exc_info.value.context["actual_variables"] == 1

    def test_validate_state_range(self, two_var_task):
        """Test: Value outside a domain is a StateMismatchError"""
        with pytest.raises(StateMismatchError):
            two_var_task.validate_state(State([0, 5]))


class TestSuccessors:
    """Tests for applicability and successor generation"""

    def test_applicable_actions(self, two_var_task):
        """Test: Only set_A applies initially"""
        assert two_var_task.applicable_actions(State([0, 0])) == [0]
        assert two_var_task.applicable_actions(State([1, 0])) == [1]

    def test_successor_applies_effects(self, two_var_task):
        """Test: set_A then set_B reaches the goal"""
        state = two_var_task.initial_state()
        state = two_var_task.successor(state, 0)
        state = two_var_task.successor(state, 1)

        assert state == State([1, 1])
        assert two_var_task.is_goal(state)

    def test_successor_of_inapplicable_action(self, two_var_task):
        """Test: Applying an inapplicable action raises"""
        with pytest.raises(InvalidTaskError):
            two_var_task.successor(State([0, 0]), 1)

    def test_conditional_effect_needs_condition(self, conditional_task):
        """Test: press only lights up while power is on"""
        off = State([0, 0])
        on = State([1, 0])

        assert conditional_task.successor(off, 1) == off
        assert conditional_task.successor(on, 1) == State([1, 1])

    def test_conditions_checked_in_source_state(self):
        """Test: Effects of the same action do not enable each other"""
        task = PlanningTask(
            [Variable("A", domain_size=2), Variable("B", domain_size=2)],
            [
                Action(
                    "both",
                    effects=[Effect(0, 1), Effect(1, 1, conditions={0: 1})],
                )
            ],
            goal={1: 1},
        )

        assert task.successor(State([0, 0]), 0) == State([1, 0])

    def test_fact_name(self, two_var_task):
        assert two_var_task.fact_name(1, 1) == "B=1"
