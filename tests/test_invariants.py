# Author: Bradley R. Kinnard
# tests for inductive invariants and the always-derivation

import pytest

from hypothesis import given, settings
from hypothesis import strategies as st

from domains.counter import (
    BROKEN_COUNTER_SYSTEM,
    COUNTER_SYSTEM,
    Counter,
    CounterAction,
    INCREMENT,
    RESET,
    DECREMENT,
    NON_NEGATIVE,
)
from temporal.semantics import first_failure
from verification.action_system import Execution
from verification.invariants import (
    CheckResult,
    Guarantee,
    Invariant,
    InvariantSet,
    check_initial,
    check_step,
    check_inductive,
    derive_always,
)
from verification.verifier import verify


script_strategy = st.lists(st.sampled_from(list(CounterAction)), max_size=40)


class TestInvariantCheck:
    """test single-state evaluation."""

    def test_holds(self):
        assert NON_NEGATIVE.holds(Counter(0))
        assert not NON_NEGATIVE.holds(Counter(-1))

    def test_check_result(self):
        assert NON_NEGATIVE.check(Counter(3)).result == CheckResult.PASSED
        failed = NON_NEGATIVE.check(Counter(-3))
        assert failed.result == CheckResult.FAILED
        assert not failed.passed

    def test_raising_predicate_is_error(self):
        inv = Invariant("explodes", lambda s: 1 // s.count > 0)
        result = inv.check(Counter(0))
        assert result.result == CheckResult.ERROR
        assert "ZeroDivisionError" in result.message

    def test_as_formula(self):
        f = NON_NEGATIVE.as_formula()
        assert str(f) == "□(count_non_negative)"


class TestObligations:
    """test the init and step obligations."""

    def test_initial(self):
        assert check_initial(NON_NEGATIVE, Counter(0)).holds
        assert not check_initial(NON_NEGATIVE, Counter(-1)).holds

    def test_step_preserved(self):
        result = check_step(NON_NEGATIVE, COUNTER_SYSTEM, Counter(1), DECREMENT)
        assert result.holds
        assert not result.vacuous

    def test_step_vacuous_when_disabled(self):
        result = check_step(NON_NEGATIVE, COUNTER_SYSTEM, Counter(0), DECREMENT)
        assert result.holds
        assert result.vacuous

    def test_step_vacuous_outside_invariant(self):
        result = check_step(NON_NEGATIVE, BROKEN_COUNTER_SYSTEM, Counter(-1), DECREMENT)
        assert result.holds
        assert result.vacuous

    def test_step_broken(self):
        result = check_step(NON_NEGATIVE, BROKEN_COUNTER_SYSTEM, Counter(0), DECREMENT)
        assert not result.holds


class TestCheckInductive:
    """test exhaustive discharge over a finite sample."""

    def test_counter_invariant_inductive(self):
        report = check_inductive(
            NON_NEGATIVE,
            COUNTER_SYSTEM,
            Counter(0),
            [Counter(n) for n in range(-2, 10)],
            list(CounterAction),
        )
        assert report.holds
        assert report.guarantee == Guarantee.RUNTIME_FALSIFIABLE
        assert report.steps_checked == 12 * 3
        # 2 states outside P x 3 actions, plus decrement at zero
        assert report.steps_vacuous == 7
        assert "evidence, not proof" in report.summary()

    def test_broken_counter_falsified(self):
        report = check_inductive(
            NON_NEGATIVE,
            BROKEN_COUNTER_SYSTEM,
            Counter(0),
            [Counter(n) for n in range(5)],
            list(CounterAction),
        )
        assert not report.holds
        cx = report.counterexample
        assert cx.state == Counter(0)
        assert cx.action is DECREMENT
        assert cx.next_state == Counter(-1)
        assert "falsified" in report.summary()

    def test_initial_state_failure(self):
        report = check_inductive(NON_NEGATIVE, COUNTER_SYSTEM, Counter(-5), [], [])
        assert not report.init_holds
        assert not report.holds

    def test_actions_per_state(self):
        report = check_inductive(
            NON_NEGATIVE,
            COUNTER_SYSTEM,
            Counter(0),
            [Counter(0), Counter(1)],
            lambda s: [DECREMENT] if s.count > 0 else [INCREMENT],
        )
        assert report.holds
        assert report.steps_checked == 2


class TestDeriveAlways:
    """test the induction walked along an execution."""

    def test_scripted_counter(self):
        ex = COUNTER_SYSTEM.run(Counter(), [INCREMENT, INCREMENT, RESET, INCREMENT])
        assert [s.count for s in ex.states] == [0, 1, 2, 0, 1]
        assert derive_always(NON_NEGATIVE, ex) is None

        result = verify(ex, NON_NEGATIVE)
        assert result.all_valid
        assert result.first_violation is None
        assert result.trace_length == 5

    def test_broken_decrement_index(self):
        ex = BROKEN_COUNTER_SYSTEM.run(Counter(), [INCREMENT, DECREMENT, DECREMENT, INCREMENT])
        assert derive_always(NON_NEGATIVE, ex) == 3

        result = verify(ex, NON_NEGATIVE)
        assert not result.all_valid
        v = result.first_violation
        assert v.index == 3
        assert v.state == Counter(-1)
        assert v.prior_action is DECREMENT
        assert v.history == (INCREMENT, DECREMENT, DECREMENT)

    def test_bad_initial_state(self):
        ex = Execution(states=(Counter(-1),))
        assert derive_always(NON_NEGATIVE, ex) == 0

    @given(script_strategy)
    @settings(max_examples=200)
    def test_agrees_with_always_formula(self, script):
        ex = BROKEN_COUNTER_SYSTEM.run(Counter(), script)
        assert derive_always(NON_NEGATIVE, ex) == first_failure(ex.trace(), NON_NEGATIVE.as_formula())

    @given(script_strategy)
    @settings(max_examples=200)
    def test_correct_counter_never_violates(self, script):
        ex = COUNTER_SYSTEM.run(Counter(), script)
        assert derive_always(NON_NEGATIVE, ex) is None


class TestInvariantSet:
    """test the invariant registry."""

    def test_register_and_iterate(self):
        inv_set = InvariantSet([NON_NEGATIVE])
        inv_set.register_fn("small", lambda s: s.count < 10)
        assert len(inv_set) == 2
        assert [i.name for i in inv_set] == ["count_non_negative", "small"]

    def test_duplicate_rejected(self):
        inv_set = InvariantSet([NON_NEGATIVE])
        with pytest.raises(ValueError):
            inv_set.register(NON_NEGATIVE)

    def test_check_all_returns_failures(self):
        inv_set = InvariantSet([NON_NEGATIVE])
        inv_set.register_fn("small", lambda s: s.count < 10)
        assert inv_set.check_all(Counter(3)) == []
        failures = inv_set.check_all(Counter(11))
        assert [f.name for f in failures] == ["small"]
