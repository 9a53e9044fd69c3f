# Author: Bradley R. Kinnard
# tests for ltl formulas, traces and the satisfaction relation

import pytest

from hypothesis import given, settings
from hypothesis import strategies as st

from temporal.formula import (
    Atom,
    Not,
    And,
    Or,
    Implies,
    Always,
    Until,
    TRUE,
    FALSE,
    atom,
    action,
    next_,
    always,
    eventually,
    until,
    every_step,
    subformulas,
)
from temporal.semantics import (
    Semantics,
    evaluate,
    satisfies,
    satisfies_at,
    first_failure,
    equivalent_on,
)
from temporal.trace import Trace


# strategies for property-based testing

trace_strategy = st.lists(st.integers(min_value=-5, max_value=5), min_size=1, max_size=25).map(Trace)
semantics_strategy = st.sampled_from(list(Semantics))

positive = atom(lambda x: x > 0, "positive")
zero = atom(lambda x: x == 0, "zero")
one = atom(lambda x: x == 1, "one")


def _increments(s, t):
    return t == s + 1


class TestTrace:
    """test the materialized trace prefix."""

    def test_empty_trace_rejected(self):
        with pytest.raises(ValueError):
            Trace([])

    def test_indexing(self):
        t = Trace([3, 4, 5])
        assert len(t) == 3
        assert t[0] == 3
        assert t.head == 3
        assert t.last == 5
        with pytest.raises(IndexError):
            t[3]
        with pytest.raises(IndexError):
            t[-1]

    def test_suffix_and_tail(self):
        t = Trace([1, 2, 3, 4])
        assert list(t.suffix(2)) == [3, 4]
        assert t.suffix(0) is t
        assert list(t.tail) == [2, 3, 4]
        assert t.tail.tail.head == 3
        with pytest.raises(IndexError):
            t.suffix(4)

    def test_suffix_equality_by_content(self):
        assert Trace([1, 2, 3]).suffix(1) == Trace([2, 3])
        assert hash(Trace([1, 2, 3]).suffix(1)) == hash(Trace([2, 3]))

    def test_from_function(self):
        t = Trace.from_function(lambda i: i * i, 4)
        assert t.states() == (0, 1, 4, 9)
        with pytest.raises(ValueError):
            Trace.from_function(lambda i: i, 0)

    def test_map(self):
        assert Trace([1, 2]).map(str).states() == ("1", "2")


class TestFormulaModel:
    """test formula construction and rendering."""

    def test_operator_sugar(self):
        assert ~positive == Not(positive)
        assert (positive & zero) == And(positive, zero)
        assert (positive | zero) == Or(positive, zero)
        assert (positive >> zero) == Implies(positive, zero)

    def test_builders(self):
        assert always(positive) == Always(positive)
        assert until(zero, one) == Until(zero, one)

    def test_atom_name_not_part_of_identity(self):
        pred = lambda x: x > 0
        assert Atom(pred, "a") == Atom(pred, "b")

    def test_rendering(self):
        assert str(always(positive)) == "□(positive)"
        assert str(eventually(~zero)) == "◇(¬(zero))"
        assert str(until(zero, one)) == "(zero U one)"
        assert str(next_(TRUE)) == "○(⊤)"
        assert str(action(_increments)) == "[_increments]"
        assert str(every_step(_increments, "inc")) == "□((○(⊤) → [inc]))"

    def test_subformulas_children_first(self):
        f = always(positive >> next_(zero))
        subs = subformulas(f)
        assert subs[-1] is f
        assert subs.index(positive) < subs.index(f.operand)
        assert subs.index(zero) < subs.index(f.operand.right)

    def test_shared_subformula_listed_once(self):
        f = positive & positive
        assert len(subformulas(f)) == 2

    def test_non_formula_rejected(self):
        with pytest.raises(TypeError):
            subformulas(And(positive, "not a formula"))


class TestBoundedSemantics:
    """test each operator on concrete traces under bounded semantics."""

    def test_atom_looks_at_head(self):
        assert satisfies(Trace([1, -1]), positive)
        assert not satisfies(Trace([-1, 1]), positive)

    def test_constants(self):
        t = Trace([0, 1])
        assert evaluate(t, TRUE) == [True, True]
        assert evaluate(t, FALSE) == [False, False]

    def test_boolean_connectives(self):
        t = Trace([1])
        assert satisfies(t, positive & ~zero)
        assert satisfies(t, zero | positive)
        assert satisfies(t, zero >> FALSE)
        assert not satisfies(t, positive >> zero)

    def test_next_is_strong_at_the_end(self):
        t = Trace([1, 0])
        assert satisfies(t, next_(zero))
        assert evaluate(t, next_(TRUE)) == [True, False]

    def test_always(self):
        assert satisfies(Trace([1, 2, 3]), always(positive))
        assert not satisfies(Trace([1, -2, 3]), always(positive))
        assert evaluate(Trace([-1, 2, 3]), always(positive)) == [False, True, True]

    def test_eventually(self):
        assert satisfies(Trace([-1, -2, 3]), eventually(positive))
        assert not satisfies(Trace([-1, -2, 0]), eventually(positive))

    def test_until(self):
        assert satisfies(Trace([0, 0, 1]), until(zero, one))
        assert satisfies(Trace([1, 5]), until(zero, one))
        assert not satisfies(Trace([0, 2, 1]), until(zero, one))
        assert not satisfies(Trace([0, 0, 0]), until(zero, one))

    def test_action_on_transitions(self):
        t = Trace([0, 1, 3])
        assert evaluate(t, action(_increments)) == [True, False, False]

    def test_every_step(self):
        assert satisfies(Trace([0, 1, 2, 3]), every_step(_increments))
        assert satisfies(Trace([7]), every_step(_increments))
        assert first_failure(Trace([0, 1, 3, 4]), every_step(_increments)) == 1

    def test_satisfies_at(self):
        t = Trace([-1, 1, 2])
        assert not satisfies_at(t, always(positive), 0)
        assert satisfies_at(t, always(positive), 1)


class TestStutterSemantics:
    """test how the stuttered extension treats the final state."""

    def test_next_sees_last_state_again(self):
        t = Trace([1, 0])
        assert evaluate(t, next_(zero), Semantics.STUTTER) == [True, True]
        assert evaluate(t, next_(TRUE), Semantics.STUTTER) == [True, True]

    def test_action_relates_last_state_to_itself(self):
        t = Trace([5])
        same = action(lambda s, u: s == u)
        assert satisfies(t, same, Semantics.STUTTER)
        assert not satisfies(t, same, Semantics.BOUNDED)

    def test_temporal_operators_agree_at_the_end(self):
        t = Trace([-1, 1])
        for sem in Semantics:
            assert evaluate(t, always(positive), sem) == [False, True]
            assert evaluate(t, eventually(~positive), sem) == [True, False]

    def test_next_duality_depends_on_semantics(self):
        t = Trace([0, 1])
        lhs = ~next_(zero)
        rhs = next_(~zero)
        assert equivalent_on([t], lhs, rhs, Semantics.STUTTER)
        assert not equivalent_on([t], lhs, rhs, Semantics.BOUNDED)


class TestFirstFailure:
    """test the violation index reported for a formula."""

    def test_always_reports_first_bad_index(self):
        assert first_failure(Trace([1, 2, -3, -4]), always(positive)) == 2

    def test_satisfied_formula_has_no_failure(self):
        assert first_failure(Trace([1, 2]), always(positive)) is None
        assert first_failure(Trace([-1, 2]), eventually(positive)) is None

    def test_non_always_formula_fails_at_zero(self):
        assert first_failure(Trace([-1, -2]), eventually(positive)) == 0

    def test_raising_predicate_propagates(self):
        boom = atom(lambda x: 1 // x > 0, "boom")
        with pytest.raises(ZeroDivisionError):
            first_failure(Trace([1, 0]), always(boom))


class TestSemanticLaws:
    """property-based tests of standard ltl identities on finite traces."""

    @given(trace_strategy, semantics_strategy)
    @settings(max_examples=100)
    def test_always_implies_body_everywhere(self, trace, sem):
        outer = evaluate(trace, always(positive), sem)
        body = evaluate(trace, positive, sem)
        for i in range(len(trace)):
            if outer[i]:
                assert all(body[i:])

    @given(trace_strategy, semantics_strategy)
    @settings(max_examples=100)
    def test_until_implies_eventually(self, trace, sem):
        u = evaluate(trace, until(positive, zero), sem)
        e = evaluate(trace, eventually(zero), sem)
        assert all(e[i] for i in range(len(trace)) if u[i])

    @given(st.lists(trace_strategy, min_size=1, max_size=5), semantics_strategy)
    @settings(max_examples=50)
    def test_not_always_is_eventually_not(self, traces, sem):
        assert equivalent_on(traces, ~always(positive), eventually(~positive), sem)

    @given(st.lists(trace_strategy, min_size=1, max_size=5), semantics_strategy)
    @settings(max_examples=50)
    def test_eventually_is_true_until(self, traces, sem):
        assert equivalent_on(traces, eventually(zero), until(TRUE, zero), sem)

    @given(trace_strategy)
    @settings(max_examples=100)
    def test_first_failure_matches_evaluation(self, trace):
        idx = first_failure(trace, always(positive))
        body = evaluate(trace, positive)
        if idx is None:
            assert all(body)
        else:
            assert not body[idx]
            assert all(body[:idx])

    @given(trace_strategy, st.data())
    @settings(max_examples=100)
    def test_suffix_evaluation_is_consistent(self, trace, data):
        i = data.draw(st.integers(min_value=0, max_value=len(trace) - 1))
        f = until(positive, zero) | next_(one)
        assert evaluate(trace, f)[i] == satisfies(trace.suffix(i), f)
