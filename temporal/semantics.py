# Author: Bradley R. Kinnard
# satisfaction relation for ltl formulas over materialized traces

"""
Satisfaction of LTL formulas over finite trace prefixes.

Two documented semantics are supported, and every caller that reports a
verdict also reports which one was used together with the trace length:

BOUNDED (default)
    finite-prefix semantics. always/eventually/until quantify over the
    available prefix only. next and action are strong: at the last index
    there is no successor, so both are false. use `every_step(r)` to say
    "every transition satisfies r" without tripping over the final state.

STUTTER
    the prefix is extended by repeating its last state forever. this is
    exact infinite-trace semantics for that extension: next at the last
    index sees the last state again, action(r) at the last index is
    r(last, last).

Neither is true infinite-trace semantics for the system's behaviour
beyond the bound. A verdict under either one is a statement about the
trace that was actually executed.

Evaluation is a single backward pass per subformula, so checking a
formula over a trace of length n costs O(n * |formula|) predicate calls
rather than the O(n^k) a direct recursive reading of the definitions
would take for k nested temporal operators.
"""

from enum import Enum
from typing import Any, Iterable

from temporal.formula import (
    Formula,
    Atom,
    Top,
    Bottom,
    Not,
    And,
    Or,
    Implies,
    Next,
    Always,
    Eventually,
    Until,
    ActionPred,
    subformulas,
)
from temporal.trace import Trace


class Semantics(Enum):
    """how temporal operators treat the end of a materialized trace."""
    BOUNDED = "bounded"
    STUTTER = "stutter"


def _evaluate_node(
    node: Formula,
    states: tuple[Any, ...],
    values: dict[int, list[bool]],
    stutter: bool,
) -> list[bool]:
    n = len(states)

    if isinstance(node, Atom):
        return [bool(node.predicate(s)) for s in states]

    if isinstance(node, Top):
        return [True] * n

    if isinstance(node, Bottom):
        return [False] * n

    if isinstance(node, Not):
        return [not v for v in values[id(node.operand)]]

    if isinstance(node, (And, Or, Implies)):
        left = values[id(node.left)]
        right = values[id(node.right)]
        if isinstance(node, And):
            return [a and b for a, b in zip(left, right)]
        if isinstance(node, Or):
            return [a or b for a, b in zip(left, right)]
        return [(not a) or b for a, b in zip(left, right)]

    if isinstance(node, Next):
        sub = values[id(node.operand)]
        return sub[1:] + [sub[-1] if stutter else False]

    if isinstance(node, ActionPred):
        out = [bool(node.relation(states[i], states[i + 1])) for i in range(n - 1)]
        out.append(bool(node.relation(states[-1], states[-1])) if stutter else False)
        return out

    # temporal operators: out[i] depends on out[i+1], so walk backwards.
    # at the last index both semantics agree: a stuttered suffix is constant,
    # and a bounded suffix has nothing after it.
    if isinstance(node, Always):
        sub = values[id(node.operand)]
        out = [False] * n
        out[-1] = sub[-1]
        for i in range(n - 2, -1, -1):
            out[i] = sub[i] and out[i + 1]
        return out

    if isinstance(node, Eventually):
        sub = values[id(node.operand)]
        out = [False] * n
        out[-1] = sub[-1]
        for i in range(n - 2, -1, -1):
            out[i] = sub[i] or out[i + 1]
        return out

    if isinstance(node, Until):
        hold = values[id(node.left)]
        goal = values[id(node.right)]
        out = [False] * n
        out[-1] = goal[-1]
        for i in range(n - 2, -1, -1):
            out[i] = goal[i] or (hold[i] and out[i + 1])
        return out

    raise TypeError(f"not a formula: {node!r}")


def evaluate(
    trace: Trace,
    formula: Formula,
    semantics: Semantics = Semantics.BOUNDED,
) -> list[bool]:
    """truth value of formula on trace.suffix(i), for every index i."""
    states = trace.states()
    stutter = semantics is Semantics.STUTTER
    values: dict[int, list[bool]] = {}

    for node in subformulas(formula):
        values[id(node)] = _evaluate_node(node, states, values, stutter)

    return values[id(formula)]


def satisfies(
    trace: Trace,
    formula: Formula,
    semantics: Semantics = Semantics.BOUNDED,
) -> bool:
    """trace ⊨ formula."""
    return evaluate(trace, formula, semantics)[0]


def satisfies_at(
    trace: Trace,
    formula: Formula,
    index: int,
    semantics: Semantics = Semantics.BOUNDED,
) -> bool:
    """trace.suffix(index) ⊨ formula."""
    return satisfies(trace.suffix(index), formula, semantics)


def first_failure(
    trace: Trace,
    formula: Formula,
    semantics: Semantics = Semantics.BOUNDED,
) -> int | None:
    """
    index that witnesses a violation, or None if the trace satisfies formula.

    for □g this is the first index where g fails. any other formula is a
    claim about the whole trace, so its witness is index 0.
    """
    if isinstance(formula, Always):
        body = evaluate(trace, formula.operand, semantics)
        for i, ok in enumerate(body):
            if not ok:
                return i
        return None

    return None if satisfies(trace, formula, semantics) else 0


def equivalent_on(
    traces: Iterable[Trace],
    f: Formula,
    g: Formula,
    semantics: Semantics = Semantics.BOUNDED,
) -> bool:
    """
    f and g agree on every suffix of every given trace.

    semantic equivalence quantifies over all traces and is never decided
    here; this only checks it on concrete witnesses.
    """
    for trace in traces:
        if evaluate(trace, f, semantics) != evaluate(trace, g, semantics):
            return False
    return True
