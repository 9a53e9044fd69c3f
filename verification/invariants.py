# Author: Bradley R. Kinnard
# inductive invariants - init/step obligations and the always-derivation

"""
An invariant P over an action system claims that P holds on every state
reachable from a fixed initial state. The argument is inductive:

    init:  P(initial)
    step:  for every (s, a, s') with transition(s, a) == s',  P(s) => P(s')

and by induction on execution length, P(s_i) for every i along any valid
execution, i.e. the execution's trace satisfies □P.

Nothing here is a proof. The obligations are discharged by running them:
exhaustively over whatever states and actions the caller supplies, and
along every generated execution. Every report from this module is
RUNTIME_FALSIFIABLE: a counterexample refutes the claim, the absence of
one is evidence only.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterable, TypeVar

from temporal.formula import Always, Atom
from verification.action_system import ActionSystem, Execution
from utils.helpers import get_logger

logger = get_logger(__name__)

S = TypeVar("S")
A = TypeVar("A")


class Guarantee(Enum):
    """strength of a verification verdict."""
    RUNTIME_FALSIFIABLE = "runtime_falsifiable"


class CheckResult(Enum):
    """result of a single predicate evaluation."""
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class InvariantCheckResult:
    """result of checking an invariant against one state."""
    name: str
    result: CheckResult
    message: str
    duration_ms: float

    @property
    def passed(self) -> bool:
        return self.result == CheckResult.PASSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "result": self.result.value,
            "message": self.message,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class Invariant(Generic[S]):
    """
    a named state predicate claimed to hold in every reachable state.

    predicate must be side-effect free; it is shared by every trial.
    """
    name: str
    predicate: Callable[[S], bool]
    description: str = ""

    def holds(self, state: S) -> bool:
        return bool(self.predicate(state))

    def check(self, state: S) -> InvariantCheckResult:
        """evaluate on one state. a raising predicate counts as a failed check."""
        start = time.perf_counter()
        try:
            if self.holds(state):
                result, message = CheckResult.PASSED, "holds"
            else:
                result, message = CheckResult.FAILED, f"{self.name} does not hold"
        except Exception as e:
            result = CheckResult.ERROR
            message = f"predicate raised {type(e).__name__}: {e}"

        return InvariantCheckResult(
            name=self.name,
            result=result,
            message=message,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    def as_formula(self) -> Always:
        """□P."""
        return Always(Atom(self.predicate, self.name))


@dataclass(frozen=True)
class StepCounterexample(Generic[S, A]):
    """a transition that leaves the invariant: P(state) and not P(next_state)."""
    state: S
    action: A
    next_state: S


@dataclass(frozen=True)
class ObligationResult:
    """outcome of one inductive obligation on one input."""
    obligation: str          # "init" or "step"
    holds: bool
    vacuous: bool = False    # step from a state outside P, or disabled action
    message: str = ""


def check_initial(invariant: Invariant[S], initial: S) -> ObligationResult:
    """obligation 1: P(initial)."""
    check = invariant.check(initial)
    return ObligationResult("init", check.passed, message=check.message)


def check_step(
    invariant: Invariant[S],
    system: ActionSystem[S, A],
    state: S,
    action: A,
) -> ObligationResult:
    """obligation 2 for a single (state, action): P(s) => P(transition(s, a))."""
    pre = invariant.check(state)
    if not pre.passed:
        return ObligationResult("step", True, vacuous=True, message="pre-state outside invariant")

    nxt = system.step(state, action)
    if nxt is None:
        return ObligationResult("step", True, vacuous=True, message="action disabled")

    post = invariant.check(nxt)
    if post.passed:
        return ObligationResult("step", True, message="preserved")
    return ObligationResult("step", False, message=f"{action!r} breaks {invariant.name}: {post.message}")


@dataclass
class InductiveReport(Generic[S, A]):
    """result of discharging both obligations over a finite sample."""
    invariant_name: str
    init_holds: bool
    steps_checked: int = 0
    steps_vacuous: int = 0
    counterexample: StepCounterexample[S, A] | None = None
    guarantee: Guarantee = Guarantee.RUNTIME_FALSIFIABLE

    @property
    def holds(self) -> bool:
        return self.init_holds and self.counterexample is None

    def summary(self) -> str:
        if not self.init_holds:
            return f"{self.invariant_name}: falsified, does not hold initially"
        if self.counterexample is not None:
            return (
                f"{self.invariant_name}: falsified by {self.counterexample.action!r} "
                f"after {self.steps_checked} steps checked"
            )
        return (
            f"{self.invariant_name}: not falsified in {self.steps_checked} steps "
            f"({self.steps_vacuous} vacuous); evidence, not proof"
        )


def check_inductive(
    invariant: Invariant[S],
    system: ActionSystem[S, A],
    initial: S,
    states: Iterable[S],
    actions: Iterable[A] | Callable[[S], Iterable[A]],
) -> InductiveReport[S, A]:
    """
    discharge init and step over every supplied state x action pair.

    actions is either a fixed collection tried against every state, or a
    function producing the candidate actions for a given state. stops at
    the first step counterexample.
    """
    report: InductiveReport[S, A] = InductiveReport(
        invariant_name=invariant.name,
        init_holds=check_initial(invariant, initial).holds,
    )
    if not report.init_holds:
        logger.warning(f"invariant {invariant.name} fails on the initial state")
        return report

    fixed = None if callable(actions) else list(actions)

    for state in states:
        candidates = fixed if fixed is not None else actions(state)
        for act in candidates:
            result = check_step(invariant, system, state, act)
            report.steps_checked += 1
            if result.vacuous:
                report.steps_vacuous += 1
            elif not result.holds:
                report.counterexample = StepCounterexample(state, act, system.step(state, act))
                logger.warning(f"invariant {invariant.name} not preserved: {result.message}")
                return report

    logger.debug(report.summary())
    return report


def derive_always(invariant: Invariant[S], execution: Execution[S, Any]) -> int | None:
    """
    walk the induction along one execution.

    base case on states[0], then one step case per transition. returns the
    first index where the invariant fails (or its predicate raises), None if
    the execution's trace satisfies □P.
    """
    failure = first_failed_check(invariant, execution)
    return None if failure is None else failure[0]


def first_failed_check(
    invariant: Invariant[S],
    execution: Execution[S, Any],
) -> tuple[int, InvariantCheckResult] | None:
    """index and check result of the first failing state, one predicate call per state."""
    check = invariant.check(execution.states[0])
    if not check.passed:
        return 0, check

    for i in range(len(execution.actions)):
        # P(s_i) is known here; the step case asks for P(s_{i+1})
        check = invariant.check(execution.states[i + 1])
        if not check.passed:
            return i + 1, check

    return None


# interleave() products have (left, right) states; a component invariant
# is lifted by reading its own side only

def lift_left(invariant: Invariant[S]) -> Invariant[tuple[S, Any]]:
    return Invariant(
        f"left.{invariant.name}",
        lambda state: invariant.predicate(state[0]),
        invariant.description,
    )


def lift_right(invariant: Invariant[S]) -> Invariant[tuple[Any, S]]:
    return Invariant(
        f"right.{invariant.name}",
        lambda state: invariant.predicate(state[1]),
        invariant.description,
    )


class InvariantSet(Generic[S]):
    """ordered registry of invariants declared alongside a domain model."""

    def __init__(self, invariants: Iterable[Invariant[S]] = ()):
        self._invariants: list[Invariant[S]] = list(invariants)

    def __iter__(self):
        return iter(self._invariants)

    def __len__(self) -> int:
        return len(self._invariants)

    def register(self, invariant: Invariant[S]) -> None:
        if any(i.name == invariant.name for i in self._invariants):
            raise ValueError(f"invariant {invariant.name} already registered")
        self._invariants.append(invariant)
        logger.debug(f"registered invariant: {invariant.name}")

    def register_fn(
        self,
        name: str,
        predicate: Callable[[S], bool],
        description: str = "",
    ) -> Invariant[S]:
        """convenience method to register a bare predicate."""
        invariant = Invariant(name, predicate, description)
        self.register(invariant)
        return invariant

    def check_all(self, state: S) -> list[InvariantCheckResult]:
        """check every invariant and return the ones that did not pass."""
        failures = []
        for invariant in self._invariants:
            result = invariant.check(state)
            if not result.passed:
                failures.append(result)
                logger.warning(f"invariant {invariant.name} violated: {result.message}")
        return failures
