# Author: Bradley R. Kinnard
# verifier - check invariants and formulas along executions, aggregate trials

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from temporal.formula import Formula, FORMULA_TYPES
from temporal.semantics import Semantics, first_failure
from verification.action_system import Execution, ExecutionStatus
from verification.invariants import Guarantee, Invariant, first_failed_check
from utils.helpers import get_logger

logger = get_logger(__name__)

Property = Invariant | Formula


def property_name(prop: Property) -> str:
    if isinstance(prop, Invariant):
        return prop.name
    if isinstance(prop, FORMULA_TYPES):
        return str(prop)
    raise TypeError(f"expected an Invariant or a Formula, got {type(prop).__name__}")


@dataclass(frozen=True)
class Violation:
    """
    first point along an execution where a property fails.

    history is the actions that reached the failing state. witness is the
    action prefix a replay must run for the failure to show again: the
    history for a state invariant, the whole execution for a formula,
    whose verdict at index i can depend on transitions after i.
    """
    property_name: str
    index: int
    state: Any
    prior_action: Any
    history: tuple[Any, ...]
    message: str = ""
    witness: tuple[Any, ...] = ()

    def to_dict(
        self,
        encode_state: Callable[[Any], Any] = repr,
        encode_action: Callable[[Any], Any] = repr,
    ) -> dict[str, Any]:
        return {
            "property": self.property_name,
            "index": self.index,
            "state": encode_state(self.state),
            "prior_action": None if self.prior_action is None else encode_action(self.prior_action),
            "history": [encode_action(a) for a in self.history],
            "message": self.message,
        }


@dataclass(frozen=True)
class VerificationResult:
    """
    verdict for one property on one execution.

    trace_length is the bound the verdict holds for; all_valid means no
    violation within it, never that the property holds beyond it.
    """
    property_name: str
    trace_length: int
    all_valid: bool
    first_violation: Violation | None = None
    semantics: Semantics = Semantics.BOUNDED
    status: ExecutionStatus = ExecutionStatus.COMPLETE
    guarantee: Guarantee = Guarantee.RUNTIME_FALSIFIABLE

    def to_dict(
        self,
        encode_state: Callable[[Any], Any] = repr,
        encode_action: Callable[[Any], Any] = repr,
    ) -> dict[str, Any]:
        return {
            "property": self.property_name,
            "trace_length": self.trace_length,
            "all_valid": self.all_valid,
            "first_violation": (
                None if self.first_violation is None
                else self.first_violation.to_dict(encode_state, encode_action)
            ),
            "semantics": self.semantics.value,
            "status": self.status.value,
            "guarantee": self.guarantee.value,
        }


def _violation_at(
    execution: Execution,
    name: str,
    index: int,
    message: str,
    witness: tuple[Any, ...],
) -> Violation:
    return Violation(
        property_name=name,
        index=index,
        state=execution.states[index],
        prior_action=execution.prior_action(index),
        history=execution.history(index),
        message=message,
        witness=witness,
    )


def verify(
    execution: Execution,
    prop: Property,
    semantics: Semantics = Semantics.BOUNDED,
    name: str | None = None,
) -> VerificationResult:
    """check one invariant or formula along one execution."""
    name = name or property_name(prop)
    message = ""

    if isinstance(prop, Invariant):
        index, witness = None, ()
        failure = first_failed_check(prop, execution)
        if failure is not None:
            index, check = failure
            message = check.message
            witness = execution.history(index)
    else:
        # next/action/until verdicts look past the failing index
        witness = execution.actions
        try:
            index = first_failure(execution.trace(), prop, semantics)
        except Exception as e:
            # a raising predicate is reported, not propagated, same as invariants
            index = 0
            message = f"formula raised {type(e).__name__}: {e}"
        else:
            if index is not None:
                message = f"{name} violated"

    violation = None if index is None else _violation_at(execution, name, index, message, witness)

    return VerificationResult(
        property_name=name,
        trace_length=len(execution),
        all_valid=violation is None,
        first_violation=violation,
        semantics=semantics,
        status=execution.status,
    )


def verify_many(
    executions: Iterable[Execution],
    prop: Property,
    semantics: Semantics = Semantics.BOUNDED,
) -> list[VerificationResult]:
    """one result per execution."""
    return [verify(e, prop, semantics) for e in executions]


@dataclass(frozen=True)
class TrialResult:
    """every property's verdict for one generated execution."""
    trial_index: int
    seed: int | None
    execution: Execution
    results: tuple[VerificationResult, ...]
    duration_ms: float = 0.0

    @property
    def passed(self) -> bool:
        return all(r.all_valid for r in self.results)

    @property
    def first_violation(self) -> Violation | None:
        """earliest violation across properties, ties broken by property order."""
        found = [r.first_violation for r in self.results if r.first_violation is not None]
        if not found:
            return None
        return min(found, key=lambda v: v.index)


@dataclass(frozen=True)
class Counterexample:
    """everything needed to reproduce a failing trial."""
    trial_index: int
    seed: int | None
    violation: Violation
    actions: tuple[Any, ...]
    policy: dict[str, Any] | None = None

    def to_dict(
        self,
        encode_state: Callable[[Any], Any] = repr,
        encode_action: Callable[[Any], Any] = repr,
    ) -> dict[str, Any]:
        return {
            "trial_index": self.trial_index,
            "seed": self.seed,
            "violation": self.violation.to_dict(encode_state, encode_action),
            "actions": [encode_action(a) for a in self.actions],
            "policy": self.policy,
        }


def counterexample_for(trial: TrialResult, policy: dict[str, Any] | None = None) -> Counterexample | None:
    violation = trial.first_violation
    if violation is None:
        return None
    if policy is not None and policy.get("mode") == "random":
        # the run-level policy carries no seed; pin the one this trial used
        policy = {**policy, "seed": trial.seed}
    return Counterexample(
        trial_index=trial.trial_index,
        seed=trial.seed,
        violation=violation,
        actions=violation.witness,
        policy=policy,
    )


@dataclass
class RunSummary:
    """
    aggregate over all trials of a run.

    one failing trial fails the run: a single counterexample refutes an
    invariant claim however many trials passed.
    """
    total_trials: int
    passed: int
    failed: int
    cancelled: int = 0
    aborted_trials: int = 0
    first_global_counterexample: Counterexample | None = None
    trials: list[TrialResult] = field(default_factory=list)
    seed: int | None = None
    semantics: Semantics = Semantics.BOUNDED
    duration_ms: float = 0.0

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    @property
    def pass_rate(self) -> float:
        ran = self.passed + self.failed
        return self.passed / ran if ran else 0.0

    @property
    def failing_trials(self) -> list[TrialResult]:
        return [t for t in self.trials if not t.passed]


def summarize(
    trials: Sequence[TrialResult],
    total_trials: int | None = None,
    seed: int | None = None,
    semantics: Semantics = Semantics.BOUNDED,
    policy: dict[str, Any] | None = None,
    duration_ms: float = 0.0,
) -> RunSummary:
    """reduce per-trial results, in trial order, to a run summary."""
    ordered = sorted(trials, key=lambda t: t.trial_index)
    total = len(ordered) if total_trials is None else total_trials

    counterexample = None
    for trial in ordered:
        if not trial.passed:
            counterexample = counterexample_for(trial, policy)
            break

    passed = sum(1 for t in ordered if t.passed)
    summary = RunSummary(
        total_trials=total,
        passed=passed,
        failed=len(ordered) - passed,
        cancelled=total - len(ordered),
        aborted_trials=sum(1 for t in ordered if t.execution.aborted),
        first_global_counterexample=counterexample,
        trials=list(ordered),
        seed=seed,
        semantics=semantics,
        duration_ms=duration_ms,
    )

    if summary.all_passed:
        logger.info(f"all {summary.passed} trials passed ({summary.cancelled} cancelled)")
    else:
        logger.warning(
            f"{summary.failed}/{summary.passed + summary.failed} trials failed, "
            f"first at trial {counterexample.trial_index}"
        )
    return summary


class Verifier:
    """
    registry of properties checked together along each execution.

    keeps a history of results for inspection; never raises on a violation.
    """

    def __init__(self, semantics: Semantics = Semantics.BOUNDED, fail_fast: bool = False):
        self._properties: list[tuple[str, Property]] = []
        self._semantics = semantics
        self._fail_fast = fail_fast
        self._history: list[tuple[VerificationResult, ...]] = []

    @property
    def semantics(self) -> Semantics:
        return self._semantics

    @property
    def properties(self) -> list[tuple[str, Property]]:
        return list(self._properties)

    def register(self, prop: Property, name: str | None = None) -> None:
        """register an invariant or a formula."""
        name = name or property_name(prop)
        if any(n == name for n, _ in self._properties):
            raise ValueError(f"property {name} already registered")
        self._properties.append((name, prop))
        logger.debug(f"registered property: {name}")

    def register_fn(
        self,
        name: str,
        predicate: Callable[[Any], bool],
        description: str = "",
    ) -> Invariant:
        """convenience method to register a bare state predicate as an invariant."""
        invariant = Invariant(name, predicate, description)
        self.register(invariant)
        return invariant

    def evaluate(self, execution: Execution) -> tuple[VerificationResult, ...]:
        """
        verify every registered property along execution.

        touches no verifier state, so concurrent trials may share one verifier.
        """
        start = time.perf_counter()
        results = []

        for name, prop in self._properties:
            result = verify(execution, prop, self._semantics, name=name)
            results.append(result)
            if not result.all_valid:
                v = result.first_violation
                logger.debug(f"{name} violated at index {v.index}: {v.message}")
                if self._fail_fast:
                    break

        logger.debug(
            f"checked {len(results)} properties over {len(execution)} states "
            f"in {(time.perf_counter() - start) * 1000:.2f}ms"
        )
        return tuple(results)

    def check_execution(self, execution: Execution) -> tuple[VerificationResult, ...]:
        """evaluate and keep the results in this verifier's history."""
        out = self.evaluate(execution)
        self._history.append(out)
        return out

    def get_history(self) -> list[tuple[VerificationResult, ...]]:
        return self._history.copy()

    def clear_history(self) -> None:
        self._history = []
