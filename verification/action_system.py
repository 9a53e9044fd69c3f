# Author: Bradley R. Kinnard
# action systems - partial transition functions and the executions they produce

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Protocol, Sequence, TypeVar

from temporal.trace import Trace
from utils.helpers import get_logger, canonical_digest

logger = get_logger(__name__)

S = TypeVar("S")
A = TypeVar("A")
L = TypeVar("L")
R = TypeVar("R")
O = TypeVar("O")

# a transition returns the successor state, or None when the action's
# precondition does not hold. None is therefore never a valid domain state.
TransitionFn = Callable[[Any, Any], Any]


class ExecutionStatus(Enum):
    """how an execution ended."""
    COMPLETE = "complete"   # every requested action was applied
    ABORTED = "aborted"     # a scripted action was disabled, rest not applied


@dataclass(frozen=True)
class Execution(Generic[S, A]):
    """
    immutable run of an action system.

    invariant: transition(states[i], actions[i]) == states[i + 1] for every i,
    so len(states) == len(actions) + 1 always.
    """
    states: tuple[S, ...]
    actions: tuple[A, ...] = ()
    status: ExecutionStatus = ExecutionStatus.COMPLETE
    aborted_by: A | None = None
    skipped: int = 0
    seed: int | None = None

    def __post_init__(self):
        if not self.states:
            raise ValueError("execution needs at least the initial state")
        if len(self.states) != len(self.actions) + 1:
            raise ValueError(
                f"execution has {len(self.states)} states for {len(self.actions)} actions"
            )

    def __len__(self) -> int:
        return len(self.states)

    @property
    def initial_state(self) -> S:
        return self.states[0]

    @property
    def final_state(self) -> S:
        return self.states[-1]

    @property
    def aborted(self) -> bool:
        return self.status == ExecutionStatus.ABORTED

    def trace(self) -> Trace[S]:
        return Trace(self.states)

    def prior_action(self, index: int) -> A | None:
        """action that produced states[index], None for the initial state."""
        if not 0 <= index < len(self.states):
            raise IndexError(f"index {index} outside execution of length {len(self)}")
        return self.actions[index - 1] if index > 0 else None

    def history(self, index: int | None = None) -> tuple[A, ...]:
        """actions applied to reach states[index] (all actions by default)."""
        if index is None:
            return self.actions
        return self.actions[:index]

    def validate(self, system: "ActionSystem[S, A]") -> tuple[bool, str]:
        """re-run every step and confirm the chain of states."""
        for i, act in enumerate(self.actions):
            nxt = system.step(self.states[i], act)
            if nxt is None:
                return False, f"action {i} ({act!r}) is disabled in its pre-state"
            if nxt != self.states[i + 1]:
                return False, f"chain break at step {i}"
        return True, "execution valid"

    def to_dict(
        self,
        encode_state: Callable[[S], Any] = repr,
        encode_action: Callable[[A], Any] = repr,
    ) -> dict[str, Any]:
        return {
            "states": [encode_state(s) for s in self.states],
            "actions": [encode_action(a) for a in self.actions],
            "status": self.status.value,
            "aborted_by": None if self.aborted_by is None else encode_action(self.aborted_by),
            "skipped": self.skipped,
            "seed": self.seed,
        }

    def digest(
        self,
        encode_state: Callable[[S], Any] = repr,
        encode_action: Callable[[A], Any] = repr,
    ) -> str:
        """deterministic fingerprint, used to compare repeated runs."""
        return canonical_digest(self.to_dict(encode_state, encode_action), length=64)


@dataclass(frozen=True)
class ActionSystem(Generic[S, A]):
    """
    a domain modelled as a partial transition function (state, action) -> state.

    stateless and shared freely between concurrent trials. transition must be
    pure and deterministic; the engine cannot detect a violation of that, but
    one breaks both parallel trials and the meaning of a clean run.
    """
    transition: TransitionFn
    name: str = "system"

    def step(self, state: S, action: A) -> S | None:
        return self.transition(state, action)

    def enabled(self, state: S, action: A) -> bool:
        return self.transition(state, action) is not None

    def enabled_actions(self, state: S, candidates: Iterable[A]) -> list[A]:
        return [a for a in candidates if self.enabled(state, a)]

    def run(self, initial: S, actions: Sequence[A], seed: int | None = None) -> Execution[S, A]:
        """
        apply actions in order from initial.

        the first disabled action ends the run: the execution is marked
        aborted and keeps everything applied before it. a shorter trial,
        not a failure.
        """
        states = [initial]
        applied: list[A] = []

        for act in actions:
            nxt = self.transition(states[-1], act)
            if nxt is None:
                logger.debug(f"{self.name}: {act!r} disabled after {len(applied)} steps")
                return Execution(
                    states=tuple(states),
                    actions=tuple(applied),
                    status=ExecutionStatus.ABORTED,
                    aborted_by=act,
                    seed=seed,
                )
            states.append(nxt)
            applied.append(act)

        return Execution(states=tuple(states), actions=tuple(applied), seed=seed)


# parallel composition

@dataclass(frozen=True)
class Left(Generic[L]):
    """action routed to the left component of an interleaving."""
    action: L


@dataclass(frozen=True)
class Right(Generic[R]):
    """action routed to the right component of an interleaving."""
    action: R


def interleave(
    left: ActionSystem[Any, Any],
    right: ActionSystem[Any, Any],
) -> ActionSystem[tuple[Any, Any], Left | Right]:
    """
    interleaving composition of two action systems over disjoint actions.

    the product state is (left_state, right_state). a Left(a) moves only the
    left side, a Right(b) only the right; the untouched side is carried over
    unchanged. a composite action is enabled iff its side's action is.
    """
    def transition(state: tuple[Any, Any], act: Left | Right) -> tuple[Any, Any] | None:
        ls, rs = state
        if isinstance(act, Left):
            nxt = left.step(ls, act.action)
            return None if nxt is None else (nxt, rs)
        if isinstance(act, Right):
            nxt = right.step(rs, act.action)
            return None if nxt is None else (ls, nxt)
        raise TypeError(f"composite action must be Left or Right, got {act!r}")

    return ActionSystem(transition, name=f"{left.name}||{right.name}")


class Observer(Protocol[S, O]):
    """anything that turns a state into an observation."""

    def observe(self, state: S) -> O:
        ...


def observe_trace(trace: Trace[S], observer: Observer[S, O]) -> Trace[O]:
    """trace of observations, for formulas over what a state exposes."""
    return trace.map(observer.observe)
