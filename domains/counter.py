# Author: Bradley R. Kinnard
# counter domain - smallest useful action system, plus a deliberately broken twin

from dataclasses import dataclass
from enum import Enum
from typing import Any

from domains.base import Domain
from temporal.formula import every_step
from verification.action_system import ActionSystem
from verification.invariants import Invariant


@dataclass(frozen=True)
class Counter:
    count: int = 0


class CounterAction(Enum):
    INCREMENT = "increment"
    RESET = "reset"
    DECREMENT = "decrement"


INCREMENT = CounterAction.INCREMENT
RESET = CounterAction.RESET
DECREMENT = CounterAction.DECREMENT


def counter_transition(state: Counter, action: CounterAction) -> Counter | None:
    if action is INCREMENT:
        return Counter(state.count + 1)
    if action is RESET:
        return Counter(0)
    if action is DECREMENT:
        # disabled at zero
        return Counter(state.count - 1) if state.count > 0 else None
    return None


def broken_counter_transition(state: Counter, action: CounterAction) -> Counter | None:
    """same as counter_transition, except decrement is left enabled at zero."""
    if action is DECREMENT:
        return Counter(state.count - 1)
    return counter_transition(state, action)


COUNTER_SYSTEM = ActionSystem(counter_transition, name="counter")
BROKEN_COUNTER_SYSTEM = ActionSystem(broken_counter_transition, name="counter-broken")

NON_NEGATIVE = Invariant(
    "count_non_negative",
    lambda s: s.count >= 0,
    "the counter never goes below zero",
)


def _moves_by_one_or_resets(s: Counter, t: Counter) -> bool:
    return t.count in (s.count + 1, s.count - 1, 0)


SAMPLERS = {
    "increment": lambda state, rng: INCREMENT,
    "reset": lambda state, rng: RESET,
    "decrement": lambda state, rng: DECREMENT,
}

DEFAULT_WEIGHTS = {"increment": 3, "reset": 1, "decrement": 2}


def encode_state(state: Counter) -> dict[str, Any]:
    return {"count": state.count}


def encode_action(action: CounterAction) -> str:
    return action.value


def decode_action(value: str) -> CounterAction:
    return CounterAction(value)


def _all_actions(state: Counter) -> list[CounterAction]:
    return list(CounterAction)


def _make_domain(name: str, system: ActionSystem, description: str) -> Domain:
    return Domain(
        name=name,
        system=system,
        initial=Counter,
        invariants=(NON_NEGATIVE,),
        formulas=(("step_moves_by_one_or_resets", every_step(_moves_by_one_or_resets)),),
        samplers=SAMPLERS,
        default_weights=DEFAULT_WEIGHTS,
        encode_state=encode_state,
        encode_action=encode_action,
        decode_action=decode_action,
        description=description,
        known_actions=_all_actions,
    )


COUNTER_DOMAIN = _make_domain(
    "counter", COUNTER_SYSTEM, "increment/reset/decrement counter, count >= 0"
)
BROKEN_COUNTER_DOMAIN = _make_domain(
    "counter-broken", BROKEN_COUNTER_SYSTEM, "counter whose decrement is enabled at zero"
)
