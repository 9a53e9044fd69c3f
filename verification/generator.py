# Author: Bradley R. Kinnard
# trace generator - scripted and weighted-random action sequences

"""
Executions are produced under one of two policies.

scripted
    a fixed action list, applied in order. the first disabled action ends
    the execution (status ABORTED). used for regression cases and replaying
    recorded counterexamples.

random
    weighted choice over action kinds. a per-kind sampler turns the chosen
    kind into a concrete action for the current state. skip policy: a
    disabled action, or a sampler returning None, is skipped and does NOT
    count against max_actions. sampling attempts are capped at
    max_actions * attempt_factor so a state where little is enabled still
    ends the trial. the number of skips is recorded on the execution.

the only randomness is random.Random(seed). same system, initial state,
policy and seed give an identical execution.
"""

import math
import random
from dataclasses import dataclass, field, replace
from typing import Any, Callable, ClassVar, Mapping, Sequence, TypeVar

import jsonschema

from config.schemas import policy_schema
from verification.action_system import ActionSystem, Execution
from utils.helpers import get_logger

logger = get_logger(__name__)

S = TypeVar("S")
A = TypeVar("A")

# (current state, rng) -> concrete action, or None if the kind has no
# candidate in this state
Sampler = Callable[[Any, random.Random], Any]


class PolicyError(ValueError):
    """malformed generator policy. rejected before any trial runs."""


@dataclass(frozen=True)
class ScriptedPolicy:
    """fixed action sequence."""
    actions: tuple[Any, ...] = ()
    mode: ClassVar[str] = "scripted"

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(self.actions))

    def to_dict(self, encode_action: Callable[[Any], Any] = repr) -> dict[str, Any]:
        return {"mode": self.mode, "actions": [encode_action(a) for a in self.actions]}


@dataclass(frozen=True)
class RandomPolicy:
    """weighted random actions, at most max_actions applied per execution."""
    weights: Mapping[str, float] = field(default_factory=dict)
    max_actions: int = 50
    seed: int | None = None
    attempt_factor: int = 10
    mode: ClassVar[str] = "random"

    def __post_init__(self):
        object.__setattr__(self, "weights", dict(self.weights))

    @property
    def max_attempts(self) -> int:
        return self.max_actions * self.attempt_factor

    def with_seed(self, seed: int) -> "RandomPolicy":
        return replace(self, seed=seed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "weights": dict(self.weights),
            "max_actions": self.max_actions,
            "seed": self.seed,
            "attempt_factor": self.attempt_factor,
        }


Policy = ScriptedPolicy | RandomPolicy


def validate_policy(policy: Policy, samplers: Mapping[str, Sampler] | None = None) -> None:
    """reject malformed policies with a clear message."""
    if isinstance(policy, ScriptedPolicy):
        return

    if not isinstance(policy, RandomPolicy):
        raise PolicyError(f"unknown policy type: {type(policy).__name__}")

    if not policy.weights:
        raise PolicyError("weight table is empty")

    for kind, weight in policy.weights.items():
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise PolicyError(f"weight for {kind!r} is not a number: {weight!r}")
        if not math.isfinite(weight) or weight < 0:
            raise PolicyError(f"weight for {kind!r} must be finite and >= 0, got {weight}")

    if sum(policy.weights.values()) <= 0:
        raise PolicyError("all weights are zero")

    if isinstance(policy.max_actions, bool) or not isinstance(policy.max_actions, int):
        raise PolicyError(f"max_actions must be an integer, got {policy.max_actions!r}")
    if policy.max_actions < 0:
        raise PolicyError(f"max_actions must be >= 0, got {policy.max_actions}")

    if policy.attempt_factor < 1:
        raise PolicyError(f"attempt_factor must be >= 1, got {policy.attempt_factor}")

    if samplers is not None:
        missing = sorted(k for k in policy.weights if k not in samplers)
        if missing:
            raise PolicyError(f"no sampler for action kinds: {', '.join(missing)}")


def policy_from_dict(
    d: Mapping[str, Any],
    decode_action: Callable[[Any], Any] | None = None,
) -> Policy:
    """build a policy from its mapping form, validated against policy_schema."""
    try:
        jsonschema.validate(instance=dict(d), schema=policy_schema)
    except jsonschema.ValidationError as e:
        raise PolicyError(f"invalid policy: {e.message}") from e

    if d["mode"] == "scripted":
        actions = d["actions"]
        if decode_action is not None:
            actions = [decode_action(a) for a in actions]
        return ScriptedPolicy(tuple(actions))

    policy = RandomPolicy(
        weights=d["weights"],
        max_actions=d["max_actions"],
        seed=d.get("seed"),
        attempt_factor=d.get("attempt_factor", 10),
    )
    validate_policy(policy)
    return policy


def fresh_seed() -> int:
    """draw a seed for runs that did not supply one. always reported back."""
    return random.SystemRandom().randint(0, 2**32 - 1)


def generate(
    system: ActionSystem[S, A],
    initial: S,
    policy: Policy,
    samplers: Mapping[str, Sampler] | None = None,
) -> Execution[S, A]:
    """produce one execution of system from initial under policy."""
    if isinstance(policy, RandomPolicy) and samplers is None:
        raise PolicyError("random policy needs a sampler per action kind")
    validate_policy(policy, samplers)

    if isinstance(policy, ScriptedPolicy):
        return system.run(initial, policy.actions)

    seed = policy.seed if policy.seed is not None else fresh_seed()
    rng = random.Random(seed)

    kinds = list(policy.weights)
    weights = [policy.weights[k] for k in kinds]

    states = [initial]
    applied: list[A] = []
    skipped = 0
    attempts = 0

    while len(applied) < policy.max_actions and attempts < policy.max_attempts:
        attempts += 1
        kind = rng.choices(kinds, weights=weights)[0]
        act = samplers[kind](states[-1], rng)
        if act is None:
            skipped += 1
            continue

        nxt = system.step(states[-1], act)
        if nxt is None:
            skipped += 1
            continue

        states.append(nxt)
        applied.append(act)

    if len(applied) < policy.max_actions:
        logger.debug(
            f"{system.name}: attempt cap reached after {len(applied)}/{policy.max_actions} "
            f"actions ({skipped} skipped), seed={seed}"
        )

    return Execution(
        states=tuple(states),
        actions=tuple(applied),
        skipped=skipped,
        seed=seed,
    )


def generate_many(
    system: ActionSystem[S, A],
    initial: S,
    policies: Sequence[Policy],
    samplers: Mapping[str, Sampler] | None = None,
) -> list[Execution[S, A]]:
    """one execution per policy, each from a fresh copy of initial."""
    return [generate(system, initial, p, samplers) for p in policies]
