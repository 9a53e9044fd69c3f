# Author: Bradley R. Kinnard
# domain bundle - everything the engine needs to verify one application

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from temporal.formula import Formula
from temporal.semantics import Semantics
from verification.action_system import ActionSystem
from verification.generator import Sampler
from verification.invariants import Invariant
from verification.properties import PropertyTester
from verification.verifier import Verifier


@dataclass(frozen=True)
class Domain:
    """an action system plus its declared properties, samplers and codecs."""
    name: str
    system: ActionSystem
    initial: Callable[[], Any]
    invariants: tuple[Invariant, ...]
    samplers: Mapping[str, Sampler]
    default_weights: Mapping[str, float]
    formulas: tuple[tuple[str, Formula], ...] = ()
    encode_state: Callable[[Any], Any] = repr
    encode_action: Callable[[Any], Any] = repr
    decode_action: Callable[[Any], Any] | None = None
    description: str = ""
    known_actions: Callable[[Any], list[Any]] | None = field(default=None, compare=False)

    def verifier(self, semantics: Semantics = Semantics.BOUNDED) -> Verifier:
        """fresh verifier with every invariant and formula of this domain."""
        verifier = Verifier(semantics=semantics)
        for invariant in self.invariants:
            verifier.register(invariant)
        for name, formula in self.formulas:
            verifier.register(formula, name=name)
        return verifier

    def tester(self, semantics: Semantics = Semantics.BOUNDED) -> PropertyTester:
        return PropertyTester(self.system, self.initial, self.samplers, self.verifier(semantics))
