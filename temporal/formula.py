# Author: Bradley R. Kinnard
# ltl formula model - closed variant over states

from dataclasses import dataclass, field
from typing import Any, Callable, Union


class _Connectives:
    """boolean operator sugar shared by every formula node."""

    __slots__ = ()

    def __invert__(self) -> "Not":
        return Not(self)

    def __and__(self, other: "Formula") -> "And":
        return And(self, other)

    def __or__(self, other: "Formula") -> "Or":
        return Or(self, other)

    def __rshift__(self, other: "Formula") -> "Implies":
        return Implies(self, other)


def _name_of(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__name__", None) or repr(fn)


@dataclass(frozen=True)
class Atom(_Connectives):
    """state predicate, evaluated on the head of the trace."""
    predicate: Callable[[Any], bool]
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name or _name_of(self.predicate)


@dataclass(frozen=True)
class Top(_Connectives):
    def __str__(self) -> str:
        return "⊤"


@dataclass(frozen=True)
class Bottom(_Connectives):
    def __str__(self) -> str:
        return "⊥"


@dataclass(frozen=True)
class Not(_Connectives):
    operand: "Formula"

    def __str__(self) -> str:
        return f"¬({self.operand})"


@dataclass(frozen=True)
class And(_Connectives):
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} ∧ {self.right})"


@dataclass(frozen=True)
class Or(_Connectives):
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} ∨ {self.right})"


@dataclass(frozen=True)
class Implies(_Connectives):
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} → {self.right})"


@dataclass(frozen=True)
class Next(_Connectives):
    operand: "Formula"

    def __str__(self) -> str:
        return f"○({self.operand})"


@dataclass(frozen=True)
class Always(_Connectives):
    operand: "Formula"

    def __str__(self) -> str:
        return f"□({self.operand})"


@dataclass(frozen=True)
class Eventually(_Connectives):
    operand: "Formula"

    def __str__(self) -> str:
        return f"◇({self.operand})"


@dataclass(frozen=True)
class Until(_Connectives):
    left: "Formula"
    right: "Formula"

    def __str__(self) -> str:
        return f"({self.left} U {self.right})"


@dataclass(frozen=True)
class ActionPred(_Connectives):
    """relation over a single transition: relation(trace[0], trace[1])."""
    relation: Callable[[Any, Any], bool]
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"[{self.name or _name_of(self.relation)}]"


Formula = Union[
    Atom, Top, Bottom, Not, And, Or, Implies,
    Next, Always, Eventually, Until, ActionPred,
]

FORMULA_TYPES = (
    Atom, Top, Bottom, Not, And, Or, Implies,
    Next, Always, Eventually, Until, ActionPred,
)

TRUE = Top()
FALSE = Bottom()


# builders, named after the operators they construct

def atom(predicate: Callable[[Any], bool], name: str = "") -> Atom:
    return Atom(predicate, name)


def action(relation: Callable[[Any, Any], bool], name: str = "") -> ActionPred:
    return ActionPred(relation, name)


def next_(f: Formula) -> Next:
    return Next(f)


def always(f: Formula) -> Always:
    return Always(f)


def eventually(f: Formula) -> Eventually:
    return Eventually(f)


def until(f: Formula, g: Formula) -> Until:
    return Until(f, g)


def every_step(relation: Callable[[Any, Any], bool], name: str = "") -> Always:
    """
    □(○⊤ → [relation]): every transition in the trace satisfies relation.

    ○⊤ only holds where a successor exists, so the final state of a bounded
    trace is not asked for a transition it does not have.
    """
    return Always(Implies(Next(TRUE), ActionPred(relation, name)))


def subformulas(f: Formula) -> list[Formula]:
    """post-order list of f and its subformulas, children before parents."""
    out: list[Formula] = []
    seen: set[int] = set()

    def visit(node: Formula) -> None:
        if id(node) in seen:
            return
        seen.add(id(node))
        if isinstance(node, (Not, Next, Always, Eventually)):
            visit(node.operand)
        elif isinstance(node, (And, Or, Implies, Until)):
            visit(node.left)
            visit(node.right)
        elif not isinstance(node, (Atom, Top, Bottom, ActionPred)):
            raise TypeError(f"not a formula: {node!r}")
        out.append(node)

    visit(f)
    return out
