# Author: Bradley R. Kinnard
# temporal logic module - traces, ltl formulas and their satisfaction relation

from temporal.trace import Trace
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
    TRUE,
    FALSE,
    atom,
    action,
    next_,
    always,
    eventually,
    until,
    every_step,
)
from temporal.semantics import (
    Semantics,
    evaluate,
    satisfies,
    satisfies_at,
    first_failure,
    equivalent_on,
)

__all__ = [
    "Trace",
    "Formula",
    "Atom",
    "Top",
    "Bottom",
    "Not",
    "And",
    "Or",
    "Implies",
    "Next",
    "Always",
    "Eventually",
    "Until",
    "ActionPred",
    "TRUE",
    "FALSE",
    "atom",
    "action",
    "next_",
    "always",
    "eventually",
    "until",
    "every_step",
    "Semantics",
    "evaluate",
    "satisfies",
    "satisfies_at",
    "first_failure",
    "equivalent_on",
]
