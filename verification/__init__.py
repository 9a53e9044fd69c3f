# Author: Bradley R. Kinnard
# verification module - action systems, invariants, trace generation and checking

from verification.action_system import (
    ActionSystem,
    Execution,
    ExecutionStatus,
    Left,
    Right,
    Observer,
    interleave,
    observe_trace,
)
from verification.invariants import (
    Guarantee,
    Invariant,
    InvariantSet,
    InductiveReport,
    StepCounterexample,
    check_initial,
    check_step,
    check_inductive,
    derive_always,
    first_failed_check,
    lift_left,
    lift_right,
)
from verification.generator import (
    PolicyError,
    ScriptedPolicy,
    RandomPolicy,
    generate,
    policy_from_dict,
    validate_policy,
)
from verification.verifier import (
    Violation,
    VerificationResult,
    TrialResult,
    Counterexample,
    RunSummary,
    Verifier,
    verify,
    verify_many,
    summarize,
)
from verification.properties import PropertyTester
from verification.run_log import RunLog, RunEntry, record_summary
from verification.reporter import exit_code, format_summary, replay

__all__ = [
    "ActionSystem",
    "Execution",
    "ExecutionStatus",
    "Left",
    "Right",
    "Observer",
    "interleave",
    "observe_trace",
    "Guarantee",
    "Invariant",
    "InvariantSet",
    "InductiveReport",
    "StepCounterexample",
    "check_initial",
    "check_step",
    "check_inductive",
    "derive_always",
    "first_failed_check",
    "lift_left",
    "lift_right",
    "PolicyError",
    "ScriptedPolicy",
    "RandomPolicy",
    "generate",
    "policy_from_dict",
    "validate_policy",
    "Violation",
    "VerificationResult",
    "TrialResult",
    "Counterexample",
    "RunSummary",
    "Verifier",
    "verify",
    "verify_many",
    "summarize",
    "PropertyTester",
    "RunLog",
    "RunEntry",
    "record_summary",
    "exit_code",
    "format_summary",
    "replay",
]
