# Author: Bradley R. Kinnard
# reporter - pass/fail verdicts, counterexample rendering, replay

import json
from typing import Any, Callable, Mapping

from verification.action_system import ActionSystem, Execution
from verification.verifier import Counterexample, RunSummary

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def exit_code(summary: RunSummary) -> int:
    """0 when every trial that ran passed, 1 on any counterexample."""
    return EXIT_OK if summary.all_passed else EXIT_FAILED


def summary_to_dict(
    summary: RunSummary,
    encode_state: Callable[[Any], Any] = repr,
    encode_action: Callable[[Any], Any] = repr,
) -> dict[str, Any]:
    cx = summary.first_global_counterexample
    return {
        "verdict": "pass" if summary.all_passed else "fail",
        "total_trials": summary.total_trials,
        "passed": summary.passed,
        "failed": summary.failed,
        "cancelled": summary.cancelled,
        "aborted_trials": summary.aborted_trials,
        "seed": summary.seed,
        "semantics": summary.semantics.value,
        "max_trace_length": max((len(t.execution) for t in summary.trials), default=0),
        "duration_ms": round(summary.duration_ms, 3),
        "first_global_counterexample": None if cx is None else cx.to_dict(encode_state, encode_action),
    }


def format_counterexample(
    cx: Counterexample,
    encode_state: Callable[[Any], Any] = repr,
    encode_action: Callable[[Any], Any] = repr,
) -> str:
    return json.dumps(cx.to_dict(encode_state, encode_action), indent=2, default=str)


def format_summary(
    summary: RunSummary,
    domain: str = "",
    encode_state: Callable[[Any], Any] = repr,
    encode_action: Callable[[Any], Any] = repr,
) -> str:
    """human-readable report, counterexample included on failure."""
    verdict = "PASS" if summary.all_passed else "FAIL"
    ran = summary.passed + summary.failed
    longest = max((len(t.execution) for t in summary.trials), default=0)

    lines = [
        f"{verdict}{f' [{domain}]' if domain else ''}: "
        f"{summary.passed}/{ran} trials passed, {summary.failed} failed",
        f"  seed={summary.seed} semantics={summary.semantics.value} "
        f"longest trace={longest} states",
    ]
    if summary.cancelled:
        lines.append(f"  {summary.cancelled} trials cancelled before they started")
    if summary.aborted_trials:
        lines.append(f"  {summary.aborted_trials} executions ended on a disabled action")

    cx = summary.first_global_counterexample
    if cx is not None:
        v = cx.violation
        lines.append(
            f"  first counterexample: trial {cx.trial_index} (seed={cx.seed}), "
            f"{v.property_name} fails at index {v.index}"
        )
        lines.append(format_counterexample(cx, encode_state, encode_action))
    else:
        lines.append("  no counterexample found (bounded evidence, not proof)")

    return "\n".join(lines)


def replay(
    system: ActionSystem,
    initial: Any,
    counterexample: Counterexample | Mapping[str, Any],
    decode_action: Callable[[Any], Any] | None = None,
) -> Execution:
    """
    re-run a counterexample's stored actions as a scripted execution.

    accepts a Counterexample or its serialized dict form (decode_action
    turns the stored actions back into domain actions).
    """
    if isinstance(counterexample, Counterexample):
        actions = list(counterexample.actions)
        seed = counterexample.seed
    else:
        actions = list(counterexample["actions"])
        if decode_action is not None:
            actions = [decode_action(a) for a in actions]
        seed = counterexample.get("seed")

    return system.run(initial, actions, seed=seed)
