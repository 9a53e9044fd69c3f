# Author: Bradley R. Kinnard
# trace verifier main entry point

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from domains import get_domain, list_domains
from domains.base import Domain
from temporal.semantics import Semantics
from verification.generator import PolicyError
from verification.reporter import (
    EXIT_CONFIG,
    EXIT_FAILED,
    EXIT_OK,
    exit_code,
    format_summary,
    replay,
    summary_to_dict,
)
from verification.run_log import RunLog, record_summary
from verification.verifier import RunSummary
from utils.helpers import ConfigError, get_logger, load_run_config, set_log_level, validate_run_config


logger = get_logger(__name__)

DEFAULTS: dict[str, Any] = {
    "domain": "todo",
    "trials": 100,
    "max_actions": 50,
    "seed": None,
    "workers": 1,
    "timeout": None,
    "semantics": "bounded",
    "stop_on_failure": False,
    "attempt_factor": 10,
    "log_level": "INFO",
    "weights": {},
}

# cli flag -> config key, for flags that override the config file
OVERRIDES = {
    "domain": "domain",
    "trials": "trials",
    "max_actions": "max_actions",
    "seed": "seed",
    "workers": "workers",
    "timeout": "timeout",
    "semantics": "semantics",
    "attempt_factor": "attempt_factor",
    "log_level": "log_level",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check invariants and LTL properties of an action system on generated traces"
    )
    parser.add_argument("--config", help="yaml run config")
    parser.add_argument("--domain", help="domain to verify (see --list-domains)")
    parser.add_argument("--trials", type=int, help="number of independent trials")
    parser.add_argument("--max-actions", type=int, help="actions applied per trial")
    parser.add_argument("--seed", type=int, help="run seed, for reproducible runs")
    parser.add_argument("--workers", type=int, help="parallel trial workers")
    parser.add_argument("--timeout", type=float, help="whole-run timeout in seconds")
    parser.add_argument("--semantics", choices=[s.value for s in Semantics], help="end-of-trace semantics")
    parser.add_argument("--attempt-factor", type=int, help="sampling attempts per applied action")
    parser.add_argument("--stop-on-failure", action="store_true", help="stop starting trials after a failure")
    parser.add_argument("--log-out", help="write the hash-chained run log here")
    parser.add_argument("--replay", help="replay the counterexample in a run log or counterexample file")
    parser.add_argument("--json", action="store_true", help="print the summary as json")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--list-domains", action="store_true", help="list registered domains and exit")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict[str, Any]:
    """defaults, then config file, then cli flags; validated as a whole."""
    settings = dict(DEFAULTS)
    if args.config:
        settings.update(load_run_config(args.config))

    for flag, key in OVERRIDES.items():
        value = getattr(args, flag)
        if value is not None:
            settings[key] = value
    if args.stop_on_failure:
        settings["stop_on_failure"] = True

    validate_run_config(settings)
    return settings


def run_domain(domain: Domain, settings: dict[str, Any]) -> RunSummary:
    weights = settings.get("weights", {}).get(domain.name, domain.default_weights)
    tester = domain.tester(Semantics(settings["semantics"]))
    return tester.run(
        trials=settings["trials"],
        max_actions=settings["max_actions"],
        weights=weights,
        seed=settings["seed"],
        workers=settings["workers"],
        timeout=settings["timeout"],
        stop_on_failure=settings["stop_on_failure"],
        attempt_factor=settings["attempt_factor"],
    )


def replay_file(domain: Domain, path: Path | str, semantics: Semantics, as_json: bool) -> int:
    """re-run a saved counterexample; exit 1 if it still reproduces."""
    with open(path) as f:
        data = json.load(f)

    if "entries" in data:
        log = RunLog.load(path)
        valid, msg = log.verify_chain()
        if not valid:
            logger.warning(f"run log {path}: {msg}")
        if log.domain and log.domain != domain.name:
            logger.warning(f"log was recorded for {log.domain!r}, replaying on {domain.name!r}")
        counterexample = log.counterexample
    else:
        counterexample = data

    if not isinstance(counterexample, dict) or not isinstance(counterexample.get("actions"), list):
        raise ConfigError(f"{path} holds no counterexample to replay")

    try:
        actions = [domain.decode_action(a) for a in counterexample["actions"]]
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigError(f"{path}: cannot decode action for {domain.name!r}: {e}") from e

    execution = replay(domain.system, domain.initial(), {**counterexample, "actions": actions})
    results = domain.verifier(semantics).check_execution(execution)
    failed = [r for r in results if not r.all_valid]

    if as_json:
        print(json.dumps({
            "reproduced": bool(failed),
            "trace_length": len(execution),
            "status": execution.status.value,
            "results": [r.to_dict(domain.encode_state, domain.encode_action) for r in results],
        }, indent=2, default=str))
    else:
        print(f"replayed {len(execution.actions)} actions ({execution.status.value})")
        for r in results:
            mark = "ok" if r.all_valid else f"VIOLATED at index {r.first_violation.index}"
            print(f"  {r.property_name}: {mark}")

    return EXIT_FAILED if failed else EXIT_OK


def _config_error(e: Exception) -> int:
    logger.error(f"configuration error: {e}")
    print(f"error: {e}", file=sys.stderr)
    return EXIT_CONFIG


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_domains:
        for name, description in list_domains():
            print(f"{name:16} {description}")
        return EXIT_OK

    try:
        settings = resolve_settings(args)
        set_log_level(settings["log_level"])
        # ValueError here is an unknown domain name
        domain = get_domain(settings["domain"])
        semantics = Semantics(settings["semantics"])
    except (ValueError, FileNotFoundError) as e:
        return _config_error(e)

    try:
        if args.replay:
            return replay_file(domain, args.replay, semantics, args.json)
        summary = run_domain(domain, settings)
    except (ConfigError, PolicyError, FileNotFoundError, json.JSONDecodeError) as e:
        return _config_error(e)

    if args.json:
        print(json.dumps(
            summary_to_dict(summary, domain.encode_state, domain.encode_action),
            indent=2,
            default=str,
        ))
    else:
        print(format_summary(summary, domain.name, domain.encode_state, domain.encode_action))

    if args.log_out:
        record_summary(summary, domain.name, domain.encode_state, domain.encode_action).save(args.log_out)

    return exit_code(summary)


if __name__ == "__main__":
    sys.exit(main())
