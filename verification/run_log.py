# Author: Bradley R. Kinnard
# run log - reproducible, tamper-evident record of a verification run

import time
import json
from dataclasses import dataclass, field
from typing import Any, Callable
from pathlib import Path

from verification.verifier import RunSummary
from utils.helpers import get_logger, canonical_digest

logger = get_logger(__name__)

GENESIS = "genesis"


@dataclass
class RunEntry:
    """verdict of one trial."""
    sequence: int
    trial_index: int
    seed: int | None
    passed: bool
    trace_length: int
    status: str
    violated: list[str]
    final_state_digest: str
    duration_ms: float
    chain_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "trial_index": self.trial_index,
            "seed": self.seed,
            "passed": self.passed,
            "trace_length": self.trace_length,
            "status": self.status,
            "violated": list(self.violated),
            "final_state_digest": self.final_state_digest,
            "duration_ms": self.duration_ms,
        }


def _link(prev_hash: str, entry: RunEntry) -> str:
    return canonical_digest({"prev": prev_hash, "entry": entry.to_dict()})


@dataclass
class RunLog:
    """
    per-trial verdicts of one run, hash-chained in trial order.

    keeps the serialized first counterexample so the failing trial can be
    replayed from the log alone.
    """
    entries: list[RunEntry] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    run_seed: int | None = None
    domain: str = ""
    semantics: str = "bounded"
    counterexample: dict[str, Any] | None = None
    version: str = "1.0.0"
    _prev_hash: str = GENESIS

    @property
    def final_hash(self) -> str:
        return self._prev_hash

    def append(
        self,
        trial_index: int,
        seed: int | None,
        passed: bool,
        trace_length: int,
        status: str,
        violated: list[str],
        final_state_digest: str,
        duration_ms: float,
    ) -> RunEntry:
        entry = RunEntry(
            sequence=len(self.entries),
            trial_index=trial_index,
            seed=seed,
            passed=passed,
            trace_length=trace_length,
            status=status,
            violated=violated,
            final_state_digest=final_state_digest,
            duration_ms=duration_ms,
        )
        entry.chain_hash = _link(self._prev_hash, entry)
        self._prev_hash = entry.chain_hash
        self.entries.append(entry)
        return entry

    def verify_chain(self) -> tuple[bool, str]:
        """recompute every link and report the first one that does not match."""
        if not self.entries:
            return True, "empty log"

        prev_hash = GENESIS
        for i, entry in enumerate(self.entries):
            computed = _link(prev_hash, entry)
            if computed != entry.chain_hash:
                return False, f"chain break at entry {i}"
            prev_hash = computed

        if prev_hash != self._prev_hash:
            return False, "chain integrity failed at final hash"

        return True, f"chain valid ({len(self.entries)} entries)"

    def summary(self) -> dict[str, Any]:
        passed = sum(1 for e in self.entries if e.passed)
        total_ms = sum(e.duration_ms for e in self.entries)
        return {
            "total_trials": len(self.entries),
            "passed": passed,
            "failed": len(self.entries) - passed,
            "total_duration_ms": total_ms,
            "avg_duration_ms": total_ms / len(self.entries) if self.entries else 0,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "domain": self.domain,
            "run_seed": self.run_seed,
            "semantics": self.semantics,
            "start_time": self.start_time,
            "entries": [dict(e.to_dict(), chain_hash=e.chain_hash) for e in self.entries],
            "final_hash": self._prev_hash,
            "total_entries": len(self.entries),
            "counterexample": self.counterexample,
        }

    def save(self, path: Path | str) -> None:
        """save run log to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"saved run log to {path} ({len(self.entries)} entries)")

    @classmethod
    def load(cls, path: Path | str) -> "RunLog":
        """load a run log; stored chain hashes are kept so tampering stays visible."""
        path = Path(path)

        with open(path) as f:
            data = json.load(f)

        log = cls(
            start_time=data["start_time"],
            run_seed=data.get("run_seed"),
            domain=data.get("domain", ""),
            semantics=data.get("semantics", "bounded"),
            counterexample=data.get("counterexample"),
            version=data["version"],
        )

        for entry_data in data["entries"]:
            entry_data = dict(entry_data)
            chain_hash = entry_data.pop("chain_hash", "")
            log.entries.append(RunEntry(**entry_data, chain_hash=chain_hash))

        log._prev_hash = data.get("final_hash", GENESIS)
        return log


def record_summary(
    summary: RunSummary,
    domain: str = "",
    encode_state: Callable[[Any], Any] = repr,
    encode_action: Callable[[Any], Any] = repr,
) -> RunLog:
    """build the run log for a finished run."""
    log = RunLog(run_seed=summary.seed, domain=domain, semantics=summary.semantics.value)

    for trial in summary.trials:
        log.append(
            trial_index=trial.trial_index,
            seed=trial.seed,
            passed=trial.passed,
            trace_length=len(trial.execution),
            status=trial.execution.status.value,
            violated=[r.property_name for r in trial.results if not r.all_valid],
            final_state_digest=canonical_digest(encode_state(trial.execution.final_state)),
            duration_ms=trial.duration_ms,
        )

    if summary.first_global_counterexample is not None:
        log.counterexample = summary.first_global_counterexample.to_dict(encode_state, encode_action)

    return log
