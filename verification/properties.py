# Author: Bradley R. Kinnard
# property-based testing - many randomized executions, every property checked

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Generic, Mapping, TypeVar

from temporal.semantics import Semantics
from verification.action_system import ActionSystem
from verification.generator import (
    PolicyError,
    RandomPolicy,
    Sampler,
    fresh_seed,
    generate,
    validate_policy,
)
from verification.verifier import RunSummary, TrialResult, Verifier, summarize
from utils.helpers import get_logger, derive_seed

logger = get_logger(__name__)

S = TypeVar("S")
A = TypeVar("A")


class PropertyTester(Generic[S, A]):
    """
    property-based tester for action systems.

    each trial builds a fresh initial state, generates one random execution
    with its own derived seed, and checks every property of the verifier
    along it. trials share only the system, the samplers and the verifier's
    properties, all read-only, so they can run on a thread pool with no
    locking. results are merged in trial order, so a run's summary does not
    depend on how many workers produced it.
    """

    def __init__(
        self,
        system: ActionSystem[S, A],
        initial: Callable[[], S],
        samplers: Mapping[str, Sampler],
        verifier: Verifier,
    ):
        self._system = system
        self._initial = initial
        self._samplers = dict(samplers)
        self._verifier = verifier

    @property
    def verifier(self) -> Verifier:
        return self._verifier

    def run_trial(self, index: int, policy: RandomPolicy) -> TrialResult:
        """one independent trial under a fully seeded policy."""
        start = time.perf_counter()
        execution = generate(self._system, self._initial(), policy, self._samplers)
        results = self._verifier.evaluate(execution)
        elapsed = (time.perf_counter() - start) * 1000

        trial = TrialResult(
            trial_index=index,
            seed=execution.seed,
            execution=execution,
            results=results,
            duration_ms=elapsed,
        )
        if not trial.passed:
            v = trial.first_violation
            logger.warning(
                f"trial {index} (seed={execution.seed}) violates {v.property_name} "
                f"at index {v.index} after {len(v.history)} actions"
            )
        return trial

    def _policy(self, weights: Mapping[str, float], max_actions: int, attempt_factor: int) -> RandomPolicy:
        policy = RandomPolicy(weights=weights, max_actions=max_actions, attempt_factor=attempt_factor)
        validate_policy(policy, self._samplers)
        return policy

    def run(
        self,
        trials: int,
        max_actions: int,
        weights: Mapping[str, float],
        seed: int | None = None,
        workers: int = 1,
        timeout: float | None = None,
        stop_on_failure: bool = False,
        attempt_factor: int = 10,
    ) -> RunSummary:
        """
        run `trials` independent trials and summarize them.

        configuration is validated before the first trial; a bad policy
        raises PolicyError and nothing runs. cancellation is between
        trials: once `timeout` seconds have passed, or a trial failed with
        stop_on_failure set, no further trials are started. trials already
        running finish and are counted; the rest are reported as cancelled.
        """
        if isinstance(trials, bool) or not isinstance(trials, int) or trials < 1:
            raise PolicyError(f"trials must be a positive integer, got {trials!r}")
        if workers < 1:
            raise PolicyError(f"workers must be >= 1, got {workers}")
        if timeout is not None and timeout <= 0:
            raise PolicyError(f"timeout must be > 0 seconds, got {timeout}")
        if not self._verifier.properties:
            raise PolicyError("no properties registered with the verifier")

        base = self._policy(weights, max_actions, attempt_factor)
        run_seed = seed if seed is not None else fresh_seed()
        deadline = None if timeout is None else time.monotonic() + timeout
        stop = threading.Event()

        logger.info(
            f"{self._system.name}: {trials} trials x {max_actions} actions, "
            f"seed={run_seed}, workers={workers}"
        )

        def policy_for(index: int) -> RandomPolicy:
            return base.with_seed(derive_seed(run_seed, index))

        def should_stop() -> bool:
            if stop.is_set():
                return True
            if deadline is not None and time.monotonic() >= deadline:
                logger.warning("run timeout reached, no further trials submitted")
                stop.set()
                return True
            return False

        results: list[TrialResult] = []

        def collect(trial: TrialResult) -> None:
            results.append(trial)
            if stop_on_failure and not trial.passed:
                stop.set()

        start = time.perf_counter()

        if workers == 1:
            for i in range(trials):
                if should_stop():
                    break
                collect(self.run_trial(i, policy_for(i)))
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                in_flight: set[Future[TrialResult]] = set()
                next_index = 0

                while next_index < trials or in_flight:
                    while next_index < trials and len(in_flight) < workers * 2 and not should_stop():
                        in_flight.add(executor.submit(self.run_trial, next_index, policy_for(next_index)))
                        next_index += 1

                    if not in_flight:
                        break

                    done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                    for future in done:
                        collect(future.result())

                    if should_stop():
                        next_index = trials

        elapsed = (time.perf_counter() - start) * 1000

        return summarize(
            results,
            total_trials=trials,
            seed=run_seed,
            semantics=self._verifier.semantics,
            policy=base.to_dict(),
            duration_ms=elapsed,
        )

    def check_reproducible(
        self,
        trials: int,
        max_actions: int,
        weights: Mapping[str, float],
        seed: int,
        attempt_factor: int = 10,
        encode_state: Callable[[Any], Any] = repr,
        encode_action: Callable[[Any], Any] = repr,
    ) -> list[int]:
        """
        generate every trial twice from the same seed and compare digests.

        returns the indices whose executions differ; anything here means the
        system, a sampler or the initial-state factory is nondeterministic.
        """
        base = self._policy(weights, max_actions, attempt_factor)
        mismatched = []

        for i in range(trials):
            policy = base.with_seed(derive_seed(seed, i))
            digests = [
                generate(self._system, self._initial(), policy, self._samplers).digest(
                    encode_state, encode_action
                )
                for _ in range(2)
            ]
            if digests[0] != digests[1]:
                mismatched.append(i)

        if mismatched:
            logger.error(f"{len(mismatched)}/{trials} trials not reproducible under seed {seed}")
        return mismatched
