"""Tuning loop: ask a searcher, evaluate, record, advance."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .energy import EnergyTable, EvalResult
from .search import Searcher, make_searcher
from .space import Configuration, Configurations
from .trial_log import TrialLog

logger = logging.getLogger("ktune.tuner")

Objective = Callable[[Configuration], EvalResult | float]


@dataclass
class Trial:
    """One round of a tuning run."""

    round: int
    index: int
    config: dict[str, Any]
    status: str
    energy: float | None
    reason: str | None = None
    cached: bool = False
    elapsed_s: float = 0.0

    def to_record(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "index": self.index,
            "config": self.config,
            "status": self.status,
            "energy": self.energy,
            "reason": self.reason,
            "cached": self.cached,
            "elapsed_s": round(self.elapsed_s, 6),
        }


@dataclass
class TuneReport:
    """Outcome of :meth:`Tuner.run`."""

    strategy: str
    trials: list[Trial] = field(default_factory=list)
    best_index: int | None = None
    best_configuration: Configuration | None = None
    best_energy: float | None = None
    stop_reason: str = "budget"

    @property
    def rounds(self) -> int:
        return len(self.trials)

    @property
    def num_evaluated(self) -> int:
        return sum(1 for t in self.trials if not t.cached)


class Tuner:
    """Drives one searcher against an objective until budget or exhaustion.

    Rounds are strictly sequential. A configuration that was already
    evaluated in this run is not evaluated again; its recorded outcome is
    reused. The objective may return an :class:`EvalResult` or a plain
    float energy; an exception it raises becomes a ``runtime_error`` trial.

    Args:
        configurations: The materialized space.
        evaluate: Objective mapping a configuration to its energy.
        strategy: Registered strategy name (see :data:`ktune.search.STRATEGIES`).
        max_rounds: Round cap. Defaults to the size of the space.
        seed: Seed forwarded to the strategy.
        log_path: Optional NDJSON file receiving one record per trial.
        **strategy_options: Extra strategy options (``fraction``,
            ``max_temperature``, ``swarm_size`` ...).
    """

    def __init__(
        self,
        configurations: Configurations,
        evaluate: Objective,
        *,
        strategy: str = "annealing",
        max_rounds: int | None = None,
        seed: int | None = None,
        log_path: str | Path | None = None,
        **strategy_options: Any,
    ) -> None:
        if max_rounds is None:
            max_rounds = len(configurations)
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {max_rounds}")

        self.configurations = configurations
        self.evaluate = evaluate
        self.strategy = strategy
        self.max_rounds = int(max_rounds)
        self.log = TrialLog(log_path) if log_path is not None else None
        self.energies = EnergyTable(len(configurations))
        self.searcher: Searcher = make_searcher(
            strategy, configurations, self.energies, seed=seed, **strategy_options
        )
        self._results: dict[int, EvalResult] = {}

    def _evaluate(self, config: Configuration) -> EvalResult:
        try:
            out = self.evaluate(config)
        except Exception as exc:  # noqa: BLE001
            logger.warning("evaluation of %s failed: %s: %s", dict(config), type(exc).__name__, exc)
            return EvalResult.runtime_error(f"{type(exc).__name__}: {exc}")
        if isinstance(out, EvalResult):
            return out
        try:
            energy = float(out)
        except (TypeError, ValueError):
            logger.warning("objective returned non-numeric %r for %s", out, dict(config))
            return EvalResult.runtime_error(f"objective returned non-numeric {type(out).__name__}")
        if math.isnan(energy):
            logger.warning("objective returned NaN for %s", dict(config))
            return EvalResult.runtime_error("objective returned NaN")
        return EvalResult.measured(energy)

    def run(self) -> TuneReport:
        report = TuneReport(strategy=self.strategy)
        logger.info(
            "tuning %d configurations with %s (max_rounds=%d)",
            len(self.configurations),
            self.strategy,
            self.max_rounds,
        )

        for rnd in range(self.max_rounds):
            index = self.searcher.current_index
            config = self.searcher.get_configuration()

            cached = index in self._results
            t0 = time.perf_counter()
            if cached:
                result = self._results[index]
            else:
                result = self._evaluate(config)
                self._results[index] = result
                self.energies.record(index, result)
            elapsed = time.perf_counter() - t0

            trial = Trial(
                round=rnd,
                index=index,
                config=config.to_dict(),
                status=result.status,
                energy=result.energy if result.ok and math.isfinite(result.energy) else None,
                reason=result.reason,
                cached=cached,
                elapsed_s=elapsed,
            )
            report.trials.append(trial)
            if self.log is not None:
                self.log.append(trial.to_record())

            self.searcher.calculate_next_index()
            if self.searcher.exhausted:
                report.stop_reason = "exhausted"
                break

        best = self.energies.best()
        if best is not None:
            report.best_index, report.best_energy = best
            report.best_configuration = self.configurations.at(best[0])

        logger.info(
            "stopped after %d rounds (%s), %d evaluated, best=%s",
            report.rounds,
            report.stop_reason,
            report.num_evaluated,
            report.best_energy,
        )
        return report


def with_local_memory_limit(
    evaluate: Objective,
    usage_fn: Callable[[Mapping[str, Any]], int],
    limit_bytes: int,
) -> Objective:
    """Report configurations over the device local-memory limit as infeasible.

    ``usage_fn`` computes the local memory (bytes) a configuration would
    allocate; over-limit configurations are never handed to ``evaluate``.
    """

    def wrapped(config: Configuration) -> EvalResult | float:
        used = int(usage_fn(config))
        if used > limit_bytes:
            return EvalResult.infeasible(
                f"local memory {used} B exceeds device limit {limit_bytes} B"
            )
        return evaluate(config)

    return wrapped
