"""Tests for the tuning loop, trial logging and reporting."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

import pytest

from ktune.energy import EvalResult
from ktune.report import best_trials, format_table, load_trials, status_counts
from ktune.space import Configurations, ConfigSpace
from ktune.toy import LOCAL_MEMORY_LIMIT, gemm_cost, gemm_local_memory, gemm_space
from ktune.trial_log import TrialLog
from ktune.tuner import Tuner, with_local_memory_limit


@pytest.fixture
def gemm() -> Configurations:
    return gemm_space().materialize()


def _bowl(config: Any) -> float:
    return float((config["tile"] - 32) ** 2 + (config["vec"] - 2) ** 2)


@pytest.fixture
def bowl_space() -> Configurations:
    return ConfigSpace.from_dict(
        {"tile": [4, 8, 16, 32, 64], "vec": [1, 2, 4, 8]}
    ).materialize()


# ---------------------------------------------------------------------------
# Run loop
# ---------------------------------------------------------------------------

def test_full_search_finds_global_minimum(gemm: Configurations) -> None:
    report = Tuner(gemm, gemm_cost, strategy="full").run()
    assert report.rounds == len(gemm)
    assert report.stop_reason == "exhausted"

    costs = [gemm_cost(c).cost for c in gemm]
    best = min(costs)
    assert report.best_energy == pytest.approx(best)
    assert report.best_index == costs.index(best)
    assert report.best_configuration == gemm.at(costs.index(best))


@pytest.mark.parametrize("strategy", ["annealing", "random", "pso"])
def test_strategies_respect_round_cap(bowl_space: Configurations, strategy: str) -> None:
    report = Tuner(bowl_space, _bowl, strategy=strategy, max_rounds=8, seed=0).run()
    assert 1 <= report.rounds <= 8
    assert report.best_energy is not None
    assert report.best_energy == min(t.energy for t in report.trials if t.energy is not None)


def test_annealing_moves_downhill_from_worst_configuration(bowl_space: Configurations) -> None:
    worst = bowl_space.index_of({"tile": 64, "vec": 8})
    assert worst is not None
    tuner = Tuner(
        bowl_space, _bowl, strategy="annealing", max_rounds=50,
        seed=3, max_temperature=2.0, start_index=worst,
    )
    report = tuner.run()

    # Every neighbour of the worst point is an improvement, so the first
    # decision must move.
    trace = tuner.searcher.trace
    assert trace[0][0] == worst
    assert trace[1][0] != worst
    assert report.best_energy is not None
    assert report.best_energy < _bowl({"tile": 64, "vec": 8})


def test_revisits_reuse_cached_energy(bowl_space: Configurations) -> None:
    calls: list[dict[str, Any]] = []

    def objective(config: Any) -> float:
        calls.append(dict(config))
        return _bowl(config)

    report = Tuner(bowl_space, objective, strategy="annealing", max_rounds=100, seed=1).run()
    distinct = {t.index for t in report.trials}
    assert len(calls) == len(distinct) == report.num_evaluated
    assert any(t.cached for t in report.trials)


def test_exhaustion_stops_annealing_early() -> None:
    single = Configurations([{"x": 1}])
    report = Tuner(single, lambda c: 1.0, strategy="annealing", max_rounds=100).run()
    assert report.stop_reason == "exhausted"
    assert report.rounds == 12
    assert report.num_evaluated == 1


def test_objective_errors_are_recorded_not_raised(bowl_space: Configurations) -> None:
    def flaky(config: Any) -> float:
        if config["vec"] == 8:
            raise RuntimeError("kernel launch failed")
        return _bowl(config)

    report = Tuner(bowl_space, flaky, strategy="full").run()
    failed = [t for t in report.trials if t.status == "runtime_error"]
    assert len(failed) == 5
    assert all(t.energy is None for t in failed)
    assert "kernel launch failed" in (failed[0].reason or "")
    assert report.best_energy == 0.0


@pytest.mark.parametrize("bad", [math.nan, None, "fast", object()])
def test_unusable_objective_values_become_runtime_errors(
    bowl_space: Configurations, bad: Any
) -> None:
    def objective(config: Any) -> Any:
        return bad if config["vec"] == 8 else _bowl(config)

    report = Tuner(bowl_space, objective, strategy="full").run()
    assert report.rounds == 20
    failed = [t for t in report.trials if t.status == "runtime_error"]
    assert len(failed) == 5
    assert all(t.energy is None for t in failed)
    assert all(t.reason for t in failed)
    assert report.best_energy == 0.0


def test_eval_results_pass_through(bowl_space: Configurations) -> None:
    def objective(config: Any) -> EvalResult:
        if config["tile"] == 4:
            return EvalResult.build_error("tile too small")
        return EvalResult.measured(_bowl(config))

    report = Tuner(bowl_space, objective, strategy="full").run()
    assert status_counts(report.trials) == {"build_error": 4, "ok": 16}


def test_all_failures_leave_no_best(bowl_space: Configurations) -> None:
    report = Tuner(
        bowl_space, lambda c: EvalResult.infeasible("nope"), strategy="random", seed=0
    ).run()
    assert report.best_index is None
    assert report.best_configuration is None
    assert report.best_energy is None


def test_invalid_round_cap(bowl_space: Configurations) -> None:
    with pytest.raises(ValueError):
        Tuner(bowl_space, _bowl, max_rounds=0)


def test_invalid_strategy_options_fail_at_construction(bowl_space: Configurations) -> None:
    with pytest.raises(ValueError):
        Tuner(bowl_space, _bowl, strategy="annealing", max_temperature=0.0)


# ---------------------------------------------------------------------------
# Local memory feasibility
# ---------------------------------------------------------------------------

def test_local_memory_limit_marks_infeasible_without_running() -> None:
    calls: list[Any] = []

    def objective(config: Any) -> float:
        calls.append(config)
        return 1.0

    wrapped = with_local_memory_limit(objective, lambda c: c["tile"] * 1024, 16 * 1024)
    small = wrapped({"tile": 8})
    big = wrapped({"tile": 32})
    assert small == 1.0
    assert isinstance(big, EvalResult) and big.status == "infeasible"
    assert "exceeds" in (big.reason or "")
    assert len(calls) == 1


def test_toy_objective_reports_local_memory_overflow() -> None:
    config = {"tile_m": 32, "tile_n": 128, "tile_k": 32, "vector_width": 1, "unroll": 1}
    assert gemm_local_memory(config) > LOCAL_MEMORY_LIMIT
    assert gemm_cost(config).status == "infeasible"
    ok = {"tile_m": 16, "tile_n": 32, "tile_k": 16, "vector_width": 2, "unroll": 2}
    assert gemm_cost(ok).ok


# ---------------------------------------------------------------------------
# Trial log and report
# ---------------------------------------------------------------------------

def test_trial_log_round_trips(tmp_path: Path, bowl_space: Configurations) -> None:
    log = tmp_path / "runs" / "trials.ndjson"
    report = Tuner(
        bowl_space, _bowl, strategy="random", seed=2, max_rounds=10, log_path=log
    ).run()
    records = list(TrialLog(log))
    assert len(records) == report.rounds
    assert records[0]["config"] == report.trials[0].config

    trials = load_trials(log)
    assert [t.index for t in trials] == [t.index for t in report.trials]
    top = best_trials(trials, top=3)
    assert len(top) == 3
    assert [t.energy for t in top] == sorted(t.energy for t in top)
    table = format_table(top)
    assert "Rank" in table and "tile=" in table


def test_corrupt_log_lines_are_skipped(tmp_path: Path) -> None:
    log = tmp_path / "trials.ndjson"
    TrialLog(log).append({"round": 0, "index": 1, "config": {"x": 1}, "status": "ok", "energy": 2.0})
    with open(log, "a", encoding="utf-8") as f:
        f.write("{not json\n")
        f.write(json.dumps([1, 2, 3]) + "\n")
        f.write(json.dumps({"round": 1}) + "\n")
    trials = load_trials(log)
    assert len(trials) == 1
    assert trials[0].energy == 2.0
    assert load_trials(tmp_path / "missing.ndjson") == []


def test_trial_log_writes_non_finite_floats_as_null(tmp_path: Path) -> None:
    log = TrialLog(tmp_path / "trials.ndjson")
    log.append(
        {"round": 0, "index": 3, "config": {"x": 1}, "status": "ok", "energy": math.inf,
         "extra": [math.nan, 1.5]}
    )
    text = log.path.read_text(encoding="utf-8")
    assert "Infinity" not in text and "NaN" not in text
    (rec,) = list(log)
    assert rec["energy"] is None
    assert rec["extra"] == [None, 1.5]


def test_trial_log_rejects_incomplete_records(tmp_path: Path) -> None:
    log = TrialLog(tmp_path / "trials.ndjson")
    with pytest.raises(ValueError, match="status"):
        log.append({"round": 0, "index": 1, "config": {}})
    assert not log.path.exists()


def test_best_trials_skips_failures_and_duplicates(bowl_space: Configurations) -> None:
    report = Tuner(bowl_space, _bowl, strategy="annealing", max_rounds=60, seed=5).run()
    top = best_trials(report.trials, top=100)
    assert len({t.index for t in top}) == len(top)
    assert all(t.energy is not None for t in top)
