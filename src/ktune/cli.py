"""CLI for ktune: search kernel-parameter spaces.

Usage:
    python -m ktune run --demo --strategy annealing --seed 0
    python -m ktune run --space space.json --objective mypkg.bench:measure --out trials.ndjson
    python -m ktune strategies
    python -m ktune report trials.ndjson --top 5
"""

from __future__ import annotations

import argparse
import importlib
import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .report import best_trials, fmt_config, format_table, load_trials, status_counts
from .search import STRATEGIES
from .settings import Settings, configure_logging
from .space import ConfigSpace, Configurations
from .tuner import Tuner


def load_callable(path: str) -> Callable[..., Any]:
    """Resolve ``"package.module:function"`` to the named callable."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected 'module:function', got {path!r}")
    module = importlib.import_module(module_name)
    fn = getattr(module, attr, None)
    if not callable(fn):
        raise ValueError(f"{path!r} does not name a callable")
    return fn


def load_space(path: str | Path) -> ConfigSpace:
    """Read ``{"knobs": {name: [values]}, "constraints": ["mod:fn", ...]}``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    knobs = data.get("knobs")
    if not isinstance(knobs, dict) or not knobs:
        raise ValueError(f"{path}: 'knobs' must be a non-empty object")
    constraints = [load_callable(c) for c in data.get("constraints", [])]
    return ConfigSpace.from_dict(knobs, constraints)


def _run(args: argparse.Namespace) -> None:
    """Tune a space against an objective and print the best configurations."""
    if args.demo:
        from .toy import gemm_cost, gemm_space

        space = gemm_space()
        objective: Callable[..., Any] = gemm_cost
        label = "demo GEMM"
    else:
        if not args.space or not args.objective:
            raise SystemExit("run: --space and --objective are required without --demo")
        space = load_space(args.space)
        objective = load_callable(args.objective)
        label = str(args.space)

    configurations: Configurations = space.materialize()
    print(f"ktune: {label}")
    print(f"  Config space: {space.total_configs} total, {len(configurations)} valid")
    print(f"  Strategy: {args.strategy}")

    options: dict[str, Any] = {"fraction": args.fraction}
    if args.max_temperature is not None:
        options["max_temperature"] = args.max_temperature
    if args.swarm_size is not None:
        options["swarm_size"] = args.swarm_size

    tuner = Tuner(
        configurations,
        objective,
        strategy=args.strategy,
        max_rounds=args.rounds,
        seed=args.seed,
        log_path=args.out,
        **options,
    )

    t0 = time.time()
    report = tuner.run()
    elapsed = time.time() - t0

    print(f"\n{'=' * 70}")
    print(f"  RESULTS: {args.strategy}")
    print(f"{'=' * 70}")
    print(f"  Rounds: {report.rounds} ({report.num_evaluated} evaluated, stop: {report.stop_reason})")
    print(f"  Time: {elapsed:.2f}s")
    counts = status_counts(report.trials)
    print("  Outcomes: " + ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))

    top = best_trials(report.trials, args.top)
    if top:
        print()
        print(format_table(top))
    else:
        print("  No feasible configs found!")
    if report.best_configuration is not None:
        print(f"\n  Best: {fmt_config(report.best_configuration.to_dict())} -> {report.best_energy:.4f}")
    if args.out:
        print(f"  Trials written to {args.out}")
    print(f"{'=' * 70}\n")


def _strategies(_args: argparse.Namespace) -> None:
    """List available search strategies."""
    print("Available strategies:")
    for name, cls in STRATEGIES.items():
        doc = (cls.__doc__ or "").strip().splitlines()
        print(f"  {name:10s}  {doc[0] if doc else ''}")


def _report(args: argparse.Namespace) -> None:
    """Summarize a trial log."""
    trials = load_trials(args.path)
    if not trials:
        print(f"No trials in {args.path}")
        return
    counts = status_counts(trials)
    print(f"{args.path}: {len(trials)} rounds")
    print("  Outcomes: " + ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    top = best_trials(trials, args.top)
    if top:
        print(format_table(top))
    else:
        print("  No feasible configs found!")


def build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    s = settings if settings is not None else Settings.from_env()

    parser = argparse.ArgumentParser(
        prog="ktune",
        description="Search kernel-parameter spaces for the fastest configuration",
    )
    parser.add_argument(
        "--log-level",
        default=s.log_level,
        choices=["debug", "info", "warning", "error"],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Run a tuning search")
    p_run.add_argument("--space", default=None, help="JSON file describing knobs and constraints")
    p_run.add_argument("--objective", default=None, help="Objective as module:function")
    p_run.add_argument("--demo", action="store_true", help="Use the built-in synthetic GEMM objective")
    p_run.add_argument("--strategy", default=s.strategy, choices=sorted(STRATEGIES))
    p_run.add_argument("--rounds", type=int, default=s.max_rounds)
    p_run.add_argument("--seed", type=int, default=s.seed)
    p_run.add_argument("--fraction", type=float, default=1.0)
    p_run.add_argument("--max-temperature", type=float, default=None)
    p_run.add_argument("--swarm-size", type=int, default=None)
    p_run.add_argument("--top", type=int, default=10)
    p_run.add_argument(
        "--out",
        type=Path,
        default=s.trials_path,
        help="Append one NDJSON record per trial to this file",
    )
    p_run.set_defaults(func=_run)

    p_list = sub.add_parser("strategies", help="List search strategies")
    p_list.set_defaults(func=_strategies)

    p_report = sub.add_parser("report", help="Summarize a trial log")
    p_report.add_argument("path", type=Path)
    p_report.add_argument("--top", type=int, default=10)
    p_report.set_defaults(func=_report)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
