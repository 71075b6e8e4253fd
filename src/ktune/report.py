"""Summaries of tuning trials for the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .trial_log import TrialLog
from .tuner import Trial


def load_trials(path: str | Path) -> list[Trial]:
    """Read a trial log written by :class:`ktune.tuner.Tuner`."""
    trials: list[Trial] = []
    for rec in TrialLog(path):
        try:
            trials.append(
                Trial(
                    round=int(rec["round"]),
                    index=int(rec["index"]),
                    config=dict(rec["config"]),
                    status=str(rec["status"]),
                    energy=None if rec.get("energy") is None else float(rec["energy"]),
                    reason=rec.get("reason"),
                    cached=bool(rec.get("cached", False)),
                    elapsed_s=float(rec.get("elapsed_s", 0.0)),
                )
            )
        except (KeyError, TypeError, ValueError):
            continue
    return trials


def best_trials(trials: list[Trial], top: int = 10) -> list[Trial]:
    """Distinct measured configurations, lowest energy first."""
    seen: set[int] = set()
    out: list[Trial] = []
    for t in trials:
        if t.energy is None or t.index in seen:
            continue
        seen.add(t.index)
        out.append(t)
    out.sort(key=lambda t: (t.energy, t.index))
    return out[:top]


def fmt_config(config: dict[str, Any]) -> str:
    """Format a config dict as a compact string."""
    parts = []
    for k, v in config.items():
        if isinstance(v, bool):
            parts.append(f"{k}={'Y' if v else 'N'}")
        else:
            parts.append(f"{k}={v}")
    return " ".join(parts)


def format_table(trials: list[Trial]) -> str:
    lines = [
        f"  {'Rank':>4s}  {'Index':>6s}  {'Energy':>12s}  Config",
        f"  {'-' * 4}  {'-' * 6}  {'-' * 12}  {'-' * 40}",
    ]
    for i, t in enumerate(trials):
        lines.append(f"  {i + 1:4d}  {t.index:6d}  {t.energy:12.4f}  {fmt_config(t.config)}")
    return "\n".join(lines)


def status_counts(trials: list[Trial]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for t in trials:
        if t.cached:
            continue
        counts[t.status] = counts.get(t.status, 0) + 1
    return counts
