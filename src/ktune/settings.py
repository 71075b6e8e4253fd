"""Run settings with environment-variable overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

_ENV_STRATEGY = "KTUNE_STRATEGY"
_ENV_SEED = "KTUNE_SEED"
_ENV_MAX_ROUNDS = "KTUNE_MAX_ROUNDS"
_ENV_LOG_LEVEL = "KTUNE_LOG_LEVEL"
_ENV_TRIALS_PATH = "KTUNE_TRIALS_PATH"


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Defaults for a tuning run; CLI flags take precedence."""

    strategy: str = "annealing"
    seed: int | None = None
    max_rounds: int | None = None
    log_level: str = "warning"
    trials_path: Path | None = None

    @classmethod
    def from_env(cls) -> Settings:
        s = cls()
        strategy = os.environ.get(_ENV_STRATEGY, "").strip().lower()
        if strategy:
            s.strategy = strategy
        s.seed = _env_int(_ENV_SEED)
        s.max_rounds = _env_int(_ENV_MAX_ROUNDS)
        level = os.environ.get(_ENV_LOG_LEVEL, "").strip().lower()
        if level:
            s.log_level = level
        path = os.environ.get(_ENV_TRIALS_PATH, "").strip()
        if path:
            s.trials_path = Path(path)
        return s


def configure_logging(level: str = "warning") -> None:
    """Send ``ktune.*`` log records to stderr at ``level``."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level {level!r}")
    logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logging.getLogger("ktune").setLevel(numeric)
