"""Evaluation outcomes and the energy table shared by tuner and searchers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

import numpy as np

EvalStatus = Literal["ok", "infeasible", "build_error", "runtime_error"]

_STATUSES = ("ok", "infeasible", "build_error", "runtime_error")


@dataclass(frozen=True)
class EvalResult:
    """Outcome of realizing one configuration on the execution layer.

    Anything other than ``"ok"`` carries no usable energy; its ``cost`` is
    ``+inf`` so an annealing step never moves onto it from a feasible state.
    """

    status: EvalStatus
    energy: float = math.inf
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.status not in _STATUSES:
            raise ValueError(f"unknown evaluation status {self.status!r}")
        if self.status == "ok" and math.isnan(self.energy):
            raise ValueError("measured energy is NaN")

    @classmethod
    def measured(cls, energy: float) -> EvalResult:
        return cls(status="ok", energy=float(energy))

    @classmethod
    def infeasible(cls, reason: str) -> EvalResult:
        return cls(status="infeasible", reason=reason)

    @classmethod
    def build_error(cls, reason: str) -> EvalResult:
        return cls(status="build_error", reason=reason)

    @classmethod
    def runtime_error(cls, reason: str) -> EvalResult:
        return cls(status="runtime_error", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def cost(self) -> float:
        return float(self.energy) if self.ok else math.inf


class EnergyTable:
    """Index -> energy lookup; NaN marks configurations not yet evaluated.

    The tuner writes after every evaluation, searchers read during
    ``calculate_next_index``.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"energy table size must be >= 1, got {size}")
        self._energies = np.full(int(size), np.nan, dtype=np.float64)

    def __len__(self) -> int:
        return int(self._energies.shape[0])

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self):
            raise IndexError(f"energy index {index} out of range [0, {len(self)})")

    def record(self, index: int, result: EvalResult | float) -> float:
        """Store the energy for ``index`` and return what was stored."""
        self._check(index)
        if isinstance(result, EvalResult):
            value = result.cost
        else:
            value = float(result)
            if math.isnan(value):
                raise ValueError(f"energy for index {index} is NaN")
        self._energies[index] = value
        return value

    def has(self, index: int) -> bool:
        self._check(index)
        return not bool(np.isnan(self._energies[index]))

    def get(self, index: int) -> float | None:
        self._check(index)
        value = self._energies[index]
        return None if np.isnan(value) else float(value)

    def require(self, index: int) -> float:
        """Return the energy for ``index``, which must already be evaluated."""
        value = self.get(index)
        if value is None:
            raise RuntimeError(
                f"energy for configuration {index} requested before it was evaluated"
            )
        return value

    @property
    def num_evaluated(self) -> int:
        return int(np.count_nonzero(~np.isnan(self._energies)))

    def best(self) -> tuple[int, float] | None:
        """Lowest finite energy as ``(index, energy)``; ties go to the lower index."""
        finite = np.isfinite(self._energies)
        if not finite.any():
            return None
        masked = np.where(finite, self._energies, np.inf)
        idx = int(np.argmin(masked))
        return idx, float(masked[idx])

    def clear(self) -> None:
        self._energies.fill(np.nan)
