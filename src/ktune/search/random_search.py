"""Uniform random sampling without replacement."""

from __future__ import annotations

import random

from ..energy import EnergyTable
from ..space import Configurations
from .base import Searcher


class RandomSearch(Searcher):
    """Visit a seeded random permutation of the space.

    Only the first ``max(1, int(fraction * N))`` configurations of the
    permutation are visited.
    """

    name = "random"

    def __init__(
        self,
        configurations: Configurations,
        energies: EnergyTable | None = None,
        *,
        fraction: float = 1.0,
        seed: int | None = None,
    ) -> None:
        super().__init__(configurations, energies)
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")
        self.fraction = float(fraction)
        self.rng = random.Random(seed)
        self._order = list(range(len(configurations)))
        self.rng.shuffle(self._order)
        self._order = self._order[: self.budget]
        self._pos = 0

    @property
    def budget(self) -> int:
        return max(1, int(len(self.configurations) * self.fraction))

    @property
    def current_index(self) -> int:
        return self._order[self._pos]

    def _advance(self) -> None:
        if self._pos < len(self._order) - 1:
            self._pos += 1

    @property
    def exhausted(self) -> bool:
        return self._rounds >= len(self._order)
