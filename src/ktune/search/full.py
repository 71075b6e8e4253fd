"""Exhaustive search in index order."""

from __future__ import annotations

from ..energy import EnergyTable
from ..space import Configurations
from .base import Searcher


class FullSearch(Searcher):
    """Try every configuration in the space, lowest index first."""

    name = "full"

    def __init__(self, configurations: Configurations, energies: EnergyTable | None = None) -> None:
        super().__init__(configurations, energies)
        self._index = 0

    @property
    def current_index(self) -> int:
        return self._index

    def _advance(self) -> None:
        # Stay on the last index once the scan is complete.
        if self._index < len(self.configurations) - 1:
            self._index += 1

    @property
    def exhausted(self) -> bool:
        return self._rounds >= len(self.configurations)
