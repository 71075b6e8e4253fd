"""The contract every exploration strategy implements."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..energy import EnergyTable
from ..space import Configuration, Configurations


class Searcher(ABC):
    """Strategy interface driven by the tuner.

    Calls strictly alternate: ``get_configuration`` -> evaluate ->
    record energy -> ``calculate_next_index`` -> ``get_configuration`` ...

    Args:
        configurations: The fully materialized space to search.
        energies: Shared energy table; the tuner fills it, the searcher reads it.
    """

    name: str = "base"

    def __init__(self, configurations: Configurations, energies: EnergyTable | None = None) -> None:
        if len(configurations) == 0:
            raise ValueError("cannot search an empty configuration space")
        if energies is None:
            energies = EnergyTable(len(configurations))
        if len(energies) != len(configurations):
            raise ValueError(
                f"energy table size {len(energies)} does not match "
                f"{len(configurations)} configurations"
            )
        self.configurations = configurations
        self.energies = energies
        self._rounds = 0

    @property
    @abstractmethod
    def current_index(self) -> int:
        """Index of the configuration to evaluate next."""

    def get_configuration(self) -> Configuration:
        """Return the configuration to evaluate. Does not change state."""
        return self.configurations.at(self.current_index)

    def calculate_next_index(self) -> None:
        """Advance the search by one round."""
        self._advance()
        self._rounds += 1

    @abstractmethod
    def _advance(self) -> None:
        ...

    def num_configurations(self) -> int:
        """Rounds attempted so far in this run."""
        return self._rounds

    @property
    def exhausted(self) -> bool:
        """True once the strategy has nothing new to propose."""
        return False
