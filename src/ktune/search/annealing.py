"""Simulated annealing over an indexed configuration space.

The walk moves between configurations that differ in a single parameter.
Improvements are always taken; a worse neighbour is taken with the
Metropolis probability ``exp(-(E_n - E_c) / T)``. The temperature falls
linearly from ``max_temperature`` to zero over ``budget`` rounds, so the
walk ends as a greedy descent that still drifts across plateaus of equal
energy.

Each round decides on the neighbour proposed in the previous round (the
tuner has evaluated it in between) and then proposes the next one. The
first round has nothing to decide and only proposes.
"""

from __future__ import annotations

import logging
import math
import random

from ..energy import EnergyTable
from ..space import Configurations
from .base import Searcher

logger = logging.getLogger("ktune.search")


class SimulatedAnnealingSearcher(Searcher):
    """Metropolis random walk with linear cooling.

    Args:
        configurations: The space to walk.
        energies: Shared energy table.
        fraction: Share of a configuration's neighbours sampled per round, in (0, 1].
        max_temperature: Initial temperature, > 0.
        budget: Number of rounds over which the temperature decays to zero.
            Defaults to the size of the space.
        seed: Seed for the searcher's own random generator.
        start_index: Index of the first working point.
    """

    name = "annealing"

    # Consecutive rounds without a move after which the walk is considered stuck.
    MAX_ALREADY_VISITED_STATES = 10

    def __init__(
        self,
        configurations: Configurations,
        energies: EnergyTable | None = None,
        *,
        fraction: float = 1.0,
        max_temperature: float = 4.0,
        budget: int | None = None,
        seed: int | None = None,
        start_index: int = 0,
    ) -> None:
        super().__init__(configurations, energies)
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")
        if not max_temperature > 0.0:
            raise ValueError(f"max_temperature must be > 0, got {max_temperature}")
        if budget is None:
            budget = len(configurations)
        if budget < 1:
            raise ValueError(f"budget must be >= 1, got {budget}")
        if not 0 <= start_index < len(configurations):
            raise ValueError(
                f"start_index {start_index} out of range [0, {len(configurations)})"
            )

        self.fraction = float(fraction)
        self.max_temperature = float(max_temperature)
        self.budget = int(budget)
        self.rng = random.Random(seed)

        self.current_state = start_index
        self.neighbour_state = start_index
        self.num_visited_states = 0
        self.num_already_visited_states = 0
        self.trace: list[tuple[int, int]] = []
        self._proposed = False

    @property
    def current_index(self) -> int:
        return self.neighbour_state

    @property
    def exhausted(self) -> bool:
        return self.num_already_visited_states > self.MAX_ALREADY_VISITED_STATES

    def temperature(self) -> float:
        progress = self.num_visited_states / self.budget
        return max(0.0, self.max_temperature * (1.0 - progress))

    def get_neighbours_of(self, reference: int) -> list[int]:
        """Sample ``ceil(fraction * n)`` of the ``n`` neighbours of ``reference``.

        The sample is drawn without replacement and keeps index order.
        """
        neighbours = self.configurations.neighbours_of(reference)
        if not neighbours:
            return []
        k = max(1, math.ceil(self.fraction * len(neighbours)))
        if k >= len(neighbours):
            return neighbours
        picked = self.rng.sample(range(len(neighbours)), k)
        return [neighbours[i] for i in sorted(picked)]

    @staticmethod
    def acceptance_probability(
        current_energy: float,
        neighbour_energy: float,
        temperature: float,
    ) -> float:
        if neighbour_energy < current_energy:
            return 1.0
        if neighbour_energy == current_energy:
            # Also covers two infeasible (+inf) states.
            return 1.0
        if temperature <= 0.0:
            return 0.0
        p = math.exp(-(neighbour_energy - current_energy) / temperature)
        return min(1.0, max(0.0, p))

    def _advance(self) -> None:
        temperature = self.temperature()

        if self._proposed:
            previous = self.current_state
            if self.neighbour_state != self.current_state:
                e_cur = self.energies.require(self.current_state)
                e_nb = self.energies.require(self.neighbour_state)
                p = self.acceptance_probability(e_cur, e_nb, temperature)
                r = self.rng.random()
                if r < p:
                    self.current_state = self.neighbour_state
                logger.debug(
                    "anneal round=%d T=%.4g current=%d (%.6g) neighbour=%d (%.6g) p=%.3g r=%.3g -> %s",
                    self.num_visited_states,
                    temperature,
                    previous,
                    e_cur,
                    self.neighbour_state,
                    e_nb,
                    p,
                    r,
                    "accept" if r < p else "reject",
                )

            if self.current_state == previous:
                self.num_already_visited_states += 1
            else:
                self.num_already_visited_states = 0

        neighbours = self.get_neighbours_of(self.current_state)
        if neighbours:
            self.neighbour_state = self.rng.choice(neighbours)
        else:
            # Nothing to move to: re-visit the current state.
            self.neighbour_state = self.current_state
        self._proposed = True

        self.num_visited_states += 1
        self.trace.append((self.current_state, self.neighbour_state))
