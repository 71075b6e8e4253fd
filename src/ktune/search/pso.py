"""Discrete particle-swarm search."""

from __future__ import annotations

import logging
import math
import random
from typing import Any

from ..energy import EnergyTable
from ..space import Configurations
from .base import Searcher

logger = logging.getLogger("ktune.search")


class PSOSearch(Searcher):
    """Particle swarm over discrete parameter values.

    Particles are visited round-robin. After a particle's position has been
    evaluated, its personal best and the swarm's global best are updated and
    the particle moves: each parameter independently copies the global best
    with probability ``influence_global``, else the particle's own best with
    ``influence_local``, else jumps to a random legal value with
    ``influence_random``, else stays. A move that lands outside the legal
    space is replaced by a random legal configuration.

    Parameters
    ----------
    fraction : float
        Share of the space to spend as round budget, in (0, 1].
    swarm_size : int
        Number of particles.
    influence_global, influence_local, influence_random : float
        Per-parameter move probabilities, each in [0, 1].
    seed : int, optional
        Seed for the searcher's own random generator.
    """

    name = "pso"

    def __init__(
        self,
        configurations: Configurations,
        energies: EnergyTable | None = None,
        *,
        fraction: float = 1.0,
        swarm_size: int = 4,
        influence_global: float = 0.1,
        influence_local: float = 0.3,
        influence_random: float = 0.6,
        seed: int | None = None,
    ) -> None:
        super().__init__(configurations, energies)
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")
        if swarm_size < 1:
            raise ValueError(f"swarm_size must be >= 1, got {swarm_size}")
        for label, value in (
            ("influence_global", influence_global),
            ("influence_local", influence_local),
            ("influence_random", influence_random),
        ):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{label} must be in [0, 1], got {value}")

        self.fraction = float(fraction)
        self.influence_global = float(influence_global)
        self.influence_local = float(influence_local)
        self.influence_random = float(influence_random)
        self.rng = random.Random(seed)

        n = len(configurations)
        self.positions = [self.rng.randrange(n) for _ in range(swarm_size)]
        self.local_best = list(self.positions)
        self.local_best_energy = [math.inf] * swarm_size
        self.global_best: int | None = None
        self.global_best_energy = math.inf
        self._particle = 0

    @property
    def budget(self) -> int:
        return max(1, int(len(self.configurations) * self.fraction))

    @property
    def swarm_size(self) -> int:
        return len(self.positions)

    @property
    def current_index(self) -> int:
        return self.positions[self._particle]

    @property
    def exhausted(self) -> bool:
        return self._rounds >= self.budget

    def _advance(self) -> None:
        i = self._particle
        pos = self.positions[i]
        energy = self.energies.require(pos)

        if energy < self.local_best_energy[i]:
            self.local_best[i] = pos
            self.local_best_energy[i] = energy
        if energy < self.global_best_energy:
            self.global_best = pos
            self.global_best_energy = energy

        self.positions[i] = self._move(i)
        logger.debug(
            "pso particle=%d from=%d (%.6g) to=%d global_best=%s",
            i,
            pos,
            energy,
            self.positions[i],
            self.global_best,
        )
        self._particle = (i + 1) % self.swarm_size

    def _move(self, particle: int) -> int:
        current = self.configurations.at(self.positions[particle])
        local = self.configurations.at(self.local_best[particle])
        best = (
            self.configurations.at(self.global_best)
            if self.global_best is not None
            else None
        )

        moved: dict[str, Any] = {}
        for knob in self.configurations.knobs:
            r = self.rng.random()
            if best is not None and r < self.influence_global:
                moved[knob.name] = best[knob.name]
            elif self.rng.random() < self.influence_local:
                moved[knob.name] = local[knob.name]
            elif self.rng.random() < self.influence_random:
                moved[knob.name] = self.rng.choice(knob.values)
            else:
                moved[knob.name] = current[knob.name]

        index = self.configurations.index_of(moved)
        if index is None:
            index = self.rng.randrange(len(self.configurations))
        return index
