"""Search strategies and the name -> strategy registry."""

from __future__ import annotations

import inspect
from typing import Any

from ..energy import EnergyTable
from ..space import Configurations
from .annealing import SimulatedAnnealingSearcher
from .base import Searcher
from .full import FullSearch
from .pso import PSOSearch
from .random_search import RandomSearch

STRATEGIES: dict[str, type[Searcher]] = {
    "full": FullSearch,
    "random": RandomSearch,
    "annealing": SimulatedAnnealingSearcher,
    "pso": PSOSearch,
}


def make_searcher(
    name: str,
    configurations: Configurations,
    energies: EnergyTable | None = None,
    **options: Any,
) -> Searcher:
    """Instantiate a registered strategy.

    Options a strategy does not take (e.g. ``seed`` for ``full``) are dropped,
    so callers can pass one option set regardless of strategy.
    """
    try:
        cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown strategy {name!r}. Expected one of: {', '.join(sorted(STRATEGIES))}"
        ) from None

    params = inspect.signature(cls.__init__).parameters
    kwargs = {k: v for k, v in options.items() if k in params}
    return cls(configurations, energies, **kwargs)


__all__ = [
    "FullSearch",
    "PSOSearch",
    "RandomSearch",
    "STRATEGIES",
    "Searcher",
    "SimulatedAnnealingSearcher",
    "make_searcher",
]
