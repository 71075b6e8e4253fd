"""ktune: search strategies for kernel-parameter autotuning.

Usage::

    from ktune import ConfigSpace, Knob, Tuner

    space = ConfigSpace(knobs=(Knob("tile", (8, 16, 32)), Knob("vec", (1, 2, 4))))
    report = Tuner(space.materialize(), measure, strategy="annealing", seed=0).run()
    print(report.best_configuration, report.best_energy)
"""

from __future__ import annotations

from .energy import EnergyTable, EvalResult
from .search import (
    STRATEGIES,
    FullSearch,
    PSOSearch,
    RandomSearch,
    Searcher,
    SimulatedAnnealingSearcher,
    make_searcher,
)
from .space import Configuration, Configurations, ConfigSpace, Knob
from .tuner import Trial, Tuner, TuneReport, with_local_memory_limit

__version__ = "0.1.0"

__all__ = [
    "ConfigSpace",
    "Configuration",
    "Configurations",
    "EnergyTable",
    "EvalResult",
    "FullSearch",
    "Knob",
    "PSOSearch",
    "RandomSearch",
    "STRATEGIES",
    "Searcher",
    "SimulatedAnnealingSearcher",
    "Trial",
    "TuneReport",
    "Tuner",
    "make_searcher",
    "with_local_memory_limit",
]
