"""Synthetic GEMM tiling objective for running the tuner without a device."""

from __future__ import annotations

from collections.abc import Mapping
from math import ceil
from typing import Any

from .energy import EvalResult
from .space import ConfigSpace, Knob

M, N, K = 512, 512, 512
LOCAL_MEMORY_LIMIT = 16 * 1024  # bytes
_BYTES_PER_ELEMENT = 4


def gemm_space() -> ConfigSpace:
    """Tile sizes, vector width and unroll factor for a tiled matmul."""
    return ConfigSpace(
        knobs=(
            Knob("tile_m", (8, 16, 32, 64), default=16),
            Knob("tile_n", (16, 32, 64, 128), default=32),
            Knob("tile_k", (8, 16, 32), default=16),
            Knob("vector_width", (1, 2, 4), default=1),
            Knob("unroll", (1, 2, 4), default=1),
        ),
        constraints=(
            lambda c: c["tile_m"] * c["tile_n"] <= 4096,
            lambda c: c["tile_n"] % c["vector_width"] == 0,
        ),
    )


def gemm_local_memory(config: Mapping[str, Any]) -> int:
    """Bytes of local memory holding one A tile and one B tile."""
    tm, tn, tk = config["tile_m"], config["tile_n"], config["tile_k"]
    return (tm * tk + tk * tn) * _BYTES_PER_ELEMENT


def gemm_cost(config: Mapping[str, Any]) -> EvalResult:
    """Modelled runtime in microseconds (lower is better).

    Global traffic shrinks with larger tiles and wider vectors; register
    pressure grows with tile area times unroll and is penalized past a
    threshold. Over-limit local memory is reported infeasible.
    """
    used = gemm_local_memory(config)
    if used > LOCAL_MEMORY_LIMIT:
        return EvalResult.infeasible(f"local memory {used} B > {LOCAL_MEMORY_LIMIT} B")

    tm, tn, tk = config["tile_m"], config["tile_n"], config["tile_k"]
    vw, unroll = config["vector_width"], config["unroll"]

    blocks = ceil(M / tm) * ceil(N / tn)
    k_slabs = ceil(K / tk)
    traffic = blocks * k_slabs * (tm * tk + tk * tn) / vw
    compute = (M * N * K) / (64.0 * min(vw * unroll, 8))
    pressure = tm * tn * unroll
    penalty = 1.0 + max(0, pressure - 2048) / 2048.0

    return EvalResult.measured((2e-4 * traffic + 1e-3 * compute / 64.0) * penalty)
