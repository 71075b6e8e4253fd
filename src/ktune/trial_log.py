"""Append-only log of tuning trials, one JSON object per line."""
from __future__ import annotations

import json
import math
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

REQUIRED_FIELDS = ("round", "index", "config", "status")


def _finite(value: Any) -> Any:
    """Replace inf/NaN with None, recursing into containers."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {str(k): _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    return value


class TrialLog:
    """NDJSON file of trial records.

    Failed trials carry infinite energies in memory; they are written as
    ``null`` so every line stays strict JSON. Reading skips lines that are
    truncated, not objects, or missing a required trial field.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, record: Mapping[str, Any]) -> None:
        missing = [f for f in REQUIRED_FIELDS if f not in record]
        if missing:
            raise ValueError(f"trial record missing {', '.join(missing)}")
        line = json.dumps(_finite(record), ensure_ascii=False, separators=(",", ":"))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())

    def __iter__(self) -> Iterator[dict[str, Any]]:
        if not self.path.exists():
            return
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(rec, dict) and all(k in rec for k in REQUIRED_FIELDS):
                    yield rec
