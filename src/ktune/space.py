"""Config space with typed knobs, constraints, and an indexed materialization."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any


class Configuration(Mapping[str, Any]):
    """One immutable point in the tuning space.

    Behaves like a read-only ``dict`` that remembers knob order. Equality is
    structural, so ``Configuration({"x": 1}) == {"x": 1}``.
    """

    __slots__ = ("_items", "_lookup")

    def __init__(self, values: Mapping[str, Any] | Sequence[tuple[str, Any]]) -> None:
        items = tuple(values.items()) if isinstance(values, Mapping) else tuple(values)
        self._items: tuple[tuple[str, Any], ...] = items
        self._lookup: dict[str, Any] = dict(items)

    def __getitem__(self, name: str) -> Any:
        return self._lookup[name]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Configuration):
            return self._lookup == other._lookup
        if isinstance(other, Mapping):
            return self._lookup == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._items)
        return f"Configuration({inner})"

    def key(self) -> tuple[Any, ...]:
        """Parameter values in knob order."""
        return tuple(v for _, v in self._items)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._items)


@dataclass(frozen=True)
class Knob:
    """A single tunable parameter with a finite set of valid values."""

    name: str
    values: tuple[Any, ...]
    default: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))
        if not self.values:
            raise ValueError(f"knob {self.name!r} has no values")
        if len(set(self.values)) != len(self.values):
            raise ValueError(f"knob {self.name!r} has duplicate values {self.values}")
        if self.default is None:
            object.__setattr__(self, "default", self.values[0])
        if self.default not in self.values:
            raise ValueError(f"default {self.default!r} not in values {self.values}")


@dataclass(frozen=True)
class ConfigSpace:
    """Parameterized search space with hard constraints."""

    knobs: tuple[Knob, ...]
    constraints: tuple[Callable[[dict[str, Any]], bool], ...] = ()

    @classmethod
    def from_dict(
        cls,
        knob_values: Mapping[str, Sequence[Any]],
        constraints: Sequence[Callable[[dict[str, Any]], bool]] = (),
    ) -> ConfigSpace:
        """Build a space from ``{"name": [values, ...]}``."""
        knobs = tuple(Knob(name, tuple(values)) for name, values in knob_values.items())
        return cls(knobs=knobs, constraints=tuple(constraints))

    @property
    def total_configs(self) -> int:
        """Upper bound on configs (before constraint filtering)."""
        n = 1
        for k in self.knobs:
            n *= len(k.values)
        return n

    def default_config(self) -> dict[str, Any]:
        return {k.name: k.default for k in self.knobs}

    def is_valid(self, config: dict[str, Any]) -> bool:
        for c in self.constraints:
            if not c(config):
                return False
        return True

    def enumerate_all(self) -> list[dict[str, Any]]:
        """Enumerate all valid configs in knob order."""
        configs: list[dict[str, Any]] = [{}]
        for k in self.knobs:
            new_configs = []
            for c in configs:
                for v in k.values:
                    nc = dict(c)
                    nc[k.name] = v
                    new_configs.append(nc)
            configs = new_configs
        return [c for c in configs if self.is_valid(c)]

    def config_key(self, config: Mapping[str, Any]) -> tuple[Any, ...]:
        """Hashable key for deduplication."""
        return tuple(config[k.name] for k in self.knobs)

    def materialize(self) -> Configurations:
        """Enumerate the legal configurations into an indexed collection.

        Raises:
            ValueError: If the constraints reject every configuration.
        """
        return Configurations(self.enumerate_all(), knobs=self.knobs)


class Configurations(Sequence[Configuration]):
    """Ordered, fully materialized configurations with dense stable indices.

    Indices ``0..N-1`` are assigned once at construction. Neighbours are
    configurations at Hamming distance 1, i.e. differing in exactly one
    parameter value.
    """

    def __init__(
        self,
        configs: Sequence[Mapping[str, Any]],
        *,
        knobs: Sequence[Knob] | None = None,
    ) -> None:
        if not configs:
            raise ValueError("configuration space is empty")

        self._configs: tuple[Configuration, ...] = tuple(Configuration(c) for c in configs)
        names = tuple(self._configs[0])
        for i, c in enumerate(self._configs):
            if tuple(c) != names:
                raise ValueError(
                    f"configuration {i} has parameters {tuple(c)}, expected {names}"
                )

        if knobs is None:
            # Legal alternatives per dimension, in first-seen order.
            seen: dict[str, list[Any]] = {n: [] for n in names}
            for c in self._configs:
                for n in names:
                    if c[n] not in seen[n]:
                        seen[n].append(c[n])
            knobs = [Knob(n, tuple(vs)) for n, vs in seen.items()]
        self._knobs: tuple[Knob, ...] = tuple(knobs)

        self._index: dict[tuple[Any, ...], int] = {}
        for i, c in enumerate(self._configs):
            key = c.key()
            if key in self._index:
                raise ValueError(f"duplicate configuration at index {i}: {c!r}")
            self._index[key] = i
        self._neighbour_cache: dict[int, list[int]] = {}

    def __len__(self) -> int:
        return len(self._configs)

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return list(self._configs[index])
        return self.at(index)

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self._configs)

    def size(self) -> int:
        return len(self._configs)

    def at(self, index: int) -> Configuration:
        """Return the configuration at ``index``.

        Raises:
            IndexError: If ``index`` is outside ``[0, size())``.
        """
        if not 0 <= index < len(self._configs):
            raise IndexError(f"configuration index {index} out of range [0, {len(self._configs)})")
        return self._configs[index]

    @property
    def knobs(self) -> tuple[Knob, ...]:
        """Parameter dimensions with their discrete legal alternatives."""
        return self._knobs

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(k.name for k in self._knobs)

    def index_of(self, config: Mapping[str, Any]) -> int | None:
        try:
            key = tuple(config[k.name] for k in self._knobs)
        except KeyError:
            return None
        return self._index.get(key)

    def neighbours_of(self, index: int) -> list[int]:
        """All indices differing from ``index`` in exactly one parameter.

        Returned in ascending index order; never contains ``index`` itself.
        """
        if index in self._neighbour_cache:
            return list(self._neighbour_cache[index])

        ref = self.at(index).key()
        out: list[int] = []
        for dim, knob in enumerate(self._knobs):
            for value in knob.values:
                if value == ref[dim]:
                    continue
                key = ref[:dim] + (value,) + ref[dim + 1:]
                j = self._index.get(key)
                if j is not None:
                    out.append(j)
        out.sort()
        self._neighbour_cache[index] = out
        return list(out)
