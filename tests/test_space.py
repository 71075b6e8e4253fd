"""Tests for knobs, config spaces and the indexed configuration collection."""

from __future__ import annotations

import pytest

from ktune.space import Configuration, Configurations, ConfigSpace, Knob

# ---------------------------------------------------------------------------
# Knob / ConfigSpace
# ---------------------------------------------------------------------------

def test_knob_default_is_first_value() -> None:
    assert Knob("vec", (1, 2, 4)).default == 1


@pytest.mark.parametrize(
    "values, default",
    [((), None), ((1, 1, 2), None), ((1, 2), 3)],
)
def test_knob_rejects_bad_definitions(values: tuple, default: object) -> None:
    with pytest.raises(ValueError):
        Knob("k", values, default=default)


def test_enumerate_all_applies_constraints_in_knob_order() -> None:
    space = ConfigSpace(
        knobs=(Knob("a", (1, 2)), Knob("b", (10, 20))),
        constraints=(lambda c: not (c["a"] == 2 and c["b"] == 20),),
    )
    assert space.total_configs == 4
    assert space.enumerate_all() == [
        {"a": 1, "b": 10},
        {"a": 1, "b": 20},
        {"a": 2, "b": 10},
    ]
    assert space.config_key({"b": 20, "a": 1}) == (1, 20)
    assert space.default_config() == {"a": 1, "b": 10}


def test_materialize_rejects_fully_constrained_space() -> None:
    space = ConfigSpace(knobs=(Knob("a", (1, 2)),), constraints=(lambda c: False,))
    with pytest.raises(ValueError, match="empty"):
        space.materialize()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_configuration_structural_equality_and_hash() -> None:
    a = Configuration({"x": 1, "y": 2})
    b = Configuration([("x", 1), ("y", 2)])
    assert a == b
    assert a == {"x": 1, "y": 2}
    assert hash(a) == hash(b)
    assert a != {"x": 1, "y": 3}
    assert list(a) == ["x", "y"]
    assert a.key() == (1, 2)


def test_configuration_is_read_only() -> None:
    c = Configuration({"x": 1})
    with pytest.raises(TypeError):
        c["x"] = 2  # type: ignore[index]


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def grid() -> Configurations:
    space = ConfigSpace.from_dict(
        {"tile": [8, 16, 32], "vec": [1, 2], "unroll": [1, 4]},
        constraints=[lambda c: not (c["tile"] == 32 and c["vec"] == 2)],
    )
    return space.materialize()


def test_configurations_are_densely_indexed(grid: Configurations) -> None:
    assert grid.size() == len(grid) == 10
    for i, c in enumerate(grid):
        assert grid.at(i) == c
        assert grid[i] == c
        assert grid.index_of(c) == i
    assert grid.index_of({"tile": 32, "vec": 2, "unroll": 1}) is None
    assert grid.index_of({"tile": 8}) is None


@pytest.mark.parametrize("index", [-1, 10, 100])
def test_at_is_range_checked(grid: Configurations, index: int) -> None:
    with pytest.raises(IndexError):
        grid.at(index)


def test_neighbours_differ_in_exactly_one_parameter(grid: Configurations) -> None:
    for i in range(len(grid)):
        ref = grid.at(i)
        neighbours = grid.neighbours_of(i)
        assert i not in neighbours
        assert neighbours == sorted(set(neighbours))
        for j in neighbours:
            assert 0 <= j < len(grid)
            diff = [k for k in ref if ref[k] != grid.at(j)[k]]
            assert len(diff) == 1
        # Every legal Hamming-1 configuration is present.
        expected = [
            j for j in range(len(grid))
            if sum(ref[k] != grid.at(j)[k] for k in ref) == 1
        ]
        assert neighbours == expected


def test_neighbours_skip_illegal_configurations(grid: Configurations) -> None:
    i = grid.index_of({"tile": 32, "vec": 1, "unroll": 1})
    assert i is not None
    names = [grid.at(j).to_dict() for j in grid.neighbours_of(i)]
    assert {"tile": 32, "vec": 2, "unroll": 1} not in names
    assert {"tile": 32, "vec": 1, "unroll": 4} in names


def test_single_configuration_has_no_neighbours() -> None:
    configs = Configurations([{"x": 1}])
    assert configs.neighbours_of(0) == []


def test_configurations_reject_empty_and_inconsistent_input() -> None:
    with pytest.raises(ValueError):
        Configurations([])
    with pytest.raises(ValueError):
        Configurations([{"x": 1}, {"y": 1}])
    with pytest.raises(ValueError, match="duplicate"):
        Configurations([{"x": 1}, {"x": 1}])


def test_knobs_inferred_without_space() -> None:
    configs = Configurations([{"x": 1, "y": "a"}, {"x": 2, "y": "a"}, {"x": 2, "y": "b"}])
    assert configs.parameter_names == ("x", "y")
    assert configs.knobs[0].values == (1, 2)
    assert configs.knobs[1].values == ("a", "b")
    assert configs.neighbours_of(0) == [1]
