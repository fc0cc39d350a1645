import math

import numpy as np
import pytest

from evolve_sim.core.geometry import Point
from evolve_sim.chemistry.source import ChemicalSource
from evolve_sim.chemistry.grid import (
    ConcentrationGrid, compute_gradient, evaluate_sources,
)


def sources_at(*specs):
    return [ChemicalSource.create(Point(x, y), s, d) for x, y, s, d in specs]


def test_grid_shape_covers_world():
    grid = ConcentrationGrid(100.0, 50.0, 5.0)
    assert (grid.nx, grid.ny) == (21, 11)
    assert grid.values.shape == (21, 11)
    assert grid.max_x == pytest.approx(100.0)


def test_grid_values_are_read_only():
    grid = ConcentrationGrid(10.0, 10.0, 5.0)
    with pytest.raises(ValueError):
        grid.values[0, 0] = 1.0


def test_nodes_match_direct_evaluation():
    srcs = sources_at((20.0, 30.0, 100.0, 0.01), (70.0, 60.0, 50.0, 0.002))
    grid = ConcentrationGrid.from_sources(100.0, 100.0, 5.0, srcs)
    for i, j in [(0, 0), (4, 6), (14, 12), (20, 20)]:
        p = grid.node_position(i, j)
        direct = sum(s.concentration_at(p) for s in srcs)
        assert grid.concentration_at(p) == pytest.approx(direct)


def test_bilinear_interpolation_between_nodes():
    values = np.zeros((3, 3))
    values[1, 1] = 4.0
    grid = ConcentrationGrid(10.0, 10.0, 5.0, values)
    assert grid.value_at(5.0, 5.0) == pytest.approx(4.0)
    assert grid.value_at(2.5, 5.0) == pytest.approx(2.0)
    assert grid.value_at(2.5, 2.5) == pytest.approx(1.0)


def test_outside_grid_is_zero():
    srcs = sources_at((5.0, 5.0, 100.0, 0.0))
    grid = ConcentrationGrid.from_sources(10.0, 10.0, 5.0, srcs)
    assert grid.value_at(-0.1, 5.0) == 0.0
    assert grid.value_at(5.0, 10.1) == 0.0
    # Last node line needs no neighbour
    assert grid.value_at(10.0, 10.0) == pytest.approx(100.0)


def test_empty_source_list_is_zero_everywhere():
    grid = ConcentrationGrid.from_sources(50.0, 50.0, 5.0, [])
    assert grid.max_value == 0.0
    assert grid.concentration_at(Point(25.0, 25.0)) == 0.0


def test_batch_sample_matches_scalar_lookup():
    srcs = sources_at((20.0, 30.0, 100.0, 0.01), (70.0, 60.0, 50.0, 0.002))
    grid = ConcentrationGrid.from_sources(100.0, 100.0, 5.0, srcs)
    xs = np.array([0.0, 12.3, 47.9, 99.0, 99.5, 150.0])
    ys = np.array([0.0, 88.1, 3.3, 50.5, 99.5, 10.0])
    batch = grid.sample(xs, ys)
    scalar = [grid.value_at(x, y) for x, y in zip(xs, ys)]
    np.testing.assert_allclose(batch, scalar, atol=1e-9)
    assert batch[-1] == 0.0


def test_evaluate_sources_skips_inactive():
    srcs = sources_at((0.0, 0.0, 10.0, 0.0))
    srcs[0].deplete(srcs[0].max_energy)
    out = evaluate_sources(srcs, np.array([1.0, 2.0]), np.array([1.0, 2.0]))
    np.testing.assert_array_equal(out, [0.0, 0.0])


def test_gradient_points_toward_source():
    src = sources_at((50.0, 50.0, 100.0, 0.01))[0]
    g = compute_gradient(src.concentration_at, Point(30.0, 50.0))
    assert g.x == pytest.approx(1.0, abs=1e-6)
    assert g.y == pytest.approx(0.0, abs=1e-6)
    assert g.length() == pytest.approx(1.0)


def test_gradient_zero_on_flat_field():
    g = compute_gradient(lambda p: 7.0, Point(1.0, 1.0))
    assert g == Point(0.0, 0.0)


def test_gradient_one_sided_at_plateau_edge():
    # Flat for x >= 0, rising to the left
    def field(p):
        return 0.0 if p.x >= 0 else -p.x
    g = compute_gradient(field, Point(0.0, 0.0))
    assert g.x == pytest.approx(-1.0)
    assert g.y == pytest.approx(0.0)


def test_grid_gradient_matches_direct_direction():
    src = sources_at((50.0, 50.0, 100.0, 0.01))
    grid = ConcentrationGrid.from_sources(100.0, 100.0, 1.0, src)
    p = Point(20.0, 70.0)
    g_grid = grid.gradient_at(p)
    g_direct = compute_gradient(src[0].concentration_at, p)
    angle = math.atan2(g_grid.y, g_grid.x) - math.atan2(g_direct.y, g_direct.x)
    assert abs(angle) < 0.05
