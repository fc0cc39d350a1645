import math

import numpy as np
import pytest

from evolve_sim.core.geometry import Point
from evolve_sim.chemistry.source import ChemicalSource
from evolve_sim.chemistry.grid import ConcentrationGrid
from evolve_sim.chemistry.contours import (
    ContourLine, contour_lines, default_levels,
)


def single_peak_grid():
    src = ChemicalSource.create(Point(50.0, 50.0), 100.0, 0.01)
    return ConcentrationGrid.from_sources(100.0, 100.0, 2.0, [src])


def test_single_peak_gives_one_closed_loop():
    grid = single_peak_grid()
    lines = contour_lines(grid, [40.0])[40.0]
    assert len(lines) == 1
    line = lines[0]
    assert line.closed
    # 100 / (1 + 0.01 d^2) = 40  ->  d = sqrt(150)
    for p in line.points:
        r = math.hypot(p.x - 50.0, p.y - 50.0)
        assert r == pytest.approx(math.sqrt(150.0), abs=0.5)


def test_level_above_maximum_has_no_lines():
    grid = single_peak_grid()
    assert contour_lines(grid, [1000.0]) == {1000.0: []}


def test_flat_grid_has_no_lines():
    grid = ConcentrationGrid(10.0, 10.0, 5.0, np.full((3, 3), 2.0))
    assert contour_lines(grid, [1.0, 2.5]) == {1.0: [], 2.5: []}


def test_saddle_cell_gives_two_lines():
    # Diagonal corners high: either saddle resolution yields two open lines
    values = np.array([[1.0, 0.0], [0.0, 1.0]])
    grid = ConcentrationGrid(1.0, 1.0, 1.0, values)
    for level in (0.4, 0.6):
        lines = contour_lines(grid, [level])[level]
        assert len(lines) == 2
        assert all(not line.closed for line in lines)


def test_lines_stay_inside_lattice():
    srcs = [ChemicalSource.create(Point(10.0, 10.0), 100.0, 0.01),
            ChemicalSource.create(Point(80.0, 60.0), 80.0, 0.005)]
    grid = ConcentrationGrid.from_sources(100.0, 100.0, 5.0, srcs)
    for lines in contour_lines(grid, default_levels(grid)).values():
        for line in lines:
            arr = line.to_array()
            assert arr.shape[1] == 2
            assert (arr >= 0.0).all()
            assert (arr[:, 0] <= grid.max_x).all()
            assert (arr[:, 1] <= grid.max_y).all()


def test_default_levels_within_range():
    grid = single_peak_grid()
    levels = default_levels(grid, 4)
    assert len(levels) == 4
    assert all(0 < lv < grid.max_value for lv in levels)
    assert default_levels(ConcentrationGrid(10.0, 10.0, 5.0), 4) == []


def test_contour_line_default_is_empty():
    assert ContourLine(level=1.0).points == []
