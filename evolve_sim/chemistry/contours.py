"""
Iso-concentration lines over a ConcentrationGrid.

Lines are traced by contourpy, the contouring engine matplotlib itself uses,
over the grid's node lattice. Closed loops repeat their first point at the
end.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from contourpy import LineType, contour_generator

from ..core.geometry import Point
from .grid import ConcentrationGrid

POINT_MATCH_EPS = 1e-6


@dataclass
class ContourLine:
    """Polyline at one concentration level."""
    level: float
    points: List[Point] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        if len(self.points) <= 2:
            return False
        a, b = self.points[0], self.points[-1]
        return abs(a.x - b.x) < POINT_MATCH_EPS and abs(a.y - b.y) < POINT_MATCH_EPS

    def to_array(self) -> np.ndarray:
        """(N, 2) array of x, y for plotting."""
        return np.array([p.to_tuple() for p in self.points]).reshape(-1, 2)


def contour_lines(grid: ConcentrationGrid,
                  levels: Sequence[float]) -> Dict[float, List[ContourLine]]:
    """
    Extract iso-lines for each requested level.

    Args:
        grid: Source lattice
        levels: Concentration values to trace

    Returns:
        Mapping level -> list of ContourLine (possibly empty)
    """
    result: Dict[float, List[ContourLine]] = {level: [] for level in levels}
    if grid.nx < 2 or grid.ny < 2:
        return result

    xs = np.arange(grid.nx) * grid.cell_size
    ys = np.arange(grid.ny) * grid.cell_size
    # contourpy wants z[row=y, col=x]; grid values are indexed [i=x, j=y]
    gen = contour_generator(x=xs, y=ys, z=grid.values.T,
                            line_type=LineType.Separate)
    for level in levels:
        result[level] = [
            ContourLine(level=level,
                        points=[Point(float(x), float(y)) for x, y in line])
            for line in gen.lines(level) if len(line) >= 2
        ]
    return result


def default_levels(grid: ConcentrationGrid, count: int = 8) -> List[float]:
    """Evenly spaced levels between 0 and the grid maximum, excluding both ends."""
    top = grid.max_value
    if top <= 0 or count <= 0:
        return []
    return [top * k / (count + 1) for k in range(1, count + 1)]
