"""
Concentration grid - precomputed field values on a regular lattice.

Node (i, j) sits at world position (i * cell_size, j * cell_size). Values
between nodes are bilinearly interpolated. A grid is never modified once
built, so lookups need no locking.
"""

import math
from typing import Callable, Iterable, Sequence

import numpy as np
from scipy import ndimage

from ..core.constants import GRADIENT_DELTA, EPSILON
from ..core.geometry import Point
from .source import ChemicalSource


# =============================================================================
# SOURCE EVALUATION
# =============================================================================

def evaluate_sources(sources: Iterable[ChemicalSource],
                     xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Sum the contribution of every active source at each (x, y).

    Same formula as ChemicalSource.concentration_at, vectorised over points.
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    total = np.zeros(np.broadcast(xs, ys).shape)
    for src in sources:
        if not src.active:
            continue
        ratio = src.energy_ratio
        d2 = (xs - src.position.x) ** 2 + (ys - src.position.y) ** 2
        contrib = src.strength / (1.0 + d2 * src.decay_factor) * ratio
        # Coincident points take the peak directly
        contrib = np.where(d2 < EPSILON * EPSILON, src.strength * ratio, contrib)
        total += contrib
    return total


def compute_gradient(concentration: Callable[[Point], float], point: Point,
                     delta: float = GRADIENT_DELTA) -> Point:
    """
    Unit gradient of a scalar field by central differences.

    When one side of an axis is flat and the other is not, the one-sided
    difference is used so a point sitting on a plateau edge still gets a
    direction.

    Returns:
        Unit vector, or Point(0, 0) if the field is flat here
    """
    c = concentration(point)

    def axis(plus: Point, minus: Point) -> float:
        fwd = concentration(plus) - c
        back = c - concentration(minus)
        if abs(fwd) < EPSILON and abs(back) >= EPSILON:
            return back / delta
        if abs(back) < EPSILON and abs(fwd) >= EPSILON:
            return fwd / delta
        return (fwd + back) / (2 * delta)

    gx = axis(Point(point.x + delta, point.y), Point(point.x - delta, point.y))
    gy = axis(Point(point.x, point.y + delta), Point(point.x, point.y - delta))

    mag = math.hypot(gx, gy)
    if mag < EPSILON:
        return Point(0.0, 0.0)
    return Point(gx / mag, gy / mag)


# =============================================================================
# GRID
# =============================================================================

class ConcentrationGrid:
    """
    Immutable lattice of concentration values.

    Attributes:
        width, height: World extent the grid was built for
        cell_size: Node spacing
        values: Read-only array of shape (nx, ny), indexed [i, j]
    """

    def __init__(self, width: float, height: float, cell_size: float,
                 values: np.ndarray = None):
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self.width = float(width)
        self.height = float(height)
        self.cell_size = float(cell_size)
        self.nx = int(math.ceil(self.width / self.cell_size)) + 1
        self.ny = int(math.ceil(self.height / self.cell_size)) + 1

        if values is None:
            values = np.zeros((self.nx, self.ny))
        values = np.array(values, dtype=float)
        if values.shape != (self.nx, self.ny):
            raise ValueError(
                f"grid values shape {values.shape} != ({self.nx}, {self.ny})")
        values.setflags(write=False)
        self.values = values

    @classmethod
    def from_sources(cls, width: float, height: float, cell_size: float,
                     sources: Sequence[ChemicalSource]) -> 'ConcentrationGrid':
        """Evaluate all sources at every node."""
        grid = cls(width, height, cell_size)
        xs = np.arange(grid.nx) * grid.cell_size
        ys = np.arange(grid.ny) * grid.cell_size
        gx, gy = np.meshgrid(xs, ys, indexing='ij')
        return cls(width, height, cell_size, evaluate_sources(sources, gx, gy))

    @property
    def max_x(self) -> float:
        return (self.nx - 1) * self.cell_size

    @property
    def max_y(self) -> float:
        return (self.ny - 1) * self.cell_size

    @property
    def max_value(self) -> float:
        return float(self.values.max()) if self.values.size else 0.0

    def node_position(self, i: int, j: int) -> Point:
        return Point(i * self.cell_size, j * self.cell_size)

    def value_at(self, x: float, y: float) -> float:
        """Bilinear lookup; 0 outside the node lattice."""
        if not (0.0 <= x <= self.max_x and 0.0 <= y <= self.max_y):
            return 0.0

        fx = x / self.cell_size
        fy = y / self.cell_size
        i0 = int(math.floor(fx))
        j0 = int(math.floor(fy))

        if i0 >= self.nx - 1:
            i0 = i1 = self.nx - 1
            tx = 0.0
        else:
            i1 = i0 + 1
            tx = fx - i0
        if j0 >= self.ny - 1:
            j0 = j1 = self.ny - 1
            ty = 0.0
        else:
            j1 = j0 + 1
            ty = fy - j0

        v = self.values
        top = v[i0, j0] * (1 - tx) + v[i1, j0] * tx
        bottom = v[i0, j1] * (1 - tx) + v[i1, j1] * tx
        return float(top * (1 - ty) + bottom * ty)

    def concentration_at(self, point: Point) -> float:
        return self.value_at(point.x, point.y)

    def gradient_at(self, point: Point) -> Point:
        return compute_gradient(self.concentration_at, point)

    def sample(self, xs, ys) -> np.ndarray:
        """
        Interpolate many points at once.

        Args:
            xs, ys: Arrays (broadcastable) of world coordinates

        Returns:
            Array of concentrations, 0 outside the lattice
        """
        xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=float),
                                     np.asarray(ys, dtype=float))
        coords = np.array([xs.ravel() / self.cell_size, ys.ravel() / self.cell_size])
        out = ndimage.map_coordinates(self.values, coords, order=1,
                                      mode='constant', cval=0.0)
        inside = ((xs.ravel() >= 0) & (xs.ravel() <= self.max_x) &
                  (ys.ravel() >= 0) & (ys.ravel() <= self.max_y))
        out = np.where(inside, out, 0.0)
        return out.reshape(xs.shape)

    def __repr__(self):
        return (f"ConcentrationGrid({self.width}x{self.height}, "
                f"cell={self.cell_size}, nodes={self.nx}x{self.ny})")
