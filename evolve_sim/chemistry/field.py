"""
Chemical field - the concentration landscape organisms sense.

Two modes share one interface:
- direct: every lookup sums the active sources held by the ledger
- cached grid: lookups interpolate a ConcentrationGrid that is rebuilt
  lazily whenever the ledger's version moves on

The cache walks EMPTY -> BUILDING -> READY under a single mutex. Checking
staleness, rebuilding and publishing all happen inside that one critical
section so two readers never build the same grid twice. Published grids are
immutable and may be read without the mutex.
"""

import threading
from enum import Enum
from typing import Optional

import numpy as np

from ..core.config import FieldConfig
from ..core.geometry import Point, Rect
from ..events.console_log import console_log
from .grid import ConcentrationGrid, compute_gradient, evaluate_sources
from .ledger import EnergyLedger


class CacheState(Enum):
    EMPTY = 'empty'
    BUILDING = 'building'
    READY = 'ready'


class ChemicalField:
    """Concentration and gradient queries over the ledger's sources."""

    def __init__(self, ledger: EnergyLedger, bounds: Rect,
                 config: Optional[FieldConfig] = None):
        self.ledger = ledger
        self.bounds = bounds
        self.config = config or FieldConfig()

        self._mutex = threading.Lock()
        self._state = CacheState.EMPTY
        self._grid: Optional[ConcentrationGrid] = None
        self._grid_version = -1
        self.rebuild_count = 0

    @property
    def use_grid(self) -> bool:
        return self.config.use_grid

    @property
    def cache_state(self) -> CacheState:
        with self._mutex:
            return self._state

    def invalidate(self):
        """Force the next grid read to rebuild."""
        with self._mutex:
            self._state = CacheState.EMPTY
            self._grid = None
            self._grid_version = -1

    def get_grid(self) -> ConcentrationGrid:
        """
        Current grid, rebuilding it first if the ledger changed.

        Lock order is field mutex, then ledger lock.
        """
        with self._mutex:
            if (self._state == CacheState.READY and
                    self._grid_version == self.ledger.version):
                return self._grid

            self._state = CacheState.BUILDING
            version, sources = self.ledger.cache_snapshot()
            try:
                grid = ConcentrationGrid.from_sources(
                    self.bounds.max_x, self.bounds.max_y,
                    self.config.cell_size, sources)
            except Exception:
                self._state = CacheState.EMPTY
                raise
            self._grid = grid
            self._grid_version = version
            self._state = CacheState.READY
            self.rebuild_count += 1
            console_log().log(
                f"[Field] Grid rebuilt (v{version}, {grid.nx}x{grid.ny} nodes)",
                self.ledger.step)
            return grid

    # =========================================================================
    # QUERIES
    # =========================================================================

    def concentration_at(self, point: Point) -> float:
        if self.use_grid:
            return self.get_grid().concentration_at(point)
        return self.ledger.concentration_at(point)

    def gradient_at(self, point: Point) -> Point:
        """Unit gradient (or zero vector) at ``point``."""
        if self.use_grid:
            return compute_gradient(self.get_grid().concentration_at, point)
        return compute_gradient(self.ledger.concentration_at, point)

    def sample(self, xs, ys) -> np.ndarray:
        """Vectorised concentration lookup for arrays of coordinates."""
        if self.use_grid:
            return self.get_grid().sample(xs, ys)
        return evaluate_sources(self.ledger.get_sources(), xs, ys)
