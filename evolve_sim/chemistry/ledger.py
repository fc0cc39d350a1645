"""
Energy ledger - owns the chemical sources and the system energy accounts.

Every change to a source's energy goes through the ledger so that
``total_energy`` always equals the sum of source energies. The ledger also
tracks a ``version`` that the chemical field uses to decide when its cached
grid is stale; the ledger itself never calls into the field.
"""

from typing import List, Optional, Tuple

import numpy as np

from ..core.config import ChemicalConfig
from ..core.constants import (
    CACHE_DRIFT_THRESHOLD, MIN_DEFICIT_FRACTION, SOURCE_MARGIN_FRACTION,
)
from ..core.geometry import Point, Rect
from ..core.locks import ReadWriteLock
from ..core.utils import uniform
from ..events.logger import event_log
from ..events.console_log import console_log
from .source import ChemicalSource


class EnergyLedger:
    """
    Source collection plus energy totals, behind one reader-writer lock.

    Attributes:
        bounds: World rectangle sources must lie in
        config: Chemical configuration (target count, strengths, rates)
        step: Simulation step stamped on emitted events
    """

    def __init__(self, bounds: Rect, config: ChemicalConfig):
        self.bounds = bounds
        self.config = config
        self.step = 0

        self._lock = ReadWriteLock()
        self._sources: List[ChemicalSource] = []
        self._total = 0.0
        self._version = 0
        self._baselines: List[float] = []
        self._drift_flagged = False

    # =========================================================================
    # QUERIES
    # =========================================================================

    def _target_locked(self) -> float:
        if self.config.target_system_energy > 0:
            return self.config.target_system_energy
        return sum(s.max_energy for s in self._sources)

    @property
    def total_energy(self) -> float:
        with self._lock.read_locked():
            return self._total

    @property
    def target_energy(self) -> float:
        with self._lock.read_locked():
            return self._target_locked()

    def system_energy_info(self) -> Tuple[float, float]:
        """(total, target) read atomically."""
        with self._lock.read_locked():
            return self._total, self._target_locked()

    @property
    def version(self) -> int:
        with self._lock.read_locked():
            return self._version

    @property
    def source_count(self) -> int:
        with self._lock.read_locked():
            return len(self._sources)

    @property
    def active_count(self) -> int:
        with self._lock.read_locked():
            return sum(1 for s in self._sources if s.active)

    def get_sources(self) -> List[ChemicalSource]:
        """Copies of all sources, active or not."""
        with self._lock.read_locked():
            return [s.copy() for s in self._sources]

    def concentration_at(self, point: Point) -> float:
        """Direct sum over active sources."""
        with self._lock.read_locked():
            return sum(s.concentration_at(point) for s in self._sources)

    def cache_snapshot(self) -> Tuple[int, List[ChemicalSource]]:
        """
        Version plus source copies for building a cached grid.

        Resets the drift baselines, so later drift is measured against the
        energies captured here.
        """
        with self._lock.write_locked():
            self._baselines = [s.energy for s in self._sources]
            self._drift_flagged = False
            return self._version, [s.copy() for s in self._sources]

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_source(self, source: ChemicalSource) -> bool:
        """Register a source. Rejected (False) if outside the bounds."""
        if not self.bounds.contains(source.position):
            return False
        with self._lock.write_locked():
            self._sources.append(source)
            self._baselines.append(source.energy)
            self._total += source.energy
            self._version += 1
        return True

    def update_sources(self, dt: float, rng: np.random.Generator):
        """
        Passive depletion of every source, then a chance of regeneration.

        Regeneration fires with probability ``regeneration_probability * dt``
        while the system is at least 1% below target. It refills a random
        inactive source, or creates a new one if none is inactive and fewer
        than ``config.count`` sources exist.
        """
        with self._lock.write_locked():
            for src in self._sources:
                if not src.active:
                    continue
                self._total -= src.update(dt)
                if not src.active:
                    self._on_depleted(src)
            self._clamp_total()
            self._check_drift()

            target = self._target_locked()
            deficit = target - self._total
            if target <= 0 or deficit < MIN_DEFICIT_FRACTION * target:
                return
            if rng.random() >= self.config.regeneration_probability * dt:
                return

            inactive = [s for s in self._sources if not s.active]
            if inactive:
                src = inactive[int(rng.integers(len(inactive)))]
                added = src.reactivate()
                self._total += added
                self._version += 1
                event_log().log_source_reactivated(
                    self.step, src.position.to_tuple(), added)
                console_log().log(
                    f"[Chemistry] Source reactivated at "
                    f"({src.position.x:.0f}, {src.position.y:.0f}) +{added:.0f}",
                    self.step)
            elif len(self._sources) < self.config.count:
                self._create_source_locked(rng)

    def create_source(self, rng: np.random.Generator) -> Optional[ChemicalSource]:
        """
        Spawn a new source sized to the current deficit.

        Returns:
            The new source, or None if the deficit is under 1% of target
        """
        with self._lock.write_locked():
            return self._create_source_locked(rng)

    def deplete(self, position: Point, amount: float) -> float:
        """
        Drain sources in proportion to their contribution at ``position``.

        Each active source loses ``amount * share * depletion_multiplier``,
        capped at what it holds.

        Returns:
            Total energy removed from the sources
        """
        if amount <= 0:
            return 0.0
        with self._lock.write_locked():
            contributions = [(s, s.concentration_at(position))
                             for s in self._sources if s.active]
            total_c = sum(c for _, c in contributions)
            if total_c <= 0:
                return 0.0

            removed = 0.0
            for src, c in contributions:
                take = src.deplete(amount * (c / total_c) * self.config.depletion_multiplier)
                removed += take
                if not src.active:
                    self._on_depleted(src)
            self._total -= removed
            self._clamp_total()
            self._check_drift()
            return removed

    # =========================================================================
    # INTERNALS (caller holds the write lock)
    # =========================================================================

    def _create_source_locked(self, rng: np.random.Generator) -> Optional[ChemicalSource]:
        cfg = self.config
        target = self._target_locked()
        deficit = target - self._total
        if target <= 0 or deficit < MIN_DEFICIT_FRACTION * target:
            return None

        strength = uniform(rng, cfg.min_strength, cfg.max_strength)
        strength = min(strength * (1.0 + deficit / target), cfg.max_strength)
        decay = uniform(rng, cfg.min_decay_factor, cfg.max_decay_factor)

        b = self.bounds
        mx = b.width * SOURCE_MARGIN_FRACTION
        my = b.height * SOURCE_MARGIN_FRACTION
        pos = Point(uniform(rng, b.min_x + mx, b.max_x - mx),
                    uniform(rng, b.min_y + my, b.max_y - my))

        src = ChemicalSource.create(pos, strength, decay,
                                    depletion_rate=cfg.depletion_rate,
                                    energy_per_strength=cfg.energy_per_strength)
        self._sources.append(src)
        self._baselines.append(src.energy)
        self._total += src.energy
        self._version += 1

        event_log().log_source_created(self.step, pos.to_tuple(), strength, src.energy)
        console_log().log(
            f"[Chemistry] New source at ({pos.x:.0f}, {pos.y:.0f}) "
            f"strength {strength:.1f}", self.step)
        return src

    def _on_depleted(self, src: ChemicalSource):
        self._version += 1
        event_log().log_source_depleted(self.step, src.position.to_tuple())
        console_log().log(
            f"[Chemistry] Source depleted at "
            f"({src.position.x:.0f}, {src.position.y:.0f})", self.step)

    def _clamp_total(self):
        # Float residue after many small subtractions
        if self._total < 0:
            self._total = 0.0

    def _check_drift(self):
        if self._drift_flagged:
            return
        for src, base in zip(self._sources, self._baselines):
            if base > 0 and abs(src.energy - base) / base > CACHE_DRIFT_THRESHOLD:
                self._version += 1
                self._drift_flagged = True
                return
