"""
WorldCoordinator - authoritative owner of world state.

Holds the organism collection (behind its own reader-writer lock), the
EnergyLedger (which locks its sources separately) and the ChemicalField
(whose grid cache has its own mutex). Readers always receive copies, so a
render thread can inspect the world between simulation steps without ever
seeing a half-applied update.

Lock order, when more than one is held: organisms -> field -> ledger.
"""

import math
import threading
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..core.config import SimulationConfig
from ..core.geometry import Point, Rect
from ..core.locks import ReadWriteLock
from ..core.utils import TWO_PI, uniform
from ..chemistry.source import ChemicalSource
from ..chemistry.ledger import EnergyLedger
from ..chemistry.field import ChemicalField
from ..chemistry.grid import ConcentrationGrid
from ..creature.organism import Organism, default_sensor_angles
from ..creature.behavior import can_reproduce, reproduce
from ..events.logger import event_log
from ..events.console_log import console_log

ReproductionCallback = Callable[[Point], None]


class WorldCoordinator:
    """
    Thread-safe container for organisms, sources, the field and the ledger.

    Attributes:
        config: Active SimulationConfig
        bounds: World rectangle, origin at (0, 0)
        ledger: EnergyLedger owning the chemical sources
        field: ChemicalField over the ledger
        step: Simulation step stamped on events
    """

    def __init__(self, config: SimulationConfig):
        self._org_lock = ReadWriteLock()
        self._id_lock = threading.Lock()
        self._organisms: List[Organism] = []
        self._reproduction_callback: Optional[ReproductionCallback] = None
        self._build(config)

    def _build(self, config: SimulationConfig):
        self.config = config
        self.bounds = Rect(0.0, 0.0, config.world.width, config.world.height)
        self.ledger = EnergyLedger(self.bounds, config.chemical)
        self.field = ChemicalField(self.ledger, self.bounds, config.field_cache)
        self.step = 0
        self.total_births = 0
        self.total_deaths = 0
        with self._id_lock:
            self._next_id = 1

    def next_id(self) -> int:
        """Allocate a unique organism id."""
        with self._id_lock:
            oid = self._next_id
            self._next_id += 1
            return oid

    def set_step(self, step: int):
        self.step = step
        self.ledger.step = step

    def set_reproduction_callback(self, callback: Optional[ReproductionCallback]):
        """Register a function called with each offspring's position."""
        self._reproduction_callback = callback

    # =========================================================================
    # POPULATION
    # =========================================================================

    def populate(self, rng: np.random.Generator):
        """
        Place the initial sources and organisms.

        Sources are scattered uniformly. Organisms sit on a jittered grid of
        floor(sqrt(n)) rows so the starting population covers the world
        evenly.
        """
        cfg = self.config
        w, h = self.bounds.width, self.bounds.height

        for _ in range(cfg.chemical.count):
            strength = uniform(rng, cfg.chemical.min_strength, cfg.chemical.max_strength)
            decay = uniform(rng, cfg.chemical.min_decay_factor, cfg.chemical.max_decay_factor)
            pos = Point(uniform(rng, 0.0, w), uniform(rng, 0.0, h))
            src = ChemicalSource.create(
                pos, strength, decay,
                depletion_rate=cfg.chemical.depletion_rate,
                energy_per_strength=cfg.chemical.energy_per_strength)
            self.add_chemical_source(src)

        n = cfg.organism.count
        if n <= 0:
            return
        rows = max(1, int(math.sqrt(n)))
        cols = int(math.ceil(n / rows))
        jitter_x = 0.1 * w / cols
        jitter_y = 0.1 * h / rows

        for k in range(n):
            row, col = divmod(k, cols)
            x = (col + 1) / (cols + 1) * w + uniform(rng, -jitter_x, jitter_x)
            y = (row + 1) / (rows + 1) * h + uniform(rng, -jitter_y, jitter_y)
            x = min(max(x, 1.0), w - 1.0)
            y = min(max(y, 1.0), h - 1.0)

            heading = uniform(rng, 0.0, TWO_PI)
            preference = max(0.0, float(rng.normal(cfg.organism.preference_mean,
                                                   cfg.organism.preference_std_dev)))
            org = Organism.create(Point(x, y), heading, preference,
                                  cfg.organism.speed, default_sensor_angles(),
                                  cfg.energy, rng, self.next_id())
            self.add_organism(org)

        console_log().log(
            f"[Init] Populated {self.organism_count} organisms, "
            f"{self.chemical_source_count} sources", self.step)

    def add_organism(self, organism: Organism) -> bool:
        """Add a copy of ``organism``. False if it lies outside the world."""
        if not self.bounds.contains(organism.position):
            return False
        with self._org_lock.write_locked():
            self._organisms.append(organism.copy())
        return True

    def add_chemical_source(self, source: ChemicalSource) -> bool:
        return self.ledger.add_source(source)

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def get_organisms(self) -> List[Organism]:
        with self._org_lock.read_locked():
            return [o.copy() for o in self._organisms]

    def get_chemical_sources(self) -> List[ChemicalSource]:
        return self.ledger.get_sources()

    def get_organism_at(self, index: int) -> Optional[Organism]:
        with self._org_lock.read_locked():
            if 0 <= index < len(self._organisms):
                return self._organisms[index].copy()
            return None

    @property
    def organism_count(self) -> int:
        with self._org_lock.read_locked():
            return len(self._organisms)

    @property
    def chemical_source_count(self) -> int:
        return self.ledger.source_count

    def get_bounds(self) -> Rect:
        return self.bounds

    def population_info(self) -> Tuple[int, float]:
        """(count, average energy)."""
        with self._org_lock.read_locked():
            n = len(self._organisms)
            if n == 0:
                return 0, 0.0
            return n, sum(o.energy for o in self._organisms) / n

    # =========================================================================
    # ORGANISM MUTATION
    # =========================================================================

    def update_organism(self, index: int, organism: Organism) -> bool:
        if not self.bounds.contains(organism.position):
            return False
        with self._org_lock.write_locked():
            if not 0 <= index < len(self._organisms):
                return False
            self._organisms[index] = organism.copy()
        return True

    def update_organisms(self, organisms: List[Organism]) -> int:
        """
        Replace the whole population. Entries outside the world are dropped.

        Returns:
            Number of organisms kept
        """
        kept = [o for o in organisms if self.bounds.contains(o.position)]
        with self._org_lock.write_locked():
            self._organisms = kept
        return len(kept)

    def remove_organism(self, index: int) -> bool:
        with self._org_lock.write_locked():
            if not 0 <= index < len(self._organisms):
                return False
            del self._organisms[index]
        return True

    def remove_dead_organisms(self) -> int:
        """Drop every organism marked for removal. Returns how many."""
        with self._org_lock.write_locked():
            dead = [o for o in self._organisms if o.mark_for_removal]
            if not dead:
                return 0
            self._organisms = [o for o in self._organisms if not o.mark_for_removal]

        self.total_deaths += len(dead)
        log = event_log()
        for o in dead:
            log.log_death(self.step, o.id, o.generation, o.age, o.position.to_tuple())
        return len(dead)

    def process_reproduction(self, max_population: int,
                             rng: np.random.Generator) -> int:
        """
        Let every eligible organism reproduce until the population cap.

        The reproduction callback is invoked for each offspring after the
        organism lock is released, before this method returns.

        Returns:
            Number of offspring created
        """
        rcfg = self.config.reproduction
        offspring: List[Organism] = []

        with self._org_lock.write_locked():
            for org in self._organisms:
                if len(self._organisms) + len(offspring) >= max_population:
                    break
                if not can_reproduce(org, rcfg.threshold, rcfg.cooldown):
                    continue
                child = reproduce(org, rng, self.next_id(), self.bounds,
                                  rcfg, self.config.energy)
                offspring.append(child)
            self._organisms.extend(offspring)

        if not offspring:
            return 0

        self.total_births += len(offspring)
        log = event_log()
        for child in offspring:
            log.log_birth(self.step, child.id, child.parent_id, child.generation,
                          child.position.to_tuple(), child.traits_dict())
            if self._reproduction_callback is not None:
                self._reproduction_callback(child.position)
        console_log().log(f"[Birth] {len(offspring)} offspring", self.step)
        return len(offspring)

    # =========================================================================
    # CHEMISTRY
    # =========================================================================

    def concentration_at(self, point: Point) -> float:
        return self.field.concentration_at(point)

    def gradient_at(self, point: Point) -> Point:
        return self.field.gradient_at(point)

    def sample_concentration(self, xs, ys) -> np.ndarray:
        return self.field.sample(xs, ys)

    def get_concentration_grid(self) -> ConcentrationGrid:
        return self.field.get_grid()

    def deplete_energy_at(self, position: Point, amount: float) -> float:
        return self.ledger.deplete(position, amount)

    def update_chemical_sources(self, dt: float, rng: np.random.Generator):
        self.ledger.update_sources(dt, rng)

    def system_energy_info(self) -> Tuple[float, float]:
        return self.ledger.system_energy_info()

    # =========================================================================
    # RESET
    # =========================================================================

    def reset(self, config: Optional[SimulationConfig] = None,
              rng: Optional[np.random.Generator] = None):
        """
        Discard all state and rebuild from ``config`` (default: current).
        Repopulates when a generator is given.
        """
        with self._org_lock.write_locked():
            self._organisms = []
        self._build(config or self.config)
        if rng is not None:
            self.populate(rng)
