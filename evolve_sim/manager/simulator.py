"""
Simulator - fixed-timestep driver for the WorldCoordinator.

Each step runs to completion on the calling thread:
chemical sources -> organism behaviour -> commit -> remove dead -> reproduce.
"""

from enum import Enum
from typing import Optional

import numpy as np

from ..core.config import SimulationConfig
from ..core.constants import TIME_STEP, POPULATION_LOG_INTERVAL
from ..core.utils import clamp, create_rng
from ..creature import behavior
from ..events.logger import event_log
from ..events.console_log import console_log
from ..statistics import SimulationStats, collect_stats
from .world_coordinator import WorldCoordinator


class SimState(Enum):
    RUNNING = 'running'
    PAUSED = 'paused'


class Simulator:
    """
    Owns the run's random generator and advances the world.

    Attributes:
        world: WorldCoordinator being driven
        config: Active configuration
        time: Simulated seconds since the last reset
        step_count: Steps taken since the last reset
        time_step: Base timestep (seconds) before the speed multiplier
    """

    def __init__(self, world: WorldCoordinator, config: SimulationConfig,
                 rng: Optional[np.random.Generator] = None):
        self.world = world
        self.config = config
        self.rng = rng if rng is not None else create_rng(config.random_seed)
        self.time_step = TIME_STEP
        self.time = 0.0
        self.step_count = 0
        self.state = SimState.RUNNING
        self.simulation_speed = 1.0
        self.population_log_interval = POPULATION_LOG_INTERVAL
        self._extinction_logged = False
        self.set_simulation_speed(config.simulation_speed)

    @classmethod
    def from_config(cls, config: SimulationConfig) -> 'Simulator':
        """Build generator, world and simulator, and populate the world."""
        rng = create_rng(config.random_seed)
        world = WorldCoordinator(config)
        world.populate(rng)
        sim = cls(world, config, rng)
        event_log().log_run(0, 'start', seed=config.random_seed,
                            organisms=world.organism_count,
                            sources=world.chemical_source_count)
        return sim

    # =========================================================================
    # CONTROL
    # =========================================================================

    @property
    def is_paused(self) -> bool:
        return self.state == SimState.PAUSED

    def set_paused(self, paused: bool):
        self.state = SimState.PAUSED if paused else SimState.RUNNING

    def toggle_pause(self) -> bool:
        self.set_paused(not self.is_paused)
        return self.is_paused

    def set_simulation_speed(self, speed: float) -> float:
        """Clamp into the configured range. Returns the speed applied."""
        self.simulation_speed = clamp(speed, self.config.min_simulation_speed,
                                      self.config.max_simulation_speed)
        return self.simulation_speed

    def reset(self):
        """Fresh generator from the configured seed, fresh world, time 0."""
        self.rng = create_rng(self.config.random_seed)
        self.world.reset(self.config, self.rng)
        self.time = 0.0
        self.step_count = 0
        self._extinction_logged = False
        self.state = SimState.RUNNING
        console_log().log("[Simulator] Reset", 0)

    # =========================================================================
    # STEP
    # =========================================================================

    def step(self) -> bool:
        """
        Advance one timestep.

        Returns:
            False if paused (nothing happened), True otherwise
        """
        if self.is_paused:
            return False

        dt = self.time_step * self.simulation_speed
        world = self.world
        cfg = self.config
        world.set_step(self.step_count)

        world.update_chemical_sources(dt, self.rng)

        organisms = world.get_organisms()
        for org in organisms:
            behavior.update(org, world.field, world.bounds,
                            cfg.organism.sensor_distance, cfg.organism.turn_speed,
                            dt, world.ledger)
        world.update_organisms(organisms)

        world.remove_dead_organisms()
        world.process_reproduction(cfg.reproduction.max_population, self.rng)

        self.time += dt
        self.step_count += 1
        self._log_progress()
        return True

    def _log_progress(self):
        count, avg_energy = self.world.population_info()

        if count == 0 and not self._extinction_logged:
            self._extinction_logged = True
            event_log().log_extinction(self.step_count, self.time)
            console_log().log(
                f"[EXTINCTION] Population died out at t={self.time:.1f}s",
                self.step_count)

        if self.step_count % self.population_log_interval == 0:
            total, target = self.world.system_energy_info()
            event_log().log_population(self.step_count, count, avg_energy,
                                       total, target, self.world.ledger.active_count)
            console_log().log(
                f"[Population] t={self.time:.1f}s n={count} "
                f"avgE={avg_energy:.1f} energy={total:.0f}/{target:.0f}",
                self.step_count)

    def run(self, steps: int) -> int:
        """Take up to ``steps`` steps. Returns how many actually ran."""
        taken = 0
        for _ in range(steps):
            if not self.step():
                break
            taken += 1
        return taken

    def collect_stats(self) -> SimulationStats:
        """Snapshot for export; see statistics.collect_stats."""
        return collect_stats(self)
