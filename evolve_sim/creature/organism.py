"""
Organism - a single-cell chemotactic agent.

Holds position and heading, the three-sensor geometry, a preferred chemical
concentration and a personal energy budget. All behaviour lives in
``creature.behavior``; this module is data plus small geometric helpers.
"""

import math
from dataclasses import dataclass, field, replace
from typing import List, Tuple

import numpy as np

from ..core.config import EnergyConfig
from ..core.constants import (
    CAPACITY_PER_SPEED, MAX_TRAIL_LENGTH, TRAIL_RECORD_INTERVAL,
)
from ..core.geometry import Point
from ..core.utils import normalize_angle, uniform


def default_sensor_angles() -> Tuple[float, float, float]:
    """(front, left, right) offsets from heading."""
    return (0.0, -math.pi / 4, math.pi / 4)


@dataclass
class Organism:
    """
    One organism's full state.

    Invariants: 0 <= energy <= energy_capacity, and energy <= 0 implies
    mark_for_removal.
    """
    position: Point
    heading: float = 0.0
    previous_heading: float = 0.0
    chem_preference: float = 50.0
    speed: float = 2.0
    sensor_angles: Tuple[float, float, float] = field(default_factory=default_sensor_angles)

    # Energy
    energy: float = 0.0
    energy_capacity: float = 100.0
    metabolic_rate: float = 0.1
    movement_cost: float = 0.02
    sensing_cost: float = 0.01
    optimal_gain: float = 0.5
    energy_efficiency: float = 1.0

    # Lifecycle
    time_since_reproduction: float = 0.0
    age: float = 0.0
    id: int = 0
    parent_id: int = 0
    generation: int = 1
    mark_for_removal: bool = False

    # Trail
    position_history: List[Point] = field(default_factory=list)
    update_counter: int = 0

    @classmethod
    def create(cls, position: Point, heading: float, chem_preference: float,
               speed: float, sensor_angles: Tuple[float, float, float],
               energy_config: EnergyConfig, rng: np.random.Generator,
               organism_id: int = 0) -> 'Organism':
        """
        Create a first-generation organism.

        Args:
            position: Starting location
            heading: Starting heading in radians
            chem_preference: Preferred concentration
            speed: Units per second
            sensor_angles: (front, left, right) offsets
            energy_config: Energy parameters (capacity, rates, efficiency range)
            rng: Generator used to draw energy efficiency
            organism_id: Identity assigned by the coordinator

        Returns:
            New Organism at ``initial_energy`` fraction of its capacity
        """
        capacity = energy_config.maximum_energy + speed * CAPACITY_PER_SPEED
        lo, hi = energy_config.energy_efficiency_range
        return cls(
            position=position,
            heading=normalize_angle(heading),
            previous_heading=normalize_angle(heading),
            chem_preference=chem_preference,
            speed=speed,
            sensor_angles=tuple(sensor_angles),
            energy=capacity * energy_config.initial_energy,
            energy_capacity=capacity,
            metabolic_rate=energy_config.base_metabolic_rate,
            movement_cost=energy_config.movement_cost_factor,
            sensing_cost=energy_config.sensing_cost_base,
            optimal_gain=energy_config.optimal_energy_gain_rate,
            energy_efficiency=uniform(rng, lo, hi),
            id=organism_id,
        )

    @property
    def energy_ratio(self) -> float:
        if self.energy_capacity <= 0:
            return 0.0
        return self.energy / self.energy_capacity

    @property
    def is_alive(self) -> bool:
        return not self.mark_for_removal

    def sensor_positions(self, distance: float) -> List[Point]:
        """World positions of the front, left and right sensors."""
        return [
            Point(self.position.x + distance * math.cos(self.heading + a),
                  self.position.y + distance * math.sin(self.heading + a))
            for a in self.sensor_angles
        ]

    def move_forward(self, distance: float) -> Point:
        """Advance along the heading. Returns the new position."""
        self.position = Point(self.position.x + distance * math.cos(self.heading),
                              self.position.y + distance * math.sin(self.heading))
        return self.position

    def turn(self, angle: float):
        self.heading = normalize_angle(self.heading + angle)

    def update_trail(self):
        """Record the position every TRAIL_RECORD_INTERVAL calls."""
        self.update_counter += 1
        if self.update_counter % TRAIL_RECORD_INTERVAL != 0:
            return
        self.position_history.append(self.position)
        if len(self.position_history) > MAX_TRAIL_LENGTH:
            del self.position_history[:-MAX_TRAIL_LENGTH]

    def traits_dict(self) -> dict:
        """Heritable traits, for event logs and statistics."""
        return {
            'chem_preference': round(self.chem_preference, 4),
            'speed': round(self.speed, 4),
            'sensor_angles': [round(a, 4) for a in self.sensor_angles],
            'metabolic_rate': round(self.metabolic_rate, 5),
            'movement_cost': round(self.movement_cost, 5),
            'sensing_cost': round(self.sensing_cost, 5),
            'optimal_gain': round(self.optimal_gain, 4),
            'energy_efficiency': round(self.energy_efficiency, 4),
        }

    def copy(self) -> 'Organism':
        """Independent copy (the trail list is not shared)."""
        return replace(self, position_history=list(self.position_history))
