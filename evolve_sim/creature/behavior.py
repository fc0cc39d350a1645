"""
Organism behaviour - sense, decide, steer, move, metabolise, reproduce.

These are plain functions over an Organism plus whatever capabilities they
need (anything with ``concentration_at`` for sensing, anything with
``deplete`` for consumption). Nothing here holds a reference to the world.
"""

import math
from enum import Enum
from typing import NamedTuple

import numpy as np

from ..core.config import EnergyConfig, ReproductionConfig
from ..core.constants import (
    EPSILON, SIMILARITY_THRESHOLD, REPRODUCTION_THRESHOLD, REPRODUCTION_COOLDOWN,
    CAPACITY_PER_SPEED,
)
from ..core.geometry import Point, Rect
from ..core.utils import TWO_PI, normalize_angle, uniform
from .organism import Organism
from .traits import mutate_traits


class Direction(Enum):
    CONTINUE = 0
    LEFT = 1
    RIGHT = 2


class SensorReadings(NamedTuple):
    front: float
    left: float
    right: float


# =============================================================================
# SENSING AND STEERING
# =============================================================================

def sense(organism: Organism, field, sensor_distance: float) -> SensorReadings:
    """Field concentration at each of the three sensors."""
    front, left, right = (field.concentration_at(p)
                          for p in organism.sensor_positions(sensor_distance))
    return SensorReadings(front, left, right)


def decide(readings: SensorReadings, preference: float) -> Direction:
    """
    Pick the sensor whose reading is closest to the preference.

    Front wins any tie it is part of; a left/right tie also goes straight.
    """
    df = abs(readings.front - preference)
    dl = abs(readings.left - preference)
    dr = abs(readings.right - preference)

    if df <= dl and df <= dr:
        return Direction.CONTINUE
    if dl < dr:
        return Direction.LEFT
    if dr < dl:
        return Direction.RIGHT
    return Direction.CONTINUE


def steer(organism: Organism, direction: Direction, turn_speed: float,
          dt: float) -> float:
    """
    Turn toward the chosen sensor, at most ``turn_speed * dt`` and never
    past the sensor's own offset.

    Returns:
        Heading change applied (radians)
    """
    organism.previous_heading = organism.heading
    if direction == Direction.LEFT:
        offset = organism.sensor_angles[1]
    elif direction == Direction.RIGHT:
        offset = organism.sensor_angles[2]
    else:
        return 0.0

    step = min(turn_speed * dt, abs(offset))
    delta = math.copysign(step, offset) if offset != 0 else 0.0
    organism.turn(delta)
    return delta


def move(organism: Organism, bounds: Rect, dt: float) -> float:
    """
    Advance along the heading, bouncing off walls.

    A wall hit reflects the heading (x wall: pi - h, y wall: -h) and the
    position is clamped back inside the bounds.

    Returns:
        Distance actually travelled
    """
    start = organism.position
    step = organism.speed * dt
    target = Point(start.x + step * math.cos(organism.heading),
                   start.y + step * math.sin(organism.heading))

    heading = organism.heading
    hit = False
    if target.x < bounds.min_x or target.x >= bounds.max_x:
        heading = math.pi - heading
        hit = True
    if target.y < bounds.min_y or target.y >= bounds.max_y:
        heading = -heading
        hit = True
    if hit:
        organism.heading = normalize_angle(heading)
        target = bounds.clamp(target)

    organism.position = target
    organism.update_trail()
    return start.distance_to(target)


# =============================================================================
# ENERGY
# =============================================================================

def similarity(concentration: float, preference: float) -> float:
    """1 at a perfect match, falling linearly to 0 at 100% relative error."""
    if preference <= EPSILON:
        return 1.0 if concentration <= EPSILON else 0.0
    return 1.0 - min(abs(concentration - preference) / preference, 1.0)


def update_energy(organism: Organism, field, dt: float, ledger,
                  movement_distance: float = 0.0) -> float:
    """
    Charge metabolic, movement and sensing costs, then credit any gain
    from sitting near the preferred concentration.

    Args:
        organism: Organism to update in place
        field: Anything with ``concentration_at(point)``
        dt: Time step
        ledger: Anything with ``deplete(position, amount)``; every unit
            gained is drawn from it so system energy is conserved
        movement_distance: Distance moved this step

    Returns:
        Energy gained this step (before costs)
    """
    eff = organism.energy_efficiency
    cost = (organism.metabolic_rate * eff * dt +
            organism.movement_cost * eff * movement_distance +
            organism.sensing_cost * eff * dt)
    organism.energy -= cost

    gained = 0.0
    sim = similarity(field.concentration_at(organism.position),
                     organism.chem_preference)
    if sim > SIMILARITY_THRESHOLD:
        scaled = (sim - SIMILARITY_THRESHOLD) / (1.0 - SIMILARITY_THRESHOLD)
        gain = organism.optimal_gain * scaled * dt
        new_energy = min(organism.energy_capacity, organism.energy + gain)
        gained = max(0.0, new_energy - organism.energy)
        organism.energy = new_energy
        if gained > 0:
            ledger.deplete(organism.position, gained)

    organism.time_since_reproduction += dt
    organism.age += dt

    if organism.energy <= 0:
        organism.energy = 0.0
        organism.mark_for_removal = True
    return gained


# =============================================================================
# REPRODUCTION
# =============================================================================

def can_reproduce(organism: Organism, threshold: float = REPRODUCTION_THRESHOLD,
                  cooldown: float = REPRODUCTION_COOLDOWN) -> bool:
    if organism.mark_for_removal:
        return False
    return (organism.energy >= organism.energy_capacity * threshold and
            organism.time_since_reproduction >= cooldown)


def reproduce(organism: Organism, rng: np.random.Generator, offspring_id: int,
              bounds: Rect, reproduction_config: ReproductionConfig,
              energy_config: EnergyConfig) -> Organism:
    """
    Split off a mutated offspring.

    The offspring takes ``energy * offspring_energy_ratio`` from the parent.
    Whatever exceeds the offspring's own capacity stays with the parent, so
    the pair's combined energy is unchanged.

    Returns:
        The new Organism (not yet added to any world)
    """
    cfg = reproduction_config
    transfer = organism.energy * cfg.offspring_energy_ratio

    angle = uniform(rng, 0.0, TWO_PI)
    dist = uniform(rng, cfg.offspring_min_distance, cfg.offspring_max_distance)
    pos = bounds.clamp(Point(organism.position.x + dist * math.cos(angle),
                             organism.position.y + dist * math.sin(angle)))

    child = organism.copy()
    mutate_traits(organism, child, rng, cfg)
    heading = uniform(rng, 0.0, TWO_PI)

    child.position = pos
    child.heading = normalize_angle(heading)
    child.previous_heading = child.heading
    child.energy_capacity = energy_config.maximum_energy + child.speed * CAPACITY_PER_SPEED
    child.energy = min(transfer, child.energy_capacity)
    child.time_since_reproduction = 0.0
    child.age = 0.0
    child.id = offspring_id
    child.parent_id = organism.id
    child.generation = organism.generation + 1
    child.mark_for_removal = False
    child.position_history = []
    child.update_counter = 0

    organism.energy -= child.energy
    organism.time_since_reproduction = 0.0
    return child


def update(organism: Organism, field, bounds: Rect, sensor_distance: float,
           turn_speed: float, dt: float, ledger) -> Organism:
    """One full behaviour tick: sense, decide, steer, move, update energy."""
    readings = sense(organism, field, sensor_distance)
    direction = decide(readings, organism.chem_preference)
    steer(organism, direction, turn_speed, dt)
    distance = move(organism, bounds, dt)
    update_energy(organism, field, dt, ledger, distance)
    return organism
