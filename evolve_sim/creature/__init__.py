"""Creature systems - organisms, heritable traits and behaviour."""

from .organism import Organism, default_sensor_angles
from .traits import MUTABLE_TRAITS, mutate_trait, mutate_traits
from .behavior import (
    Direction, SensorReadings, sense, decide, steer, move, similarity,
    update_energy, can_reproduce, reproduce, update
)
