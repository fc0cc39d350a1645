"""Core utilities - constants, geometry, configuration, locking."""

from .geometry import Point, Rect
from .config import (
    SimulationConfig, WorldConfig, OrganismConfig, EnergyConfig,
    ReproductionConfig, ChemicalConfig, FieldConfig, RenderConfig,
    default_config, load_config, save_config
)
from .locks import ReadWriteLock
from .utils import create_rng, normalize_angle
