"""
Simulation configuration.

Nested dataclasses with the default values of a standard run, plus JSON
load/save. Partial JSON files are accepted: any missing key keeps its
default and unknown keys are ignored, so older config files keep working.
"""

import json
import math
import os
from dataclasses import dataclass, field, asdict, fields
from typing import Tuple

from .constants import (
    ENERGY_PER_STRENGTH, DEFAULT_DEPLETION_RATE, GRID_CELL_SIZE,
    REPRODUCTION_THRESHOLD, REPRODUCTION_COOLDOWN, OFFSPRING_ENERGY_RATIO,
    OFFSPRING_MIN_DISTANCE, OFFSPRING_MAX_DISTANCE,
    MUTATION_SMALL, MUTATION_MEDIUM, MAX_POPULATION,
)

VERSION = "0.1.0"


@dataclass
class WorldConfig:
    width: float = 1000.0
    height: float = 1000.0


@dataclass
class OrganismConfig:
    count: int = 100
    speed: float = 2.0
    sensor_distance: float = 10.0
    turn_speed: float = math.pi / 10          # radians per second
    preference_mean: float = 50.0
    preference_std_dev: float = 10.0


@dataclass
class EnergyConfig:
    initial_energy: float = 0.8               # Fraction of capacity at birth
    maximum_energy: float = 100.0             # Base capacity (speed adds more)
    base_metabolic_rate: float = 0.1          # Energy per second just existing
    movement_cost_factor: float = 0.02        # Energy per unit distance moved
    sensing_cost_base: float = 0.01           # Energy per second of sensing
    optimal_energy_gain_rate: float = 0.5     # Max gain per second at perfect match
    energy_efficiency_range: Tuple[float, float] = (0.8, 1.2)


@dataclass
class ReproductionConfig:
    threshold: float = REPRODUCTION_THRESHOLD
    cooldown: float = REPRODUCTION_COOLDOWN
    offspring_energy_ratio: float = OFFSPRING_ENERGY_RATIO
    offspring_min_distance: float = OFFSPRING_MIN_DISTANCE
    offspring_max_distance: float = OFFSPRING_MAX_DISTANCE
    mutation_rate: float = 1.0                # Probability each trait mutates
    mutation_small: float = MUTATION_SMALL    # Preference, costs, sensor angles
    mutation_medium: float = MUTATION_MEDIUM  # Speed, gain, efficiency
    max_population: int = MAX_POPULATION


@dataclass
class ChemicalConfig:
    count: int = 5
    min_strength: float = 100.0
    max_strength: float = 500.0
    min_decay_factor: float = 0.001
    max_decay_factor: float = 0.01
    depletion_rate: float = DEFAULT_DEPLETION_RATE
    regeneration_probability: float = 0.2
    target_system_energy: float = 0.0         # 0 = sum of initial source capacity
    depletion_multiplier: float = 2.0         # Source loss per unit organism gain
    energy_per_strength: float = ENERGY_PER_STRENGTH


@dataclass
class FieldConfig:
    use_grid: bool = True
    cell_size: float = GRID_CELL_SIZE


@dataclass
class RenderConfig:
    window_width: int = 800
    window_height: int = 800
    frame_rate: int = 60
    heatmap_resolution: int = 160
    show_contours: bool = True
    show_sensors: bool = False
    show_trails: bool = True


@dataclass
class SimulationConfig:
    version: str = VERSION
    world: WorldConfig = field(default_factory=WorldConfig)
    organism: OrganismConfig = field(default_factory=OrganismConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)
    chemical: ChemicalConfig = field(default_factory=ChemicalConfig)
    field_cache: FieldConfig = field(default_factory=FieldConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    random_seed: int = 0                      # 0 = fresh entropy each run
    simulation_speed: float = 1.0
    min_simulation_speed: float = 0.1
    max_simulation_speed: float = 10.0

    def to_dict(self) -> dict:
        """Serialize to plain JSON-compatible dict."""
        d = asdict(self)
        d['energy']['energy_efficiency_range'] = list(self.energy.energy_efficiency_range)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> 'SimulationConfig':
        """Deserialize, filling missing keys from defaults."""
        cfg = cls()
        for f in fields(cls):
            if f.name not in d:
                continue
            current = getattr(cfg, f.name)
            value = d[f.name]
            if hasattr(current, '__dataclass_fields__'):
                if not isinstance(value, dict):
                    raise ValueError(f"config section '{f.name}' must be an object")
                setattr(cfg, f.name, _section_from_dict(type(current), value))
            else:
                setattr(cfg, f.name, value)
        return cfg

    def validate(self):
        """
        Check value ranges.

        Raises:
            ValueError: naming the first offending key
        """
        checks = [
            ('world.width', self.world.width > 0),
            ('world.height', self.world.height > 0),
            ('organism.count', self.organism.count >= 0),
            ('organism.speed', self.organism.speed >= 0),
            ('organism.sensor_distance', self.organism.sensor_distance >= 0),
            ('organism.preference_std_dev', self.organism.preference_std_dev >= 0),
            ('energy.initial_energy', 0 <= self.energy.initial_energy <= 1),
            ('energy.maximum_energy', self.energy.maximum_energy > 0),
            ('energy.energy_efficiency_range',
             len(self.energy.energy_efficiency_range) == 2 and
             0 < self.energy.energy_efficiency_range[0] <= self.energy.energy_efficiency_range[1]),
            ('reproduction.threshold', 0 < self.reproduction.threshold <= 1),
            ('reproduction.offspring_energy_ratio', 0 <= self.reproduction.offspring_energy_ratio < 1),
            ('reproduction.offspring_min_distance',
             0 <= self.reproduction.offspring_min_distance <= self.reproduction.offspring_max_distance),
            ('reproduction.mutation_rate', 0 <= self.reproduction.mutation_rate <= 1),
            ('reproduction.max_population', self.reproduction.max_population >= 0),
            ('chemical.count', self.chemical.count >= 0),
            ('chemical.min_strength', 0 <= self.chemical.min_strength <= self.chemical.max_strength),
            ('chemical.min_decay_factor',
             0 <= self.chemical.min_decay_factor <= self.chemical.max_decay_factor),
            ('chemical.depletion_rate', self.chemical.depletion_rate >= 0),
            ('chemical.regeneration_probability', self.chemical.regeneration_probability >= 0),
            ('chemical.target_system_energy', self.chemical.target_system_energy >= 0),
            ('chemical.depletion_multiplier', self.chemical.depletion_multiplier >= 0),
            ('chemical.energy_per_strength', self.chemical.energy_per_strength > 0),
            ('field_cache.cell_size', self.field_cache.cell_size > 0),
            ('min_simulation_speed',
             0 < self.min_simulation_speed <= self.max_simulation_speed),
        ]
        for key, ok in checks:
            if not ok:
                raise ValueError(f"invalid configuration value: {key}")


def _section_from_dict(section_cls, d: dict):
    valid = {f.name for f in fields(section_cls)}
    kwargs = {k: v for k, v in d.items() if k in valid}
    if 'energy_efficiency_range' in kwargs:
        kwargs['energy_efficiency_range'] = tuple(kwargs['energy_efficiency_range'])
    return section_cls(**kwargs)


def default_config() -> SimulationConfig:
    """Configuration for a standard run."""
    return SimulationConfig()


def load_config(filepath: str, create_missing: bool = True) -> SimulationConfig:
    """
    Load configuration from a JSON file.

    Args:
        filepath: Path to config JSON
        create_missing: Write the defaults to ``filepath`` when it does not
            exist instead of raising

    Returns:
        Validated SimulationConfig

    Raises:
        FileNotFoundError: file missing and ``create_missing`` is False
        json.JSONDecodeError: malformed JSON
        ValueError: structurally valid JSON with out-of-range values
    """
    if not os.path.exists(filepath):
        if not create_missing:
            raise FileNotFoundError(filepath)
        cfg = default_config()
        save_config(cfg, filepath)
        print(f"[Config] Created default configuration file at: {filepath}")
        return cfg

    with open(filepath, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("configuration root must be a JSON object")

    cfg = SimulationConfig.from_dict(data)
    cfg.validate()
    return cfg


def save_config(cfg: SimulationConfig, filepath: str):
    """Write configuration as indented JSON."""
    with open(filepath, 'w') as f:
        json.dump(cfg.to_dict(), f, indent=2)
