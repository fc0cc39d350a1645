"""
Heritable traits - what an offspring inherits with mutation.

Each mutable trait is perturbed multiplicatively by a normal draw at
reproduction, so variation scales with the trait's own magnitude. Floors keep
rates and speeds strictly positive.
"""

from typing import Dict, Optional, Tuple

import numpy as np

from ..core.config import ReproductionConfig

SMALL = 'small'
MEDIUM = 'medium'

# attribute name -> (magnitude class, floor)
MUTABLE_TRAITS: Dict[str, Tuple[str, Optional[float]]] = {
    'chem_preference': (SMALL, 0.001),
    'metabolic_rate': (SMALL, 0.001),
    'movement_cost': (SMALL, 0.001),
    'sensing_cost': (SMALL, 0.001),
    'speed': (MEDIUM, 0.1),
    'optimal_gain': (MEDIUM, 0.001),
    'energy_efficiency': (MEDIUM, 0.001),
    'sensor_angles': (SMALL, None),
}


def mutate_trait(value: float, magnitude: float, rng: np.random.Generator,
                 floor: Optional[float] = None, rate: float = 1.0) -> float:
    """
    Multiplicative normal mutation.

    Args:
        value: Parent value
        magnitude: Standard deviation of the relative change
        rng: Run generator
        floor: Lower bound applied after mutation (None = unbounded)
        rate: Probability the trait mutates at all

    Returns:
        value * (1 + N(0, magnitude)), floored
    """
    if rate < 1.0 and rng.random() >= rate:
        return value
    mutated = value * (1.0 + rng.normal(0.0, magnitude))
    if floor is not None:
        mutated = max(floor, mutated)
    return float(mutated)


def magnitude_for(trait_class: str, config: ReproductionConfig) -> float:
    return config.mutation_small if trait_class == SMALL else config.mutation_medium


def mutate_traits(parent, child, rng: np.random.Generator,
                  config: ReproductionConfig):
    """
    Write mutated copies of every MUTABLE_TRAITS attribute of ``parent``
    onto ``child``. Traits are processed in table order so a seeded run
    draws the same numbers every time.
    """
    for name, (trait_class, floor) in MUTABLE_TRAITS.items():
        mag = magnitude_for(trait_class, config)
        value = getattr(parent, name)
        if isinstance(value, tuple):
            new_value = tuple(mutate_trait(v, mag, rng, floor, config.mutation_rate)
                              for v in value)
        else:
            new_value = mutate_trait(value, mag, rng, floor, config.mutation_rate)
        setattr(child, name, new_value)
