"""
Utility functions for EvolveSim.

Random generator construction, angle wrapping and small numeric helpers.
"""

import math
from typing import Optional

import numpy as np

TWO_PI = 2 * math.pi


def create_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Build the single random generator a simulation run threads through.

    Args:
        seed: Integer seed. ``None`` or 0 draws entropy from the OS, so
            unseeded runs differ while seeded runs reproduce exactly.

    Returns:
        numpy Generator (PCG64)
    """
    if not seed:
        return np.random.default_rng()
    return np.random.default_rng(seed)


def normalize_angle(angle: float) -> float:
    """
    Wrap an angle into [0, 2π).

    Args:
        angle: Angle in radians

    Returns:
        Equivalent angle in [0, 2π)
    """
    angle = math.fmod(angle, TWO_PI)
    if angle < 0:
        angle += TWO_PI
    # fmod of a tiny negative value can round back up to exactly 2π
    if angle >= TWO_PI:
        angle = 0.0
    return angle


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def uniform(rng: np.random.Generator, lo: float, hi: float) -> float:
    """Uniform float in [lo, hi) as a plain Python float."""
    return float(lo + rng.random() * (hi - lo))
