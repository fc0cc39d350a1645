"""
Color utilities for visualization.

Colormaps for the concentration heatmap and organism preference, plus
source and reproduction-ring styling.
"""

import numpy as np
import matplotlib
import matplotlib.colors as mcolors
from typing import Tuple

HEATMAP_CMAP = 'magma'
PREFERENCE_CMAP = 'cool'
CONTOUR_COLOR = '#FFFFFF'
TRAIL_COLOR = (0.8, 0.8, 0.8, 0.25)
BACKGROUND = '#050510'

SOURCE_ACTIVE_COLOR = '#7CFC00'     # Lawn green
SOURCE_INACTIVE_COLOR = '#555555'
RING_COLOR = (1.0, 0.85, 0.2)       # Warm yellow


def preference_colors(preferences: np.ndarray, vmin: float,
                      vmax: float) -> np.ndarray:
    """
    Map chemical preferences onto RGBA colours.

    Args:
        preferences: Array of preference values
        vmin, vmax: Range mapped onto the colormap ends

    Returns:
        RGBA array with shape (len(preferences), 4)
    """
    preferences = np.asarray(preferences, dtype=float)
    if vmax <= vmin:
        vmax = vmin + 1.0
    norm = mcolors.Normalize(vmin=vmin, vmax=vmax, clip=True)
    return matplotlib.colormaps[PREFERENCE_CMAP](norm(preferences))


def energy_alpha(energy_ratio: np.ndarray) -> np.ndarray:
    """Dim starving organisms; full opacity from half capacity up."""
    return np.clip(0.3 + 1.4 * np.asarray(energy_ratio, dtype=float), 0.3, 1.0)


def source_style(active: bool, energy_ratio: float) -> Tuple[str, float]:
    """
    Marker colour and area for a chemical source.

    Returns:
        (color, marker_area)
    """
    if not active:
        return SOURCE_INACTIVE_COLOR, 20.0
    return SOURCE_ACTIVE_COLOR, 30.0 + 170.0 * float(np.clip(energy_ratio, 0.0, 1.0))


def ring_style(age: int, duration: int) -> Tuple[float, float]:
    """
    Radius scale and alpha for a reproduction ring ``age`` frames old.

    Returns:
        (radius_scale, alpha); radius grows 1 -> 3 while alpha fades to 0
    """
    t = float(np.clip(age / max(1, duration), 0.0, 1.0))
    return 1.0 + 2.0 * t, 0.9 * (1.0 - t)
