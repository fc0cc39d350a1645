"""Visualization - matplotlib rendering of the field and population."""

from .colors import preference_colors, source_style, ring_style
from .main_vis import FieldVisualization
