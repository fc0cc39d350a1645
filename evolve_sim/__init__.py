"""
EvolveSim - Chemotactic Evolution Simulation

Organisms navigate a field of overlapping chemical gradients, feed where the
concentration matches their inherited preference, and evolve through an
energy-gated reproduction loop with mutation.

Usage:
    python -m evolve_sim              # Run with visualization
    python -m evolve_sim --headless   # Headless fixed-duration run

Package structure:
- core/: Constants, geometry, configuration, locks, utilities
- chemistry/: Sources, concentration grid, contours, field, energy ledger
- creature/: Organism data, heritable traits, behaviour functions
- manager/: World coordinator and simulation loop
- statistics/: Snapshots and CSV/JSON export
- events/: JSONL event log and console verbosity filter
- visualization/: matplotlib rendering
"""

__version__ = "0.1.0"

from .main import main, main_visual, main_headless

# Submodule imports
from . import (
    core, chemistry, creature, manager, statistics, events, visualization
)
