"""
Core constants for the EvolveSim simulation.

Time stepping, field sampling parameters, organism lifecycle thresholds and
file locations shared across the package. Tunable game-balance values live in
``core.config``; the values here are structural and rarely changed.
"""

import os

# =============================================================================
# PATHS
# =============================================================================
SCRIPT_DIR = os.getcwd()

EVENT_LOG_FILE = os.path.join(SCRIPT_DIR, "evolve_sim_events.jsonl")
STATS_DIR = os.path.join(SCRIPT_DIR, "stats")


# =============================================================================
# TIME STEPS
# =============================================================================
TIME_STEP = 1.0 / 60.0      # Base simulation timestep (seconds)
STATS_INTERVAL = 60         # Steps between statistics snapshots (headless)
POPULATION_LOG_INTERVAL = 600


# =============================================================================
# CHEMICAL FIELD
# =============================================================================
GRID_CELL_SIZE = 5.0            # World units between cached grid nodes
GRADIENT_DELTA = 0.5            # Finite-difference step
EPSILON = 1e-9                  # Zero-distance / flat-field tolerance
CACHE_DRIFT_THRESHOLD = 0.05    # Relative source energy change that invalidates the grid
ENERGY_PER_STRENGTH = 1000.0    # Source max energy per unit of strength
DEFAULT_DEPLETION_RATE = 0.2    # Passive source drain (energy / second)
MIN_DEFICIT_FRACTION = 0.01     # Regeneration skipped below this deficit / target
SOURCE_MARGIN_FRACTION = 0.1    # New sources keep this fraction of the world away from edges


# =============================================================================
# ORGANISMS
# =============================================================================
MAX_TRAIL_LENGTH = 30
TRAIL_RECORD_INTERVAL = 5       # Record a trail point every N moves
CAPACITY_PER_SPEED = 10.0       # Extra energy capacity per unit of speed
SIMILARITY_THRESHOLD = 0.7      # Gain starts above this preference match


# =============================================================================
# REPRODUCTION
# =============================================================================
REPRODUCTION_THRESHOLD = 0.75   # Fraction of capacity required
REPRODUCTION_COOLDOWN = 5.0     # Seconds between births
OFFSPRING_ENERGY_RATIO = 0.3
OFFSPRING_MIN_DISTANCE = 5.0
OFFSPRING_MAX_DISTANCE = 10.0
MUTATION_SMALL = 0.05
MUTATION_MEDIUM = 0.1
MAX_POPULATION = 1000


# =============================================================================
# STATISTICS
# =============================================================================
HISTOGRAM_BUCKET_SIZE = 5.0
STATS_SAMPLES_X = 20
STATS_SAMPLES_Y = 20
