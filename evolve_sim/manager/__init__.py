"""Simulation management - world ownership and the step loop."""

from .world_coordinator import WorldCoordinator
from .simulator import Simulator, SimState
