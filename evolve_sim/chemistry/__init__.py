"""Chemistry - sources, the energy ledger and the concentration field."""

from .source import ChemicalSource
from .grid import ConcentrationGrid, compute_gradient, evaluate_sources
from .contours import ContourLine, contour_lines, default_levels
from .ledger import EnergyLedger
from .field import ChemicalField, CacheState
