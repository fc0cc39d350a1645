import matplotlib
matplotlib.use('Agg')

import pytest

from evolve_sim.core.config import SimulationConfig
from evolve_sim.core.geometry import Point, Rect
from evolve_sim.chemistry.source import ChemicalSource
from evolve_sim.chemistry.ledger import EnergyLedger
from evolve_sim.events.logger import EventLogger
from evolve_sim.events.console_log import ConsoleLogger, Verbosity


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Send the event log to a temp file and keep the console quiet."""
    EventLogger.reset()
    EventLogger._instance = EventLogger(str(tmp_path / 'events.jsonl'))
    ConsoleLogger.reset()
    ConsoleLogger.get().set_verbosity(Verbosity.MINIMAL)
    yield
    EventLogger.reset()
    ConsoleLogger.reset()


@pytest.fixture
def small_config():
    cfg = SimulationConfig()
    cfg.world.width = 100.0
    cfg.world.height = 100.0
    cfg.organism.count = 12
    cfg.chemical.count = 3
    cfg.chemical.min_strength = 50.0
    cfg.chemical.max_strength = 100.0
    cfg.chemical.min_decay_factor = 0.001
    cfg.chemical.max_decay_factor = 0.005
    cfg.chemical.target_system_energy = 0.0
    cfg.field_cache.cell_size = 2.0
    cfg.random_seed = 42
    return cfg


@pytest.fixture
def bounds():
    return Rect(0.0, 0.0, 100.0, 100.0)


@pytest.fixture
def ledger(small_config, bounds):
    return EnergyLedger(bounds, small_config.chemical)


def make_source(x=50.0, y=50.0, strength=100.0, decay=0.01, **kw):
    return ChemicalSource.create(Point(x, y), strength, decay, **kw)
