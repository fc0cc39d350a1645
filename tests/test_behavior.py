import math

import numpy as np
import pytest

from evolve_sim.core.config import (
    ChemicalConfig, EnergyConfig, FieldConfig, ReproductionConfig,
)
from evolve_sim.core.constants import CAPACITY_PER_SPEED
from evolve_sim.core.geometry import Point, Rect
from evolve_sim.chemistry.field import ChemicalField
from evolve_sim.chemistry.ledger import EnergyLedger
from evolve_sim.chemistry.source import ChemicalSource
from evolve_sim.creature import behavior
from evolve_sim.creature.behavior import Direction, SensorReadings
from evolve_sim.creature.organism import Organism, default_sensor_angles

BOUNDS = Rect(0.0, 0.0, 100.0, 100.0)


class ConstantField:
    def __init__(self, value):
        self.value = value

    def concentration_at(self, point):
        return self.value


class LinearField:
    """Concentration equal to x."""

    def concentration_at(self, point):
        return point.x


class RecordingLedger:
    def __init__(self):
        self.calls = []

    def deplete(self, position, amount):
        self.calls.append((position, amount))
        return amount


def make_organism(**overrides):
    org = Organism(position=Point(50.0, 50.0), chem_preference=50.0, speed=2.0,
                   energy=50.0, energy_capacity=120.0, energy_efficiency=1.0)
    for k, v in overrides.items():
        setattr(org, k, v)
    return org


# ===== Sensing and steering =====

def test_sense_reads_three_sensors():
    org = make_organism(heading=0.0)
    readings = behavior.sense(org, LinearField(), 10.0)
    assert readings.front == pytest.approx(60.0)
    assert readings.left == pytest.approx(50.0 + 10.0 * math.cos(math.pi / 4))
    assert readings.left == pytest.approx(readings.right)


@pytest.mark.parametrize('readings, expected', [
    (SensorReadings(50.0, 40.0, 30.0), Direction.CONTINUE),
    (SensorReadings(30.0, 49.0, 40.0), Direction.LEFT),
    (SensorReadings(30.0, 40.0, 49.0), Direction.RIGHT),
    (SensorReadings(45.0, 55.0, 40.0), Direction.CONTINUE),   # front ties left
    (SensorReadings(30.0, 45.0, 55.0), Direction.CONTINUE),   # left ties right
])
def test_decide(readings, expected):
    assert behavior.decide(readings, 50.0) == expected


def test_steer_limited_by_turn_speed():
    org = make_organism(heading=1.0)
    delta = behavior.steer(org, Direction.RIGHT, turn_speed=0.1, dt=1.0)
    assert delta == pytest.approx(0.1)
    assert org.heading == pytest.approx(1.1)
    assert org.previous_heading == pytest.approx(1.0)

    delta = behavior.steer(org, Direction.LEFT, turn_speed=0.1, dt=1.0)
    assert delta == pytest.approx(-0.1)


def test_steer_never_exceeds_sensor_offset():
    org = make_organism(heading=1.0)
    delta = behavior.steer(org, Direction.LEFT, turn_speed=10.0, dt=1.0)
    assert delta == pytest.approx(-math.pi / 4)


def test_steer_continue_keeps_heading():
    org = make_organism(heading=2.0)
    assert behavior.steer(org, Direction.CONTINUE, 1.0, 1.0) == 0.0
    assert org.heading == 2.0


def test_move_advances_and_reports_distance():
    org = make_organism(heading=0.0)
    dist = behavior.move(org, BOUNDS, 1.0)
    assert dist == pytest.approx(2.0)
    assert org.position.x == pytest.approx(52.0)


def test_move_reflects_off_x_wall():
    org = make_organism(position=Point(99.0, 50.0), heading=0.0)
    behavior.move(org, BOUNDS, 1.0)
    assert org.heading == pytest.approx(math.pi)
    assert BOUNDS.contains(org.position)


def test_move_reflects_off_y_wall():
    org = make_organism(position=Point(50.0, 0.5), heading=3 * math.pi / 2)
    behavior.move(org, BOUNDS, 1.0)
    assert org.heading == pytest.approx(math.pi / 2)
    assert org.position.y == 0.0
    assert BOUNDS.contains(org.position)


def test_move_corner_reflects_both_axes():
    org = make_organism(position=Point(99.5, 99.5), heading=math.pi / 4)
    behavior.move(org, BOUNDS, 1.0)
    assert org.heading == pytest.approx(5 * math.pi / 4)
    assert BOUNDS.contains(org.position)


# ===== Energy =====

def test_similarity():
    assert behavior.similarity(50.0, 50.0) == 1.0
    assert behavior.similarity(25.0, 50.0) == pytest.approx(0.5)
    assert behavior.similarity(200.0, 50.0) == 0.0
    assert behavior.similarity(0.0, 0.0) == 1.0
    assert behavior.similarity(1.0, 0.0) == 0.0


def test_update_energy_charges_all_costs():
    org = make_organism(metabolic_rate=0.1, movement_cost=0.02, sensing_cost=0.01,
                        energy_efficiency=2.0)
    gained = behavior.update_energy(org, ConstantField(0.0), 1.0, RecordingLedger(),
                                    movement_distance=2.0)
    assert gained == 0.0
    assert org.energy == pytest.approx(50.0 - 2.0 * (0.1 + 0.04 + 0.01))
    assert org.age == pytest.approx(1.0)
    assert org.time_since_reproduction == pytest.approx(1.0)


def test_update_energy_gains_and_depletes_ledger():
    org = make_organism(optimal_gain=0.5)
    ledger = RecordingLedger()
    gained = behavior.update_energy(org, ConstantField(50.0), 1.0, ledger)
    assert gained == pytest.approx(0.5)
    assert org.energy == pytest.approx(50.0 - 0.11 + 0.5)
    assert ledger.calls == [(org.position, pytest.approx(0.5))]


def test_update_energy_no_gain_below_threshold():
    org = make_organism()
    ledger = RecordingLedger()
    assert behavior.update_energy(org, ConstantField(30.0), 1.0, ledger) == 0.0
    assert ledger.calls == []


def test_update_energy_gain_capped_at_capacity():
    org = make_organism(energy=119.95, optimal_gain=5.0, metabolic_rate=0.0,
                        sensing_cost=0.0)
    ledger = RecordingLedger()
    gained = behavior.update_energy(org, ConstantField(50.0), 1.0, ledger)
    assert org.energy == pytest.approx(120.0)
    assert gained == pytest.approx(0.05)
    assert ledger.calls[0][1] == pytest.approx(0.05)


def test_update_energy_marks_starved_organism():
    org = make_organism(energy=0.05)
    behavior.update_energy(org, ConstantField(0.0), 1.0, RecordingLedger())
    assert org.energy == 0.0
    assert org.mark_for_removal
    assert not org.is_alive


# ===== Reproduction =====

def test_can_reproduce():
    org = make_organism(energy=100.0, time_since_reproduction=10.0)
    assert behavior.can_reproduce(org, 0.75, 5.0)
    assert not behavior.can_reproduce(org, 0.9, 5.0)
    assert not behavior.can_reproduce(org, 0.75, 20.0)
    org.mark_for_removal = True
    assert not behavior.can_reproduce(org, 0.75, 5.0)


def test_reproduce_conserves_energy():
    parent = make_organism(energy=100.0, id=3, generation=4, time_since_reproduction=9.0)
    child = behavior.reproduce(parent, np.random.default_rng(0), 99, BOUNDS,
                               ReproductionConfig(), EnergyConfig())
    assert parent.energy + child.energy == pytest.approx(100.0)
    assert child.energy == pytest.approx(30.0)
    assert child.id == 99
    assert child.parent_id == 3
    assert child.generation == 5
    assert child.age == 0.0
    assert parent.time_since_reproduction == 0.0
    assert child.position_history == []


def test_reproduce_places_offspring_in_ring():
    parent = make_organism(energy=100.0)
    cfg = ReproductionConfig()
    rng = np.random.default_rng(2)
    for i in range(20):
        parent.energy = 100.0
        child = behavior.reproduce(parent, rng, i, BOUNDS, cfg, EnergyConfig())
        d = parent.position.distance_to(child.position)
        assert cfg.offspring_min_distance <= d <= cfg.offspring_max_distance + 1e-9


def test_reproduce_keeps_offspring_inside_bounds():
    parent = make_organism(position=Point(0.5, 99.5), energy=100.0)
    rng = np.random.default_rng(4)
    for i in range(20):
        parent.energy = 100.0
        child = behavior.reproduce(parent, rng, i, BOUNDS, ReproductionConfig(),
                                   EnergyConfig())
        assert BOUNDS.contains(child.position)


def test_reproduce_overflow_stays_with_parent():
    parent = make_organism(energy=100.0)
    cfg = ReproductionConfig(offspring_energy_ratio=0.9)
    energy_cfg = EnergyConfig(maximum_energy=10.0)
    child = behavior.reproduce(parent, np.random.default_rng(0), 1, BOUNDS, cfg, energy_cfg)
    assert child.energy_capacity == pytest.approx(10.0 + child.speed * CAPACITY_PER_SPEED)
    assert child.energy == pytest.approx(child.energy_capacity)
    assert parent.energy + child.energy == pytest.approx(100.0)


def test_reproduce_is_deterministic_per_seed():
    results = []
    for _ in range(2):
        parent = make_organism(energy=100.0)
        child = behavior.reproduce(parent, np.random.default_rng(21), 1, BOUNDS,
                                   ReproductionConfig(), EnergyConfig())
        results.append((child.position, child.heading, child.traits_dict()))
    assert results[0] == results[1]


def test_update_runs_full_tick():
    org = make_organism(heading=0.0)
    before = org.position
    ledger = RecordingLedger()
    behavior.update(org, ConstantField(50.0), BOUNDS, 10.0, math.pi / 10, 1.0, ledger)
    assert ledger.calls
    assert org.position != before
    assert org.age == pytest.approx(1.0)


def test_gain_is_drawn_from_real_sources():
    ledger = EnergyLedger(BOUNDS, ChemicalConfig(regeneration_probability=0.0,
                                                 depletion_multiplier=1.0))
    ledger.add_source(ChemicalSource.create(Point(50.0, 50.0), 50.0, 0.01,
                                            max_energy=1000.0))
    field = ChemicalField(ledger, BOUNDS, FieldConfig(use_grid=False))
    org = make_organism(optimal_gain=0.5)

    before = ledger.total_energy
    gained = behavior.update_energy(org, field, 1.0, ledger)
    assert gained == pytest.approx(0.5)
    assert before - ledger.total_energy == pytest.approx(gained)


def test_ledger_is_required():
    with pytest.raises(TypeError):
        behavior.update_energy(make_organism(), ConstantField(50.0), 1.0)
