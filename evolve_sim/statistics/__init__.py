"""
Statistics - population and chemical-field snapshots plus export.

Contains:
- OrganismStats: preference distribution, exposure and energy of the population
- ChemicalStats: source counts and concentration sampled on a fixed grid
- SimulationStats: one timestamped snapshot of both
- StatsHistory: snapshot series with CSV/JSON export and a summary plot
"""

import csv
import json
import os
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from ..core.constants import HISTOGRAM_BUCKET_SIZE, STATS_SAMPLES_X, STATS_SAMPLES_Y

CSV_HEADER = [
    'Time', 'OrganismCount', 'AveragePreference', 'PreferenceStdDev',
    'AverageConcentration', 'PreferenceExposureRatio', 'MaxConcentration',
]


def histogram(values, bucket_size: float = HISTOGRAM_BUCKET_SIZE) -> Dict[float, int]:
    """Count values per fixed-width bucket, keyed by bucket start."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return {}
    starts = np.floor(values / bucket_size) * bucket_size
    keys, counts = np.unique(starts, return_counts=True)
    return {float(k): int(c) for k, c in zip(keys, counts)}


@dataclass
class OrganismStats:
    count: int = 0
    avg_preference: float = 0.0
    preference_std_dev: float = 0.0
    min_preference: float = 0.0
    max_preference: float = 0.0
    avg_concentration: float = 0.0        # At organism positions
    preference_exposure_ratio: float = 0.0  # avg concentration / avg preference
    avg_energy: float = 0.0
    avg_energy_ratio: float = 0.0
    max_generation: int = 0
    preference_histogram: Dict[float, int] = field(default_factory=dict)
    concentration_histogram: Dict[float, int] = field(default_factory=dict)


@dataclass
class ChemicalStats:
    source_count: int = 0
    active_count: int = 0
    min_concentration: float = 0.0
    max_concentration: float = 0.0
    avg_concentration: float = 0.0
    total_energy: float = 0.0
    target_energy: float = 0.0


@dataclass
class SimulationStats:
    """One snapshot keyed by simulation time."""
    time: float = 0.0
    step: int = 0
    organisms: OrganismStats = field(default_factory=OrganismStats)
    chemicals: ChemicalStats = field(default_factory=ChemicalStats)

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'step': self.step,
            'organisms': {f.name: getattr(self.organisms, f.name)
                          for f in fields(OrganismStats)},
            'chemicals': {f.name: getattr(self.chemicals, f.name)
                          for f in fields(ChemicalStats)},
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'SimulationStats':
        org = OrganismStats()
        for k, v in d.get('organisms', {}).items():
            if hasattr(org, k):
                setattr(org, k, v)
        # JSON turns float keys into strings
        for name in ('preference_histogram', 'concentration_histogram'):
            setattr(org, name, {float(k): int(v) for k, v in getattr(org, name).items()})
        chem = ChemicalStats()
        for k, v in d.get('chemicals', {}).items():
            if hasattr(chem, k):
                setattr(chem, k, v)
        return cls(time=d.get('time', 0.0), step=d.get('step', 0),
                   organisms=org, chemicals=chem)

    def csv_row(self) -> list:
        o = self.organisms
        return [
            f"{self.time:.2f}", o.count, f"{o.avg_preference:.4f}",
            f"{o.preference_std_dev:.4f}", f"{o.avg_concentration:.4f}",
            f"{o.preference_exposure_ratio:.4f}",
            f"{self.chemicals.max_concentration:.4f}",
        ]


# =============================================================================
# COLLECTION
# =============================================================================

def collect_organism_stats(organisms, world) -> OrganismStats:
    stats = OrganismStats(count=len(organisms))
    if not organisms:
        return stats

    prefs = np.array([o.chem_preference for o in organisms])
    xs = np.array([o.position.x for o in organisms])
    ys = np.array([o.position.y for o in organisms])
    conc = world.sample_concentration(xs, ys)

    stats.avg_preference = float(prefs.mean())
    stats.preference_std_dev = float(prefs.std())
    stats.min_preference = float(prefs.min())
    stats.max_preference = float(prefs.max())
    stats.avg_concentration = float(conc.mean())
    if stats.avg_preference > 0:
        stats.preference_exposure_ratio = stats.avg_concentration / stats.avg_preference
    stats.avg_energy = float(np.mean([o.energy for o in organisms]))
    stats.avg_energy_ratio = float(np.mean([o.energy_ratio for o in organisms]))
    stats.max_generation = max(o.generation for o in organisms)
    stats.preference_histogram = histogram(prefs)
    stats.concentration_histogram = histogram(conc)
    return stats


def collect_chemical_stats(world) -> ChemicalStats:
    """Source counts plus concentration on a STATS_SAMPLES_X x STATS_SAMPLES_Y grid."""
    sources = world.get_chemical_sources()
    total, target = world.system_energy_info()
    stats = ChemicalStats(
        source_count=len(sources),
        active_count=sum(1 for s in sources if s.active),
        total_energy=total,
        target_energy=target,
    )

    b = world.get_bounds()
    xs = b.min_x + (np.arange(STATS_SAMPLES_X) + 0.5) / STATS_SAMPLES_X * b.width
    ys = b.min_y + (np.arange(STATS_SAMPLES_Y) + 0.5) / STATS_SAMPLES_Y * b.height
    gx, gy = np.meshgrid(xs, ys, indexing='ij')
    samples = world.sample_concentration(gx, gy)
    stats.min_concentration = float(samples.min())
    stats.max_concentration = float(samples.max())
    stats.avg_concentration = float(samples.mean())
    return stats


def collect_stats(simulator) -> SimulationStats:
    """Snapshot the simulator's world at its current time."""
    world = simulator.world
    organisms = world.get_organisms()
    return SimulationStats(
        time=simulator.time,
        step=simulator.step_count,
        organisms=collect_organism_stats(organisms, world),
        chemicals=collect_chemical_stats(world),
    )


# =============================================================================
# EXPORT
# =============================================================================

def export_stats_csv(stats: List[SimulationStats], filepath: str):
    """One row per snapshot under CSV_HEADER."""
    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for s in stats:
            writer.writerow(s.csv_row())


def export_stats_json(stats: List[SimulationStats], filepath: str):
    with open(filepath, 'w') as f:
        json.dump({
            'exported': datetime.now().isoformat(),
            'snapshots': [s.to_dict() for s in stats],
        }, f, indent=2)


def load_stats_json(filepath: str) -> List[SimulationStats]:
    with open(filepath, 'r') as f:
        data = json.load(f)
    return [SimulationStats.from_dict(d) for d in data.get('snapshots', [])]


class StatsHistory:
    """Snapshot series collected during a run."""

    def __init__(self):
        self.snapshots: List[SimulationStats] = []

    def add(self, stats: SimulationStats):
        self.snapshots.append(stats)

    def __len__(self):
        return len(self.snapshots)

    @property
    def latest(self) -> Optional[SimulationStats]:
        return self.snapshots[-1] if self.snapshots else None

    def export(self, directory: str, prefix: str = None) -> List[str]:
        """
        Write CSV and JSON files into ``directory``.

        Returns:
            Paths written
        """
        os.makedirs(directory, exist_ok=True)
        prefix = prefix or datetime.now().strftime('stats_%Y%m%d_%H%M%S')
        csv_path = os.path.join(directory, f"{prefix}.csv")
        json_path = os.path.join(directory, f"{prefix}.json")
        export_stats_csv(self.snapshots, csv_path)
        export_stats_json(self.snapshots, json_path)
        return [csv_path, json_path]


def create_stats_summary_plot(history: StatsHistory, save_path: str):
    """Population, preference and energy over time, saved as an image."""
    import matplotlib.pyplot as plt

    if len(history) < 2:
        print("[Stats] Not enough snapshots for summary plot")
        return

    snaps = history.snapshots
    t = [s.time for s in snaps]

    fig, axes = plt.subplots(2, 2, figsize=(12, 8), facecolor='black')
    fig.suptitle(f'Run Summary ({len(snaps)} snapshots)', color='white',
                 fontsize=14, fontweight='bold')

    panels = [
        (axes[0, 0], [s.organisms.count for s in snaps], 'cyan', 'Population'),
        (axes[0, 1], [s.organisms.avg_preference for s in snaps], 'magenta',
         'Mean Preference'),
        (axes[1, 0], [s.organisms.preference_exposure_ratio for s in snaps], 'lime',
         'Exposure / Preference'),
        (axes[1, 1], [s.chemicals.total_energy for s in snaps], 'orange',
         'System Energy'),
    ]
    for ax, values, color, title in panels:
        ax.set_facecolor('black')
        ax.plot(t, values, color=color, lw=1.5)
        ax.set_xlabel('Time (s)', color='white')
        ax.set_title(title, color=color)
        ax.tick_params(colors='white')
        for spine in ax.spines.values():
            spine.set_color('gray')

    targets = [s.chemicals.target_energy for s in snaps]
    axes[1, 1].plot(t, targets, color='yellow', lw=1, ls='--', label='target')
    axes[1, 1].legend(facecolor='black', labelcolor='white', fontsize=8)

    fig.savefig(save_path, dpi=100, facecolor='black')
    plt.close(fig)
