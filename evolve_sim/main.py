#!/usr/bin/env python3
"""
EvolveSim - Chemotactic Evolution Simulation
============================================

Single-cell organisms steer through overlapping chemical gradients toward
their individually preferred concentration, earning energy when they find
it, draining the sources they feed on, and reproducing with mutation.

Usage:
    python -m evolve_sim                               # Visual mode
    python -m evolve_sim --headless                    # No window, fixed duration
    python -m evolve_sim --headless --export-stats     # ...and write CSV/JSON stats
    python -m evolve_sim --help                        # Show help

Environment:
    EVOSIM_CONFIG     Path to a JSON config file (created with defaults if missing)
    EVOSIM_DURATION   Headless run length in simulated seconds (default 60)
    EVOSIM_SEED       Random seed override (0 = fresh entropy)
    EVOSIM_VERBOSITY  Console verbosity 0-3 (minimal .. full)

Controls (visual mode):
    Space: Pause/resume
    + / -: Simulation speed
    R: Reset world
    C / T / S: Toggle contours / trails / sensors
    V: Cycle console verbosity
"""

import json
import os
import sys
import time

# === READ LAUNCH PARAMETERS ===
LAUNCH_PARAMS = {
    'config': os.environ.get('EVOSIM_CONFIG', ''),
    'duration': float(os.environ.get('EVOSIM_DURATION', '60')),
    'seed': os.environ.get('EVOSIM_SEED'),
    'verbosity': os.environ.get('EVOSIM_VERBOSITY'),
}

from .core.config import SimulationConfig, default_config, load_config
from .core.constants import STATS_INTERVAL, STATS_DIR
from .manager.simulator import Simulator
from .statistics import StatsHistory, create_stats_summary_plot
from .events.logger import event_log
from .events.console_log import console_log, Verbosity

import matplotlib.pyplot as plt


def print_banner(mode: str = 'visual'):
    print("=" * 72)
    print("EVOLVESIM - Chemotactic Evolution Simulation")
    print("=" * 72)
    if mode == 'headless':
        print("HEADLESS MODE")
        print("Running without visualization for a fixed duration.")
        print("Press Ctrl+C to stop early.")
    else:
        print("Organisms sense three points ahead, turn toward their preferred")
        print("concentration, and reproduce when well fed. Sources deplete as")
        print("they are eaten and regenerate toward the system energy target.")
    print("=" * 72)


def build_config(params: dict = None) -> SimulationConfig:
    """
    Resolve configuration from launch parameters.

    Raises:
        ValueError, json.JSONDecodeError: invalid config file or seed
    """
    params = params if params is not None else LAUNCH_PARAMS
    if params.get('config'):
        cfg = load_config(params['config'], create_missing=True)
    else:
        cfg = default_config()
    if params.get('seed') not in (None, ''):
        cfg.random_seed = int(params['seed'])
    if params.get('verbosity') not in (None, ''):
        console_log().set_verbosity(Verbosity(int(params['verbosity'])))
    return cfg


def main_headless(config: SimulationConfig, duration: float,
                  export_stats: bool = False) -> StatsHistory:
    """
    Run without a window for ``duration`` simulated seconds.

    Args:
        config: Simulation configuration
        duration: Simulated seconds to run
        export_stats: Write CSV, JSON and a summary plot to STATS_DIR

    Returns:
        Collected statistics snapshots
    """
    print_banner('headless')
    sim = Simulator.from_config(config)
    history = StatsHistory()
    history.add(sim.collect_stats())

    dt = sim.time_step * sim.simulation_speed
    total_steps = max(1, int(round(duration / dt)))
    progress_every = max(1, total_steps // 10)

    print(f"[Headless] {total_steps} steps ({duration:.1f}s simulated), "
          f"seed={config.random_seed}")
    print(f"[Headless] Organisms: {sim.world.organism_count}  "
          f"Sources: {sim.world.chemical_source_count}")

    started = time.time()
    try:
        for step in range(1, total_steps + 1):
            sim.step()

            if step % STATS_INTERVAL == 0:
                history.add(sim.collect_stats())

            if step % progress_every == 0:
                count, avg_energy = sim.world.population_info()
                total, target = sim.world.system_energy_info()
                pct = 100 * step // total_steps
                print(f"[{pct:3d}%] t={sim.time:7.1f}s | n={count:4d} | "
                      f"avgE={avg_energy:6.1f} | energy={total:8.0f}/{target:.0f} | "
                      f"{time.time() - started:.1f}s")

            if sim.world.organism_count == 0:
                print(f"[Headless] Population extinct at t={sim.time:.1f}s")
                break

    except KeyboardInterrupt:
        print("\n[Shutdown] Stopping early...")
    finally:
        if history.latest is None or history.latest.step != sim.step_count:
            history.add(sim.collect_stats())
        event_log().log_run(sim.step_count, 'end', sim_time=round(sim.time, 3),
                            organisms=sim.world.organism_count,
                            births=sim.world.total_births,
                            deaths=sim.world.total_deaths)
        event_log().flush()

    if export_stats:
        paths = history.export(STATS_DIR)
        plot_path = os.path.splitext(paths[0])[0] + '.png'
        create_stats_summary_plot(history, plot_path)
        for p in paths + [plot_path]:
            print(f"[Stats] Wrote {p}")

    print(f"[Headless] Done: {sim.step_count} steps, "
          f"{sim.world.organism_count} organisms, "
          f"{sim.world.total_births} births, {sim.world.total_deaths} deaths")
    return history


def main_visual(config: SimulationConfig):
    """Interactive window; one simulation step per rendered frame."""
    print_banner('visual')
    sim = Simulator.from_config(config)

    from .visualization.main_vis import FieldVisualization
    viz = FieldVisualization(sim)
    frame_delay = 1.0 / max(1, config.render.frame_rate)

    print(f"\n[Init] Organisms: {sim.world.organism_count}  "
          f"Sources: {sim.world.chemical_source_count}")
    print()

    try:
        while plt.fignum_exists(viz.fig.number):
            sim.step()
            viz.update()
            summary = console_log().get_summary(sim.step_count)
            if summary:
                print(summary)
            plt.pause(frame_delay)

    except KeyboardInterrupt:
        print("\n[Shutdown] Closing...")
    finally:
        event_log().log_run(sim.step_count, 'end', sim_time=round(sim.time, 3),
                            organisms=sim.world.organism_count)
        event_log().flush()
        plt.close('all')


def main() -> int:
    """Entry point - choose mode based on arguments."""
    if '--help' in sys.argv or '-h' in sys.argv:
        print(__doc__)
        return 0

    try:
        config = build_config()
    except (ValueError, json.JSONDecodeError) as e:
        print(f"[Error] Invalid configuration: {e}")
        return 1

    if '--headless' in sys.argv:
        main_headless(config, LAUNCH_PARAMS['duration'],
                      export_stats='--export-stats' in sys.argv)
    else:
        main_visual(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
