"""
Main Visualization - real-time matplotlib view of the simulation.

Draws the concentration field as a heatmap with iso-lines, organisms coloured
by chemical preference, sources sized by remaining energy, and expanding
rings where offspring appear. The simulation is stepped from the same loop
that renders, so drawing only ever reads world snapshots.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle
from typing import List, TYPE_CHECKING

from ..chemistry.contours import contour_lines, default_levels
from ..core.geometry import Point
from ..events.console_log import console_log
from .colors import (
    HEATMAP_CMAP, CONTOUR_COLOR, TRAIL_COLOR, BACKGROUND, RING_COLOR,
    preference_colors, energy_alpha, source_style, ring_style
)

if TYPE_CHECKING:
    from ..manager.simulator import Simulator

RING_DURATION = 40      # Frames a reproduction ring stays visible
RING_RADIUS = 6.0
SPEED_FACTOR = 1.5

# Default matplotlib bindings that collide with ours
_CONFLICTING_KEYMAPS = ('keymap.save', 'keymap.back', 'keymap.forward', 'keymap.home')


class FieldVisualization:
    """
    Single-window view of the world.

    Keys:
        space  pause / resume
        + / -  faster / slower
        r      reset the world
        c      toggle contours
        t      toggle trails
        s      toggle sensors
        v      cycle console verbosity
    """

    def __init__(self, simulator: 'Simulator', interactive: bool = True):
        """
        Args:
            simulator: Simulator to render and control
            interactive: Open a live window (False for off-screen rendering)
        """
        self.sim = simulator
        self.render_cfg = simulator.config.render
        self.interactive = interactive

        self.show_contours = self.render_cfg.show_contours
        self.show_trails = self.render_cfg.show_trails
        self.show_sensors = self.render_cfg.show_sensors

        self.frame = 0
        self.rings: List[dict] = []
        self._contour_key = None
        self._contour_segments: List[np.ndarray] = []

        self.sim.world.set_reproduction_callback(self.register_reproduction)
        self._setup_figure()
        if interactive:
            self._print_controls()

    def _print_controls(self):
        print("[Viz] Initialized")
        print("=" * 48)
        print("  KEYBOARD CONTROLS")
        print("=" * 48)
        print("    Space     Pause/Resume")
        print("    + / -     Simulation speed")
        print("    R         Reset world")
        print("    C / T / S Contours / Trails / Sensors")
        print("    V         Cycle log verbosity")
        print("=" * 48)

    def register_reproduction(self, pos: Point):
        """Reproduction callback: start a ring at the offspring position."""
        self.rings.append({'pos': pos, 'birth': self.frame})

    # =========================================================================
    # FIGURE
    # =========================================================================

    def _setup_figure(self):
        if self.interactive:
            for keymap in _CONFLICTING_KEYMAPS:
                plt.rcParams[keymap] = []
            plt.ion()
        w_px, h_px = self.render_cfg.window_width, self.render_cfg.window_height
        self.fig, self.ax = plt.subplots(figsize=(w_px / 100, h_px / 100),
                                         facecolor=BACKGROUND)
        self.ax.set_facecolor(BACKGROUND)

        b = self.sim.world.get_bounds()
        self.extent = (b.min_x, b.max_x, b.min_y, b.max_y)
        res = max(2, self.render_cfg.heatmap_resolution)
        self._hx = b.min_x + (np.arange(res) + 0.5) / res * b.width
        self._hy = b.min_y + (np.arange(res) + 0.5) / res * b.height

        self.heatmap = self.ax.imshow(np.zeros((res, res)), origin='lower',
                                      extent=self.extent, cmap=HEATMAP_CMAP,
                                      interpolation='bilinear', zorder=0)
        self.contours = LineCollection([], colors=CONTOUR_COLOR,
                                       linewidths=0.6, alpha=0.5, zorder=1)
        self.ax.add_collection(self.contours)
        self.trails = LineCollection([], colors=[TRAIL_COLOR], linewidths=0.8, zorder=2)
        self.ax.add_collection(self.trails)
        self.sensors = LineCollection([], colors='#AAAAAA', linewidths=0.4,
                                      alpha=0.6, zorder=3)
        self.ax.add_collection(self.sensors)

        self.source_scatter = self.ax.scatter([], [], marker='*', zorder=4,
                                              edgecolors='black', linewidths=0.5)
        self.organism_scatter = self.ax.scatter([], [], s=12, zorder=5)
        self.ring_patches: List[Circle] = []

        self.ax.set_xlim(b.min_x, b.max_x)
        self.ax.set_ylim(b.min_y, b.max_y)
        self.ax.set_aspect('equal')
        self.ax.tick_params(colors='gray')
        for spine in self.ax.spines.values():
            spine.set_color('gray')

        self.fig.canvas.mpl_connect('key_press_event', self._on_key)
        if self.interactive:
            plt.show(block=False)

    def _on_key(self, event):
        key = event.key
        if key == ' ':
            paused = self.sim.toggle_pause()
            print(f"[Viz] {'PAUSED' if paused else 'RUNNING'}")
        elif key in ('+', '='):
            speed = self.sim.set_simulation_speed(self.sim.simulation_speed * SPEED_FACTOR)
            print(f"[Viz] Speed: {speed:.2f}x")
        elif key == '-':
            speed = self.sim.set_simulation_speed(self.sim.simulation_speed / SPEED_FACTOR)
            print(f"[Viz] Speed: {speed:.2f}x")
        elif key == 'r':
            self.sim.reset()
            self.sim.world.set_reproduction_callback(self.register_reproduction)
            self.rings.clear()
            self._contour_key = None
            print("[Viz] World reset")
        elif key == 'c':
            self.show_contours = not self.show_contours
            print(f"[Viz] Contours: {'ON' if self.show_contours else 'OFF'}")
        elif key == 't':
            self.show_trails = not self.show_trails
            print(f"[Viz] Trails: {'ON' if self.show_trails else 'OFF'}")
        elif key == 's':
            self.show_sensors = not self.show_sensors
            print(f"[Viz] Sensors: {'ON' if self.show_sensors else 'OFF'}")
        elif key == 'v':
            print(f"[Viz] Verbosity: {console_log().cycle_verbosity()}")

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render_frame(self):
        """Refresh every artist from current world snapshots."""
        world = self.sim.world
        organisms = world.get_organisms()
        sources = world.get_chemical_sources()

        gx, gy = np.meshgrid(self._hx, self._hy)
        field = world.sample_concentration(gx, gy)
        self.heatmap.set_data(field)
        self.heatmap.set_clim(0.0, max(float(field.max()), 1e-6))

        self._update_contours()
        self._update_sources(sources)
        self._update_organisms(organisms)
        self._update_rings()

        total, target = world.system_energy_info()
        state = 'PAUSED' if self.sim.is_paused else f'{self.sim.simulation_speed:.1f}x'
        self.ax.set_title(
            f"t={self.sim.time:7.1f}s  organisms={len(organisms)}  "
            f"sources={sum(1 for s in sources if s.active)}/{len(sources)}  "
            f"energy={total:.0f}/{target:.0f}  [{state}]",
            color='white', fontsize=9)
        self.frame += 1

    def _update_contours(self):
        if not self.show_contours:
            self.contours.set_segments([])
            return
        world = self.sim.world
        grid = world.get_concentration_grid()
        key = (id(world.field), world.field.rebuild_count)
        if key != self._contour_key:
            self._contour_key = key
            segments = []
            for lines in contour_lines(grid, default_levels(grid)).values():
                segments.extend(line.to_array() for line in lines)
            self._contour_segments = segments
        self.contours.set_segments(self._contour_segments)

    def _update_sources(self, sources):
        if not sources:
            self.source_scatter.set_offsets(np.empty((0, 2)))
            return
        offsets = np.array([s.position.to_tuple() for s in sources])
        styles = [source_style(s.active, s.energy_ratio) for s in sources]
        self.source_scatter.set_offsets(offsets)
        self.source_scatter.set_facecolors([c for c, _ in styles])
        self.source_scatter.set_sizes([size for _, size in styles])

    def _update_organisms(self, organisms):
        if not organisms:
            self.organism_scatter.set_offsets(np.empty((0, 2)))
            self.trails.set_segments([])
            self.sensors.set_segments([])
            return

        offsets = np.array([o.position.to_tuple() for o in organisms])
        prefs = np.array([o.chem_preference for o in organisms])
        cfg = self.sim.config.organism
        lo = cfg.preference_mean - 2 * cfg.preference_std_dev
        hi = cfg.preference_mean + 2 * cfg.preference_std_dev
        colors = preference_colors(prefs, lo, hi)
        colors[:, 3] = energy_alpha([o.energy_ratio for o in organisms])
        self.organism_scatter.set_offsets(offsets)
        self.organism_scatter.set_facecolors(colors)

        if self.show_trails:
            self.trails.set_segments([
                np.array([p.to_tuple() for p in o.position_history] +
                         [o.position.to_tuple()])
                for o in organisms if o.position_history
            ])
        else:
            self.trails.set_segments([])

        if self.show_sensors:
            segs = []
            for o in organisms:
                for p in o.sensor_positions(cfg.sensor_distance):
                    segs.append([o.position.to_tuple(), p.to_tuple()])
            self.sensors.set_segments(segs)
        else:
            self.sensors.set_segments([])

    def _update_rings(self):
        for patch in self.ring_patches:
            patch.remove()
        self.ring_patches = []
        self.rings = [r for r in self.rings if self.frame - r['birth'] < RING_DURATION]
        for r in self.rings:
            scale, alpha = ring_style(self.frame - r['birth'], RING_DURATION)
            patch = Circle(r['pos'].to_tuple(), RING_RADIUS * scale, fill=False,
                           edgecolor=RING_COLOR, alpha=alpha, linewidth=1.2, zorder=6)
            self.ax.add_patch(patch)
            self.ring_patches.append(patch)

    def update(self):
        """Render one frame and give the GUI event loop a moment."""
        self.render_frame()
        self.fig.canvas.draw_idle()
        self.fig.canvas.flush_events()
        plt.pause(0.001)

    def save_frame(self, filepath: str):
        self.render_frame()
        self.fig.savefig(filepath, dpi=100, facecolor=BACKGROUND)

    def close(self):
        self.sim.world.set_reproduction_callback(None)
        plt.close(self.fig)
        print("[Viz] Closed")
