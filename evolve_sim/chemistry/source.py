"""
Chemical sources - fixed emitters whose output scales with their remaining
energy.

A source contributes ``strength / (1 + d² * decay_factor)`` at distance d,
multiplied by its energy ratio. It is deactivated (never removed) when its
energy runs out and may later be reactivated by the energy ledger.
"""

from dataclasses import dataclass, replace
from typing import Optional

from ..core.constants import EPSILON, ENERGY_PER_STRENGTH, DEFAULT_DEPLETION_RATE
from ..core.geometry import Point


@dataclass
class ChemicalSource:
    """A point emitter with a depletable energy budget."""
    position: Point
    strength: float
    decay_factor: float
    energy: float = 0.0
    max_energy: float = 0.0
    depletion_rate: float = DEFAULT_DEPLETION_RATE
    active: bool = True

    @classmethod
    def create(cls, position: Point, strength: float, decay_factor: float,
               depletion_rate: float = DEFAULT_DEPLETION_RATE,
               energy_per_strength: float = ENERGY_PER_STRENGTH,
               max_energy: Optional[float] = None) -> 'ChemicalSource':
        """
        Create a fully charged source.

        Args:
            position: Emitter location
            strength: Peak concentration at full energy
            decay_factor: Spatial falloff (>= 0)
            depletion_rate: Passive drain in energy per second
            energy_per_strength: Capacity per unit strength when
                ``max_energy`` is not given
            max_energy: Explicit capacity override
        """
        if max_energy is None:
            max_energy = strength * energy_per_strength
        max_energy = max(0.0, max_energy)
        return cls(
            position=position,
            strength=strength,
            decay_factor=max(0.0, decay_factor),
            energy=max_energy,
            max_energy=max_energy,
            depletion_rate=depletion_rate,
            active=max_energy > 0,
        )

    @property
    def energy_ratio(self) -> float:
        if self.max_energy <= 0:
            return 0.0
        return self.energy / self.max_energy

    def concentration_at(self, point: Point) -> float:
        """Concentration this source contributes at ``point``."""
        if not self.active:
            return 0.0
        ratio = self.energy_ratio
        dist = self.position.distance_to(point)
        if dist < EPSILON:
            return self.strength * ratio
        return self.strength / (1.0 + dist * dist * self.decay_factor) * ratio

    def update(self, dt: float) -> float:
        """
        Apply passive depletion for one timestep.

        Returns:
            Energy actually removed (never more than was left)
        """
        if not self.active or dt <= 0:
            return 0.0
        return self.deplete(self.depletion_rate * dt)

    def deplete(self, amount: float) -> float:
        """
        Remove up to ``amount`` energy, deactivating at zero.

        Returns:
            Energy actually removed
        """
        if not self.active or amount <= 0:
            return 0.0
        removed = min(amount, self.energy)
        self.energy -= removed
        if self.energy <= 0:
            self.energy = 0.0
            self.active = False
        return removed

    def reactivate(self) -> float:
        """
        Refill to capacity.

        Returns:
            Energy added
        """
        added = self.max_energy - self.energy
        self.energy = self.max_energy
        self.active = self.energy > 0
        return added

    def copy(self) -> 'ChemicalSource':
        return replace(self)
