"""
Geometry primitives - 2D points and axis-aligned world bounds.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A 2D coordinate (x, y)."""
    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: 'Point') -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def add(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y)

    def scale(self, factor: float) -> 'Point':
        return Point(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def to_tuple(self):
        return (self.x, self.y)


@dataclass(frozen=True)
class Rect:
    """
    Rectangular boundary anchored at its top-left corner.

    Containment is half-open: ``x <= p.x < x + width`` (likewise for y), so a
    world of width 100 accepts 0.0 but rejects 100.0.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def contains(self, p: Point) -> bool:
        """Check whether a point lies inside the rectangle."""
        return (self.x <= p.x < self.x + self.width and
                self.y <= p.y < self.y + self.height)

    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def clamp(self, p: Point) -> Point:
        """Nearest point to ``p`` that ``contains`` accepts."""
        hi_x = math.nextafter(self.max_x, self.min_x)
        hi_y = math.nextafter(self.max_y, self.min_y)
        return Point(min(max(p.x, self.min_x), hi_x),
                     min(max(p.y, self.min_y), hi_y))
