"""
Touch zone layout.

Eight square zones in a 2-column x 4-row grid. Each zone stands for one
of the six Braille dots; zones 1/7 and 2/8 share a dot so the top and
bottom rows act as one widened target.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

ZONE_COUNT = 8
DOT_COUNT = 6
COLUMNS = 2
ROWS = 4

# Zone id -> Braille dot, laid out row by row
ZONE_TO_DOT: Dict[int, int] = {
    1: 3, 2: 6,
    3: 1, 4: 4,
    5: 2, 6: 5,
    7: 3, 8: 6,
}

assert sorted(ZONE_TO_DOT) == list(range(1, ZONE_COUNT + 1))
assert set(ZONE_TO_DOT.values()) == set(range(1, DOT_COUNT + 1))


def dot_for_zone(zone: int) -> int:
    """Return the Braille dot a zone stands for."""
    try:
        return ZONE_TO_DOT[zone]
    except KeyError:
        raise ValueError(f"Unknown zone {zone!r}") from None


def zones_for_dot(dot: int) -> Tuple[int, ...]:
    """Return every zone mapped to a dot, in ascending order."""
    return tuple(zone for zone, mapped in sorted(ZONE_TO_DOT.items()) if mapped == dot)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle; the right and bottom edges are exclusive."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom


@dataclass(frozen=True)
class ZoneLayout:
    """
    Screen geometry of the zone grid.

    Zone n sits in column (n - 1) % 2 and row (n - 1) // 2, each zone
    dot_size square with dot_spacing between neighbours.
    """
    dot_size: float = 45
    dot_spacing: float = 15
    origin_x: float = 0
    origin_y: float = 0

    def __post_init__(self):
        if self.dot_size <= 0:
            raise ValueError(f"dot_size must be positive, got {self.dot_size}")
        if self.dot_spacing < 0:
            raise ValueError(f"dot_spacing must not be negative, got {self.dot_spacing}")

    def rect(self, zone: int) -> Rect:
        """Rectangle covered by a zone."""
        if zone not in ZONE_TO_DOT:
            raise ValueError(f"Unknown zone {zone!r}")
        column = (zone - 1) % COLUMNS
        row = (zone - 1) // COLUMNS
        step = self.dot_size + self.dot_spacing
        return Rect(
            x=self.origin_x + column * step,
            y=self.origin_y + row * step,
            width=self.dot_size,
            height=self.dot_size,
        )

    @property
    def bounds(self) -> Rect:
        """Rectangle enclosing the whole grid."""
        return Rect(
            x=self.origin_x,
            y=self.origin_y,
            width=self.dot_size * COLUMNS + self.dot_spacing * (COLUMNS - 1),
            height=self.dot_size * ROWS + self.dot_spacing * (ROWS - 1),
        )

    def zone_at(self, x: float, y: float) -> Optional[int]:
        """Return the zone containing a point, or None."""
        if not self.bounds.contains(x, y):
            return None
        for zone in ZONE_TO_DOT:
            if self.rect(zone).contains(x, y):
                return zone
        return None

    def center(self, zone: int) -> Tuple[float, float]:
        """Center point of a zone."""
        r = self.rect(zone)
        return (r.x + r.width / 2, r.y + r.height / 2)
