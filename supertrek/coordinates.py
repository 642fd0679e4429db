"""
Coordinate model for the supertrek simulation.

Two levels of position exist in the game:
- QuadrantCoordinate: one cell of the 8x8 galaxy (x, y in 1..8)
- SectorCoordinate: one cell of a quadrant's 10x10 grid (x, y in 1..10)

Both are immutable and hashable so they can be used as dict keys, set members
and compared by value. An INVALID sentinel (-1, -1) stands for "no location".

Courses are expressed as a clock-like direction (1.0 to 12.0) and converted to
a unit step with course_vector().
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar


# =============================================================================
# CONSTANTS
# =============================================================================

GALAXY_SIZE = 8
QUADRANT_SIZE = 10

MIN_COURSE = 1.0
MAX_COURSE = 12.0


# =============================================================================
# COORDINATES
# =============================================================================

@dataclass(frozen=True)
class QuadrantCoordinate:
    """
    Position of a quadrant within the galaxy.

    Attributes:
        x: Row, 1..8.
        y: Column, 1..8.
    """
    x: int
    y: int

    INVALID: ClassVar[QuadrantCoordinate]

    @property
    def is_valid(self) -> bool:
        return 1 <= self.x <= GALAXY_SIZE and 1 <= self.y <= GALAXY_SIZE

    @property
    def is_border(self) -> bool:
        """True for quadrants on the outer ring of the galaxy."""
        return self.x in (1, GALAXY_SIZE) or self.y in (1, GALAXY_SIZE)

    def distance_to(self, other: QuadrantCoordinate) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def __str__(self) -> str:
        return f"{self.x} - {self.y}"


@dataclass(frozen=True)
class SectorCoordinate:
    """
    Position of a sector within a quadrant.

    Attributes:
        x: Row, 1..10.
        y: Column, 1..10.
    """
    x: int
    y: int

    INVALID: ClassVar[SectorCoordinate]

    @property
    def is_valid(self) -> bool:
        return 1 <= self.x <= QUADRANT_SIZE and 1 <= self.y <= QUADRANT_SIZE

    def distance_to(self, other: SectorCoordinate) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_adjacent(self, other: SectorCoordinate) -> bool:
        """True when other is one of the eight neighbouring sectors."""
        return self != other and abs(self.x - other.x) <= 1 and abs(self.y - other.y) <= 1

    def __str__(self) -> str:
        return f"{self.x} - {self.y}"


QuadrantCoordinate.INVALID = QuadrantCoordinate(-1, -1)
SectorCoordinate.INVALID = SectorCoordinate(-1, -1)


@dataclass(frozen=True)
class GalacticPosition:
    """Full position of an object: quadrant plus sector within it."""
    quadrant: QuadrantCoordinate
    sector: SectorCoordinate

    @property
    def is_valid(self) -> bool:
        return self.quadrant.is_valid and self.sector.is_valid

    def distance_to(self, other: GalacticPosition) -> float:
        """
        Distance in quadrant units.

        Sector offsets count as tenths of a quadrant.
        """
        dx = (self.quadrant.x - other.quadrant.x) + (self.sector.x - other.sector.x) / 10.0
        dy = (self.quadrant.y - other.quadrant.y) + (self.sector.y - other.sector.y) / 10.0
        return math.hypot(dx, dy)

    def __str__(self) -> str:
        return f"Quadrant {self.quadrant}, Sector {self.sector}"


# =============================================================================
# COURSES
# =============================================================================

def is_valid_course(direction: float) -> bool:
    """Check that a course lies within the 1.0 - 12.0 dial."""
    return MIN_COURSE <= direction <= MAX_COURSE


def course_vector(direction: float) -> tuple[float, float]:
    """
    Convert a course into a unit step in sector space.

    The dial maps onto the angle theta = (15 - direction) * pi / 8 and the
    step is (-sin theta, cos theta). Course 3 moves along +x, course 7
    along -y, course 11 along -x.

    Args:
        direction: Course on the 1.0 - 12.0 dial.

    Returns:
        Tuple (dx, dy) of unit length.
    """
    angle = (15.0 - direction) * math.pi / 8.0
    return -math.sin(angle), math.cos(angle)


def nearest_sector(x: float, y: float) -> SectorCoordinate:
    """Round a continuous position to the sector containing it (may be invalid)."""
    return SectorCoordinate(int(round(x)), int(round(y)))


def clamp_sector(x: float, y: float) -> SectorCoordinate:
    """Round a continuous position and clamp it onto the 10x10 grid."""
    sx = min(QUADRANT_SIZE, max(1, int(round(x))))
    sy = min(QUADRANT_SIZE, max(1, int(round(y))))
    return SectorCoordinate(sx, sy)
