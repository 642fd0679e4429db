"""
Galaxy-level aggregate state.

Each quadrant is stored as one encoded integer:

    100 * hostiles + 10 * starbases + stars

with every component in 0..9. The value SUPERNOVA_MARKER (1000) means the
quadrant was destroyed by a supernova and is permanently uninhabitable.

A parallel chart records what the player has discovered. Charted values are
the live value plus one, so zero always means "never charted".

Unique actors (commanders, the super-commander, starbases, planets and the
roaming Thing) are tracked by quadrant location lists.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .coordinates import GALAXY_SIZE, QuadrantCoordinate
from .entities import Planet


logger = logging.getLogger("supertrek.galaxy")


# =============================================================================
# CONSTANTS
# =============================================================================

SUPERNOVA_MARKER = 1000
CHARTED_OFFSET = 1
MAX_COMPONENT = 9
MAX_PLANETS = 10


# =============================================================================
# ENCODING
# =============================================================================

def encode_quadrant(hostiles: int, bases: int, stars: int) -> int:
    """
    Pack quadrant counts into a single integer.

    Raises:
        ValueError: If any component is outside 0..9.
    """
    for value in (hostiles, bases, stars):
        if not 0 <= value <= MAX_COMPONENT:
            raise ValueError(f"Quadrant component out of range: {value}")
    return 100 * hostiles + 10 * bases + stars


def decode_quadrant(value: int) -> tuple[int, int, int]:
    """Unpack an encoded quadrant into (hostiles, bases, stars)."""
    if value >= SUPERNOVA_MARKER:
        return 0, 0, 0
    return value // 100, (value % 100) // 10, value % 10


@dataclass
class SupernovaReport:
    """
    What a supernova wiped out.

    Attributes:
        hostiles: Encoded hostile count lost (includes commanders).
        bases: Starbases lost.
        commanders: Commanders lost.
        super_commander: Whether the super-commander was lost.
        planet: Whether a planet was lost.
    """
    hostiles: int = 0
    bases: int = 0
    commanders: int = 0
    super_commander: bool = False
    planet: bool = False


# =============================================================================
# GALAXY
# =============================================================================

class Galaxy:
    """
    The 8x8 galaxy of encoded quadrant data plus the player's chart.

    Arrays are allocated 9x9 and indexed 1..8 so coordinates map directly.
    """

    def __init__(self) -> None:
        self._map = np.zeros((GALAXY_SIZE + 1, GALAXY_SIZE + 1), dtype=np.int64)
        self._chart = np.zeros((GALAXY_SIZE + 1, GALAXY_SIZE + 1), dtype=np.int64)

        self.commander_locations: list[QuadrantCoordinate] = []
        self.super_commander_location: QuadrantCoordinate = QuadrantCoordinate.INVALID
        self.starbase_locations: list[QuadrantCoordinate] = []
        self.planets: list[Planet] = []

    # -------------------------------------------------------------------------
    # Raw data
    # -------------------------------------------------------------------------

    def get_quadrant_data(self, coord: QuadrantCoordinate) -> int:
        if not coord.is_valid:
            return 0
        return int(self._map[coord.x, coord.y])

    def set_quadrant_data(self, coord: QuadrantCoordinate, data: int) -> None:
        if coord.is_valid:
            self._map[coord.x, coord.y] = data

    def decode(self, coord: QuadrantCoordinate) -> tuple[int, int, int]:
        """Return (hostiles, bases, stars) for a quadrant."""
        return decode_quadrant(self.get_quadrant_data(coord))

    def hostile_count(self, coord: QuadrantCoordinate) -> int:
        return self.decode(coord)[0]

    def starbase_count(self, coord: QuadrantCoordinate) -> int:
        return self.decode(coord)[1]

    def star_count(self, coord: QuadrantCoordinate) -> int:
        return self.decode(coord)[2]

    def is_supernova(self, coord: QuadrantCoordinate) -> bool:
        return coord.is_valid and self.get_quadrant_data(coord) >= SUPERNOVA_MARKER

    # -------------------------------------------------------------------------
    # Count adjustments
    # -------------------------------------------------------------------------

    def add_hostile(self, coord: QuadrantCoordinate) -> bool:
        """
        Add one hostile to a quadrant's aggregate.

        Returns:
            False if the quadrant is invalid, destroyed or already holds nine.
        """
        if not coord.is_valid or self.is_supernova(coord):
            return False
        if self.hostile_count(coord) >= MAX_COMPONENT:
            return False
        self._map[coord.x, coord.y] += 100
        return True

    def remove_hostile(self, coord: QuadrantCoordinate) -> bool:
        """Remove one hostile from a quadrant's aggregate, flooring at zero."""
        if not coord.is_valid or self.is_supernova(coord):
            return False
        if self.hostile_count(coord) <= 0:
            return False
        self._map[coord.x, coord.y] -= 100
        return True

    def add_starbase(self, coord: QuadrantCoordinate) -> None:
        if coord.is_valid and not self.is_supernova(coord):
            self._map[coord.x, coord.y] += 10

    def remove_starbase(self, coord: QuadrantCoordinate) -> None:
        """Drop a starbase from both the aggregate and the location list."""
        if coord in self.starbase_locations:
            self.starbase_locations.remove(coord)
        if coord.is_valid and self.starbase_count(coord) > 0:
            self._map[coord.x, coord.y] -= 10

    def add_star(self, coord: QuadrantCoordinate) -> bool:
        if not coord.is_valid or self.is_supernova(coord):
            return False
        if self.star_count(coord) >= MAX_COMPONENT:
            return False
        self._map[coord.x, coord.y] += 1
        return True

    def remove_star(self, coord: QuadrantCoordinate) -> None:
        if coord.is_valid and self.star_count(coord) > 0:
            self._map[coord.x, coord.y] -= 1

    # -------------------------------------------------------------------------
    # Chart
    # -------------------------------------------------------------------------

    def update_chart(self, coord: QuadrantCoordinate) -> None:
        """Copy live data for a quadrant into the player's chart."""
        if coord.is_valid:
            self._chart[coord.x, coord.y] = self._map[coord.x, coord.y] + CHARTED_OFFSET

    def get_chart_data(self, coord: QuadrantCoordinate) -> int:
        if not coord.is_valid:
            return 0
        return int(self._chart[coord.x, coord.y])

    def is_charted(self, coord: QuadrantCoordinate) -> bool:
        return self.get_chart_data(coord) > 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def total_hostiles(self) -> int:
        """Sum of encoded hostile counts over all surviving quadrants."""
        live = self._map[1:, 1:]
        return int(np.where(live < SUPERNOVA_MARKER, live // 100, 0).sum())

    @property
    def total_starbases(self) -> int:
        live = self._map[1:, 1:]
        return int(np.where(live < SUPERNOVA_MARKER, (live % 100) // 10, 0).sum())

    @property
    def total_stars(self) -> int:
        live = self._map[1:, 1:]
        return int(np.where(live < SUPERNOVA_MARKER, live % 10, 0).sum())

    def planet_at(self, coord: QuadrantCoordinate) -> Optional[Planet]:
        for planet in self.planets:
            if planet.quadrant == coord:
                return planet
        return None

    @staticmethod
    def random_quadrant(rng: random.Random) -> QuadrantCoordinate:
        """Draw a uniformly random quadrant from the game's random source."""
        return QuadrantCoordinate(rng.randint(1, GALAXY_SIZE), rng.randint(1, GALAXY_SIZE))

    # -------------------------------------------------------------------------
    # Supernova
    # -------------------------------------------------------------------------

    def supernova(self, coord: QuadrantCoordinate) -> SupernovaReport:
        """
        Destroy a quadrant permanently.

        Clears its starbase, commander, super-commander and planet entries and
        replaces its data with the supernova marker.

        Returns:
            What was lost, so the caller can adjust remaining counts.
        """
        report = SupernovaReport()
        if not coord.is_valid or self.is_supernova(coord):
            return report

        hostiles, bases, _ = self.decode(coord)
        report.hostiles = hostiles
        report.bases = bases

        self._map[coord.x, coord.y] = SUPERNOVA_MARKER
        self._chart[coord.x, coord.y] = SUPERNOVA_MARKER + CHARTED_OFFSET

        while coord in self.starbase_locations:
            self.starbase_locations.remove(coord)

        while coord in self.commander_locations:
            self.commander_locations.remove(coord)
            report.commanders += 1

        if self.super_commander_location == coord:
            self.super_commander_location = QuadrantCoordinate.INVALID
            report.super_commander = True

        planet = self.planet_at(coord)
        if planet is not None:
            self.planets.remove(planet)
            report.planet = True

        logger.debug("Supernova at %s: %s", coord, report)
        return report
