"""
Materialized sector grid of the quadrant the ship is currently in.

A Quadrant is rebuilt from the galaxy's aggregate counts every time the ship
enters it; nothing about sector placement survives leaving. The grid holds
at most one entity per sector. Tholian web cells are an overlay: they block
movement and placement but are not occupants.
"""

from __future__ import annotations

import random
from typing import Optional

from .coordinates import QUADRANT_SIZE, QuadrantCoordinate, SectorCoordinate
from .entities import (
    EMPTY_SYMBOL,
    SHIP_SYMBOL,
    WEB_SYMBOL,
    Entity,
    Hostile,
    HostileKind,
    Planet,
    Star,
    Starbase,
)


# Random placement gives up after this many draws
MAX_PLACEMENT_ATTEMPTS = 100


class Quadrant:
    """
    The 10x10 sector grid and its entities.

    Attributes:
        coordinate: Galaxy quadrant this grid materializes.
        hostiles: Live enemy vessels, kept sorted by distance to the ship.
        stars: Stars in the quadrant.
        starbase: The starbase, if any.
        planet: The planet, if any.
        web: Sectors covered by Tholian web.
        is_neutral_zone: Whether the quadrant lies in the Romulan neutral zone.
        ship_sector: Sector reserved for the player's ship.
    """

    def __init__(self, coordinate: QuadrantCoordinate) -> None:
        self.coordinate = coordinate
        self._sectors: dict[SectorCoordinate, Entity] = {}

        self.hostiles: list[Hostile] = []
        self.stars: list[Star] = []
        self.starbase: Optional[Starbase] = None
        self.planet: Optional[Planet] = None
        self.web: set[SectorCoordinate] = set()
        self.is_neutral_zone = False
        self.ship_sector: SectorCoordinate = SectorCoordinate.INVALID

    # -------------------------------------------------------------------------
    # Occupancy
    # -------------------------------------------------------------------------

    def entity_at(self, sector: SectorCoordinate) -> Optional[Entity]:
        if not sector.is_valid:
            return None
        return self._sectors.get(sector)

    def is_sector_empty(self, sector: SectorCoordinate) -> bool:
        """A sector is empty when valid, unoccupied, not webbed and not the ship's."""
        if not sector.is_valid:
            return False
        return (
            sector not in self._sectors
            and sector not in self.web
            and sector != self.ship_sector
        )

    def find_empty_sector(self, rng: random.Random) -> SectorCoordinate:
        """
        Draw random sectors until an empty one turns up.

        Args:
            rng: The game's random source.

        Returns:
            An empty sector, or SectorCoordinate.INVALID after
            MAX_PLACEMENT_ATTEMPTS failed draws.
        """
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            sector = SectorCoordinate(
                rng.randint(1, QUADRANT_SIZE), rng.randint(1, QUADRANT_SIZE)
            )
            if self.is_sector_empty(sector):
                return sector
        return SectorCoordinate.INVALID

    def nearest_empty_sector(
        self,
        sector: SectorCoordinate,
        max_radius: int = 5
    ) -> Optional[SectorCoordinate]:
        """Search outward in square rings for the closest empty sector."""
        for radius in range(1, max_radius + 1):
            for dx in range(-radius, radius + 1):
                for dy in range(-radius, radius + 1):
                    candidate = SectorCoordinate(sector.x + dx, sector.y + dy)
                    if self.is_sector_empty(candidate):
                        return candidate
        return None

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    def place(self, entity: Entity) -> bool:
        """
        Put an entity on the grid at its own position.

        Returns:
            False if the position is invalid or already taken.
        """
        if not self.is_sector_empty(entity.position):
            return False
        self._sectors[entity.position] = entity
        return True

    def remove(self, entity: Entity) -> None:
        """Take an entity off the grid if it is still there."""
        if self._sectors.get(entity.position) is entity:
            del self._sectors[entity.position]

    def add_star(self, star: Star) -> bool:
        if not self.place(star):
            return False
        self.stars.append(star)
        return True

    def remove_star(self, star: Star) -> None:
        self.remove(star)
        if star in self.stars:
            self.stars.remove(star)

    def set_starbase(self, starbase: Starbase) -> bool:
        if self.starbase is not None or not self.place(starbase):
            return False
        self.starbase = starbase
        return True

    def clear_starbase(self) -> None:
        if self.starbase is not None:
            self.remove(self.starbase)
            self.starbase = None

    def set_planet(self, planet: Planet) -> bool:
        if self.planet is not None or not self.place(planet):
            return False
        self.planet = planet
        return True

    def clear_planet(self) -> None:
        if self.planet is not None:
            self.remove(self.planet)
            self.planet = None

    def add_hostile(self, hostile: Hostile) -> bool:
        if not self.place(hostile):
            return False
        self.hostiles.append(hostile)
        return True

    def remove_hostile(self, hostile: Hostile) -> bool:
        """
        Take a hostile out of the quadrant.

        Returns:
            True if it was present, False if it had already been removed.
        """
        if hostile not in self.hostiles:
            return False
        self.remove(hostile)
        self.hostiles.remove(hostile)
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def live_hostiles(self) -> list[Hostile]:
        return [h for h in self.hostiles if not h.is_destroyed]

    @property
    def hostile_count(self) -> int:
        return len(self.live_hostiles)

    def count_kind(self, kind: HostileKind) -> int:
        return sum(1 for h in self.live_hostiles if h.kind == kind)

    @property
    def has_super_commander(self) -> bool:
        return self.count_kind(HostileKind.SUPER_COMMANDER) > 0

    def symbol_at(self, sector: SectorCoordinate) -> str:
        if sector == self.ship_sector:
            return SHIP_SYMBOL
        if sector in self.web:
            return WEB_SYMBOL
        entity = self.entity_at(sector)
        return entity.symbol if entity is not None else EMPTY_SYMBOL

    def grid(self) -> list[list[str]]:
        """
        Character grid of the quadrant.

        Returns:
            Ten rows of ten symbols; grid[x-1][y-1] is sector (x, y).
        """
        return [
            [self.symbol_at(SectorCoordinate(x, y)) for y in range(1, QUADRANT_SIZE + 1)]
            for x in range(1, QUADRANT_SIZE + 1)
        ]
