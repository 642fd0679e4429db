"""
Spatial entities that occupy quadrant sectors.

The entity set is closed:
- Star, BlackHole: inert point hazards
- Planet: class M/N/O, may carry dilithium crystals
- Starbase: resupply point, may come under timed attack
- Hostile: every enemy vessel, distinguished by HostileKind

Per-kind behaviour (attack multiplier, map symbol, display name) lives in
lookup tables keyed by the kind enum rather than in subclasses.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .coordinates import QuadrantCoordinate, SectorCoordinate


# =============================================================================
# KINDS
# =============================================================================

class HostileKind(Enum):
    """Enemy vessel variants."""
    KLINGON = "klingon"
    COMMANDER = "commander"
    SUPER_COMMANDER = "super_commander"
    ROMULAN = "romulan"
    THOLIAN = "tholian"


class PlanetClass(Enum):
    """Planet classification."""
    M = "M"  # Earth-like
    N = "N"  # Sulfuric
    O = "O"  # Water world


# Base multiplier added to a uniform draw when a hostile fires
HOSTILE_ATTACK_MULTIPLIERS: dict[HostileKind, float] = {
    HostileKind.KLINGON: 2.0,
    HostileKind.COMMANDER: 2.5,
    HostileKind.SUPER_COMMANDER: 3.0,
    HostileKind.ROMULAN: 2.0,
    HostileKind.THOLIAN: 1.5,
}

HOSTILE_SYMBOLS: dict[HostileKind, str] = {
    HostileKind.KLINGON: "K",
    HostileKind.COMMANDER: "C",
    HostileKind.SUPER_COMMANDER: "S",
    HostileKind.ROMULAN: "R",
    HostileKind.THOLIAN: "T",
}

HOSTILE_NAMES: dict[HostileKind, str] = {
    HostileKind.KLINGON: "Klingon",
    HostileKind.COMMANDER: "Commander",
    HostileKind.SUPER_COMMANDER: "Super-Commander",
    HostileKind.ROMULAN: "Romulan",
    HostileKind.THOLIAN: "Tholian",
}

# Kinds that are tracked in the galaxy's encoded hostile count
GALAXY_COUNTED_KINDS = frozenset({
    HostileKind.KLINGON,
    HostileKind.COMMANDER,
    HostileKind.SUPER_COMMANDER,
})

STAR_SYMBOL = "*"
BLACK_HOLE_SYMBOL = " "
PLANET_SYMBOL = "P"
STARBASE_SYMBOL = "B"
WEB_SYMBOL = "#"
EMPTY_SYMBOL = "."
SHIP_SYMBOL = "E"


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass(eq=False)
class Star:
    """A star. Torpedo hits make it go nova."""
    position: SectorCoordinate

    @property
    def symbol(self) -> str:
        return STAR_SYMBOL

    @property
    def name(self) -> str:
        return "Star"


@dataclass(eq=False)
class BlackHole:
    """A black hole. Flying into one is fatal."""
    position: SectorCoordinate

    @property
    def symbol(self) -> str:
        return BLACK_HOLE_SYMBOL

    @property
    def name(self) -> str:
        return "Black Hole"


@dataclass(eq=False)
class Planet:
    """
    A planet bound to a galaxy quadrant.

    The sector position is assigned anew every time the quadrant is entered.

    Attributes:
        position: Sector within the quadrant (INVALID until materialized).
        planet_class: Planet classification.
        has_crystals: Whether dilithium crystals can be mined here.
        quadrant: Galaxy quadrant the planet belongs to.
        is_known: Whether the planet has been scanned.
    """
    position: SectorCoordinate
    planet_class: PlanetClass
    has_crystals: bool = False
    quadrant: QuadrantCoordinate = QuadrantCoordinate.INVALID
    is_known: bool = False

    @property
    def symbol(self) -> str:
        return PLANET_SYMBOL

    @property
    def name(self) -> str:
        return "Planet"

    def __str__(self) -> str:
        text = f"Class {self.planet_class.value} planet at {self.position}"
        if self.has_crystals:
            text += " (crystals)"
        if self.is_known:
            text += " [known]"
        return text


@dataclass(eq=False)
class Starbase:
    """
    A starbase materialized in the current quadrant.

    Attributes:
        position: Sector within the quadrant.
        quadrant: Galaxy quadrant of the base.
        is_under_attack: Set while a commander attack is pending.
        destruction_date: Stardate the pending attack resolves (0 if none).
    """
    position: SectorCoordinate
    quadrant: QuadrantCoordinate = QuadrantCoordinate.INVALID
    is_under_attack: bool = False
    destruction_date: float = 0.0

    @property
    def symbol(self) -> str:
        return STARBASE_SYMBOL

    @property
    def name(self) -> str:
        return "Starbase"


@dataclass(eq=False)
class Hostile:
    """
    An enemy vessel in the current quadrant.

    Attributes:
        kind: Which variant of enemy this is.
        position: Sector within the quadrant.
        power: Remaining power; the vessel is destroyed at or below zero.
        distance: Current distance to the player's ship in sectors.
        average_distance: Smoothed distance used to scale its fire.
    """
    kind: HostileKind
    position: SectorCoordinate
    power: float
    distance: float = 0.0
    average_distance: float = 0.0

    @property
    def is_destroyed(self) -> bool:
        return self.power <= 0

    @property
    def symbol(self) -> str:
        return HOSTILE_SYMBOLS[self.kind]

    @property
    def name(self) -> str:
        return HOSTILE_NAMES[self.kind]

    @property
    def counts_in_galaxy(self) -> bool:
        """Whether this vessel is part of the galaxy's encoded hostile count."""
        return self.kind in GALAXY_COUNTED_KINDS

    def attack_power(self, rng: random.Random) -> float:
        """
        Raw strength of one shot at the player's ship.

        hit = power * (multiplier + U) / distance

        Args:
            rng: The game's random source.

        Returns:
            Hit strength before range smoothing and skill scaling.
        """
        distance = max(self.distance, 1.0)
        return self.power * (HOSTILE_ATTACK_MULTIPLIERS[self.kind] + rng.random()) / distance

    def __str__(self) -> str:
        return f"{self.name} at {self.position}"


Entity = Union[Star, BlackHole, Planet, Starbase, Hostile]


def obstacle_kind(entity: Entity) -> str:
    """Classify an entity for navigation warnings."""
    if isinstance(entity, Star):
        return "Star"
    if isinstance(entity, BlackHole):
        return "BlackHole"
    if isinstance(entity, Hostile):
        return "Enemy"
    if isinstance(entity, Starbase):
        return "Starbase"
    return "Object"
