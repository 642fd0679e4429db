"""
Quadrant entry and population.

Entering a quadrant throws away whatever was materialized before and builds a
fresh sector grid from the galaxy's aggregate counts. Only the counts are
durable; sector positions are redrawn on every visit.
"""

from __future__ import annotations

import logging
from typing import Optional

from .coordinates import GALAXY_SIZE, QUADRANT_SIZE, QuadrantCoordinate, SectorCoordinate
from .entities import Hostile, HostileKind, Star, Starbase
from .quadrant import Quadrant
from .state import FutureEventType, GameState, SkillLevel


logger = logging.getLogger("supertrek.population")


# =============================================================================
# CONSTANTS
# =============================================================================

NEUTRAL_ZONE_PROBABILITY = 0.1
THOLIAN_PROBABILITY = 0.08
THOLIAN_MIN_SKILL = SkillLevel.EXPERT
WEB_LENGTH = 3

QUADRANT_NAMES_WEST = (
    "Antares", "Rigel", "Procyon", "Vega",
    "Canopus", "Altair", "Sagittarius", "Pollux",
)
QUADRANT_NAMES_EAST = (
    "Sirius", "Deneb", "Capella", "Betelgeuse",
    "Aldebaran", "Regulus", "Arcturus", "Spica",
)
ROMAN_SUFFIXES = ("I", "II", "III", "IV")

CORNER_SECTORS = (
    SectorCoordinate(1, 1),
    SectorCoordinate(1, QUADRANT_SIZE),
    SectorCoordinate(QUADRANT_SIZE, 1),
    SectorCoordinate(QUADRANT_SIZE, QUADRANT_SIZE),
)


# =============================================================================
# NAMES
# =============================================================================

def quadrant_name(coord: QuadrantCoordinate) -> str:
    """
    Display name of a quadrant, e.g. "Rigel III".

    Columns 1-4 take their name from the western table, 5-8 from the
    eastern one; the column within each half picks the roman suffix.
    """
    if not coord.is_valid:
        return "Unknown"
    half = GALAXY_SIZE // 2
    if coord.y <= half:
        name = QUADRANT_NAMES_WEST[coord.x - 1]
    else:
        name = QUADRANT_NAMES_EAST[coord.x - 1]
    return f"{name} {ROMAN_SUFFIXES[(coord.y - 1) % half]}"


# =============================================================================
# HOSTILES
# =============================================================================

def hostile_power(kind: HostileKind, skill: SkillLevel, rng) -> float:
    """
    Starting power of a newly spawned hostile.

    Args:
        kind: Which enemy is spawning.
        skill: Game difficulty.
        rng: The game's random source.

    Returns:
        Initial power value.
    """
    s = int(skill)
    if kind == HostileKind.KLINGON:
        return 300 + 200 * rng.random() + 50 * s
    if kind == HostileKind.COMMANDER:
        return 600 + 200 * rng.random() + 75 * s
    if kind == HostileKind.SUPER_COMMANDER:
        return 800 + 300 * rng.random() + 100 * s
    if kind == HostileKind.ROMULAN:
        return 400 + 200 * rng.random()
    return 100 + 100 * rng.random()


def spawn_hostile(state: GameState, kind: HostileKind) -> Optional[Hostile]:
    """Put a new hostile of the given kind on a random empty sector."""
    quadrant = state.quadrant
    if quadrant is None:
        return None
    sector = quadrant.find_empty_sector(state.rng)
    if not sector.is_valid:
        logger.debug("No room for %s in %s", kind.name, quadrant.coordinate)
        return None
    hostile = Hostile(kind, sector, hostile_power(kind, state.skill, state.rng))
    quadrant.add_hostile(hostile)
    return hostile


def _spawn_tholian(state: GameState) -> Optional[Hostile]:
    """Place a Tholian in a free corner and weave its web along both edges."""
    quadrant = state.quadrant
    free_corners = [c for c in CORNER_SECTORS if quadrant.is_sector_empty(c)]
    if not free_corners:
        return None

    corner = state.rng.choice(free_corners)
    tholian = Hostile(
        HostileKind.THOLIAN,
        corner,
        hostile_power(HostileKind.THOLIAN, state.skill, state.rng),
    )
    quadrant.add_hostile(tholian)

    step_x = 1 if corner.x == 1 else -1
    step_y = 1 if corner.y == 1 else -1
    for i in range(1, WEB_LENGTH + 1):
        for cell in (
            SectorCoordinate(corner.x + i * step_x, corner.y),
            SectorCoordinate(corner.x, corner.y + i * step_y),
        ):
            if quadrant.is_sector_empty(cell):
                quadrant.web.add(cell)
    return tholian


# =============================================================================
# QUADRANT ENTRY
# =============================================================================

def enter_quadrant(
    state: GameState,
    coord: QuadrantCoordinate,
    requested_sector: Optional[SectorCoordinate] = None,
    announce: bool = True
) -> Quadrant:
    """
    Materialize a quadrant and move the ship into it.

    Spawn order is fixed so a seeded game replays identically: ship, stars,
    starbase, planet, standard klingons, commander, super-commander, then the
    neutral-zone Romulan and the Tholian rolls.

    Args:
        state: Game state; its quadrant and ship position are replaced.
        coord: Quadrant to enter.
        requested_sector: Where the ship should appear; a random empty sector
            is used when this is missing or invalid.
        announce: Emit the "Entering ..." notice (off for the opening
            quadrant of a new game).

    Returns:
        The new quadrant (also stored on the state).
    """
    rng = state.rng
    galaxy = state.galaxy
    ship = state.ship

    quadrant = Quadrant(coord)
    state.quadrant = quadrant
    ship.quadrant = coord
    ship.is_docked = False

    hostiles, bases, stars = galaxy.decode(coord)

    sector = requested_sector if requested_sector is not None else ship.sector
    if not quadrant.is_sector_empty(sector):
        sector = quadrant.find_empty_sector(rng)
    state.set_ship_sector(sector)

    for _ in range(stars):
        sector = quadrant.find_empty_sector(rng)
        if sector.is_valid:
            quadrant.add_star(Star(sector))

    if bases > 0:
        sector = quadrant.find_empty_sector(rng)
        if sector.is_valid:
            starbase = Starbase(sector, quadrant=coord)
            if state.base_under_attack == coord:
                starbase.is_under_attack = True
                starbase.destruction_date = state.future_events[
                    FutureEventType.COMMANDER_DESTROYS_BASE
                ]
            quadrant.set_starbase(starbase)

    planet = galaxy.planet_at(coord)
    if planet is not None:
        sector = quadrant.find_empty_sector(rng)
        if sector.is_valid:
            planet.position = sector
            quadrant.set_planet(planet)

    has_commander = coord in galaxy.commander_locations
    has_super_commander = galaxy.super_commander_location == coord

    standard = hostiles
    if has_commander:
        standard -= 1
    if has_super_commander:
        standard -= 1

    for _ in range(max(0, standard)):
        spawn_hostile(state, HostileKind.KLINGON)
    if has_commander:
        spawn_hostile(state, HostileKind.COMMANDER)
    if has_super_commander:
        spawn_hostile(state, HostileKind.SUPER_COMMANDER)

    state.update_condition()
    galaxy.update_chart(coord)

    if coord.is_border and rng.random() < NEUTRAL_ZONE_PROBABILITY:
        quadrant.is_neutral_zone = True
        spawn_hostile(state, HostileKind.ROMULAN)

    if announce:
        state.channel.info(f"Entering {quadrant_name(coord)} Quadrant...")

    if state.skill >= THOLIAN_MIN_SKILL and rng.random() < THOLIAN_PROBABILITY:
        if _spawn_tholian(state) is not None:
            state.channel.warning("A Tholian is weaving a web in this quadrant!")

    state.update_condition()
    state.sort_hostiles_by_distance()

    logger.debug(
        "Entered %s: %d hostiles, %d stars, base=%s",
        coord, quadrant.hostile_count, len(quadrant.stars), quadrant.starbase is not None,
    )
    return quadrant
