"""
Ship movement: warp, impulse, docking, warp-factor control and rest.

Moves are traced through the quadrant in small fixed steps. A pre-move scan
re-traces the same course first and refuses any move whose path crosses an
occupied sector, so an aborted move never changes state.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .combat import CombatResolver
from .coordinates import (
    GALAXY_SIZE,
    QUADRANT_SIZE,
    QuadrantCoordinate,
    SectorCoordinate,
    clamp_sector,
    course_vector,
    is_valid_course,
    nearest_sector,
)
from .entities import BlackHole, Hostile, Star, Starbase, obstacle_kind
from .population import enter_quadrant, quadrant_name
from .results import ActionResult, Obstacle
from .ship import DEVICE_NAMES, DeviceType
from .state import GameOutcome, GameState


logger = logging.getLogger("supertrek.navigation")


# =============================================================================
# CONSTANTS
# =============================================================================

SECTORS_PER_QUADRANT = 10.0
MOVE_STEP = 0.1                   # sectors per trace step

WARP_POWER_OFFSET = 0.05
WARP_TIME_FACTOR = 10.0
DAMAGED_WARP_LIMIT = 4.0
WARP_DAMAGE_LIMIT = 2.0           # heavier damage grounds the ship
MIN_WARP_FACTOR = 1.0
MAX_WARP_FACTOR = 10.0
RISKY_WARP_FACTOR = 8.0

IMPULSE_BASE_POWER = 20.0
IMPULSE_POWER_FACTOR = 100.0
IMPULSE_MAX_DISTANCE = 1.0
IMPULSE_SPEED = 0.095

WEB_BASE_DAMAGE = 50.0
WEB_DAMAGE_SPREAD = 50.0
RAM_BASE_DAMAGE = 400.0
RAM_DAMAGE_SPREAD = 200.0
RAM_BOUNCE_STEPS = 2.0

DOCKING_RANGE = 1.5
DOCKED_REPAIR_RATE = 1.0
FIELD_REPAIR_RATE = 0.5


def warp_power(distance: float, warp_factor: float) -> float:
    """Energy for a warp move: (distance + 0.05) * w^2."""
    return (distance + WARP_POWER_OFFSET) * warp_factor ** 2


def warp_time(distance: float, warp_factor: float) -> float:
    """Stardates for a warp move: 10 * distance / w^2."""
    return WARP_TIME_FACTOR * distance / warp_factor ** 2


def impulse_power(distance: float) -> float:
    return IMPULSE_BASE_POWER + IMPULSE_POWER_FACTOR * distance


def impulse_time(distance: float) -> float:
    return distance / IMPULSE_SPEED


class NavigationResolver:
    """
    Resolves ship movement within and between quadrants.

    Args:
        combat: Resolver used to destroy hostiles rammed by the ship.
    """

    def __init__(self, combat: Optional[CombatResolver] = None):
        self.combat = combat or CombatResolver()

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def warp(self, state: GameState, direction: float, distance: float) -> ActionResult:
        """
        Move at the current warp factor.

        Args:
            state: Game state.
            direction: Course, 1.0 - 12.0.
            distance: Distance in quadrants.

        Returns:
            ActionResult; a refused move leaves the state untouched and an
            aborted one lists the obstacles found.
        """
        ship = state.ship
        error = self._validate(state, direction, distance)
        if error:
            return ActionResult.fail(error)

        warp_factor = ship.warp_factor
        warp_damage = ship.devices.damage(DeviceType.WARP_ENGINES)
        if warp_damage > WARP_DAMAGE_LIMIT:
            return ActionResult.fail("Cannot move - warp engines are too heavily damaged.")
        limited = warp_damage > 0 and warp_factor > DAMAGED_WARP_LIMIT
        if limited:
            warp_factor = DAMAGED_WARP_LIMIT

        power = warp_power(distance, warp_factor)
        if power >= ship.energy:
            max_warp = math.sqrt(ship.energy / (distance + WARP_POWER_OFFSET))
            message = f"Insufficient energy. Available: {ship.energy:.2f}, Required: {power:.2f}"
            if max_warp >= MIN_WARP_FACTOR:
                message += f". Maximum achievable warp: {max_warp:.2f}"
            return ActionResult.fail(message)

        obstacles = self.check_trajectory(state, direction, distance)
        if obstacles:
            return self._abort(state, obstacles)

        if limited:
            state.channel.warning("Maximum warp reduced to 4.0 due to damage.")
            ship.warp_factor = warp_factor

        return self._move(state, direction, distance, power, warp_time(distance, warp_factor))

    def impulse(self, state: GameState, direction: float, distance: float) -> ActionResult:
        """Move on impulse engines; distance is capped at one quadrant."""
        ship = state.ship
        error = self._validate(state, direction, distance)
        if error:
            return ActionResult.fail(error)
        if not ship.is_device_operational(DeviceType.IMPULSE_ENGINES):
            return ActionResult.fail("Impulse engines are damaged and inoperative.")

        capped = distance > IMPULSE_MAX_DISTANCE
        distance = min(distance, IMPULSE_MAX_DISTANCE)

        power = impulse_power(distance)
        if power >= ship.energy:
            return ActionResult.fail(
                f"Insufficient energy. Available: {ship.energy:.2f}, Required: {power:.2f}"
            )

        obstacles = self.check_trajectory(state, direction, distance)
        if obstacles:
            return self._abort(state, obstacles)

        if capped:
            state.channel.warning("Impulse engines limited to 1.0 quadrant.")

        return self._move(state, direction, distance, power, impulse_time(distance))

    def dock(self, state: GameState) -> ActionResult:
        """Dock at the quadrant's starbase if it is within DOCKING_RANGE sectors."""
        quadrant = state.quadrant
        if quadrant is None or quadrant.starbase is None:
            return ActionResult.fail("No starbase in this quadrant.")

        base = quadrant.starbase.position
        if state.ship.sector.distance_to(base) > DOCKING_RANGE:
            return ActionResult.fail(f"Starbase at {base} is too far to dock. Move closer.")

        self._dock_at_starbase(state)
        return ActionResult.ok("Docked.", action_taken=True)

    def set_warp_factor(self, state: GameState, warp_factor: float) -> ActionResult:
        ship = state.ship
        if not MIN_WARP_FACTOR <= warp_factor <= MAX_WARP_FACTOR:
            return ActionResult.fail("Warp factor must be between 1.0 and 10.0")

        engines_ok = ship.is_device_operational(DeviceType.WARP_ENGINES)
        if warp_factor > RISKY_WARP_FACTOR and engines_ok:
            state.channel.warning("Warp factors above 8.0 risk damaging the engines.")
        if not engines_ok and warp_factor > DAMAGED_WARP_LIMIT:
            state.channel.warning("Damaged warp engines limit warp to 4.0")
            warp_factor = DAMAGED_WARP_LIMIT

        ship.warp_factor = warp_factor
        state.channel.info(f"Warp factor set to {warp_factor:.1f}")
        return ActionResult.ok(f"Warp factor set to {warp_factor:.1f}")

    def rest(self, state: GameState, time: float) -> ActionResult:
        """
        Let time pass while the crew repairs damaged devices.

        Repairs run at DOCKED_REPAIR_RATE per stardate when docked and
        FIELD_REPAIR_RATE otherwise. Resting is refused with hostiles in the
        quadrant unless the ship is docked.
        """
        ship = state.ship
        if time <= 0:
            return ActionResult.fail("Rest time must be positive.")
        quadrant = state.quadrant
        if quadrant is not None and quadrant.hostile_count > 0 and not ship.is_docked:
            return ActionResult.fail("You cannot rest with enemies present unless docked!")

        state.channel.info(f"Resting for {time:.2f} stardates...")
        rate = DOCKED_REPAIR_RATE if ship.is_docked else FIELD_REPAIR_RATE
        for device, _ in ship.devices.damaged_devices():
            ship.devices.repair(device, time * rate)
            if ship.devices.is_operational(device):
                state.channel.info(f"  {DEVICE_NAMES[device]} repaired.")

        state.advance_time(time)
        return ActionResult.ok(action_taken=True)

    # -------------------------------------------------------------------------
    # Trajectory scan
    # -------------------------------------------------------------------------

    def check_trajectory(
        self,
        state: GameState,
        direction: float,
        distance: float
    ) -> list[Obstacle]:
        """
        Trace a course through the current quadrant without moving.

        Returns:
            Every occupied sector on the course, each reported once, with its
            distance along the course in quadrants.
        """
        quadrant = state.quadrant
        if quadrant is None:
            return []

        ship_sector = state.ship.sector
        dx, dy = course_vector(direction)
        obstacles: list[Obstacle] = []
        seen: set[SectorCoordinate] = set()

        for i in range(1, _step_count(distance) + 1):
            travelled = i * MOVE_STEP
            sector = nearest_sector(ship_sector.x + dx * travelled, ship_sector.y + dy * travelled)
            if not sector.is_valid or sector == ship_sector or sector in seen:
                continue
            entity = quadrant.entity_at(sector)
            if entity is not None:
                seen.add(sector)
                obstacles.append(
                    Obstacle(obstacle_kind(entity), sector, travelled / SECTORS_PER_QUADRANT)
                )
        return obstacles

    def _abort(self, state: GameState, obstacles: list[Obstacle]) -> ActionResult:
        state.channel.warning("*** NAVIGATION ALERT ***")
        state.channel.warning(f"Projected course intercepts {len(obstacles)} object(s):")
        for obstacle in obstacles:
            state.channel.warning(f"  {obstacle}")
        state.channel.error("Course aborted for safety. Adjust direction or distance.")
        return ActionResult.fail("Course aborted for safety.", obstacles)

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate(state: GameState, direction: float, distance: float) -> Optional[str]:
        if state.quadrant is None:
            return "The ship is not in a quadrant."
        if not is_valid_course(direction):
            return "Course must be between 1 and 12."
        if distance <= 0:
            return "Distance must be positive."
        return None

    def _move(
        self,
        state: GameState,
        direction: float,
        distance: float,
        power: float,
        time: float
    ) -> ActionResult:
        ship = state.ship
        ship.use_energy(power)
        ship.is_docked = False

        dx, dy = course_vector(direction)
        x, y = float(ship.sector.x), float(ship.sector.y)
        qx, qy = ship.quadrant.x, ship.quadrant.y
        start_quadrant = ship.quadrant
        steps = _step_count(distance)
        webbed: set[SectorCoordinate] = set()

        for i in range(1, steps + 1):
            x += dx * MOVE_STEP
            y += dy * MOVE_STEP
            flown = i / steps

            while x < 0.5:
                x += QUADRANT_SIZE
                qx -= 1
            while x > QUADRANT_SIZE + 0.5:
                x -= QUADRANT_SIZE
                qx += 1
            while y < 0.5:
                y += QUADRANT_SIZE
                qy -= 1
            while y > QUADRANT_SIZE + 0.5:
                y -= QUADRANT_SIZE
                qy += 1

            if not (1 <= qx <= GALAXY_SIZE and 1 <= qy <= GALAXY_SIZE):
                state.channel.warning("*** LEAVING GALAXY - NEGATIVE ENERGY BARRIER ***")
                state.channel.warning("Ship reflected back into galaxy.")
                if qx < 1:
                    qx, x, dx = 1, 1.0, -dx
                elif qx > GALAXY_SIZE:
                    qx, x, dx = GALAXY_SIZE, float(QUADRANT_SIZE), -dx
                if qy < 1:
                    qy, y, dy = 1, 1.0, -dy
                elif qy > GALAXY_SIZE:
                    qy, y, dy = GALAXY_SIZE, float(QUADRANT_SIZE), -dy

            destination = QuadrantCoordinate(qx, qy)
            if destination != start_quadrant:
                remaining = (steps - i) / steps
                return self._cross_into(state, destination, clamp_sector(x, y), time * remaining)

            sector = nearest_sector(x, y)
            if not sector.is_valid or sector == ship.sector:
                continue

            entity = state.quadrant.entity_at(sector)
            if entity is not None:
                return self._collide(state, entity, sector, x, y, dx, dy, time * flown)

            if sector in state.quadrant.web and sector not in webbed:
                webbed.add(sector)
                damage = WEB_BASE_DAMAGE + WEB_DAMAGE_SPREAD * state.rng.random()
                ship.energy -= damage
                state.channel.warning(f"Ship intersects Tholian web at {sector}!")
                state.channel.warning(f"Web causes {damage:.2f} units damage.")
                if ship.energy <= 0:
                    ship.energy = 0.0
                    state.end_game(GameOutcome.KILLED_IN_BATTLE)
                    return ActionResult.ok("Destroyed in the Tholian web.", action_taken=True)

        final = clamp_sector(x, y)
        if final != ship.sector and not state.quadrant.is_sector_empty(final):
            final = state.quadrant.nearest_empty_sector(final) or ship.sector
        return self._finish(state, final, time)

    def _cross_into(
        self,
        state: GameState,
        destination: QuadrantCoordinate,
        sector: SectorCoordinate,
        time: float
    ) -> ActionResult:
        if state.galaxy.is_supernova(destination):
            state.channel.error(f"*** {quadrant_name(destination)} HAS GONE SUPERNOVA! ***")
            state.ship.quadrant = destination
            state.advance_time(time)
            state.end_game(GameOutcome.SUPERNOVA)
            return ActionResult.ok("Flew into a supernova.", action_taken=True)

        enter_quadrant(state, destination, sector)
        state.advance_time(time)
        return ActionResult.ok(action_taken=True)

    def _collide(
        self,
        state: GameState,
        entity,
        sector: SectorCoordinate,
        x: float,
        y: float,
        dx: float,
        dy: float,
        time: float
    ) -> ActionResult:
        ship = state.ship

        if isinstance(entity, Star):
            state.channel.error(f"*** COLLISION WITH STAR AT {sector}! ***")
            state.advance_time(time)
            state.end_game(GameOutcome.STAR_COLLISION)
            return ActionResult.ok("Collided with a star.", action_taken=True)

        if isinstance(entity, BlackHole):
            state.channel.error(f"*** SHIP FALLS INTO BLACK HOLE AT {sector}! ***")
            state.advance_time(time)
            state.end_game(GameOutcome.BLACK_HOLE)
            return ActionResult.ok("Fell into a black hole.", action_taken=True)

        if isinstance(entity, Hostile):
            state.channel.error(f"*** COLLISION WITH {entity.name.upper()} AT {sector}! ***")
            damage = RAM_BASE_DAMAGE + RAM_DAMAGE_SPREAD * state.rng.random()
            ship.energy -= damage
            state.channel.warning(f"Ship takes {damage:.2f} damage from collision.")

            entity.power -= 2 * damage
            if entity.is_destroyed:
                state.channel.info(f"{entity.name} destroyed in collision!")
                self.combat.destroy_hostile(state, entity)

            if ship.energy <= 0:
                ship.energy = 0.0
                state.end_game(GameOutcome.KILLED_IN_BATTLE)
                return ActionResult.ok("Destroyed in a collision.", action_taken=True)

            bounce = clamp_sector(x - dx * RAM_BOUNCE_STEPS, y - dy * RAM_BOUNCE_STEPS)
            return self._finish(state, self._settle(state, bounce), time)

        stop = self._settle(state, clamp_sector(x - dx, y - dy))
        result = self._finish(state, stop, time)
        if isinstance(entity, Starbase) and not state.is_game_over:
            self._dock_at_starbase(state)
        return result

    def _settle(self, state: GameState, sector: SectorCoordinate) -> SectorCoordinate:
        """Keep a stopping sector if free, else the nearest free one, else stay put."""
        if sector == state.ship.sector or state.quadrant.is_sector_empty(sector):
            return sector
        return state.quadrant.nearest_empty_sector(sector) or state.ship.sector

    def _finish(self, state: GameState, sector: SectorCoordinate, time: float) -> ActionResult:
        state.set_ship_sector(sector)
        state.advance_time(time)
        state.sort_hostiles_by_distance()
        state.update_condition()
        return ActionResult.ok(action_taken=True)

    def _dock_at_starbase(self, state: GameState) -> None:
        ship = state.ship
        ship.resupply()
        ship.is_docked = True
        state.update_condition()
        state.channel.info("Ship docked at starbase. Resupplying and repairing...")
        state.channel.info(f"  Energy: {ship.energy:.0f}")
        state.channel.info(f"  Shields: {ship.shield:.0f}")
        state.channel.info(f"  Torpedoes: {ship.torpedoes}")
        state.channel.info(f"  Probes: {ship.probes}")
        logger.debug("Docked in %s at %s", ship.quadrant, ship.sector)


def _step_count(distance: float) -> int:
    """Number of MOVE_STEP increments needed to cover a distance in quadrants."""
    return max(1, int(round(distance * SECTORS_PER_QUADRANT / MOVE_STEP)))
