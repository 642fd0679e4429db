"""
Combat mechanics for the supertrek simulation.

This module resolves everything that trades energy for damage in the
current quadrant: phasers, photon torpedoes, the experimental death ray,
hostile return fire, shield control and the cloaking device.

Every operation takes the GameState it acts on and draws randomness only
from state.rng.
"""

from __future__ import annotations

import logging

from .coordinates import (
    QuadrantCoordinate,
    SectorCoordinate,
    course_vector,
    is_valid_course,
    nearest_sector,
)
from .entities import BlackHole, Hostile, HostileKind, Planet, Star, Starbase
from .results import ActionResult
from .ship import DEVICE_NAMES, DeviceType
from .state import FutureEventType, GameOutcome, GameState


logger = logging.getLogger("supertrek.combat")


# =============================================================================
# CONSTANTS
# =============================================================================

PHASER_FACTOR = 2.0
PHASER_JITTER_MIN = 0.8
PHASER_JITTER_SPREAD = 0.4
SHIELDS_CHANGING_PENALTY = 0.5

TORPEDO_BASE_DAMAGE = 500.0
TORPEDO_DAMAGE_SPREAD = 200.0
TORPEDO_STEP = 0.5                # sectors per trace step
PLANET_DESTRUCTION_CHANCE = 0.5

DEVICE_DAMAGE_THRESHOLD = 200.0   # plus 50 * U
DEVICE_DAMAGE_THRESHOLD_SPREAD = 50.0
DEVICE_DAMAGE_DIVISOR = 75.0      # plus 25 * U
DEVICE_DAMAGE_DIVISOR_SPREAD = 25.0
CASUALTY_THRESHOLD = 400.0
CASUALTY_CHANCE = 0.2

# Death ray outcome bands over a single uniform draw
DEATH_RAY_SUCCESS = 0.3
DEATH_RAY_FIZZLE = 0.7
DEATH_RAY_OVERLOAD = 0.9
DEATH_RAY_OVERLOAD_DAMAGE = 10.0


class CombatResolver:
    """
    Resolves weapons fire between the player's ship and hostiles.

    Usage:
        resolver = CombatResolver()
        result = resolver.fire_phasers(state, 500.0)
        if result.action_taken:
            resolver.enemies_attack(state)
    """

    # -------------------------------------------------------------------------
    # Damage bookkeeping
    # -------------------------------------------------------------------------

    def apply_damage(self, state: GameState, hostile: Hostile, damage: float) -> bool:
        """
        Reduce a hostile's power and destroy it when exhausted.

        Returns:
            True if the hostile was destroyed by this hit.
        """
        hostile.power -= damage
        if hostile.is_destroyed:
            return self.destroy_hostile(state, hostile)

        percent = 100.0 * damage / (damage + hostile.power)
        state.channel.info(
            f"  {hostile.name} at {hostile.position} hit with {damage:.2f} units "
            f"({percent:.1f}% damage)"
        )
        return False

    def destroy_hostile(self, state: GameState, hostile: Hostile) -> bool:
        """
        Remove a hostile from play.

        The quadrant list, the galaxy aggregate and the remaining counts are
        each adjusted once; calling this again for the same hostile does
        nothing and returns False.
        """
        quadrant = state.quadrant
        if quadrant is None or not quadrant.remove_hostile(hostile):
            return False

        hostile.power = min(hostile.power, 0.0)
        galaxy = state.galaxy
        coord = quadrant.coordinate
        state.channel.info(f"*** {hostile.name} at {hostile.position} destroyed! ***")

        if hostile.kind == HostileKind.KLINGON:
            state.klingons_killed += 1
            state.remaining_klingons = max(0, state.remaining_klingons - 1)
        elif hostile.kind == HostileKind.COMMANDER:
            state.commanders_killed += 1
            state.remaining_commanders = max(0, state.remaining_commanders - 1)
            if coord in galaxy.commander_locations:
                galaxy.commander_locations.remove(coord)
            if state.remaining_commanders == 0:
                state.unschedule(FutureEventType.TRACTOR_BEAM)
                state.unschedule(FutureEventType.BASE_ATTACK)
        elif hostile.kind == HostileKind.SUPER_COMMANDER:
            state.super_commanders_killed += 1
            state.remaining_super_commanders = max(0, state.remaining_super_commanders - 1)
            galaxy.super_commander_location = QuadrantCoordinate.INVALID
            state.unschedule(FutureEventType.SUPER_COMMANDER_MOVES)
            state.unschedule(FutureEventType.SUPER_COMMANDER_DESTROYS_BASE)
        elif hostile.kind == HostileKind.ROMULAN:
            state.romulans_killed += 1

        if hostile.counts_in_galaxy:
            galaxy.remove_hostile(coord)

        logger.debug("%s destroyed in %s", hostile.kind.name, coord)
        state.update_condition()
        state.check_victory()
        return True

    # -------------------------------------------------------------------------
    # Phasers
    # -------------------------------------------------------------------------

    def fire_phasers(self, state: GameState, energy: float) -> ActionResult:
        """
        Fire phasers at every live hostile in the quadrant.

        Energy is split between targets in inverse proportion to their
        distance; each share does share * PHASER_FACTOR / distance damage,
        jittered by 0.8-1.2.

        Args:
            state: Game state.
            energy: Energy to commit.

        Returns:
            ActionResult; on failure nothing is debited.
        """
        ship = state.ship
        quadrant = state.quadrant
        targets = quadrant.live_hostiles if quadrant is not None else []

        if not targets:
            return ActionResult.fail("No enemies in this quadrant.")
        if not ship.is_device_operational(DeviceType.PHASERS):
            return ActionResult.fail("Phasers damaged and inoperative.")
        if ship.is_cloaked:
            return ActionResult.fail("Cannot fire phasers while cloaked!")
        if energy <= 0:
            return ActionResult.fail("Phaser energy must be positive.")
        if not ship.use_energy(energy):
            return ActionResult.fail(f"Insufficient energy. You have {ship.energy:.2f} units.")

        if ship.shields_changing:
            energy *= SHIELDS_CHANGING_PENALTY
            state.channel.warning("Phaser efficiency reduced while shields are changing.")

        total_inverse = sum(1.0 / max(h.distance, 1.0) for h in targets)
        for hostile in targets:
            distance = max(hostile.distance, 1.0)
            share = energy * (1.0 / distance) / total_inverse
            hit = share * PHASER_FACTOR / distance
            hit *= PHASER_JITTER_MIN + PHASER_JITTER_SPREAD * state.rng.random()
            self.apply_damage(state, hostile, hit)

        state.update_condition()
        return ActionResult.ok(action_taken=True)

    # -------------------------------------------------------------------------
    # Torpedoes
    # -------------------------------------------------------------------------

    def torpedo_track(
        self,
        start: SectorCoordinate,
        direction: float
    ) -> list[SectorCoordinate]:
        """
        Sectors a torpedo passes through until it leaves the quadrant.

        The start sector is not included and each sector appears once.
        """
        dx, dy = course_vector(direction)
        x, y = float(start.x), float(start.y)
        track: list[SectorCoordinate] = []

        while True:
            x += dx * TORPEDO_STEP
            y += dy * TORPEDO_STEP
            sector = nearest_sector(x, y)
            if not sector.is_valid:
                break
            if sector == start or (track and track[-1] == sector):
                continue
            track.append(sector)
        return track

    def fire_torpedo(self, state: GameState, direction: float) -> ActionResult:
        """
        Fire one photon torpedo along a course.

        The torpedo stops at the first web cell (absorbed, cell cleared) or
        occupant it meets; a miss leaves the quadrant.
        """
        ship = state.ship
        quadrant = state.quadrant

        if not is_valid_course(direction):
            return ActionResult.fail("Course must be between 1 and 12.")
        if quadrant is None:
            return ActionResult.fail("No quadrant to fire into.")
        if not ship.is_device_operational(DeviceType.PHOTON_TUBES):
            return ActionResult.fail("Photon tubes damaged and inoperative.")
        if ship.torpedoes <= 0:
            return ActionResult.fail("No photon torpedoes remaining.")
        if ship.is_cloaked:
            return ActionResult.fail("Cannot fire torpedoes while cloaked!")

        ship.torpedoes -= 1
        state.channel.info("Torpedo track:")

        for sector in self.torpedo_track(ship.sector, direction):
            state.channel.info(f"  {sector}")

            if sector in quadrant.web:
                quadrant.web.discard(sector)
                state.channel.info(f"*** Torpedo absorbed by Tholian web at {sector}! ***")
                break

            entity = quadrant.entity_at(sector)
            if entity is not None:
                self._torpedo_hit(state, entity, sector)
                break
        else:
            state.channel.info("Torpedo missed.")

        state.update_condition()
        return ActionResult.ok(action_taken=True)

    def _torpedo_hit(self, state: GameState, entity, sector: SectorCoordinate) -> None:
        if isinstance(entity, Hostile):
            state.channel.info(f"*** Direct hit on {entity.name} at {sector}! ***")
            damage = TORPEDO_BASE_DAMAGE + TORPEDO_DAMAGE_SPREAD * state.rng.random()
            self.apply_damage(state, entity, damage)
        elif isinstance(entity, Star):
            state.channel.info(f"*** Star at {sector} goes nova! ***")
            self.nova(state, entity)
        elif isinstance(entity, Starbase):
            state.channel.error(f"*** STARBASE AT {sector} DESTROYED! ***")
            self.destroy_starbase(state)
        elif isinstance(entity, Planet):
            state.channel.warning(f"*** Torpedo impacts planet at {sector}! ***")
            if state.rng.random() < PLANET_DESTRUCTION_CHANCE:
                state.channel.info("Planet destroyed!")
                self.destroy_planet(state)
            else:
                state.channel.info("Planet absorbed the blast.")
        elif isinstance(entity, BlackHole):
            state.channel.info(f"Torpedo swallowed by black hole at {sector}.")
        else:
            state.channel.info(f"Torpedo hit something at {sector}.")

    def nova(self, state: GameState, star: Star) -> None:
        """A star explodes, vaporizing hostiles in the eight sectors around it."""
        quadrant = state.quadrant
        center = star.position

        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                entity = quadrant.entity_at(SectorCoordinate(center.x + dx, center.y + dy))
                if isinstance(entity, Hostile):
                    state.channel.info(f"  Nova destroys {entity.name} at {entity.position}!")
                    entity.power = 0.0
                    self.destroy_hostile(state, entity)

        quadrant.remove_star(star)
        state.galaxy.remove_star(quadrant.coordinate)
        state.stars_destroyed += 1

    def destroy_starbase(self, state: GameState) -> None:
        quadrant = state.quadrant
        if quadrant is None or quadrant.starbase is None:
            return
        coord = quadrant.coordinate

        quadrant.clear_starbase()
        state.galaxy.remove_starbase(coord)
        state.remaining_bases = max(0, state.remaining_bases - 1)
        state.bases_destroyed += 1

        if state.base_under_attack == coord:
            state.base_under_attack = QuadrantCoordinate.INVALID
            state.unschedule(FutureEventType.COMMANDER_DESTROYS_BASE)

        if state.ship.is_docked:
            state.ship.is_docked = False
        state.update_condition()

    def destroy_planet(self, state: GameState) -> None:
        quadrant = state.quadrant
        planet = quadrant.planet if quadrant is not None else None
        if planet is None:
            return
        quadrant.clear_planet()
        if planet in state.galaxy.planets:
            state.galaxy.planets.remove(planet)
        state.planets_destroyed += 1

    # -------------------------------------------------------------------------
    # Death ray
    # -------------------------------------------------------------------------

    def fire_death_ray(self, state: GameState) -> ActionResult:
        """
        Gamble on the experimental death ray.

        One uniform draw picks the outcome: below 0.3 every hostile in the
        quadrant is destroyed, below 0.7 nothing happens, below 0.9 the ray
        damages itself, otherwise it destroys the ship.
        """
        ship = state.ship
        if not ship.is_device_operational(DeviceType.DEATH_RAY):
            return ActionResult.fail("Death ray is damaged and inoperative.")

        chance = state.rng.random()

        if chance < DEATH_RAY_SUCCESS:
            state.channel.info("*** DEATH RAY FIRES SUCCESSFULLY! ***")
            if state.quadrant is not None:
                for hostile in list(state.quadrant.hostiles):
                    state.channel.info(f"  {hostile.name} at {hostile.position} disintegrated!")
                    hostile.power = 0.0
                    self.destroy_hostile(state, hostile)
        elif chance < DEATH_RAY_FIZZLE:
            state.channel.warning("Death ray fizzles. Energy discharge harmless.")
        elif chance < DEATH_RAY_OVERLOAD:
            state.channel.warning("Death ray overloads! Massive damage to death ray unit!")
            ship.devices.add_damage(DeviceType.DEATH_RAY, DEATH_RAY_OVERLOAD_DAMAGE)
        else:
            state.channel.error("*** DEATH RAY BACKFIRES! ***")
            state.channel.error(f"*** {ship.name.upper()} DESTROYED! ***")
            state.end_game(GameOutcome.DEATH_RAY_BACKFIRE)

        state.update_condition()
        return ActionResult.ok(action_taken=True)

    # -------------------------------------------------------------------------
    # Return fire
    # -------------------------------------------------------------------------

    def enemies_attack(self, state: GameState) -> ActionResult:
        """
        Every live hostile fires at the ship.

        hit = attack power * (average distance + distance) / 2 / distance,
        scaled by skill. Raised shields soak up hits first; what gets through
        drains energy and may damage a device or kill crew. A cloaked ship is
        not attacked. The turn's shields-changing flag is cleared afterwards.
        """
        ship = state.ship
        quadrant = state.quadrant

        if quadrant is None or ship.is_cloaked or not quadrant.live_hostiles:
            ship.shields_changing = False
            return ActionResult.ok()

        rng = state.rng
        total_damage = 0.0

        for hostile in quadrant.live_hostiles:
            distance = max(hostile.distance, 1.0)
            hit = hostile.attack_power(rng)
            hit *= (hostile.average_distance + distance) / 2.0
            hit /= distance
            hit *= state.damage_factor
            if hit <= 0:
                continue

            state.channel.info(f"{hostile.name} at {hostile.position} fires at {ship.name}!")

            if ship.shields_up and ship.shield > 0:
                absorbed = min(hit, ship.shield)
                ship.shield -= absorbed
                hit -= absorbed
                state.channel.info(
                    f"  Shields absorb {absorbed:.2f} units, shields now at {ship.shield:.2f}"
                )

            if hit <= 0:
                continue

            ship.energy -= hit
            total_damage += hit
            state.channel.warning(f"  {hit:.2f} units damage to {ship.name}!")

            if hit > DEVICE_DAMAGE_THRESHOLD + DEVICE_DAMAGE_THRESHOLD_SPREAD * rng.random():
                self._damage_random_device(state, hit)

            if hit > CASUALTY_THRESHOLD and rng.random() < CASUALTY_CHANCE:
                casualties = int(hit / 100)
                ship.casualties += casualties
                state.channel.warning(f"  {casualties} crew casualties!")

        ship.shields_changing = False

        if ship.energy <= 0:
            ship.energy = 0.0
            state.channel.error(f"*** {ship.name.upper()} DESTROYED ***")
            state.end_game(GameOutcome.KILLED_IN_BATTLE)

        if total_damage > 0:
            state.channel.info(f"Total damage: {total_damage:.2f} units.")

        state.update_condition()
        return ActionResult.ok()

    def _damage_random_device(self, state: GameState, hit: float) -> DeviceType:
        devices = list(DeviceType)
        device = devices[state.rng.randrange(len(devices))]
        damage = hit / (DEVICE_DAMAGE_DIVISOR + DEVICE_DAMAGE_DIVISOR_SPREAD * state.rng.random())
        damage *= state.damage_factor
        state.ship.devices.add_damage(device, damage)
        state.channel.warning(f"  *** {DEVICE_NAMES[device]} damaged! ***")
        return device

    # -------------------------------------------------------------------------
    # Shields and cloak
    # -------------------------------------------------------------------------

    def shields(self, state: GameState, up: bool) -> ActionResult:
        """Raise or lower the shields."""
        ship = state.ship
        if not ship.is_device_operational(DeviceType.SHIELDS):
            return ActionResult.fail("Shield control is damaged.")

        if ship.shields_up == up:
            return ActionResult.ok(f"Shields are already {'up' if up else 'down'}.")

        ship.shields_up = up
        ship.shields_changing = True
        message = "Shields raised." if up else "Shields lowered."
        state.channel.info(message)
        return ActionResult.ok(message, action_taken=True)

    def transfer_shield_energy(self, state: GameState, amount: float) -> ActionResult:
        """
        Move energy between the main banks and the shields.

        A positive amount charges the shields, a negative one drains them back
        into the banks. The amount is capped at what the receiving side can
        hold.
        """
        ship = state.ship
        if not ship.is_device_operational(DeviceType.SHIELDS):
            return ActionResult.fail("Shield control is damaged.")
        if amount == 0:
            return ActionResult.fail("Specify a non-zero amount of energy.")

        if amount > 0:
            if amount > ship.energy:
                return ActionResult.fail(f"Insufficient energy. Available: {ship.energy:.0f}")
            space = ship.max_shield - ship.shield
            if space <= 0:
                return ActionResult.fail("Shields are already at full capacity.")
            if amount > space:
                state.channel.warning(f"Shields can only accept {space:.0f} more units.")
                amount = space
            ship.use_energy(amount)
            ship.shield += amount
            state.channel.info(f"Transferred {amount:.0f} to shields.")
        else:
            amount = -amount
            if amount > ship.shield:
                return ActionResult.fail(
                    f"Insufficient shield energy. Available: {ship.shield:.0f}"
                )
            space = ship.max_energy - ship.energy
            if space <= 0:
                return ActionResult.fail("Energy banks are full.")
            if amount > space:
                state.channel.warning(f"Energy banks can only accept {space:.0f} more units.")
                amount = space
            ship.shield -= amount
            ship.energy += amount
            state.channel.info(f"Transferred {amount:.0f} from shields to energy banks.")

        state.update_condition()
        return ActionResult.ok(action_taken=True)

    def set_cloak(self, state: GameState, engaged: bool) -> ActionResult:
        """
        Engage or disengage the cloaking device.

        Cloaking in front of Romulans inside the neutral zone breaks the
        treaty and is recorded as a violation.
        """
        ship = state.ship
        if not ship.is_device_operational(DeviceType.CLOAKING_DEVICE):
            return ActionResult.fail("Cloaking device is damaged.")
        if ship.is_cloaked == engaged:
            return ActionResult.ok(f"Cloaking device is already {'on' if engaged else 'off'}.")

        ship.is_cloaked = engaged
        if not engaged:
            state.channel.info("Cloaking device disengaged.")
            return ActionResult.ok(action_taken=True)

        state.channel.info("Cloaking device engaged.")
        quadrant = state.quadrant
        if (
            quadrant is not None
            and quadrant.is_neutral_zone
            and quadrant.count_kind(HostileKind.ROMULAN) > 0
        ):
            ship.treaty_violations += 1
            state.channel.warning("*** Treaty violation! The Romulans saw you cloak. ***")
        return ActionResult.ok(action_taken=True)
