"""
Scheduled event processing.

Every event kind has one slot in GameState.future_events holding the stardate
it next fires (zero or less means "not scheduled"). process_events() walks the
kinds in declaration order and fires each one that is due, so two events due
at almost the same moment fire in kind order rather than time order.

Intervals between recurring events are exponential draws from the game's
random source, so a seeded game replays identically.
"""

from __future__ import annotations

import logging
from typing import Callable

from .coordinates import GALAXY_SIZE, QuadrantCoordinate, course_vector, is_valid_course
from .entities import HostileKind
from .galaxy import MAX_COMPONENT
from .population import enter_quadrant, quadrant_name, spawn_hostile
from .results import ActionResult
from .ship import DeviceType
from .state import FutureEventType, GameOutcome, GameState, GameStateSnapshot


logger = logging.getLogger("supertrek.scheduler")


# =============================================================================
# CONSTANTS
# =============================================================================

SUPERNOVA_MEAN_FACTOR = 0.5
TRACTOR_BEAM_MEAN_FACTOR = 1.5
SNAPSHOT_MEAN_FACTOR = 0.5
BASE_ATTACK_MEAN_FACTOR = 0.3

BASE_ATTACK_RANGE = 2.0           # quadrants between commander and base
BASE_DESTRUCTION_MIN_DELAY = 1.0
BASE_DESTRUCTION_SPREAD = 2.0
SUPER_COMMANDER_MOVE_INTERVAL = 0.2777
SUPER_COMMANDER_ATTACK_MIN_DELAY = 0.5
TRACTOR_BEAM_MAX_TIME = 2.0

PROBE_MOVE_INTERVAL = 0.1
PROBE_MAX_MOVES = 10


class EventScheduler:
    """
    Fires due events against a game state.

    The scheduler keeps no state of its own; everything lives on the
    GameState passed to each call.
    """

    def __init__(self) -> None:
        self._handlers: dict[FutureEventType, Callable[[GameState], None]] = {
            FutureEventType.SUPERNOVA: self._supernova,
            FutureEventType.TRACTOR_BEAM: self._tractor_beam,
            FutureEventType.SNAPSHOT: self._snapshot,
            FutureEventType.BASE_ATTACK: self._base_attack,
            FutureEventType.COMMANDER_DESTROYS_BASE: self._commander_destroys_base,
            FutureEventType.SUPER_COMMANDER_MOVES: self._super_commander_moves,
            FutureEventType.SUPER_COMMANDER_DESTROYS_BASE: self._super_commander_destroys_base,
            FutureEventType.PROBE_MOVE: self._probe_move,
        }

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def schedule_initial_events(self, state: GameState) -> None:
        """Fill the event table for a brand-new game."""
        t = state.initial_time
        state.schedule(
            FutureEventType.SUPERNOVA,
            state.stardate + state.exp_rand(SUPERNOVA_MEAN_FACTOR * t),
        )
        if state.remaining_commanders > 0:
            state.schedule(
                FutureEventType.TRACTOR_BEAM,
                state.stardate + state.exp_rand(
                    TRACTOR_BEAM_MEAN_FACTOR * t / state.remaining_commanders
                ),
            )
        state.schedule(
            FutureEventType.SNAPSHOT,
            state.stardate + state.exp_rand(SNAPSHOT_MEAN_FACTOR * t),
        )
        if state.remaining_commanders > 0:
            state.schedule(
                FutureEventType.BASE_ATTACK,
                state.stardate + state.exp_rand(BASE_ATTACK_MEAN_FACTOR * t),
            )
        if state.remaining_super_commanders > 0:
            state.schedule(
                FutureEventType.SUPER_COMMANDER_MOVES,
                state.stardate + SUPER_COMMANDER_MOVE_INTERVAL,
            )

    def process_events(self, state: GameState) -> list[FutureEventType]:
        """
        Fire every due event, in kind order.

        Processing stops as soon as an event ends the game.

        Returns:
            The event kinds that fired.
        """
        fired: list[FutureEventType] = []
        for kind in FutureEventType:
            if state.is_game_over:
                break
            due = state.future_events[kind]
            if 0 < due <= state.stardate:
                logger.debug("Event %s fires at stardate %.3f", kind.name, state.stardate)
                self._handlers[kind](state)
                fired.append(kind)
        return fired

    # -------------------------------------------------------------------------
    # Supernova
    # -------------------------------------------------------------------------

    def _supernova(self, state: GameState) -> None:
        quad = state.galaxy.random_quadrant(state.rng)
        state.schedule(
            FutureEventType.SUPERNOVA,
            state.stardate + state.exp_rand(SUPERNOVA_MEAN_FACTOR * state.initial_time),
        )

        if state.galaxy.is_supernova(quad):
            return

        if quad == state.ship.quadrant:
            state.channel.error("*** RED ALERT! SUPERNOVA DETECTED! ***")
            state.channel.error(f"*** SUPERNOVA IN QUADRANT {quad}! ***")
        elif state.can_receive_radio():
            state.channel.warning(f"Message from Starfleet: Supernova in {quadrant_name(quad)}!")

        self.destroy_quadrant(state, quad)

    def destroy_quadrant(self, state: GameState, quad: QuadrantCoordinate) -> None:
        """
        Wipe a quadrant as a supernova does.

        If the ship is inside, it tries an emergency warp into a neighbouring
        quadrant first and dies if the warp engines are down or the neighbour
        has already gone supernova.
        """
        if quad == state.ship.quadrant:
            if not state.ship.is_device_operational(DeviceType.WARP_ENGINES):
                state.channel.error("Cannot escape - warp engines are damaged!")
                state.end_game(GameOutcome.SUPERNOVA)
                return

            state.channel.warning("Emergency warp engaged!")
            escape = self._escape_quadrant(state, quad)
            if state.galaxy.is_supernova(escape):
                state.channel.error(f"{quadrant_name(escape)} has already gone supernova!")
                state.end_game(GameOutcome.SUPERNOVAED_WHILE_ESCAPING)
                return
            enter_quadrant(state, escape)
            state.channel.info(f"Escaped to {quadrant_name(escape)}.")

        if state.base_under_attack == quad:
            state.base_under_attack = QuadrantCoordinate.INVALID
            state.unschedule(FutureEventType.COMMANDER_DESTROYS_BASE)

        report = state.galaxy.supernova(quad)
        state.apply_supernova_losses(report)
        state.check_victory()

    @staticmethod
    def _escape_quadrant(state: GameState, quad: QuadrantCoordinate) -> QuadrantCoordinate:
        rng = state.rng
        x = min(GALAXY_SIZE, max(1, quad.x + rng.randint(-1, 1)))
        y = min(GALAXY_SIZE, max(1, quad.y + rng.randint(-1, 1)))
        if x == quad.x and y == quad.y:
            x = (x % GALAXY_SIZE) + 1
        return QuadrantCoordinate(x, y)

    # -------------------------------------------------------------------------
    # Commanders
    # -------------------------------------------------------------------------

    def _reschedule_tractor_beam(self, state: GameState) -> None:
        if state.remaining_commanders > 0:
            mean = TRACTOR_BEAM_MEAN_FACTOR * state.initial_time / state.remaining_commanders
            state.schedule(FutureEventType.TRACTOR_BEAM, state.stardate + state.exp_rand(mean))
        else:
            state.unschedule(FutureEventType.TRACTOR_BEAM)

    def _tractor_beam(self, state: GameState) -> None:
        if state.remaining_commanders <= 0:
            state.unschedule(FutureEventType.TRACTOR_BEAM)
            return

        locations = state.galaxy.commander_locations
        if state.ship.is_cloaked or not locations:
            self._reschedule_tractor_beam(state)
            return

        target = locations[state.rng.randrange(len(locations))]
        if target != state.ship.quadrant:
            state.channel.warning("*** COMMANDER TRACTOR BEAM! ***")
            state.channel.warning(f"{state.ship.name} pulled to quadrant {target}!")
            enter_quadrant(state, target)
            state.advance_time(state.rng.random() * TRACTOR_BEAM_MAX_TIME)

        self._reschedule_tractor_beam(state)

    def _snapshot(self, state: GameState) -> None:
        state.snapshot = GameStateSnapshot(
            stardate=state.stardate,
            remaining_klingons=state.remaining_klingons,
            remaining_commanders=state.remaining_commanders,
            remaining_bases=state.remaining_bases,
        )
        state.schedule(
            FutureEventType.SNAPSHOT,
            state.stardate + state.exp_rand(SNAPSHOT_MEAN_FACTOR * state.initial_time),
        )

    def _base_attack(self, state: GameState) -> None:
        galaxy = state.galaxy
        if state.remaining_commanders <= 0 or state.remaining_bases <= 0 or not galaxy.starbase_locations:
            state.unschedule(FutureEventType.BASE_ATTACK)
            return

        next_check = state.stardate + state.exp_rand(BASE_ATTACK_MEAN_FACTOR * state.initial_time)

        # Only one base can be under attack at a time
        if state.base_under_attack.is_valid:
            state.schedule(FutureEventType.BASE_ATTACK, next_check)
            return

        base = galaxy.starbase_locations[state.rng.randrange(len(galaxy.starbase_locations))]
        attacker = next(
            (c for c in galaxy.commander_locations if c.distance_to(base) <= BASE_ATTACK_RANGE),
            None,
        )
        if attacker is None:
            state.schedule(FutureEventType.BASE_ATTACK, next_check)
            return

        destruction = (
            state.stardate
            + BASE_DESTRUCTION_MIN_DELAY
            + BASE_DESTRUCTION_SPREAD * state.rng.random()
        )
        state.base_under_attack = base
        if state.quadrant is not None and state.quadrant.coordinate == base and state.quadrant.starbase:
            state.quadrant.starbase.is_under_attack = True
            state.quadrant.starbase.destruction_date = destruction

        if state.can_receive_radio():
            state.channel.warning(f"*** STARBASE IN {quadrant_name(base)} IS UNDER ATTACK! ***")
            state.channel.warning("You have limited time to respond!")

        state.schedule(FutureEventType.COMMANDER_DESTROYS_BASE, destruction)
        state.schedule(FutureEventType.BASE_ATTACK, next_check)
        logger.debug("Commander at %s attacks base at %s", attacker, base)

    def _commander_destroys_base(self, state: GameState) -> None:
        base = state.base_under_attack
        state.unschedule(FutureEventType.COMMANDER_DESTROYS_BASE)
        state.base_under_attack = QuadrantCoordinate.INVALID

        if not base.is_valid or base not in state.galaxy.starbase_locations:
            return

        if state.ship.quadrant == base:
            state.channel.info(f"The starbase in {quadrant_name(base)} has been defended.")
            if state.quadrant is not None and state.quadrant.starbase is not None:
                state.quadrant.starbase.is_under_attack = False
                state.quadrant.starbase.destruction_date = 0.0
            return

        if state.can_receive_radio():
            state.channel.error(f"*** STARBASE IN {quadrant_name(base)} DESTROYED! ***")
        self._lose_base(state, base)

    # -------------------------------------------------------------------------
    # Super-commander
    # -------------------------------------------------------------------------

    def _super_commander_moves(self, state: GameState) -> None:
        galaxy = state.galaxy
        if state.remaining_super_commanders <= 0:
            state.unschedule(FutureEventType.SUPER_COMMANDER_MOVES)
            return

        state.schedule(
            FutureEventType.SUPER_COMMANDER_MOVES,
            state.stardate + SUPER_COMMANDER_MOVE_INTERVAL,
        )

        current = galaxy.super_commander_location
        if not current.is_valid:
            return

        # Stays put while engaged with the ship
        if (
            current == state.ship.quadrant
            and state.quadrant is not None
            and state.quadrant.has_super_commander
        ):
            return

        target = state.ship.quadrant
        best = current.distance_to(target)
        for base in galaxy.starbase_locations:
            distance = current.distance_to(base)
            if distance < best:
                best = distance
                target = base

        dx = (target.x > current.x) - (target.x < current.x)
        dy = (target.y > current.y) - (target.y < current.y)
        destination = QuadrantCoordinate(current.x + dx, current.y + dy)

        if destination == current or not destination.is_valid:
            return
        if galaxy.is_supernova(destination) or galaxy.hostile_count(destination) >= MAX_COMPONENT:
            return

        galaxy.remove_hostile(current)
        galaxy.add_hostile(destination)
        galaxy.super_commander_location = destination
        logger.debug("Super-commander moves %s -> %s", current, destination)

        if destination == state.ship.quadrant and state.quadrant is not None:
            if spawn_hostile(state, HostileKind.SUPER_COMMANDER) is not None:
                state.channel.warning("*** THE SUPER-COMMANDER HAS ENTERED THE QUADRANT! ***")
                state.update_condition()
                state.sort_hostiles_by_distance()

        if destination in galaxy.starbase_locations:
            state.schedule(
                FutureEventType.SUPER_COMMANDER_DESTROYS_BASE,
                state.stardate + SUPER_COMMANDER_ATTACK_MIN_DELAY + state.rng.random(),
            )

    def _super_commander_destroys_base(self, state: GameState) -> None:
        location = state.galaxy.super_commander_location
        state.unschedule(FutureEventType.SUPER_COMMANDER_DESTROYS_BASE)

        if not location.is_valid or location not in state.galaxy.starbase_locations:
            return
        if state.ship.quadrant == location:
            return

        if state.can_receive_radio():
            state.channel.error(
                f"*** SUPER-COMMANDER DESTROYS STARBASE IN {quadrant_name(location)}! ***"
            )
        self._lose_base(state, location)

    @staticmethod
    def _lose_base(state: GameState, base: QuadrantCoordinate) -> None:
        state.galaxy.remove_starbase(base)
        state.remaining_bases = max(0, state.remaining_bases - 1)
        state.bases_destroyed += 1

    # -------------------------------------------------------------------------
    # Probe
    # -------------------------------------------------------------------------

    def launch_probe(self, state: GameState, direction: float, armed: bool) -> ActionResult:
        """
        Send a deep-space probe along a course.

        The probe covers one quadrant per move, PROBE_MAX_MOVES moves at most.
        """
        ship = state.ship
        if not is_valid_course(direction):
            return ActionResult.fail("Course must be between 1 and 12.")
        if state.probe.in_flight:
            return ActionResult.fail("A probe is already in flight.")
        if ship.probes <= 0:
            return ActionResult.fail("No probes remaining.")
        if not ship.is_device_operational(DeviceType.DEEP_SPACE_PROBE):
            return ActionResult.fail("Probe launcher is damaged.")

        ship.probes -= 1
        dx, dy = course_vector(direction)
        probe = state.probe
        # Continuous galactic position: quadrant plus the sector as a fraction
        start = ship.position
        probe.x = start.quadrant.x + (start.sector.x - 0.5) / 10.0
        probe.y = start.quadrant.y + (start.sector.y - 0.5) / 10.0
        probe.dx = dx
        probe.dy = dy
        probe.moves_remaining = PROBE_MAX_MOVES
        probe.is_armed = armed

        state.channel.info(f"Probe launched on course {direction:.1f}.")
        if armed:
            state.channel.warning("Probe is ARMED.")

        logger.debug("Probe launched from %s", start)
        state.schedule(FutureEventType.PROBE_MOVE, state.stardate + PROBE_MOVE_INTERVAL)
        return ActionResult.ok(action_taken=True)

    def _probe_move(self, state: GameState) -> None:
        probe = state.probe
        if not probe.in_flight:
            state.unschedule(FutureEventType.PROBE_MOVE)
            return

        probe.x += probe.dx
        probe.y += probe.dy
        probe.moves_remaining -= 1

        quad = probe.quadrant
        if not quad.is_valid:
            state.channel.info("Probe has left the galaxy.")
            probe.moves_remaining = 0
            state.unschedule(FutureEventType.PROBE_MOVE)
            return

        galaxy = state.galaxy
        if state.can_receive_radio():
            hostiles, bases, stars = galaxy.decode(quad)
            state.channel.info(f"Probe reports from {quadrant_name(quad)}:")
            state.channel.info(f"  Klingons: {hostiles}, Bases: {bases}, Stars: {stars}")
            galaxy.update_chart(quad)

        if probe.is_armed and galaxy.hostile_count(quad) > 0:
            state.channel.warning(f"*** PROBE DETONATES IN {quadrant_name(quad)}! ***")
            probe.moves_remaining = 0
            state.unschedule(FutureEventType.PROBE_MOVE)
            self.destroy_quadrant(state, quad)
            return

        if probe.in_flight:
            state.schedule(FutureEventType.PROBE_MOVE, state.stardate + PROBE_MOVE_INTERVAL)
        else:
            state.channel.info("Probe has exhausted its fuel.")
            state.unschedule(FutureEventType.PROBE_MOVE)
