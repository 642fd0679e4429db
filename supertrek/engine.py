"""
Game engine: the public facade of the simulation.

GameEngine creates games, owns the current GameState and routes every
operation to the resolver that implements it:

    engine = GameEngine()
    engine.new_game(SkillLevel.GOOD, GameLength.SHORT, seed=42)
    result = engine.warp(direction=3.0, distance=1.0)
    if result.action_taken:
        engine.enemies_attack()
    engine.process_events()

Operations return ActionResult values. Once the game has ended every
mutating operation fails with "The game is over."; read-only views and the
score keep working.
"""

from __future__ import annotations

import logging
import random
import string
from typing import Optional

from .combat import CombatResolver
from .config import GameConfig
from .coordinates import GALAXY_SIZE, QUADRANT_SIZE, QuadrantCoordinate, SectorCoordinate
from .entities import EMPTY_SYMBOL, Planet, PlanetClass
from .galaxy import CHARTED_OFFSET, MAX_PLANETS, SUPERNOVA_MARKER, Galaxy
from .navigation import NavigationResolver
from .notifications import NotificationChannel
from .population import enter_quadrant, quadrant_name
from .results import ActionResult
from .scheduler import EventScheduler
from .scoring import ScoreBreakdown, score_breakdown
from .ship import Condition, DeviceType, DEFAULT_WARP_FACTOR
from .state import FutureEventType, GameLength, GameOutcome, GameState, SkillLevel


logger = logging.getLogger("supertrek.engine")


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_BASES = 2
BASE_RANGE = (3, 5)
STAR_RANGE = (200, 399)
MIN_PLANETS = 4
CRYSTAL_PROBABILITY = 0.25
PASSWORD_LENGTH = 6
TIME_PER_LENGTH_UNIT = 7.0

GAME_OVER_MESSAGE = "The game is over."
NO_GAME_MESSAGE = "No game in progress."


class GameEngine:
    """
    Orchestrates one game at a time.

    The notification channel outlives individual games, so callbacks
    registered once keep receiving messages after new_game().

    Attributes:
        channel: Outbound notifications.
        state: The current game, or None before new_game().
    """

    def __init__(self, channel: Optional[NotificationChannel] = None):
        self.channel = channel or NotificationChannel()
        self.state: Optional[GameState] = None

        self.combat = CombatResolver()
        self.navigation = NavigationResolver(self.combat)
        self.scheduler = EventScheduler()

        self.channel.set_clock(lambda: self.state.stardate if self.state else 0.0)

    @classmethod
    def from_config(
        cls,
        config: GameConfig,
        channel: Optional[NotificationChannel] = None
    ) -> GameEngine:
        """Create an engine and start a game from a GameConfig."""
        engine = cls(channel)
        engine.new_game(config.skill, config.length, config.seed)
        return engine

    # =========================================================================
    # NEW GAME
    # =========================================================================

    def new_game(
        self,
        skill: SkillLevel = SkillLevel.GOOD,
        length: GameLength = GameLength.MEDIUM,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None
    ) -> GameState:
        """
        Start a new game.

        Args:
            skill: Difficulty.
            length: Game length.
            seed: Seed for a reproducible game; None for a fresh random one.
            rng: Random source to use instead of one built from seed.

        Returns:
            The new game state (also kept as self.state).
        """
        skill = SkillLevel(skill)
        length = GameLength(length)
        state = GameState(
            skill=skill,
            length=length,
            rng=rng if rng is not None else random.Random(seed),
            channel=self.channel,
            seed=seed,
        )
        self.state = state

        self._initialize_galaxy(state)
        self._initialize_ship(state)
        self._initialize_time(state)
        enter_quadrant(state, state.ship.quadrant, state.ship.sector, announce=False)

        logger.debug(
            "New game: skill=%s length=%s seed=%s klingons=%d commanders=%d bases=%d",
            skill.name, length.name, seed,
            state.initial_klingons, state.initial_commanders, state.initial_bases,
        )
        self._brief(state)
        return state

    def _initialize_galaxy(self, state: GameState) -> None:
        rng = state.rng
        galaxy = state.galaxy
        s = int(state.skill)
        l = int(state.length)

        state.initial_klingons = 2 * s * l + int(rng.random() * (s + 1) * l) + 1
        state.initial_commanders = min(s + 1, state.initial_klingons // 4 + 1)
        state.remaining_super_commanders = 1 if state.skill >= SkillLevel.GOOD else 0

        state.initial_bases = max(MIN_BASES, rng.randint(*BASE_RANGE))
        star_target = rng.randint(*STAR_RANGE)
        state.initial_planets = rng.randint(MIN_PLANETS, MAX_PLANETS)

        state.remaining_klingons = state.initial_klingons - state.initial_commanders
        state.remaining_commanders = state.initial_commanders
        state.remaining_bases = state.initial_bases

        for _ in range(state.initial_bases):
            quad = galaxy.random_quadrant(rng)
            while quad in galaxy.starbase_locations:
                quad = galaxy.random_quadrant(rng)
            galaxy.starbase_locations.append(quad)
            galaxy.add_starbase(quad)

        for _ in range(star_target):
            while not galaxy.add_star(galaxy.random_quadrant(rng)):
                pass
        state.initial_stars = galaxy.total_stars

        for _ in range(state.remaining_klingons):
            while not galaxy.add_hostile(galaxy.random_quadrant(rng)):
                pass

        for _ in range(state.initial_commanders):
            quad = galaxy.random_quadrant(rng)
            while quad in galaxy.commander_locations or not galaxy.add_hostile(quad):
                quad = galaxy.random_quadrant(rng)
            galaxy.commander_locations.append(quad)

        if state.remaining_super_commanders > 0:
            quad = galaxy.random_quadrant(rng)
            while quad in galaxy.starbase_locations or not galaxy.add_hostile(quad):
                quad = galaxy.random_quadrant(rng)
            galaxy.super_commander_location = quad

        classes = list(PlanetClass)
        for _ in range(state.initial_planets):
            quad = galaxy.random_quadrant(rng)
            while galaxy.planet_at(quad) is not None:
                quad = galaxy.random_quadrant(rng)
            planet = Planet(
                SectorCoordinate.INVALID,
                classes[rng.randrange(len(classes))],
                has_crystals=rng.random() < CRYSTAL_PROBABILITY,
                quadrant=quad,
            )
            galaxy.planets.append(planet)


    def _initialize_ship(self, state: GameState) -> None:
        rng = state.rng
        ship = state.ship

        ship.quadrant = Galaxy.random_quadrant(rng)
        ship.sector = SectorCoordinate(rng.randint(1, QUADRANT_SIZE), rng.randint(1, QUADRANT_SIZE))
        ship.energy = ship.max_energy
        ship.shield = 0.0
        ship.shields_up = False
        ship.torpedoes = ship.max_torpedoes
        ship.life_support = ship.max_life_support
        ship.probes = ship.max_probes
        ship.warp_factor = DEFAULT_WARP_FACTOR
        ship.condition = Condition.GREEN

        letters = string.ascii_uppercase
        state.self_destruct_password = "".join(
            letters[rng.randrange(len(letters))] for _ in range(PASSWORD_LENGTH)
        )

    def _initialize_time(self, state: GameState) -> None:
        state.initial_stardate = 100.0 * (31.0 * state.rng.random() + 20.0)
        state.stardate = state.initial_stardate
        state.initial_time = TIME_PER_LENGTH_UNIT * int(state.length)
        state.time_remaining = state.initial_time
        self.scheduler.schedule_initial_events(state)

    def _brief(self, state: GameState) -> None:
        total = state.initial_klingons + state.remaining_super_commanders
        deadline = state.initial_stardate + state.initial_time
        bases = state.initial_bases
        self.channel.info(f"Your mission: destroy the {total} Klingon ships that have invaded")
        self.channel.info(f"  the galaxy before they can attack Federation Headquarters")
        self.channel.info(f"  on stardate {deadline:.1f}. This gives you {state.initial_time:.1f} days.")
        self.channel.info(
            f"  There {'is' if bases == 1 else 'are'} {bases} starbase{'' if bases == 1 else 's'}"
            f" in the galaxy for resupply of your ship."
        )
        self.channel.info(f"You are in {quadrant_name(state.ship.quadrant)} Quadrant.")

    # =========================================================================
    # GUARDS
    # =========================================================================

    def _blocked(self) -> Optional[ActionResult]:
        """Failure result when no mutating operation may run, else None."""
        if self.state is None:
            return ActionResult.fail(NO_GAME_MESSAGE)
        if self.state.is_game_over:
            return ActionResult.fail(GAME_OVER_MESSAGE)
        return None

    def _dispatch(self, operation, *args) -> ActionResult:
        blocked = self._blocked()
        if blocked is not None:
            return blocked
        return operation(self.state, *args)

    @property
    def is_game_over(self) -> bool:
        return self.state is not None and self.state.is_game_over

    @property
    def outcome(self) -> Optional[GameOutcome]:
        return self.state.outcome if self.state else None

    # =========================================================================
    # QUADRANT
    # =========================================================================

    def enter_quadrant(
        self,
        coord: QuadrantCoordinate,
        sector: Optional[SectorCoordinate] = None
    ) -> ActionResult:
        """Move the ship straight into a quadrant and populate it."""
        blocked = self._blocked()
        if blocked is not None:
            return blocked
        if not coord.is_valid:
            return ActionResult.fail(f"Invalid quadrant {coord}.")
        if self.state.galaxy.is_supernova(coord):
            return ActionResult.fail(f"{quadrant_name(coord)} has gone supernova.")

        enter_quadrant(self.state, coord, sector)
        return ActionResult.ok()

    def update_condition(self) -> Optional[Condition]:
        return self.state.update_condition() if self.state else None

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def warp(self, direction: float, distance: float) -> ActionResult:
        return self._dispatch(self.navigation.warp, direction, distance)

    def impulse(self, direction: float, distance: float) -> ActionResult:
        return self._dispatch(self.navigation.impulse, direction, distance)

    def dock(self) -> ActionResult:
        return self._dispatch(self.navigation.dock)

    def set_warp_factor(self, warp_factor: float) -> ActionResult:
        return self._dispatch(self.navigation.set_warp_factor, warp_factor)

    def rest(self, time: float) -> ActionResult:
        return self._dispatch(self.navigation.rest, time)

    # =========================================================================
    # COMBAT
    # =========================================================================

    def fire_phasers(self, energy: float) -> ActionResult:
        return self._dispatch(self.combat.fire_phasers, energy)

    def fire_torpedo(self, direction: float) -> ActionResult:
        return self._dispatch(self.combat.fire_torpedo, direction)

    def fire_death_ray(self) -> ActionResult:
        return self._dispatch(self.combat.fire_death_ray)

    def enemies_attack(self) -> ActionResult:
        return self._dispatch(self.combat.enemies_attack)

    def shields(self, up: bool) -> ActionResult:
        return self._dispatch(self.combat.shields, up)

    def transfer_shield_energy(self, amount: float) -> ActionResult:
        return self._dispatch(self.combat.transfer_shield_energy, amount)

    def set_cloak(self, engaged: bool) -> ActionResult:
        return self._dispatch(self.combat.set_cloak, engaged)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def launch_probe(self, direction: float, armed: bool = False) -> ActionResult:
        return self._dispatch(self.scheduler.launch_probe, direction, armed)

    def process_events(self) -> list[FutureEventType]:
        """Fire due scheduled events. Nothing fires once the game is over."""
        if self._blocked() is not None:
            return []
        return self.scheduler.process_events(self.state)

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    def sector_grid(self) -> list[list[str]]:
        """
        Character map of the current quadrant.

        Returns:
            Ten rows of ten symbols; grid[x-1][y-1] is sector (x, y). The
            ship is "E" and Tholian web cells are "#".
        """
        if self.state is None or self.state.quadrant is None:
            return [[EMPTY_SYMBOL] * QUADRANT_SIZE for _ in range(QUADRANT_SIZE)]
        return self.state.quadrant.grid()

    def long_range_scan(self) -> Optional[list[list[Optional[int]]]]:
        """
        Scan the 3x3 block of quadrants around the ship and chart it.

        Returns:
            Encoded quadrant values (SUPERNOVA_MARKER for destroyed ones,
            None outside the galaxy), or None if the sensors are damaged.
        """
        state = self.state
        if state is None:
            return None
        if not state.ship.is_device_operational(DeviceType.LONG_RANGE_SENSORS):
            self.channel.error("Long-range sensors are damaged.")
            return None

        center = state.ship.quadrant
        rows: list[list[Optional[int]]] = []
        for x in range(center.x - 1, center.x + 2):
            row: list[Optional[int]] = []
            for y in range(center.y - 1, center.y + 2):
                coord = QuadrantCoordinate(x, y)
                if coord.is_valid:
                    state.galaxy.update_chart(coord)
                    row.append(state.galaxy.get_quadrant_data(coord))
                else:
                    row.append(None)
            rows.append(row)
        return rows

    def star_chart(self) -> list[list[Optional[int]]]:
        """
        The player's chart of the galaxy.

        Returns:
            Eight rows of eight entries: the encoded value as last charted,
            -1 for a charted supernova, None where never charted.
        """
        chart: list[list[Optional[int]]] = []
        for x in range(1, GALAXY_SIZE + 1):
            row: list[Optional[int]] = []
            for y in range(1, GALAXY_SIZE + 1):
                value = self.state.galaxy.get_chart_data(QuadrantCoordinate(x, y)) if self.state else 0
                if value <= 0:
                    row.append(None)
                elif value - CHARTED_OFFSET >= SUPERNOVA_MARKER:
                    row.append(-1)
                else:
                    row.append(value - CHARTED_OFFSET)
            chart.append(row)
        return chart

    def damage_report(self) -> list[tuple[DeviceType, float]]:
        """Damaged devices with their repair times, worst first."""
        if self.state is None:
            return []
        return self.state.ship.devices.damaged_devices()

    def score_breakdown(self) -> ScoreBreakdown:
        if self.state is None:
            return ScoreBreakdown()
        return score_breakdown(self.state)

    def calculate_score(self) -> int:
        return self.score_breakdown().total
