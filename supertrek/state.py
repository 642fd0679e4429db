"""
Aggregate game state.

GameState owns everything a single game mutates: the galaxy, the ship, the
materialized quadrant, the clock, kill and loss counters, the future-event
table, the probe, the single seeded random source and the terminal outcome.

It is not thread-safe. One GameState belongs to one game; anything hosting
several games must keep them apart and serialize calls per game.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional

from .coordinates import QuadrantCoordinate, SectorCoordinate
from .galaxy import Galaxy, SupernovaReport
from .notifications import NotificationChannel
from .quadrant import Quadrant
from .ship import LOW_ENERGY_THRESHOLD, Condition, DeviceType, Ship


logger = logging.getLogger("supertrek.state")


# =============================================================================
# CONSTANTS
# =============================================================================

TIME_WARNING_THRESHOLD = 2.0


# =============================================================================
# ENUMS
# =============================================================================

class SkillLevel(IntEnum):
    """Player skill; the integer value scales difficulty and score."""
    NOVICE = 1
    FAIR = 2
    GOOD = 3
    EXPERT = 4
    EMERITUS = 5


SKILL_DAMAGE_FACTORS: dict[SkillLevel, float] = {
    SkillLevel.NOVICE: 0.5,
    SkillLevel.FAIR: 0.7,
    SkillLevel.GOOD: 1.0,
    SkillLevel.EXPERT: 1.3,
    SkillLevel.EMERITUS: 1.5,
}


class GameLength(IntEnum):
    """Game length; the integer value scales enemy count and time allowed."""
    SHORT = 1
    MEDIUM = 2
    LONG = 4


class GameOutcome(Enum):
    """How the game ended. Anything but IN_PROGRESS is permanent."""
    IN_PROGRESS = "in_progress"
    WON = "won"
    LIFE_SUPPORT_FAILED = "life_support_failed"
    KILLED_IN_BATTLE = "killed_in_battle"
    SUPERNOVA = "supernova"
    SUPERNOVAED_WHILE_ESCAPING = "supernovaed_while_escaping"
    STAR_COLLISION = "star_collision"
    BLACK_HOLE = "black_hole"
    DEATH_RAY_BACKFIRE = "death_ray_backfire"
    TIME_EXPIRED = "time_expired"

    @property
    def is_victory(self) -> bool:
        return self is GameOutcome.WON

    @property
    def is_defeat(self) -> bool:
        return self not in (GameOutcome.IN_PROGRESS, GameOutcome.WON)


class FutureEventType(IntEnum):
    """
    Scheduled event kinds.

    Declaration order is processing order.
    """
    SUPERNOVA = 1
    TRACTOR_BEAM = 2
    SNAPSHOT = 3
    BASE_ATTACK = 4
    COMMANDER_DESTROYS_BASE = 5
    SUPER_COMMANDER_MOVES = 6
    SUPER_COMMANDER_DESTROYS_BASE = 7
    PROBE_MOVE = 8


# =============================================================================
# SUPPORTING RECORDS
# =============================================================================

@dataclass
class ProbeState:
    """
    A deep-space probe in flight.

    Position is continuous, in quadrant units.
    """
    x: float = 0.0
    y: float = 0.0
    dx: float = 0.0
    dy: float = 0.0
    moves_remaining: int = 0
    is_armed: bool = False

    @property
    def in_flight(self) -> bool:
        return self.moves_remaining > 0

    @property
    def quadrant(self) -> QuadrantCoordinate:
        return QuadrantCoordinate(int(self.x), int(self.y))


@dataclass
class GameStateSnapshot:
    """Periodic record of progress taken by the snapshot event."""
    stardate: float
    remaining_klingons: int
    remaining_commanders: int
    remaining_bases: int


# =============================================================================
# GAME STATE
# =============================================================================

@dataclass
class GameState:
    """
    Aggregate root of one game.

    Attributes:
        skill: Difficulty.
        length: Game length.
        rng: The single random source of this game.
        channel: Where notifications go.
        seed: Seed the random source was built from (None if unseeded).
    """
    skill: SkillLevel = SkillLevel.GOOD
    length: GameLength = GameLength.MEDIUM
    rng: random.Random = field(default_factory=random.Random)
    channel: NotificationChannel = field(default_factory=NotificationChannel)
    seed: Optional[int] = None

    galaxy: Galaxy = field(default_factory=Galaxy)
    ship: Ship = field(default_factory=Ship)
    quadrant: Optional[Quadrant] = None

    # Time
    stardate: float = 0.0
    initial_stardate: float = 0.0
    initial_time: float = 0.0
    time_remaining: float = 0.0

    # Kills and losses
    klingons_killed: int = 0
    commanders_killed: int = 0
    super_commanders_killed: int = 0
    romulans_killed: int = 0
    stars_destroyed: int = 0
    planets_destroyed: int = 0
    bases_destroyed: int = 0
    help_calls: int = 0

    # Initial counts
    initial_klingons: int = 0
    initial_commanders: int = 0
    initial_bases: int = 0
    initial_stars: int = 0
    initial_planets: int = 0

    # Remaining counts
    remaining_klingons: int = 0
    remaining_commanders: int = 0
    remaining_super_commanders: int = 0
    remaining_bases: int = 0

    self_destruct_password: str = ""

    future_events: dict[FutureEventType, float] = field(
        default_factory=lambda: {kind: 0.0 for kind in FutureEventType}
    )
    probe: ProbeState = field(default_factory=ProbeState)
    base_under_attack: QuadrantCoordinate = QuadrantCoordinate.INVALID
    snapshot: Optional[GameStateSnapshot] = None

    outcome: GameOutcome = GameOutcome.IN_PROGRESS

    # -------------------------------------------------------------------------
    # Outcome
    # -------------------------------------------------------------------------

    @property
    def is_game_over(self) -> bool:
        return self.outcome is not GameOutcome.IN_PROGRESS

    @property
    def is_victory(self) -> bool:
        return self.outcome is GameOutcome.WON

    def end_game(self, outcome: GameOutcome) -> None:
        """Set the terminal outcome. The first terminal outcome sticks."""
        if self.is_game_over:
            return
        self.outcome = outcome
        logger.debug("Game over at stardate %.2f: %s", self.stardate, outcome.name)

    def check_victory(self) -> bool:
        """End the game as won when no klingons, commanders or super-commanders remain."""
        if (
            self.remaining_klingons <= 0
            and self.remaining_commanders <= 0
            and self.remaining_super_commanders <= 0
        ):
            self.end_game(GameOutcome.WON)
        return self.is_victory

    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------

    def advance_time(self, time: float) -> None:
        """
        Move the clock forward.

        Drains life support while that device is damaged away from a base,
        warns when time is short and ends the game when it runs out.
        """
        if time <= 0:
            return

        self.stardate += time
        self.time_remaining -= time

        ship = self.ship
        if not ship.is_device_operational(DeviceType.LIFE_SUPPORT) and not ship.is_docked:
            ship.life_support -= time
            if ship.life_support < 0:
                self.channel.error("Life support reserves exhausted.")
                self.end_game(GameOutcome.LIFE_SUPPORT_FAILED)
                return
            self.channel.warning(f"Life support reserves: {ship.life_support:.2f} stardates.")

        if 0 < self.time_remaining <= TIME_WARNING_THRESHOLD and not self.is_game_over:
            self.channel.warning(f"Only {self.time_remaining:.2f} stardates remain!")

        if self.time_remaining <= 0:
            self.channel.error("Time has run out. The Federation has fallen.")
            self.end_game(GameOutcome.TIME_EXPIRED)

    def exp_rand(self, mean: float) -> float:
        """Exponentially distributed interval: -mean * ln(1 - U)."""
        return -mean * math.log(1.0 - self.rng.random())

    def schedule(self, kind: FutureEventType, stardate: float) -> None:
        self.future_events[kind] = stardate

    def unschedule(self, kind: FutureEventType) -> None:
        self.future_events[kind] = 0.0

    # -------------------------------------------------------------------------
    # Ship / quadrant helpers
    # -------------------------------------------------------------------------

    @property
    def damage_factor(self) -> float:
        return SKILL_DAMAGE_FACTORS[self.skill]

    def can_receive_radio(self) -> bool:
        """Docked ships always hear Starfleet; otherwise radio must work uncloaked."""
        ship = self.ship
        if ship.is_docked:
            return True
        return ship.is_device_operational(DeviceType.SUBSPACE_RADIO) and not ship.is_cloaked

    def set_ship_sector(self, sector: SectorCoordinate) -> None:
        """Move the ship within the current quadrant, keeping its sector reserved."""
        self.ship.sector = sector
        if self.quadrant is not None:
            self.quadrant.ship_sector = sector

    def update_condition(self) -> Condition:
        """
        Recompute the ship's condition.

        DOCKED beats RED (live hostiles present) beats YELLOW (energy below
        LOW_ENERGY_THRESHOLD) beats GREEN.
        """
        ship = self.ship
        if ship.is_docked:
            condition = Condition.DOCKED
        elif self.quadrant is not None and self.quadrant.hostile_count > 0:
            condition = Condition.RED
        elif ship.energy < LOW_ENERGY_THRESHOLD:
            condition = Condition.YELLOW
        else:
            condition = Condition.GREEN
        ship.condition = condition
        return condition

    def sort_hostiles_by_distance(self) -> None:
        """Refresh each hostile's distance and running average, nearest first."""
        if self.quadrant is None:
            return
        for hostile in self.quadrant.hostiles:
            hostile.distance = self.ship.sector.distance_to(hostile.position)
            hostile.average_distance = (hostile.distance + hostile.average_distance) / 2.0
        self.quadrant.hostiles.sort(key=lambda h: h.distance)

    def apply_supernova_losses(self, report: SupernovaReport) -> None:
        """Subtract what a supernova destroyed from the remaining counts."""
        self.remaining_commanders = max(0, self.remaining_commanders - report.commanders)
        if report.super_commander:
            self.remaining_super_commanders = max(0, self.remaining_super_commanders - 1)
            self.unschedule(FutureEventType.SUPER_COMMANDER_MOVES)
            self.unschedule(FutureEventType.SUPER_COMMANDER_DESTROYS_BASE)
        standard = report.hostiles - report.commanders - (1 if report.super_commander else 0)
        self.remaining_klingons = max(0, self.remaining_klingons - max(0, standard))
        self.remaining_bases = max(0, self.remaining_bases - report.bases)
        if report.commanders and self.remaining_commanders == 0:
            self.unschedule(FutureEventType.TRACTOR_BEAM)
            self.unschedule(FutureEventType.BASE_ATTACK)
