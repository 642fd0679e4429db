"""Super Star Trek style space combat simulation package."""

from .coordinates import (
    GalacticPosition,
    QuadrantCoordinate,
    SectorCoordinate,
    course_vector,
)

from .entities import (
    # Kinds
    HostileKind,
    PlanetClass,
    # Entities
    BlackHole,
    Hostile,
    Planet,
    Star,
    Starbase,
)

from .galaxy import (
    Galaxy,
    SupernovaReport,
    decode_quadrant,
    encode_quadrant,
)

from .quadrant import Quadrant

from .ship import (
    Condition,
    DeviceType,
    Ship,
    ShipDevices,
)

from .state import (
    # Enums
    FutureEventType,
    GameLength,
    GameOutcome,
    SkillLevel,
    # Records
    GameState,
    GameStateSnapshot,
    ProbeState,
)

from .notifications import (
    Notification,
    NotificationChannel,
    NotificationLevel,
)

from .results import ActionResult, Obstacle

from .combat import CombatResolver
from .navigation import NavigationResolver
from .scheduler import EventScheduler
from .scoring import ScoreBreakdown, calculate_score, score_breakdown
from .config import GameConfig
from .engine import GameEngine

__all__ = [
    # Coordinates
    "GalacticPosition",
    "QuadrantCoordinate",
    "SectorCoordinate",
    "course_vector",
    # Entities
    "HostileKind",
    "PlanetClass",
    "BlackHole",
    "Hostile",
    "Planet",
    "Star",
    "Starbase",
    # Galaxy and quadrant
    "Galaxy",
    "SupernovaReport",
    "decode_quadrant",
    "encode_quadrant",
    "Quadrant",
    # Ship
    "Condition",
    "DeviceType",
    "Ship",
    "ShipDevices",
    # State
    "FutureEventType",
    "GameLength",
    "GameOutcome",
    "SkillLevel",
    "GameState",
    "GameStateSnapshot",
    "ProbeState",
    # Notifications and results
    "Notification",
    "NotificationChannel",
    "NotificationLevel",
    "ActionResult",
    "Obstacle",
    # Resolvers
    "CombatResolver",
    "NavigationResolver",
    "EventScheduler",
    # Scoring and configuration
    "ScoreBreakdown",
    "calculate_score",
    "score_breakdown",
    "GameConfig",
    # Engine
    "GameEngine",
]
