"""
Result values returned by every public simulation operation.

Expected failures (damaged devices, low energy, bad arguments, blocked
courses) are reported through ActionResult rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .coordinates import SectorCoordinate


@dataclass
class Obstacle:
    """
    An object found on a projected course.

    Attributes:
        kind: "Star", "BlackHole", "Enemy", "Starbase" or "Object".
        sector: Where it sits.
        distance: Distance along the course in quadrants.
    """
    kind: str
    sector: SectorCoordinate
    distance: float

    def __str__(self) -> str:
        return f"{self.kind} at {self.sector} (distance {self.distance:.1f})"


@dataclass
class ActionResult:
    """
    Outcome of one operation.

    Attributes:
        success: Whether the operation was carried out.
        message: Reason for failure, or a short summary.
        action_taken: True when the operation used a turn, giving hostiles
            a chance to return fire.
        obstacles: Objects that aborted a move (navigation only).
    """
    success: bool
    message: Optional[str] = None
    action_taken: bool = False
    obstacles: list[Obstacle] = field(default_factory=list)

    @classmethod
    def ok(cls, message: Optional[str] = None, action_taken: bool = False) -> ActionResult:
        return cls(success=True, message=message, action_taken=action_taken)

    @classmethod
    def fail(cls, message: str, obstacles: Optional[list[Obstacle]] = None) -> ActionResult:
        return cls(success=False, message=message, obstacles=obstacles or [])

    def __bool__(self) -> bool:
        return self.success
