"""
Final score computation.

The score is a weighted sum of kills minus losses, plus a time bonus on
victory, multiplied by the skill level and floored at zero.
"""

from __future__ import annotations

from dataclasses import dataclass

from .state import GameState


# =============================================================================
# WEIGHTS
# =============================================================================

KLINGON_POINTS = 10
COMMANDER_POINTS = 50
SUPER_COMMANDER_POINTS = 200
ROMULAN_POINTS = 20

CASUALTY_PENALTY = 5
HELP_CALL_PENALTY = 50
STAR_PENALTY = 5
PLANET_PENALTY = 10
BASE_PENALTY = 100

TIME_BONUS_PER_STARDATE = 10


@dataclass
class ScoreBreakdown:
    """
    Itemized score.

    Attributes:
        kills: Points for destroyed enemies.
        penalties: Points lost (a positive number).
        time_bonus: Bonus for winning early; zero unless won.
        skill_multiplier: Integer skill level applied to the subtotal.
        total: Final score, never negative.
    """
    kills: int = 0
    penalties: int = 0
    time_bonus: int = 0
    skill_multiplier: int = 1
    total: int = 0

    @property
    def subtotal(self) -> int:
        return self.kills - self.penalties + self.time_bonus

    def lines(self) -> list[str]:
        """Human-readable score sheet."""
        return [
            f"Kills:            {self.kills:6d}",
            f"Penalties:        {-self.penalties:6d}",
            f"Time bonus:       {self.time_bonus:6d}",
            f"Skill multiplier:     x{self.skill_multiplier}",
            f"TOTAL SCORE:      {self.total:6d}",
        ]


def score_breakdown(state: GameState) -> ScoreBreakdown:
    """Itemize the score of a game in any state."""
    kills = (
        state.klingons_killed * KLINGON_POINTS
        + state.commanders_killed * COMMANDER_POINTS
        + state.super_commanders_killed * SUPER_COMMANDER_POINTS
        + state.romulans_killed * ROMULAN_POINTS
    )
    penalties = (
        state.ship.casualties * CASUALTY_PENALTY
        + state.help_calls * HELP_CALL_PENALTY
        + state.stars_destroyed * STAR_PENALTY
        + state.planets_destroyed * PLANET_PENALTY
        + state.bases_destroyed * BASE_PENALTY
    )

    time_bonus = 0
    if state.is_victory:
        taken = state.stardate - state.initial_stardate
        if taken < state.initial_time:
            time_bonus = int((state.initial_time - taken) * TIME_BONUS_PER_STARDATE)

    breakdown = ScoreBreakdown(
        kills=kills,
        penalties=penalties,
        time_bonus=time_bonus,
        skill_multiplier=int(state.skill),
    )
    breakdown.total = max(0, breakdown.subtotal * breakdown.skill_multiplier)
    return breakdown


def calculate_score(state: GameState) -> int:
    return score_breakdown(state).total
