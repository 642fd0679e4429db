"""
Game configuration.

Defaults can be overridden from the environment or a .env file:

    SUPERTREK_SKILL   novice | fair | good | expert | emeritus (or 1-5)
    SUPERTREK_LENGTH  short | medium | long (or 1, 2, 4)
    SUPERTREK_SEED    integer seed for a reproducible game
"""

import os
from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from dotenv import load_dotenv

from .state import GameLength, SkillLevel


SKILL_ENV_VAR = "SUPERTREK_SKILL"
LENGTH_ENV_VAR = "SUPERTREK_LENGTH"
SEED_ENV_VAR = "SUPERTREK_SEED"

E = TypeVar("E", SkillLevel, GameLength)


def _parse_level(enum_type: Type[E], raw: str) -> E:
    """Accept an enum member name (any case) or its integer value."""
    text = raw.strip()
    if text.lstrip("-").isdigit():
        try:
            return enum_type(int(text))
        except ValueError:
            pass
    else:
        member = enum_type.__members__.get(text.upper())
        if member is not None:
            return member
    choices = ", ".join(m.name.lower() for m in enum_type)
    raise ValueError(f"Invalid {enum_type.__name__} '{raw}'. Expected one of: {choices}")


@dataclass
class GameConfig:
    """
    Parameters for starting a game.

    Attributes:
        skill: Difficulty.
        length: Game length.
        seed: Random seed; None for a non-reproducible game.
    """
    skill: SkillLevel = SkillLevel.GOOD
    length: GameLength = GameLength.MEDIUM
    seed: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.skill, SkillLevel):
            self.skill = _parse_level(SkillLevel, str(self.skill))
        if not isinstance(self.length, GameLength):
            self.length = _parse_level(GameLength, str(self.length))
        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError(f"Seed must be an integer, got {self.seed!r}")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "GameConfig":
        """
        Build a config from environment variables.

        Args:
            env_file: Optional .env file to load first. Variables already set
                in the environment take precedence.

        Raises:
            ValueError: If a variable holds an unrecognized value.
        """
        load_dotenv(env_file)

        config = cls()
        skill = os.getenv(SKILL_ENV_VAR)
        if skill:
            config.skill = _parse_level(SkillLevel, skill)
        length = os.getenv(LENGTH_ENV_VAR)
        if length:
            config.length = _parse_level(GameLength, length)
        seed = os.getenv(SEED_ENV_VAR)
        if seed:
            try:
                config.seed = int(seed)
            except ValueError:
                raise ValueError(f"{SEED_ENV_VAR} must be an integer, got '{seed}'") from None
        return config
