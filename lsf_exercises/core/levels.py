"""
CECRL levels and difficulty bands.

Every exercise type maps a continuous difficulty in [0, 1] onto the same
six CECRL levels, and the open-answer types additionally bucket it into
five named bands.
"""

from __future__ import annotations

from enum import Enum

from .errors import ExerciseValidationError


class CECRLLevel(str, Enum):
    """Common European Framework levels, easiest first."""
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def rank(self) -> int:
        return LEVEL_ORDER.index(self)


LEVEL_ORDER: tuple[CECRLLevel, ...] = tuple(CECRLLevel)

# Upper bound (inclusive) of each level; anything above the last bound is C2
CECRL_THRESHOLDS: tuple[tuple[float, CECRLLevel], ...] = (
    (0.16, CECRLLevel.A1),
    (0.33, CECRLLevel.A2),
    (0.50, CECRLLevel.B1),
    (0.66, CECRLLevel.B2),
    (0.83, CECRLLevel.C1),
)


class DifficultyBand(str, Enum):
    """Coarse difficulty buckets used by text-entry and video-response."""
    BEGINNER = "beginner"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


BAND_THRESHOLDS: tuple[tuple[float, DifficultyBand], ...] = (
    (0.2, DifficultyBand.BEGINNER),
    (0.4, DifficultyBand.EASY),
    (0.6, DifficultyBand.MEDIUM),
    (0.8, DifficultyBand.HARD),
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def map_difficulty_to_cecrl(difficulty: float) -> CECRLLevel:
    """Map a difficulty in [0, 1] onto a CECRL level."""
    for bound, level in CECRL_THRESHOLDS:
        if difficulty <= bound:
            return level
    return CECRLLevel.C2


def map_difficulty_to_band(difficulty: float) -> DifficultyBand:
    """Map a difficulty in [0, 1] onto a named band."""
    for bound, band in BAND_THRESHOLDS:
        if difficulty <= bound:
            return band
    return DifficultyBand.EXPERT


def parse_level(value: str | CECRLLevel) -> CECRLLevel:
    """
    Parse a CECRL level from user input.

    Raises:
        ExerciseValidationError: If value is not one of A1..C2.
    """
    if isinstance(value, CECRLLevel):
        return value
    if isinstance(value, str):
        try:
            return CECRLLevel(value.strip().upper())
        except ValueError:
            pass
    raise ExerciseValidationError(
        f"Invalid CECRL level: {value!r}",
        errors=[f"level must be one of {', '.join(lvl.value for lvl in CECRLLevel)}"],
    )
