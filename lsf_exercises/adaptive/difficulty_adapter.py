"""
Difficulty Adapter.

Re-targets a generated exercise to a learner's skill estimate. The
exercise difficulty moves a fixed fraction of the way towards the skill;
weak learners get simplified content and more time, strong learners get
harder content and less time. Content edits are delegated to the
strategy of the exercise type, so each type decides what "easier" means.
"""

from __future__ import annotations

import copy
import math
import random
from typing import TYPE_CHECKING, Callable

from loguru import logger

from ..core.errors import ExerciseValidationError
from ..core.levels import clamp
from ..core.models import Exercise, ExerciseType
from ..exercises import GenerationStrategy, StrategyRegistry

if TYPE_CHECKING:
    from config import Settings

StrategyFactory = Callable[[ExerciseType], GenerationStrategy]


def calculate_adapted_difficulty(difficulty: float, skill: float, blend: float = 0.3) -> float:
    """Move ``difficulty`` a fraction ``blend`` of the way towards ``skill``."""
    return clamp(difficulty + blend * (skill - difficulty))


class DifficultyAdapter:
    """
    Adapt exercises to a skill estimate in [0, 1].

    Usage:
        adapter = DifficultyAdapter()
        easier = adapter.adapt(exercise, skill=0.2)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        strategy_factory: StrategyFactory | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.settings = settings
        self._strategy_factory = strategy_factory or self._default_factory
        self._strategies: dict[ExerciseType, GenerationStrategy] = {}

    def _default_factory(self, exercise_type: ExerciseType) -> GenerationStrategy:
        # simplify/complicate draw no random numbers
        return StrategyRegistry.create(exercise_type, rng=random.Random(0), settings=self.settings)

    def _strategy(self, exercise_type: ExerciseType) -> GenerationStrategy:
        if exercise_type not in self._strategies:
            self._strategies[exercise_type] = self._strategy_factory(exercise_type)
        return self._strategies[exercise_type]

    def adapted_difficulty(self, difficulty: float, skill: float) -> float:
        return calculate_adapted_difficulty(difficulty, skill, self.settings.adapt_blend_factor)

    def adapt(self, exercise: Exercise, skill: float) -> Exercise:
        """
        Return a new exercise adapted to ``skill``.

        Args:
            exercise: Exercise to adapt (never modified)
            skill: Learner skill estimate in [0, 1]

        Returns:
            The same exercise when ``skill`` equals its difficulty, else a copy

        Raises:
            ExerciseValidationError: If skill is outside [0, 1]
        """
        if not isinstance(skill, (int, float)) or isinstance(skill, bool) or not 0.0 <= skill <= 1.0:
            raise ExerciseValidationError(
                f"Skill estimate must be within [0, 1], got {skill!r}",
                errors=["skill_estimate: out of range"],
            )

        if math.isclose(skill, exercise.difficulty):
            return exercise

        strategy = self._strategy(exercise.type)
        content = exercise.content
        time_limit = exercise.time_limit

        if skill < self.settings.adapt_low_skill_threshold:
            content = strategy.simplify(content)
            time_limit = round(time_limit * self.settings.adapt_easy_time_factor)
            direction = "simplified"
        elif skill > self.settings.adapt_high_skill_threshold:
            content = strategy.complicate(content)
            time_limit = round(time_limit * self.settings.adapt_hard_time_factor)
            direction = "complicated"
        else:
            direction = "retargeted"

        difficulty = self.adapted_difficulty(exercise.difficulty, skill)
        logger.debug(
            f"Exercise {exercise.id} {direction}: difficulty {exercise.difficulty:.2f} -> {difficulty:.2f}"
        )
        return exercise.with_changes(
            content=copy.deepcopy(content) if content is exercise.content else content,
            difficulty=difficulty,
            time_limit=time_limit,
        )
