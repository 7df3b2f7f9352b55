"""
Generation pipeline: generators, factory and public service.
"""

from .factory import (
    DEFAULT_PRIORITIES,
    GeneratorConfig,
    GeneratorFactory,
    GeneratorStats,
    SelectionContext,
    SelectionStrategy,
    TimeConstraints,
)
from .generators import StrategyGenerator, new_exercise_id
from .service import ExerciseGeneratorService

__all__ = [
    "DEFAULT_PRIORITIES",
    "GeneratorConfig",
    "GeneratorFactory",
    "GeneratorStats",
    "SelectionContext",
    "SelectionStrategy",
    "TimeConstraints",
    "StrategyGenerator",
    "new_exercise_id",
    "ExerciseGeneratorService",
]
