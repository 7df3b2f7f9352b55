"""
Core types shared by every component.
"""

from .errors import (
    ConceptDataError,
    ExerciseError,
    ExerciseGenerationError,
    ExerciseValidationError,
    GeneratorFactoryError,
)
from .levels import (
    CECRLLevel,
    DifficultyBand,
    clamp,
    map_difficulty_to_band,
    map_difficulty_to_cecrl,
    parse_level,
)
from .lifecycle import (
    ExerciseGenerator,
    GeneratorMetadata,
    Lifecycle,
    is_exercise_generator,
    supports_lifecycle,
)
from .models import (
    Concept,
    ConceptDetails,
    EvaluationResult,
    Exercise,
    ExerciseFeedback,
    ExerciseRequest,
    ExerciseType,
)
from .templating import PhraseTemplate, TemplateBank, make_text_more_complex, simplify_text

__all__ = [
    # Errors
    "ExerciseError",
    "ExerciseValidationError",
    "ExerciseGenerationError",
    "ConceptDataError",
    "GeneratorFactoryError",
    # Levels
    "CECRLLevel",
    "DifficultyBand",
    "clamp",
    "map_difficulty_to_band",
    "map_difficulty_to_cecrl",
    "parse_level",
    # Contracts
    "ExerciseGenerator",
    "GeneratorMetadata",
    "Lifecycle",
    "is_exercise_generator",
    "supports_lifecycle",
    # Models
    "Concept",
    "ConceptDetails",
    "EvaluationResult",
    "Exercise",
    "ExerciseFeedback",
    "ExerciseRequest",
    "ExerciseType",
    # Templating
    "PhraseTemplate",
    "TemplateBank",
    "make_text_more_complex",
    "simplify_text",
]
