"""
Base Generation Strategy.

Provides the abstract base for all exercise strategies and a registry for
strategy discovery and instantiation. A strategy is a pure function of the
concepts it is handed plus the random source injected at construction.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from loguru import logger

from ..core.levels import CECRLLevel, clamp
from ..core.models import (
    Concept,
    ConceptDetails,
    EvaluationResult,
    Exercise,
    ExerciseFeedback,
    ExerciseType,
)

if TYPE_CHECKING:
    from config import Settings

# Feedback bands
STRENGTH_THRESHOLD = 0.8
IMPROVEMENT_THRESHOLD = 0.6

# Number of hints exposed by difficulty: (upper bound, count)
HINT_COUNTS: tuple[tuple[float, int], ...] = ((0.3, 4), (0.7, 2))
MIN_HINTS = 1


def hint_count_for(difficulty: float) -> int:
    """Easier exercises expose more hints."""
    for bound, count in HINT_COUNTS:
        if difficulty <= bound:
            return count
    return MIN_HINTS


# =============================================================================
# Inputs and outputs
# =============================================================================


@dataclass
class ConceptSet:
    """
    Concepts fetched for one generation request.

    ``targets`` are the concepts the exercise is about; ``related`` maps a
    target id to its related concepts; ``peers`` share the requested level;
    ``pool`` is the wider catalog used when peers run out.
    """

    targets: list[Concept]
    details: dict[str, ConceptDetails] = field(default_factory=dict)
    related: dict[str, list[Concept]] = field(default_factory=dict)
    peers: list[Concept] = field(default_factory=list)
    pool: list[Concept] = field(default_factory=list)

    @property
    def primary(self) -> Concept:
        return self.targets[0]

    def details_for(self, concept_id: str) -> ConceptDetails | None:
        return self.details.get(concept_id)

    def examples_for(self, concept_id: str) -> list[str]:
        details = self.details.get(concept_id)
        return list(details.examples) if details else []

    def explanation_for(self, concept: Concept) -> str:
        details = self.details.get(concept.id)
        return details.explanation if details and details.explanation else ""


@dataclass
class ExerciseDraft:
    """Strategy output, turned into an Exercise by the generator."""

    content: dict[str, Any]
    time_limit: int
    skills: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    explanation: str = ""
    concept_ids: list[str] = field(default_factory=list)


# =============================================================================
# Strategy Registry
# =============================================================================


class StrategyRegistry:
    """
    Registry for generation strategies.

    Example:
        @StrategyRegistry.register(ExerciseType.MULTIPLE_CHOICE)
        class MultipleChoiceStrategy(GenerationStrategy):
            ...

        strategy = StrategyRegistry.create(ExerciseType.MULTIPLE_CHOICE, rng=random.Random(7))
    """

    _strategies: ClassVar[dict[ExerciseType, type[GenerationStrategy]]] = {}

    @classmethod
    def register(cls, exercise_type: ExerciseType):
        """
        Decorator to register a generation strategy.

        Args:
            exercise_type: ExerciseType this strategy builds
        """

        def decorator(strategy_class: type[GenerationStrategy]):
            cls._strategies[exercise_type] = strategy_class
            strategy_class.exercise_type = exercise_type
            logger.debug(f"Registered strategy: {exercise_type.value} -> {strategy_class.__name__}")
            return strategy_class

        return decorator

    @classmethod
    def get(cls, exercise_type: ExerciseType | str) -> type[GenerationStrategy]:
        """Get strategy class by exercise type."""
        parsed = ExerciseType.parse(exercise_type)
        if parsed is None or parsed not in cls._strategies:
            raise KeyError(f"No strategy registered for exercise type: {exercise_type}")
        return cls._strategies[parsed]

    @classmethod
    def create(
        cls,
        exercise_type: ExerciseType | str,
        rng: random.Random | None = None,
        settings: Settings | None = None,
    ) -> GenerationStrategy:
        """Instantiate the strategy for a type with its dependencies."""
        return cls.get(exercise_type)(rng=rng, settings=settings)

    @classmethod
    def supported_types(cls) -> list[ExerciseType]:
        return [t for t in ExerciseType if t in cls._strategies]

    @classmethod
    def list_strategies(cls) -> dict[str, type[GenerationStrategy]]:
        """List all registered strategies."""
        return {t.value: cls._strategies[t] for t in cls._strategies}


# =============================================================================
# Base Strategy
# =============================================================================


class GenerationStrategy(ABC):
    """
    Abstract base for exercise strategies.

    Subclasses build content for one exercise type and score responses to
    it. ``evaluate`` is shared: it derives the expected answer from the
    content, scores, clamps and wraps the result.
    """

    exercise_type: ClassVar[ExerciseType]
    version: ClassVar[str] = "1.0.0"
    description: ClassVar[str] = ""

    def __init__(self, rng: random.Random | None = None, settings: Settings | None = None):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.rng = rng or random.Random()
        self.settings = settings

    # ----- contract -------------------------------------------------------

    @abstractmethod
    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        """Build exercise content from concepts."""
        ...

    @abstractmethod
    def expected_answer(self, content: dict[str, Any]) -> Any:
        """Derive the expected answer deterministically from content."""
        ...

    @abstractmethod
    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        """Score a submitted answer in [0, 1]."""
        ...

    @abstractmethod
    def validate(self, content: dict[str, Any]) -> bool:
        """Check that content is well formed for this type."""
        ...

    @abstractmethod
    def build_hints(self, content: dict[str, Any]) -> list[str]:
        """Full ordered hint list, most general first."""
        ...

    @abstractmethod
    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Return an easier copy of content."""
        ...

    @abstractmethod
    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        """Return a harder copy of content."""
        ...

    # ----- shared behaviour ------------------------------------------------

    @property
    def passing_score(self) -> float:
        return self.settings.exercise_passing_score

    def is_correct(self, content: dict[str, Any], score: float) -> bool:
        return score >= self.passing_score

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        """Type-specific extras attached to an evaluation."""
        return {}

    def hint(self, exercise: Exercise, attempt: int) -> str | None:
        """Hint for the given attempt (0-based); None once hints run out."""
        hints = list(exercise.hints) or self.build_hints(exercise.content)
        if 0 <= attempt < len(hints):
            return hints[attempt]
        return None

    def hints_for_difficulty(self, content: dict[str, Any], difficulty: float) -> list[str]:
        return self.build_hints(content)[: hint_count_for(difficulty)]

    def evaluate(self, exercise: Exercise, response: Any) -> EvaluationResult:
        """Score a response against an exercise."""
        content = exercise.content
        expected = self.expected_answer(content)
        score = clamp(float(self.score_response(content, expected, response)))
        correct = self.is_correct(content, score)

        return EvaluationResult(
            exercise_id=exercise.id,
            correct=correct,
            score=score,
            skill_scores={skill: score for skill in exercise.skills},
            explanation=self._explain(exercise, correct, score),
            feedback=build_feedback(score, list(exercise.skills)),
            details=self.evaluation_details(content, expected, response, score),
        )

    def _explain(self, exercise: Exercise, correct: bool, score: float) -> str:
        if correct:
            prefix = "Bonne réponse !"
        elif score > 0:
            prefix = f"Réponse partiellement correcte ({round(score * 100)} %)."
        else:
            prefix = "Réponse incorrecte."
        return f"{prefix} {exercise.explanation}".strip()


def build_feedback(score: float, skills: list[str]) -> ExerciseFeedback:
    """Strengths, improvement areas and next steps for a score."""
    feedback = ExerciseFeedback()
    focus = skills[:2]

    if score >= STRENGTH_THRESHOLD:
        feedback.strengths = [f"Bonne maîtrise : {s}" for s in focus] or ["Bonne compréhension du signe"]
        feedback.next_steps.append("Passer à un niveau de difficulté supérieur")
    elif score >= IMPROVEMENT_THRESHOLD:
        feedback.strengths.append("Bases acquises")
        feedback.next_steps.append("Consolider avec des exercices similaires")
    else:
        feedback.areas_for_improvement = [f"À retravailler : {s}" for s in focus] or [
            "Revoir le vocabulaire du signe"
        ]
        feedback.next_steps.append("Revoir les signes associés avant de réessayer")

    return feedback


def level_skills(table: dict[CECRLLevel, list[str]], level: CECRLLevel, extra: list[str]) -> list[str]:
    """Skills of a level followed by extra focus areas, without duplicates."""
    skills = list(table.get(level, []))
    for skill in extra:
        if skill not in skills:
            skills.append(skill)
    return skills
