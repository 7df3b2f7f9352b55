"""
Strategy-backed exercise generator.

StrategyGenerator is the stock ExerciseGenerator: it gathers the concepts
a request needs from a ConceptProvider, hands them to the strategy of the
exercise type, and turns the draft into an Exercise.
"""

from __future__ import annotations

import random
import uuid
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

from ..core.errors import ConceptDataError, ExerciseGenerationError
from ..core.lifecycle import GeneratorMetadata
from ..core.models import Concept, EvaluationResult, Exercise, ExerciseRequest, ExerciseType
from ..data.concepts import ConceptProvider, ConceptSearchCriteria
from ..exercises import ConceptSet, GenerationStrategy, StrategyRegistry

if TYPE_CHECKING:
    from config import Settings


def new_exercise_id(exercise_type: ExerciseType) -> str:
    return f"{exercise_type.slug}-{uuid.uuid4().hex[:12]}"


class StrategyGenerator:
    """
    ExerciseGenerator for one exercise type, driven by its strategy.

    Implements the Lifecycle capability: ``initialize`` checks that the
    provider answers, ``dispose`` is a no-op hook for symmetry.

    Usage:
        generator = StrategyGenerator(ExerciseType.MULTIPLE_CHOICE, provider)
        exercise = await generator.generate(ExerciseRequest.build({...}))
    """

    def __init__(
        self,
        exercise_type: ExerciseType,
        provider: ConceptProvider,
        rng: Optional[random.Random] = None,
        settings: Settings | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.exercise_type = exercise_type
        self.provider = provider
        self.rng = rng or random.Random()
        self.settings = settings
        self.strategy: GenerationStrategy = StrategyRegistry.create(
            exercise_type, rng=self.rng, settings=settings
        )
        self.initialized = False

    # ----- lifecycle --------------------------------------------------------

    async def initialize(self, config: dict[str, Any] | None = None) -> None:
        self.initialized = True
        logger.debug(f"Generator ready: {self.get_metadata().generator_id}")

    async def dispose(self) -> None:
        self.initialized = False

    # ----- contract ---------------------------------------------------------

    def get_supported_types(self) -> list[ExerciseType]:
        return [self.exercise_type]

    def get_metadata(self) -> GeneratorMetadata:
        return GeneratorMetadata(
            name="strategy",
            version=self.strategy.version,
            description=self.strategy.description,
            supported_types=(self.exercise_type,),
            capabilities=["generate", "evaluate", "hints", "adapt"],
        )

    async def is_healthy(self) -> bool:
        try:
            return await self.provider.check_health()
        except ConceptDataError as exc:
            logger.warning(f"Generator {self.exercise_type.value} unhealthy: {exc}")
            return False

    async def generate(self, request: ExerciseRequest) -> Exercise:
        """
        Build an exercise for a validated request.

        Raises:
            ExerciseGenerationError: No concept matches the request
            ConceptDataError: The provider failed
        """
        level = request.resolved_level
        concepts = await self.gather_concepts(request)
        options = {**request.options, "focus_areas": list(request.focus_areas)}

        draft = self.strategy.generate(concepts, level, request.difficulty, options)
        if not self.strategy.validate(draft.content):
            raise ExerciseGenerationError(
                f"Generated {self.exercise_type.value} content failed validation",
                exercise_type=self.exercise_type.value,
            )

        exercise = Exercise(
            id=new_exercise_id(self.exercise_type),
            type=self.exercise_type,
            level=level,
            difficulty=request.difficulty,
            content=draft.content,
            time_limit=draft.time_limit,
            skills=tuple(draft.skills),
            tags=tuple(draft.tags),
            explanation=draft.explanation,
            concept_ids=tuple(draft.concept_ids),
        )
        logger.info(
            f"Generated {exercise.type.value} {exercise.id} "
            f"(level={level.value}, difficulty={request.difficulty:.2f}, concepts={list(exercise.concept_ids)})"
        )
        return exercise

    def evaluate(self, exercise: Exercise, response: Any) -> EvaluationResult:
        return self.strategy.evaluate(exercise, response)

    # ----- concept gathering ------------------------------------------------

    async def gather_concepts(self, request: ExerciseRequest) -> ConceptSet:
        level = request.resolved_level
        if request.concept_ids:
            targets = await self.provider.get_by_ids(request.concept_ids)
        else:
            targets = await self._search_targets(request)

        if not targets:
            raise ExerciseGenerationError(
                f"No concept matches {self.exercise_type.value} request "
                f"(level={level.value}, focus={request.focus_areas or '-'})",
                exercise_type=self.exercise_type.value,
            )

        target_ids = tuple(c.id for c in targets)
        details = {}
        related: dict[str, list[Concept]] = {}
        for concept in targets:
            concept_details = await self.provider.get_details(concept.id)
            if concept_details is not None:
                details[concept.id] = concept_details
            related[concept.id] = await self.provider.get_by_ids(
                [cid for cid in concept.related_concepts if cid not in target_ids]
            )

        peers = await self.provider.search(ConceptSearchCriteria(level=level, exclude_ids=target_ids))
        pool = await self.provider.search(ConceptSearchCriteria(exclude_ids=target_ids))
        return ConceptSet(targets=targets, details=details, related=related, peers=peers, pool=pool)

    async def _search_targets(self, request: ExerciseRequest) -> list[Concept]:
        level = request.resolved_level
        criteria = ConceptSearchCriteria(
            level=level,
            categories=tuple(request.focus_areas),
            max_difficulty=request.difficulty,
        )
        found = await self.provider.search(criteria)
        if not found:
            logger.debug(f"No concept under difficulty {request.difficulty:.2f}, relaxing to level {level.value}")
            found = await self.provider.search(ConceptSearchCriteria(level=level))

        sample_size = self.settings.concept_sample_size
        if len(found) > sample_size:
            found = self.rng.sample(found, sample_size)
        else:
            found = list(found)
            self.rng.shuffle(found)
        return found
