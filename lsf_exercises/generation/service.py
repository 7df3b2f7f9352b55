"""
Exercise Generator Service.

Public entry point of the pipeline. Validates a request, serves it from
the cache when possible, otherwise resolves a generator through the
factory, generates, adapts the result to the learner's skill estimate,
attaches hints and caches it. All collaborators are injected; nothing is
a process-wide singleton.

Usage:
    async with ExerciseGeneratorService(InMemoryConceptProvider()) as service:
        exercise = await service.generate_exercise(
            {"type": "MultipleChoice", "level": "A1", "difficulty": 0.2}
        )
        result = service.evaluate_response(exercise, "opt-1")
"""

from __future__ import annotations

import random
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

from ..adaptive.difficulty_adapter import DifficultyAdapter
from ..cache.exercise_cache import ExerciseCache
from ..core.errors import ExerciseError
from ..core.lifecycle import ExerciseGenerator, supports_lifecycle
from ..core.models import EvaluationResult, Exercise, ExerciseRequest, ExerciseType
from ..data.concepts import ConceptProvider
from ..exercises import GenerationStrategy, StrategyRegistry
from .factory import GeneratorConfig, GeneratorFactory, SelectionContext, SelectionStrategy
from .generators import StrategyGenerator

if TYPE_CHECKING:
    from config import Settings

EXERCISE_KEY_PREFIX = "exercise:"
REQUEST_KEY_PREFIX = "request:"


class ExerciseGeneratorService:
    """
    Generate, adapt, cache and evaluate exercises.

    Args:
        provider: Concept source
        factory: Generator factory (built around StrategyGenerator if omitted)
        cache: Exercise cache
        adapter: Difficulty adapter
        rng: Random source shared by the default generators
        settings: Settings (defaults to get_settings())
    """

    def __init__(
        self,
        provider: ConceptProvider,
        factory: Optional[GeneratorFactory] = None,
        cache: Optional[ExerciseCache] = None,
        adapter: Optional[DifficultyAdapter] = None,
        rng: Optional[random.Random] = None,
        settings: Settings | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.settings = settings
        self.provider = provider
        self.rng = rng or random.Random()
        self.factory = factory or GeneratorFactory(
            default_generator_factory=self._build_generator, rng=self.rng, settings=settings
        )
        self.cache = cache or ExerciseCache(settings=settings)
        self.adapter = adapter or DifficultyAdapter(settings=settings)

        self._strategies: dict[ExerciseType, GenerationStrategy] = {}
        self._producers: OrderedDict[str, ExerciseGenerator] = OrderedDict()
        self._initialized = False
        self._generated = 0
        self._evaluated = 0
        self._failures = 0

    def _build_generator(self, exercise_type: ExerciseType) -> StrategyGenerator:
        return StrategyGenerator(exercise_type, self.provider, rng=self.rng, settings=self.settings)

    # ========================================
    # Lifecycle
    # ========================================

    async def initialize(self) -> None:
        """Prepare the provider, register stock generators, start cache cleanup."""
        if self._initialized:
            return
        if supports_lifecycle(self.provider):
            await self.provider.initialize()

        for exercise_type in StrategyRegistry.supported_types():
            if not self.factory.is_exercise_type_supported(exercise_type):
                self.factory.register_generator(
                    exercise_type,
                    self._build_generator(exercise_type),
                    GeneratorConfig.for_type(exercise_type),
                )

        if self.settings.exercise_cache_auto_cleanup:
            self.cache.start_auto_cleanup()

        self._initialized = True
        logger.info(
            f"Exercise service ready: {[t.value for t in self.factory.get_supported_types()]}"
        )

    async def close(self) -> None:
        """Stop background work and release the provider."""
        self.cache.destroy()
        await self.factory.shutdown()
        self._producers.clear()
        if supports_lifecycle(self.provider):
            await self.provider.dispose()
        self._initialized = False
        logger.info("Exercise service closed")

    async def __aenter__(self) -> ExerciseGeneratorService:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ========================================
    # Generation
    # ========================================

    async def generate_exercise(self, params: ExerciseRequest | dict[str, Any]) -> Exercise:
        """
        Generate an exercise for request parameters.

        Args:
            params: ExerciseRequest or raw dict (type, level, difficulty,
                focusAreas, userId, conceptIds, options, skillEstimate...)

        Returns:
            Exercise

        Raises:
            ExerciseValidationError: Malformed parameters
            ExerciseGenerationError: No concept matches the request
            ConceptDataError: The concept provider failed
            GeneratorFactoryError: No generator could be resolved
        """
        request = ExerciseRequest.build(params)
        if not self._initialized:
            await self.initialize()

        request_key = REQUEST_KEY_PREFIX + request.cache_key()
        if request.use_cache:
            cached = self.cache.get(request_key)
            if cached is not None:
                logger.debug(f"Serving cached exercise {cached.id}")
                return cached

        context = SelectionContext(
            user_level=request.resolved_level.value,
            user_preferences=list(request.focus_areas),
        )
        generator = await self.factory.get_generator(request.type, context)

        started = time.perf_counter()
        try:
            exercise = await generator.generate(request)
        except ExerciseError as exc:
            self._failures += 1
            self.factory.record_result(generator, False, self._elapsed_ms(started))
            logger.error(f"{request.type.value} generation failed: {exc}")
            raise
        finally:
            if self.factory.default_strategy == SelectionStrategy.LOAD_BALANCED:
                self.factory.release(generator)
        self.factory.record_result(generator, True, self._elapsed_ms(started))

        capabilities = generator.get_metadata().capabilities
        if request.skill_estimate is not None:
            if "adapt" in capabilities:
                exercise = self.adapter.adapt(exercise, request.skill_estimate)
            else:
                logger.debug(f"{exercise.id} kept as generated: generator does not adapt")

        if request.include_hints and "hints" in capabilities:
            hints = self._strategy(exercise.type).hints_for_difficulty(exercise.content, exercise.difficulty)
            exercise = exercise.with_changes(hints=tuple(hints))

        if request.use_cache:
            self.cache.set(request_key, exercise)
        self.cache.set(EXERCISE_KEY_PREFIX + exercise.id, exercise)
        self._remember_producer(exercise.id, generator)
        self._generated += 1
        return exercise

    def _remember_producer(self, exercise_id: str, generator: ExerciseGenerator) -> None:
        self._producers[exercise_id] = generator
        self._producers.move_to_end(exercise_id)
        while len(self._producers) > self.cache.max_size:
            self._producers.popitem(last=False)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    # ========================================
    # Evaluation and lookups
    # ========================================

    def _strategy(self, exercise_type: ExerciseType) -> GenerationStrategy:
        if exercise_type not in self._strategies:
            self._strategies[exercise_type] = StrategyRegistry.create(
                exercise_type, rng=self.rng, settings=self.settings
            )
        return self._strategies[exercise_type]

    def evaluate_response(self, exercise: Exercise, response: Any) -> EvaluationResult:
        """
        Score a learner response.

        The generator that produced the exercise grades it; exercises this
        service did not produce are graded by the stock strategy of their type.
        """
        generator = self._producers.get(exercise.id)
        if generator is not None:
            result = generator.evaluate(exercise, response)
        else:
            result = self._strategy(exercise.type).evaluate(exercise, response)
        self._evaluated += 1
        logger.info(f"Evaluated {exercise.id}: score={result.score:.2f} correct={result.correct}")
        return result

    def get_hint(self, exercise: Exercise, attempt: int) -> Optional[str]:
        generator = self._producers.get(exercise.id)
        if generator is not None and "hints" not in generator.get_metadata().capabilities:
            hints = list(exercise.hints)
            return hints[attempt] if 0 <= attempt < len(hints) else None
        return self._strategy(exercise.type).hint(exercise, attempt)

    def get_exercise_by_id(self, exercise_id: str) -> Optional[Exercise]:
        """Cached exercise by id; None when unknown or expired."""
        if not exercise_id:
            return None
        return self.cache.get(EXERCISE_KEY_PREFIX + exercise_id)

    # ========================================
    # Registration passthroughs
    # ========================================

    def register_generator(
        self,
        exercise_type: ExerciseType,
        generator: ExerciseGenerator,
        config: Optional[GeneratorConfig] = None,
        name: Optional[str] = None,
    ) -> str:
        return self.factory.register_generator(exercise_type, generator, config, name)

    def get_supported_types(self) -> list[ExerciseType]:
        return self.factory.get_supported_types()

    def is_exercise_type_supported(self, exercise_type: ExerciseType | str) -> bool:
        return self.factory.is_exercise_type_supported(exercise_type)

    # ========================================
    # Statistics
    # ========================================

    def get_statistics(self) -> dict[str, Any]:
        return {
            "generated": self._generated,
            "evaluated": self._evaluated,
            "failures": self._failures,
            "supported_types": [t.value for t in self.get_supported_types()],
            "cache": self.cache.stats().to_dict(),
            "factory": self.factory.get_factory_stats(),
        }

    def clear_caches(self) -> None:
        self.cache.clear()
        self.factory.clear_cache()
        logger.info("Exercise and generator caches cleared")
