"""
Generator Factory.

Keeps a registry of named generators per exercise type, each with its own
configuration, and resolves one for a request through a selection
strategy. Resolved generators are cached per (type, context fingerprint);
rolling performance stats feed the performance-based strategy.

Selection strategies:
- first_available: registration order
- highest_priority: configured priority, first registered on ties
- best_quality: configured quality score
- context_aware: preferences, time constraints and history scored 0-10
- load_balanced: least in-flight requests; ``release`` gives the slot back
- performance_based: success rate, satisfaction, speed and reliability
- round_robin: per-type rotation
- weighted_random: quality times (1 + success rate), injected rng
"""

from __future__ import annotations

import hashlib
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from loguru import logger
from pydantic import BaseModel, Field, field_validator

from ..core.errors import GeneratorFactoryError
from ..core.lifecycle import ExerciseGenerator, is_exercise_generator, supports_lifecycle
from ..core.models import ExerciseType

if TYPE_CHECKING:
    from config import Settings

DefaultGeneratorFactory = Callable[[ExerciseType], ExerciseGenerator]

DEFAULT_PRIORITIES: dict[ExerciseType, int] = {
    ExerciseType.MULTIPLE_CHOICE: 10,
    ExerciseType.SIGNING_PRACTICE: 8,
    ExerciseType.DRAG_DROP: 5,
    ExerciseType.FILL_BLANK: 5,
    ExerciseType.TEXT_ENTRY: 4,
    ExerciseType.VIDEO_RESPONSE: 3,
}

# Context-aware scoring
BASE_CONTEXT_SCORE = 5.0
PREFERENCE_BONUS_PER_ITEM = 0.5
MAX_PREFERENCE_BONUS = 2.0
FAST_RESPONSE_MS = 1000
HIGH_URGENCY_BONUS = 1.5
SHORT_SESSION_SECONDS = 300
SHORT_SESSION_BONUS = 1.0
GOOD_HISTORY_SCORE = 0.7
GOOD_HISTORY_BONUS = 1.0
PREFERRED_CONTEXT_BONUS = 1.0
MAX_CONTEXT_SCORE = 10.0

# Rolling stats
RESPONSE_TIME_ALPHA = 0.2
FAILURE_PENALTY = 0.1
SUCCESS_RECOVERY = 0.05
DEFAULT_PERFORMANCE_SCORE = 5.0
SLOWEST_RESPONSE_MS = 5000


class SelectionStrategy(str, Enum):
    FIRST_AVAILABLE = "first_available"
    HIGHEST_PRIORITY = "highest_priority"
    BEST_QUALITY = "best_quality"
    CONTEXT_AWARE = "context_aware"
    LOAD_BALANCED = "load_balanced"
    PERFORMANCE_BASED = "performance_based"
    ROUND_ROBIN = "round_robin"
    WEIGHTED_RANDOM = "weighted_random"


class GeneratorConfig(BaseModel):
    """Per-registration configuration; scores are clamped to 1-10."""

    priority: int = 5
    quality_score: float = 5.0
    load_weight: float = 5.0
    enabled: bool = True
    max_concurrent_exercises: int = Field(default=10, ge=1)
    average_response_time: float = Field(default=500.0, ge=100.0)  # ms
    preferred_contexts: list[str] = Field(default_factory=list)
    specific_config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: Any) -> int:
        return int(min(10, max(1, round(float(value)))))

    @field_validator("quality_score", "load_weight", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        return min(10.0, max(1.0, float(value)))

    @classmethod
    def for_type(cls, exercise_type: ExerciseType, **overrides: Any) -> GeneratorConfig:
        """Default configuration of a type, with overrides."""
        values = {"priority": DEFAULT_PRIORITIES.get(exercise_type, 5), **overrides}
        return cls(**values)


@dataclass
class TimeConstraints:
    max_duration: Optional[int] = None  # seconds
    urgency: str = "normal"  # low, normal, high


@dataclass
class SelectionContext:
    """What is known about the learner when picking a generator."""

    user_level: Optional[str] = None
    performance_history: list[float] = field(default_factory=list)
    user_preferences: list[str] = field(default_factory=list)
    time_constraints: Optional[TimeConstraints] = None
    session_metrics: dict[str, Any] = field(default_factory=dict)

    def fingerprint(self) -> str:
        urgency = self.time_constraints.urgency if self.time_constraints else ""
        raw = f"{self.user_level or ''}|{urgency}|{','.join(sorted(self.user_preferences))}"
        return hashlib.sha1(raw.encode()).hexdigest()[:8]


@dataclass
class GeneratorStats:
    """Rolling performance of one generator."""

    success_rate: float = 1.0
    user_satisfaction: float = 7.0  # 0-10
    average_response_time: float = 500.0  # ms
    error_count: int = 0
    total_requests: int = 0
    cache_hits: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success_rate": self.success_rate,
            "user_satisfaction": self.user_satisfaction,
            "average_response_time": self.average_response_time,
            "error_count": self.error_count,
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
        }


@dataclass
class _Registration:
    name: str
    generator: ExerciseGenerator
    config: GeneratorConfig
    stats: GeneratorStats = field(default_factory=GeneratorStats)
    load: int = 0
    initialized: bool = False


class GeneratorFactory:
    """
    Registry and selector of exercise generators.

    Usage:
        factory = GeneratorFactory(default_generator_factory=build_default)
        factory.register_generator(ExerciseType.MULTIPLE_CHOICE, generator)
        generator = await factory.get_generator(ExerciseType.MULTIPLE_CHOICE)
    """

    def __init__(
        self,
        default_generator_factory: Optional[DefaultGeneratorFactory] = None,
        rng: Optional[random.Random] = None,
        settings: Settings | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.settings = settings
        self.rng = rng or random.Random()
        self._default_factory = default_generator_factory

        self._registry: dict[ExerciseType, dict[str, _Registration]] = {}
        self._defaults: dict[ExerciseType, _Registration] = {}
        self._cache: OrderedDict[str, _Registration] = OrderedDict()
        self._round_robin: dict[ExerciseType, int] = {}

        self.default_strategy = SelectionStrategy(settings.factory_default_strategy)
        self.cache_enabled = settings.factory_cache_enabled
        self.max_cache_size = max(1, settings.factory_max_cache_size)
        self._cache_hits = 0
        self._cache_misses = 0

    # ========================================
    # Registration
    # ========================================

    def register_generator(
        self,
        exercise_type: ExerciseType,
        generator: ExerciseGenerator,
        config: Optional[GeneratorConfig] = None,
        name: Optional[str] = None,
    ) -> str:
        """
        Register a generator instance for a type.

        Returns:
            Registration name (defaults to the metadata generator id)

        Raises:
            GeneratorFactoryError: INVALID_CONFIGURATION if the generator
                does not implement the generator contract
        """
        if not is_exercise_generator(generator):
            raise GeneratorFactoryError(
                f"{type(generator).__name__} does not implement ExerciseGenerator",
                code=GeneratorFactoryError.INVALID_CONFIGURATION,
                context={"exercise_type": exercise_type.value},
            )

        name = name or generator.get_metadata().generator_id
        registration = _Registration(
            name=name,
            generator=generator,
            config=config or GeneratorConfig.for_type(exercise_type),
        )
        self._registry.setdefault(exercise_type, {})[name] = registration
        self._invalidate(exercise_type)
        logger.info(f"Registered generator {name} for {exercise_type.value}")
        return name

    def unregister_generator(self, exercise_type: ExerciseType, name: str) -> bool:
        registrations = self._registry.get(exercise_type, {})
        if registrations.pop(name, None) is None:
            return False
        self._invalidate(exercise_type)
        logger.info(f"Unregistered generator {name} for {exercise_type.value}")
        return True

    def get_supported_types(self) -> list[ExerciseType]:
        return [t for t in ExerciseType if self._registry.get(t)]

    def is_exercise_type_supported(self, exercise_type: ExerciseType | str) -> bool:
        parsed = ExerciseType.parse(exercise_type)
        return parsed is not None and bool(self._registry.get(parsed))

    def get_config(self, exercise_type: ExerciseType, name: str) -> Optional[GeneratorConfig]:
        registration = self._registry.get(exercise_type, {}).get(name)
        return registration.config if registration else None

    # ========================================
    # Resolution
    # ========================================

    async def get_generator(
        self,
        exercise_type: ExerciseType,
        context: Optional[SelectionContext] = None,
        strategy: Optional[SelectionStrategy] = None,
    ) -> ExerciseGenerator:
        """
        Resolve a generator for a type.

        Raises:
            GeneratorFactoryError: NO_GENERATOR_AVAILABLE when nothing is
                registered or healthy and no default can be built
        """
        strategy = strategy or self.default_strategy
        key = self._cache_key(exercise_type, context)

        if self.cache_enabled and key in self._cache:
            cached = self._cache[key]
            if await self._healthy(cached):
                self._cache_hits += 1
                cached.stats.cache_hits += 1
                if strategy == SelectionStrategy.LOAD_BALANCED:
                    cached.load += 1
                logger.debug(f"Generator cache hit: {key} -> {cached.name}")
                return cached.generator
            del self._cache[key]
        self._cache_misses += 1

        candidates = [
            r
            for r in self._registry.get(exercise_type, {}).values()
            if r.config.enabled and await self._healthy(r)
        ]

        if candidates:
            try:
                chosen = self._select(exercise_type, candidates, strategy, context)
            except (ValueError, ZeroDivisionError) as exc:
                raise GeneratorFactoryError(
                    f"Selection with {strategy.value} failed: {exc}",
                    code=GeneratorFactoryError.GENERATOR_SELECTION_FAILED,
                    context={"exercise_type": exercise_type.value, "strategy": strategy.value},
                ) from exc
            logger.debug(f"Selected {chosen.name} for {exercise_type.value} via {strategy.value}")
        else:
            chosen = self._default_registration(exercise_type, strategy)

        await self._ensure_initialized(chosen)

        if self.cache_enabled:
            while len(self._cache) >= self.max_cache_size:
                self._cache.popitem(last=False)
            self._cache[key] = chosen
        return chosen.generator

    def _cache_key(self, exercise_type: ExerciseType, context: Optional[SelectionContext]) -> str:
        return f"{exercise_type.value}:{context.fingerprint() if context else 'default'}"

    async def _healthy(self, registration: _Registration) -> bool:
        try:
            return bool(await registration.generator.is_healthy())
        except Exception as exc:
            logger.warning(f"Health check failed for {registration.name}: {exc}")
            return False

    async def _ensure_initialized(self, registration: _Registration) -> None:
        if registration.initialized:
            return
        if supports_lifecycle(registration.generator):
            await registration.generator.initialize(registration.config.specific_config)
        registration.initialized = True

    def _default_registration(
        self, exercise_type: ExerciseType, strategy: SelectionStrategy
    ) -> _Registration:
        if exercise_type in self._defaults:
            return self._defaults[exercise_type]

        context = {
            "exercise_type": exercise_type.value,
            "strategy": strategy.value,
            "registered": list(self._registry.get(exercise_type, {})),
        }
        if self._default_factory is None:
            raise GeneratorFactoryError(
                f"No generator available for {exercise_type.value}",
                code=GeneratorFactoryError.NO_GENERATOR_AVAILABLE,
                context=context,
            )
        try:
            generator = self._default_factory(exercise_type)
        except Exception as exc:
            raise GeneratorFactoryError(
                f"Default generator for {exercise_type.value} could not be built: {exc}",
                code=GeneratorFactoryError.NO_GENERATOR_AVAILABLE,
                context=context,
            ) from exc

        logger.warning(f"No healthy generator for {exercise_type.value}, using default")
        registration = _Registration(
            name=f"default_{exercise_type.slug}",
            generator=generator,
            config=GeneratorConfig.for_type(exercise_type),
        )
        self._defaults[exercise_type] = registration
        return registration

    # ========================================
    # Strategies
    # ========================================

    def _select(
        self,
        exercise_type: ExerciseType,
        candidates: list[_Registration],
        strategy: SelectionStrategy,
        context: Optional[SelectionContext],
    ) -> _Registration:
        if strategy == SelectionStrategy.FIRST_AVAILABLE:
            return candidates[0]
        if strategy == SelectionStrategy.HIGHEST_PRIORITY:
            return max(candidates, key=lambda r: r.config.priority)
        if strategy == SelectionStrategy.BEST_QUALITY:
            return max(candidates, key=lambda r: r.config.quality_score)
        if strategy == SelectionStrategy.CONTEXT_AWARE:
            return max(candidates, key=lambda r: self.context_score(r.config, context))
        if strategy == SelectionStrategy.LOAD_BALANCED:
            chosen = min(candidates, key=lambda r: r.load)
            chosen.load += 1
            return chosen
        if strategy == SelectionStrategy.PERFORMANCE_BASED:
            return max(candidates, key=lambda r: self.performance_score(r.stats))
        if strategy == SelectionStrategy.ROUND_ROBIN:
            index = self._round_robin.get(exercise_type, 0)
            self._round_robin[exercise_type] = index + 1
            return candidates[index % len(candidates)]
        if strategy == SelectionStrategy.WEIGHTED_RANDOM:
            weights = [r.config.quality_score * (1 + r.stats.success_rate) for r in candidates]
            return self.rng.choices(candidates, weights=weights, k=1)[0]
        raise ValueError(f"unknown strategy {strategy!r}")

    @staticmethod
    def context_score(config: GeneratorConfig, context: Optional[SelectionContext]) -> float:
        """Score a generator for a learner context, in [0, 10]."""
        score = BASE_CONTEXT_SCORE
        if context is None:
            return score

        if context.user_preferences:
            score += min(MAX_PREFERENCE_BONUS, len(context.user_preferences) * PREFERENCE_BONUS_PER_ITEM)

        constraints = context.time_constraints
        if constraints is not None:
            if constraints.urgency == "high" and config.average_response_time < FAST_RESPONSE_MS:
                score += HIGH_URGENCY_BONUS
            if constraints.max_duration is not None and constraints.max_duration < SHORT_SESSION_SECONDS:
                score += SHORT_SESSION_BONUS

        if context.performance_history:
            average = sum(context.performance_history) / len(context.performance_history)
            if average >= GOOD_HISTORY_SCORE:
                score += GOOD_HISTORY_BONUS

        if context.user_level and context.user_level in config.preferred_contexts:
            score += PREFERRED_CONTEXT_BONUS

        return min(MAX_CONTEXT_SCORE, max(0.0, score))

    @staticmethod
    def performance_score(stats: Optional[GeneratorStats]) -> float:
        if stats is None:
            return DEFAULT_PERFORMANCE_SCORE
        speed = max(0.0, 1 - stats.average_response_time / SLOWEST_RESPONSE_MS)
        reliability = 1 / (1 + stats.error_count)
        return (
            stats.success_rate * 0.4
            + stats.user_satisfaction / 10 * 0.3
            + speed * 0.2
            + reliability * 0.1
        ) * 10

    # ========================================
    # Feedback
    # ========================================

    def _find(self, generator: ExerciseGenerator) -> Optional[_Registration]:
        for registrations in self._registry.values():
            for registration in registrations.values():
                if registration.generator is generator:
                    return registration
        for registration in self._defaults.values():
            if registration.generator is generator:
                return registration
        return None

    def record_result(
        self,
        generator: ExerciseGenerator,
        success: bool,
        response_time_ms: float,
        satisfaction: Optional[float] = None,
    ) -> None:
        """Fold one generation outcome into the generator's rolling stats."""
        registration = self._find(generator)
        if registration is None:
            return
        stats = registration.stats
        stats.total_requests += 1
        stats.average_response_time = (
            RESPONSE_TIME_ALPHA * response_time_ms
            + (1 - RESPONSE_TIME_ALPHA) * stats.average_response_time
        )
        if success:
            stats.success_rate = min(1.0, stats.success_rate + SUCCESS_RECOVERY)
        else:
            stats.error_count += 1
            stats.success_rate = max(0.0, stats.success_rate - FAILURE_PENALTY)
        if satisfaction is not None:
            stats.user_satisfaction = min(10.0, max(0.0, satisfaction))

    def release(self, generator: ExerciseGenerator) -> None:
        """Give back a load-balanced slot."""
        registration = self._find(generator)
        if registration is not None and registration.load > 0:
            registration.load -= 1

    def get_stats(self, generator: ExerciseGenerator) -> Optional[GeneratorStats]:
        registration = self._find(generator)
        return registration.stats if registration else None

    def get_load(self, generator: ExerciseGenerator) -> int:
        registration = self._find(generator)
        return registration.load if registration else 0

    # ========================================
    # Settings and maintenance
    # ========================================

    def set_default_strategy(self, strategy: SelectionStrategy | str) -> None:
        self.default_strategy = SelectionStrategy(strategy)
        logger.info(f"Default selection strategy: {self.default_strategy.value}")

    def set_cache_enabled(self, enabled: bool) -> None:
        self.cache_enabled = enabled
        if not enabled:
            self.clear_cache()
            for registration in self._all_registrations():
                registration.load = 0

    def clear_cache(self) -> None:
        self._cache.clear()

    def _invalidate(self, exercise_type: ExerciseType) -> None:
        prefix = f"{exercise_type.value}:"
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    def _all_registrations(self) -> list[_Registration]:
        registrations = [r for per_type in self._registry.values() for r in per_type.values()]
        return registrations + list(self._defaults.values())

    def get_factory_stats(self) -> dict[str, Any]:
        lookups = self._cache_hits + self._cache_misses
        return {
            "registered_generators": {
                t.value: list(self._registry[t]) for t in self.get_supported_types()
            },
            "default_generators": [r.name for r in self._defaults.values()],
            "default_strategy": self.default_strategy.value,
            "cache_enabled": self.cache_enabled,
            "cache_size": len(self._cache),
            "cache_hit_rate": self._cache_hits / lookups if lookups else 0.0,
            "performance": {r.name: r.stats.to_dict() for r in self._all_registrations()},
        }

    async def shutdown(self) -> None:
        """Dispose lifecycle-capable generators and forget everything."""
        for registration in self._all_registrations():
            if registration.initialized and supports_lifecycle(registration.generator):
                await registration.generator.dispose()
                registration.initialized = False
        self._cache.clear()
        self._registry.clear()
        self._defaults.clear()
        self._round_robin.clear()
        logger.info("Generator factory shut down")
