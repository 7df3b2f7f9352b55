"""
Learner Evolution Engine.

Tracks a learner as a continuous vector of eight metrics in [0, 1]. After
each interaction a fixed battery of detectors inspects the recent history
(experiences, emotions, feedback) and the current metrics. Each detector
is a pure ``(factors, metrics) -> impact`` function registered in a table;
a positive impact emits an event that raises one metric.

The model is growth-only: impacts are never negative and values are
clamped to [0, 1]. All impacts of a pass are computed against the same
snapshot, then applied one after another, so two detectors touching the
same metric stack.

Detectors:
- breakthrough: sustained high success rate
- plateau_breakthrough: recent results beat older ones
- skill_mastery: many strongly held concepts
- confidence_boost: positive experiences and feedback
- adaptability_increase: several methods and challenges overcome
- emotional_growth: emotional diversity
- cultural_awakening: exposure to Deaf culture concepts
- method_preference: a consistently used method
- resilience_build: recovery from challenging exercises
- curiosity_spark: exploration and questioning
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

from ..core.levels import clamp


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Metrics and factors
# =============================================================================


@dataclass(frozen=True)
class EvolutionMetrics:
    """Continuous learner state; every field is in [0, 1]."""

    learning_speed: float = 0.3
    knowledge_retention: float = 0.4
    adaptability: float = 0.5
    emotional_resilience: float = 0.4
    intellectual_curiosity: float = 0.6
    lsf_communication_efficiency: float = 0.2
    global_confidence: float = 0.3
    cultural_progress: float = 0.1

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, clamp(float(getattr(self, f.name))))

    @classmethod
    def metric_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def get(self, metric: str) -> float:
        return getattr(self, metric)

    def with_value(self, metric: str, value: float) -> EvolutionMetrics:
        return replace(self, **{metric: clamp(value)})

    def to_dict(self) -> dict[str, float]:
        return {name: self.get(name) for name in self.metric_names()}


@dataclass
class LearningExperience:
    """One practised concept and how it went."""

    concept: str
    method: str
    success_rate: float
    challenges: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class EmotionalPattern:
    emotion: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class FeedbackEntry:
    kind: str  # positive, negative, neutral, question
    content: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class EvolutionFactors:
    """Recent history the detectors look at."""

    recent_experiences: list[LearningExperience] = field(default_factory=list)
    emotional_patterns: list[EmotionalPattern] = field(default_factory=list)
    feedback_history: list[FeedbackEntry] = field(default_factory=list)
    social_interactions: list[str] = field(default_factory=list)
    strongest_concepts: list[str] = field(default_factory=list)
    total_learning_time: float = 0.0  # seconds


class EvolutionEventType(str, Enum):
    BREAKTHROUGH = "breakthrough"
    PLATEAU_BREAKTHROUGH = "plateau_breakthrough"
    SKILL_MASTERY = "skill_mastery"
    CONFIDENCE_BOOST = "confidence_boost"
    ADAPTABILITY_INCREASE = "adaptability_increase"
    EMOTIONAL_GROWTH = "emotional_growth"
    CULTURAL_AWAKENING = "cultural_awakening"
    METHOD_PREFERENCE = "method_preference"
    RESILIENCE_BUILD = "resilience_build"
    CURIOSITY_SPARK = "curiosity_spark"


# =============================================================================
# Thresholds
# =============================================================================

EVOLUTION_THRESHOLDS: dict[str, float] = {
    # breakthrough
    "breakthrough_success_rate": 0.8,
    "breakthrough_speed_for_bonus": 0.6,
    "breakthrough_speed_bonus": 0.1,
    "breakthrough_cap": 0.3,
    # plateau_breakthrough
    "plateau_improvement_margin": 0.1,
    "plateau_window": 3,
    "plateau_base": 0.25,
    "plateau_adaptability_weight": 0.2,
    "plateau_slow_speed": 0.4,
    "plateau_fast_learner_factor": 0.8,
    # skill_mastery
    "mastery_min_concepts": 5,
    "mastery_per_concept": 0.02,
    "mastery_efficiency_for_bonus": 0.7,
    "mastery_efficiency_bonus": 0.05,
    "mastery_min_confidence_factor": 0.5,
    "mastery_cap": 0.2,
    # confidence_boost
    "confidence_success_rate": 0.7,
    "confidence_min_positive_experiences": 3,
    "confidence_min_positive_feedback": 2,
    "confidence_per_experience": 0.05,
    "confidence_per_feedback": 0.03,
    "confidence_social_bonus": 0.05,
    "confidence_low_level": 0.5,
    "confidence_low_level_factor": 1.2,
    "confidence_cap": 0.25,
    # adaptability_increase
    "adaptability_min_methods": 2,
    "adaptability_per_method": 0.05,
    "adaptability_challenge_success": 0.5,
    "adaptability_min_growth": 0.2,
    "adaptability_cap": 0.2,
    # emotional_growth
    "emotion_basic_count": 8,
    "emotion_min_diversity": 0.5,
    "emotion_high_resilience": 0.6,
    "emotion_resilience_bonus": 0.05,
    "emotion_low_resilience": 0.5,
    "emotion_low_resilience_factor": 1.3,
    "emotion_cap": 0.15,
    # cultural_awakening
    "culture_per_exposure": 0.1,
    "culture_curiosity_for_bonus": 0.7,
    "culture_curiosity_bonus": 0.1,
    "culture_max_progress": 0.5,
    "culture_beginner_progress": 0.3,
    "culture_beginner_factor": 1.5,
    "culture_cap": 0.3,
    # method_preference
    "method_share": 0.3,
    "method_min_consistency": 0.6,
    "method_consistency_weight": 0.2,
    "method_speed_for_bonus": 0.5,
    "method_speed_bonus": 0.02,
    "method_adaptable": 0.6,
    "method_rigid_factor": 1.2,
    "method_cap": 0.1,
    # resilience_build
    "resilience_success": 0.5,
    "resilience_min_recovery": 0.7,
    "resilience_adaptability_for_bonus": 0.5,
    "resilience_adaptability_bonus": 0.02,
    "resilience_confidence_for_bonus": 0.6,
    "resilience_confidence_bonus": 0.03,
    "resilience_min_growth": 0.3,
    "resilience_cap": 0.15,
    # curiosity_spark
    "curiosity_min_exploration": 0.3,
    "curiosity_per_question": 0.05,
    "curiosity_speed_for_bonus": 0.4,
    "curiosity_speed_bonus": 0.05,
    "curiosity_culture_for_bonus": 0.3,
    "curiosity_culture_bonus": 0.03,
    "curiosity_low_level": 0.6,
    "curiosity_low_level_factor": 1.2,
    "curiosity_cap": 0.2,
    # event confidence
    "confidence_full_data_experiences": 5,
}

T = EVOLUTION_THRESHOLDS

CULTURE_MARKERS = ("culture", "communauté")
QUESTION_MARKERS = ("?", "pourquoi")


# =============================================================================
# Factor helpers
# =============================================================================


def average_success_rate(experiences: list[LearningExperience]) -> float:
    if not experiences:
        return 0.0
    return sum(e.success_rate for e in experiences) / len(experiences)


def recent_improvement(experiences: list[LearningExperience]) -> bool:
    """True when the last few experiences beat the few before them."""
    window = int(T["plateau_window"])
    if len(experiences) < 2:
        return False
    ordered = sorted(experiences, key=lambda e: e.timestamp)[::-1]
    recent, older = ordered[:window], ordered[window : 2 * window]
    if not recent or not older:
        return False
    return average_success_rate(recent) > average_success_rate(older) + T["plateau_improvement_margin"]


def emotional_diversity(patterns: list[EmotionalPattern]) -> float:
    if not patterns:
        return 0.0
    return min(1.0, len({p.emotion for p in patterns}) / T["emotion_basic_count"])


def method_counts(experiences: list[LearningExperience]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for experience in experiences:
        counts[experience.method] = counts.get(experience.method, 0) + 1
    return counts


def preferred_methods(experiences: list[LearningExperience]) -> list[str]:
    if not experiences:
        return []
    total = len(experiences)
    return [m for m, n in method_counts(experiences).items() if n / total > T["method_share"]]


def method_consistency(experiences: list[LearningExperience]) -> float:
    if not experiences:
        return 0.0
    return max(method_counts(experiences).values()) / len(experiences)


def challenge_recovery(experiences: list[LearningExperience]) -> float:
    challenging = [e for e in experiences if e.challenges]
    if not challenging:
        return 0.0
    recovered = [e for e in challenging if e.success_rate > T["resilience_success"]]
    return len(recovered) / len(challenging)


def exploration_rate(experiences: list[LearningExperience]) -> float:
    if not experiences:
        return 0.0
    return min(1.0, len({e.concept for e in experiences}) / len(experiences))


# =============================================================================
# Impact functions
# =============================================================================


def breakthrough_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    avg = average_success_rate(factors.recent_experiences)
    if avg <= T["breakthrough_success_rate"]:
        return 0.0
    bonus = T["breakthrough_speed_bonus"] if metrics.learning_speed > T["breakthrough_speed_for_bonus"] else 0.0
    return min(T["breakthrough_cap"], avg - T["breakthrough_success_rate"] + bonus)


def plateau_breakthrough_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    if not recent_improvement(factors.recent_experiences):
        return 0.0
    factor = 1.0 if metrics.learning_speed < T["plateau_slow_speed"] else T["plateau_fast_learner_factor"]
    return (T["plateau_base"] + metrics.adaptability * T["plateau_adaptability_weight"]) * factor


def skill_mastery_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    mastered = len(factors.strongest_concepts)
    if mastered <= T["mastery_min_concepts"]:
        return 0.0
    bonus = (
        T["mastery_efficiency_bonus"]
        if metrics.lsf_communication_efficiency > T["mastery_efficiency_for_bonus"]
        else 0.0
    )
    base = min(T["mastery_cap"], mastered * T["mastery_per_concept"] + bonus)
    return base * max(T["mastery_min_confidence_factor"], metrics.global_confidence)


def confidence_boost_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    positive = sum(1 for e in factors.recent_experiences if e.success_rate > T["confidence_success_rate"])
    feedback = sum(1 for f in factors.feedback_history if f.kind == "positive")
    if positive <= T["confidence_min_positive_experiences"] and feedback <= T["confidence_min_positive_feedback"]:
        return 0.0
    social = T["confidence_social_bonus"] if factors.social_interactions else 0.0
    base = min(
        T["confidence_cap"],
        positive * T["confidence_per_experience"] + feedback * T["confidence_per_feedback"] + social,
    )
    factor = T["confidence_low_level_factor"] if metrics.global_confidence < T["confidence_low_level"] else 1.0
    return base * factor


def adaptability_increase_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    methods = len({e.method for e in factors.recent_experiences})
    overcome = any(
        e.challenges and e.success_rate > T["adaptability_challenge_success"]
        for e in factors.recent_experiences
    )
    if methods <= T["adaptability_min_methods"] or not overcome:
        return 0.0
    base = min(T["adaptability_cap"], methods * T["adaptability_per_method"])
    return base * max(T["adaptability_min_growth"], 1 - metrics.adaptability)


def emotional_growth_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    diversity = emotional_diversity(factors.emotional_patterns)
    if diversity <= T["emotion_min_diversity"]:
        return 0.0
    resilience = metrics.emotional_resilience
    bonus = T["emotion_resilience_bonus"] if resilience > T["emotion_high_resilience"] else 0.0
    factor = T["emotion_low_resilience_factor"] if resilience < T["emotion_low_resilience"] else 1.0
    return min(T["emotion_cap"], diversity + bonus) * factor


def cultural_awakening_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    exposure = sum(
        1 for e in factors.recent_experiences if any(marker in e.concept for marker in CULTURE_MARKERS)
    )
    progress = metrics.cultural_progress
    if exposure == 0 or progress >= T["culture_max_progress"]:
        return 0.0
    bonus = (
        T["culture_curiosity_bonus"]
        if metrics.intellectual_curiosity > T["culture_curiosity_for_bonus"]
        else 0.0
    )
    factor = T["culture_beginner_factor"] if progress < T["culture_beginner_progress"] else 1.0
    return min(T["culture_cap"], exposure * T["culture_per_exposure"] + bonus) * factor


def method_preference_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    consistency = method_consistency(factors.recent_experiences)
    if not preferred_methods(factors.recent_experiences) or consistency <= T["method_min_consistency"]:
        return 0.0
    bonus = T["method_speed_bonus"] if metrics.learning_speed > T["method_speed_for_bonus"] else 0.0
    factor = 1.0 if metrics.adaptability > T["method_adaptable"] else T["method_rigid_factor"]
    return min(T["method_cap"], consistency * T["method_consistency_weight"] + bonus) * factor


def resilience_build_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    recovery = challenge_recovery(factors.recent_experiences)
    if recovery <= T["resilience_min_recovery"]:
        return 0.0
    bonus = (
        T["resilience_adaptability_bonus"]
        if metrics.adaptability > T["resilience_adaptability_for_bonus"]
        else 0.0
    )
    support = (
        T["resilience_confidence_bonus"]
        if metrics.global_confidence > T["resilience_confidence_for_bonus"]
        else 0.0
    )
    base = min(T["resilience_cap"], recovery + bonus + support)
    return base * max(T["resilience_min_growth"], 1 - metrics.emotional_resilience)


def curiosity_spark_impact(factors: EvolutionFactors, metrics: EvolutionMetrics) -> float:
    exploration = exploration_rate(factors.recent_experiences)
    questions = sum(
        1
        for f in factors.feedback_history
        if any(marker in f.content.lower() for marker in QUESTION_MARKERS)
    )
    if exploration <= T["curiosity_min_exploration"] and questions == 0:
        return 0.0
    speed = T["curiosity_speed_bonus"] if metrics.learning_speed > T["curiosity_speed_for_bonus"] else 0.0
    culture = T["curiosity_culture_bonus"] if metrics.cultural_progress > T["curiosity_culture_for_bonus"] else 0.0
    base = min(T["curiosity_cap"], exploration + questions * T["curiosity_per_question"] + speed + culture)
    factor = (
        T["curiosity_low_level_factor"]
        if metrics.intellectual_curiosity < T["curiosity_low_level"]
        else 1.0
    )
    return base * factor


# =============================================================================
# Detector table
# =============================================================================

ImpactFn = Callable[[EvolutionFactors, EvolutionMetrics], float]
TriggerFn = Callable[[EvolutionFactors], str]


@dataclass(frozen=True)
class EvolutionDetector:
    """One row of the detector table."""

    event_type: EvolutionEventType
    affected_metric: str
    base_confidence: float
    trigger: TriggerFn
    impact: ImpactFn


DETECTORS: tuple[EvolutionDetector, ...] = (
    EvolutionDetector(
        EvolutionEventType.BREAKTHROUGH, "learning_speed", 0.9,
        lambda f: f"{len(f.recent_experiences)} expériences récentes réussies",
        breakthrough_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.PLATEAU_BREAKTHROUGH, "adaptability", 0.7,
        lambda f: "Amélioration détectée après stagnation",
        plateau_breakthrough_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.SKILL_MASTERY, "lsf_communication_efficiency", 0.85,
        lambda f: f"Maîtrise de {len(f.strongest_concepts)} concepts",
        skill_mastery_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.CONFIDENCE_BOOST, "global_confidence", 0.8,
        lambda f: f"{sum(1 for fb in f.feedback_history if fb.kind == 'positive')} feedbacks positifs",
        confidence_boost_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.ADAPTABILITY_INCREASE, "adaptability", 0.75,
        lambda f: "Diversification des méthodes d'apprentissage",
        adaptability_increase_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.EMOTIONAL_GROWTH, "emotional_resilience", 0.6,
        lambda f: "Développement de la maturité émotionnelle",
        emotional_growth_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.CULTURAL_AWAKENING, "cultural_progress", 0.8,
        lambda f: "Exposition accrue à la culture sourde",
        cultural_awakening_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.METHOD_PREFERENCE, "adaptability", 0.7,
        lambda f: "Développement de préférences pédagogiques",
        method_preference_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.RESILIENCE_BUILD, "emotional_resilience", 0.75,
        lambda f: "Surmonter des défis d'apprentissage",
        resilience_build_impact,
    ),
    EvolutionDetector(
        EvolutionEventType.CURIOSITY_SPARK, "intellectual_curiosity", 0.65,
        lambda f: "Comportement exploratoire renforcé",
        curiosity_spark_impact,
    ),
)


# =============================================================================
# Events and engine
# =============================================================================


@dataclass
class EvolutionEvent:
    """A detected change of one metric."""

    event_type: EvolutionEventType
    affected_metric: str
    previous_value: float
    new_value: float
    impact: float
    trigger: str
    learning_context: str
    confidence: float
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "affected_metric": self.affected_metric,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "impact": self.impact,
            "trigger": self.trigger,
            "learning_context": self.learning_context,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
        }


def event_confidence(base: float, factors: EvolutionFactors) -> float:
    """Base confidence scaled by how much history backs the event."""
    data_quality = min(1.0, len(factors.recent_experiences) / T["confidence_full_data_experiences"])
    return min(1.0, base * (0.5 + 0.5 * data_quality))


def learning_context(factors: EvolutionFactors) -> str:
    concepts = ", ".join(e.concept for e in factors.recent_experiences[:3])
    return concepts or "Contexte d'apprentissage général"


class EvolutionEngine:
    """
    Runs the detector table over a learner's factors.

    Usage:
        engine = EvolutionEngine()
        metrics, events = engine.evolve(EvolutionMetrics(), factors)
    """

    def __init__(self, detectors: Optional[list[EvolutionDetector]] = None):
        self._detectors: dict[EvolutionEventType, EvolutionDetector] = {}
        for detector in DETECTORS if detectors is None else detectors:
            self.register_detector(detector)

    def register_detector(self, detector: EvolutionDetector) -> None:
        """Add or replace the detector for an event type."""
        if detector.affected_metric not in EvolutionMetrics.metric_names():
            raise ValueError(f"Unknown metric: {detector.affected_metric}")
        self._detectors[detector.event_type] = detector

    def get_detector(self, event_type: EvolutionEventType) -> Optional[EvolutionDetector]:
        return self._detectors.get(event_type)

    @property
    def detectors(self) -> list[EvolutionDetector]:
        return list(self._detectors.values())

    def detect_events(
        self, metrics: EvolutionMetrics, factors: EvolutionFactors
    ) -> list[EvolutionEvent]:
        """
        Evaluate every detector against the same metrics snapshot.

        previous/new values on the returned events are relative to the
        snapshot; ``evolve`` chains them when events share a metric.
        """
        events = []
        for detector in self._detectors.values():
            impact = max(0.0, float(detector.impact(factors, metrics)))
            if impact <= 0:
                continue
            previous = metrics.get(detector.affected_metric)
            events.append(
                EvolutionEvent(
                    event_type=detector.event_type,
                    affected_metric=detector.affected_metric,
                    previous_value=previous,
                    new_value=clamp(previous + impact),
                    impact=impact,
                    trigger=detector.trigger(factors),
                    learning_context=learning_context(factors),
                    confidence=event_confidence(detector.base_confidence, factors),
                )
            )

        if events:
            logger.debug(f"Evolution events detected: {[e.event_type.value for e in events]}")
        return events

    def apply_events(self, metrics: EvolutionMetrics, events: list[EvolutionEvent]) -> EvolutionMetrics:
        """Apply event impacts in order; values only grow and stay in [0, 1]."""
        updated = metrics
        for event in events:
            current = updated.get(event.affected_metric)
            updated = updated.with_value(event.affected_metric, max(current, current + event.impact))
        return updated

    def evolve(
        self, metrics: EvolutionMetrics, factors: EvolutionFactors
    ) -> tuple[EvolutionMetrics, list[EvolutionEvent]]:
        """Detect then apply; events carry the chained before/after values."""
        detected = self.detect_events(metrics, factors)
        updated = metrics
        chained = []
        for event in detected:
            previous = updated.get(event.affected_metric)
            updated = self.apply_events(updated, [event])
            chained.append(
                replace(event, previous_value=previous, new_value=updated.get(event.affected_metric))
            )
        return updated, chained
