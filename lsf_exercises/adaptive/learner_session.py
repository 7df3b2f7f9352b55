"""
Learner Session Manager.

Owns the per-learner state the evolution engine works on: recent
experiences, emotions, feedback and the metric history. Each evaluated
exercise is folded into the state, then the detector battery runs and
the resulting metrics are snapshotted for trend analysis.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from ..core.levels import CECRLLevel, parse_level
from ..core.models import EvaluationResult, Exercise
from .evolution import (
    EmotionalPattern,
    EvolutionEngine,
    EvolutionEvent,
    EvolutionFactors,
    EvolutionMetrics,
    FeedbackEntry,
    LearningExperience,
)

if TYPE_CHECKING:
    from config import Settings

MASTERY_SCORE = 0.9
CHALLENGE_SCORE = 0.5
MAX_STRONGEST_CONCEPTS = 50

# Gradual evolution
POSITIVE_EXPERIENCE = 0.6
SECONDS_PER_RETENTION_POINT = 10_000
CONFIDENCE_PER_EXPERIENCE = 0.005
RESILIENCE_PER_INTERACTION = 0.003


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LearnerMood(str, Enum):
    CONFIDENT = "confident"
    FOCUSED = "focused"
    CONFUSED = "confused"
    FRUSTRATED = "frustrated"


# (minimum recent success rate, mood)
MOOD_THRESHOLDS: tuple[tuple[float, LearnerMood], ...] = (
    (0.8, LearnerMood.CONFIDENT),
    (0.5, LearnerMood.FOCUSED),
    (0.3, LearnerMood.CONFUSED),
)


def mood_for(success_rate: float) -> LearnerMood:
    for minimum, mood in MOOD_THRESHOLDS:
        if success_rate >= minimum:
            return mood
    return LearnerMood.FRUSTRATED


@dataclass
class MetricsSnapshot:
    metrics: EvolutionMetrics
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class LearnerState:
    """Everything tracked about one learner."""

    learner_id: str
    level: CECRLLevel = CECRLLevel.A1
    mood: LearnerMood = LearnerMood.FOCUSED
    experiences: deque = field(default_factory=lambda: deque(maxlen=10))
    emotional_patterns: deque = field(default_factory=lambda: deque(maxlen=50))
    feedback_history: deque = field(default_factory=lambda: deque(maxlen=50))
    social_interactions: deque = field(default_factory=lambda: deque(maxlen=50))
    strongest_concepts: list[str] = field(default_factory=list)
    total_learning_time: float = 0.0
    metrics: EvolutionMetrics = field(default_factory=EvolutionMetrics)
    history: list[MetricsSnapshot] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)

    def factors(self) -> EvolutionFactors:
        return EvolutionFactors(
            recent_experiences=list(self.experiences),
            emotional_patterns=list(self.emotional_patterns),
            feedback_history=list(self.feedback_history),
            social_interactions=list(self.social_interactions),
            strongest_concepts=list(self.strongest_concepts),
            total_learning_time=self.total_learning_time,
        )


@dataclass
class EvolutionUpdate:
    """Result of one recorded interaction."""

    learner_id: str
    events: list[EvolutionEvent]
    metrics: EvolutionMetrics
    mood: LearnerMood

    @property
    def evolved(self) -> bool:
        return bool(self.events)


class LearnerSessionManager:
    """
    Track learners across exercises and evolve their metrics.

    Usage:
        sessions = LearnerSessionManager()
        sessions.start_session("alice", CECRLLevel.A1)
        update = sessions.record_interaction("alice", exercise, result)
    """

    def __init__(
        self,
        engine: Optional[EvolutionEngine] = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.settings = settings
        self.engine = engine or EvolutionEngine()
        self._clock = clock
        self._states: dict[str, LearnerState] = {}

    # ----- sessions ---------------------------------------------------------

    def start_session(self, learner_id: str, level: CECRLLevel | str = CECRLLevel.A1) -> LearnerState:
        """Create (or return) the state of a learner."""
        if learner_id in self._states:
            return self._states[learner_id]
        state = LearnerState(
            learner_id=learner_id,
            level=parse_level(level),
            experiences=deque(maxlen=self.settings.evolution_recent_window),
            emotional_patterns=deque(maxlen=self.settings.evolution_side_channel_limit),
            feedback_history=deque(maxlen=self.settings.evolution_side_channel_limit),
            social_interactions=deque(maxlen=self.settings.evolution_side_channel_limit),
            started_at=self._clock(),
        )
        state.history.append(MetricsSnapshot(state.metrics, self._clock()))
        self._states[learner_id] = state
        logger.info(f"Learner session started: {learner_id} ({state.level.value})")
        return state

    def get_state(self, learner_id: str) -> Optional[LearnerState]:
        return self._states.get(learner_id)

    def end_session(self, learner_id: str) -> Optional[LearnerState]:
        """Drop a learner and return its final state."""
        state = self._states.pop(learner_id, None)
        if state:
            logger.info(
                f"Learner session ended: {learner_id} "
                f"({len(state.history)} snapshots, {state.total_learning_time:.0f}s)"
            )
        return state

    def reset_learner(self, learner_id: str) -> LearnerState:
        level = self._states[learner_id].level if learner_id in self._states else CECRLLevel.A1
        self._states.pop(learner_id, None)
        return self.start_session(learner_id, level)

    def _require(self, learner_id: str) -> LearnerState:
        return self._states.get(learner_id) or self.start_session(learner_id)

    # ----- recording --------------------------------------------------------

    def record_interaction(
        self,
        learner_id: str,
        exercise: Exercise,
        result: EvaluationResult,
        method: Optional[str] = None,
        duration_seconds: float = 0.0,
    ) -> EvolutionUpdate:
        """
        Fold an evaluated exercise into the learner state and evolve it.

        Args:
            learner_id: Learner the result belongs to
            exercise: The exercise that was answered
            result: Its evaluation
            method: Learning method label (defaults to the exercise type)
            duration_seconds: Time spent on the exercise

        Returns:
            EvolutionUpdate with detected events and the new metrics
        """
        state = self._require(learner_id)
        concept = exercise.concept_ids[0] if exercise.concept_ids else exercise.type.slug
        challenges = []
        if exercise.difficulty > state.metrics.learning_speed:
            challenges.append("difficulté supérieure au niveau")
        if result.score < CHALLENGE_SCORE:
            challenges.append("réponse incorrecte")

        now = self._clock()
        state.experiences.append(
            LearningExperience(
                concept=concept,
                method=method or exercise.type.slug,
                success_rate=result.score,
                challenges=challenges,
                timestamp=now,
            )
        )
        state.total_learning_time += max(0.0, duration_seconds)

        if result.score >= MASTERY_SCORE and concept not in state.strongest_concepts:
            state.strongest_concepts.append(concept)
            del state.strongest_concepts[:-MAX_STRONGEST_CONCEPTS]

        recent = list(state.experiences)
        state.mood = mood_for(sum(e.success_rate for e in recent) / len(recent))

        state.metrics, events = self.engine.evolve(state.metrics, state.factors())
        self._snapshot(state, now)

        if events:
            logger.info(
                f"Learner {learner_id} evolved: "
                + ", ".join(f"{e.affected_metric} +{e.new_value - e.previous_value:.3f}" for e in events)
            )
        return EvolutionUpdate(learner_id=learner_id, events=events, metrics=state.metrics, mood=state.mood)

    def record_feedback(self, learner_id: str, kind: str, content: str) -> None:
        self._require(learner_id).feedback_history.append(FeedbackEntry(kind, content, self._clock()))

    def record_emotion(self, learner_id: str, emotion: str) -> None:
        self._require(learner_id).emotional_patterns.append(EmotionalPattern(emotion, self._clock()))

    def record_social_interaction(self, learner_id: str, description: str) -> None:
        self._require(learner_id).social_interactions.append(description)

    def _snapshot(self, state: LearnerState, timestamp: datetime) -> None:
        state.history.append(MetricsSnapshot(state.metrics, timestamp))
        del state.history[: -self.settings.evolution_history_limit]

    # ----- gradual evolution ------------------------------------------------

    def apply_gradual_evolution(self, learner_id: str, rate: Optional[float] = None) -> EvolutionMetrics:
        """
        Small time-based growth, independent of the detectors.

        Learning time raises retention, positive experiences raise
        confidence, social interactions raise resilience. Each bonus is
        capped by ``rate``.
        """
        state = self._require(learner_id)
        rate = self.settings.evolution_gradual_rate if rate is None else max(0.0, rate)
        metrics = state.metrics

        if state.total_learning_time > 0:
            bonus = min(rate, state.total_learning_time / SECONDS_PER_RETENTION_POINT)
            metrics = metrics.with_value("knowledge_retention", metrics.knowledge_retention + bonus)

        positive = [e for e in state.experiences if e.success_rate > POSITIVE_EXPERIENCE]
        if positive:
            bonus = min(rate, len(positive) * CONFIDENCE_PER_EXPERIENCE)
            metrics = metrics.with_value("global_confidence", metrics.global_confidence + bonus)

        if state.social_interactions:
            bonus = min(rate, len(state.social_interactions) * RESILIENCE_PER_INTERACTION)
            metrics = metrics.with_value("emotional_resilience", metrics.emotional_resilience + bonus)

        state.metrics = metrics
        self._snapshot(state, self._clock())
        return metrics

    # ----- history ----------------------------------------------------------

    def get_metrics_history(self, learner_id: str, limit: Optional[int] = None) -> list[MetricsSnapshot]:
        state = self._states.get(learner_id)
        if not state:
            return []
        return state.history[-limit:] if limit else list(state.history)

    def calculate_trends(self, learner_id: str, period_days: int = 7) -> dict[str, float]:
        """Change per day of every metric over the period; zeros without enough data."""
        trends = {name: 0.0 for name in EvolutionMetrics.metric_names()}
        cutoff = self._clock() - timedelta(days=period_days)
        recent = [s for s in self.get_metrics_history(learner_id) if s.timestamp >= cutoff]
        if len(recent) < 2:
            return trends

        first, last = recent[0], recent[-1]
        days = (last.timestamp - first.timestamp).total_seconds() / 86400
        if days == 0:
            return trends
        for name in trends:
            trends[name] = (last.metrics.get(name) - first.metrics.get(name)) / days
        return trends
