"""
Adaptive layer: difficulty adaptation and learner evolution.
"""

from .difficulty_adapter import DifficultyAdapter, calculate_adapted_difficulty
from .evolution import (
    DETECTORS,
    EVOLUTION_THRESHOLDS,
    EmotionalPattern,
    EvolutionDetector,
    EvolutionEngine,
    EvolutionEvent,
    EvolutionEventType,
    EvolutionFactors,
    EvolutionMetrics,
    FeedbackEntry,
    LearningExperience,
)
from .learner_session import (
    EvolutionUpdate,
    LearnerMood,
    LearnerSessionManager,
    LearnerState,
    MetricsSnapshot,
)

__all__ = [
    "DifficultyAdapter",
    "calculate_adapted_difficulty",
    "DETECTORS",
    "EVOLUTION_THRESHOLDS",
    "EmotionalPattern",
    "EvolutionDetector",
    "EvolutionEngine",
    "EvolutionEvent",
    "EvolutionEventType",
    "EvolutionFactors",
    "EvolutionMetrics",
    "FeedbackEntry",
    "LearningExperience",
    "EvolutionUpdate",
    "LearnerMood",
    "LearnerSessionManager",
    "LearnerState",
    "MetricsSnapshot",
]
