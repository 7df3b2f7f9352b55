"""
Unit tests for the learner session manager.
"""

from datetime import datetime, timedelta, timezone

import pytest

from config import Settings
from lsf_exercises.adaptive import LearnerMood, LearnerSessionManager
from lsf_exercises.core import (
    CECRLLevel,
    EvaluationResult,
    Exercise,
    ExerciseType,
    ExerciseValidationError,
)


class DateClock:
    """Manually advanced wall clock."""

    def __init__(self):
        self.now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def exercise(concept_ids=("bonjour",), difficulty=0.5):
    """Minimal exercise for recording."""
    return Exercise(
        id="ex-1",
        type=ExerciseType.MULTIPLE_CHOICE,
        level=CECRLLevel.A1,
        difficulty=difficulty,
        content={},
        time_limit=60,
        concept_ids=tuple(concept_ids),
    )


def result(score):
    """Evaluation with the given score."""
    return EvaluationResult(exercise_id="ex-1", correct=score >= 0.7, score=score)


@pytest.fixture
def date_clock():
    """Fake wall clock."""
    return DateClock()


@pytest.fixture
def sessions(settings, date_clock):
    """Session manager on a fake clock."""
    return LearnerSessionManager(settings=settings, clock=date_clock)


class TestSessions:
    """Tests for session lifecycle."""

    def test_start_session(self, sessions):
        """Test level parsing and the initial snapshot."""
        state = sessions.start_session("alice", "b1")
        assert state.level == CECRLLevel.B1
        assert len(state.history) == 1
        assert sessions.start_session("alice") is state

    def test_invalid_level(self, sessions):
        """Test unknown levels are rejected."""
        with pytest.raises(ExerciseValidationError):
            sessions.start_session("alice", "Z1")

    def test_end_and_reset(self, sessions):
        """Test ending drops the learner and reset keeps the level."""
        sessions.start_session("alice", CECRLLevel.B2)
        sessions.record_interaction("alice", exercise(), result(1.0))
        reset = sessions.reset_learner("alice")
        assert reset.level == CECRLLevel.B2
        assert list(reset.experiences) == []

        ended = sessions.end_session("alice")
        assert ended is reset
        assert sessions.get_state("alice") is None
        assert sessions.end_session("alice") is None


class TestRecordInteraction:
    """Tests for record_interaction."""

    def test_successful_interaction(self, sessions):
        """Test mastery, challenges, mood and snapshot."""
        update = sessions.record_interaction("alice", exercise(), result(1.0), duration_seconds=40)
        state = sessions.get_state("alice")
        assert state is not None
        experience = state.experiences[-1]
        assert experience.concept == "bonjour"
        assert experience.method == "multiple-choice"
        assert experience.challenges == ["difficulté supérieure au niveau"]
        assert state.strongest_concepts == ["bonjour"]
        assert state.total_learning_time == 40
        assert update.mood == LearnerMood.CONFIDENT
        assert len(state.history) == 2

    def test_failed_interaction(self, sessions):
        """Test low scores add a challenge and frustrate."""
        update = sessions.record_interaction("bob", exercise(concept_ids=(), difficulty=0.1), result(0.1))
        experience = sessions.get_state("bob").experiences[-1]
        assert experience.concept == "multiple-choice"
        assert experience.challenges == ["réponse incorrecte"]
        assert update.mood == LearnerMood.FRUSTRATED
        assert sessions.get_state("bob").strongest_concepts == []

    def test_successes_evolve_metrics(self, sessions):
        """Test a run of successes fires detectors and raises learning speed."""
        update = None
        for i in range(5):
            update = sessions.record_interaction("alice", exercise(concept_ids=(f"c{i}",)), result(0.95))
        assert update.evolved
        assert update.metrics.learning_speed > 0.3
        assert sessions.get_state("alice").metrics == update.metrics

    def test_recent_window(self, date_clock):
        """Test experiences are bounded by the recent window."""
        sessions = LearnerSessionManager(
            settings=Settings(_env_file=None, evolution_recent_window=3), clock=date_clock
        )
        for _ in range(5):
            sessions.record_interaction("alice", exercise(), result(0.5))
        assert len(sessions.get_state("alice").experiences) == 3

    def test_history_limit(self, date_clock):
        """Test snapshots are bounded by the history limit."""
        sessions = LearnerSessionManager(
            settings=Settings(_env_file=None, evolution_history_limit=4), clock=date_clock
        )
        for _ in range(6):
            sessions.record_interaction("alice", exercise(), result(0.5))
        assert len(sessions.get_metrics_history("alice")) == 4
        assert len(sessions.get_metrics_history("alice", limit=2)) == 2
        assert sessions.get_metrics_history("nobody") == []

    def test_feedback_and_emotions(self, sessions):
        """Test side channels are stored with the clock time."""
        sessions.record_feedback("alice", "question", "Pourquoi ?")
        sessions.record_emotion("alice", "joie")
        sessions.record_social_interaction("alice", "atelier")
        state = sessions.get_state("alice")
        assert state.feedback_history[0].kind == "question"
        assert state.emotional_patterns[0].emotion == "joie"
        assert list(state.social_interactions) == ["atelier"]

    def test_side_channels_bounded(self, date_clock):
        """Test feedback, emotions and social entries keep only the latest ones."""
        sessions = LearnerSessionManager(
            settings=Settings(_env_file=None, evolution_side_channel_limit=2), clock=date_clock
        )
        for i in range(5):
            sessions.record_feedback("alice", "question", f"Pourquoi {i} ?")
            sessions.record_emotion("alice", "joie")
            sessions.record_social_interaction("alice", f"atelier {i}")
        state = sessions.get_state("alice")
        assert len(state.feedback_history) == 2
        assert len(state.emotional_patterns) == 2
        assert list(state.social_interactions) == ["atelier 3", "atelier 4"]
        assert state.feedback_history[-1].content == "Pourquoi 4 ?"
        assert len(state.factors().social_interactions) == 2


class TestGradualEvolution:
    """Tests for apply_gradual_evolution and trends."""

    def test_gradual_growth(self, sessions):
        """Test time and social bonuses, each capped by the rate."""
        state = sessions.start_session("alice")
        state.total_learning_time = 500
        sessions.record_social_interaction("alice", "café signe")
        sessions.record_social_interaction("alice", "atelier")

        metrics = sessions.apply_gradual_evolution("alice")
        assert metrics.knowledge_retention == pytest.approx(0.41)
        assert metrics.emotional_resilience == pytest.approx(0.406)
        assert metrics.global_confidence == pytest.approx(0.3)

    def test_gradual_rate_override(self, sessions):
        """Test an explicit rate caps every bonus."""
        state = sessions.start_session("alice")
        state.total_learning_time = 500
        metrics = sessions.apply_gradual_evolution("alice", rate=0.001)
        assert metrics.knowledge_retention == pytest.approx(0.401)

    def test_trends_per_day(self, sessions, date_clock):
        """Test trends are the change per day over the period."""
        state = sessions.start_session("alice")
        state.total_learning_time = 500
        date_clock.advance(days=2)
        sessions.apply_gradual_evolution("alice")
        trends = sessions.calculate_trends("alice")
        assert trends["knowledge_retention"] == pytest.approx(0.005)
        assert trends["learning_speed"] == 0.0

    def test_trends_without_data(self, sessions):
        """Test zeros with a single snapshot or an unknown learner."""
        sessions.start_session("alice")
        assert set(sessions.calculate_trends("alice").values()) == {0.0}
        assert set(sessions.calculate_trends("nobody").values()) == {0.0}
