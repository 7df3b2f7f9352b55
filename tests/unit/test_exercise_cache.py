"""
Unit tests for the exercise cache.
"""

import pytest

from lsf_exercises.cache import ExerciseCache
from lsf_exercises.core import CECRLLevel, Exercise, ExerciseType


def make(exercise_id):
    """Minimal valid exercise."""
    return Exercise(
        id=exercise_id,
        type=ExerciseType.TEXT_ENTRY,
        level=CECRLLevel.A1,
        difficulty=0.2,
        content={"question": "?"},
        time_limit=60,
    )


@pytest.fixture
def cache(settings, clock):
    """Three-entry cache with a one-minute lifetime."""
    cache = ExerciseCache(max_size=3, max_age=60, clock=clock, settings=settings)
    yield cache
    cache.destroy()


class TestExerciseCache:
    """Tests for ExerciseCache."""

    def test_set_and_get(self, cache):
        """Test a stored exercise is returned."""
        exercise = make("a")
        cache.set("a", exercise)
        assert cache.get("a") is exercise
        assert "a" in cache
        assert len(cache) == 1

    def test_evicts_least_recently_used(self, cache):
        """Test a read refreshes recency before eviction."""
        for key in ("a", "b", "c"):
            cache.set(key, make(key))
        cache.get("a")
        cache.set("d", make("d"))
        assert cache.keys() == ["c", "a", "d"]
        assert cache.get("b") is None

    def test_overwrite_does_not_evict(self, cache):
        """Test replacing a key keeps the size and refreshes it."""
        for key in ("a", "b", "c"):
            cache.set(key, make(key))
        replacement = make("a2")
        cache.set("a", replacement)
        assert cache.size() == 3
        assert cache.keys() == ["b", "c", "a"]
        assert cache.get("a") is replacement

    def test_expired_entry_is_a_miss(self, cache, clock):
        """Test entries older than max_age are dropped on read."""
        cache.set("a", make("a"))
        clock.advance(61)
        assert cache.get("a") is None
        assert "a" not in cache
        assert cache.stats().total_misses == 1

    def test_overwrite_refreshes_age(self, cache, clock):
        """Test rewriting a key restarts its lifetime."""
        cache.set("a", make("a"))
        clock.advance(50)
        cache.set("a", make("a"))
        clock.advance(50)
        assert cache.get("a") is not None

    def test_invalid_writes_ignored(self, cache):
        """Test bad keys and malformed exercises are logged and dropped."""
        cache.set("", make("a"))
        cache.set("a", {"id": "a"})
        cache.set("b", make(""))
        assert len(cache) == 0

    def test_cleanup(self, cache, clock):
        """Test cleanup evicts old entries only."""
        cache.set("old", make("old"))
        clock.advance(40)
        cache.set("new", make("new"))
        clock.advance(30)
        assert cache.cleanup() == 1
        assert cache.keys() == ["new"]
        assert cache.cleanup(max_age=0) == 1
        assert len(cache) == 0

    def test_stats(self, cache, clock):
        """Test hit rate and oldest entry."""
        cache.set("a", make("a"))
        clock.advance(5)
        cache.set("b", make("b"))
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert stats.size == 2
        assert stats.max_size == 3
        assert stats.total_hits == 1
        assert stats.total_misses == 1
        assert stats.hit_rate == 0.5
        assert stats.oldest_entry_timestamp == 1000.0
        assert stats.to_dict()["size"] == 2

    def test_delete_and_clear(self, cache):
        """Test removal operations."""
        cache.set("a", make("a"))
        cache.set("b", make("b"))
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert len(cache) == 0

    def test_settings_defaults(self, settings):
        """Test bounds come from settings when not given."""
        cache = ExerciseCache(settings=settings)
        assert cache.max_size == settings.exercise_cache_max_size
        assert cache.max_age == settings.exercise_cache_max_age_seconds
        assert ExerciseCache(max_size=0, settings=settings).max_size == 1

    def test_auto_cleanup_lifecycle(self, cache):
        """Test the timer starts, stops and is never restarted after destroy."""
        cache.start_auto_cleanup(interval=3600)
        assert cache.auto_cleanup_running
        cache.stop_auto_cleanup()
        assert not cache.auto_cleanup_running
        cache.start_auto_cleanup(interval=3600)
        cache.destroy()
        assert not cache.auto_cleanup_running
        cache.start_auto_cleanup(interval=3600)
        assert not cache.auto_cleanup_running

    def test_destroy_is_idempotent(self, cache):
        """Test writes after destroy are ignored."""
        cache.set("a", make("a"))
        cache.destroy()
        cache.destroy()
        cache.set("b", make("b"))
        assert len(cache) == 0
