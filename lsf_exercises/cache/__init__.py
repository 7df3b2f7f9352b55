"""
Exercise caching.
"""

from .exercise_cache import CacheStats, ExerciseCache

__all__ = ["CacheStats", "ExerciseCache"]
