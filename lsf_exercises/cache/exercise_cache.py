"""
Exercise Cache.

Bounded LRU cache of generated exercises with age-based expiry. Keys are
kept in an OrderedDict in recency order, so the least recently used entry
is always at the front. A re-entrant lock makes check-evict-insert atomic
for callers on several threads. No operation raises: invalid writes are
logged and ignored.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from ..core.models import Exercise

if TYPE_CHECKING:
    from config import Settings


@dataclass
class CacheStats:
    """Snapshot of cache usage."""

    size: int
    max_size: int
    hit_rate: float
    total_hits: int
    total_misses: int
    oldest_entry_timestamp: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


def _is_valid_exercise(exercise: object) -> bool:
    return (
        isinstance(exercise, Exercise)
        and bool(exercise.id)
        and exercise.type is not None
        and isinstance(exercise.content, dict)
    )


class ExerciseCache:
    """
    LRU + TTL cache for exercises.

    Usage:
        cache = ExerciseCache(max_size=100, max_age=3600)
        cache.set("exercise:abc", exercise)
        cache.get("exercise:abc")

    Args:
        max_size: Maximum number of entries
        max_age: Entry lifetime in seconds
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        max_age: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        settings: Settings | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()
        self.settings = settings
        self.max_size = max(1, max_size if max_size is not None else settings.exercise_cache_max_size)
        self.max_age = max_age if max_age is not None else settings.exercise_cache_max_age_seconds
        self._clock = clock

        self._entries: OrderedDict[str, Exercise] = OrderedDict()
        self._created: dict[str, float] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

        self._timer: Optional[threading.Timer] = None
        self._cleanup_interval: Optional[float] = None
        self._destroyed = False

    # ----- core operations --------------------------------------------------

    def set(self, key: str, exercise: Exercise) -> None:
        """Store an exercise; evicts least recently used entries when full."""
        if self._destroyed:
            logger.warning(f"Cache destroyed, ignoring set for key {key!r}")
            return
        if not isinstance(key, str) or not key:
            logger.warning(f"Invalid cache key rejected: {key!r}")
            return
        if not _is_valid_exercise(exercise):
            logger.warning(f"Malformed exercise rejected for key {key!r}")
            return

        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            else:
                while len(self._entries) >= self.max_size:
                    evicted, _ = self._entries.popitem(last=False)
                    self._created.pop(evicted, None)
                    logger.debug(f"Cache evicted LRU entry: {evicted}")
            self._entries[key] = exercise
            self._created[key] = self._clock()

    def get(self, key: str) -> Optional[Exercise]:
        """Return a live entry and mark it most recently used, else None."""
        with self._lock:
            exercise = self._entries.get(key)
            if exercise is None:
                self._misses += 1
                logger.debug(f"Cache miss: {key}")
                return None

            if self._is_expired(key, self._clock(), self.max_age):
                self._remove(key)
                self._misses += 1
                logger.debug(f"Cache entry expired: {key}")
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            logger.debug(f"Cache hit: {key}")
            return exercise

    def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._created.clear()

    def cleanup(self, max_age: Optional[float] = None) -> int:
        """Evict every entry older than ``max_age`` (default: the cache's); returns the count."""
        age = self.max_age if max_age is None else max_age
        with self._lock:
            now = self._clock()
            expired = [key for key in self._entries if self._is_expired(key, now, age)]
            for key in expired:
                self._remove(key)
        if expired:
            logger.debug(f"Cache cleanup evicted {len(expired)} entries")
        return len(expired)

    def _is_expired(self, key: str, now: float, max_age: float) -> bool:
        return now - self._created.get(key, now) > max_age

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)
        self._created.pop(key, None)

    # ----- inspection -------------------------------------------------------

    def stats(self) -> CacheStats:
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                size=len(self._entries),
                max_size=self.max_size,
                hit_rate=self._hits / lookups if lookups else 0.0,
                total_hits=self._hits,
                total_misses=self._misses,
                oldest_entry_timestamp=min(self._created.values()) if self._created else None,
            )

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # ----- background cleanup -----------------------------------------------

    def start_auto_cleanup(self, interval: Optional[float] = None) -> None:
        """Run ``cleanup`` every ``interval`` seconds on a daemon timer."""
        if self._destroyed:
            return
        self.stop_auto_cleanup()
        self._cleanup_interval = (
            interval if interval is not None else self.settings.exercise_cache_cleanup_interval_seconds
        )
        self._schedule()
        logger.info(f"Cache auto-cleanup started (every {self._cleanup_interval}s)")

    def _schedule(self) -> None:
        with self._lock:
            if self._destroyed or self._cleanup_interval is None:
                return
            self._timer = threading.Timer(self._cleanup_interval, self._run_cleanup)
            self._timer.daemon = True
            self._timer.start()

    def _run_cleanup(self) -> None:
        if self._destroyed or self._cleanup_interval is None:
            return
        self.cleanup()
        self._schedule()

    def stop_auto_cleanup(self) -> None:
        with self._lock:
            self._cleanup_interval = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def auto_cleanup_running(self) -> bool:
        return self._timer is not None

    def destroy(self) -> None:
        """Stop the timer and drop every entry. Safe to call repeatedly."""
        if self._destroyed:
            return
        self.stop_auto_cleanup()
        self._destroyed = True
        self.clear()
        logger.debug("Exercise cache destroyed")
