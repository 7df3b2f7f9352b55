"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from lsf_exercises.core import CECRLLevel, Exercise  # noqa: E402
from lsf_exercises.data import InMemoryConceptProvider  # noqa: E402
from lsf_exercises.data.catalog import load_catalog  # noqa: E402
from lsf_exercises.exercises import ConceptSet  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full pipeline)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def clock():
    """Fake monotonic clock."""
    return FakeClock()


@pytest.fixture(scope="session")
def seed_catalog():
    """Seed concepts and details."""
    concepts, details = load_catalog()
    return {c.id: c for c in concepts}, details


@pytest.fixture
def concept_set(seed_catalog):
    """Build a ConceptSet from seed catalog ids, the way the generator does."""
    by_id, details = seed_catalog

    def build(*ids: str) -> ConceptSet:
        targets = [by_id[i] for i in ids]
        excluded = set(ids)
        level = targets[0].level
        return ConceptSet(
            targets=targets,
            details={i: details[i] for i in ids},
            related={
                t.id: [by_id[r] for r in t.related_concepts if r not in excluded] for t in targets
            },
            peers=[c for c in by_id.values() if c.level == level and c.id not in excluded],
            pool=[c for c in by_id.values() if c.id not in excluded],
        )

    return build


@pytest.fixture
def make_exercise():
    """Wrap a strategy draft into an Exercise."""

    def build(strategy, draft, level: CECRLLevel, difficulty: float) -> Exercise:
        return Exercise(
            id=f"{strategy.exercise_type.slug}-test",
            type=strategy.exercise_type,
            level=level,
            difficulty=difficulty,
            content=draft.content,
            time_limit=draft.time_limit,
            skills=tuple(draft.skills),
            tags=tuple(draft.tags),
            explanation=draft.explanation,
            concept_ids=tuple(draft.concept_ids),
        )

    return build


@pytest_asyncio.fixture
async def provider():
    """Initialized in-memory concept provider over the seeded catalog."""
    provider = InMemoryConceptProvider()
    await provider.initialize()
    yield provider
    await provider.dispose()
