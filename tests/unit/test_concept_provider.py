"""
Unit tests for the in-memory concept provider and shared search semantics.
"""

import random

import pytest

from lsf_exercises.core import CECRLLevel, Concept, ConceptDataError
from lsf_exercises.data import (
    ConceptProvider,
    ConceptSearchCriteria,
    InMemoryConceptProvider,
    apply_search,
    compute_statistics,
)
from lsf_exercises.data.catalog import CONCEPT_RECORDS, load_catalog


@pytest.fixture
def small_catalog():
    """Four hand-built concepts."""
    return [
        Concept(id="a", text="Alpha", level=CECRLLevel.A1, categories=("x",), difficulty=0.1, frequency=5),
        Concept(id="b", text="Beta", level=CECRLLevel.A1, categories=("y",), difficulty=0.3, frequency=9,
                video_url="/b.mp4"),
        Concept(id="c", text="Gamma", level=CECRLLevel.B1, categories=("x", "y"), difficulty=0.5, frequency=9),
        Concept(id="d", text="Delta", level=CECRLLevel.C2, categories=("z",), difficulty=0.9, frequency=1),
    ]


class TestSeedCatalog:
    """Tests for the seed catalog."""

    def test_every_level_represented(self):
        """Test each CECRL level has at least one concept."""
        concepts, _ = load_catalog()
        assert {c.level for c in concepts} == set(CECRLLevel)

    def test_details_for_every_concept(self):
        """Test every concept has a details record with examples."""
        concepts, details = load_catalog()
        assert len(concepts) == len(CONCEPT_RECORDS)
        for concept in concepts:
            assert details[concept.id].examples

    def test_related_concepts_exist(self):
        """Test related ids point at catalog entries."""
        concepts, _ = load_catalog()
        ids = {c.id for c in concepts}
        for concept in concepts:
            assert set(concept.related_concepts) <= ids


class TestApplySearch:
    """Tests for apply_search."""

    def test_level_filter(self, small_catalog):
        """Test level filtering."""
        found = apply_search(small_catalog, ConceptSearchCriteria(level=CECRLLevel.A1))
        assert [c.id for c in found] == ["a", "b"]

    def test_categories_match_any(self, small_catalog):
        """Test a concept matches when it shares any category."""
        found = apply_search(small_catalog, ConceptSearchCriteria(categories=("y", "z")))
        assert [c.id for c in found] == ["b", "c", "d"]

    def test_difficulty_bounds_inclusive(self, small_catalog):
        """Test min/max difficulty are inclusive."""
        found = apply_search(small_catalog, ConceptSearchCriteria(min_difficulty=0.3, max_difficulty=0.5))
        assert [c.id for c in found] == ["b", "c"]

    def test_exclude_and_text(self, small_catalog):
        """Test exclusions and case-insensitive text search."""
        found = apply_search(small_catalog, ConceptSearchCriteria(search_text="TA", exclude_ids=("b",)))
        assert [c.id for c in found] == ["d"]

    def test_text_matches_category(self, small_catalog):
        """Test text search also looks at categories."""
        found = apply_search(small_catalog, ConceptSearchCriteria(search_text="z"))
        assert [c.id for c in found] == ["d"]

    def test_frequency_sort_is_stable_then_limit(self, small_catalog):
        """Test equal frequencies keep catalog order before the limit applies."""
        found = apply_search(small_catalog, ConceptSearchCriteria(sort_by_frequency=True, limit=3))
        assert [c.id for c in found] == ["b", "c", "a"]

    def test_require_media(self, small_catalog):
        """Test media filter."""
        found = apply_search(small_catalog, ConceptSearchCriteria(require_media=True))
        assert [c.id for c in found] == ["b"]

    def test_zero_limit(self, small_catalog):
        """Test a zero limit returns nothing."""
        assert apply_search(small_catalog, ConceptSearchCriteria(limit=0)) == []


class TestStatistics:
    """Tests for compute_statistics."""

    def test_statistics(self, small_catalog):
        """Test totals, distributions and usage extremes."""
        stats = compute_statistics(small_catalog)
        assert stats.total_concepts == 4
        assert stats.level_distribution == {"A1": 2, "B1": 1, "C2": 1}
        assert stats.category_distribution["x"] == 2
        assert stats.most_used == "b"
        assert stats.least_used == "d"
        assert stats.average_difficulty == pytest.approx(0.45)

    def test_empty_statistics(self):
        """Test an empty catalog gives zeroed statistics."""
        stats = compute_statistics([])
        assert stats.total_concepts == 0
        assert stats.most_used is None


class TestInMemoryConceptProvider:
    """Tests for InMemoryConceptProvider."""

    def test_implements_protocol(self):
        """Test the provider satisfies the ConceptProvider protocol."""
        assert isinstance(InMemoryConceptProvider(), ConceptProvider)

    @pytest.mark.asyncio
    async def test_use_before_initialize_raises(self):
        """Test lookups before initialize raise SERVICE_NOT_INITIALIZED."""
        provider = InMemoryConceptProvider()
        with pytest.raises(ConceptDataError) as exc_info:
            await provider.get_by_id("bonjour")
        assert exc_info.value.code == ConceptDataError.SERVICE_NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_get_by_id(self, provider):
        """Test known and unknown ids."""
        concept = await provider.get_by_id("bonjour")
        assert concept.text == "Bonjour"
        assert await provider.get_by_id("inconnu") is None

    @pytest.mark.asyncio
    async def test_empty_id_raises(self, provider):
        """Test blank ids raise INVALID_CONCEPT_ID."""
        with pytest.raises(ConceptDataError) as exc_info:
            await provider.get_by_id("  ")
        assert exc_info.value.code == ConceptDataError.INVALID_CONCEPT_ID

    @pytest.mark.asyncio
    async def test_get_by_ids_keeps_order_and_drops_unknown(self, provider):
        """Test request order is preserved."""
        found = await provider.get_by_ids(["merci", "inconnu", "bonjour"])
        assert [c.id for c in found] == ["merci", "bonjour"]

    @pytest.mark.asyncio
    async def test_search_results_are_copies(self, provider):
        """Test mutating a result list does not poison the search cache."""
        criteria = ConceptSearchCriteria(level=CECRLLevel.A1)
        first = await provider.search(criteria)
        first.clear()
        second = await provider.search(criteria)
        assert second
        assert all(c.level == CECRLLevel.A1 for c in second)

    @pytest.mark.asyncio
    async def test_random_example_uses_rng(self, provider):
        """Test the same seed picks the same example."""
        first = await provider.get_random_example("bonjour", random.Random(3))
        second = await provider.get_random_example("bonjour", random.Random(3))
        details = await provider.get_details("bonjour")
        assert first == second
        assert first in details.examples

    @pytest.mark.asyncio
    async def test_random_example_unknown(self, provider):
        """Test unknown concepts have no example."""
        assert await provider.get_random_example("inconnu") is None

    @pytest.mark.asyncio
    async def test_health_and_dispose(self, provider):
        """Test health follows the lifecycle."""
        assert await provider.check_health() is True
        await provider.dispose()
        assert await provider.check_health() is False

    @pytest.mark.asyncio
    async def test_statistics(self, provider):
        """Test statistics over the seed catalog."""
        stats = await provider.get_statistics()
        assert stats.total_concepts == len(CONCEPT_RECORDS)
        assert sum(stats.level_distribution.values()) == stats.total_concepts

    @pytest.mark.asyncio
    async def test_by_category_and_level(self, provider):
        """Test convenience lookups."""
        polite = await provider.get_by_category("politesse")
        assert {"merci", "s_il_vous_plait"} <= {c.id for c in polite}
        c2 = await provider.get_by_level(CECRLLevel.C2)
        assert all(c.level == CECRLLevel.C2 for c in c2)
