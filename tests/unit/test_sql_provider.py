"""
Unit tests for the SQL concept provider (in-memory SQLite).
"""

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from lsf_exercises.core import CECRLLevel, ConceptDataError
from lsf_exercises.data import ConceptSearchCriteria, SqlConceptProvider
from lsf_exercises.data.catalog import load_catalog


@pytest_asyncio.fixture
async def sql_provider():
    """Seeded SQLite provider shared over a single connection."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    provider = SqlConceptProvider(engine)
    await provider.initialize()
    concepts, details = load_catalog()
    provider.seed(concepts, details)
    yield provider
    await provider.dispose()


class TestSqlConceptProvider:
    """Tests for SqlConceptProvider."""

    @pytest.mark.asyncio
    async def test_round_trip(self, sql_provider):
        """Test a seeded concept reads back with its list columns."""
        concept = await sql_provider.get_by_id("famille")
        assert concept.level == CECRLLevel.A1
        assert concept.categories == ("famille",)
        assert concept.related_concepts == ("maman", "papa")
        assert concept.difficulty == pytest.approx(0.18)

    @pytest.mark.asyncio
    async def test_unknown_id(self, sql_provider):
        """Test unknown ids return None."""
        assert await sql_provider.get_by_id("inconnu") is None
        assert await sql_provider.get_details("inconnu") is None

    @pytest.mark.asyncio
    async def test_invalid_id(self, sql_provider):
        """Test blank ids raise INVALID_CONCEPT_ID."""
        with pytest.raises(ConceptDataError) as exc_info:
            await sql_provider.get_details("")
        assert exc_info.value.code == ConceptDataError.INVALID_CONCEPT_ID

    @pytest.mark.asyncio
    async def test_details(self, sql_provider):
        """Test detail JSON columns are decoded."""
        details = await sql_provider.get_details("apprendre")
        assert details.grammar["type"] == "verbe"
        assert len(details.examples) == 3
        assert "Paris" in details.variants

    @pytest.mark.asyncio
    async def test_search_by_level_and_category(self, sql_provider):
        """Test level push-down combined with in-process filters."""
        found = await sql_provider.search(
            ConceptSearchCriteria(level=CECRLLevel.A1, categories=("politesse",))
        )
        assert {c.id for c in found} == {"merci", "s_il_vous_plait", "bonjour"}

    @pytest.mark.asyncio
    async def test_statistics(self, sql_provider):
        """Test statistics match the seed catalog."""
        concepts, _ = load_catalog()
        stats = await sql_provider.get_statistics()
        assert stats.total_concepts == len(concepts)
        assert stats.most_used == "bonjour"
        assert len(await sql_provider.get_concept_ids()) == len(concepts)

    @pytest.mark.asyncio
    async def test_health(self, sql_provider):
        """Test a reachable database is healthy."""
        assert await sql_provider.check_health() is True

    @pytest.mark.asyncio
    async def test_missing_table_is_provider_error(self):
        """Test querying an unseeded database raises ConceptDataError."""
        provider = SqlConceptProvider(create_engine("sqlite://"))
        with pytest.raises(ConceptDataError):
            await provider.get_by_id("bonjour")
        await provider.dispose()
