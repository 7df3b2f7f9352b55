"""
Unit tests for the HTTP concept provider.
"""

import json

import httpx
import pytest
import pytest_asyncio

from lsf_exercises.core import CECRLLevel, ConceptDataError
from lsf_exercises.data import ConceptSearchCriteria, HttpConceptProvider

BONJOUR = {
    "id": "bonjour",
    "text": "Bonjour",
    "level": "a1",
    "categories": ["salutations"],
    "related_concepts": ["merci"],
    "difficulty": 0.1,
    "frequency": 100,
    "video_url": "/v/bonjour.mp4",
}


def catalog_handler(request: httpx.Request) -> httpx.Response:
    """Fake remote catalog."""
    path = request.url.path
    if path.endswith("/concepts/bonjour"):
        return httpx.Response(200, json=BONJOUR)
    if path.endswith("/concepts/bonjour/details"):
        return httpx.Response(200, json={"id": "bonjour", "examples": ["Bonjour à tous"]})
    if path.endswith("/concepts/search"):
        body = json.loads(request.content)
        items = [BONJOUR] if body["level"] in (None, "A1") else []
        return httpx.Response(200, json=items)
    if path.endswith("/concepts/stats"):
        return httpx.Response(200, json={"total_concepts": 1, "most_used": "bonjour"})
    if path.endswith("/concepts/broken"):
        return httpx.Response(500)
    if path.endswith("/concepts/forbidden"):
        return httpx.Response(403)
    if path.endswith("/concepts"):
        return httpx.Response(200, json=[BONJOUR])
    return httpx.Response(404)


@pytest_asyncio.fixture
async def http_provider():
    """Provider wired to the fake catalog."""
    provider = HttpConceptProvider(
        "http://catalog.test/api/",
        api_key="secret",
        transport=httpx.MockTransport(catalog_handler),
    )
    await provider.initialize()
    yield provider
    await provider.dispose()


class TestHttpConceptProvider:
    """Tests for HttpConceptProvider."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, http_provider):
        """Test a concept payload is decoded."""
        concept = await http_provider.get_by_id("bonjour")
        assert concept.id == "bonjour"
        assert concept.level == CECRLLevel.A1
        assert concept.related_concepts == ("merci",)
        assert concept.has_media

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, http_provider):
        """Test 404 maps to None."""
        assert await http_provider.get_by_id("inconnu") is None
        assert await http_provider.get_details("inconnu") is None

    @pytest.mark.asyncio
    async def test_get_by_ids_drops_unknown(self, http_provider):
        """Test unknown ids are skipped."""
        found = await http_provider.get_by_ids(["inconnu", "bonjour"])
        assert [c.id for c in found] == ["bonjour"]

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, http_provider):
        """Test 5xx raises PROVIDER_UNAVAILABLE."""
        with pytest.raises(ConceptDataError) as exc_info:
            await http_provider.get_by_id("broken")
        assert exc_info.value.code == ConceptDataError.PROVIDER_UNAVAILABLE
        assert exc_info.value.concept_id == "broken"

    @pytest.mark.asyncio
    async def test_client_error_is_provider_error(self, http_provider):
        """Test other 4xx raise PROVIDER_ERROR."""
        with pytest.raises(ConceptDataError) as exc_info:
            await http_provider.get_by_id("forbidden")
        assert exc_info.value.code == ConceptDataError.PROVIDER_ERROR

    @pytest.mark.asyncio
    async def test_search_posts_criteria(self, http_provider):
        """Test search sends the criteria as JSON."""
        found = await http_provider.search(ConceptSearchCriteria(level=CECRLLevel.A1))
        assert [c.id for c in found] == ["bonjour"]
        assert await http_provider.search(ConceptSearchCriteria(level=CECRLLevel.C2)) == []

    @pytest.mark.asyncio
    async def test_details_and_example(self, http_provider):
        """Test details decoding and example lookup."""
        details = await http_provider.get_details("bonjour")
        assert details.examples == ("Bonjour à tous",)
        assert await http_provider.get_random_example("bonjour") == "Bonjour à tous"

    @pytest.mark.asyncio
    async def test_statistics_and_ids(self, http_provider):
        """Test statistics and id listing."""
        stats = await http_provider.get_statistics()
        assert stats.total_concepts == 1
        assert stats.most_used == "bonjour"
        assert await http_provider.get_concept_ids() == ["bonjour"]
        assert await http_provider.check_health() is True

    @pytest.mark.asyncio
    async def test_authorization_header(self):
        """Test the bearer token is sent."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=BONJOUR)

        async with HttpConceptProvider(
            "http://catalog.test/api", api_key="secret", transport=httpx.MockTransport(handler)
        ) as provider:
            await provider.get_by_id("bonjour")
        assert seen["auth"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test transport failures raise PROVIDER_UNAVAILABLE and fail health."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = HttpConceptProvider("http://catalog.test/api", transport=httpx.MockTransport(handler))
        with pytest.raises(ConceptDataError) as exc_info:
            await provider.get_statistics()
        assert exc_info.value.code == ConceptDataError.PROVIDER_UNAVAILABLE
        assert await provider.check_health() is False
        await provider.close()
