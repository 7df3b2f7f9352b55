"""
HTTP concept provider.

Reads concepts from a remote REST catalog. Provider errors are raised as
ConceptDataError and never retried here: retry policy belongs to callers.
"""

from __future__ import annotations

import random
from typing import Any, Sequence

import httpx
from loguru import logger

from ..core.errors import ConceptDataError
from ..core.models import Concept, ConceptDetails
from .concepts import (
    ConceptSearchCriteria,
    ConceptStatistics,
    validate_concept_id,
)


class HttpConceptProvider:
    """
    Concept provider backed by a REST API.

    Endpoints:
        GET  /concepts                 -> [concept, ...]
        GET  /concepts/{id}            -> concept | 404
        GET  /concepts/{id}/details    -> details | 404
        POST /concepts/search          -> [concept, ...]
        GET  /concepts/stats           -> statistics

    Usage:
        async with HttpConceptProvider("https://catalog.example/api") as provider:
            concept = await provider.get_by_id("bonjour")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HttpConceptProvider:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()

    # ========================================
    # Lifecycle
    # ========================================

    async def initialize(self, config: dict[str, Any] | None = None) -> None:
        self._ensure_client()

    async def dispose(self) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ========================================
    # Transport
    # ========================================

    async def _request(
        self,
        method: str,
        path: str,
        concept_id: str | None = None,
        **kwargs: Any,
    ) -> Any | None:
        """
        Issue a request and decode JSON.

        Returns None on 404. Raises ConceptDataError on anything else that
        is not a success.
        """
        client = self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Concept catalog unreachable ({method} {path}): {e}")
            raise ConceptDataError(
                f"Concept catalog unreachable: {e}",
                code=ConceptDataError.PROVIDER_UNAVAILABLE,
                concept_id=concept_id,
            ) from e

        if response.status_code == 404:
            return None
        if response.status_code >= 500:
            raise ConceptDataError(
                f"Concept catalog error {response.status_code} on {path}",
                code=ConceptDataError.PROVIDER_UNAVAILABLE,
                concept_id=concept_id,
            )
        if response.is_error:
            raise ConceptDataError(
                f"Concept catalog rejected {method} {path}: {response.status_code}",
                code=ConceptDataError.PROVIDER_ERROR,
                concept_id=concept_id,
            )
        return response.json()

    # ========================================
    # Lookups
    # ========================================

    async def get_by_id(self, concept_id: str) -> Concept | None:
        concept_id = validate_concept_id(concept_id)
        data = await self._request("GET", f"/concepts/{concept_id}", concept_id=concept_id)
        return Concept.from_dict(data) if data else None

    async def get_by_ids(self, concept_ids: Sequence[str]) -> list[Concept]:
        found = []
        for concept_id in concept_ids:
            concept = await self.get_by_id(concept_id)
            if concept is not None:
                found.append(concept)
        return found

    async def search(self, criteria: ConceptSearchCriteria) -> list[Concept]:
        data = await self._request("POST", "/concepts/search", json=criteria.to_dict())
        return [Concept.from_dict(item) for item in data or []]

    async def get_details(self, concept_id: str) -> ConceptDetails | None:
        concept_id = validate_concept_id(concept_id)
        data = await self._request(
            "GET", f"/concepts/{concept_id}/details", concept_id=concept_id
        )
        return ConceptDetails.from_dict(data) if data else None

    async def get_random_example(
        self, concept_id: str, rng: random.Random | None = None
    ) -> str | None:
        details = await self.get_details(concept_id)
        if details is None or not details.examples:
            return None
        return (rng or random.Random()).choice(details.examples)

    async def get_concept_ids(self) -> list[str]:
        data = await self._request("GET", "/concepts")
        return [item["id"] for item in data or []]

    async def get_statistics(self) -> ConceptStatistics:
        data = await self._request("GET", "/concepts/stats")
        return ConceptStatistics.from_dict(data or {})

    async def check_health(self) -> bool:
        try:
            await self._request("GET", "/concepts/stats")
        except ConceptDataError as e:
            logger.warning(f"Concept catalog health check failed: {e}")
            return False
        return True
