"""
Concept Data Provider implementations.

- InMemoryConceptProvider: seeded in-process catalog
- HttpConceptProvider: remote REST catalog (httpx)
- SqlConceptProvider: relational catalog (SQLAlchemy)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .concepts import (
    ConceptProvider,
    ConceptSearchCriteria,
    ConceptStatistics,
    InMemoryConceptProvider,
    apply_search,
    compute_statistics,
)
from .http_provider import HttpConceptProvider
from .sql_provider import SqlConceptProvider

if TYPE_CHECKING:
    from config import Settings


def build_concept_provider(settings: Settings | None = None) -> ConceptProvider:
    """Create the provider selected by ``settings.concept_backend``."""
    if settings is None:
        from config import get_settings

        settings = get_settings()

    if settings.concept_backend == "http":
        return HttpConceptProvider(
            settings.concept_api_url,
            api_key=settings.concept_api_key,
            timeout=settings.concept_api_timeout,
        )
    if settings.concept_backend == "sql":
        return SqlConceptProvider.from_url(
            settings.database_url, echo=settings.log_level == "DEBUG"
        )
    return InMemoryConceptProvider()


__all__ = [
    "ConceptProvider",
    "ConceptSearchCriteria",
    "ConceptStatistics",
    "HttpConceptProvider",
    "InMemoryConceptProvider",
    "SqlConceptProvider",
    "apply_search",
    "build_concept_provider",
    "compute_statistics",
]
