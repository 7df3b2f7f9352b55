"""
Concept Data Provider.

The provider contract is asynchronous because real catalogs live behind a
network or a database. Lookups that find nothing return None or an empty
list; a provider that cannot answer at all raises ConceptDataError.
"""

from __future__ import annotations

import random
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from loguru import logger

from ..core.errors import ConceptDataError
from ..core.levels import CECRLLevel
from ..core.models import Concept, ConceptDetails

SEARCH_CACHE_SIZE = 100


@dataclass(frozen=True)
class ConceptSearchCriteria:
    """Filters applied by ``search``. Unset fields do not filter."""

    level: CECRLLevel | None = None
    categories: tuple[str, ...] = ()
    min_difficulty: float | None = None
    max_difficulty: float | None = None
    exclude_ids: tuple[str, ...] = ()
    search_text: str | None = None
    limit: int | None = None
    sort_by_frequency: bool = False
    require_media: bool = False

    def cache_key(self) -> str:
        return "|".join(
            [
                self.level.value if self.level else "",
                ",".join(sorted(self.categories)),
                "" if self.min_difficulty is None else f"{self.min_difficulty:.4f}",
                "" if self.max_difficulty is None else f"{self.max_difficulty:.4f}",
                ",".join(sorted(self.exclude_ids)),
                (self.search_text or "").lower(),
                "" if self.limit is None else str(self.limit),
                "f" if self.sort_by_frequency else "",
                "m" if self.require_media else "",
            ]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value if self.level else None,
            "categories": list(self.categories),
            "min_difficulty": self.min_difficulty,
            "max_difficulty": self.max_difficulty,
            "exclude_ids": list(self.exclude_ids),
            "search_text": self.search_text,
            "limit": self.limit,
            "sort_by_frequency": self.sort_by_frequency,
            "require_media": self.require_media,
        }


@dataclass
class ConceptStatistics:
    """Aggregate view of a catalog."""

    total_concepts: int = 0
    level_distribution: dict[str, int] = field(default_factory=dict)
    category_distribution: dict[str, int] = field(default_factory=dict)
    most_used: str | None = None
    least_used: str | None = None
    average_difficulty: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_concepts": self.total_concepts,
            "level_distribution": self.level_distribution,
            "category_distribution": self.category_distribution,
            "most_used": self.most_used,
            "least_used": self.least_used,
            "average_difficulty": self.average_difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConceptStatistics:
        return cls(
            total_concepts=int(data.get("total_concepts", 0)),
            level_distribution=dict(data.get("level_distribution") or {}),
            category_distribution=dict(data.get("category_distribution") or {}),
            most_used=data.get("most_used"),
            least_used=data.get("least_used"),
            average_difficulty=float(data.get("average_difficulty", 0.0)),
        )


@runtime_checkable
class ConceptProvider(Protocol):
    """Query interface of a concept catalog."""

    async def get_by_id(self, concept_id: str) -> Concept | None: ...

    async def get_by_ids(self, concept_ids: Sequence[str]) -> list[Concept]: ...

    async def search(self, criteria: ConceptSearchCriteria) -> list[Concept]: ...

    async def get_details(self, concept_id: str) -> ConceptDetails | None: ...

    async def get_random_example(
        self, concept_id: str, rng: random.Random | None = None
    ) -> str | None: ...

    async def get_statistics(self) -> ConceptStatistics: ...

    async def check_health(self) -> bool: ...


# =============================================================================
# Shared search semantics
# =============================================================================


def apply_search(concepts: Iterable[Concept], criteria: ConceptSearchCriteria) -> list[Concept]:
    """
    Filter concepts in the fixed order: level, categories, difficulty bounds,
    exclusions, text, media, frequency sort, limit.
    """
    results = list(concepts)

    if criteria.level is not None:
        results = [c for c in results if c.level == criteria.level]

    if criteria.categories:
        wanted = set(criteria.categories)
        results = [c for c in results if wanted.intersection(c.categories)]

    if criteria.min_difficulty is not None:
        results = [c for c in results if c.difficulty >= criteria.min_difficulty]
    if criteria.max_difficulty is not None:
        results = [c for c in results if c.difficulty <= criteria.max_difficulty]

    if criteria.exclude_ids:
        excluded = set(criteria.exclude_ids)
        results = [c for c in results if c.id not in excluded]

    if criteria.search_text:
        needle = criteria.search_text.lower()
        results = [
            c for c in results
            if needle in c.text.lower() or any(needle in cat.lower() for cat in c.categories)
        ]

    if criteria.require_media:
        results = [c for c in results if c.has_media]

    if criteria.sort_by_frequency:
        # sorted() is stable: equal frequencies keep catalog order
        results = sorted(results, key=lambda c: c.frequency, reverse=True)

    if criteria.limit is not None:
        results = results[: max(0, criteria.limit)]

    return results


def compute_statistics(concepts: Sequence[Concept]) -> ConceptStatistics:
    """Build catalog statistics from a list of concepts."""
    if not concepts:
        return ConceptStatistics()

    levels = Counter(c.level.value for c in concepts)
    categories = Counter(cat for c in concepts for cat in c.categories)
    by_usage = sorted(concepts, key=lambda c: c.frequency, reverse=True)

    return ConceptStatistics(
        total_concepts=len(concepts),
        level_distribution=dict(sorted(levels.items())),
        category_distribution=dict(categories.most_common()),
        most_used=by_usage[0].id,
        least_used=by_usage[-1].id,
        average_difficulty=round(sum(c.difficulty for c in concepts) / len(concepts), 4),
    )


def validate_concept_id(concept_id: str) -> str:
    """Reject empty ids with INVALID_CONCEPT_ID."""
    if not isinstance(concept_id, str) or not concept_id.strip():
        raise ConceptDataError(
            "Concept id must be a non-empty string",
            code=ConceptDataError.INVALID_CONCEPT_ID,
            concept_id=concept_id if isinstance(concept_id, str) else None,
        )
    return concept_id.strip()


# =============================================================================
# In-memory provider
# =============================================================================


class InMemoryConceptProvider:
    """
    Concept provider backed by an in-process table.

    Implements the Lifecycle capability: it must be initialized before use
    and raises SERVICE_NOT_INITIALIZED otherwise.

    Usage:
        provider = InMemoryConceptProvider()
        await provider.initialize()
        concepts = await provider.search(ConceptSearchCriteria(level=CECRLLevel.A1))
    """

    def __init__(
        self,
        concepts: Sequence[Concept] | None = None,
        details: dict[str, ConceptDetails] | None = None,
    ):
        if concepts is None:
            from .catalog import load_catalog

            concepts, seeded_details = load_catalog()
            details = seeded_details if details is None else details
        self._concepts: dict[str, Concept] = {c.id: c for c in concepts}
        self._details: dict[str, ConceptDetails] = dict(details or {})
        self._search_cache: OrderedDict[str, list[Concept]] = OrderedDict()
        self._initialized = False

    # ========================================
    # Lifecycle
    # ========================================

    async def initialize(self, config: dict[str, Any] | None = None) -> None:
        self._initialized = True
        logger.info(f"Concept catalog ready: {len(self._concepts)} concepts")

    async def dispose(self) -> None:
        self._search_cache.clear()
        self._initialized = False
        logger.debug("Concept catalog disposed")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ConceptDataError(
                "Concept provider used before initialize()",
                code=ConceptDataError.SERVICE_NOT_INITIALIZED,
            )

    # ========================================
    # Lookups
    # ========================================

    async def get_by_id(self, concept_id: str) -> Concept | None:
        self._ensure_initialized()
        return self._concepts.get(validate_concept_id(concept_id))

    async def get_by_ids(self, concept_ids: Sequence[str]) -> list[Concept]:
        """Concepts for the given ids in request order; unknown ids are dropped."""
        self._ensure_initialized()
        found = []
        for concept_id in concept_ids:
            concept = self._concepts.get(validate_concept_id(concept_id))
            if concept is not None:
                found.append(concept)
        return found

    async def search(self, criteria: ConceptSearchCriteria) -> list[Concept]:
        self._ensure_initialized()
        key = criteria.cache_key()
        if key in self._search_cache:
            return list(self._search_cache[key])

        results = apply_search(self._concepts.values(), criteria)

        if len(self._search_cache) >= SEARCH_CACHE_SIZE:
            self._search_cache.popitem(last=False)
        self._search_cache[key] = results
        logger.debug(f"Concept search [{key}] -> {len(results)} results")
        return list(results)

    async def get_details(self, concept_id: str) -> ConceptDetails | None:
        self._ensure_initialized()
        return self._details.get(validate_concept_id(concept_id))

    async def get_random_example(
        self, concept_id: str, rng: random.Random | None = None
    ) -> str | None:
        details = await self.get_details(concept_id)
        if details is None or not details.examples:
            return None
        return (rng or random.Random()).choice(details.examples)

    async def get_concept_ids(self) -> list[str]:
        self._ensure_initialized()
        return list(self._concepts)

    async def get_by_category(self, category: str) -> list[Concept]:
        return await self.search(ConceptSearchCriteria(categories=(category,)))

    async def get_by_level(self, level: CECRLLevel) -> list[Concept]:
        return await self.search(ConceptSearchCriteria(level=level))

    async def get_statistics(self) -> ConceptStatistics:
        self._ensure_initialized()
        return compute_statistics(list(self._concepts.values()))

    async def check_health(self) -> bool:
        return self._initialized and bool(self._concepts)
