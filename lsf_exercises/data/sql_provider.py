"""
SQL concept provider.

Reads a read-only concept catalog through SQLAlchemy. List-valued columns
(categories, related concepts, examples...) are stored as JSON text so the
schema works on both PostgreSQL and SQLite.
"""

from __future__ import annotations

import json
import random
from typing import Any, Sequence

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..core.errors import ConceptDataError
from ..core.models import Concept, ConceptDetails
from .concepts import (
    ConceptSearchCriteria,
    ConceptStatistics,
    apply_search,
    compute_statistics,
    validate_concept_id,
)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS lsf_concepts (
        id VARCHAR(100) PRIMARY KEY,
        text VARCHAR(255) NOT NULL,
        level VARCHAR(2) NOT NULL,
        categories TEXT NOT NULL DEFAULT '[]',
        related_concepts TEXT NOT NULL DEFAULT '[]',
        difficulty REAL NOT NULL DEFAULT 0.5,
        frequency INTEGER NOT NULL DEFAULT 0,
        video_url VARCHAR(500),
        image_url VARCHAR(500),
        created_at VARCHAR(40),
        updated_at VARCHAR(40)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lsf_concept_details (
        concept_id VARCHAR(100) PRIMARY KEY REFERENCES lsf_concepts(id),
        explanation TEXT,
        examples TEXT NOT NULL DEFAULT '[]',
        variants TEXT NOT NULL DEFAULT '[]',
        history TEXT,
        grammar TEXT NOT NULL DEFAULT '{}',
        contexts TEXT NOT NULL DEFAULT '[]',
        synonyms TEXT NOT NULL DEFAULT '[]'
    )
    """,
)

_CONCEPT_COLUMNS = (
    "id, text, level, categories, related_concepts, difficulty, frequency, "
    "video_url, image_url, created_at, updated_at"
)


def _row_to_concept(row: Any) -> Concept:
    data = dict(row._mapping)
    data["categories"] = json.loads(data["categories"] or "[]")
    data["related_concepts"] = json.loads(data["related_concepts"] or "[]")
    return Concept.from_dict(data)


def _row_to_details(row: Any) -> ConceptDetails:
    data = dict(row._mapping)
    return ConceptDetails.from_dict(
        {
            "id": data["concept_id"],
            "explanation": data["explanation"],
            "examples": json.loads(data["examples"] or "[]"),
            "variants": json.loads(data["variants"] or "[]"),
            "history": data["history"],
            "grammar": json.loads(data["grammar"] or "{}"),
            "contexts": json.loads(data["contexts"] or "[]"),
            "synonyms": json.loads(data["synonyms"] or "[]"),
        }
    )


class SqlConceptProvider:
    """
    Concept provider backed by the ``lsf_concepts`` tables.

    Usage:
        provider = SqlConceptProvider.from_url(settings.database_url)
        await provider.initialize()
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> SqlConceptProvider:
        return cls(create_engine(database_url, echo=echo, pool_pre_ping=True))

    # ========================================
    # Schema & seeding
    # ========================================

    def create_schema(self) -> None:
        """Create catalog tables if missing."""
        with self.engine.begin() as conn:
            for statement in SCHEMA:
                conn.execute(text(statement))
        logger.info("Concept catalog tables initialized")

    def seed(self, concepts: Sequence[Concept], details: dict[str, ConceptDetails]) -> int:
        """Insert concepts and their details. Returns the number of concepts written."""
        with self.engine.begin() as conn:
            for concept in concepts:
                conn.execute(
                    text(
                        f"INSERT INTO lsf_concepts ({_CONCEPT_COLUMNS}) VALUES "
                        "(:id, :text, :level, :categories, :related_concepts, :difficulty, "
                        ":frequency, :video_url, :image_url, :created_at, :updated_at)"
                    ),
                    {
                        **concept.to_dict(),
                        "categories": json.dumps(list(concept.categories)),
                        "related_concepts": json.dumps(list(concept.related_concepts)),
                    },
                )
                detail = details.get(concept.id)
                if detail is None:
                    continue
                conn.execute(
                    text(
                        "INSERT INTO lsf_concept_details (concept_id, explanation, examples, "
                        "variants, history, grammar, contexts, synonyms) VALUES (:concept_id, "
                        ":explanation, :examples, :variants, :history, :grammar, :contexts, :synonyms)"
                    ),
                    {
                        "concept_id": concept.id,
                        "explanation": detail.explanation,
                        "examples": json.dumps(list(detail.examples)),
                        "variants": json.dumps(list(detail.variants)),
                        "history": detail.history,
                        "grammar": json.dumps(detail.grammar),
                        "contexts": json.dumps(list(detail.contexts)),
                        "synonyms": json.dumps(list(detail.synonyms)),
                    },
                )
        logger.info(f"Seeded {len(concepts)} concepts")
        return len(concepts)

    # ========================================
    # Lifecycle
    # ========================================

    async def initialize(self, config: dict[str, Any] | None = None) -> None:
        self.create_schema()

    async def dispose(self) -> None:
        self.engine.dispose()

    # ========================================
    # Queries
    # ========================================

    def _fetch(self, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        try:
            with self.engine.connect() as conn:
                return list(conn.execute(text(sql), params or {}))
        except OperationalError as e:
            raise ConceptDataError(
                f"Concept database unavailable: {e}",
                code=ConceptDataError.PROVIDER_UNAVAILABLE,
            ) from e
        except SQLAlchemyError as e:
            raise ConceptDataError(
                f"Concept query failed: {e}",
                code=ConceptDataError.PROVIDER_ERROR,
            ) from e

    async def get_by_id(self, concept_id: str) -> Concept | None:
        concept_id = validate_concept_id(concept_id)
        rows = self._fetch(
            f"SELECT {_CONCEPT_COLUMNS} FROM lsf_concepts WHERE id = :id", {"id": concept_id}
        )
        return _row_to_concept(rows[0]) if rows else None

    async def get_by_ids(self, concept_ids: Sequence[str]) -> list[Concept]:
        found = []
        for concept_id in concept_ids:
            concept = await self.get_by_id(concept_id)
            if concept is not None:
                found.append(concept)
        return found

    async def search(self, criteria: ConceptSearchCriteria) -> list[Concept]:
        # Level is pushed down to SQL; the remaining filters share apply_search
        if criteria.level is not None:
            rows = self._fetch(
                f"SELECT {_CONCEPT_COLUMNS} FROM lsf_concepts WHERE level = :level ORDER BY id",
                {"level": criteria.level.value},
            )
        else:
            rows = self._fetch(f"SELECT {_CONCEPT_COLUMNS} FROM lsf_concepts ORDER BY id")
        return apply_search((_row_to_concept(r) for r in rows), criteria)

    async def get_details(self, concept_id: str) -> ConceptDetails | None:
        concept_id = validate_concept_id(concept_id)
        rows = self._fetch(
            "SELECT concept_id, explanation, examples, variants, history, grammar, contexts, "
            "synonyms FROM lsf_concept_details WHERE concept_id = :id",
            {"id": concept_id},
        )
        return _row_to_details(rows[0]) if rows else None

    async def get_random_example(
        self, concept_id: str, rng: random.Random | None = None
    ) -> str | None:
        details = await self.get_details(concept_id)
        if details is None or not details.examples:
            return None
        return (rng or random.Random()).choice(details.examples)

    async def get_concept_ids(self) -> list[str]:
        return [row.id for row in self._fetch("SELECT id FROM lsf_concepts ORDER BY id")]

    async def get_statistics(self) -> ConceptStatistics:
        rows = self._fetch(f"SELECT {_CONCEPT_COLUMNS} FROM lsf_concepts ORDER BY id")
        return compute_statistics([_row_to_concept(r) for r in rows])

    async def check_health(self) -> bool:
        try:
            self._fetch("SELECT 1")
        except ConceptDataError as e:
            logger.warning(f"Concept database health check failed: {e}")
            return False
        return True
