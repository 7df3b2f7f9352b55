"""
Domain models: concepts, exercises, evaluation results and requests.

Concepts and exercises are immutable once built. The difficulty adapter
produces a new Exercise through ``with_changes`` instead of editing one.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ExerciseValidationError
from .levels import CECRLLevel, map_difficulty_to_cecrl


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseType(str, Enum):
    """The six exercise kinds."""
    MULTIPLE_CHOICE = "MultipleChoice"
    DRAG_DROP = "DragDrop"
    FILL_BLANK = "FillBlank"
    TEXT_ENTRY = "TextEntry"
    VIDEO_RESPONSE = "VideoResponse"
    SIGNING_PRACTICE = "SigningPractice"

    @property
    def slug(self) -> str:
        """kebab-case name, e.g. ``multiple-choice``."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def parse(cls, value: str | ExerciseType) -> ExerciseType | None:
        """
        Resolve an exercise type from its value or a snake/kebab alias.

        Returns None for unknown names.
        """
        if isinstance(value, ExerciseType):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().replace("-", "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


# =============================================================================
# Concepts
# =============================================================================


@dataclass(frozen=True)
class Concept:
    """A sign/vocabulary item exercises are built from."""

    id: str
    text: str
    level: CECRLLevel
    categories: tuple[str, ...] = ()
    related_concepts: tuple[str, ...] = ()
    difficulty: float = 0.5
    frequency: int = 0
    video_url: str | None = None
    image_url: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def has_media(self) -> bool:
        return bool(self.video_url or self.image_url)

    @property
    def primary_category(self) -> str:
        return self.categories[0] if self.categories else "général"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "level": self.level.value,
            "categories": list(self.categories),
            "related_concepts": list(self.related_concepts),
            "difficulty": self.difficulty,
            "frequency": self.frequency,
            "video_url": self.video_url,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Concept:
        """Build a concept from a catalog record (API payload or DB row)."""
        created = data.get("created_at")
        updated = data.get("updated_at")
        return cls(
            id=data["id"],
            text=data["text"],
            level=CECRLLevel(str(data["level"]).upper()),
            categories=tuple(data.get("categories") or ()),
            related_concepts=tuple(data.get("related_concepts") or ()),
            difficulty=float(data.get("difficulty", 0.5)),
            frequency=int(data.get("frequency", 0)),
            video_url=data.get("video_url"),
            image_url=data.get("image_url"),
            created_at=_parse_datetime(created) if created else _utcnow(),
            updated_at=_parse_datetime(updated) if updated else _utcnow(),
        )


@dataclass(frozen=True)
class ConceptDetails:
    """Extended record attached to a concept: usage, examples, grammar."""

    id: str
    explanation: str = ""
    examples: tuple[str, ...] = ()
    variants: tuple[str, ...] = ()
    history: str = ""
    grammar: dict[str, str] = field(default_factory=dict)
    contexts: tuple[str, ...] = ()
    synonyms: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "explanation": self.explanation,
            "examples": list(self.examples),
            "variants": list(self.variants),
            "history": self.history,
            "grammar": dict(self.grammar),
            "contexts": list(self.contexts),
            "synonyms": list(self.synonyms),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConceptDetails:
        return cls(
            id=data["id"],
            explanation=data.get("explanation") or "",
            examples=tuple(data.get("examples") or ()),
            variants=tuple(data.get("variants") or ()),
            history=data.get("history") or "",
            grammar=dict(data.get("grammar") or {}),
            contexts=tuple(data.get("contexts") or ()),
            synonyms=tuple(data.get("synonyms") or ()),
        )


def _parse_datetime(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# =============================================================================
# Exercises
# =============================================================================


@dataclass(frozen=True)
class Exercise:
    """A generated exercise, ready to be shown to a learner."""

    id: str
    type: ExerciseType
    level: CECRLLevel
    difficulty: float
    content: dict[str, Any]
    time_limit: int
    hints: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    explanation: str = ""
    concept_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=_utcnow)

    def with_changes(self, **changes: Any) -> Exercise:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "type": self.type.value,
            "level": self.level.value,
            "difficulty": self.difficulty,
            "content": self.content,
            "time_limit": self.time_limit,
            "hints": list(self.hints),
            "skills": list(self.skills),
            "tags": list(self.tags),
            "explanation": self.explanation,
            "concept_ids": list(self.concept_ids),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ExerciseFeedback:
    """Structured feedback attached to an evaluation."""

    strengths: list[str] = field(default_factory=list)
    areas_for_improvement: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)


@dataclass
class EvaluationResult:
    """
    Result of scoring a learner response.

    ``details`` carries type-specific extras (per-blank results, signing
    suggestions, recording analysis...).
    """

    exercise_id: str
    correct: bool
    score: float  # 0.0 to 1.0
    skill_scores: dict[str, float] = field(default_factory=dict)
    explanation: str = ""
    feedback: ExerciseFeedback | None = None
    details: dict[str, Any] = field(default_factory=dict)
    evaluated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "exercise_id": self.exercise_id,
            "correct": self.correct,
            "score": self.score,
            "skill_scores": self.skill_scores,
            "explanation": self.explanation,
            "feedback": asdict(self.feedback) if self.feedback else None,
            "details": self.details,
            "evaluated_at": self.evaluated_at.isoformat(),
        }


# =============================================================================
# Requests
# =============================================================================


class ExerciseRequest(BaseModel):
    """Validated parameters of a generation request (snake_case or camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ExerciseType
    level: CECRLLevel | None = None
    difficulty: float = Field(default=0.5, ge=0.0, le=1.0)
    focus_areas: list[str] = Field(default_factory=list)
    user_id: str | None = None
    concept_ids: list[str] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)
    skill_estimate: float | None = Field(default=None, ge=0.0, le=1.0)
    include_hints: bool = False
    use_cache: bool = True

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> ExerciseType:
        parsed = ExerciseType.parse(value)
        if parsed is None:
            raise ValueError(f"unsupported exercise type: {value!r}")
        return parsed

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("concept_ids")
    @classmethod
    def _non_empty_ids(cls, value: list[str]) -> list[str]:
        if any(not cid or not cid.strip() for cid in value):
            raise ValueError("concept ids must be non-empty strings")
        return value

    @property
    def resolved_level(self) -> CECRLLevel:
        """Requested level, or the level implied by the difficulty."""
        return self.level or map_difficulty_to_cecrl(self.difficulty)

    def cache_key(self) -> str:
        """Deterministic key built from every parameter that shapes the output."""
        parts = [
            self.type.value,
            self.resolved_level.value,
            f"{self.difficulty:.4f}",
            ",".join(sorted(self.focus_areas)),
            ",".join(self.concept_ids),
            json.dumps(self.options, sort_keys=True, default=str),
            "" if self.skill_estimate is None else f"{self.skill_estimate:.4f}",
            "h" if self.include_hints else "",
            self.user_id or "anon",
        ]
        return "|".join(parts)

    @classmethod
    def build(cls, params: ExerciseRequest | dict[str, Any]) -> ExerciseRequest:
        """
        Validate raw parameters.

        Raises:
            ExerciseValidationError: On any malformed field.
        """
        if isinstance(params, ExerciseRequest):
            return params
        if not isinstance(params, dict):
            raise ExerciseValidationError("Exercise request must be a mapping")
        try:
            return cls.model_validate(params)
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ExerciseValidationError("Invalid exercise request", errors=errors) from exc
