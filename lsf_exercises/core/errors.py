"""
Exception hierarchy for exercise generation.

Not-found conditions are not errors: lookups return None or an empty list.
Everything raised here propagates to the caller.
"""

from __future__ import annotations

from typing import Any


class ExerciseError(Exception):
    """Base class for all lsf-exercises errors."""


class ExerciseValidationError(ExerciseError):
    """Malformed request parameters, rejected before any generation work."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ExerciseGenerationError(ExerciseError):
    """A well-formed request that cannot be fulfilled (no matching concept...)."""

    def __init__(self, message: str, exercise_type: str | None = None):
        super().__init__(message)
        self.exercise_type = exercise_type


class ConceptDataError(ExerciseError):
    """The concept provider is unreachable, uninitialized or misused."""

    SERVICE_NOT_INITIALIZED = "SERVICE_NOT_INITIALIZED"
    INVALID_CONCEPT_ID = "INVALID_CONCEPT_ID"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    def __init__(self, message: str, code: str, concept_id: str | None = None):
        super().__init__(message)
        self.code = code
        self.concept_id = concept_id

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"


class GeneratorFactoryError(ExerciseError):
    """No generator could be resolved for a request."""

    NO_GENERATOR_AVAILABLE = "NO_GENERATOR_AVAILABLE"
    GENERATOR_SELECTION_FAILED = "GENERATOR_SELECTION_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    def __init__(self, message: str, code: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"
