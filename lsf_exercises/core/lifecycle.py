"""
Generator contracts.

ExerciseGenerator is what the factory requires of every generator.
Lifecycle is an optional capability: generators that need setup or teardown
implement it, and the factory detects it with ``supports_lifecycle``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import EvaluationResult, Exercise, ExerciseRequest, ExerciseType


@dataclass
class GeneratorMetadata:
    """Descriptive information a generator publishes about itself."""

    name: str
    version: str
    description: str = ""
    supported_types: tuple[ExerciseType, ...] = ()
    capabilities: list[str] = field(default_factory=list)

    @property
    def generator_id(self) -> str:
        """Stable identifier: name, supported types and version."""
        types = "-".join(t.value for t in self.supported_types)
        return "_".join(f"{self.name}_{types}_{self.version}".split())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "supported_types": [t.value for t in self.supported_types],
            "capabilities": list(self.capabilities),
        }


@runtime_checkable
class ExerciseGenerator(Protocol):
    """Minimal contract every registered generator fulfils."""

    async def generate(self, request: ExerciseRequest) -> Exercise: ...

    def evaluate(self, exercise: Exercise, response: Any) -> EvaluationResult: ...

    def get_supported_types(self) -> list[ExerciseType]: ...

    async def is_healthy(self) -> bool: ...

    def get_metadata(self) -> GeneratorMetadata: ...


@runtime_checkable
class Lifecycle(Protocol):
    """Optional setup/teardown capability."""

    async def initialize(self, config: dict[str, Any] | None = None) -> None: ...

    async def dispose(self) -> None: ...


def supports_lifecycle(obj: object) -> bool:
    """True when obj implements the Lifecycle capability."""
    return isinstance(obj, Lifecycle)


def is_exercise_generator(obj: object) -> bool:
    """True when obj implements the required generator contract."""
    return isinstance(obj, ExerciseGenerator)
