"""
Drag-drop strategy.

Items are usage examples of the target concepts, targets are descriptions
of those examples. Targets are shuffled independently of items; each
correctly placed item earns 1/N of the score.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.errors import ExerciseGenerationError
from ..core.levels import CECRLLevel
from ..core.models import ExerciseType
from ..core.templating import TemplateBank, make_text_more_complex, simplify_text
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry
from .text import dedupe

DESCRIPTION_TEMPLATES = TemplateBank(
    "drag-drop-descriptions",
    [
        'Signe utilisé pour exprimer "{example}" dans le contexte de {description}',
        'Expression en LSF de "{example}" dans les situations liées à {description}',
        'Signe correspondant à "{example}" qu\'on utilise lorsqu\'on parle de {description}',
        'Représentation gestuelle de "{example}" spécifique au domaine de {description}',
        'Configuration LSF pour "{example}" employée dans le cadre de {description}',
    ],
)

# (upper difficulty bound, seconds)
TIME_LIMITS: tuple[tuple[float, int], ...] = ((0.3, 300), (0.7, 180))
HARD_TIME_LIMIT = 120
MIN_PAIRS = 2
SIMPLIFIED_MAX_PAIRS = 4


def time_limit_for(difficulty: float) -> int:
    for bound, seconds in TIME_LIMITS:
        if difficulty <= bound:
            return seconds
    return HARD_TIME_LIMIT


@StrategyRegistry.register(ExerciseType.DRAG_DROP)
class DragDropStrategy(GenerationStrategy):
    """Match usage examples with their descriptions."""

    description = "Associer des exemples d'usage à leur description"

    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        target = concepts.primary
        max_pairs = int(options.get("max_pairs", self.settings.drag_drop_max_pairs))

        # Examples of the primary concept first, then of the other targets
        sources: list[tuple[str, str]] = []
        for concept in concepts.targets:
            description = concepts.explanation_for(concept) or f'Description du signe "{concept.text}"'
            for example in concepts.examples_for(concept.id):
                if len(sources) < max_pairs:
                    sources.append((example, description))

        if len(sources) < MIN_PAIRS:
            raise ExerciseGenerationError(
                f"Concept '{target.id}' has {len(sources)} examples, {MIN_PAIRS} needed",
                exercise_type=self.exercise_type.value,
            )

        items, targets, pairings = [], [], []
        for index, (example, description) in enumerate(sources, start=1):
            item_id, target_id = f"item-{index}", f"target-{index}"
            items.append({"id": item_id, "text": example})
            targets.append(
                {
                    "id": target_id,
                    "text": DESCRIPTION_TEMPLATES.render(
                        self.rng, {"example": example, "description": description.rstrip(".")}
                    ),
                    "accepts_item_id": item_id,
                }
            )
            pairings.append({"item_id": item_id, "target_id": target_id})

        self.rng.shuffle(targets)

        skills = dedupe(
            [target.primary_category, *target.related_concepts[:2], *options.get("focus_areas", [])]
        )
        return ExerciseDraft(
            content={
                "instructions": f'Associez chaque exemple à la description qui lui correspond ("{target.text}").',
                "items": items,
                "targets": targets,
                "pairings": pairings,
            },
            time_limit=time_limit_for(difficulty),
            skills=skills,
            tags=["drag-drop", level.value, *target.categories],
            explanation=concepts.explanation_for(target)
            or f'Les exemples illustrent les usages du signe "{target.text}".',
            concept_ids=dedupe([c.id for c in concepts.targets]),
        )

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> dict[str, str]:
        return {p["item_id"]: p["target_id"] for p in content["pairings"]}

    @staticmethod
    def _as_mapping(submitted: Any) -> dict[str, str]:
        if isinstance(submitted, dict):
            if "pairings" in submitted:
                submitted = submitted["pairings"]
            else:
                return {str(k): str(v) for k, v in submitted.items()}
        if isinstance(submitted, (list, tuple)):
            return {
                p["item_id"]: p["target_id"]
                for p in submitted
                if isinstance(p, dict) and "item_id" in p and "target_id" in p
            }
        return {}

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        if not expected:
            return 0.0
        placed = self._as_mapping(submitted)
        matched = sum(1 for item_id, target_id in expected.items() if placed.get(item_id) == target_id)
        return matched / len(expected)

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        placed = self._as_mapping(submitted)
        wrong = [item_id for item_id, target_id in expected.items() if placed.get(item_id) != target_id]
        return {
            "matched_pairs": len(expected) - len(wrong),
            "total_pairs": len(expected),
            "incorrect_items": wrong,
        }

    def validate(self, content: dict[str, Any]) -> bool:
        items = {i["id"] for i in content.get("items", [])}
        targets = {t["id"] for t in content.get("targets", [])}
        pairings = content.get("pairings", [])
        return (
            len(items) >= MIN_PAIRS
            and len(items) == len(targets) == len(pairings)
            and all(p["item_id"] in items and p["target_id"] in targets for p in pairings)
        )

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        first = content["items"][0]["text"] if content.get("items") else ""
        return [
            "Lisez chaque description en entier avant de déplacer un élément.",
            "Chaque exemple correspond à une seule description.",
            f"Commencez par « {first} » : cherchez la description qui le cite.",
            "Terminez par élimination avec les éléments restants.",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Keep at most four pairs and use plainer descriptions."""
        simpler = copy.deepcopy(content)
        kept_pairings = simpler["pairings"][:SIMPLIFIED_MAX_PAIRS]
        kept_items = {p["item_id"] for p in kept_pairings}
        kept_targets = {p["target_id"] for p in kept_pairings}
        simpler["pairings"] = kept_pairings
        simpler["items"] = [i for i in simpler["items"] if i["id"] in kept_items]
        simpler["targets"] = [t for t in simpler["targets"] if t["id"] in kept_targets]
        for target in simpler["targets"]:
            target["text"] = simplify_text(target["text"])
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        harder = copy.deepcopy(content)
        for target in harder["targets"]:
            target["text"] = make_text_more_complex(target["text"])
        return harder
