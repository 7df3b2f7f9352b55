"""
Multiple-choice strategy.

One target concept, option_count - 1 distractors chosen from related
concepts first, then same-level concepts from other categories, then the
wider catalog. Exactly one option is flagged correct.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.errors import ExerciseGenerationError
from ..core.levels import CECRLLevel
from ..core.models import Concept, ExerciseType
from ..core.templating import make_text_more_complex, simplify_text
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry, level_skills

SKILLS_BY_LEVEL: dict[CECRLLevel, list[str]] = {
    CECRLLevel.A1: ["basicVocabulary", "recognition"],
    CECRLLevel.A2: ["basicVocabulary", "recognition", "simpleExpressions"],
    CECRLLevel.B1: ["intermediateVocabulary", "recognition", "contextualUnderstanding"],
    CECRLLevel.B2: ["advancedVocabulary", "subtleties", "expressionVariety"],
    CECRLLevel.C1: ["complexExpressions", "culturalSubtleties", "idiomaticUsage"],
    CECRLLevel.C2: ["nativelikeFluency", "culturalMastery", "subtleExpressions"],
}

MEDIA_TYPES = ("text", "video", "image")
BASE_TIME_LIMIT = 30
TIME_PER_OPTION = 10

DEFAULT_EXPLANATION = (
    'Le signe pour "{text}" est important dans le vocabulaire de base de la LSF. '
    "Pratiquez-le régulièrement pour le mémoriser."
)


@StrategyRegistry.register(ExerciseType.MULTIPLE_CHOICE)
class MultipleChoiceStrategy(GenerationStrategy):
    """Pick the sign matching a prompt among several options."""

    description = "Choix multiple entre un signe cible et des distracteurs"

    def option_count(self, options: dict[str, Any]) -> int:
        """Requested option count clamped to the configured bounds."""
        requested = int(options.get("option_count", self.settings.mcq_default_option_count))
        return max(self.settings.mcq_min_options, min(self.settings.mcq_max_options, requested))

    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        target = concepts.primary
        count = self.option_count(options)
        question_type = options.get("question_type", "text")
        answer_type = options.get("answer_type", "text")
        if question_type not in MEDIA_TYPES or answer_type not in MEDIA_TYPES:
            raise ExerciseGenerationError(
                f"Unsupported media type: question={question_type}, answer={answer_type}",
                exercise_type=self.exercise_type.value,
            )

        distractors = self.select_distractors(target, concepts, count - 1)
        if len(distractors) < count - 1:
            raise ExerciseGenerationError(
                f"Only {len(distractors)} distractors available for '{target.id}', "
                f"{count - 1} needed",
                exercise_type=self.exercise_type.value,
            )

        choices = [target, *distractors]
        self.rng.shuffle(choices)

        option_list = []
        for position, concept in enumerate(choices, start=1):
            option: dict[str, Any] = {
                "id": f"opt-{position}",
                "text": concept.text,
                "concept_id": concept.id,
                "is_correct": concept.id == target.id,
            }
            if answer_type == "video":
                option["video_url"] = concept.video_url or f"/assets/videos/lsf/{concept.id}.mp4"
            elif answer_type == "image":
                option["image_url"] = concept.image_url or f"/assets/images/lsf/{concept.id}.png"
            option_list.append(option)

        content: dict[str, Any] = {
            "question": self._question(target, question_type),
            "question_type": question_type,
            "answer_type": answer_type,
            "options": option_list,
            "correct_index": next(i for i, o in enumerate(option_list) if o["is_correct"]),
            "category": target.primary_category,
        }
        if question_type == "video":
            content["video_url"] = target.video_url or f"/assets/videos/lsf/{target.id}.mp4"
        elif question_type == "image":
            content["image_url"] = target.image_url or f"/assets/images/lsf/{target.id}.png"

        return ExerciseDraft(
            content=content,
            time_limit=BASE_TIME_LIMIT + TIME_PER_OPTION * count,
            skills=level_skills(SKILLS_BY_LEVEL, level, options.get("focus_areas", [])),
            tags=[
                *target.categories,
                "multiple-choice",
                level.value,
                f"question-{question_type}",
                f"answer-{answer_type}",
            ],
            explanation=concepts.explanation_for(target) or DEFAULT_EXPLANATION.format(text=target.text),
            concept_ids=[target.id],
        )

    def _question(self, target: Concept, question_type: str) -> str:
        if question_type == "text":
            return f'Comment signe-t-on "{target.text}" en LSF ?'
        return "Quelle est la signification de ce signe ?"

    def select_distractors(self, target: Concept, concepts: ConceptSet, needed: int) -> list[Concept]:
        """
        Related concepts fill at most half the slots, then same-level
        concepts (other categories before same category), then anything.
        """
        chosen: list[Concept] = []
        taken_ids = {target.id}
        taken_texts = {target.text.lower()}

        def take(candidates: list[Concept], limit: int) -> None:
            for concept in candidates:
                if len(chosen) >= limit:
                    return
                if concept.id in taken_ids or concept.text.lower() in taken_texts:
                    continue
                chosen.append(concept)
                taken_ids.add(concept.id)
                taken_texts.add(concept.text.lower())

        related = list(concepts.related.get(target.id, []))
        take(related, needed // 2)

        target_categories = set(target.categories)
        other_category = [c for c in concepts.peers if not target_categories.intersection(c.categories)]
        same_category = [c for c in concepts.peers if target_categories.intersection(c.categories)]
        self.rng.shuffle(other_category)
        self.rng.shuffle(same_category)
        take(other_category, needed)
        take(same_category, needed)
        take(related, needed)

        pool = list(concepts.pool)
        self.rng.shuffle(pool)
        take(pool, needed)
        return chosen

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> str:
        return next(o["id"] for o in content["options"] if o["is_correct"])

    def _resolve_selection(self, content: dict[str, Any], submitted: Any) -> str | None:
        if isinstance(submitted, dict):
            if "option_id" in submitted:
                submitted = submitted["option_id"]
            elif "selected_index" in submitted:
                submitted = submitted["selected_index"]
        if isinstance(submitted, bool):
            return None
        if isinstance(submitted, int):
            option_list = content["options"]
            return option_list[submitted]["id"] if 0 <= submitted < len(option_list) else None
        if isinstance(submitted, str):
            return submitted
        return None

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        return 1.0 if self._resolve_selection(content, submitted) == expected else 0.0

    def is_correct(self, content: dict[str, Any], score: float) -> bool:
        return score >= 1.0

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        return {
            "selected_option": self._resolve_selection(content, submitted),
            "correct_option": expected,
        }

    def validate(self, content: dict[str, Any]) -> bool:
        option_list = content.get("options") or []
        ids = [o.get("id") for o in option_list]
        return (
            len(option_list) >= self.settings.mcq_min_options
            and len(set(ids)) == len(ids)
            and sum(1 for o in option_list if o.get("is_correct")) == 1
            and bool(content.get("question"))
        )

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        answer = next((o["text"] for o in content.get("options", []) if o.get("is_correct")), "")
        return [
            "Observez attentivement la configuration des mains et le mouvement.",
            f"Ce signe appartient à la catégorie « {content.get('category', 'général')} ».",
            "Éliminez d'abord les options qui relèvent d'un autre thème.",
            f"La bonne réponse commence par « {answer[:1]} ».",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Drop one distractor (keeping at least two options) and plainer wording."""
        simpler = copy.deepcopy(content)
        option_list = simpler["options"]
        if len(option_list) > self.settings.mcq_min_options:
            drop = max(i for i, o in enumerate(option_list) if not o["is_correct"])
            del option_list[drop]
        simpler["correct_index"] = next(i for i, o in enumerate(option_list) if o["is_correct"])
        simpler["question"] = simplify_text(simpler["question"])
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        harder = copy.deepcopy(content)
        harder["question"] = make_text_more_complex(harder["question"])
        return harder
