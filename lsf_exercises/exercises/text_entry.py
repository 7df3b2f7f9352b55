"""
Text-entry strategy.

The learner watches a sign and types its meaning. Answers are graded by
fuzzy similarity against a set of equivalent phrasings.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.levels import CECRLLevel, DifficultyBand, map_difficulty_to_band
from ..core.models import ExerciseType
from ..core.templating import TemplateBank
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry
from .text import best_similarity, capitalize_first, dedupe, slugify

QUESTION_TEMPLATES: dict[DifficultyBand, TemplateBank] = {
    DifficultyBand.BEGINNER: TemplateBank(
        "text-entry-beginner",
        [
            'Quel est le signe LSF pour "{example}" ?',
            'Comment signe-t-on "{example}" en LSF ?',
            'Que signifie ce signe lié à "{concept}" ?',
        ],
    ),
    DifficultyBand.EASY: TemplateBank(
        "text-entry-easy",
        [
            'Quel signe utilise-t-on pour exprimer "{example}" dans une conversation ?',
            "Dans une discussion sur {concept}, que veut dire ce signe ?",
            "Identifiez le sens du signe présenté dans la vidéo.",
        ],
    ),
    DifficultyBand.MEDIUM: TemplateBank(
        "text-entry-medium",
        [
            "Comment comprendre ce signe dans le contexte de {description} ?",
            "Quel est le sens de ce signe lorsqu'on parle de {related} ?",
            "En tenant compte du contexte {category}, que représente ce signe ?",
        ],
    ),
    DifficultyBand.HARD: TemplateBank(
        "text-entry-hard",
        [
            "Dans une conversation complexe sur {description}, que signifie précisément ce signe ?",
            "Quelle nuance ce signe apporte-t-il dans un discours formel ?",
            "Comment traduiriez-vous ce signe lors d'une interprétation professionnelle ?",
        ],
    ),
    DifficultyBand.EXPERT: TemplateBank(
        "text-entry-expert",
        [
            "Dans un contexte académique portant sur {description}, quel est le sens exact de ce signe ?",
            "Comment un interprète traduirait-il ce signe lors d'une conférence sur {category} ?",
            "En tenant compte des variations régionales, quel est le sens standard de ce signe ?",
        ],
    ),
}

TIME_LIMITS: dict[DifficultyBand, int] = {
    DifficultyBand.BEGINNER: 600,
    DifficultyBand.EASY: 480,
    DifficultyBand.MEDIUM: 360,
    DifficultyBand.HARD: 240,
    DifficultyBand.EXPERT: 180,
}

LENIENT_THRESHOLD = 0.6
STRICT_THRESHOLD = 0.8


@StrategyRegistry.register(ExerciseType.TEXT_ENTRY)
class TextEntryStrategy(GenerationStrategy):
    """Type the meaning of a signed video."""

    description = "Saisir le sens d'un signe présenté en vidéo"

    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        target = concepts.primary
        band = map_difficulty_to_band(difficulty)
        examples = concepts.examples_for(target.id)
        example = self.rng.choice(examples) if examples else target.text
        details = concepts.details_for(target.id)
        synonyms = list(details.synonyms) if details else []
        related = concepts.related.get(target.id, [])

        question = QUESTION_TEMPLATES[band].render(
            self.rng,
            {
                "example": example,
                "concept": target.text,
                "description": target.primary_category,
                "related": related[0].text if related else target.text,
                "category": target.primary_category,
            },
        )

        text = target.text
        acceptable = dedupe(
            [
                example,
                text,
                *synonyms,
                f"Le signe pour {text.lower()}",
                capitalize_first(f"le signe pour {text.lower()}"),
                f"Un signe qui signifie {text.lower()}",
                f"{text} en LSF",
                text.lower(),
                capitalize_first(text.lower()),
                *(e for e in examples if e != example),
                *(e.lower() for e in examples),
            ]
        )

        threshold = float(
            options.get("similarity_threshold", self.settings.text_entry_similarity_threshold)
        )
        return ExerciseDraft(
            content={
                "question": question,
                "video_url": target.video_url or f"/assets/signs/{target.id}/{slugify(example)}.mp4",
                "example": example,
                "category": target.primary_category,
                "acceptable_answers": acceptable,
                "answer_similarity_threshold": threshold,
                "show_visual_hint": False,
                "require_detailed_answer": False,
                "difficulty_band": band.value,
            },
            time_limit=TIME_LIMITS[band],
            skills=dedupe(
                ["signRecognition", "writtenComprehension", target.primary_category,
                 *options.get("focus_areas", [])]
            ),
            tags=["text-entry", level.value, band.value, *target.categories],
            explanation=concepts.explanation_for(target) or f'Ce signe signifie "{text}".',
            concept_ids=[target.id],
        )

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> list[str]:
        return list(content["acceptable_answers"])

    @staticmethod
    def _answer_text(submitted: Any) -> str:
        if isinstance(submitted, dict):
            submitted = submitted.get("answer", "")
        return submitted if isinstance(submitted, str) else ""

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        score, _ = best_similarity(self._answer_text(submitted), expected)
        return score

    def is_correct(self, content: dict[str, Any], score: float) -> bool:
        return score >= content.get(
            "answer_similarity_threshold", self.settings.text_entry_similarity_threshold
        )

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        _, match = best_similarity(self._answer_text(submitted), expected)
        return {
            "matched_answer": match,
            "similarity": score,
            "threshold": content.get("answer_similarity_threshold"),
        }

    def validate(self, content: dict[str, Any]) -> bool:
        threshold = content.get("answer_similarity_threshold", -1)
        return bool(content.get("acceptable_answers")) and 0.0 < threshold <= 1.0

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        answer = content["acceptable_answers"][1] if len(content.get("acceptable_answers", [])) > 1 else ""
        return [
            "Regardez la vidéo plusieurs fois, au ralenti si besoin.",
            f"Ce signe appartient à la catégorie « {content.get('category', 'général')} ».",
            f"La réponse attendue compte {len(answer.split())} mot(s).",
            f"La réponse commence par « {answer[:2]} ».",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        simpler = copy.deepcopy(content)
        simpler["answer_similarity_threshold"] = LENIENT_THRESHOLD
        simpler["show_visual_hint"] = True
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        harder = copy.deepcopy(content)
        harder["answer_similarity_threshold"] = STRICT_THRESHOLD
        harder["show_visual_hint"] = False
        harder["require_detailed_answer"] = True
        return harder
