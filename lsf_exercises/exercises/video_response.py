"""
Video-response strategy.

The learner records themselves signing a phrase. This module only defines
the rubric (criteria and recording bounds); the assessment itself comes
from an external evaluator, human or automatic, as ``{criterion: score}``.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.levels import CECRLLevel, DifficultyBand, clamp, map_difficulty_to_band
from ..core.models import ExerciseType
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry
from .text import dedupe, slugify

BASE_CRITERIA = ["configuration des mains", "mouvement"]

EXTRA_CRITERIA: dict[DifficultyBand, list[str]] = {
    DifficultyBand.BEGINNER: [],
    DifficultyBand.EASY: ["expression faciale"],
    DifficultyBand.MEDIUM: ["expression faciale", "rythme"],
    DifficultyBand.HARD: ["expression faciale", "rythme", "utilisation de l'espace"],
    DifficultyBand.EXPERT: [
        "expression faciale",
        "rythme",
        "utilisation de l'espace",
        "fluidité des transitions",
    ],
}

ADVANCED_CRITERIA = [
    "fluidité du mouvement",
    "synchronisation des composantes non-manuelles",
    "respect du rythme et des transitions",
]

# band -> (max recording, min recording, time limit), seconds
RECORDING_BOUNDS: dict[DifficultyBand, tuple[int, int, int]] = {
    DifficultyBand.BEGINNER: (60, 5, 900),
    DifficultyBand.EASY: (45, 5, 720),
    DifficultyBand.MEDIUM: (30, 3, 600),
    DifficultyBand.HARD: (20, 2, 480),
    DifficultyBand.EXPERT: (15, 1, 360),
}

EASY_DURATION_FACTOR = 1.5
HARD_DURATION_FACTOR = 0.8
REFERENCE_SHOWN = (DifficultyBand.BEGINNER, DifficultyBand.EASY)


@StrategyRegistry.register(ExerciseType.VIDEO_RESPONSE)
class VideoResponseStrategy(GenerationStrategy):
    """Record yourself signing a phrase."""

    description = "S'enregistrer en train de signer une phrase"

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
        phrase = self.rng.choice(examples) if examples else f'Montrez le signe pour "{target.text}" en LSF'
        max_duration, min_duration, time_limit = RECORDING_BOUNDS[band]

        return ExerciseDraft(
            content={
                "instructions": "Enregistrez-vous en train de signer la phrase suivante.",
                "phrase": phrase,
                "reference_video_url": f"/assets/references/{target.id}/{slugify(phrase)}.mp4",
                "show_reference": band in REFERENCE_SHOWN,
                "slow_motion": False,
                "time_limited": False,
                "evaluation_criteria": BASE_CRITERIA + EXTRA_CRITERIA[band],
                "min_recording_duration": min_duration,
                "max_recording_duration": max_duration,
                "difficulty_band": band.value,
                "category": target.primary_category,
            },
            time_limit=time_limit,
            skills=dedupe(["signProduction", "handConfiguration", "movement", *options.get("focus_areas", [])]),
            tags=["video-response", level.value, band.value, *target.categories],
            explanation=concepts.explanation_for(target)
            or f'Signez "{phrase}" en respectant chaque paramètre du signe.',
            concept_ids=[target.id],
        )

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> list[str]:
        return list(content["evaluation_criteria"])

    @staticmethod
    def _assessment(submitted: Any) -> dict[str, float]:
        if not isinstance(submitted, dict):
            return {}
        assessment = submitted.get("assessment", submitted)
        if not isinstance(assessment, dict):
            return {}
        return {
            str(k): clamp(float(v))
            for k, v in assessment.items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        """Mean of the assessed criteria; unassessed criteria count as 0."""
        if not expected:
            return 0.0
        assessment = self._assessment(submitted)
        return sum(assessment.get(criterion, 0.0) for criterion in expected) / len(expected)

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        assessment = self._assessment(submitted)
        return {
            "criteria_scores": {c: assessment.get(c, 0.0) for c in expected},
            "missing_criteria": [c for c in expected if c not in assessment],
        }

    def validate(self, content: dict[str, Any]) -> bool:
        return (
            bool(content.get("evaluation_criteria"))
            and bool(content.get("phrase"))
            and 0 < content.get("min_recording_duration", 0) <= content.get("max_recording_duration", 0)
        )

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        return [
            "Visionnez la vidéo de référence avant de vous enregistrer.",
            "Vérifiez la configuration de vos mains au départ du signe.",
            "Soignez l'expression du visage, elle porte une partie du sens.",
            f"Restez sous {content.get('max_recording_duration')} secondes d'enregistrement.",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Keep the manual criteria only, show the reference and allow longer takes."""
        simpler = copy.deepcopy(content)
        simpler["evaluation_criteria"] = [
            c for c in simpler["evaluation_criteria"] if "configuration" in c or "mouvement" in c
        ]
        simpler["show_reference"] = True
        simpler["slow_motion"] = True
        simpler["max_recording_duration"] = round(
            simpler["max_recording_duration"] * EASY_DURATION_FACTOR
        )
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        harder = copy.deepcopy(content)
        harder["evaluation_criteria"] = dedupe(harder["evaluation_criteria"] + ADVANCED_CRITERIA)
        harder["show_reference"] = False
        harder["time_limited"] = True
        harder["max_recording_duration"] = max(
            harder["min_recording_duration"],
            round(harder["max_recording_duration"] * HARD_DURATION_FACTOR),
        )
        return harder
