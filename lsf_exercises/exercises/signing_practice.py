"""
Signing-practice strategy.

The richest exercise: ordered practice steps scaled by level, a fixed set
of performance metrics enabled per level, optional variations chained by
prerequisites, and recording settings. Scoring averages the enabled
metrics and turns weak metrics into improvement suggestions.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.levels import CECRLLevel, clamp
from ..core.models import ExerciseType
from ..core.templating import TemplateBank
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry, level_skills

BASE_STEPS = [
    "Observez attentivement la vidéo tutorielle",
    "Identifiez la configuration des mains",
    "Notez le mouvement principal et sa direction",
    "Observez l'expression faciale associée",
]

LEVEL_STEPS: dict[CECRLLevel, list[str]] = {
    CECRLLevel.A1: [
        "Pratiquez lentement la configuration des mains",
        "Répétez le mouvement plusieurs fois",
        "Enregistrez votre tentative",
    ],
    CECRLLevel.A2: [
        "Pratiquez la configuration et le mouvement ensemble",
        "Ajoutez l'expression faciale appropriée",
        "Répétez à vitesse normale",
        "Enregistrez votre performance",
    ],
    CECRLLevel.B1: [
        "Pratiquez avec les expressions faciales",
        "Travaillez sur la fluidité du mouvement",
        "Intégrez dans une phrase simple",
        "Enregistrez votre performance",
    ],
    CECRLLevel.B2: [
        "Maîtrisez toutes les composantes du signe",
        "Pratiquez les variations contextuelles",
        "Travaillez sur le rythme et la prosodie",
        "Enregistrez une performance complète",
    ],
    CECRLLevel.C1: [
        "Perfectionnez tous les paramètres",
        "Pratiquez les nuances expressives",
        "Intégrez dans des discours complexes",
        "Enregistrez une démonstration experte",
    ],
    CECRLLevel.C2: [
        "Maîtrisez les variations stylistiques",
        "Adaptez selon le registre de langue",
        "Démontrez une maîtrise native",
        "Enregistrez une performance de référence",
    ],
}

ANALYSIS_STEPS = [
    "Analysez votre enregistrement en détail",
    "Comparez avec le modèle de référence",
    "Identifiez les points d'amélioration",
]

METRICS = (
    "handConfiguration",
    "handOrientation",
    "movement",
    "facialExpression",
    "bodyPosture",
    "spatialUsage",
    "rhythm",
    "fluidity",
)

_ENABLED_METRICS: dict[CECRLLevel, set[str]] = {
    CECRLLevel.A1: {"handConfiguration", "handOrientation", "movement"},
    CECRLLevel.A2: {"handConfiguration", "handOrientation", "movement", "facialExpression"},
    CECRLLevel.B1: {
        "handConfiguration", "handOrientation", "movement", "facialExpression",
        "bodyPosture", "spatialUsage", "fluidity",
    },
    CECRLLevel.B2: set(METRICS),
    CECRLLevel.C1: set(METRICS),
    CECRLLevel.C2: set(METRICS),
}

SUGGESTIONS: dict[str, str] = {
    "handConfiguration": "Travaillez sur la forme et la position de vos mains",
    "handOrientation": "Attention à l'orientation de vos paumes",
    "movement": "Concentrez-vous sur la trajectoire et la vitesse du mouvement",
    "facialExpression": "N'oubliez pas les expressions faciales appropriées",
    "bodyPosture": "Vérifiez votre posture corporelle",
    "spatialUsage": "Travaillez sur l'utilisation de l'espace de signation",
    "rhythm": "Pratiquez le rythme et le timing du signe",
    "fluidity": "Travaillez sur la fluidité entre les mouvements",
}
ENCOURAGEMENT = "Excellent travail ! Continuez à pratiquer pour maintenir votre niveau."

# metric -> (threshold, detected error)
COMMON_ERRORS: dict[str, tuple[float, str]] = {
    "handConfiguration": (0.5, "Configuration des mains incorrecte"),
    "movement": (0.5, "Mouvement imprécis"),
    "facialExpression": (0.4, "Expression faciale manquante ou inadéquate"),
}

BASE_SKILLS = ["signing", "motorSkills", "visualMemory"]
SKILLS_BY_LEVEL: dict[CECRLLevel, list[str]] = {
    CECRLLevel.A1: BASE_SKILLS + ["basicSigning", "handConfiguration"],
    CECRLLevel.A2: BASE_SKILLS + ["basicSigning", "handConfiguration", "facialExpression"],
    CECRLLevel.B1: BASE_SKILLS + ["intermediateSigning", "spatialAwareness", "expressiveSkills"],
    CECRLLevel.B2: BASE_SKILLS + ["advancedSigning", "prosodicSkills", "contextualAdaptation"],
    CECRLLevel.C1: BASE_SKILLS + ["expertSigning", "culturalNuances", "styleVariation"],
    CECRLLevel.C2: BASE_SKILLS + ["nativeSigning", "artisticExpression", "linguisticMastery"],
}

LEVEL_TIME_MULTIPLIERS: dict[CECRLLevel, float] = {
    CECRLLevel.A1: 1.5,
    CECRLLevel.A2: 1.3,
    CECRLLevel.B1: 1.1,
    CECRLLevel.B2: 1.0,
    CECRLLevel.C1: 0.9,
    CECRLLevel.C2: 0.8,
}
BASE_TIME = 300

ANALYSIS_DIFFICULTY = 0.7
VIEW_ANGLE_DIFFICULTY = 0.5
DIALOGUE_DIFFICULTY = 0.6
CUSTOM_SPEED_DIFFICULTY = 0.7

BEGINNER_SPEEDS = [0.5, 0.75, 1.0]
STANDARD_SPEEDS = [0.75, 1.0, 1.25]
SLOW_SPEEDS = [0.25, 0.5, 0.75]

FEEDBACK_MODES = ("simple", "standard", "advanced")

QUESTIONS = TemplateBank(
    "signing-practice-questions",
    [
        'Pratiquez le signe pour "{sign}" en suivant les étapes proposées.',
        'Apprenez à signer "{sign}" et enregistrez votre performance.',
        'Maîtrisez le signe "{sign}" en vous concentrant sur chaque paramètre.',
        'Démontrez votre maîtrise du signe "{sign}" avec précision.',
    ],
)


def _file_name(sign: str) -> str:
    return "_".join("".join(ch for ch in sign.lower() if ch.isalnum() or ch.isspace()).split())


@StrategyRegistry.register(ExerciseType.SIGNING_PRACTICE)
class SigningPracticeStrategy(GenerationStrategy):
    """Guided practice of one sign with recorded performance metrics."""

    description = "Pratique guidée d'un signe avec métriques de performance"

    @property
    def passing_score(self) -> float:
        return self.settings.signing_practice_pass_score

    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        target = concepts.primary
        sign = target.text
        feedback_mode = options.get("feedback_mode", "standard")
        if feedback_mode not in FEEDBACK_MODES:
            feedback_mode = "standard"
        real_time = bool(options.get("enable_real_time_feedback", True))
        include_variations = bool(options.get("include_variations", True))
        recording_required = bool(options.get("recording_required", True))

        tutorial_url = target.video_url or (
            f"/assets/tutorials/lsf/{target.primary_category}/{_file_name(sign)}.mp4"
        )

        steps = BASE_STEPS + LEVEL_STEPS[level]
        if difficulty > ANALYSIS_DIFFICULTY:
            steps = steps + ANALYSIS_STEPS

        category_context = (
            f' Ce signe fait partie de la catégorie "{target.categories[0]}".' if target.categories else ""
        )

        content = {
            "question": QUESTIONS.render(self.rng, {"sign": sign}) + category_context,
            "sign_to_learn": sign,
            "tutorial_video_url": tutorial_url,
            "reference_image_url": target.image_url,
            "steps": steps,
            "performance_metrics": {m: m in _ENABLED_METRICS[level] for m in METRICS},
            "feedback_mode": feedback_mode,
            "interactive_elements": {
                "comparison_side": True,
                "view_angle_selector": difficulty > VIEW_ANGLE_DIFFICULTY,
                "speed_control": {
                    "options": BEGINNER_SPEEDS if level == CECRLLevel.A1 else STANDARD_SPEEDS,
                    "default": 0.75 if level == CECRLLevel.A1 else 1.0,
                    "allow_custom": difficulty > CUSTOM_SPEED_DIFFICULTY,
                },
                "parameter_focus": [
                    {"name": "handConfiguration", "description": "Focus sur la configuration des mains",
                     "tutorial_section": 0, "enabled": True},
                    {"name": "movement", "description": "Focus sur le mouvement du signe",
                     "tutorial_section": 1, "enabled": True},
                    {"name": "facialExpression", "description": "Focus sur les expressions faciales",
                     "tutorial_section": 2, "enabled": level != CECRLLevel.A1},
                ],
                "feedback_options": {
                    "real_time": real_time,
                    "delayed": True,
                    "detailed": feedback_mode == "advanced",
                    "simplified": feedback_mode == "simple",
                },
            },
            "practice_variations": (
                self._variations(sign, tutorial_url, level, difficulty) if include_variations else []
            ),
            "recording_settings": {
                "min_duration": 3 if level == CECRLLevel.A1 else 5,
                "max_duration": 30 if difficulty > ANALYSIS_DIFFICULTY else 15,
                "auto_start": feedback_mode == "simple",
                "countdown": True,
            },
            "required_peripherals": ["camera", "microphone"],
            "category": target.primary_category,
        }

        tags = ["signing-practice", level.value, "motor-skills", "real-time"]
        if real_time:
            tags.append("real-time-feedback")
        if recording_required:
            tags.append("recording-required")
        if include_variations:
            tags.append("variations")

        explanation = (
            f'Cet exercice vous permet de pratiquer le signe "{sign}" en temps réel avec feedback '
            "immédiat. Concentrez-vous sur la précision de chaque paramètre : configuration des "
            "mains, mouvement, orientation et expression faciale."
        )
        if target.categories:
            explanation += (
                f' Ce signe appartient à la catégorie "{target.categories[0]}" et est essentiel '
                "pour une communication efficace en LSF."
            )

        return ExerciseDraft(
            content=content,
            time_limit=round(BASE_TIME * LEVEL_TIME_MULTIPLIERS[level] * (1 + difficulty * 0.5)),
            skills=level_skills(SKILLS_BY_LEVEL, level, options.get("focus_areas", [])),
            tags=tags + list(target.categories),
            explanation=explanation,
            concept_ids=[target.id],
        )

    def _variations(
        self, sign: str, tutorial_url: str, level: CECRLLevel, difficulty: float
    ) -> list[dict[str, Any]]:
        """Variations in order; each only requires variations listed before it."""
        file_name = "_".join(sign.split())
        variations: list[dict[str, Any]] = [
            {
                "id": "isolated",
                "title": "Signe isolé",
                "description": f'Pratique du signe "{sign}" de façon isolée',
                "video_url": tutorial_url,
                "difficulty": "beginner",
                "duration": 30,
                "requires_completion": [],
                "tags": ["basic", "isolated"],
            }
        ]
        if level != CECRLLevel.A1:
            variations.append(
                {
                    "id": "in_sentence",
                    "title": "Dans une phrase",
                    "description": f'Utilisation du signe "{sign}" dans une phrase simple',
                    "video_url": f"/assets/tutorials/lsf/sentences/{file_name}.mp4",
                    "difficulty": "medium",
                    "duration": 60,
                    "requires_completion": ["isolated"],
                    "tags": ["sentence", "context"],
                }
            )
        if difficulty > DIALOGUE_DIFFICULTY:
            present = [v["id"] for v in variations]
            variations.append(
                {
                    "id": "dialogue",
                    "title": "Dans un dialogue",
                    "description": f'Pratique du signe "{sign}" dans un contexte conversationnel',
                    "video_url": f"/assets/tutorials/lsf/dialogues/{file_name}.mp4",
                    "difficulty": "hard",
                    "duration": 90,
                    "requires_completion": [v for v in ("isolated", "in_sentence") if v in present],
                    "tags": ["dialogue", "conversation", "advanced"],
                }
            )
        return variations

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> list[str]:
        """Metrics the performance is judged on."""
        return [m for m, enabled in content["performance_metrics"].items() if enabled]

    @staticmethod
    def _performance(submitted: Any) -> dict[str, float]:
        if not isinstance(submitted, dict):
            return {}
        return {
            str(k): float(v)
            for k, v in submitted.items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }

    def _breakdown(self, expected: list[str], submitted: Any) -> dict[str, float]:
        performance = self._performance(submitted)
        return {metric: clamp(performance.get(metric, 0.0)) for metric in expected}

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        breakdown = self._breakdown(expected, submitted)
        if not breakdown:
            return 0.0
        return sum(breakdown.values()) / len(breakdown)

    def improvement_suggestions(self, breakdown: dict[str, float]) -> list[str]:
        threshold = self.settings.signing_improvement_threshold
        suggestions = [
            SUGGESTIONS[metric]
            for metric, score in breakdown.items()
            if score < threshold and metric in SUGGESTIONS
        ]
        return suggestions or [ENCOURAGEMENT]

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        breakdown = self._breakdown(expected, submitted)
        details: dict[str, Any] = {
            "performance_breakdown": breakdown,
            "improvement_suggestions": self.improvement_suggestions(breakdown),
            "needs_help": score < self.passing_score,
        }
        performance = self._performance(submitted)
        if performance.get("recording_duration"):
            details["recording_analysis"] = {
                "duration": performance["recording_duration"],
                "quality_score": performance.get("recording_quality", 0.5),
                "detected_errors": [
                    message
                    for metric, (threshold, message) in COMMON_ERRORS.items()
                    if metric in breakdown and breakdown[metric] < threshold
                ],
            }
        return details

    def validate(self, content: dict[str, Any]) -> bool:
        metrics = content.get("performance_metrics") or {}
        if not content.get("steps") or not any(metrics.values()):
            return False
        seen: set[str] = set()
        for variation in content.get("practice_variations", []):
            if not set(variation.get("requires_completion", [])) <= seen:
                return False
            seen.add(variation["id"])
        return True

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        return [
            "Regardez la vidéo tutorielle au ralenti avant de commencer.",
            "Commencez par la configuration des mains, sans bouger.",
            "Ajoutez le mouvement, puis l'expression du visage.",
            "Comparez votre enregistrement avec la vidéo, côte à côte.",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Slower playback, simple feedback and isolated practice only."""
        simpler = copy.deepcopy(content)
        simpler["feedback_mode"] = "simple"
        elements = simpler["interactive_elements"]
        elements["speed_control"]["options"] = SLOW_SPEEDS
        elements["speed_control"]["default"] = 0.5
        elements["feedback_options"]["simplified"] = True
        elements["feedback_options"]["detailed"] = False
        simpler["practice_variations"] = [
            v for v in simpler["practice_variations"] if v["id"] == "isolated"
        ]
        simpler["recording_settings"]["auto_start"] = True
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        """Judge every metric and give detailed feedback."""
        harder = copy.deepcopy(content)
        harder["feedback_mode"] = "advanced"
        harder["performance_metrics"] = {m: True for m in METRICS}
        elements = harder["interactive_elements"]
        elements["speed_control"]["allow_custom"] = True
        elements["feedback_options"]["detailed"] = True
        elements["feedback_options"]["simplified"] = False
        return harder
