"""
Fill-blank strategy.

Each hidden concept gets its own sentence, drawn from a template bank whose
syntax grows more complex from A1 to C2. Answers are matched exactly,
ignoring case and surrounding whitespace.
"""

from __future__ import annotations

import copy
from typing import Any

from ..core.levels import CECRLLevel
from ..core.models import ExerciseType
from ..core.templating import TemplateBank, make_text_more_complex
from .base import ConceptSet, ExerciseDraft, GenerationStrategy, StrategyRegistry, level_skills
from .text import dedupe

SENTENCE_TEMPLATES: dict[CECRLLevel, TemplateBank] = {
    CECRLLevel.A1: TemplateBank(
        "fill-blank-a1",
        [
            "Pour parler de {category}, je signe {blank}.",
            "Le signe {blank} fait partie du thème {category}.",
            "En LSF, {blank} est un signe du thème {category}.",
        ],
    ),
    CECRLLevel.A2: TemplateBank(
        "fill-blank-a2",
        [
            "Dans une conversation sur {category}, on utilise souvent le signe {blank}.",
            "Quand on parle de {category}, le signe {blank} revient régulièrement.",
            "Pour échanger sur le thème {category}, il faut connaître {blank}.",
        ],
    ),
    CECRLLevel.B1: TemplateBank(
        "fill-blank-b1",
        [
            "L'utilisation de {blank} dépend du contexte, notamment lorsqu'il s'agit de {category}.",
            "Lorsqu'on aborde le thème {category}, {blank} peut être modulé par l'expression du visage.",
            "En situation réelle, {blank} s'emploie surtout dans les échanges liés à {category}.",
        ],
    ),
    CECRLLevel.B2: TemplateBank(
        "fill-blank-b2",
        [
            "L'analyse d'un échange sur {category} montre que {blank} s'adapte au registre de l'interlocuteur.",
            "Maîtriser {blank} permet d'argumenter avec précision sur le thème {category}.",
            "Dans une discussion soutenue sur {category}, {blank} se combine avec des références spatiales.",
        ],
    ),
    CECRLLevel.C1: TemplateBank(
        "fill-blank-c1",
        [
            "Dans un exposé sur {category}, la subtilité de {blank} se manifeste par des variations de rythme et d'intensité.",
            "L'analyse approfondie de {blank} révèle les nuances propres au domaine {category}.",
            "Un signeur expérimenté module {blank} pour rendre compte des enjeux liés à {category}.",
        ],
    ),
    CECRLLevel.C2: TemplateBank(
        "fill-blank-c2",
        [
            "La maîtrise native de {blank} illustre comment un discours sur {category} intègre iconicité et grammaire spatiale.",
            "L'intuition d'un signeur natif lui fait anticiper {blank} dès qu'un récit touche à {category}.",
            "Dans une interprétation de conférence sur {category}, {blank} s'harmonise avec les composantes non manuelles.",
        ],
    ),
}

INSTRUCTIONS = TemplateBank(
    "fill-blank-instructions",
    [
        "Complétez le texte suivant en choisissant les termes appropriés en LSF.",
        "Remplissez les blancs avec les signes corrects.",
        "Choisissez les mots manquants pour compléter ce texte sur la LSF.",
        "Complétez cette explication sur la LSF avec les concepts appropriés.",
    ],
)

SKILLS_BY_LEVEL: dict[CECRLLevel, list[str]] = {
    CECRLLevel.A1: ["vocabulary", "comprehension", "basicStructures"],
    CECRLLevel.A2: ["vocabulary", "comprehension", "basicStructures", "contextualUsage"],
    CECRLLevel.B1: ["vocabulary", "comprehension", "complexStructures", "contextualUsage"],
    CECRLLevel.B2: ["advancedVocabulary", "deepComprehension", "complexStructures", "nuancedUsage"],
    CECRLLevel.C1: ["expertVocabulary", "criticalComprehension", "advancedStructures", "culturalNuances"],
    CECRLLevel.C2: ["nativeVocabulary", "intuitiveComprehension", "masterStructures", "culturalMastery"],
}

MIN_BLANKS, MAX_BLANKS = 1, 5
MIN_OPTIONS, MAX_OPTIONS = 4, 8
BASE_TIME = 60
TIME_PER_BLANK = 30
SIMPLIFIED_EXTRA_OPTIONS = 2


def blank_marker(index: int) -> str:
    return f"[BLANK-{index}]"


def _normalize(answer: str) -> str:
    return answer.strip().casefold()


@StrategyRegistry.register(ExerciseType.FILL_BLANK)
class FillBlankStrategy(GenerationStrategy):
    """Complete a text with the missing signs."""

    description = "Compléter un texte avec les signes manquants"

    def generate(
        self,
        concepts: ConceptSet,
        level: CECRLLevel,
        difficulty: float,
        options: dict[str, Any],
    ) -> ExerciseDraft:
        requested = int(options.get("blank_count", self.settings.fill_blank_default_blanks))
        blank_count = min(max(MIN_BLANKS, min(MAX_BLANKS, requested)), len(concepts.targets))
        option_count = int(options.get("option_count", self.settings.fill_blank_default_options))
        option_count = max(MIN_OPTIONS, min(MAX_OPTIONS, option_count), blank_count)
        hidden = concepts.targets[:blank_count]

        sentences, blanks = [], []
        text_length = 0
        for index, concept in enumerate(hidden, start=1):
            marker = blank_marker(index)
            sentence = SENTENCE_TEMPLATES[level].render(
                self.rng, {"blank": marker, "category": concept.primary_category}
            )
            offset = text_length + (1 if sentences else 0)
            details = concepts.details_for(concept.id)
            blanks.append(
                {
                    "id": f"blank-{index}",
                    "marker": marker,
                    "position": offset + sentence.index(marker),
                    "correct_answer": concept.text,
                    "acceptable_answers": dedupe(
                        [concept.text, *(details.synonyms if details else ())]
                    ),
                    "hint": f"Ce signe fait partie de la catégorie: {', '.join(concept.categories) or 'général'}",
                }
            )
            sentences.append(sentence)
            text_length = offset + len(sentence)

        correct_texts = [b["correct_answer"] for b in blanks]
        taken = {t.casefold() for t in correct_texts}
        distractors = []
        candidates = list(concepts.peers)
        self.rng.shuffle(candidates)
        pool = list(concepts.pool)
        self.rng.shuffle(pool)
        for concept in candidates + pool:
            if len(correct_texts) + len(distractors) >= option_count:
                break
            if concept.text.casefold() not in taken:
                distractors.append(concept.text)
                taken.add(concept.text.casefold())

        choice_list = correct_texts + distractors
        self.rng.shuffle(choice_list)

        categories = dedupe([cat for c in hidden for cat in c.categories])
        return ExerciseDraft(
            content={
                "instructions": INSTRUCTIONS.render(self.rng, {}),
                "text": " ".join(sentences),
                "blanks": blanks,
                "options": choice_list,
                "show_blank_hints": False,
            },
            time_limit=round((BASE_TIME + TIME_PER_BLANK * blank_count) * (1 + (1 - difficulty) * 0.5)),
            skills=level_skills(SKILLS_BY_LEVEL, level, options.get("focus_areas", [])),
            tags=["fill-blank", level.value, "text-completion", *categories],
            explanation="Signes attendus : " + ", ".join(correct_texts) + ".",
            concept_ids=[c.id for c in hidden],
        )

    # ----- scoring ---------------------------------------------------------

    def expected_answer(self, content: dict[str, Any]) -> dict[str, list[str]]:
        return {b["id"]: list(b["acceptable_answers"]) for b in content["blanks"]}

    @staticmethod
    def _answers(content: dict[str, Any], submitted: Any) -> dict[str, str]:
        if isinstance(submitted, dict):
            submitted = submitted.get("answers", submitted)
        if isinstance(submitted, dict):
            return {str(k): str(v) for k, v in submitted.items() if v is not None}
        if isinstance(submitted, (list, tuple)):
            ids = [b["id"] for b in content["blanks"]]
            return {blank_id: str(answer) for blank_id, answer in zip(ids, submitted) if answer is not None}
        return {}

    def _blank_results(self, content: dict[str, Any], expected: Any, submitted: Any) -> dict[str, bool]:
        answers = self._answers(content, submitted)
        return {
            blank_id: blank_id in answers
            and _normalize(answers[blank_id]) in {_normalize(a) for a in acceptable}
            for blank_id, acceptable in expected.items()
        }

    def score_response(self, content: dict[str, Any], expected: Any, submitted: Any) -> float:
        if not expected:
            return 0.0
        results = self._blank_results(content, expected, submitted)
        return sum(results.values()) / len(results)

    def is_correct(self, content: dict[str, Any], score: float) -> bool:
        return score >= 1.0

    def evaluation_details(
        self, content: dict[str, Any], expected: Any, submitted: Any, score: float
    ) -> dict[str, Any]:
        return {"blank_results": self._blank_results(content, expected, submitted)}

    def validate(self, content: dict[str, Any]) -> bool:
        blanks = content.get("blanks") or []
        text = content.get("text", "")
        return bool(blanks) and all(
            b["marker"] in text and b["correct_answer"] in content.get("options", []) for b in blanks
        )

    def build_hints(self, content: dict[str, Any]) -> list[str]:
        blanks = content.get("blanks", [])
        first = blanks[0]["correct_answer"] if blanks else ""
        return [
            "Lisez toute la phrase avant de choisir.",
            *(b["hint"] for b in blanks[:2]),
            f"La première réponse commence par « {first[:1]} ».",
        ]

    # ----- adaptation -------------------------------------------------------

    def simplify(self, content: dict[str, Any]) -> dict[str, Any]:
        """Show per-blank hints and keep only two distractors."""
        simpler = copy.deepcopy(content)
        simpler["show_blank_hints"] = True
        correct = {b["correct_answer"] for b in simpler["blanks"]}
        kept, extra = [], 0
        for option in simpler["options"]:
            if option in correct:
                kept.append(option)
            elif extra < SIMPLIFIED_EXTRA_OPTIONS:
                kept.append(option)
                extra += 1
        simpler["options"] = kept
        return simpler

    def complicate(self, content: dict[str, Any]) -> dict[str, Any]:
        harder = copy.deepcopy(content)
        harder["show_blank_hints"] = False
        harder["instructions"] = make_text_more_complex(harder["instructions"])
        return harder
