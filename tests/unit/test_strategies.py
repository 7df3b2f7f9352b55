"""
Unit tests for the closed-answer strategies: multiple-choice, drag-drop, fill-blank.
"""

import random

import pytest

from lsf_exercises.core import (
    CECRLLevel,
    ConceptDetails,
    ExerciseGenerationError,
    ExerciseType,
)
from lsf_exercises.exercises import (
    ConceptSet,
    DragDropStrategy,
    FillBlankStrategy,
    GenerationStrategy,
    MultipleChoiceStrategy,
    StrategyRegistry,
    build_feedback,
    hint_count_for,
)


@pytest.fixture
def mcq(settings, rng):
    """Seeded multiple-choice strategy."""
    return MultipleChoiceStrategy(rng=rng, settings=settings)


@pytest.fixture
def drag_drop(settings, rng):
    """Seeded drag-drop strategy."""
    return DragDropStrategy(rng=rng, settings=settings)


@pytest.fixture
def fill_blank(settings, rng):
    """Seeded fill-blank strategy."""
    return FillBlankStrategy(rng=rng, settings=settings)


class TestStrategyRegistry:
    """Tests for StrategyRegistry and shared helpers."""

    def test_all_types_registered(self):
        """Test every exercise type has a strategy."""
        assert StrategyRegistry.supported_types() == list(ExerciseType)

    def test_create_injects_dependencies(self, settings, rng):
        """Test create passes rng and settings through."""
        strategy = StrategyRegistry.create("fill-blank", rng=rng, settings=settings)
        assert isinstance(strategy, FillBlankStrategy)
        assert isinstance(strategy, GenerationStrategy)
        assert strategy.rng is rng
        assert strategy.settings is settings

    def test_unknown_type(self):
        """Test unknown types raise KeyError."""
        with pytest.raises(KeyError):
            StrategyRegistry.get("Crossword")

    def test_list_strategies(self):
        """Test listing by type value."""
        assert StrategyRegistry.list_strategies()["MultipleChoice"] is MultipleChoiceStrategy

    @pytest.mark.parametrize("difficulty,count", [(0.1, 4), (0.3, 4), (0.5, 2), (0.7, 2), (0.9, 1)])
    def test_hint_count_for(self, difficulty, count):
        """Test easier exercises expose more hints."""
        assert hint_count_for(difficulty) == count

    def test_build_feedback_bands(self):
        """Test strengths, consolidation and improvement bands."""
        strong = build_feedback(0.9, ["a", "b", "c"])
        assert strong.strengths == ["Bonne maîtrise : a", "Bonne maîtrise : b"]
        middle = build_feedback(0.65, ["a"])
        assert middle.strengths == ["Bases acquises"]
        weak = build_feedback(0.2, [])
        assert weak.areas_for_improvement
        assert weak.next_steps


class TestMultipleChoiceStrategy:
    """Tests for MultipleChoiceStrategy."""

    def test_options_invariants(self, mcq, concept_set):
        """Test option count, unique ids and exactly one correct option."""
        draft = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        options = draft.content["options"]
        assert len(options) == 4
        assert len({o["id"] for o in options}) == 4
        assert len({o["text"].lower() for o in options}) == 4
        assert sum(o["is_correct"] for o in options) == 1
        correct = options[draft.content["correct_index"]]
        assert correct["is_correct"]
        assert correct["concept_id"] == "bonjour"
        assert mcq.validate(draft.content)
        assert draft.time_limit == 70

    def test_related_fill_at_most_half(self, mcq, concept_set):
        """Test related concepts take at most half of the distractor slots."""
        draft = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        distractors = {o["concept_id"] for o in draft.content["options"] if not o["is_correct"]}
        assert len(distractors & {"au_revoir", "merci"}) == 1

    def test_same_seed_same_exercise(self, settings, concept_set):
        """Test generation is reproducible with a seeded rng."""
        first = MultipleChoiceStrategy(rng=random.Random(5), settings=settings)
        second = MultipleChoiceStrategy(rng=random.Random(5), settings=settings)
        assert (
            first.generate(concept_set("merci"), CECRLLevel.A1, 0.2, {}).content
            == second.generate(concept_set("merci"), CECRLLevel.A1, 0.2, {}).content
        )

    @pytest.mark.parametrize("requested,expected", [(1, 2), (6, 6), (50, 10)])
    def test_option_count_clamped(self, mcq, concept_set, requested, expected):
        """Test option_count is clamped to the configured bounds."""
        draft = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {"option_count": requested})
        assert len(draft.content["options"]) == expected

    def test_not_enough_distractors(self, mcq, seed_catalog):
        """Test a lone concept cannot make a four-option question."""
        by_id, _ = seed_catalog
        with pytest.raises(ExerciseGenerationError) as exc_info:
            mcq.generate(ConceptSet(targets=[by_id["bonjour"]]), CECRLLevel.A1, 0.2, {})
        assert exc_info.value.exercise_type == "MultipleChoice"

    def test_unsupported_media(self, mcq, concept_set):
        """Test unknown media types are rejected."""
        with pytest.raises(ExerciseGenerationError):
            mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {"question_type": "audio"})

    def test_video_media(self, mcq, concept_set):
        """Test video question and answers carry URLs."""
        draft = mcq.generate(
            concept_set("bonjour"), CECRLLevel.A1, 0.2, {"question_type": "video", "answer_type": "video"}
        )
        assert draft.content["video_url"]
        assert all(o["video_url"] for o in draft.content["options"])
        assert "question-video" in draft.tags

    def test_evaluate(self, mcq, concept_set, make_exercise):
        """Test correct id, wrong id, index and dict responses."""
        draft = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        exercise = make_exercise(mcq, draft, CECRLLevel.A1, 0.2)
        correct_id = mcq.expected_answer(draft.content)
        wrong_id = next(o["id"] for o in draft.content["options"] if not o["is_correct"])

        result = mcq.evaluate(exercise, correct_id)
        assert result.correct is True
        assert result.score == 1.0
        assert result.explanation.startswith("Bonne réponse")
        assert result.skill_scores == {skill: 1.0 for skill in draft.skills}

        wrong = mcq.evaluate(exercise, wrong_id)
        assert wrong.correct is False
        assert wrong.score == 0.0
        assert wrong.details == {"selected_option": wrong_id, "correct_option": correct_id}

        assert mcq.evaluate(exercise, draft.content["correct_index"]).score == 1.0
        assert mcq.evaluate(exercise, {"option_id": correct_id}).correct
        assert mcq.evaluate(exercise, True).score == 0.0
        assert mcq.evaluate(exercise, 99).score == 0.0

    def test_simplify_drops_one_distractor(self, mcq, concept_set):
        """Test simplify keeps the correct option and shrinks the list."""
        content = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {}).content
        simpler = mcq.simplify(content)
        assert len(simpler["options"]) == 3
        assert simpler["options"][simpler["correct_index"]]["is_correct"]
        assert len(content["options"]) == 4
        assert mcq.validate(simpler)

    def test_simplify_keeps_minimum(self, mcq, concept_set):
        """Test two options are never reduced further."""
        content = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {"option_count": 2}).content
        assert len(mcq.simplify(content)["options"]) == 2

    def test_validate_rejects_two_correct(self, mcq, concept_set):
        """Test validate catches more than one correct option."""
        content = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {}).content
        for option in content["options"]:
            option["is_correct"] = True
        assert not mcq.validate(content)

    def test_hints(self, mcq, concept_set, make_exercise):
        """Test hints run out after the last one."""
        draft = mcq.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        exercise = make_exercise(mcq, draft, CECRLLevel.A1, 0.2)
        assert "salutations" in mcq.hint(exercise, 1)
        assert mcq.hint(exercise, 3).endswith("« B ».")
        assert mcq.hint(exercise, 4) is None
        assert len(mcq.hints_for_difficulty(draft.content, 0.9)) == 1


class TestDragDropStrategy:
    """Tests for DragDropStrategy."""

    def test_pairs_from_examples(self, drag_drop, concept_set):
        """Test one pair per example and consistent pairings."""
        draft = drag_drop.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        content = draft.content
        assert len(content["items"]) == 3
        accepts = {t["id"]: t["accepts_item_id"] for t in content["targets"]}
        for pairing in content["pairings"]:
            assert accepts[pairing["target_id"]] == pairing["item_id"]
        assert drag_drop.validate(content)
        assert draft.time_limit == 300

    def test_max_pairs(self, drag_drop, concept_set):
        """Test the pair count is capped."""
        draft = drag_drop.generate(concept_set("bonjour", "merci"), CECRLLevel.A1, 0.9, {"max_pairs": 5})
        assert len(draft.content["pairings"]) == 5
        assert draft.concept_ids == ["bonjour", "merci"]
        assert draft.time_limit == 120

    def test_too_few_examples(self, drag_drop, seed_catalog):
        """Test a concept with a single example is rejected."""
        by_id, _ = seed_catalog
        concepts = ConceptSet(
            targets=[by_id["oui"]],
            details={"oui": ConceptDetails(id="oui", examples=("Oui",))},
        )
        with pytest.raises(ExerciseGenerationError):
            drag_drop.generate(concepts, CECRLLevel.A1, 0.2, {})

    def test_scoring(self, drag_drop, concept_set, make_exercise):
        """Test full, partial and alternative response shapes."""
        draft = drag_drop.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {})
        exercise = make_exercise(drag_drop, draft, CECRLLevel.A1, 0.2)
        expected = drag_drop.expected_answer(draft.content)

        assert drag_drop.evaluate(exercise, expected).score == 1.0
        assert drag_drop.evaluate(exercise, {"pairings": draft.content["pairings"]}).correct

        partial = drag_drop.evaluate(exercise, {"item-1": expected["item-1"]})
        assert partial.score == pytest.approx(1 / 3)
        assert partial.details["matched_pairs"] == 1
        assert partial.details["incorrect_items"] == ["item-2", "item-3"]

        assert drag_drop.evaluate(exercise, "nonsense").score == 0.0

    def test_simplify_keeps_four_pairs(self, drag_drop, concept_set):
        """Test simplify keeps at most four consistent pairs."""
        content = drag_drop.generate(concept_set("bonjour", "merci"), CECRLLevel.A1, 0.2, {}).content
        assert len(content["pairings"]) == 6
        simpler = drag_drop.simplify(content)
        assert len(simpler["pairings"]) == 4
        assert drag_drop.validate(simpler)

    def test_complicate_rewrites_descriptions(self, drag_drop, concept_set):
        """Test complicate changes wording without touching pairings."""
        content = drag_drop.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {}).content
        harder = drag_drop.complicate(content)
        assert harder["pairings"] == content["pairings"]
        assert [t["id"] for t in harder["targets"]] == [t["id"] for t in content["targets"]]


class TestFillBlankStrategy:
    """Tests for FillBlankStrategy."""

    def test_blanks_and_options(self, fill_blank, concept_set):
        """Test markers, positions and that every answer is offered."""
        draft = fill_blank.generate(concept_set("bonjour", "merci", "oui"), CECRLLevel.A1, 0.2, {})
        content = draft.content
        assert len(content["blanks"]) == 3
        assert len(content["options"]) == 6
        for blank in content["blanks"]:
            marker = blank["marker"]
            assert content["text"][blank["position"]:blank["position"] + len(marker)] == marker
            assert blank["correct_answer"] in content["options"]
        assert fill_blank.validate(content)
        assert draft.concept_ids == ["bonjour", "merci", "oui"]

    def test_acceptable_answers_are_text_and_synonyms(self, fill_blank, concept_set):
        """Test acceptable answers come from the concept and its synonyms only."""
        content = fill_blank.generate(concept_set("bonjour"), CECRLLevel.A1, 0.2, {}).content
        assert content["blanks"][0]["acceptable_answers"] == ["Bonjour", "Salut", "Coucou"]

    def test_blank_count_capped_by_targets(self, fill_blank, concept_set):
        """Test there are never more blanks than target concepts."""
        content = fill_blank.generate(
            concept_set("bonjour", "merci"), CECRLLevel.A1, 0.2, {"blank_count": 5}
        ).content
        assert len(content["blanks"]) == 2

    def test_scoring(self, fill_blank, concept_set, make_exercise):
        """Test case-insensitive matching, synonyms and partial credit."""
        draft = fill_blank.generate(concept_set("bonjour", "merci", "oui"), CECRLLevel.A1, 0.2, {})
        exercise = make_exercise(fill_blank, draft, CECRLLevel.A1, 0.2)

        full = fill_blank.evaluate(
            exercise, {"blank-1": " bonjour ", "blank-2": "MERCI", "blank-3": "Oui"}
        )
        assert full.correct is True
        assert full.score == 1.0

        assert fill_blank.evaluate(exercise, ["Salut", "Merci", "D'accord"]).score == 1.0

        partial = fill_blank.evaluate(exercise, {"answers": {"blank-1": "Bonjour", "blank-2": "Non"}})
        assert partial.score == pytest.approx(1 / 3)
        assert partial.correct is False
        assert partial.details["blank_results"] == {
            "blank-1": True,
            "blank-2": False,
            "blank-3": False,
        }

    def test_simplify(self, fill_blank, concept_set):
        """Test simplify shows hints and keeps two distractors."""
        content = fill_blank.generate(concept_set("bonjour", "merci"), CECRLLevel.A1, 0.2, {}).content
        simpler = fill_blank.simplify(content)
        assert simpler["show_blank_hints"] is True
        assert len(simpler["options"]) == 4
        assert fill_blank.validate(simpler)

    def test_level_templates(self, fill_blank, concept_set):
        """Test every level has sentences with the marker."""
        for level in CECRLLevel:
            content = fill_blank.generate(concept_set("voyage"), level, 0.5, {}).content
            assert "[BLANK-1]" in content["text"]
