"""
Unit tests for CECRL levels, difficulty bands and request validation.
"""

import pytest

from lsf_exercises.core import (
    CECRLLevel,
    DifficultyBand,
    ExerciseRequest,
    ExerciseType,
    ExerciseValidationError,
    clamp,
    map_difficulty_to_band,
    map_difficulty_to_cecrl,
    parse_level,
)


class TestDifficultyMapping:
    """Tests for difficulty to level/band mapping."""

    @pytest.mark.parametrize(
        "difficulty,expected",
        [
            (0.0, CECRLLevel.A1),
            (0.16, CECRLLevel.A1),
            (0.2, CECRLLevel.A2),
            (0.33, CECRLLevel.A2),
            (0.5, CECRLLevel.B1),
            (0.6, CECRLLevel.B2),
            (0.83, CECRLLevel.C1),
            (0.84, CECRLLevel.C2),
            (1.0, CECRLLevel.C2),
        ],
    )
    def test_map_difficulty_to_cecrl(self, difficulty, expected):
        """Test level bounds are inclusive."""
        assert map_difficulty_to_cecrl(difficulty) == expected

    @pytest.mark.parametrize(
        "difficulty,expected",
        [
            (0.1, DifficultyBand.BEGINNER),
            (0.4, DifficultyBand.EASY),
            (0.55, DifficultyBand.MEDIUM),
            (0.8, DifficultyBand.HARD),
            (0.95, DifficultyBand.EXPERT),
        ],
    )
    def test_map_difficulty_to_band(self, difficulty, expected):
        """Test band bounds."""
        assert map_difficulty_to_band(difficulty) == expected

    def test_level_rank_is_ordered(self):
        """Test ranks follow A1 < ... < C2."""
        ranks = [level.rank for level in CECRLLevel]
        assert ranks == sorted(ranks)
        assert CECRLLevel.A1.rank == 0
        assert CECRLLevel.C2.rank == 5

    def test_clamp(self):
        """Test clamp bounds values into [0, 1]."""
        assert clamp(-0.5) == 0.0
        assert clamp(1.5) == 1.0
        assert clamp(0.42) == 0.42


class TestParseLevel:
    """Tests for parse_level."""

    def test_parse_lowercase_with_spaces(self):
        """Test case and whitespace are ignored."""
        assert parse_level(" b2 ") == CECRLLevel.B2

    def test_parse_enum_passthrough(self):
        """Test an enum member is returned unchanged."""
        assert parse_level(CECRLLevel.C1) is CECRLLevel.C1

    def test_parse_invalid_raises(self):
        """Test unknown levels raise a validation error."""
        with pytest.raises(ExerciseValidationError) as exc_info:
            parse_level("D1")
        assert exc_info.value.errors


class TestExerciseType:
    """Tests for ExerciseType parsing."""

    @pytest.mark.parametrize(
        "raw", ["MultipleChoice", "multiple-choice", "multiple_choice", "MULTIPLECHOICE"]
    )
    def test_parse_aliases(self, raw):
        """Test value and snake/kebab aliases resolve."""
        assert ExerciseType.parse(raw) == ExerciseType.MULTIPLE_CHOICE

    def test_parse_unknown(self):
        """Test unknown names resolve to None."""
        assert ExerciseType.parse("Crossword") is None
        assert ExerciseType.parse(42) is None

    def test_slug(self):
        """Test kebab-case slug."""
        assert ExerciseType.SIGNING_PRACTICE.slug == "signing-practice"


class TestExerciseRequest:
    """Tests for request validation."""

    def test_build_from_camel_case(self):
        """Test camelCase keys are accepted."""
        request = ExerciseRequest.build(
            {
                "type": "FillBlank",
                "level": "b1",
                "difficulty": 0.4,
                "focusAreas": ["voyage"],
                "conceptIds": ["voyage"],
                "skillEstimate": 0.5,
                "includeHints": True,
            }
        )
        assert request.type == ExerciseType.FILL_BLANK
        assert request.level == CECRLLevel.B1
        assert request.focus_areas == ["voyage"]
        assert request.concept_ids == ["voyage"]
        assert request.skill_estimate == 0.5
        assert request.include_hints is True

    def test_resolved_level_falls_back_to_difficulty(self):
        """Test level is derived from difficulty when absent."""
        request = ExerciseRequest.build({"type": "TextEntry", "difficulty": 0.9})
        assert request.level is None
        assert request.resolved_level == CECRLLevel.C2

    def test_explicit_level_wins(self):
        """Test an explicit level overrides the difficulty mapping."""
        request = ExerciseRequest.build({"type": "TextEntry", "level": "A1", "difficulty": 0.9})
        assert request.resolved_level == CECRLLevel.A1

    @pytest.mark.parametrize(
        "params",
        [
            {"type": "Crossword"},
            {"type": "MultipleChoice", "difficulty": 1.5},
            {"type": "MultipleChoice", "difficulty": -0.1},
            {"type": "MultipleChoice", "level": "Z9"},
            {"type": "MultipleChoice", "skillEstimate": 2},
            {"type": "MultipleChoice", "conceptIds": [""]},
            {"difficulty": 0.5},
        ],
    )
    def test_invalid_params_raise(self, params):
        """Test malformed parameters raise ExerciseValidationError."""
        with pytest.raises(ExerciseValidationError) as exc_info:
            ExerciseRequest.build(params)
        assert exc_info.value.errors

    def test_non_mapping_raises(self):
        """Test non-dict parameters are rejected."""
        with pytest.raises(ExerciseValidationError):
            ExerciseRequest.build(["MultipleChoice"])

    def test_cache_key_is_order_independent_for_focus(self):
        """Test focus areas are sorted in the cache key."""
        first = ExerciseRequest.build({"type": "DragDrop", "focusAreas": ["a", "b"]})
        second = ExerciseRequest.build({"type": "DragDrop", "focusAreas": ["b", "a"]})
        assert first.cache_key() == second.cache_key()

    def test_cache_key_changes_with_difficulty(self):
        """Test different difficulties give different keys."""
        first = ExerciseRequest.build({"type": "DragDrop", "difficulty": 0.2})
        second = ExerciseRequest.build({"type": "DragDrop", "difficulty": 0.25})
        assert first.cache_key() != second.cache_key()

    def test_cache_key_is_per_user(self):
        """Test learners never share a cache key; anonymous requests do."""
        alice = ExerciseRequest.build({"type": "DragDrop", "userId": "alice"})
        bob = ExerciseRequest.build({"type": "DragDrop", "userId": "bob"})
        anonymous = ExerciseRequest.build({"type": "DragDrop"})
        assert alice.cache_key() != bob.cache_key()
        assert anonymous.cache_key().endswith("|anon")
        assert anonymous.cache_key() == ExerciseRequest.build({"type": "DragDrop"}).cache_key()
