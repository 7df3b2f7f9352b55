"""
Unit tests for phrase templates and register rewriting.
"""

import random

import pytest

from lsf_exercises.core import PhraseTemplate, TemplateBank, make_text_more_complex, simplify_text


class TestPhraseTemplate:
    """Tests for PhraseTemplate."""

    def test_placeholders_in_order_without_duplicates(self):
        """Test placeholders are listed once, in order of appearance."""
        template = PhraseTemplate("{sign} puis {context}, encore {sign}")
        assert template.placeholders == ("sign", "context")

    def test_render(self):
        """Test every placeholder is substituted."""
        template = PhraseTemplate("Signez « {sign} » dans {context}")
        assert template.render({"sign": "Bonjour", "context": "un dialogue"}) == (
            "Signez « Bonjour » dans un dialogue"
        )

    def test_render_missing_binding_raises(self):
        """Test a missing binding raises KeyError."""
        with pytest.raises(KeyError, match="context"):
            PhraseTemplate("{sign} {context}").render({"sign": "Merci"})


class TestTemplateBank:
    """Tests for TemplateBank."""

    def test_empty_bank_rejected(self):
        """Test an empty bank cannot be built."""
        with pytest.raises(ValueError):
            TemplateBank("empty", [])

    def test_choice_is_reproducible_with_seed(self):
        """Test the same seed gives the same sequence of renders."""
        bank = TemplateBank("q", ["A {x}", "B {x}", "C {x}", "D {x}"])
        first = [bank.render(random.Random(7), {"x": i}) for i in range(5)]
        second = [bank.render(random.Random(7), {"x": i}) for i in range(5)]
        assert first == second
        assert len(bank) == 4


class TestRegisterRewriting:
    """Tests for simplify_text and make_text_more_complex."""

    def test_simplify_longest_match_first(self):
        """Test multi-word entries win over their prefixes."""
        assert simplify_text("un mouvement complexe") == "un mouvement"

    def test_simplify_is_case_insensitive(self):
        """Test matches ignore case."""
        assert simplify_text("Exprimer une idée") == "dire une idée"

    def test_complexify_whole_words_only(self):
        """Test partial words are left alone."""
        assert make_text_more_complex("pourquoi") == "pourquoi"
        assert make_text_more_complex("dire merci") == "communiquer précisément merci"

    def test_complexify_single_pass(self):
        """Test replacements are not themselves rewritten."""
        assert make_text_more_complex("pour") == "dans le contexte spécifique de"
