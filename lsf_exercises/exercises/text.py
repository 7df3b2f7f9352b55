"""
Text helpers shared by the strategies: normalization, slugs and fuzzy matching.
"""

from __future__ import annotations

import re
import unicodedata
from difflib import SequenceMatcher
from typing import Iterable

_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_answer(text: str) -> str:
    """Lowercase, drop accents and punctuation, collapse whitespace."""
    text = strip_accents(text.lower())
    text = _NON_WORD.sub(" ", text)
    return _SPACES.sub(" ", text).strip()


def slugify(text: str) -> str:
    """``"Au revoir !"`` -> ``"au-revoir"``"""
    return _NON_SLUG.sub("-", strip_accents(text.lower())).strip("-")


def similarity(a: str, b: str) -> float:
    """Similarity ratio of two answers after normalization."""
    a, b = normalize_answer(a), normalize_answer(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def best_similarity(answer: str, candidates: Iterable[str]) -> tuple[float, str | None]:
    """Best ratio between answer and any candidate, with the matching candidate."""
    best_score, best_match = 0.0, None
    for candidate in candidates:
        score = similarity(answer, candidate)
        if score > best_score:
            best_score, best_match = score, candidate
    return best_score, best_match


def dedupe(values: Iterable[str]) -> list[str]:
    """Drop empty and repeated strings, keeping first occurrences."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text
