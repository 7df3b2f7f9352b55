"""
Phrase templating.

A PhraseTemplate knows its placeholders in order of appearance and renders
from a bindings mapping. A TemplateBank picks one template using the random
source it is handed, never a module-level one, so callers can seed it.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Mapping, Sequence

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


@dataclass(frozen=True)
class PhraseTemplate:
    """A text with ``{name}`` placeholders."""

    text: str
    placeholders: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        ordered: list[str] = []
        for name in _PLACEHOLDER.findall(self.text):
            if name not in ordered:
                ordered.append(name)
        object.__setattr__(self, "placeholders", tuple(ordered))

    def render(self, bindings: Mapping[str, object]) -> str:
        """
        Substitute every placeholder.

        Raises:
            KeyError: If a placeholder has no binding.
        """
        missing = [name for name in self.placeholders if name not in bindings]
        if missing:
            raise KeyError(f"Missing template bindings: {', '.join(missing)}")
        return _PLACEHOLDER.sub(lambda m: str(bindings[m.group(1)]), self.text)


class TemplateBank:
    """A named group of interchangeable templates."""

    def __init__(self, name: str, templates: Sequence[str | PhraseTemplate]):
        if not templates:
            raise ValueError(f"Template bank '{name}' is empty")
        self.name = name
        self.templates: tuple[PhraseTemplate, ...] = tuple(
            t if isinstance(t, PhraseTemplate) else PhraseTemplate(t) for t in templates
        )

    def __len__(self) -> int:
        return len(self.templates)

    def choose(self, rng: random.Random) -> PhraseTemplate:
        return rng.choice(self.templates)

    def render(self, rng: random.Random, bindings: Mapping[str, object]) -> str:
        """Pick a template and render it."""
        return self.choose(rng).render(bindings)


# =============================================================================
# Register rewriting
# =============================================================================

SIMPLIFICATIONS: dict[str, str] = {
    "dans le contexte de": "pour",
    "exprimer": "dire",
    "utilisé pour": "pour",
    "communiquer": "dire",
    "signification": "sens",
    "configuration": "forme",
    "orientation": "direction",
    "mouvement complexe": "mouvement",
    "expression faciale": "visage",
    "paramètre": "partie",
    "référentiel spatial": "espace",
    "prosodie": "rythme",
}

COMPLEXIFICATIONS: dict[str, str] = {
    "pour": "dans le contexte spécifique de",
    "dire": "communiquer précisément",
    "utilisé": "employé formellement",
    "forme": "configuration gestuelle",
    "direction": "orientation spatiale",
    "mouvement": "paramètre cinétique",
    "visage": "expression non-manuelle",
    "espace": "référentiel spatial tridimensionnel",
    "rythme": "prosodie gestuelle",
}


def _alternation(words: Mapping[str, str], whole_words: bool) -> re.Pattern[str]:
    # Longest first so "mouvement complexe" wins over "mouvement"
    ordered = sorted(words, key=len, reverse=True)
    body = "|".join(re.escape(w) for w in ordered)
    if whole_words:
        body = rf"\b(?:{body})\b"
    return re.compile(body, re.IGNORECASE)


_SIMPLIFY_RE = _alternation(SIMPLIFICATIONS, whole_words=False)
_COMPLEXIFY_RE = _alternation(COMPLEXIFICATIONS, whole_words=True)


def simplify_text(text: str) -> str:
    """Replace technical vocabulary with plain words (single pass)."""
    return _SIMPLIFY_RE.sub(lambda m: SIMPLIFICATIONS[m.group(0).lower()], text)


def make_text_more_complex(text: str) -> str:
    """Replace plain words with technical vocabulary (whole words, single pass)."""
    return _COMPLEXIFY_RE.sub(lambda m: COMPLEXIFICATIONS[m.group(0).lower()], text)
