"""
Exercise generation strategies.

Importing this package registers every strategy with StrategyRegistry:

- MultipleChoice: pick the sign matching a question
- DragDrop: match usage examples with descriptions
- FillBlank: complete a text with missing signs
- TextEntry: type the meaning of a signed video
- VideoResponse: record yourself signing a phrase
- SigningPractice: guided practice with performance metrics
"""

from .base import (
    ConceptSet,
    ExerciseDraft,
    GenerationStrategy,
    StrategyRegistry,
    build_feedback,
    hint_count_for,
)
from .drag_drop import DragDropStrategy
from .fill_blank import FillBlankStrategy
from .multiple_choice import MultipleChoiceStrategy
from .signing_practice import SigningPracticeStrategy
from .text_entry import TextEntryStrategy
from .video_response import VideoResponseStrategy

__all__ = [
    "ConceptSet",
    "ExerciseDraft",
    "GenerationStrategy",
    "StrategyRegistry",
    "build_feedback",
    "hint_count_for",
    "DragDropStrategy",
    "FillBlankStrategy",
    "MultipleChoiceStrategy",
    "SigningPracticeStrategy",
    "TextEntryStrategy",
    "VideoResponseStrategy",
]
