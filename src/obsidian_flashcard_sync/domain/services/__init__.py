"""Domain services package."""

from .cloze_highlighter import ClozeHighlighter, highlight_clozes
from .field_differ import FieldDiffer, diff_words

__all__ = [
    "ClozeHighlighter",
    "FieldDiffer",
    "diff_words",
    "highlight_clozes",
]
