"""Markdown and HTML rendering for flashcard fields."""

from .html_to_markdown import html_to_markdown
from .markdown import MarkdownRenderer, sanitize_html

__all__ = [
    "MarkdownRenderer",
    "html_to_markdown",
    "sanitize_html",
]
