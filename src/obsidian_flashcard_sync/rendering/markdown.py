"""Render flashcard Markdown fields to HTML for Anki.

Uses mistune for Markdown parsing, Pygments for syntax highlighting and
nh3 for HTML sanitization. Obsidian image embeds (``![[image.png|100]]``)
are rendered as ``<img>`` tags.
"""

import re
from typing import Any

import mistune
import nh3
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from obsidian_flashcard_sync.domain.entities.flashcard import Flashcard, HtmlFlashcard
from obsidian_flashcard_sync.domain.entities.media import source_path_from_remote_filename
from obsidian_flashcard_sync.domain.entities.remote_note import RemoteNote
from obsidian_flashcard_sync.domain.services.cloze_highlighter import highlight_clozes
from obsidian_flashcard_sync.rendering.html import normalize_html, rewrite_media_sources
from obsidian_flashcard_sync.utils.logging import get_logger

logger = get_logger(__name__)

# Allowed HTML tags for Anki cards (used by nh3 sanitizer)
ALLOWED_TAGS = {
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "del",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "input",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "blockquote",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "a",
    "img",
    "audio",
    "video",
    "source",
    "div",
    "span",
    "section",
    "sup",
    "sub",
    "hr",
}

# Global attributes allowed on all tags
_GLOBAL_ATTRIBUTES = {"class", "id", "style"}

# Note: "rel" is excluded from "a" because nh3.clean() sets it via link_rel
_TAG_SPECIFIC_ATTRIBUTES = {
    "a": {"href", "title", "target"},
    "img": {"src", "alt", "title", "width", "height"},
    "audio": {"src", "controls"},
    "video": {"src", "controls", "width", "height"},
    "source": {"src", "type"},
    "input": {"type", "checked", "disabled"},
    "td": {"colspan", "rowspan", "align"},
    "th": {"colspan", "rowspan", "align"},
}


def _build_allowed_attributes() -> dict[str, set[str]]:
    """Build allowed attributes dict with global attrs applied to all tags."""
    result: dict[str, set[str]] = {}
    for tag in ALLOWED_TAGS:
        tag_attrs = _TAG_SPECIFIC_ATTRIBUTES.get(tag, set())
        result[tag] = _GLOBAL_ATTRIBUTES | tag_attrs
    return result


ALLOWED_ATTRIBUTES = _build_allowed_attributes()

# ![[path/to/image.png]] or ![[image.png|100]] or ![[image.png|100x200]]
WIKILINK_IMAGE_PATTERN = (
    r"!\[\[(?P<wikilink_target>[^\[\]|\n]+?\.(?i:png|jpe?g|gif|svg|webp|bmp))"
    r"(?:\|(?P<wikilink_size>[^\[\]\n]*))?\]\]"
)
_SIZE_RE = re.compile(r"^(\d+)(?:x(\d+))?$")


def _parse_wikilink_image(
    inline: mistune.InlineParser, m: re.Match[str], state: mistune.InlineState
) -> int:
    attrs: dict[str, Any] = {"src": m.group("wikilink_target").strip()}
    size = (m.group("wikilink_size") or "").strip()
    size_match = _SIZE_RE.match(size)
    if size_match:
        attrs["width"] = size_match.group(1)
        if size_match.group(2):
            attrs["height"] = size_match.group(2)
    state.append_token({"type": "wikilink_image", "attrs": attrs})
    return m.end()


def _render_wikilink_image(
    renderer: mistune.HTMLRenderer,
    src: str,
    width: str | None = None,
    height: str | None = None,
) -> str:
    html = f'<img src="{mistune.escape(src)}"'
    if width:
        html += f' width="{width}"'
    if height:
        html += f' height="{height}"'
    return html + ">"


def wikilink_images(md: mistune.Markdown) -> None:
    """mistune plugin for Obsidian image embeds.

    Only image extensions are converted; other embeds stay literal text.
    """
    md.inline.register(
        "wikilink_image", WIKILINK_IMAGE_PATTERN, _parse_wikilink_image, before="link"
    )
    if md.renderer and md.renderer.NAME == "html":
        md.renderer.register("wikilink_image", _render_wikilink_image)


class AnkiHighlightRenderer(mistune.HTMLRenderer):
    """Custom mistune renderer with Pygments syntax highlighting for Anki."""

    def __init__(self, escape: bool = False) -> None:
        super().__init__(escape=escape)
        self._formatter = HtmlFormatter(
            cssclass="codehilite",
            linenos=False,
            nowrap=False,
        )

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render code block with syntax highlighting."""
        lang = info.split()[0] if info and info.strip() else None

        try:
            if lang:
                lexer = get_lexer_by_name(lang, stripall=True)
            else:
                lexer = guess_lexer(code)
        except ClassNotFound:
            lang_class = f"language-{lang}" if lang else "language-text"
            escaped_code = mistune.escape(code.strip())
            return f'<pre><code class="{lang_class}">{escaped_code}</code></pre>\n'

        highlighted: str = highlight(code, lexer, self._formatter)
        return highlighted


def _create_mistune_converter() -> mistune.Markdown:
    """Create a configured mistune Markdown converter."""
    return mistune.create_markdown(
        renderer=AnkiHighlightRenderer(),
        plugins=[
            "strikethrough",
            "table",
            "task_lists",
            "footnotes",
            wikilink_images,
        ],
    )


def sanitize_html(html: str) -> str:
    """
    Sanitize HTML using nh3.

    Args:
        html: Raw HTML string

    Returns:
        Sanitized HTML string
    """
    if not html:
        return html

    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        link_rel="noopener noreferrer",
    )


_SINGLE_PARAGRAPH_RE = re.compile(r"^<p>(?P<inner>.*)</p>$", re.DOTALL)


class MarkdownRenderer:
    """Turns flashcards into the HTML view used for comparison and upload.

    Local Markdown and stored Anki HTML are both normalized so that an
    unchanged flashcard renders byte-identical on both sides.
    """

    def __init__(self) -> None:
        self._markdown = _create_mistune_converter()

    def render(self, markdown: str) -> str:
        """
        Render one field of Markdown to normalized HTML.

        Single-line text is rendered inline, without a wrapping paragraph.

        Args:
            markdown: Field text

        Returns:
            Sanitized, normalized HTML
        """
        if not markdown or not markdown.strip():
            return ""

        result = self._markdown(markdown)
        html = result if isinstance(result, str) else str(result)
        html = html.strip()

        if "\n" not in markdown:
            match = _SINGLE_PARAGRAPH_RE.match(html)
            if match and "<p>" not in match.group("inner"):
                html = match.group("inner")

        return normalize_html(sanitize_html(html))

    def to_html_flashcard(self, flashcard: Flashcard) -> HtmlFlashcard:
        """Render every content field of a local flashcard."""
        return HtmlFlashcard(
            source_path=flashcard.source_path,
            note_type=flashcard.note_type,
            deck=flashcard.deck,
            tags=flashcard.tags,
            html_fields={
                name: self.render(value)
                for name, value in flashcard.content_fields.items()
            },
        )

    def remote_to_html_flashcard(self, note: RemoteNote) -> HtmlFlashcard:
        """
        Build the comparable view of a stored Anki note.

        Media file names are mapped back to vault paths and the sync's own
        bookkeeping tags are dropped. A note whose cards sit in several
        decks gets a combined deck name, so it never equals a single deck.

        Args:
            note: Note fetched from Anki

        Returns:
            HtmlFlashcard with normalized field HTML
        """
        if len(note.decks) == 1:
            deck = next(iter(note.decks))
        else:
            deck = ", ".join(sorted(note.decks))

        return HtmlFlashcard(
            source_path=note.source_path or "",
            note_type=note.note_type,
            deck=deck,
            tags=tuple(sorted(set(note.user_tags()))),
            html_fields={
                name: normalize_html(
                    rewrite_media_sources(value, source_path_from_remote_filename)
                )
                for name, value in note.field_values().items()
            },
        )

    def render_preview(self, flashcard: Flashcard) -> dict[str, str]:
        """Render fields with cloze deletions highlighted, for display."""
        return {
            name: highlight_clozes(self.render(value))
            for name, value in flashcard.content_fields.items()
        }
