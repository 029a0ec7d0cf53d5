"""Tests for Markdown to HTML rendering and HTML normalization."""

import base64
import hashlib

from obsidian_flashcard_sync.domain.entities.flashcard import Flashcard, SourceLocation
from obsidian_flashcard_sync.domain.entities.media import MediaItem
from obsidian_flashcard_sync.domain.entities.remote_note import RemoteField, RemoteNote
from obsidian_flashcard_sync.rendering.html import (
    is_internal_link,
    is_media_file,
    media_sources,
    normalize_html,
    rewrite_media_sources,
)
from obsidian_flashcard_sync.rendering.markdown import MarkdownRenderer, sanitize_html


def make_flashcard(**fields: str) -> Flashcard:
    return Flashcard(
        location=SourceLocation("notes/card.md", 1, 4),
        note_type="Basic",
        deck="Default",
        content_fields=fields,
        tags=("tag",),
    )


class TestRender:
    """Rendering single fields."""

    def test_empty_field(self, renderer: MarkdownRenderer) -> None:
        """Blank fields render to an empty string."""
        assert renderer.render("") == ""
        assert renderer.render("   ") == ""

    def test_single_line_is_inline(self, renderer: MarkdownRenderer) -> None:
        """Single-line text is not wrapped in a paragraph."""
        assert renderer.render("**bold** text") == "<strong>bold</strong> text"

    def test_plain_text(self, renderer: MarkdownRenderer) -> None:
        """Plain text passes through."""
        assert renderer.render("2+2?") == "2+2?"

    def test_paragraphs(self, renderer: MarkdownRenderer) -> None:
        """Multi-line text keeps its paragraphs."""
        result = renderer.render("first\n\nsecond")

        assert "<p>first</p>" in result
        assert "<p>second</p>" in result

    def test_strikethrough(self, renderer: MarkdownRenderer) -> None:
        """Strikethrough plugin is enabled."""
        assert "<del>gone</del>" in renderer.render("~~gone~~")

    def test_list(self, renderer: MarkdownRenderer) -> None:
        """Lists render as HTML lists."""
        result = renderer.render("- one\n- two")

        assert "<ul>" in result
        assert "<li>one</li>" in result

    def test_fenced_code_is_highlighted(self, renderer: MarkdownRenderer) -> None:
        """Fenced code goes through Pygments."""
        result = renderer.render("```python\ndef hello():\n    pass\n```")

        assert 'class="codehilite"' in result
        assert "hello" in result

    def test_cloze_markup_survives(self, renderer: MarkdownRenderer) -> None:
        """Cloze braces are plain text to Markdown."""
        assert renderer.render("The capital is {{c1::Paris}}") == (
            "The capital is {{c1::Paris}}"
        )

    def test_script_is_removed(self, renderer: MarkdownRenderer) -> None:
        """Raw HTML is sanitized."""
        result = renderer.render("hello <script>alert(1)</script>")

        assert "<script" not in result
        assert "alert" not in result
        assert "hello" in result

    def test_rendering_is_idempotent_under_normalization(
        self, renderer: MarkdownRenderer
    ) -> None:
        """Rendered HTML is already in normal form."""
        html = renderer.render("**a** and ![img](pics/a%20b.png)\n\n- x\n- y")

        assert normalize_html(html) == html


class TestWikilinkImages:
    """Obsidian image embeds."""

    def test_plain_embed(self, renderer: MarkdownRenderer) -> None:
        """An embed becomes an img tag."""
        result = renderer.render("![[attachments/graph.png]]")

        assert media_sources(result) == ["attachments/graph.png"]

    def test_embed_with_width(self, renderer: MarkdownRenderer) -> None:
        """A single size is the width."""
        result = renderer.render("![[graph.png|100]]")

        assert media_sources(result) == ["graph.png"]
        assert 'width="100"' in result
        assert "height" not in result

    def test_embed_with_width_and_height(self, renderer: MarkdownRenderer) -> None:
        """WxH sets both dimensions."""
        result = renderer.render("See ![[graph.png|100x50]] here")

        assert 'width="100"' in result
        assert 'height="50"' in result
        assert result.startswith("See ")

    def test_non_image_embed_stays_text(self, renderer: MarkdownRenderer) -> None:
        """Note embeds are not images."""
        result = renderer.render("![[Other note]]")

        assert media_sources(result) == []
        assert "Other note" in result


class TestHtmlFlashcards:
    """Building the comparable views."""

    def test_to_html_flashcard(self, renderer: MarkdownRenderer) -> None:
        """Local flashcards keep metadata and render fields."""
        html = renderer.to_html_flashcard(make_flashcard(Front="*Q*", Back="A"))

        assert html.source_path == "notes/card.md"
        assert html.note_type == "Basic"
        assert html.deck == "Default"
        assert html.tags == ("tag",)
        assert html.html_fields == {"Front": "<em>Q</em>", "Back": "A"}

    def test_remote_view_drops_system_tags(self, renderer: MarkdownRenderer) -> None:
        """Sync bookkeeping tags are not user tags."""
        note = RemoteNote(
            id=1,
            note_type="Basic",
            fields={
                "Back": RemoteField(value="A", order=1),
                "Front": RemoteField(value="<em>Q</em>", order=0),
            },
            tags=(
                "obsidian-synced",
                "obsidian-vault::Vault",
                "obsidian-file::notes/my%20card.md",
                "zeta",
                "alpha",
            ),
            decks=frozenset({"Default"}),
        )

        html = renderer.remote_to_html_flashcard(note)

        assert html.tags == ("alpha", "zeta")
        assert html.source_path == "notes/my card.md"
        assert html.deck == "Default"
        assert list(html.html_fields) == ["Front", "Back"]

    def test_cards_in_several_decks(self, renderer: MarkdownRenderer) -> None:
        """A note split across decks never matches a single deck."""
        note = RemoteNote(
            id=1,
            note_type="Basic",
            fields={"Front": RemoteField(value="Q", order=0)},
            decks=frozenset({"B", "A"}),
        )

        assert renderer.remote_to_html_flashcard(note).deck == "A, B"

    def test_remote_media_names_map_back(self, renderer: MarkdownRenderer) -> None:
        """Uploaded media names are translated to vault paths."""
        item = MediaItem(source_path="pics/cat.png", contents=b"meow")
        note = RemoteNote(
            id=1,
            note_type="Basic",
            fields={
                "Front": RemoteField(
                    value=f'<img src="{item.remote_filename}">', order=0
                )
            },
            decks=frozenset({"Default"}),
        )

        html = renderer.remote_to_html_flashcard(note)

        assert media_sources(html.html_fields["Front"]) == ["pics/cat.png"]

    def test_round_trip_is_stable(self, renderer: MarkdownRenderer) -> None:
        """Stored HTML of an unchanged flashcard compares equal to a fresh render."""
        flashcard = make_flashcard(
            Front="What is **this**?", Back="![[pics/a b.png|80]]\n\n- one\n- two"
        )
        local = renderer.to_html_flashcard(flashcard)
        note = RemoteNote(
            id=1,
            note_type="Basic",
            fields={
                name: RemoteField(value=value, order=order)
                for order, (name, value) in enumerate(local.html_fields.items())
            },
            tags=("obsidian-synced", "obsidian-file::notes/card.md", "tag"),
            decks=frozenset({"Default"}),
        )

        remote = renderer.remote_to_html_flashcard(note)

        assert remote.html_fields == local.html_fields
        assert remote.tags == local.tags
        assert remote.source_path == local.source_path

    def test_render_preview_highlights_clozes(self, renderer: MarkdownRenderer) -> None:
        """Preview output marks cloze deletions."""
        preview = renderer.render_preview(
            make_flashcard(Text="Capital: {{c1::**Paris**::city}}")
        )

        assert preview["Text"] == (
            'Capital: <span class="cloze-deletion cloze-1" data-cloze="1">'
            "<strong>Paris</strong></span>"
        )


class TestHtmlHelpers:
    """Shared HTML helpers."""

    def test_internal_links(self) -> None:
        assert is_internal_link("pics/cat.png")
        assert is_internal_link("cat.png")
        assert not is_internal_link("https://example.com/cat.png")
        assert not is_internal_link("//cdn.example.com/cat.png")
        assert not is_internal_link("/absolute/cat.png")
        assert not is_internal_link("data:image/png;base64,AAAA")
        assert not is_internal_link("")

    def test_media_files(self) -> None:
        assert is_media_file("a/b.PNG")
        assert is_media_file("clip.mp3")
        assert not is_media_file("notes.md")
        assert not is_media_file("noextension")

    def test_normalize_decodes_internal_media_paths(self) -> None:
        html = normalize_html('<img src="my%20image.png">')

        assert media_sources(html) == ["my image.png"]

    def test_normalize_keeps_external_urls(self) -> None:
        html = normalize_html('<img src="https://x.org/a%20b.png">')

        assert media_sources(html) == ["https://x.org/a%20b.png"]

    def test_media_sources_in_order(self) -> None:
        html = '<img src="a.png"><audio src="b.mp3"></audio><video><source src="c.mp4"></video>'

        assert media_sources(html) == ["a.png", "b.mp3", "c.mp4"]

    def test_rewrite_returns_input_when_unchanged(self) -> None:
        html = '<p>text  <img src="a.png"></p>'

        assert rewrite_media_sources(html, lambda src: None) == html

    def test_rewrite_replaces_sources(self) -> None:
        result = rewrite_media_sources(
            '<img src="a.png"><img src="b.png">',
            lambda src: "renamed.png" if src == "a.png" else None,
        )

        assert media_sources(result) == ["renamed.png", "b.png"]

    def test_sanitize_adds_link_rel(self) -> None:
        result = sanitize_html('<a href="https://example.com">x</a>')

        assert 'rel="noopener noreferrer"' in result


def test_remote_filename_format() -> None:
    item = MediaItem(source_path="pics/cat.png", contents=b"meow")
    encoded = base64.b64encode(b"pics/cat.png").decode("ascii")
    digest = hashlib.md5(b"meow").hexdigest()  # noqa: S324

    assert item.remote_filename == f"obsidian-synced-{encoded}-{digest}.png"
