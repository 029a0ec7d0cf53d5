"""Tests for importing orphaned Anki notes back into the vault."""

import pytest

from obsidian_flashcard_sync.domain.entities.flashcard import Flashcard, SourceLocation
from obsidian_flashcard_sync.domain.entities.remote_note import RemoteField, RemoteNote
from obsidian_flashcard_sync.obsidian.block_parser import parse_flashcard
from obsidian_flashcard_sync.obsidian.block_scanner import find_flashcard_blocks
from obsidian_flashcard_sync.obsidian.orphan_import import (
    IMPORT_FILE_HEADER,
    import_orphan,
    import_target_path,
    orphan_to_block_data,
    render_flashcard_block,
)
from tests.fixtures import InMemoryDocumentStore


def make_note(
    fields: dict[str, str],
    *,
    tags: tuple[str, ...] = ("obsidian-synced", "obsidian-vault::Vault"),
    decks: frozenset[str] = frozenset({"Languages"}),
    note_type: str = "Basic",
) -> RemoteNote:
    return RemoteNote(
        id=1700000000001,
        note_type=note_type,
        fields={
            name: RemoteField(value=value, order=order)
            for order, (name, value) in enumerate(fields.items())
        },
        tags=tags,
        cards=(11,),
        decks=decks,
    )


class TestBlockData:
    """Turning a note into block keys."""

    def test_key_order(self) -> None:
        note = make_note(
            {"Front": "<b>bonjour</b>", "Back": "hello"},
            tags=("obsidian-synced", "obsidian-vault::Vault", "french", "basics"),
        )

        data = orphan_to_block_data(note, default_deck="Default")

        assert list(data) == ["NoteType", "AnkiId", "Deck", "Front", "Back", "Tags"]
        assert data["Front"] == "**bonjour**"
        assert data["Tags"] == ["basics", "french"]
        assert data["Deck"] == "Languages"

    def test_default_deck_is_omitted(self) -> None:
        note = make_note({"Front": "Q"}, decks=frozenset({"Default"}))

        assert "Deck" not in orphan_to_block_data(note, default_deck="Default")

    def test_deck_of_split_note_is_omitted(self) -> None:
        note = make_note({"Front": "Q"}, decks=frozenset({"A", "B"}))

        assert "Deck" not in orphan_to_block_data(note)

    def test_auto_fields_are_dropped(self) -> None:
        note = make_note(
            {"Front": "Q", "ObsidianVault": "Vault", "ObsidianNote": "a.md"},
            note_type="Obsidian",
        )

        data = orphan_to_block_data(note)

        assert "ObsidianVault" not in data
        assert "ObsidianNote" not in data

    def test_no_tags_key_without_user_tags(self) -> None:
        assert "Tags" not in orphan_to_block_data(make_note({"Front": "Q"}))


class TestRenderBlock:
    """Serializing block data."""

    def test_simple_block(self) -> None:
        block = render_flashcard_block(
            {"NoteType": "Basic", "AnkiId": 5, "Front": "Q", "Back": "A", "Tags": ["x"]}
        )

        assert block == (
            "```flashcard\nNoteType: Basic\nAnkiId: 5\nFront: Q\nBack: A\n"
            "Tags:\n  - x\n```\n"
        )

    def test_rendered_block_parses_back(self) -> None:
        note = make_note(
            {"Front": "<p>line one</p><p>line two</p>", "Back": "a: b"},
            tags=("obsidian-synced", "french"),
        )
        block = render_flashcard_block(orphan_to_block_data(note, "Default"))

        (raw,) = find_flashcard_blocks(block)
        card = parse_flashcard(raw.text, SourceLocation("x.md", 1, 5), "Default")

        assert isinstance(card, Flashcard)
        assert card.remote_id == 1700000000001
        assert card.deck == "Languages"
        assert card.content_fields == {"Front": "line one\n\nline two", "Back": "a: b"}
        assert card.tags == ("french",)


class TestImportOrphan:
    """Writing imported blocks into documents."""

    def test_target_from_file_tag(self) -> None:
        note = make_note(
            {"Front": "Q"}, tags=("obsidian-synced", "obsidian-file::notes/old%20one.md")
        )

        assert import_target_path(note) == "notes/old one.md"

    def test_default_target(self) -> None:
        assert import_target_path(make_note({"Front": "Q"})) == "Imported Flashcards.md"

    @pytest.mark.asyncio
    async def test_appends_to_existing_document(self) -> None:
        documents = InMemoryDocumentStore({"notes/old.md": "# Old\n\nprose"})
        note = make_note(
            {"Front": "Q"}, tags=("obsidian-synced", "obsidian-file::notes/old.md")
        )

        target = await import_orphan(note, documents, default_deck="Languages")

        assert target == "notes/old.md"
        content = documents.files["notes/old.md"]
        assert content.startswith("# Old\n\nprose\n\n```flashcard\n")
        assert content.endswith("```\n")
        assert "AnkiId: 1700000000001" in content

    @pytest.mark.asyncio
    async def test_creates_missing_document(self) -> None:
        documents = InMemoryDocumentStore()

        target = await import_orphan(make_note({"Front": "Q"}), documents)

        content = documents.files[target]
        assert content.startswith(IMPORT_FILE_HEADER)
        (raw,) = find_flashcard_blocks(content)
        assert "Front: Q" in raw.text

    @pytest.mark.asyncio
    async def test_imports_accumulate(self) -> None:
        documents = InMemoryDocumentStore()

        await import_orphan(make_note({"Front": "one"}), documents)
        await import_orphan(make_note({"Front": "two"}), documents)

        blocks = list(find_flashcard_blocks(documents.files["Imported Flashcards.md"]))
        assert len(blocks) == 2
        assert "Front: one" in blocks[0].text
        assert "Front: two" in blocks[1].text
