"""Tests for writing assigned Anki ids back into notes."""

import pytest

from obsidian_flashcard_sync.domain.entities.flashcard import Flashcard, SourceLocation
from obsidian_flashcard_sync.obsidian.backfill import (
    IdAssignment,
    apply_id_backfill,
    upsert_anki_id,
)
from obsidian_flashcard_sync.obsidian.block_parser import parse_flashcard
from obsidian_flashcard_sync.obsidian.block_scanner import find_flashcard_blocks
from tests.fixtures import make_note


def parse_all(content: str) -> list[Flashcard]:
    cards = []
    for raw in find_flashcard_blocks(content):
        card = parse_flashcard(
            raw.text, SourceLocation("n.md", raw.line_start, raw.line_end), "Default"
        )
        assert isinstance(card, Flashcard), card
        cards.append(card)
    return cards


class TestUpsertAnkiId:
    """Editing a single block body."""

    def test_appends_new_key(self) -> None:
        assert upsert_anki_id("Front: Q\nBack: A", 42) == "Front: Q\nBack: A\nAnkiId: 42"

    def test_replaces_existing_key_in_place(self) -> None:
        assert upsert_anki_id("AnkiId:\nFront: Q", 42) == "AnkiId: 42\nFront: Q"

    def test_preserves_comments_and_quotes(self) -> None:
        body = "Front: 'Q' # the question\nBack: \"A\""

        assert upsert_anki_id(body, 7) == (
            "Front: 'Q' # the question\nBack: \"A\"\nAnkiId: 7"
        )

    def test_preserves_tag_list_layout(self) -> None:
        body = "Front: Q\nTags:\n  - math\n  - algebra"

        assert upsert_anki_id(body, 1) == (
            "Front: Q\nTags:\n  - math\n  - algebra\nAnkiId: 1"
        )

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="not valid YAML"):
            upsert_anki_id("Front: [unclosed", 1)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ValueError, match="not a YAML mapping"):
            upsert_anki_id("- a\n- b", 1)


class TestApplyIdBackfill:
    """Editing whole documents."""

    def test_created_flashcard_gains_its_id(self) -> None:
        content = make_note("NoteType: Basic\nFront: 2+2?\nBack: 4\nTags:\n  - math")
        (block,) = find_flashcard_blocks(content)

        updated, unresolved = apply_id_backfill(
            content, [IdAssignment(line_start=block.line_start, remote_id=42)]
        )

        assert unresolved == []
        (card,) = parse_all(updated)
        assert card.remote_id == 42
        assert card.note_type == "Basic"
        assert card.content_fields == {"Front": "2+2?", "Back": "4"}
        assert card.tags == ("math",)
        assert updated.startswith("# Note\n\n```flashcard\nNoteType: Basic\n")

    def test_text_outside_blocks_is_untouched(self) -> None:
        content = "intro\n\n```flashcard\nFront: Q\n```\n\noutro\n"

        updated, _ = apply_id_backfill(content, [IdAssignment(3, 5)])

        assert updated == "intro\n\n```flashcard\nFront: Q\nAnkiId: 5\n```\n\noutro\n"

    def test_several_blocks_bottom_up(self) -> None:
        content = make_note("Front: one", "Front: two", "Front: three")
        starts = [b.line_start for b in find_flashcard_blocks(content)]

        updated, unresolved = apply_id_backfill(
            content,
            [IdAssignment(starts[0], 1), IdAssignment(starts[1], 2), IdAssignment(starts[2], 3)],
        )

        assert unresolved == []
        cards = parse_all(updated)
        assert [(c.content_fields["Front"], c.remote_id) for c in cards] == [
            ("one", 1),
            ("two", 2),
            ("three", 3),
        ]

    def test_block_that_drifted(self) -> None:
        content = "```flashcard\nFront: Q\n```\n"
        edited = "new line\nanother\n" + content

        updated, unresolved = apply_id_backfill(edited, [IdAssignment(1, 9)])

        assert unresolved == []
        assert parse_all(updated)[0].remote_id == 9

    def test_block_that_moved_too_far(self) -> None:
        content = "\n" * 10 + "```flashcard\nFront: Q\n```\n"

        updated, unresolved = apply_id_backfill(content, [IdAssignment(1, 9)])

        assert updated == content
        assert len(unresolved) == 1
        assert unresolved[0][0] == IdAssignment(1, 9)
        assert "line 1" in unresolved[0][1]

    def test_block_that_became_invalid(self) -> None:
        content = "```flashcard\nFront: [broken\n```\n"

        updated, unresolved = apply_id_backfill(content, [IdAssignment(1, 9)])

        assert updated == content
        assert "not valid YAML" in unresolved[0][1]

    def test_unclosed_block(self) -> None:
        updated, unresolved = apply_id_backfill("```flashcard\nFront: Q", [IdAssignment(1, 3)])

        assert unresolved == []
        assert updated == "```flashcard\nFront: Q\nAnkiId: 3"

    def test_no_assignments(self) -> None:
        content = make_note("Front: Q")

        assert apply_id_backfill(content, []) == (content, [])
