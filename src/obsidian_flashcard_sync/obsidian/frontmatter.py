"""Front matter properties inherited by the flashcards of a note."""

from __future__ import annotations

from typing import Any

import frontmatter as frontmatter_lib
import yaml

from ..constants import ANKI_DECK_PROPERTY, ANKI_TAGS_PROPERTY
from ..domain.entities.flashcard import NoteMetadata
from ..utils.logging import get_logger

logger = get_logger(__name__)


def metadata_from_properties(properties: Any) -> NoteMetadata:
    """Extract AnkiDeck and AnkiTags from a front matter mapping.

    Non-string decks and non-list tags are ignored, as are tag entries that
    are blank or contain whitespace.
    """
    if not isinstance(properties, dict):
        return NoteMetadata()

    deck = None
    raw_deck = properties.get(ANKI_DECK_PROPERTY)
    if isinstance(raw_deck, str) and raw_deck.strip():
        deck = raw_deck.strip()

    tags: tuple[str, ...] = ()
    raw_tags = properties.get(ANKI_TAGS_PROPERTY)
    if isinstance(raw_tags, list):
        tags = tuple(
            tag.strip()
            for tag in raw_tags
            if isinstance(tag, str) and tag.strip() and len(tag.split()) == 1
        )

    return NoteMetadata(deck=deck, tags=tags)


def parse_note_metadata(content: str, source_path: str | None = None) -> NoteMetadata:
    """Parse a note's front matter into NoteMetadata.

    A note without front matter, or with front matter that is not valid
    YAML, inherits nothing.

    Args:
        content: Full note text
        source_path: Vault-relative path, for logging

    Returns:
        Deck and tags declared by the note
    """
    try:
        post = frontmatter_lib.loads(content)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning("frontmatter_parse_failed", file=source_path, error=str(e))
        return NoteMetadata()

    return metadata_from_properties(post.metadata)
