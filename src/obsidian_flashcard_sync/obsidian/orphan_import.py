"""Recreate flashcard blocks for Anki notes whose block was removed."""

from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.scalarstring import LiteralScalarString

from ..constants import (
    ANKI_ID_KEY,
    DECK_KEY,
    DEFAULT_IMPORT_FILE,
    FENCE_END,
    FLASHCARD_FENCE,
    NOTE_FIELD,
    NOTE_TYPE_KEY,
    TAGS_KEY,
    VAULT_FIELD,
)
from ..domain.entities.remote_note import RemoteNote
from ..domain.interfaces.document_store import IDocumentStore
from ..rendering.html_to_markdown import html_to_markdown
from ..utils.logging import get_logger

logger = get_logger(__name__)

IMPORT_FILE_HEADER = "# Imported Flashcards\n\n"

# Filled in again by the parser when the note type declares them
_AUTO_FIELDS = (VAULT_FIELD, NOTE_FIELD)


def import_target_path(note: RemoteNote) -> str:
    """Vault document an orphaned note is imported into."""
    target = note.source_path or DEFAULT_IMPORT_FILE
    if not target.endswith(".md"):
        target += ".md"
    return target


def _field_markdown(name: str, html: str, note_id: int) -> str:
    try:
        return html_to_markdown(html)
    except Exception as e:
        logger.warning(
            "orphan_field_conversion_failed", note_id=note_id, field=name, error=str(e)
        )
        return html


def orphan_to_block_data(
    note: RemoteNote, default_deck: str | None = None
) -> dict[str, Any]:
    """
    Build the YAML mapping of a flashcard block for a remote note.

    Keys are written in the order NoteType, AnkiId, Deck, fields, Tags.
    Deck is only written when it differs from ``default_deck``.

    Args:
        note: The orphaned note
        default_deck: Deck a block without a Deck key resolves to

    Returns:
        Ordered mapping ready to be dumped as YAML
    """
    data: dict[str, Any] = {NOTE_TYPE_KEY: note.note_type, ANKI_ID_KEY: note.id}

    if len(note.decks) == 1:
        deck = next(iter(note.decks))
        if deck and deck != default_deck:
            data[DECK_KEY] = deck

    for name, html in note.field_values().items():
        if name in _AUTO_FIELDS:
            continue
        markdown = _field_markdown(name, html or "", note.id)
        data[name] = LiteralScalarString(markdown) if "\n" in markdown else markdown

    tags = sorted(set(note.user_tags()))
    if tags:
        data[TAGS_KEY] = tags

    return data


def render_flashcard_block(data: dict[str, Any]) -> str:
    """Dump block data as a fenced flashcard block."""
    yaml = YAML()
    yaml.width = 4096  # Prevent line wrapping
    yaml.indent(mapping=2, sequence=4, offset=2)

    output = StringIO()
    yaml.dump(data, output)
    body = output.getvalue().strip()
    return f"{FLASHCARD_FENCE}\n{body}\n{FENCE_END}\n"


async def import_orphan(
    note: RemoteNote, documents: IDocumentStore, default_deck: str | None = None
) -> str:
    """
    Append a flashcard block for ``note`` to its source document.

    The document is created with a heading when it does not exist.

    Args:
        note: The orphaned note
        documents: Vault to write into
        default_deck: Deck a block without a Deck key resolves to

    Returns:
        Vault-relative path of the document written
    """
    target = import_target_path(note)
    block = render_flashcard_block(orphan_to_block_data(note, default_deck))

    if await documents.exists(target):
        content = await documents.read_text(target)
    else:
        content = IMPORT_FILE_HEADER

    if content and not content.endswith("\n"):
        content += "\n"
    await documents.write_text(target, f"{content}\n{block}")

    logger.info("orphan_imported", note_id=note.id, file=target)
    return target
