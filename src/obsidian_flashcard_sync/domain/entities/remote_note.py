"""Domain entities for notes stored in Anki."""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import unquote

from ...constants import (
    NOTE_FIELD,
    OBSIDIAN_FILE_TAG_PREFIX,
    OBSIDIAN_SYNC_TAG,
    OBSIDIAN_VAULT_TAG_PREFIX,
)


def is_system_tag(tag: str) -> bool:
    """Check whether a tag is one the sync adds for bookkeeping."""
    return tag == OBSIDIAN_SYNC_TAG or tag.startswith(
        (OBSIDIAN_VAULT_TAG_PREFIX, OBSIDIAN_FILE_TAG_PREFIX)
    )


@dataclass(frozen=True)
class RemoteField:
    """A single field of an Anki note."""

    value: str
    order: int


@dataclass(frozen=True)
class RemoteNote:
    """An Anki note as returned by notesInfo, enriched with its decks."""

    id: int
    note_type: str
    fields: dict[str, RemoteField]
    tags: tuple[str, ...] = ()
    cards: tuple[int, ...] = ()
    decks: frozenset[str] = field(default_factory=frozenset)

    def is_managed(self, vault_name: str) -> bool:
        """Check whether this note is owned by the given vault."""
        return (
            OBSIDIAN_SYNC_TAG in self.tags
            and f"{OBSIDIAN_VAULT_TAG_PREFIX}{vault_name}" in self.tags
        )

    def field_values(self) -> dict[str, str]:
        """Field values in note type order."""
        ordered = sorted(self.fields.items(), key=lambda item: item[1].order)
        return {name: remote_field.value for name, remote_field in ordered}

    def user_tags(self) -> tuple[str, ...]:
        """Tags without the sync bookkeeping tags."""
        return tuple(tag for tag in self.tags if not is_system_tag(tag))

    @property
    def source_path(self) -> str | None:
        """Vault path of the note this record was synced from.

        Taken from the file tag, falling back to the ObsidianNote field.
        """
        for tag in self.tags:
            if tag.startswith(OBSIDIAN_FILE_TAG_PREFIX):
                return unquote(tag[len(OBSIDIAN_FILE_TAG_PREFIX) :])
        note_field = self.fields.get(NOTE_FIELD)
        if note_field is not None and note_field.value.strip():
            return note_field.value.strip()
        return None


@dataclass(frozen=True)
class NoteType:
    """An Anki note type and its field names in order."""

    name: str
    fields: tuple[str, ...]


NoteTypeCatalog = dict[str, list[str]]


def build_catalog(note_types: list[NoteType]) -> NoteTypeCatalog:
    """Turn a list of note types into a name -> field list lookup."""
    return {note_type.name: list(note_type.fields) for note_type in note_types}
