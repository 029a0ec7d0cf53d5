"""IRemoteStore implementation backed by AnkiConnect."""

import base64
from urllib.parse import quote

from obsidian_flashcard_sync.anki.client import AnkiClient
from obsidian_flashcard_sync.constants import (
    OBSIDIAN_FILE_TAG_PREFIX,
    OBSIDIAN_SYNC_TAG,
    OBSIDIAN_VAULT_TAG_PREFIX,
)
from obsidian_flashcard_sync.domain.entities.flashcard import HtmlFlashcard
from obsidian_flashcard_sync.domain.entities.media import MediaItem
from obsidian_flashcard_sync.domain.entities.remote_note import (
    NoteType,
    RemoteField,
    RemoteNote,
)
from obsidian_flashcard_sync.domain.interfaces.remote_store import IRemoteStore
from obsidian_flashcard_sync.exceptions import AnkiConnectError
from obsidian_flashcard_sync.rendering.html import is_internal_link, rewrite_media_sources
from obsidian_flashcard_sync.utils.logging import get_logger

logger = get_logger(__name__)


def managed_notes_query(vault_name: str) -> str:
    """Anki search query matching every note owned by a vault."""
    return f'tag:{OBSIDIAN_SYNC_TAG} AND "tag:{OBSIDIAN_VAULT_TAG_PREFIX}{vault_name}"'


def file_tag(source_path: str) -> str:
    """Tag recording the vault path a note was synced from.

    Anki tags cannot contain spaces, so the path is percent-encoded.
    """
    return f"{OBSIDIAN_FILE_TAG_PREFIX}{quote(source_path, safe='/')}"


class AnkiRemoteStore(IRemoteStore):
    """Stores flashcards as Anki notes through AnkiConnect.

    Every note carries the sync tag, the vault tag and a file tag in
    addition to its user tags. Remote tags matching ``ignored_tags`` are
    left alone on update.
    """

    def __init__(
        self, client: AnkiClient, vault_name: str, ignored_tags: list[str] | None = None
    ):
        self.client = client
        self.vault_name = vault_name
        self.ignored_tags = set(ignored_tags or [])

    def _note_tags(self, flashcard: HtmlFlashcard) -> list[str]:
        tags = [
            OBSIDIAN_SYNC_TAG,
            f"{OBSIDIAN_VAULT_TAG_PREFIX}{self.vault_name}",
            file_tag(flashcard.source_path),
        ]
        tags.extend(tag for tag in flashcard.tags if tag not in tags)
        return tags

    @staticmethod
    def _fields_for_anki(
        flashcard: HtmlFlashcard, media_items: list[MediaItem]
    ) -> dict[str, str]:
        """Point vault media references at their content-addressed Anki names."""
        by_path = {item.source_path: item.remote_filename for item in media_items}

        def to_remote(src: str) -> str | None:
            if not is_internal_link(src):
                return None
            return by_path.get(src)

        return {
            name: rewrite_media_sources(html, to_remote)
            for name, html in flashcard.html_fields.items()
        }

    async def list_managed_ids(self, vault_name: str) -> list[int]:
        note_ids = await self.client.find_notes(managed_notes_query(vault_name))
        logger.debug("managed_notes_found", vault=vault_name, count=len(note_ids))
        return note_ids

    async def fetch_records(self, ids: list[int]) -> list[RemoteNote]:
        if not ids:
            return []

        infos = [
            info
            for info in await self.client.notes_info(ids)
            if info and info.get("noteId") is not None
        ]

        card_ids = [card for info in infos for card in info.get("cards", [])]
        card_decks: dict[int, str] = {}
        for card in await self.client.cards_info(card_ids):
            if card and card.get("cardId") is not None:
                card_decks[card["cardId"]] = card.get("deckName", "")

        notes = []
        for info in infos:
            cards = tuple(info.get("cards", []))
            notes.append(
                RemoteNote(
                    id=info["noteId"],
                    note_type=info.get("modelName", ""),
                    fields={
                        name: RemoteField(
                            value=field.get("value", ""), order=field.get("order", 0)
                        )
                        for name, field in info.get("fields", {}).items()
                    },
                    tags=tuple(info.get("tags", [])),
                    cards=cards,
                    decks=frozenset(
                        card_decks[card] for card in cards if card in card_decks
                    ),
                )
            )
        return notes

    async def create_record(
        self, flashcard: HtmlFlashcard, media_items: list[MediaItem]
    ) -> int:
        return await self.client.add_note(
            deck_name=flashcard.deck,
            model_name=flashcard.note_type,
            fields=self._fields_for_anki(flashcard, media_items),
            tags=self._note_tags(flashcard),
        )

    async def update_record(
        self, note_id: int, flashcard: HtmlFlashcard, media_items: list[MediaItem]
    ) -> None:
        infos = await self.client.notes_info([note_id])
        if not infos or infos[0].get("noteId") is None:
            msg = f"Note not found: {note_id}"
            raise AnkiConnectError(msg, context={"note_id": note_id})
        info = infos[0]

        fields = self._fields_for_anki(flashcard, media_items)
        # Fields the flashcard no longer has are cleared
        for name in info.get("fields", {}):
            fields.setdefault(name, "")
        await self.client.update_note_fields(note_id, fields)

        current_tags = list(info.get("tags", []))
        kept = [tag for tag in current_tags if tag in self.ignored_tags]
        desired = self._note_tags(flashcard) + kept
        await self.client.update_note_tags(note_id, desired, current_tags=current_tags)

        logger.debug("note_updated", note_id=note_id, deck=flashcard.deck)

    async def move_to_deck(self, note: RemoteNote, deck: str) -> None:
        await self.client.change_deck(list(note.cards), deck)

    async def delete_records(self, ids: list[int]) -> None:
        await self.client.delete_notes(ids)

    async def has_media(self, item: MediaItem) -> bool:
        try:
            stored = await self.client.retrieve_media_file(item.remote_filename)
        except AnkiConnectError as e:
            logger.debug(
                "media_lookup_failed", file=item.source_path, error=str(e)
            )
            return False
        return stored is not None

    async def store_media(self, item: MediaItem) -> str:
        data = base64.b64encode(item.contents).decode("ascii")
        stored = await self.client.store_media_file(item.remote_filename, data)
        logger.debug("media_stored", file=item.source_path, filename=stored)
        return stored or item.remote_filename

    async def get_version(self) -> int:
        return await self.client.version()

    async def get_note_types(self) -> list[NoteType]:
        note_types = []
        for name in await self.client.get_model_names():
            fields = await self.client.get_model_field_names(name)
            note_types.append(NoteType(name=name, fields=tuple(fields)))
        return note_types

    async def get_deck_names(self) -> list[str]:
        return await self.client.get_deck_names()
