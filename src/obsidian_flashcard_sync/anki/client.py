"""AnkiConnect HTTP API client."""

from types import TracebackType
from typing import Any, Literal, cast

import httpx

from obsidian_flashcard_sync.exceptions import AnkiConnectError, AnkiConnectionError
from obsidian_flashcard_sync.utils.logging import get_logger
from obsidian_flashcard_sync.utils.retry import retry

logger = get_logger(__name__)

ANKI_CONNECT_VERSION = 6


class AnkiClient:
    """Async client for the AnkiConnect HTTP API.

    Owns a single httpx.AsyncClient. Use as an async context manager or
    call ``aclose()`` when done.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize client.

        Args:
            url: AnkiConnect URL
            timeout: Request timeout in seconds
            transport: Optional transport, used by tests
        """
        self.url = url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            limits=httpx.Limits(
                max_keepalive_connections=5, max_connections=10, keepalive_expiry=30.0
            ),
        )
        logger.debug("anki_client_initialized", url=url, timeout=timeout)

    @retry(max_attempts=3, initial_delay=0.5)
    async def invoke(self, action: str, params: dict | None = None) -> Any:
        """
        Invoke AnkiConnect action.

        Transport failures are retried; errors reported by AnkiConnect
        itself are not.

        Args:
            action: Action name
            params: Action parameters

        Returns:
            Action result

        Raises:
            AnkiConnectionError: If AnkiConnect cannot be reached
            AnkiConnectError: If the action fails
        """
        payload = {
            "action": action,
            "version": ANKI_CONNECT_VERSION,
            "params": params or {},
        }

        logger.debug("anki_invoke", action=action)

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            msg = f"Connection error to AnkiConnect: {e}"
            raise AnkiConnectionError(
                msg,
                suggestion="Make sure Anki is running and AnkiConnect is installed",
                context={"url": self.url, "action": action},
            ) from e
        except httpx.HTTPStatusError as e:
            msg = f"HTTP {e.response.status_code} from AnkiConnect: {e}"
            raise AnkiConnectionError(msg, context={"action": action}) from e
        except httpx.HTTPError as e:
            msg = f"HTTP error calling AnkiConnect: {e}"
            raise AnkiConnectionError(msg, context={"action": action}) from e

        try:
            result = response.json()
        except (ValueError, TypeError) as e:
            msg = f"Invalid JSON response: {e}"
            raise AnkiConnectError(msg, context={"action": action}) from e

        if not isinstance(result, dict):
            msg = f"Unexpected response from AnkiConnect: {result!r}"
            raise AnkiConnectError(msg, context={"action": action})

        if result.get("error"):
            msg = f"AnkiConnect error: {result['error']}"
            raise AnkiConnectError(msg, context={"action": action})

        return result.get("result")

    async def version(self) -> int:
        """Get the AnkiConnect API version."""
        return cast("int", await self.invoke("version"))

    async def find_notes(self, query: str) -> list[int]:
        """
        Find notes matching query.

        Args:
            query: Anki search query

        Returns:
            List of note IDs
        """
        return cast("list[int]", await self.invoke("findNotes", {"query": query}))

    async def notes_info(self, note_ids: list[int]) -> list[dict]:
        """
        Get information about notes.

        Args:
            note_ids: List of note IDs

        Returns:
            List of note info dicts
        """
        if not note_ids:
            return []
        return cast(
            "list[dict[Any, Any]]", await self.invoke("notesInfo", {"notes": note_ids})
        )

    async def cards_info(self, card_ids: list[int]) -> list[dict]:
        """
        Get information about cards.

        Args:
            card_ids: List of card IDs

        Returns:
            List of card info dicts
        """
        if not card_ids:
            return []
        return cast(
            "list[dict[Any, Any]]", await self.invoke("cardsInfo", {"cards": card_ids})
        )

    def _build_note_payload(
        self,
        deck_name: str,
        model_name: str,
        fields: dict[str, str],
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        note_payload: dict[str, Any] = {
            "deckName": deck_name,
            "modelName": model_name,
            "fields": fields,
            "options": {"allowDuplicate": False},
        }
        if tags:
            note_payload["tags"] = tags
        return note_payload

    async def add_note(
        self,
        deck_name: str,
        model_name: str,
        fields: dict[str, str],
        tags: list[str] | None = None,
    ) -> int:
        """
        Add a new note.

        Args:
            deck_name: Deck name
            model_name: Note type name
            fields: Field values
            tags: Optional tags

        Returns:
            Note ID
        """
        note_payload = self._build_note_payload(
            deck_name=deck_name, model_name=model_name, fields=fields, tags=tags
        )
        result = await self.invoke("addNote", {"note": note_payload})
        if result is None:
            msg = "AnkiConnect error: note was not created"
            raise AnkiConnectError(msg, context={"deck": deck_name})

        logger.info("note_added", note_id=result, deck=deck_name, note_type=model_name)
        return cast("int", result)

    async def update_note_fields(self, note_id: int, fields: dict[str, str]) -> None:
        """
        Update note fields.

        Args:
            note_id: Note ID
            fields: Field values to update
        """
        await self.invoke(
            "updateNoteFields", {"note": {"id": note_id, "fields": fields}}
        )
        logger.debug("note_fields_updated", note_id=note_id)

    async def update_note_tags(
        self, note_id: int, tags: list[str], current_tags: list[str] | None = None
    ) -> None:
        """
        Synchronize tags for a single note by applying minimal add/remove operations.

        Args:
            note_id: Note ID
            tags: Desired set of tags
            current_tags: Tags the note has now; fetched when omitted
        """
        desired_set = {tag for tag in tags if tag}

        if current_tags is None:
            note_info = await self.notes_info([note_id])
            if not note_info:
                msg = f"Note not found for tag update: {note_id}"
                raise AnkiConnectError(msg, context={"note_id": note_id})
            current_tags = note_info[0].get("tags", [])

        current_set = set(current_tags)
        to_add = sorted(desired_set - current_set)
        to_remove = sorted(current_set - desired_set)

        if to_add:
            await self.add_tags([note_id], " ".join(to_add))
        if to_remove:
            await self.remove_tags([note_id], " ".join(to_remove))

        logger.debug(
            "note_tags_updated", note_id=note_id, added=to_add, removed=to_remove
        )

    async def add_tags(self, note_ids: list[int], tags: str) -> None:
        """
        Add space-separated tags to notes.

        Args:
            note_ids: Note IDs
            tags: Space-separated tags
        """
        await self.invoke("addTags", {"notes": note_ids, "tags": tags})

    async def remove_tags(self, note_ids: list[int], tags: str) -> None:
        """
        Remove space-separated tags from notes.

        Args:
            note_ids: Note IDs
            tags: Space-separated tags
        """
        await self.invoke("removeTags", {"notes": note_ids, "tags": tags})

    async def change_deck(self, card_ids: list[int], deck_name: str) -> None:
        """
        Move cards to a deck, creating the deck if needed.

        Args:
            card_ids: Card IDs to move
            deck_name: Target deck
        """
        if not card_ids:
            return
        await self.invoke("changeDeck", {"cards": card_ids, "deck": deck_name})
        logger.debug("cards_moved", count=len(card_ids), deck=deck_name)

    async def delete_notes(self, note_ids: list[int]) -> None:
        """
        Delete notes.

        Args:
            note_ids: List of note IDs to delete
        """
        if not note_ids:
            return

        await self.invoke("deleteNotes", {"notes": note_ids})
        logger.info("notes_deleted", count=len(note_ids))

    async def get_deck_names(self) -> list[str]:
        """Get all deck names."""
        return cast("list[str]", await self.invoke("deckNames"))

    async def get_model_names(self) -> list[str]:
        """Get all note type (model) names."""
        return cast("list[str]", await self.invoke("modelNames"))

    async def get_model_field_names(self, model_name: str) -> list[str]:
        """
        Get field names for a note type.

        Args:
            model_name: Note type name

        Returns:
            List of field names
        """
        return cast(
            "list[str]", await self.invoke("modelFieldNames", {"modelName": model_name})
        )

    async def store_media_file(self, filename: str, data: str) -> str:
        """
        Store a media file in Anki's media collection.

        Args:
            filename: Name of the file to store
            data: Base64-encoded file data

        Returns:
            The filename as stored in Anki (may be modified)
        """
        return cast(
            "str",
            await self.invoke("storeMediaFile", {"filename": filename, "data": data}),
        )

    async def retrieve_media_file(self, filename: str) -> str | None:
        """
        Fetch a media file from Anki's media collection.

        Args:
            filename: Name of the stored file

        Returns:
            Base64-encoded contents, or None when the file does not exist
        """
        result = await self.invoke("retrieveMediaFile", {"filename": filename})
        if result is False or result is None:
            return None
        return cast("str", result)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
        logger.debug("anki_client_closed", url=self.url)

    async def __aenter__(self) -> "AnkiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        """Async context manager exit with cleanup."""
        await self.aclose()
        return False
