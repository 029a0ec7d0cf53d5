"""Interface for the remote flashcard store (Anki)."""

from abc import ABC, abstractmethod

from ..entities.flashcard import HtmlFlashcard
from ..entities.media import MediaItem
from ..entities.remote_note import NoteType, RemoteNote


class IRemoteStore(ABC):
    """Interface for the store that holds the synced flashcards.

    Every method may raise a RemoteStoreError subclass on failure.
    """

    @abstractmethod
    async def list_managed_ids(self, vault_name: str) -> list[int]:
        """Find the ids of notes owned by a vault.

        Args:
            vault_name: Name of the vault whose notes to find

        Returns:
            Note ids carrying both the sync tag and the vault tag
        """

    @abstractmethod
    async def fetch_records(self, ids: list[int]) -> list[RemoteNote]:
        """Fetch full note data for the given ids.

        Ids that no longer exist are silently omitted.

        Args:
            ids: Note ids to fetch

        Returns:
            The notes that were found
        """

    @abstractmethod
    async def create_record(
        self, flashcard: HtmlFlashcard, media_items: list[MediaItem]
    ) -> int:
        """Create a note from a rendered flashcard.

        Args:
            flashcard: Rendered flashcard to store
            media_items: Known media, used to rewrite references in field HTML

        Returns:
            Id of the created note
        """

    @abstractmethod
    async def update_record(
        self, note_id: int, flashcard: HtmlFlashcard, media_items: list[MediaItem]
    ) -> None:
        """Replace fields and tags of an existing note.

        Args:
            note_id: Id of the note to update
            flashcard: Rendered flashcard with the new content
            media_items: Known media, used to rewrite references in field HTML
        """

    @abstractmethod
    async def move_to_deck(self, note: RemoteNote, deck: str) -> None:
        """Move every card of a note into a deck.

        Args:
            note: The note whose cards to move
            deck: Target deck name
        """

    @abstractmethod
    async def delete_records(self, ids: list[int]) -> None:
        """Delete notes in one batch.

        Args:
            ids: Note ids to delete
        """

    @abstractmethod
    async def has_media(self, item: MediaItem) -> bool:
        """Check whether a media file with the same content is already stored."""

    @abstractmethod
    async def store_media(self, item: MediaItem) -> str:
        """Upload a media file.

        Returns:
            The file name the store saved it under
        """

    @abstractmethod
    async def get_version(self) -> int:
        """Get the API version of the store, which also checks it is reachable."""

    @abstractmethod
    async def get_note_types(self) -> list[NoteType]:
        """List note types with their field names."""

    @abstractmethod
    async def get_deck_names(self) -> list[str]:
        """List deck names."""
