"""The reconciliation result: what a sync run is going to do."""

from __future__ import annotations

from dataclasses import dataclass, field

from .diff import FlashcardDiff
from .flashcard import Flashcard, HtmlFlashcard, InvalidFlashcard
from .media import MediaItem
from .remote_note import RemoteNote


@dataclass(frozen=True)
class ChangedFlashcard:
    """A local flashcard whose remote note differs from it."""

    flashcard: Flashcard
    remote_note: RemoteNote
    html_flashcard: HtmlFlashcard
    remote_html_flashcard: HtmlFlashcard
    diff: FlashcardDiff


@dataclass
class SyncPlan:
    """Classification of every local block and every managed remote note.

    Every managed remote id that was fetched ends up in exactly one of
    ``to_update``, ``unchanged`` or ``to_delete``. Flashcards whose managed
    note could not be fetched are ``unresolved`` and left alone this run.
    """

    to_create: list[Flashcard] = field(default_factory=list)
    to_update: list[ChangedFlashcard] = field(default_factory=list)
    unchanged: list[Flashcard] = field(default_factory=list)
    unresolved: list[Flashcard] = field(default_factory=list)
    invalid: list[InvalidFlashcard] = field(default_factory=list)
    to_delete: list[RemoteNote] = field(default_factory=list)
    media_paths: set[str] = field(default_factory=set)
    media_items: list[MediaItem] = field(default_factory=list)
    unsynced_media: list[MediaItem] = field(default_factory=list)
    total_documents: int = 0
    scanned_documents: int = 0

    @property
    def unchanged_count(self) -> int:
        return len(self.unchanged)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.to_create or self.to_update or self.to_delete or self.unsynced_media
        )

    def summary(self) -> dict[str, int]:
        return {
            "new": len(self.to_create),
            "changed": len(self.to_update),
            "unchanged": self.unchanged_count,
            "unresolved": len(self.unresolved),
            "invalid": len(self.invalid),
            "deleted": len(self.to_delete),
            "media": len(self.unsynced_media),
        }
