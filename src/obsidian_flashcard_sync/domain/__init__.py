"""Domain layer for the Obsidian flashcard sync service.

This package contains the domain entities, services, and interfaces,
following Domain-Driven Design principles.
"""

from .entities.flashcard import Flashcard, HtmlFlashcard, InvalidFlashcard, SourceLocation
from .entities.remote_note import NoteType, RemoteNote
from .entities.sync_plan import SyncPlan
from .entities.sync_result import SyncResult
from .interfaces.document_store import IDocumentStore
from .interfaces.remote_store import IRemoteStore
from .services.cloze_highlighter import ClozeHighlighter
from .services.field_differ import FieldDiffer

__all__ = [
    # Services
    "ClozeHighlighter",
    "FieldDiffer",
    # Entities
    "Flashcard",
    "HtmlFlashcard",
    # Interfaces
    "IDocumentStore",
    "IRemoteStore",
    "InvalidFlashcard",
    "NoteType",
    "RemoteNote",
    "SourceLocation",
    "SyncPlan",
    "SyncResult",
]
