"""Domain entities package."""

from .diff import DiffPart, FieldDiff, FlashcardDiff, StringDiff, TagsDiff
from .flashcard import (
    Flashcard,
    HtmlFlashcard,
    InvalidFlashcard,
    NoteMetadata,
    ParsedBlock,
    SourceLocation,
)
from .media import MediaItem, source_path_from_remote_filename
from .remote_note import (
    NoteType,
    NoteTypeCatalog,
    RemoteField,
    RemoteNote,
    build_catalog,
    is_system_tag,
)
from .sync_plan import ChangedFlashcard, SyncPlan
from .sync_result import (
    MediaOperationResult,
    OperationKind,
    OperationResult,
    SyncResult,
    WriteBackFailure,
)

__all__ = [
    "ChangedFlashcard",
    "DiffPart",
    "FieldDiff",
    "Flashcard",
    "FlashcardDiff",
    "HtmlFlashcard",
    "InvalidFlashcard",
    "MediaItem",
    "MediaOperationResult",
    "NoteMetadata",
    "NoteType",
    "NoteTypeCatalog",
    "OperationKind",
    "OperationResult",
    "ParsedBlock",
    "RemoteField",
    "RemoteNote",
    "SourceLocation",
    "StringDiff",
    "SyncPlan",
    "SyncResult",
    "TagsDiff",
    "WriteBackFailure",
    "build_catalog",
    "is_system_tag",
    "source_path_from_remote_filename",
]
