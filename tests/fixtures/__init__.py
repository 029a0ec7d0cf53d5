"""Test fixtures package."""

from .documents import flashcard_block, make_note
from .in_memory_document_store import InMemoryDocumentStore
from .in_memory_remote_store import DEFAULT_NOTE_TYPES, InMemoryRemoteStore

__all__ = [
    "DEFAULT_NOTE_TYPES",
    "InMemoryDocumentStore",
    "InMemoryRemoteStore",
    "flashcard_block",
    "make_note",
]
