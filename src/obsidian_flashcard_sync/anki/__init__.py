"""AnkiConnect client and remote store adapter."""

from .client import AnkiClient
from .remote_store import AnkiRemoteStore, file_tag, managed_notes_query

__all__ = [
    "AnkiClient",
    "AnkiRemoteStore",
    "file_tag",
    "managed_notes_query",
]
