"""Domain interfaces package."""

from .document_store import IDocumentStore
from .remote_store import IRemoteStore

__all__ = [
    "IDocumentStore",
    "IRemoteStore",
]
