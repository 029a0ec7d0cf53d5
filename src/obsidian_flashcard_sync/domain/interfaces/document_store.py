"""Interface for reading and writing vault documents."""

from abc import ABC, abstractmethod


class IDocumentStore(ABC):
    """Interface for the vault holding the Markdown notes.

    Paths are vault-relative and use forward slashes. Every method may
    raise DocumentStoreError on failure.
    """

    @abstractmethod
    async def list_documents(self) -> list[str]:
        """List Markdown documents in the vault.

        Returns:
            Sorted vault-relative paths of every Markdown file
        """

    @abstractmethod
    async def read_text(self, path: str) -> str:
        """Read a document as UTF-8 text."""

    @abstractmethod
    async def read_binary(self, path: str) -> bytes:
        """Read a file as raw bytes."""

    @abstractmethod
    async def write_text(self, path: str, text: str) -> None:
        """Write UTF-8 text, creating parent folders as needed."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a file exists."""
