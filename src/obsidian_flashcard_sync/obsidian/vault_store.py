"""IDocumentStore implementation over a vault directory."""

import asyncio
from pathlib import Path

from ..domain.interfaces.document_store import IDocumentStore
from ..exceptions import DocumentStoreError
from ..utils.logging import get_logger
from ..utils.path_validator import resolve_document_path, validate_vault_path

logger = get_logger(__name__)


class VaultDocumentStore(IDocumentStore):
    """Reads and writes notes of an Obsidian vault on the local filesystem.

    Hidden folders such as ``.obsidian`` and ``.trash`` are not listed.
    """

    def __init__(self, vault_path: Path):
        self.vault_path = validate_vault_path(vault_path)

    def _list_sync(self) -> list[str]:
        documents = []
        for file_path in self.vault_path.rglob("*.md"):
            relative = file_path.relative_to(self.vault_path)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if file_path.is_file():
                documents.append(relative.as_posix())
        return sorted(documents)

    async def list_documents(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_sync)
        except OSError as e:
            raise DocumentStoreError(
                f"Failed to list vault documents: {e}",
                context={"vault": str(self.vault_path)},
            ) from e

    async def read_text(self, path: str) -> str:
        file_path = resolve_document_path(self.vault_path, path)
        try:
            return await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentStoreError(
                f"Failed to read {path}: {e}", context={"path": path}
            ) from e

    async def read_binary(self, path: str) -> bytes:
        file_path = resolve_document_path(self.vault_path, path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except OSError as e:
            raise DocumentStoreError(
                f"Failed to read {path}: {e}", context={"path": path}
            ) from e

    def _write_sync(self, file_path: Path, text: str) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(text, encoding="utf-8")

    async def write_text(self, path: str, text: str) -> None:
        file_path = resolve_document_path(self.vault_path, path)
        try:
            await asyncio.to_thread(self._write_sync, file_path, text)
        except OSError as e:
            raise DocumentStoreError(
                f"Failed to write {path}: {e}", context={"path": path}
            ) from e
        logger.debug("document_written", file=path)

    async def exists(self, path: str) -> bool:
        file_path = resolve_document_path(self.vault_path, path)
        return await asyncio.to_thread(file_path.is_file)
