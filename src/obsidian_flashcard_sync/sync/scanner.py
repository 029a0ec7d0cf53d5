"""Scan the vault and Anki and produce a sync plan."""

import asyncio
from dataclasses import dataclass, field

from ..constants import DEFAULT_NOTE_TYPE
from ..domain.entities.flashcard import ParsedBlock, SourceLocation
from ..domain.entities.remote_note import NoteTypeCatalog, RemoteNote, build_catalog
from ..domain.entities.sync_plan import SyncPlan
from ..domain.interfaces.document_store import IDocumentStore
from ..domain.interfaces.remote_store import IRemoteStore
from ..exceptions import DocumentStoreError, RemoteStoreError
from ..obsidian.block_parser import parse_flashcard
from ..obsidian.block_scanner import find_flashcard_blocks
from ..obsidian.frontmatter import parse_note_metadata
from ..utils.logging import get_logger
from .media import resolve_media
from .reconciliation import ReconciliationEngine

logger = get_logger(__name__)

# Yield to the event loop after this many documents
YIELD_EVERY = 10


@dataclass
class VaultSnapshot:
    """Parsed blocks of every document in the vault."""

    blocks: list[ParsedBlock] = field(default_factory=list)
    total_documents: int = 0
    scanned_documents: int = 0


class VaultScanner:
    """Drives one scan: fetch the Anki snapshot, parse the vault, reconcile."""

    def __init__(
        self,
        documents: IDocumentStore,
        remote: IRemoteStore,
        engine: ReconciliationEngine,
        default_deck: str,
        default_note_type: str = DEFAULT_NOTE_TYPE,
    ):
        self.documents = documents
        self.remote = remote
        self.engine = engine
        self.vault_name = engine.vault_name
        self.default_deck = default_deck
        self.default_note_type = default_note_type

    async def load_note_types(self) -> NoteTypeCatalog | None:
        """Fetch the note type catalog, or None when Anki cannot be asked."""
        try:
            return build_catalog(await self.remote.get_note_types())
        except RemoteStoreError as e:
            logger.warning("anki_connection_warning", error=e.message)
            return None

    async def fetch_remote_snapshot(self) -> tuple[list[int], list[RemoteNote]]:
        """
        Fetch the managed note ids and their notes.

        A failed id search degrades to an empty snapshot, which treats every
        local flashcard as new. A failed note fetch keeps the ids, so
        flashcards pointing at them are skipped rather than created again.

        Returns:
            Managed ids and the notes that were found for them
        """
        try:
            managed_ids = await self.remote.list_managed_ids(self.vault_name)
        except RemoteStoreError as e:
            logger.warning("anki_search_failed", vault=self.vault_name, error=e.message)
            return [], []

        try:
            notes = await self.remote.fetch_records(managed_ids)
        except RemoteStoreError as e:
            logger.warning(
                "anki_search_failed",
                vault=self.vault_name,
                error=e.message,
                managed=len(managed_ids),
            )
            return managed_ids, []
        return managed_ids, notes

    async def parse_vault(self, note_types: NoteTypeCatalog | None = None) -> VaultSnapshot:
        """
        Parse every flashcard block in the vault.

        Documents that cannot be read are logged and skipped.

        Args:
            note_types: Catalog enabling schema warnings and auto fields

        Returns:
            Parsed blocks in document order
        """
        snapshot = VaultSnapshot()
        paths = await self.documents.list_documents()
        snapshot.total_documents = len(paths)

        for index, path in enumerate(paths):
            if index and index % YIELD_EVERY == 0:
                await asyncio.sleep(0)

            try:
                content = await self.documents.read_text(path)
            except DocumentStoreError as e:
                logger.warning("document_read_failed", file=path, error=e.message)
                continue

            blocks = self.parse_document(path, content, note_types)
            snapshot.blocks.extend(blocks)
            snapshot.scanned_documents += 1
            logger.debug("document_scanned", file=path, blocks=len(blocks))

        return snapshot

    def parse_document(
        self,
        path: str,
        content: str,
        note_types: NoteTypeCatalog | None = None,
    ) -> list[ParsedBlock]:
        """Parse the flashcard blocks of one document."""
        metadata = parse_note_metadata(content, path)
        return [
            parse_flashcard(
                raw.text,
                SourceLocation(path, raw.line_start, raw.line_end),
                self.default_deck,
                metadata,
                note_types=note_types,
                vault_name=self.vault_name,
                default_note_type=self.default_note_type,
            )
            for raw in find_flashcard_blocks(content)
        ]

    async def scan(self) -> SyncPlan:
        """
        Build the plan for a sync run.

        Returns:
            Plan with media resolved against Anki
        """
        note_types = await self.load_note_types()
        managed_ids, notes = await self.fetch_remote_snapshot()
        snapshot = await self.parse_vault(note_types)

        plan = self.engine.reconcile(snapshot.blocks, managed_ids, notes)
        plan.total_documents = snapshot.total_documents
        plan.scanned_documents = snapshot.scanned_documents

        await resolve_media(plan, self.documents, self.remote)

        logger.info(
            "scan_completed",
            documents=snapshot.scanned_documents,
            flashcards=len(snapshot.blocks) - len(plan.invalid),
            invalid=len(plan.invalid),
        )
        return plan
