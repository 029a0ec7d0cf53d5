"""Apply a sync plan to Anki and write assigned ids back into the vault."""

from collections import defaultdict
from datetime import datetime
from typing import Literal

from ..domain.entities.flashcard import Flashcard
from ..domain.entities.remote_note import RemoteNote
from ..domain.entities.sync_plan import SyncPlan
from ..domain.entities.sync_result import (
    MediaOperationResult,
    OperationKind,
    OperationResult,
    SyncResult,
    WriteBackFailure,
)
from ..domain.interfaces.document_store import IDocumentStore
from ..domain.interfaces.remote_store import IRemoteStore
from ..exceptions import DocumentStoreError, FlashcardSyncError, WriteBackError
from ..obsidian.backfill import IdAssignment, apply_id_backfill
from ..obsidian.orphan_import import import_orphan
from ..rendering.markdown import MarkdownRenderer
from ..utils.logging import get_logger
from .error_normalizer import normalize_error

logger = get_logger(__name__)

OrphanAction = Literal["delete", "import"]


class SyncExecutor:
    """Executes a SyncPlan phase by phase.

    Phases run in order: create, update, orphans (delete or import), media
    upload, id write-back. Every remote call is attempted on its own; a
    failure is recorded and never stops the remaining operations. Remote
    changes that succeeded are never rolled back.
    """

    def __init__(
        self,
        remote: IRemoteStore,
        documents: IDocumentStore,
        renderer: MarkdownRenderer,
        vault_name: str,
        orphan_action: OrphanAction = "delete",
        default_deck: str | None = None,
    ):
        """
        Initialize executor.

        Args:
            remote: Store receiving the notes
            documents: Vault receiving id write-backs and imports
            renderer: Renders flashcards for upload
            vault_name: Vault being synced
            orphan_action: What to do with notes whose block is gone
            default_deck: Deck that imported blocks may omit
        """
        self.remote = remote
        self.documents = documents
        self.renderer = renderer
        self.vault_name = vault_name
        self.orphan_action = orphan_action
        self.default_deck = default_deck

    async def execute(self, plan: SyncPlan) -> SyncResult:
        """
        Run every phase of the plan.

        Args:
            plan: Plan produced by reconciliation

        Returns:
            Per-item outcomes of the run
        """
        result = SyncResult(start_time=datetime.now())
        logger.info(
            "sync_execution_started", vault=self.vault_name, **plan.summary()
        )

        created = await self._create_all(plan, result)
        await self._update_all(plan, result)
        if self.orphan_action == "import":
            await self._import_orphans(plan, result)
        else:
            await self._delete_orphans(plan, result)
        await self._upload_media(plan, result)
        await self._write_back_ids(created, result)

        result.end_time = datetime.now()
        return result

    def _record_failure(
        self,
        result: SyncResult,
        record: Flashcard | RemoteNote,
        operation: OperationKind,
        error: Exception,
        remote_id: int | None = None,
    ) -> None:
        reason = normalize_error(error, operation)
        if isinstance(error, FlashcardSyncError):
            logger.error(
                f"{operation.value}_failed",
                remote_id=remote_id,
                error=str(error),
                reason=reason,
            )
        else:
            logger.error(
                f"{operation.value}_failed_unexpected",
                remote_id=remote_id,
                error=str(error),
                exc_info=True,
            )
        result.operations.append(
            OperationResult(
                record=record,
                operation=operation,
                success=False,
                remote_id=remote_id,
                error=reason,
            )
        )

    async def _create_all(
        self, plan: SyncPlan, result: SyncResult
    ) -> list[tuple[Flashcard, int]]:
        created: list[tuple[Flashcard, int]] = []
        for flashcard in plan.to_create:
            try:
                html_flashcard = self.renderer.to_html_flashcard(flashcard)
                note_id = await self.remote.create_record(html_flashcard, plan.media_items)
            except Exception as e:
                self._record_failure(result, flashcard, OperationKind.CREATE, e)
                continue

            created.append((flashcard, note_id))
            result.operations.append(
                OperationResult(
                    record=flashcard,
                    operation=OperationKind.CREATE,
                    success=True,
                    remote_id=note_id,
                )
            )
            logger.debug(
                "flashcard_created", note_id=note_id, location=str(flashcard.location)
            )
        return created

    async def _update_all(self, plan: SyncPlan, result: SyncResult) -> None:
        for changed in plan.to_update:
            note = changed.remote_note
            target_deck = changed.html_flashcard.deck
            try:
                await self.remote.update_record(
                    note.id, changed.html_flashcard, plan.media_items
                )
                if len(note.decks) > 1 or target_deck not in note.decks:
                    await self.remote.move_to_deck(note, target_deck)
                    logger.debug("cards_moved", note_id=note.id, deck=target_deck)
            except Exception as e:
                self._record_failure(
                    result, changed.flashcard, OperationKind.UPDATE, e, remote_id=note.id
                )
                continue

            result.operations.append(
                OperationResult(
                    record=changed.flashcard,
                    operation=OperationKind.UPDATE,
                    success=True,
                    remote_id=note.id,
                )
            )
            logger.debug(
                "flashcard_updated",
                note_id=note.id,
                location=str(changed.flashcard.location),
            )

    async def _delete_orphans(self, plan: SyncPlan, result: SyncResult) -> None:
        if not plan.to_delete:
            return

        note_ids = [note.id for note in plan.to_delete]
        try:
            await self.remote.delete_records(note_ids)
        except Exception as e:
            for note in plan.to_delete:
                self._record_failure(
                    result, note, OperationKind.DELETE, e, remote_id=note.id
                )
            return

        for note in plan.to_delete:
            result.operations.append(
                OperationResult(
                    record=note,
                    operation=OperationKind.DELETE,
                    success=True,
                    remote_id=note.id,
                )
            )
        logger.debug("orphans_deleted", note_ids=note_ids)

    async def _import_orphans(self, plan: SyncPlan, result: SyncResult) -> None:
        for note in plan.to_delete:
            try:
                await import_orphan(note, self.documents, self.default_deck)
            except Exception as e:
                self._record_failure(
                    result, note, OperationKind.IMPORT, e, remote_id=note.id
                )
                continue

            result.operations.append(
                OperationResult(
                    record=note,
                    operation=OperationKind.IMPORT,
                    success=True,
                    remote_id=note.id,
                )
            )

    async def _upload_media(self, plan: SyncPlan, result: SyncResult) -> None:
        for item in plan.unsynced_media:
            try:
                filename = await self.remote.store_media(item)
            except Exception as e:
                logger.error("media_upload_failed", file=item.source_path, error=str(e))
                result.media_operations.append(
                    MediaOperationResult(item=item, success=False, error=str(e))
                )
                continue

            result.media_operations.append(
                MediaOperationResult(item=item, success=True, remote_filename=filename)
            )
            logger.debug("media_uploaded", file=item.source_path, filename=filename)

    async def _write_back_ids(
        self, created: list[tuple[Flashcard, int]], result: SyncResult
    ) -> None:
        by_document: dict[str, list[IdAssignment]] = defaultdict(list)
        for flashcard, note_id in created:
            by_document[flashcard.source_path].append(
                IdAssignment(line_start=flashcard.location.line_start, remote_id=note_id)
            )

        for path, assignments in by_document.items():
            try:
                await self._write_back_document(path, assignments, result)
            except WriteBackError as e:
                logger.error(
                    "backfill_write_failed",
                    file=e.source_path,
                    remote_ids=e.remote_ids,
                    error=e.message,
                )
                result.write_back_failures.append(
                    WriteBackFailure(
                        source_path=e.source_path,
                        remote_ids=tuple(e.remote_ids),
                        reason=e.message,
                    )
                )

    async def _write_back_document(
        self, path: str, assignments: list[IdAssignment], result: SyncResult
    ) -> None:
        try:
            content = await self.documents.read_text(path)
            updated, unresolved = apply_id_backfill(content, assignments)
            if updated != content:
                await self.documents.write_text(path, updated)
        except DocumentStoreError as e:
            raise WriteBackError(
                f"Could not write Anki ids to {path}: {e.message}",
                source_path=path,
                remote_ids=[assignment.remote_id for assignment in assignments],
                suggestion=(
                    "Add the AnkiId keys by hand, otherwise the next sync creates "
                    "these notes again"
                ),
            ) from e

        logger.debug(
            "backfill_written", file=path, count=len(assignments) - len(unresolved)
        )
        for assignment, reason in unresolved:
            result.write_back_failures.append(
                WriteBackFailure(
                    source_path=path,
                    remote_ids=(assignment.remote_id,),
                    reason=reason,
                )
            )
