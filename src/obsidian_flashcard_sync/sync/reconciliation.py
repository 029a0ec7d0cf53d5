"""Classify local flashcards and managed Anki notes into a sync plan."""

from collections.abc import Iterable
from dataclasses import replace

from ..domain.entities.flashcard import (
    Flashcard,
    HtmlFlashcard,
    InvalidFlashcard,
    ParsedBlock,
)
from ..domain.entities.remote_note import RemoteNote
from ..domain.entities.sync_plan import ChangedFlashcard, SyncPlan
from ..domain.services.field_differ import FieldDiffer
from ..rendering.markdown import MarkdownRenderer
from ..utils.logging import get_logger
from .media import extract_media_paths

logger = get_logger(__name__)


class ReconciliationEngine:
    """Builds a SyncPlan from parsed blocks and a snapshot of Anki.

    Performs no I/O: the managed ids and their notes are fetched by the
    caller. Classification depends only on ids and rendered content, so
    an unchanged vault and collection always produce the same plan.
    """

    def __init__(
        self,
        renderer: MarkdownRenderer,
        vault_name: str,
        ignored_tags: Iterable[str] = (),
        differ: FieldDiffer | None = None,
    ):
        """
        Initialize engine.

        Args:
            renderer: Renders flashcards and notes to comparable HTML
            vault_name: Vault whose notes are being reconciled
            ignored_tags: Tags that never count as a difference
            differ: Field differ, created when omitted
        """
        self.renderer = renderer
        self.vault_name = vault_name
        self.ignored_tags = frozenset(ignored_tags)
        self.differ = differ or FieldDiffer()

    def _without_ignored_tags(self, flashcard: HtmlFlashcard) -> HtmlFlashcard:
        return replace(
            flashcard,
            tags=tuple(tag for tag in flashcard.tags if tag not in self.ignored_tags),
        )

    def reconcile(
        self,
        parsed_blocks: Iterable[ParsedBlock],
        managed_ids: Iterable[int],
        remote_notes: Iterable[RemoteNote],
    ) -> SyncPlan:
        """
        Classify every block and every managed note.

        Args:
            parsed_blocks: Parser output for every block in the vault
            managed_ids: Ids of the notes owned by this vault
            remote_notes: Fetched notes for those ids

        Returns:
            The plan; every fetched managed id lands in exactly one of
            ``to_update``, ``unchanged`` or ``to_delete``
        """
        plan = SyncPlan()
        managed = list(dict.fromkeys(managed_ids))
        managed_set = set(managed)
        notes_by_id = {note.id: note for note in remote_notes if note.id in managed_set}
        seen_ids: set[int] = set()

        for block in parsed_blocks:
            if isinstance(block, InvalidFlashcard):
                plan.invalid.append(block)
                continue

            html_flashcard = self.renderer.to_html_flashcard(block)
            plan.media_paths.update(extract_media_paths(html_flashcard))
            self._classify(
                block, html_flashcard, managed_set, notes_by_id, seen_ids, plan
            )

        for note_id in managed:
            if note_id not in seen_ids and note_id in notes_by_id:
                plan.to_delete.append(notes_by_id[note_id])

        logger.debug(
            "reconciliation_completed", vault=self.vault_name, **plan.summary()
        )
        return plan

    def _classify(
        self,
        flashcard: Flashcard,
        html_flashcard: HtmlFlashcard,
        managed_set: set[int],
        notes_by_id: dict[int, RemoteNote],
        seen_ids: set[int],
        plan: SyncPlan,
    ) -> None:
        remote_id = flashcard.remote_id

        if remote_id is None or remote_id not in managed_set:
            plan.to_create.append(flashcard)
            return

        # Managed but not fetched: the note exists, its content is unknown.
        if remote_id not in notes_by_id:
            logger.warning(
                "managed_note_not_fetched",
                remote_id=remote_id,
                location=str(flashcard.location),
            )
            seen_ids.add(remote_id)
            plan.unresolved.append(flashcard)
            return

        if remote_id in seen_ids:
            logger.warning(
                "duplicate_anki_id",
                remote_id=remote_id,
                location=str(flashcard.location),
            )
            plan.to_create.append(flashcard)
            return
        seen_ids.add(remote_id)

        note = notes_by_id[remote_id]
        remote_html = self.renderer.remote_to_html_flashcard(note)
        diff = self.differ.diff(
            self._without_ignored_tags(remote_html),
            self._without_ignored_tags(html_flashcard),
        )

        if diff is None:
            plan.unchanged.append(flashcard)
        else:
            plan.to_update.append(
                ChangedFlashcard(
                    flashcard=flashcard,
                    remote_note=note,
                    html_flashcard=html_flashcard,
                    remote_html_flashcard=remote_html,
                    diff=diff,
                )
            )
