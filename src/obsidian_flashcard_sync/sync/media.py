"""Discover vault media referenced by flashcards and check what Anki lacks."""

from ..domain.entities.flashcard import HtmlFlashcard
from ..domain.entities.media import MediaItem
from ..domain.entities.sync_plan import SyncPlan
from ..domain.interfaces.document_store import IDocumentStore
from ..domain.interfaces.remote_store import IRemoteStore
from ..exceptions import DocumentStoreError, RemoteStoreError
from ..rendering.html import is_internal_link, is_media_file, media_sources
from ..utils.logging import get_logger

logger = get_logger(__name__)


def extract_media_paths(flashcard: HtmlFlashcard) -> list[str]:
    """
    List vault media referenced by a rendered flashcard.

    Args:
        flashcard: Rendered flashcard

    Returns:
        Vault-relative paths of referenced media files, in field order
    """
    paths = []
    for html in flashcard.html_fields.values():
        for src in media_sources(html):
            if is_internal_link(src) and is_media_file(src):
                paths.append(src)
    return paths


async def resolve_media(
    plan: SyncPlan, documents: IDocumentStore, remote: IRemoteStore
) -> None:
    """
    Load every discovered media file and find the ones Anki does not have.

    Fills ``plan.media_items`` and ``plan.unsynced_media``. Files that are
    missing or unreadable are logged and skipped.

    Args:
        plan: Plan whose ``media_paths`` were filled by reconciliation
        documents: Vault holding the media files
        remote: Store to check for existing uploads
    """
    for path in sorted(plan.media_paths):
        try:
            contents = await documents.read_binary(path)
        except DocumentStoreError as e:
            logger.warning("media_file_missing", file=path, error=str(e))
            continue

        item = MediaItem(source_path=path, contents=contents)
        plan.media_items.append(item)

        try:
            synced = await remote.has_media(item)
        except RemoteStoreError as e:
            logger.warning("media_lookup_failed", file=path, error=str(e))
            synced = False
        if not synced:
            plan.unsynced_media.append(item)

    logger.debug(
        "media_resolved",
        referenced=len(plan.media_paths),
        loaded=len(plan.media_items),
        unsynced=len(plan.unsynced_media),
    )
