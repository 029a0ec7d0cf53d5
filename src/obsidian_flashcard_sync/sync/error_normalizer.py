"""Turn raw remote errors into short, actionable messages."""

from ..domain.entities.sync_result import OperationKind

_FALLBACK_PREFIX = {
    OperationKind.CREATE: "Creation failed",
    OperationKind.UPDATE: "Update failed",
    OperationKind.DELETE: "Deletion failed",
    OperationKind.IMPORT: "Import failed",
}


def normalize_error(error: BaseException | str, operation: OperationKind) -> str:
    """
    Map an operation failure to a user-facing reason.

    Categories are checked in order: duplicates (create only), connection,
    permissions, note type, deck, field, then missing notes (update and
    delete). Anything else keeps its message behind a per-operation prefix.

    Args:
        error: The exception or raw error message
        operation: Operation that failed

    Returns:
        Normalized reason
    """
    message = getattr(error, "message", None) or str(error)
    lowered = message.lower()

    if operation is OperationKind.CREATE and (
        "duplicate" in lowered or "already exists" in lowered
    ):
        return (
            "Card already exists in Anki. Try refreshing the sync or check for "
            "duplicate content."
        )
    if any(word in lowered for word in ("connection", "network", "timeout", "timed out")):
        return (
            "Connection to Anki lost. Make sure Anki is running and AnkiConnect "
            "is installed."
        )
    if "permission" in lowered or "access denied" in lowered:
        return "Permission denied. Check Anki and AnkiConnect permissions."
    if "model" in lowered or "note type" in lowered:
        return (
            "Note type not found in Anki. Refresh your connection or recreate "
            "the note type."
        )
    if "deck" in lowered:
        return "Deck not found in Anki. Check your default deck setting."
    if "field" in lowered:
        return (
            "Invalid field configuration. Check that all fields match the note "
            "type in Anki."
        )
    if "not found" in lowered or "does not exist" in lowered:
        if operation is OperationKind.UPDATE:
            return "Note no longer exists in Anki. It may have been deleted manually."
        if operation is OperationKind.DELETE:
            return "Note already deleted from Anki."

    return f"{_FALLBACK_PREFIX[operation]}: {message}"
