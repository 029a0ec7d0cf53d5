"""Centralized exception hierarchy for obsidian-flashcard-sync.

All custom exceptions inherit from FlashcardSyncError, making it easy to
catch every sync-related error with a single except clause.

Exception Hierarchy:
    FlashcardSyncError (base)
     ConfigurationError - Configuration loading/validation errors
     ParserError - Flashcard block parsing errors (never escapes the parser)
     RemoteStoreError - Remote flashcard store errors
        AnkiConnectError - AnkiConnect returned an error for an action
        AnkiConnectionError - AnkiConnect unreachable, timed out or bad HTTP
     DocumentStoreError - Vault document read/write errors
     WriteBackError - Assigned Anki id could not be written to the source note

Usage Examples:
    try:
        result = await service.run()
    except FlashcardSyncError as e:
        logger.error("sync_failed", error=str(e))
"""

from typing import Any


class FlashcardSyncError(Exception):
    """Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        error_code: Structured error code for machine-readable handling
        context: Additional context for debugging (e.g., file paths, note ids)
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            suggestion: Optional suggestion for resolving the error
            error_code: Structured error code (e.g., "ANKI-CONN-001")
            context: Additional context for debugging
        """
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with error code and suggestion if available."""
        parts = []
        if self.error_code:
            parts.append(f"[{self.error_code}] {self.message}")
        else:
            parts.append(self.message)
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "suggestion": self.suggestion,
            "context": self.context,
            "type": type(self).__name__,
        }


# Configuration Errors


class ConfigurationError(FlashcardSyncError):
    """Configuration loading or validation errors.

    Raised when:
    - Config file is missing or malformed
    - Vault path does not exist
    - Configuration values fail validation
    """


# Parsing Errors


class ParserError(FlashcardSyncError):
    """Flashcard block parsing errors.

    Used inside the block parser to short-circuit validation; always
    converted into an InvalidFlashcard before leaving the parser.
    """


# Remote Store Errors


class RemoteStoreError(FlashcardSyncError):
    """Base class for remote flashcard store errors."""


class AnkiConnectError(RemoteStoreError):
    """AnkiConnect action errors.

    Raised when:
    - AnkiConnect returns an error for an action (duplicate note, unknown
      model, missing deck, ...)
    - The response body is not valid JSON
    """


class AnkiConnectionError(AnkiConnectError):
    """AnkiConnect transport errors.

    Raised when:
    - Anki is not running or AnkiConnect is not installed
    - The request times out
    - The HTTP status is not successful
    """


# Vault Errors


class DocumentStoreError(FlashcardSyncError):
    """Vault document errors.

    Raised when:
    - A document cannot be listed, read or written
    - A path escapes the vault root
    """


class WriteBackError(FlashcardSyncError):
    """Writing a newly assigned Anki id back into a note failed.

    The remote note exists at this point; only the local backlink is missing.

    Attributes:
        source_path: Vault-relative path of the note
        remote_ids: Anki note ids that could not be written back
    """

    def __init__(
        self,
        message: str,
        *,
        source_path: str,
        remote_ids: list[int],
        suggestion: str | None = None,
    ):
        self.source_path = source_path
        self.remote_ids = remote_ids
        super().__init__(
            message,
            suggestion,
            context={"source_path": source_path, "remote_ids": remote_ids},
        )


def is_retriable_error(error: Exception) -> bool:
    """Check if an error is retriable.

    Transport problems are transient; everything AnkiConnect reports
    explicitly (duplicates, missing decks, ...) is permanent.

    Args:
        error: The exception to check

    Returns:
        True if the error is retriable, False otherwise
    """
    return isinstance(error, AnkiConnectionError)
