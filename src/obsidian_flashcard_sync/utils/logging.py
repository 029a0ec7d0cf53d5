"""Logging configuration using structlog for structured JSON logging."""

import logging
import sys
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer
from structlog.stdlib import LoggerFactory, add_log_level, add_logger_name

# Standard library logging levels mapping
_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# User-facing event names that should appear on terminal (without --verbose)
# These are the only events shown to users by default, plus all ERROR/CRITICAL
USER_FACING_EVENTS: set[str] = {
    # Sync lifecycle
    "sync_started",
    "sync_completed",
    "sync_failed",
    # Scan
    "scan_completed",
    "anki_search_failed",
    # Write-back
    "backfill_write_failed",
    # User warnings
    "config_warning",
    "anki_connection_warning",
}


def _get_level_no(level_name: str) -> int:
    """Get numeric log level from name."""
    return _LOG_LEVELS.get(level_name.upper(), logging.INFO)


@dataclass(slots=True)
class HighVolumeEventPolicy:
    """
    Rate-limiting policy for high-frequency log events.

    Attributes:
        max_occurrences: Maximum number of events allowed within the window.
        window_seconds: Sliding window size in seconds for counting events.
    """

    max_occurrences: int
    window_seconds: float


class ConsoleNoiseFilterProcessor:
    """Structlog processor that rate-limits chatty events on the console."""

    def __init__(
        self,
        high_volume_policies: Mapping[str, HighVolumeEventPolicy] | None = None,
        time_func: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the console noise filter processor.

        Args:
            high_volume_policies: Mapping of event names to rate-limit policies.
            time_func: Optional time provider for testing (defaults to time.monotonic).
        """
        self.high_volume_policies = dict(high_volume_policies or {})
        self._event_windows: dict[str, deque[float]] = {
            event: deque() for event in self.high_volume_policies
        }
        self._lock = threading.Lock()
        self._time_func = time_func or time.monotonic

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        """Drop an event once its policy window is full."""
        message = event_dict.get("event", "")
        policy = (
            self.high_volume_policies.get(message) if isinstance(message, str) else None
        )
        if policy:
            now = self._time_func()
            with self._lock:
                window = self._event_windows.setdefault(str(message), deque())
                while window and now - window[0] > policy.window_seconds:
                    window.popleft()
                if len(window) >= policy.max_occurrences:
                    raise structlog.DropEvent
                window.append(now)

        return event_dict


class UserFacingConsoleFilter(logging.Filter):
    """Logging filter that only passes user-facing events to console.

    Allows:
    - Events in USER_FACING_EVENTS set
    - All ERROR and CRITICAL level messages
    - All messages when verbose mode is enabled
    """

    def __init__(self, verbose: bool = False) -> None:
        super().__init__()
        self.verbose = verbose

    def filter(self, record: logging.LogRecord) -> bool:
        if self.verbose:
            return True

        if record.levelno >= logging.ERROR:
            return True

        # For structlog logs, the event name is the message
        event = record.getMessage()
        if isinstance(event, str):
            if event in USER_FACING_EVENTS:
                return True
            for user_event in USER_FACING_EVENTS:
                if user_event in event:
                    return True

        return False


class UserFriendlyConsoleRenderer:
    """Renders user-facing logs in a clean, readable format for terminal output."""

    def __init__(self) -> None:
        self._fallback = ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        """Render log event as user-friendly string."""
        event = event_dict.get("event", "")
        level = str(event_dict.get("level", "info")).upper()

        if event == "sync_started":
            vault = event_dict.get("vault", "")
            dry_run = event_dict.get("dry_run", False)
            mode_str = " (dry-run)" if dry_run else ""
            vault_str = f" for vault: {vault}" if vault else ""
            return f"Starting sync{vault_str}{mode_str}"

        elif event == "scan_completed":
            documents = event_dict.get("documents", 0)
            flashcards = event_dict.get("flashcards", 0)
            invalid = event_dict.get("invalid", 0)
            summary = f"Scanned {documents} notes: {flashcards} flashcards"
            if invalid:
                summary += f", {invalid} invalid"
            return summary

        elif event == "sync_completed":
            created = event_dict.get("created", 0)
            updated = event_dict.get("updated", 0)
            deleted = event_dict.get("deleted", 0)
            failed = event_dict.get("failed", 0)
            duration = event_dict.get("duration_seconds", 0)
            summary = (
                f"Sync completed in {duration:.1f}s: "
                f"{created} created, {updated} updated, {deleted} deleted"
            )
            if failed:
                summary += f" | {failed} failed"
            return summary

        elif event == "anki_search_failed":
            return "WARNING: Anki search failed - treating all flashcards as new"

        elif event == "sync_failed":
            error = event_dict.get("error", "Unknown error")
            return f"Sync failed: {error}"

        elif level == "ERROR":
            error = event_dict.get("error", event)
            return f"ERROR: {error}"

        elif level == "WARNING" and event in USER_FACING_EVENTS:
            return f"WARNING: {event}"

        return str(self._fallback(logger, method_name, event_dict))


DEFAULT_HIGH_VOLUME_EVENTS: dict[str, HighVolumeEventPolicy] = {
    # One line per note is too much on large vaults.
    "document_scanned": HighVolumeEventPolicy(5, 10.0),
    "media_file_missing": HighVolumeEventPolicy(5, 10.0),
}

# Global state for handlers
_configured = False
_handlers: list[logging.Handler] = []


def _add_formatted_extra_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add a '_formatted' field with the extra fields, key fields first."""
    priority_fields = ["file", "source_path", "note_id", "line"]
    important_parts = []
    other_parts = []

    for key, value in event_dict.items():
        if key in ("logger", "level", "event", "timestamp", "exception", "_formatted"):
            continue

        if key in priority_fields:
            if value:
                important_parts.append(f"{key}={value}")
        elif value is not None and value != "":
            other_parts.append(f"{key}={value}")

    all_parts = important_parts + other_parts
    event_dict["_formatted"] = " | " + " ".join(all_parts) if all_parts else ""
    return event_dict


def _base_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _setup_structlog() -> None:
    """Configure structlog to route through standard library logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    structlog.configure(
        processors=[
            *_base_processors(),
            _add_formatted_extra_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    verbose: bool = False,
    enable_console_noise_filter: bool = True,
) -> None:
    """Configure structlog logging with dual output.

    Args:
        log_level: Minimum console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the JSON log file; no file handler when None
        verbose: If True, show all log messages on terminal (for debugging)
        enable_console_noise_filter: Toggle console-side rate limiting
    """
    global _configured  # noqa: PLW0603

    _setup_structlog()

    root_logger = logging.getLogger()
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    level = _get_level_no(log_level)

    # Console handler - human-readable with colors
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    console_pre_chain = _base_processors()
    if enable_console_noise_filter:
        console_pre_chain.append(
            ConsoleNoiseFilterProcessor(high_volume_policies=DEFAULT_HIGH_VOLUME_EVENTS)
        )
    console_pre_chain.append(_add_formatted_extra_processor)

    console_handler.addFilter(UserFacingConsoleFilter(verbose=verbose))

    if verbose:
        renderer: Any = ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )
    else:
        renderer = UserFriendlyConsoleRenderer()

    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=console_pre_chain,
        )
    )
    root_logger.addHandler(console_handler)
    _handlers.append(console_handler)

    # File handler - JSON format with size-based rotation
    if log_dir is not None:
        log_dir.mkdir(exist_ok=True, parents=True)
        file_handler = RotatingFileHandler(
            filename=str(log_dir / "obsidian-flashcard-sync.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=JSONRenderer(),
                foreign_pre_chain=[*_base_processors(), _add_formatted_extra_processor],
            )
        )
        root_logger.addHandler(file_handler)
        _handlers.append(file_handler)

    _configured = True

    get_logger(__name__).debug(
        "logging_configured",
        console_level=log_level,
        log_dir=str(log_dir) if log_dir else None,
        verbose=verbose,
    )


def get_logger(name: str) -> Any:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger bound to the given name
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)
