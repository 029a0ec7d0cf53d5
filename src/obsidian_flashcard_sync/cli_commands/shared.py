"""Shared utilities for CLI commands."""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from obsidian_flashcard_sync.config import Config, load_config, set_config
from obsidian_flashcard_sync.exceptions import FlashcardSyncError
from obsidian_flashcard_sync.utils.logging import configure_logging, get_logger

# Shared console for all commands
console = Console()


def get_config_and_logger(
    config_path: Path | None = None,
    log_level: str | None = None,
    verbose: bool = False,
) -> tuple[Config, Any]:
    """Load configuration and configure logging for one command.

    Args:
        config_path: Optional path to config file
        log_level: Overrides the configured log level
        verbose: Show all log messages on terminal (for debugging)

    Returns:
        Tuple of (Config, Logger)

    Raises:
        typer.Exit: When the configuration is invalid
    """
    try:
        config = load_config(config_path)
    except FlashcardSyncError as e:
        print_error(e)
        raise typer.Exit(code=2) from e

    set_config(config)
    configure_logging(
        log_level or config.log_level,
        log_dir=config.log_dir,
        verbose=verbose,
    )
    return config, get_logger("cli")


def print_error(error: Exception) -> None:
    """Print an error and, for sync errors, its suggestion."""
    if isinstance(error, FlashcardSyncError):
        console.print(f"\n[bold red]Error:[/bold red] {error.message}")
        if error.suggestion:
            console.print(f"  [dim]TIP: {error.suggestion}[/dim]")
    else:
        console.print(f"\n[bold red]Error:[/bold red] {error}")
