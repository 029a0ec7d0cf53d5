"""Core CLI commands: sync, check, note-types, preview."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from .check_handler import run_check, run_note_types, run_preview
from .shared import get_config_and_logger
from .sync_handler import run_sync

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config.yaml", exists=True),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Show all log messages on terminal (for debugging)",
    ),
]


class OrphanChoice(str, Enum):
    DELETE = "delete"
    IMPORT = "import"


def register(app: typer.Typer) -> None:
    """Register core commands on the given Typer app."""

    @app.command()
    def sync(
        dry_run: Annotated[
            bool,
            typer.Option("--dry-run", help="Preview changes without applying"),
        ] = False,
        orphans: Annotated[
            OrphanChoice | None,
            typer.Option(
                "--orphans",
                help="Handle Anki notes whose block is gone: delete or import",
            ),
        ] = None,
        yes: Annotated[
            bool,
            typer.Option("--yes", "-y", help="Apply changes without confirmation"),
        ] = False,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Synchronize flashcard blocks of the vault to Anki."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        logger.info(
            "cli_command_started",
            command="sync",
            dry_run=dry_run,
            orphans=orphans.value if orphans else None,
            config_path=str(config_path) if config_path else None,
        )
        run_sync(
            config,
            logger,
            dry_run=dry_run,
            orphan_action=orphans.value if orphans else None,
            assume_yes=yes,
        )

    @app.command()
    def check(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Parse every flashcard block and report invalid ones."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        run_check(config, logger)

    @app.command(name="note-types")
    def note_types(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Check the Anki connection and list note types, fields and decks."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        run_note_types(config, logger)

    @app.command()
    def preview(
        note_path: Annotated[
            Path, typer.Argument(help="Note to preview, relative to the vault")
        ],
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Show the rendered flashcards of one note with clozes highlighted."""
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)
        run_preview(config, logger, note_path)
