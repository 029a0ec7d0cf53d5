"""Command-line interface for the sync service."""

from __future__ import annotations

import typer

from .cli_commands import core_commands

app = typer.Typer(
    name="obsidian-flashcard-sync",
    help="Sync flashcard blocks from an Obsidian vault to Anki.",
    no_args_is_help=True,
)

core_commands.register(app)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
