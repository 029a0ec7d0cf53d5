"""Check, note-types and preview command implementation logic."""

import asyncio
from pathlib import Path
from typing import Any

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import Config
from ..domain.entities.flashcard import Flashcard, InvalidFlashcard
from ..domain.entities.remote_note import NoteType
from ..exceptions import FlashcardSyncError
from ..sync.scanner import VaultSnapshot
from ..sync.service import open_sync_service
from ..utils.path_validator import validate_vault_path
from .shared import console, print_error


def run_check(config: Config, logger: Any) -> None:
    """Parse the whole vault and report invalid blocks and warnings.

    Anki is only asked for note types; no notes are read or changed.

    Raises:
        typer.Exit: With code 1 when any block is invalid
    """
    logger.info("check_started", vault=str(config.vault_path))
    try:
        snapshot = asyncio.run(_check(config))
    except FlashcardSyncError as e:
        logger.error("check_failed", error=e.message, details=e.to_dict())
        print_error(e)
        raise typer.Exit(code=1) from e

    invalid = [b for b in snapshot.blocks if isinstance(b, InvalidFlashcard)]
    warned = [b for b in snapshot.blocks if isinstance(b, Flashcard) and b.warnings]

    for block in invalid:
        console.print(f"[red]FAIL[/red] {block.location}: {escape(block.error)}")
    for flashcard in warned:
        for warning in flashcard.warnings:
            console.print(f"[yellow]WARN[/yellow] {flashcard.location}: {escape(warning)}")

    console.print(
        f"\nChecked {snapshot.scanned_documents} notes, "
        f"{len(snapshot.blocks)} flashcard blocks: "
        f"{len(invalid)} invalid, {len(warned)} with warnings"
    )
    logger.info(
        "check_completed",
        documents=snapshot.scanned_documents,
        blocks=len(snapshot.blocks),
        invalid=len(invalid),
    )

    if invalid:
        raise typer.Exit(code=1)


async def _check(config: Config) -> VaultSnapshot:
    async with open_sync_service(config) as service:
        note_types = await service.scanner.load_note_types()
        return await service.scanner.parse_vault(note_types)


def run_note_types(config: Config, logger: Any) -> None:
    """Show the AnkiConnect version, then the note types and decks in Anki."""
    try:
        version, note_types, decks = asyncio.run(_anki_info(config))
    except FlashcardSyncError as e:
        logger.error("note_types_failed", error=e.message, details=e.to_dict())
        print_error(e)
        raise typer.Exit(code=1) from e

    console.print(f"Connected to AnkiConnect (API version {version})")
    table = Table(title="Anki Note Types", show_header=True, header_style="bold magenta")
    table.add_column("Note Type", style="cyan")
    table.add_column("Fields", style="green")
    for note_type in sorted(note_types, key=lambda nt: nt.name):
        table.add_row(note_type.name, ", ".join(note_type.fields))
    console.print(table)
    console.print(f"Decks: {escape(', '.join(decks)) if decks else '(none)'}")


async def _anki_info(config: Config) -> tuple[int, list[NoteType], list[str]]:
    async with open_sync_service(config) as service:
        version = await service.remote.get_version()
        note_types = await service.remote.get_note_types()
        decks = await service.remote.get_deck_names()
    return version, note_types, sorted(decks)


def run_preview(config: Config, logger: Any, note_path: Path) -> None:
    """Render the flashcards of one note with cloze deletions highlighted.

    Args:
        config: Configuration object
        logger: Logger instance
        note_path: Note to preview, absolute or relative to the vault
    """
    vault = validate_vault_path(config.vault_path)
    target = note_path if note_path.is_absolute() else vault / note_path
    try:
        relative = target.resolve().relative_to(vault).as_posix()
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {note_path} is outside the vault")
        raise typer.Exit(code=1) from e

    try:
        blocks = asyncio.run(_preview(config, relative))
    except FlashcardSyncError as e:
        print_error(e)
        raise typer.Exit(code=1) from e

    logger.debug("preview_rendered", file=relative, blocks=len(blocks))
    if not blocks:
        console.print(f"[yellow]No flashcard blocks in {relative}[/yellow]")
        return

    for location, rendered in blocks:
        if isinstance(rendered, str):
            console.print(Panel(escape(rendered), title=location, border_style="red"))
            continue
        body = "\n".join(f"[bold]{name}[/bold]: {escape(html)}" for name, html in rendered.items())
        console.print(Panel(body, title=location, border_style="cyan"))


async def _preview(config: Config, path: str) -> list[tuple[str, dict[str, str] | str]]:
    async with open_sync_service(config) as service:
        content = await service.documents.read_text(path)
        blocks = service.scanner.parse_document(path, content)

    rendered: list[tuple[str, dict[str, str] | str]] = []
    for block in blocks:
        if isinstance(block, InvalidFlashcard):
            rendered.append((str(block.location), f"Invalid: {block.error}"))
        else:
            rendered.append(
                (str(block.location), service.renderer.render_preview(block))
            )
    return rendered
