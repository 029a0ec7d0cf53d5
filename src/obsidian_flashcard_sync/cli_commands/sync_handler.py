"""Sync command implementation logic."""

import asyncio
from typing import Any

import typer
from rich.markup import escape
from rich.table import Table

from ..config import Config
from ..domain.entities.flashcard import Flashcard
from ..domain.entities.sync_plan import ChangedFlashcard, SyncPlan
from ..domain.entities.sync_result import OperationKind, SyncResult
from ..exceptions import FlashcardSyncError
from ..sync.executor import OrphanAction
from ..sync.service import open_sync_service
from .shared import console, print_error


def run_sync(
    config: Config,
    logger: Any,
    dry_run: bool = False,
    orphan_action: OrphanAction | None = None,
    assume_yes: bool = False,
) -> None:
    """Execute the sync operation.

    Args:
        config: Configuration object
        logger: Logger instance
        dry_run: Preview changes without applying
        orphan_action: Overrides the configured orphan handling
        assume_yes: Apply without asking for confirmation

    Raises:
        typer.Exit: On sync failure or when any operation failed
    """
    try:
        result = asyncio.run(
            _sync(config, logger, dry_run, orphan_action or config.orphan_action, assume_yes)
        )
    except FlashcardSyncError as e:
        logger.error("sync_failed", error=e.message, details=e.to_dict())
        print_error(e)
        raise typer.Exit(code=1) from e

    if result is not None and result.is_partial_success:
        raise typer.Exit(code=1)


async def _sync(
    config: Config,
    logger: Any,
    dry_run: bool,
    orphan_action: OrphanAction,
    assume_yes: bool,
) -> SyncResult | None:
    async with open_sync_service(config) as service:
        logger.info("sync_started", vault=service.vault_name, dry_run=dry_run)
        plan = await service.plan()
        display_plan(plan, orphan_action)

        if dry_run:
            console.print("\n[yellow]Dry run: no changes were made.[/yellow]")
            return None
        if not plan.has_changes:
            console.print("\n[green]Everything is up to date.[/green]")
            return None
        if not assume_yes and not typer.confirm("Apply these changes?", default=False):
            console.print("[yellow]Sync cancelled.[/yellow]")
            return None

        result = await service.execute(plan, orphan_action)
        display_result(result)
        return result


def _describe_change(changed: ChangedFlashcard) -> str:
    diff = changed.diff
    parts = []
    if diff.note_type:
        parts.append(f"note type {diff.note_type.old} -> {diff.note_type.new}")
    if diff.deck:
        parts.append(f"deck {diff.deck.old} -> {diff.deck.new}")
    if diff.source_path:
        parts.append("moved file")
    if diff.tags:
        tags = [f"+{tag}" for tag in diff.tags.added]
        tags.extend(f"-{tag}" for tag in diff.tags.removed)
        parts.append("tags " + " ".join(tags))
    if diff.field_diffs:
        parts.append("fields " + ", ".join(diff.field_diffs))
    return "; ".join(parts)


def _flashcard_warnings(plan: SyncPlan) -> list[Flashcard]:
    flashcards = [*plan.to_create, *(c.flashcard for c in plan.to_update), *plan.unchanged]
    return [flashcard for flashcard in flashcards if flashcard.warnings]


def display_plan(plan: SyncPlan, orphan_action: OrphanAction) -> None:
    """Display the planned changes.

    Args:
        plan: Plan produced by the scan
        orphan_action: How notes without a block will be handled
    """
    summary = plan.summary()
    table = Table(title="Sync Plan", show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("New", str(summary["new"]))
    table.add_row("Changed", str(summary["changed"]))
    table.add_row("Unchanged", str(summary["unchanged"]))
    if summary["unresolved"]:
        table.add_row("Skipped (not fetched)", str(summary["unresolved"]))
    table.add_row("Invalid", str(summary["invalid"]))
    table.add_row(
        "To import" if orphan_action == "import" else "To delete",
        str(summary["deleted"]),
    )
    table.add_row("Media to upload", str(summary["media"]))
    console.print()
    console.print(table)

    if plan.to_create:
        console.print("\n[bold cyan]New flashcards:[/bold cyan]")
        for flashcard in plan.to_create:
            console.print(f"  [green]+[/green] {flashcard.location} ({flashcard.deck})")

    if plan.to_update:
        console.print("\n[bold cyan]Changed flashcards:[/bold cyan]")
        for changed in plan.to_update:
            console.print(
                f"  [yellow]~[/yellow] {changed.flashcard.location}: "
                f"{_describe_change(changed)}"
            )

    if plan.to_delete:
        label = "import into the vault" if orphan_action == "import" else "delete"
        console.print(f"\n[bold cyan]Anki notes to {label}:[/bold cyan]")
        for note in plan.to_delete:
            console.print(f"  [red]-[/red] note {note.id} ({note.source_path or '?'})")

    display_problems(plan)


def display_problems(plan: SyncPlan) -> None:
    """Display invalid blocks and parser warnings."""
    if plan.invalid:
        console.print("\n[bold red]Invalid flashcard blocks:[/bold red]")
        for invalid in plan.invalid:
            console.print(f"  [red]FAIL[/red] {invalid.location}: {escape(invalid.error)}")

    if plan.unresolved:
        console.print("\n[bold yellow]Skipped, Anki notes could not be fetched:[/bold yellow]")
        for flashcard in plan.unresolved:
            console.print(
                f"  [yellow]SKIP[/yellow] {flashcard.location} (note {flashcard.remote_id})"
            )

    warned = _flashcard_warnings(plan)
    if warned:
        console.print("\n[bold yellow]Warnings:[/bold yellow]")
        for flashcard in warned:
            for warning in flashcard.warnings:
                console.print(f"  [yellow]WARN[/yellow] {flashcard.location}: {escape(warning)}")


def _record_label(record: Any) -> str:
    if isinstance(record, Flashcard):
        return str(record.location)
    return f"note {record.id}"


def display_result(result: SyncResult) -> None:
    """Display the outcome of a sync run.

    A fully successful run prints one line; otherwise failures are listed
    by operation kind.
    """
    summary = result.summary()
    counts = ", ".join(
        f"{summary[key]} {key}"
        for key in ("created", "updated", "deleted", "imported", "media_uploaded")
        if summary[key]
    )

    if not result.is_partial_success:
        console.print(
            f"\n[bold green]Sync complete[/bold green] "
            f"({counts or 'nothing to do'}, {result.duration:.1f}s)"
        )
        return

    console.print(
        f"\n[bold yellow]Sync finished with errors[/bold yellow] ({counts or 'nothing applied'})"
    )

    table = Table(title="Failures", show_header=True, header_style="bold magenta")
    table.add_column("Operation", style="cyan")
    table.add_column("Item", style="yellow")
    table.add_column("Error", style="red")

    for kind in OperationKind:
        for op in result.failed_operations:
            if op.operation is kind:
                table.add_row(
                    kind.value, escape(_record_label(op.record)), escape(op.error or "")
                )
    for media in result.failed_media:
        table.add_row(
            "media", escape(media.item.source_path), escape(media.error or "")
        )
    for failure in result.write_back_failures:
        ids = ", ".join(str(remote_id) for remote_id in failure.remote_ids)
        table.add_row(
            "write-back", escape(f"{failure.source_path} ({ids})"), escape(failure.reason)
        )

    console.print(table)
