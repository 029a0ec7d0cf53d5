"""CLI command modules for obsidian-flashcard-sync.

- shared.py: config/logger loading and the shared console
- sync_handler.py: sync command, plan and result display
- check_handler.py: check, note-types and preview commands
- core_commands.py: registers the commands on the Typer app
"""

from .check_handler import run_check, run_note_types, run_preview
from .shared import console, get_config_and_logger
from .sync_handler import run_sync

__all__ = [
    "console",
    "get_config_and_logger",
    "run_check",
    "run_note_types",
    "run_preview",
    "run_sync",
]
