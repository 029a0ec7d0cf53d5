"""Write newly assigned Anki ids back into flashcard blocks.

Uses ruamel.yaml round-tripping so that key order, comments and quoting
of the rest of the block are preserved.
"""

from dataclasses import dataclass
from io import StringIO

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..constants import ANKI_ID_KEY, BACKFILL_LINE_TOLERANCE
from ..utils.logging import get_logger
from .block_scanner import find_block_at

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdAssignment:
    """A created note id and where its block started when scanned."""

    line_start: int
    remote_id: int


def _round_trip_yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 4096  # Prevent line wrapping
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def upsert_anki_id(block_text: str, remote_id: int) -> str:
    """
    Set the AnkiId key of a flashcard block.

    An existing AnkiId keeps its position; a new one is appended.

    Args:
        block_text: YAML body of the block
        remote_id: Anki note id to record

    Returns:
        The updated YAML body, without a trailing newline

    Raises:
        ValueError: If the block is not a YAML mapping
    """
    yaml = _round_trip_yaml()
    try:
        data = yaml.load(StringIO(block_text))
    except YAMLError as e:
        msg = f"Flashcard block is not valid YAML: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = "Flashcard block is not a YAML mapping"
        raise ValueError(msg)

    data[ANKI_ID_KEY] = remote_id

    output = StringIO()
    yaml.dump(data, output)
    return output.getvalue().rstrip("\n")


def apply_id_backfill(
    content: str,
    assignments: list[IdAssignment],
    tolerance: int = BACKFILL_LINE_TOLERANCE,
) -> tuple[str, list[tuple[IdAssignment, str]]]:
    """
    Insert AnkiId values into the blocks of one document.

    Assignments are applied bottom-up so that growing a block never shifts
    the start line of a block not yet processed.

    Args:
        content: Current document text
        assignments: Ids to write, keyed by the block's scanned start line
        tolerance: How far a block may have drifted from its scanned line

    Returns:
        The updated text and the assignments that could not be applied,
        each with a reason
    """
    unresolved: list[tuple[IdAssignment, str]] = []

    for assignment in sorted(assignments, key=lambda a: a.line_start, reverse=True):
        block = find_block_at(content, assignment.line_start, tolerance)
        if block is None:
            reason = f"Could not find flashcard block at line {assignment.line_start}"
            logger.warning(
                "backfill_block_not_found",
                line=assignment.line_start,
                remote_id=assignment.remote_id,
            )
            unresolved.append((assignment, reason))
            continue

        lines = content.split("\n")
        # 0-based: the body starts right after the opening fence
        body_start = block.line_start
        body_end = block.line_end - 1 if block.closed else block.line_end

        try:
            updated = upsert_anki_id(
                "\n".join(lines[body_start:body_end]), assignment.remote_id
            )
        except ValueError as e:
            logger.warning(
                "backfill_yaml_failed",
                line=assignment.line_start,
                remote_id=assignment.remote_id,
                error=str(e),
            )
            unresolved.append((assignment, str(e)))
            continue

        lines[body_start:body_end] = updated.split("\n")
        content = "\n".join(lines)

    return content, unresolved
