"""Locate ```flashcard blocks inside a Markdown document."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ..constants import FENCE_END, FLASHCARD_FENCE


@dataclass(frozen=True)
class RawBlock:
    """Body text of a flashcard block and its 1-based fence line range."""

    text: str
    line_start: int
    line_end: int
    closed: bool = True


def find_flashcard_blocks(content: str) -> Iterator[RawBlock]:
    """Yield every flashcard block in document order.

    A block opens on a line that is exactly ```flashcard (ignoring
    surrounding whitespace) and closes on the next line that is exactly
    ```. An unclosed block runs to the end of the document. Other fenced
    code blocks are skipped so that examples inside them are not picked up.
    """
    lines = content.split("\n")
    index = 0
    total = len(lines)

    while index < total:
        stripped = lines[index].strip()

        if stripped == FLASHCARD_FENCE:
            start = index
            index += 1
            body: list[str] = []
            while index < total and lines[index].strip() != FENCE_END:
                body.append(lines[index])
                index += 1
            closed = index < total
            end = index if closed else total - 1
            yield RawBlock(
                text="\n".join(body).strip(),
                line_start=start + 1,
                line_end=end + 1,
                closed=closed,
            )
            index += 1
            continue

        if stripped.startswith(FENCE_END):
            # Skip over any other fenced block
            fence = stripped[: len(stripped) - len(stripped.lstrip("`"))]
            index += 1
            while index < total and not lines[index].strip().startswith(fence):
                index += 1

        index += 1


def find_block_at(content: str, line_start: int, tolerance: int) -> RawBlock | None:
    """Find the block whose opening fence is closest to ``line_start``.

    Only blocks starting within ``tolerance`` lines are considered.
    """
    candidates = [
        block
        for block in find_flashcard_blocks(content)
        if abs(block.line_start - line_start) <= tolerance
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda block: abs(block.line_start - line_start))
