"""Domain entities for flashcard blocks found in Obsidian notes."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceLocation:
    """Where a flashcard block sits inside the vault.

    Line numbers are 1-based and include both fence lines. Used for
    write-back and navigation, never for identity.
    """

    path: str
    line_start: int
    line_end: int

    def __post_init__(self) -> None:
        """Validate entity invariants."""
        if self.line_start < 1:
            raise ValueError(f"line_start must be >= 1, got {self.line_start}")
        if self.line_end < self.line_start:
            raise ValueError(
                f"line_end ({self.line_end}) must not precede line_start ({self.line_start})"
            )

    def __str__(self) -> str:
        return f"{self.path}:{self.line_start}"


@dataclass(frozen=True)
class NoteMetadata:
    """Flashcard defaults declared in a note's front matter."""

    deck: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Flashcard:
    """A successfully parsed flashcard block.

    ``tags`` are sorted and deduplicated. ``content_fields`` keeps the
    order in which the fields were written and is never empty.
    """

    location: SourceLocation
    note_type: str
    deck: str
    content_fields: dict[str, str]
    tags: tuple[str, ...] = ()
    remote_id: int | None = None
    warnings: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Validate entity invariants."""
        if not self.content_fields:
            raise ValueError("Flashcard must have at least one content field")

    @property
    def source_path(self) -> str:
        return self.location.path


@dataclass(frozen=True)
class InvalidFlashcard:
    """A flashcard block that could not be parsed."""

    location: SourceLocation
    error: str

    @property
    def source_path(self) -> str:
        return self.location.path


ParsedBlock = Flashcard | InvalidFlashcard


@dataclass(frozen=True)
class HtmlFlashcard:
    """Rendered view of a flashcard used for comparison and upload.

    Built from a local Flashcard (Markdown rendered to HTML) or from a
    remote note (stored field HTML, normalized).
    """

    source_path: str
    note_type: str
    deck: str
    tags: tuple[str, ...]
    html_fields: dict[str, str]
