"""Structured differences between a remote note and a local flashcard."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DiffPart:
    """A run of text that is unchanged, added or removed."""

    value: str
    added: bool = False
    removed: bool = False


@dataclass(frozen=True)
class StringDiff:
    old: str
    new: str


@dataclass(frozen=True)
class TagsDiff:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldDiff:
    parts: tuple[DiffPart, ...]


@dataclass(frozen=True)
class FlashcardDiff:
    """Differences between a remote and a local flashcard.

    Only differing dimensions are set; ``field_diffs`` only contains
    fields whose HTML differs.
    """

    deck: StringDiff | None = None
    tags: TagsDiff | None = None
    note_type: StringDiff | None = None
    source_path: StringDiff | None = None
    field_diffs: dict[str, FieldDiff] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return (
            self.deck is None
            and self.tags is None
            and self.note_type is None
            and self.source_path is None
            and not self.field_diffs
        )
