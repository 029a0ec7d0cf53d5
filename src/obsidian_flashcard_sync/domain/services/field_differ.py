"""Domain service comparing a remote note with a local flashcard."""

import difflib
import re

from ..entities.diff import DiffPart, FieldDiff, FlashcardDiff, StringDiff, TagsDiff
from ..entities.flashcard import HtmlFlashcard

# Words, whitespace runs and punctuation runs; joining the tokens gives back
# the original string.
_TOKEN_RE = re.compile(r"\s+|\w+|[^\w\s]+")


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text)


def diff_words(old: str, new: str) -> tuple[DiffPart, ...]:
    """Word-level diff of two strings.

    Concatenating the parts that are not ``added`` reproduces ``old``;
    concatenating the parts that are not ``removed`` reproduces ``new``.
    """
    old_tokens = tokenize(old)
    new_tokens = tokenize(new)
    matcher = difflib.SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)

    parts: list[DiffPart] = []

    def emit(value: str, *, added: bool = False, removed: bool = False) -> None:
        if not value:
            return
        if parts and parts[-1].added == added and parts[-1].removed == removed:
            previous = parts.pop()
            value = previous.value + value
        parts.append(DiffPart(value=value, added=added, removed=removed))

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            emit("".join(old_tokens[i1:i2]))
        else:
            emit("".join(old_tokens[i1:i2]), removed=True)
            emit("".join(new_tokens[j1:j2]), added=True)

    return tuple(parts)


class FieldDiffer:
    """Computes a sparse FlashcardDiff between two rendered flashcards.

    Both sides are expected to carry normalized HTML, so equal content
    compares equal byte for byte.
    """

    def diff(self, remote: HtmlFlashcard, local: HtmlFlashcard) -> FlashcardDiff | None:
        """Compare a remote flashcard with its local counterpart.

        Args:
            remote: Rendered view of the note stored in Anki
            local: Rendered view of the flashcard block

        Returns:
            The differences, or None when both sides are equivalent
        """
        result = FlashcardDiff(
            deck=self._diff_string(remote.deck, local.deck),
            tags=self._diff_tags(remote.tags, local.tags),
            note_type=self._diff_string(remote.note_type, local.note_type),
            source_path=self._diff_string(remote.source_path, local.source_path),
            field_diffs=self._diff_fields(remote.html_fields, local.html_fields),
        )
        return None if result.is_empty else result

    @staticmethod
    def _diff_string(old: str, new: str) -> StringDiff | None:
        if old == new:
            return None
        return StringDiff(old=old, new=new)

    @staticmethod
    def _diff_tags(old: tuple[str, ...], new: tuple[str, ...]) -> TagsDiff | None:
        old_set = set(old)
        new_set = set(new)
        added = tuple(sorted(new_set - old_set))
        removed = tuple(sorted(old_set - new_set))
        if not added and not removed:
            return None
        return TagsDiff(added=added, removed=removed)

    @staticmethod
    def _diff_fields(old: dict[str, str], new: dict[str, str]) -> dict[str, FieldDiff]:
        field_diffs: dict[str, FieldDiff] = {}
        names = list(old) + [name for name in new if name not in old]
        for name in names:
            old_html = old.get(name, "")
            new_html = new.get(name, "")
            if old_html != new_html:
                field_diffs[name] = FieldDiff(parts=diff_words(old_html, new_html))
        return field_diffs
