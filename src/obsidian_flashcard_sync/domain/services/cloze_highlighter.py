"""Domain service marking cloze deletions for display."""

import re

_CLOZE_OPEN_RE = re.compile(r"\{\{c(\d+)::")
_CLOZE_MARKER = "{{c"
_COLOR_BUCKETS = 10


class ClozeHighlighter:
    """Wraps ``{{cN::answer[::hint]}}`` markup in colored spans.

    Supports nested clozes: inner content is highlighted before the outer
    span is built. Hints are dropped from the output. Malformed or
    unterminated markers are kept as literal text, so highlighting never
    fails.
    """

    @staticmethod
    def highlight(text: str) -> str:
        """Highlight every cloze deletion in ``text``.

        Args:
            text: Field text or HTML containing cloze markup

        Returns:
            Text with each cloze replaced by a ``cloze-deletion`` span
        """
        parts: list[str] = []
        pos = 0

        while pos < len(text):
            start = text.find(_CLOZE_MARKER, pos)
            if start == -1:
                parts.append(text[pos:])
                break

            parts.append(text[pos:start])

            parsed = ClozeHighlighter._parse_at(text, start)
            if parsed is None:
                parts.append(text[start : start + len(_CLOZE_MARKER)])
                pos = start + len(_CLOZE_MARKER)
                continue

            number, content, end = parsed
            inner = ClozeHighlighter.highlight(content)
            bucket = (number - 1) % _COLOR_BUCKETS + 1
            parts.append(
                f'<span class="cloze-deletion cloze-{bucket}" data-cloze="{number}">'
                f"{inner}</span>"
            )
            pos = end

        return "".join(parts)

    @staticmethod
    def _parse_at(text: str, start: int) -> tuple[int, str, int] | None:
        """Parse the cloze opening at ``start``.

        Returns (number, answer, end position) or None when the marker is
        malformed or never closed.
        """
        match = _CLOZE_OPEN_RE.match(text, start)
        if not match:
            return None

        number = int(match.group(1))
        content_start = match.end()

        # Counter starts at 2 for the opening "{{"
        depth = 2
        pos = content_start
        last_separator = -1

        while pos < len(text):
            pair = text[pos : pos + 2]
            if pair == "{{":
                depth += 2
                pos += 2
            elif pair == "}}":
                depth -= 2
                if depth == 0:
                    end = pos if last_separator == -1 else last_separator
                    return number, text[content_start:end], pos + 2
                pos += 2
            elif pair == "::" and depth == 2:
                last_separator = pos
                pos += 2
            else:
                pos += 1

        return None


def highlight_clozes(text: str) -> str:
    """Highlight cloze deletions in ``text``. See ClozeHighlighter.highlight."""
    return ClozeHighlighter.highlight(text)
