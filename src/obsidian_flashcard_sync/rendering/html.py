"""HTML helpers shared by rendering, media discovery and the Anki adapter.

Both sides of a comparison go through ``normalize_html`` so that local
renders and stored Anki fields serialize identically.
"""

from collections.abc import Callable
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from obsidian_flashcard_sync.constants import MEDIA_EXTENSIONS

# Elements whose src attribute can point to a vault media file
MEDIA_TAGS = ("img", "audio", "video", "source")


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _serialize(soup: BeautifulSoup) -> str:
    return soup.decode(formatter="html5").strip()


def is_internal_link(src: str) -> bool:
    """Check whether a src points into the vault.

    External URLs, data URIs, protocol-relative and absolute paths are
    not vault links.
    """
    if not src or src.startswith(("/", "data:")):
        return False
    parsed = urlparse(src)
    return not parsed.scheme and not parsed.netloc


def is_media_file(path: str) -> bool:
    """Check the file extension against the supported media types."""
    return PurePosixPath(path).suffix.lower() in MEDIA_EXTENSIONS


def normalize_html(html: str) -> str:
    """Serialize HTML in a canonical form.

    Percent-encoded vault media paths are decoded so that
    ``my%20image.png`` and ``my image.png`` compare equal.
    """
    if not html:
        return ""

    soup = _parse(html)
    for element in soup.find_all(MEDIA_TAGS):
        src = element.get("src")
        if isinstance(src, str) and is_internal_link(src):
            element["src"] = unquote(src)
    return _serialize(soup)


def media_sources(html: str) -> list[str]:
    """List the src attributes of media elements in document order."""
    if not html:
        return []

    sources = []
    for element in _parse(html).find_all(MEDIA_TAGS):
        src = element.get("src")
        if isinstance(src, str) and src:
            sources.append(src)
    return sources


def rewrite_media_sources(html: str, rewrite: Callable[[str], str | None]) -> str:
    """Replace media src attributes.

    Args:
        html: HTML to transform
        rewrite: Maps a src to its replacement, or None to keep it

    Returns:
        The transformed HTML; the input unchanged when nothing was rewritten
    """
    if not html:
        return html

    soup = _parse(html)
    changed = False
    for element in soup.find_all(MEDIA_TAGS):
        src = element.get("src")
        if not isinstance(src, str):
            continue
        replacement = rewrite(src)
        if replacement is not None and replacement != src:
            element["src"] = replacement
            changed = True
    return _serialize(soup) if changed else html
