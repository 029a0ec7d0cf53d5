"""Convert Anki field HTML back to Markdown.

Used when importing notes that no longer have a flashcard block. Covers
the markup produced by the Markdown renderer and typical Anki editor
output; unknown elements contribute their text only.
"""

import re

from bs4 import BeautifulSoup, NavigableString, Tag

_INLINE_MARKERS = {
    "strong": "**",
    "b": "**",
    "em": "*",
    "i": "*",
    "del": "~~",
    "s": "~~",
}
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def html_to_markdown(html: str) -> str:
    """
    Convert an HTML fragment to Markdown.

    Args:
        html: Field HTML

    Returns:
        Markdown text, stripped of surrounding whitespace
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")
    markdown = _convert_children(soup)
    return _BLANK_LINES_RE.sub("\n\n", markdown).strip()


def _convert_children(node: Tag) -> str:
    return "".join(_convert(child) for child in node.children)


def _convert(node: object) -> str:
    if isinstance(node, NavigableString):
        return str(node)
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in _INLINE_MARKERS:
        inner = _convert_children(node)
        if not inner.strip():
            return inner
        marker = _INLINE_MARKERS[name]
        return f"{marker}{inner}{marker}"
    if name == "br":
        return "\n"
    if name == "code":
        return f"`{node.get_text()}`"
    if name == "a":
        href = node.get("href")
        text = _convert_children(node)
        return f"[{text}]({href})" if href else text
    if name == "img":
        return _convert_image(node)
    if name in ("p", "div", "section"):
        return f"\n\n{_convert_children(node).strip()}\n\n"
    if re.fullmatch(r"h[1-6]", name):
        level = int(name[1])
        return f"\n\n{'#' * level} {_convert_children(node).strip()}\n\n"
    if name == "pre":
        code = node.find("code")
        language = ""
        if isinstance(code, Tag):
            for css_class in code.get("class") or []:
                if css_class.startswith("language-") and css_class != "language-text":
                    language = css_class[len("language-") :]
        text = node.get_text().rstrip("\n")
        return f"\n\n```{language}\n{text}\n```\n\n"
    if name in ("ul", "ol"):
        return f"\n\n{_convert_list(node)}\n\n"
    if name == "blockquote":
        inner = _convert_children(node).strip()
        quoted = "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
        return f"\n\n{quoted}\n\n"
    if name == "hr":
        return "\n\n---\n\n"
    if name in ("script", "style"):
        return ""
    return _convert_children(node)


def _convert_image(node: Tag) -> str:
    src = node.get("src") or ""
    alt = node.get("alt") or ""
    width = node.get("width")
    height = node.get("height")
    if width and not alt:
        size = f"{width}x{height}" if height else str(width)
        return f"![[{src}|{size}]]"
    return f"![{alt}]({src})"


def _convert_list(node: Tag) -> str:
    ordered = node.name == "ol"
    lines = []
    position = 1
    for item in node.find_all("li", recursive=False):
        nested = [
            child
            for child in item.children
            if isinstance(child, Tag) and child.name in ("ul", "ol")
        ]
        for child in nested:
            child.extract()
        text = _convert_children(item).strip()
        bullet = f"{position}." if ordered else "-"
        lines.append(f"{bullet} {text}")
        for child in nested:
            sublist = _convert_list(child)
            lines.extend(f"    {line}" for line in sublist.split("\n"))
        position += 1
    return "\n".join(lines)
