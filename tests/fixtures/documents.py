"""Builders for vault note text used across tests."""


def flashcard_block(body: str) -> str:
    """Wrap a YAML body in flashcard fences."""
    return f"```flashcard\n{body.strip()}\n```"


def make_note(*bodies: str, front_matter: str | None = None, title: str = "Note") -> str:
    """Build a note holding one flashcard block per body."""
    parts = []
    if front_matter is not None:
        parts.append(f"---\n{front_matter.strip()}\n---")
    parts.append(f"# {title}")
    parts.extend(flashcard_block(body) for body in bodies)
    return "\n\n".join(parts) + "\n"
