"""Parser for ```flashcard blocks.

A block body is a YAML mapping. The reserved keys NoteType, AnkiId, Tags
and Deck configure the flashcard; every other key is a content field.
Parsing never raises: every failure becomes an InvalidFlashcard.
"""

from __future__ import annotations

import datetime
import re
from typing import Any

import yaml

from ..constants import (
    ANKI_ID_KEY,
    DECK_KEY,
    DEFAULT_NOTE_TYPE,
    MAX_ANKI_ID,
    METADATA_FIELDS,
    NOTE_FIELD,
    NOTE_TYPE_KEY,
    TAGS_KEY,
    VAULT_FIELD,
)
from ..domain.entities.flashcard import (
    Flashcard,
    InvalidFlashcard,
    NoteMetadata,
    ParsedBlock,
    SourceLocation,
)
from ..domain.entities.remote_note import NoteTypeCatalog
from ..exceptions import ParserError
from ..utils.logging import get_logger

logger = get_logger(__name__)

TAGS_FORMAT_ERROR = (
    "Tags field must be a YAML list of strings. Use:\nTags:\n  - tag1\n  - tag2"
)
NO_CONTENT_ERROR = "No content found in flashcard block"
NOT_A_MAPPING_ERROR = "Flashcard content must be a YAML object with key-value pairs"
NO_FIELDS_ERROR = (
    "Flashcard must contain at least one content field (e.g., Front, Back, Text)"
)

_NUMERIC_ID_RE = re.compile(r"^\d+$")
_WHITESPACE_RE = re.compile(r"\s")
_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"


class _FlashcardLoader(yaml.SafeLoader):
    """SafeLoader resolving booleans and numbers like the YAML 1.2 core schema.

    Plain words such as ``yes``, ``no``, ``on`` or ``off`` stay strings, and
    so do YAML 1.1 numbers: ``1:30`` (base 60), ``01234`` (octal), ``0x1F``
    and ``1_000`` keep the text the note shows.
    """


_FlashcardLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag not in (_BOOL_TAG, _INT_TAG, _FLOAT_TAG)
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_FlashcardLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
# Leading zeros stay text so that codes such as 007 are not renumbered.
_FlashcardLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(r"^[-+]?(?:0|[1-9][0-9]*)$"),
    list("-+0123456789"),
)
_FlashcardLoader.add_implicit_resolver(
    _FLOAT_TAG,
    re.compile(
        r"""^(?:[-+]?(?:0|[1-9][0-9]*)(?:\.[0-9]*)?[eE][-+]?[0-9]+
        |[-+]?(?:0|[1-9][0-9]*)\.[0-9]*
        |[-+]?\.[0-9]+(?:[eE][-+]?[0-9]+)?
        |[-+]?\.(?:inf|Inf|INF)
        |\.(?:nan|NaN|NAN))$""",
        re.X,
    ),
    list("-+.0123456789"),
)


def parse_flashcard(
    raw_text: str,
    location: SourceLocation,
    default_deck: str,
    metadata: NoteMetadata | None = None,
    note_types: NoteTypeCatalog | None = None,
    vault_name: str | None = None,
    default_note_type: str = DEFAULT_NOTE_TYPE,
) -> ParsedBlock:
    """Parse the body of one flashcard block.

    Args:
        raw_text: Text between the fence lines
        location: Where the block sits in the vault
        default_deck: Deck used when neither block nor note sets one
        metadata: Deck and tags inherited from the note's front matter
        note_types: Known note types and their fields, enables warnings
            and auto-populated fields
        vault_name: Value for the ObsidianVault field when auto-populated
        default_note_type: Note type used when the block omits NoteType

    Returns:
        A Flashcard, or an InvalidFlashcard describing the first problem
    """
    try:
        return _parse(
            raw_text,
            location,
            default_deck,
            metadata or NoteMetadata(),
            note_types,
            vault_name,
            default_note_type,
        )
    except ParserError as e:
        return InvalidFlashcard(location=location, error=e.message)
    except yaml.YAMLError as e:
        return InvalidFlashcard(location=location, error=f"YAML parsing error: {e}")
    except Exception as e:
        logger.warning(
            "flashcard_parse_unexpected_error",
            file=location.path,
            line=location.line_start,
            error=str(e),
            error_type=type(e).__name__,
        )
        return InvalidFlashcard(location=location, error=f"Parsing error: {e}")


def _parse(
    raw_text: str,
    location: SourceLocation,
    default_deck: str,
    metadata: NoteMetadata,
    note_types: NoteTypeCatalog | None,
    vault_name: str | None,
    default_note_type: str,
) -> Flashcard:
    source = raw_text.strip()
    if not source:
        raise ParserError(NO_CONTENT_ERROR)

    data = yaml.load(source, Loader=_FlashcardLoader)  # noqa: S506
    if not isinstance(data, dict):
        raise ParserError(NOT_A_MAPPING_ERROR)

    note_type = _parse_note_type(data.get(NOTE_TYPE_KEY), default_note_type)
    block_tags = _parse_tags(data.get(TAGS_KEY)) if TAGS_KEY in data else []
    remote_id = _parse_remote_id(data[ANKI_ID_KEY]) if ANKI_ID_KEY in data else None

    content_fields: dict[str, str] = {}
    for key, value in data.items():
        name = str(key)
        if name in METADATA_FIELDS:
            continue
        content_fields[name] = _coerce_field(name, value)

    if not content_fields or not any(v.strip() for v in content_fields.values()):
        raise ParserError(NO_FIELDS_ERROR)

    deck = _resolve_deck(data.get(DECK_KEY), metadata.deck, default_deck)
    tags = tuple(sorted(set(metadata.tags) | set(block_tags)))

    warnings: list[str] = []
    if note_types is not None:
        warnings.extend(_schema_warnings(note_type, content_fields, note_types))
        _auto_populate(content_fields, note_types.get(note_type), location, vault_name)

    return Flashcard(
        location=location,
        note_type=note_type,
        deck=deck,
        content_fields=content_fields,
        tags=tags,
        remote_id=remote_id,
        warnings=tuple(warnings),
    )


def _parse_note_type(value: Any, default_note_type: str) -> str:
    if value is None:
        return default_note_type
    name = str(value).strip()
    return name or default_note_type


def _parse_tags(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ParserError(TAGS_FORMAT_ERROR)

    tags = []
    for position, tag in enumerate(value, start=1):
        if not isinstance(tag, str) or not tag.strip():
            raise ParserError(f"Tag at position {position} must be a non-empty string")
        tag = tag.strip()
        # Anki splits tags on whitespace.
        if _WHITESPACE_RE.search(tag):
            raise ParserError(
                f"Tag at position {position} must not contain spaces: '{tag}'. "
                "Use - or _ to join words"
            )
        tags.append(tag)
    return tags


def _parse_remote_id(value: Any) -> int | None:
    if value is None:
        return None

    remote_id: int | None = None
    if isinstance(value, bool):
        remote_id = None
    elif isinstance(value, int):
        remote_id = value
    elif isinstance(value, str) and _NUMERIC_ID_RE.match(value.strip()):
        remote_id = int(value.strip())

    if remote_id is None or not 0 < remote_id <= MAX_ANKI_ID:
        raise ParserError(f"AnkiId must be a positive integer, got: {value}")
    return remote_id


def _coerce_field(name: str, value: Any) -> str:
    """Convert a YAML scalar into field text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, datetime.date):
        return value.isoformat()
    raise ParserError(
        f"Field '{name}' must be a string, number, boolean, or null "
        "(arrays and objects are not supported)"
    )


def _resolve_deck(block_deck: Any, inherited_deck: str | None, default_deck: str) -> str:
    if isinstance(block_deck, str) and block_deck.strip():
        return block_deck.strip()
    if inherited_deck and inherited_deck.strip():
        return inherited_deck.strip()
    return default_deck


def _schema_warnings(
    note_type: str, content_fields: dict[str, str], note_types: NoteTypeCatalog
) -> list[str]:
    fields = note_types.get(note_type)
    if fields is None:
        available = ", ".join(note_types)
        return [f"Unknown note type: '{note_type}'. Available note types: {available}"]

    unknown = [name for name in content_fields if name not in fields]
    if not unknown:
        return []

    available_fields = ", ".join(fields)
    if len(unknown) == 1:
        return [
            f"Unknown field '{unknown[0]}' for note type '{note_type}'. "
            f"Available fields: {available_fields}"
        ]
    names = ", ".join(f"'{name}'" for name in unknown)
    return [
        f"Unknown fields {names} for note type '{note_type}'. "
        f"Available fields: {available_fields}"
    ]


def _auto_populate(
    content_fields: dict[str, str],
    schema_fields: list[str] | None,
    location: SourceLocation,
    vault_name: str | None,
) -> None:
    if not schema_fields:
        return
    if VAULT_FIELD in schema_fields and VAULT_FIELD not in content_fields and vault_name:
        content_fields[VAULT_FIELD] = vault_name
    if NOTE_FIELD in schema_fields and NOTE_FIELD not in content_fields:
        content_fields[NOTE_FIELD] = location.path
