"""Domain entity for media files referenced by flashcards."""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from ...constants import MEDIA_FILENAME_PREFIX

_REMOTE_NAME_RE = re.compile(
    rf"^{re.escape(MEDIA_FILENAME_PREFIX)}(?P<encoded>[A-Za-z0-9+/=]+)-(?P<digest>[a-f0-9]{{32}})(?P<ext>\.[^./]*)?$"
)


@dataclass(frozen=True)
class MediaItem:
    """A vault media file and its contents."""

    source_path: str
    contents: bytes

    @property
    def content_hash(self) -> str:
        return hashlib.md5(self.contents).hexdigest()  # noqa: S324

    @property
    def remote_filename(self) -> str:
        """Content-addressed file name used in Anki's media folder.

        Format: ``obsidian-synced-<base64(source_path)>-<md5(contents)><ext>``.
        The same file with the same bytes always maps to the same name.
        """
        encoded = base64.b64encode(self.source_path.encode("utf-8")).decode("ascii")
        extension = PurePosixPath(self.source_path).suffix
        return f"{MEDIA_FILENAME_PREFIX}{encoded}-{self.content_hash}{extension}"


def source_path_from_remote_filename(filename: str) -> str | None:
    """Recover the vault path encoded in a remote media file name.

    Returns None for names not produced by ``MediaItem.remote_filename``.
    """
    match = _REMOTE_NAME_RE.match(filename)
    if not match:
        return None
    try:
        return base64.b64decode(match.group("encoded"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
