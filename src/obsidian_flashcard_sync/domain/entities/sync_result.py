"""Outcome of executing a sync plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .flashcard import Flashcard
from .media import MediaItem
from .remote_note import RemoteNote


class OperationKind(str, Enum):
    """Kinds of remote operations performed by a sync."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one create, update, delete or import."""

    record: Flashcard | RemoteNote
    operation: OperationKind
    success: bool
    remote_id: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class MediaOperationResult:
    """Outcome of uploading one media file."""

    item: MediaItem
    success: bool
    remote_filename: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class WriteBackFailure:
    """Assigned ids that could not be written into a note."""

    source_path: str
    remote_ids: tuple[int, ...]
    reason: str


@dataclass
class SyncResult:
    """Accumulated outcomes of one sync run."""

    start_time: datetime
    end_time: datetime | None = None
    operations: list[OperationResult] = field(default_factory=list)
    media_operations: list[MediaOperationResult] = field(default_factory=list)
    write_back_failures: list[WriteBackFailure] = field(default_factory=list)

    @property
    def duration(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def failed_operations(self) -> list[OperationResult]:
        return [op for op in self.operations if not op.success]

    @property
    def failed_media(self) -> list[MediaOperationResult]:
        return [op for op in self.media_operations if not op.success]

    @property
    def is_partial_success(self) -> bool:
        """True when any operation, upload or write-back failed."""
        return bool(
            self.failed_operations or self.failed_media or self.write_back_failures
        )

    def count(self, kind: OperationKind, *, success: bool = True) -> int:
        return sum(
            1 for op in self.operations if op.operation is kind and op.success is success
        )

    def summary(self) -> dict[str, int]:
        return {
            "created": self.count(OperationKind.CREATE),
            "updated": self.count(OperationKind.UPDATE),
            "deleted": self.count(OperationKind.DELETE),
            "imported": self.count(OperationKind.IMPORT),
            "failed": len(self.failed_operations),
            "media_uploaded": len(self.media_operations) - len(self.failed_media),
            "media_failed": len(self.failed_media),
            "write_back_failures": len(self.write_back_failures),
        }
