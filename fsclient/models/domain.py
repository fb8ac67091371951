"""Canonical domain models exposed to client callers."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Entry(BaseModel):
    """Normalized file or directory record."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    size: int = 0
    is_directory: bool = False
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    type_label: str = "File"

    @property
    def key(self) -> tuple[str, str]:
        return self.path, self.name

    @property
    def created_ms(self) -> Optional[float]:
        return _to_ms(self.created_at)

    @property
    def modified_ms(self) -> Optional[float]:
        return _to_ms(self.modified_at)


class Listing(BaseModel):
    """Directory contents produced by a single fetch."""

    model_config = ConfigDict(frozen=True)

    parent_path: Optional[str] = None
    entries: tuple[Entry, ...] = Field(default_factory=tuple)
    current_path: Optional[str] = None

    def find(self, name: str) -> Optional[Entry]:
        return next((entry for entry in self.entries if entry.name == name), None)


class JobKind(str, Enum):
    """Server-tracked operations correlated by a client-generated id."""

    UPLOAD = "upload"
    ARCHIVE = "archive"
    EXTRACT = "extract"
    UPLOAD_FROM_URL = "upload_from_url"


class JobStatus(str, Enum):
    """Lifecycle of a job; the last three values are terminal."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}


@dataclass(frozen=True)
class JobProgress:
    """Operation-specific progress counters.

    ``transferred`` counts bytes (upload, upload-from-url); ``percent`` is
    0-100; ``processed``/``total`` are file counts for extraction or byte
    counts for upload-from-url.
    """

    percent: Optional[float] = None
    transferred: Optional[int] = None
    processed: Optional[int] = None
    total: Optional[int] = None

    def merged(self, update: "JobProgress") -> "JobProgress":
        """Fold ``update`` in without letting any counter move backwards."""
        return JobProgress(
            percent=_max_of(self.percent, update.percent),
            transferred=_max_of(self.transferred, update.transferred),
            processed=_max_of(self.processed, update.processed),
            total=update.total if update.total is not None else self.total,
        )


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Notification:
    """User-visible message raised by a service."""

    title: str
    description: str
    level: NotificationLevel = NotificationLevel.INFO


def _max_of(current, update):
    if update is None:
        return current
    if current is None:
        return update
    return max(current, update)


def _to_ms(value: Optional[datetime]) -> Optional[float]:
    if value is None:
        return None
    return round(value.timestamp() * 1000, 3)
