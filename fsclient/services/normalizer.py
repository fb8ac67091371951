"""Convert raw server records into canonical ``Entry`` objects."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from fsclient.models import Entry, Listing
from fsclient.schemas import RawEntry, RawListing, RawTimestamp, SearchResult
from fsclient.services.utils.file_types import describe_file
from fsclient.services.utils.paths import normalize_path

RawEntryLike = Union[Entry, RawEntry, Mapping[str, Any]]


def timestamp_to_datetime(raw: Optional[RawTimestamp]) -> Optional[datetime]:
    if raw is None:
        return None
    return datetime.fromtimestamp(raw.milliseconds / 1000, tz=timezone.utc)


def seconds_to_datetime(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def normalize_entry(raw: RawEntryLike) -> Entry:
    """Return the canonical form of ``raw``; canonical entries pass through unchanged."""
    if isinstance(raw, Entry):
        return raw
    record = raw if isinstance(raw, RawEntry) else RawEntry.model_validate(raw)
    return Entry(
        name=record.filename,
        path=normalize_path(record.path),
        size=record.size,
        is_directory=record.is_dir,
        created_at=timestamp_to_datetime(record.created),
        modified_at=timestamp_to_datetime(record.last_modified),
        type_label=describe_file(record.filename, is_directory=record.is_dir),
    )


def normalize_search_result(raw: Union[SearchResult, Mapping[str, Any]]) -> Entry:
    # The search endpoint only reports files.
    record = raw if isinstance(raw, SearchResult) else SearchResult.model_validate(raw)
    return Entry(
        name=record.filename,
        path=normalize_path(record.path),
        size=record.size,
        is_directory=False,
        created_at=seconds_to_datetime(record.ctime),
        modified_at=seconds_to_datetime(record.mtime),
        type_label=describe_file(record.filename),
    )


def normalize_listing(raw: Union[RawListing, Mapping[str, Any]]) -> Listing:
    record = raw if isinstance(raw, RawListing) else RawListing.model_validate(raw)
    return Listing(
        parent_path=record.parent,
        entries=tuple(normalize_entry(entry) for entry in record.entries),
        current_path=record.current_path,
    )
