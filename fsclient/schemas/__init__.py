"""Pydantic schemas for payloads exchanged with the file API."""
from .entries import RawEntry, RawListing, RawTimestamp, SearchResult
from .notifications import (
    ArchiveNotification,
    ExtractNotification,
    JobNotification,
    UploadNotification,
    UrlCompleteNotification,
    UrlErrorNotification,
    UrlProgressNotification,
)

__all__ = [
    "ArchiveNotification",
    "ExtractNotification",
    "JobNotification",
    "RawEntry",
    "RawListing",
    "RawTimestamp",
    "SearchResult",
    "UploadNotification",
    "UrlCompleteNotification",
    "UrlErrorNotification",
    "UrlProgressNotification",
]
