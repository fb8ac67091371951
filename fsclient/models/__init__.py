from .domain import (
    Entry,
    JobKind,
    JobProgress,
    JobStatus,
    Listing,
    Notification,
    NotificationLevel,
)

__all__ = [
    "Entry",
    "JobKind",
    "JobProgress",
    "JobStatus",
    "Listing",
    "Notification",
    "NotificationLevel",
]
