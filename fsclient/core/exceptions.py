"""Error taxonomy shared by every client service."""
from __future__ import annotations

from typing import Any, Optional


class FsClientError(Exception):
    """Base exception for failures surfaced by the file client."""

    error_code = "fs_error"
    default_detail = "File operation failed."

    def __init__(self, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class TransportError(FsClientError):
    """Raised when the network or a notification channel fails."""

    error_code = "transport_error"
    default_detail = "Connection to the file server failed."


class ConfigurationError(FsClientError):
    """Raised when the client is not configured for the requested operation."""

    error_code = "configuration_error"
    default_detail = "Client is not configured."


class ApplicationError(FsClientError):
    """Raised when the server reports a failure for an operation."""

    error_code = "application_error"
    default_detail = "The server rejected the operation."


class HttpStatusError(ApplicationError):
    """Non-success HTTP status returned by the server."""

    error_code = "http_status"

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        detail: str | None = None,
        *,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        payload = {"status_code": status_code, "reason": reason}
        if extra:
            payload.update(extra)
        super().__init__(detail or f"Error: {status_code} - {reason}", extra=payload)


class JobFailedError(ApplicationError):
    """An ``error`` notification was received for a job."""

    error_code = "job_failed"

    def __init__(self, job_id: str, detail: str | None = None) -> None:
        self.job_id = job_id
        super().__init__(detail or "Job failed", extra={"job_id": job_id})


class RequestAborted(Exception):
    """Raised when an in-flight request is aborted by its cancellation token.

    This is not an ``FsClientError``: an abort is a caller decision, never a
    failure to report.
    """

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or "Request aborted")
        self.reason = reason or "aborted"
