"""Translate HTTP responses and foreign exceptions into client errors."""
from __future__ import annotations

import json

from fsclient.core.exceptions import FsClientError, HttpStatusError, TransportError
from fsclient.core.http import HttpResponse


def _json_message(response: HttpResponse) -> str | None:
    try:
        payload = json.loads(response.body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def describe_response_error(response: HttpResponse, action: str | None = None) -> str:
    """Human readable message for a failed response.

    Listings (``action`` is ``None``) report the raw body text, or the status
    line when the body is empty. Other actions prefer the server's JSON
    ``error`` (or ``message``) and fall back to ``"Failed to {action}: {reason}"``.
    """
    if action is None:
        text = response.text().strip()
        return text or f"Error: {response.status} - {response.reason}"
    message = _json_message(response)
    if message:
        return message
    return f"Failed to {action}: {response.reason or response.status}"


def error_from_response(response: HttpResponse, action: str | None = None) -> HttpStatusError:
    return HttpStatusError(response.status, response.reason, describe_response_error(response, action))


def normalize_error(exc: BaseException, *, fallback: str = "File operation failed") -> FsClientError:
    if isinstance(exc, FsClientError):
        return exc
    if isinstance(exc, (OSError, TimeoutError)):
        return TransportError(str(exc) or fallback)
    return FsClientError(str(exc) or fallback)
