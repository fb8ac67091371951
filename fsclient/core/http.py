"""Blocking urllib transport exposed to the event loop through worker threads."""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import shutil
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Optional, Union

from fsclient.core.exceptions import HttpStatusError, RequestAborted, TransportError

logger = logging.getLogger(__name__)

Body = Union[bytes, BinaryIO, None]


@dataclass
class HttpResponse:
    """Fully read HTTP response."""

    status: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body or b"null")


def _stream_size(stream: BinaryIO) -> Optional[int]:
    """Bytes left in ``stream`` from its current position, or None if unseekable."""
    try:
        start = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(start)
    except (OSError, ValueError, AttributeError):
        return None
    return end - start


def _discard(future: asyncio.Future) -> None:
    if not future.done():
        future.cancel()
    elif not future.cancelled():
        future.exception()


class AbortToken:
    """Cancellation token for a single in-flight request."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "aborted") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def guard(self, future: asyncio.Future) -> Any:
        """Await ``future`` unless the token fires first."""
        if self.aborted:
            _discard(future)
            raise RequestAborted(self.reason)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({future, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            _discard(future)
            raise
        finally:
            waiter.cancel()
        if self.aborted:
            _discard(future)
            raise RequestAborted(self.reason)
        return future.result()


class HttpTransport:
    """Issue requests against the panel with urllib, off the event loop."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        channel_timeout: float = 60.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.channel_timeout = channel_timeout
        self._headers = dict(headers or {})

    def url_for(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return url

    def _build_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None,
        body: Body,
        headers: Mapping[str, str] | None,
    ) -> urllib.request.Request:
        merged = dict(self._headers)
        if headers:
            merged.update(headers)
        return urllib.request.Request(self.url_for(path, params), data=body, headers=merged, method=method)

    def _send_blocking(self, request: urllib.request.Request, timeout: float) -> HttpResponse:
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                return HttpResponse(
                    status=response.status,
                    reason=response.reason or "",
                    headers=dict(response.headers.items()),
                    body=response.read(),
                )
        except urllib.error.HTTPError as exc:
            with contextlib.closing(exc):
                body = exc.read() or b""
            return HttpResponse(
                status=exc.code,
                reason=str(exc.reason or ""),
                headers=dict(exc.headers.items()) if exc.headers else {},
                body=body,
            )
        except (urllib.error.URLError, OSError) as exc:
            raise TransportError(f"{request.get_method()} {request.full_url} failed: {exc}") from exc

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        data: Body = None,
        headers: Mapping[str, str] | None = None,
        abort: AbortToken | None = None,
    ) -> HttpResponse:
        """Send one request and return the complete response.

        Non-success statuses are returned, not raised; callers decide how the
        body is interpreted. Network failures raise ``TransportError``.
        """
        extra = dict(headers or {})
        body = data
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
            extra.setdefault("Content-Type", "application/json")
        request = self._build_request(method, path, params, body, extra)
        logger.debug("HTTP %s %s", method, request.full_url)
        call = asyncio.ensure_future(asyncio.to_thread(self._send_blocking, request, self.timeout))
        if abort is None:
            return await call
        return await abort.guard(call)

    async def send_file(
        self,
        method: str,
        path: str,
        source: Union[str, os.PathLike, BinaryIO],
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """Stream ``source`` as the raw request body.

        A local path is opened and closed by the worker thread itself, so the
        caller may abandon the request without racing on the file handle.
        """

        def _send() -> HttpResponse:
            if isinstance(source, (str, os.PathLike)):
                with open(source, "rb") as stream:
                    return self._send_stream(method, path, stream, params, headers)
            return self._send_stream(method, path, source, params, headers)

        return await asyncio.to_thread(_send)

    def _send_stream(
        self,
        method: str,
        path: str,
        stream: BinaryIO,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> HttpResponse:
        extra = {"Content-Type": "application/octet-stream"}
        extra.update(headers or {})
        size = _stream_size(stream)
        if size is not None:
            extra["Content-Length"] = str(size)
        request = self._build_request(method, path, params, stream, extra)
        logger.debug("HTTP %s %s (%s bytes)", method, request.full_url, size if size is not None else "?")
        return self._send_blocking(request, self.timeout)

    def open_stream_blocking(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
    ):
        """Open a ``text/event-stream`` response; the caller owns closing it."""
        request = self._build_request(
            "GET",
            path,
            params,
            None,
            {"Accept": "text/event-stream", "Cache-Control": "no-cache"},
        )
        try:
            return urllib.request.urlopen(request, timeout=self.channel_timeout)
        except urllib.error.HTTPError as exc:
            with contextlib.closing(exc):
                body = (exc.read() or b"").decode("utf-8", errors="replace").strip()
            raise HttpStatusError(exc.code, str(exc.reason or ""), body or None) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise TransportError(f"Notification channel {request.full_url} failed: {exc}") from exc

    async def download_to(
        self,
        path: str,
        destination: Path,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        """Stream a response body into ``destination``.

        On a non-success status nothing is written and the error response is
        returned.
        """
        request = self._build_request("GET", path, params, None, None)

        def _download() -> HttpResponse:
            try:
                with urllib.request.urlopen(request, timeout=self.timeout) as response:
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    with open(destination, "wb") as target:
                        shutil.copyfileobj(response, target, 64 * 1024)
                    return HttpResponse(
                        status=response.status,
                        reason=response.reason or "",
                        headers=dict(response.headers.items()),
                    )
            except urllib.error.HTTPError as exc:
                with contextlib.closing(exc):
                    body = exc.read() or b""
                return HttpResponse(status=exc.code, reason=str(exc.reason or ""), body=body)
            except (urllib.error.URLError, OSError) as exc:
                raise TransportError(f"Download from {request.full_url} failed: {exc}") from exc

        return await asyncio.to_thread(_download)
