"""Server-Sent-Events notification channels."""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Protocol

from fsclient.core.exceptions import TransportError
from fsclient.core.http import HttpTransport

logger = logging.getLogger(__name__)

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class SseEvent:
    """One dispatched Server-Sent-Event."""

    data: str
    event: str = DEFAULT_EVENT
    id: Optional[str] = None
    retry: Optional[int] = None

    def json(self) -> Any:
        return json.loads(self.data)


class SseDecoder:
    """Incremental ``text/event-stream`` parser fed one line at a time."""

    def __init__(self) -> None:
        self.last_event_id: Optional[str] = None
        self.retry: Optional[int] = None
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> Optional[SseEvent]:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self.last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self.retry = int(value)
        return None

    def _dispatch(self) -> Optional[SseEvent]:
        event_name = self._event or DEFAULT_EVENT
        data = self._data
        self._event = ""
        self._data = []
        if not data:
            return None
        return SseEvent(data="\n".join(data), event=event_name, id=self.last_event_id, retry=self.retry)


class NotificationChannel(Protocol):
    """Streaming subscription correlated to one job."""

    async def open(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[SseEvent]: ...

    def close(self) -> None: ...


ChannelFactory = Callable[[str, Mapping[str, str]], NotificationChannel]

_EOF = object()


class SseChannel:
    """SSE subscription read by a daemon thread and delivered on the event loop.

    ``open()`` returns once the server accepted the subscription. Events,
    stream errors (as ``TransportError``) and end-of-stream are queued to the
    loop in arrival order.
    """

    def __init__(self, transport: HttpTransport, path: str, params: Mapping[str, str] | None = None) -> None:
        self._transport = transport
        self.path = path
        self.params = dict(params or {})
        self._closed = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._response = None
        self._thread: Optional[threading.Thread] = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def open(self) -> None:
        if self._response is not None:
            return
        if self.closed:
            raise TransportError("Notification channel already closed")
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        response = await asyncio.to_thread(self._transport.open_stream_blocking, self.path, self.params)
        if self.closed:
            with contextlib.suppress(OSError):
                response.close()
            raise TransportError("Notification channel closed while opening")
        self._response = response
        self._thread = threading.Thread(target=self._pump, name=f"sse:{self.path}", daemon=True)
        self._thread.start()
        logger.debug("Notification channel %s opened", self.path)

    def _post(self, item: Any) -> None:
        loop = self._loop
        if loop is None or self._queue is None:
            return
        # The loop may already be closed when the server ends the stream late.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def _pump(self) -> None:
        decoder = SseDecoder()
        response = self._response
        try:
            for raw in response:
                if self.closed:
                    break
                event = decoder.feed(raw.decode("utf-8", errors="replace"))
                if event is not None:
                    self._post(event)
        except Exception as exc:  # noqa: BLE001
            if not self.closed:
                logger.warning("Notification channel %s failed: %s", self.path, exc)
                self._post(TransportError(f"Notification channel failed: {exc}"))
        finally:
            with contextlib.suppress(Exception):
                response.close()
            self._post(_EOF)

    def __aiter__(self) -> AsyncIterator[SseEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[SseEvent]:
        if self._queue is None:
            raise TransportError("Notification channel is not open")
        while True:
            item = await self._queue.get()
            if item is _EOF:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        if self._queue is not None:
            self._queue.put_nowait(_EOF)
        response = self._response
        if response is not None:
            with contextlib.suppress(Exception):
                response.close()
        logger.debug("Notification channel %s closed", self.path)


def sse_channel_factory(transport: HttpTransport) -> ChannelFactory:
    def _factory(path: str, params: Mapping[str, str]) -> SseChannel:
        return SseChannel(transport, path, params)

    return _factory
