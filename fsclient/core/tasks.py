"""Run caller-supplied callbacks without letting them break a job."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

Logger = logging.Logger


def watch_task(awaitable: Awaitable[Any], *, name: str, logger: Logger) -> asyncio.Future:
    """Schedule ``awaitable`` and log it if it ends with an exception."""

    def _done(finished: asyncio.Future) -> None:
        if finished.cancelled():
            return
        exc = finished.exception()
        if exc is not None:
            logger.error("Callback task %s crashed: %s", name, exc, exc_info=exc)

    future = asyncio.ensure_future(awaitable)
    future.add_done_callback(_done)
    return future


def invoke_callback(callback: Callable[..., Any] | None, *args: Any, name: str, logger: Logger) -> None:
    """Call ``callback`` with ``args``, logging instead of raising its failures.

    Coroutine callbacks are scheduled on the running loop and watched.
    """
    if callback is None:
        return
    try:
        result = callback(*args)
    except Exception:  # noqa: BLE001
        logger.warning("Callback %s failed", name, exc_info=True)
        return
    if inspect.isawaitable(result):
        watch_task(result, name=name, logger=logger)
