"""Publish user-visible notifications to registered observers."""
from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, List

from fsclient.models import Notification

NotificationHook = Callable[[Notification], Awaitable[None] | None]

logger = logging.getLogger(__name__)


class Notifier:
    """Central dispatcher for toast-style notification hooks."""

    def __init__(self) -> None:
        self._hooks: List[NotificationHook] = []

    def register(self, hook: NotificationHook) -> None:
        self._hooks.append(hook)

    def unregister(self, hook: NotificationHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    async def notify(self, notification: Notification) -> None:
        for hook in list(self._hooks):
            try:
                result = hook(notification)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                logger.warning("Notification hook failed for %r", notification.title, exc_info=True)
