"""Server-side download of a remote URL into the managed file tree."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fsclient.core.routes import ApiRoutes
from fsclient.models import JobKind, JobProgress
from fsclient.schemas import UrlCompleteNotification, UrlErrorNotification, UrlProgressNotification
from fsclient.services.job_controller import (
    JobCallbacks,
    JobController,
    JobHandle,
    JobSpec,
    JobUpdate,
    UpdateKind,
    new_job_id,
)
from fsclient.services.notification_channel import SseEvent
from fsclient.services.utils.paths import strip_leading_separator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, Optional[int], Optional[int]], Any]


def decode_url_event(event: SseEvent) -> Optional[JobUpdate]:
    """Map the named events of an upload-from-URL channel.

    ``progress`` carries a 0-1 fraction which is reported as a percentage.
    """
    if event.event == "progress":
        payload = UrlProgressNotification.model_validate(event.json())
        return JobUpdate(
            UpdateKind.PROGRESS,
            JobProgress(
                percent=payload.progress * 100,
                transferred=payload.downloaded,
                processed=payload.downloaded,
                total=payload.total,
            ),
        )
    if event.event == "error":
        try:
            message = UrlErrorNotification.model_validate(event.json()).error
        except ValueError:
            message = event.data or None
        return JobUpdate(UpdateKind.ERROR, message=message)
    if event.event == "complete":
        try:
            message = UrlCompleteNotification.model_validate(event.json()).message
        except ValueError:
            message = event.data or None
        return JobUpdate(UpdateKind.COMPLETE, message=message)
    logger.debug("Ignoring %r event on upload-from-URL channel", event.event)
    return None


class UrlUploadService:
    def __init__(self, routes: ApiRoutes, controller: JobController) -> None:
        self._routes = routes
        self._controller = controller

    async def upload_from_url(
        self,
        url: str,
        filepath: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[Callable[[], Any]] = None,
        on_error: Optional[Callable[[str], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
    ) -> JobHandle:
        """Ask the server to fetch ``url`` into ``filepath``.

        Opening the channel starts the download, so this returns once the
        channel is open or failed to open. The endpoint has no cancel call:
        cancelling the handle drops the subscription and ends the job locally.
        """

        def _progress(progress: JobProgress) -> Any:
            if on_progress is None:
                return None
            return on_progress(progress.percent or 0.0, progress.transferred, progress.total)

        job_id = new_job_id()
        spec = JobSpec(
            kind=JobKind.UPLOAD_FROM_URL,
            job_id=job_id,
            channel=self._routes.upload_url(url, strip_leading_separator(filepath)),
            decode=decode_url_event,
        )
        callbacks = JobCallbacks(
            on_progress=_progress,
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
        )
        logger.info("Fetching %s into %s (job %s)", url, filepath, job_id)
        handle = self._controller.start(spec, callbacks)
        await handle.wait_opened()
        return handle
