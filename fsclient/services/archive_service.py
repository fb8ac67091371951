"""Archive creation and extraction jobs."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from fsclient.core.http import HttpTransport
from fsclient.core.routes import ApiRoutes, Route
from fsclient.models import JobKind, JobProgress
from fsclient.schemas import ArchiveNotification, ExtractNotification
from fsclient.services.job_controller import (
    JobCallbacks,
    JobController,
    JobHandle,
    JobSpec,
    JobUpdate,
    new_job_id,
    update_kind_for,
)
from fsclient.services.notification_channel import SseEvent
from fsclient.services.utils.errors import error_from_response
from fsclient.services.utils.paths import strip_leading_separator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, Optional[int], Optional[int]], Any]


def decode_archive_event(event: SseEvent) -> JobUpdate:
    payload = ArchiveNotification.model_validate(event.json())
    progress = JobProgress(percent=payload.progress) if payload.progress is not None else None
    return JobUpdate(update_kind_for(payload.status), progress, payload.message)


def decode_extract_event(event: SseEvent) -> JobUpdate:
    payload = ExtractNotification.model_validate(event.json())
    progress = None
    if payload.progress is not None or payload.files_processed is not None:
        progress = JobProgress(
            percent=payload.progress,
            processed=payload.files_processed,
            total=payload.total_files,
        )
    return JobUpdate(update_kind_for(payload.status), progress, payload.message)


def _callbacks(
    on_progress: Optional[ProgressCallback],
    on_success: Optional[Callable[[], Any]],
    on_error: Optional[Callable[[str], Any]],
    on_cancelled: Optional[Callable[[], Any]],
) -> JobCallbacks:
    def _progress(progress: JobProgress) -> Any:
        if on_progress is None:
            return None
        return on_progress(progress.percent or 0.0, progress.processed, progress.total)

    return JobCallbacks(
        on_progress=_progress,
        on_success=on_success,
        on_error=on_error,
        on_cancelled=on_cancelled,
    )


class ArchiveService:
    """Create and extract archives on the server.

    Failures are reported through ``on_error`` only; awaiting a handle
    always returns the final job.
    """

    def __init__(self, transport: HttpTransport, routes: ApiRoutes, controller: JobController) -> None:
        self._transport = transport
        self._routes = routes
        self._controller = controller

    def archive(
        self,
        filename: str,
        entries: Iterable[str],
        cwd: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[Callable[[], Any]] = None,
        on_error: Optional[Callable[[str], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
        job_id: Optional[str] = None,
    ) -> JobHandle:
        job_id = job_id or new_job_id()
        body = {
            "entries": [strip_leading_separator(entry) for entry in entries],
            "cwd": strip_leading_separator(cwd),
            "filename": filename,
            "tracker_id": job_id,
        }
        route = self._routes.archive()

        async def _trigger():
            return await self._transport.request("POST", route.path, json_body=body)

        spec = JobSpec(
            kind=JobKind.ARCHIVE,
            job_id=job_id,
            channel=self._routes.archive_status(job_id),
            decode=decode_archive_event,
            trigger=_trigger,
            trigger_action="archive",
            cancel=self._routes.archive_cancel(job_id),
        )
        logger.info("Archiving %d entries into %s (job %s)", len(body["entries"]), filename, job_id)
        return self._controller.start(spec, _callbacks(on_progress, on_success, on_error, on_cancelled))

    def extract(
        self,
        archive_path: str,
        output_path: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[Callable[[], Any]] = None,
        on_error: Optional[Callable[[str], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
        job_id: Optional[str] = None,
    ) -> JobHandle:
        job_id = job_id or new_job_id()
        route = self._routes.extract(
            strip_leading_separator(archive_path),
            strip_leading_separator(output_path),
            job_id,
        )

        async def _trigger():
            return await self._transport.request("POST", route.path, params=route.params)

        spec = JobSpec(
            kind=JobKind.EXTRACT,
            job_id=job_id,
            channel=self._routes.extract_status(job_id),
            decode=decode_extract_event,
            trigger=_trigger,
            trigger_action="extract",
            cancel=self._routes.extract_cancel(job_id),
        )
        logger.info("Extracting %s into %s (job %s)", archive_path, output_path, job_id)
        return self._controller.start(spec, _callbacks(on_progress, on_success, on_error, on_cancelled))

    async def cancel_archive(self, tracker_id: str) -> None:
        await self._cancel(self._routes.archive_cancel(tracker_id), "cancel archive operation")

    async def cancel_extract(self, tracker_id: str) -> None:
        await self._cancel(self._routes.extract_cancel(tracker_id), "cancel extract operation")

    async def _cancel(self, route: Route, action: str) -> None:
        response = await self._transport.request("POST", route.path)
        if not response.ok:
            error = error_from_response(response, action)
            logger.error("Failed to %s: %s", action, error.detail)
            raise error
