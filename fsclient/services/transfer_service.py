"""Upload local files through the upload job protocol."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional, Union

from fsclient.core.http import HttpTransport
from fsclient.core.routes import ApiRoutes
from fsclient.models import JobKind, JobProgress
from fsclient.schemas import UploadNotification
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
from fsclient.services.utils.paths import join, strip_leading_separator

logger = logging.getLogger(__name__)

UploadSource = Union[str, os.PathLike, BinaryIO]


def decode_upload_event(event: SseEvent) -> JobUpdate:
    payload = UploadNotification.model_validate(event.json())
    progress = None
    if payload.bytes_uploaded is not None:
        progress = JobProgress(transferred=payload.bytes_uploaded)
    return JobUpdate(update_kind_for(payload.status), progress, payload.message)


def _source_name(source: UploadSource) -> str:
    if isinstance(source, (str, os.PathLike)):
        return Path(source).name
    return Path(getattr(source, "name", "") or "").name


class TransferService:
    """Stream files to the server while following the upload channel."""

    def __init__(self, transport: HttpTransport, routes: ApiRoutes, controller: JobController) -> None:
        self._transport = transport
        self._routes = routes
        self._controller = controller

    def upload(
        self,
        source: UploadSource,
        target_dir: str,
        *,
        filename: Optional[str] = None,
        on_progress: Optional[Callable[[int], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
        job_id: Optional[str] = None,
    ) -> JobHandle:
        """Upload ``source`` into ``target_dir`` on the server.

        ``on_progress`` receives the number of bytes the server has stored.
        Awaiting the returned handle resolves with the final job when the
        upload completes or is cancelled, and raises when it fails.
        """
        name = filename or _source_name(source)
        if not name:
            raise ValueError("filename is required when uploading an unnamed stream")
        job_id = job_id or new_job_id()
        remote_path = strip_leading_separator(join(target_dir, name))
        upload_route = self._routes.upload(remote_path, job_id)

        async def _trigger():
            return await self._transport.send_file(
                "POST",
                upload_route.path,
                source,
                params=upload_route.params or None,
                headers=upload_route.headers or None,
            )

        def _progress(progress: JobProgress) -> Any:
            if on_progress is not None and progress.transferred is not None:
                return on_progress(progress.transferred)
            return None

        spec = JobSpec(
            kind=JobKind.UPLOAD,
            job_id=job_id,
            channel=self._routes.upload_progress(job_id),
            decode=decode_upload_event,
            trigger=_trigger,
            trigger_action="upload",
            cancel=self._routes.upload_cancel(job_id),
            raise_on_failure=True,
        )
        logger.info("Uploading %s to %s (job %s)", name, remote_path, job_id)
        return self._controller.start(spec, JobCallbacks(on_progress=_progress, on_cancelled=on_cancelled))
