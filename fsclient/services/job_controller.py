"""Drive server-tracked jobs over the subscribe-then-trigger protocol.

Every job follows the same sequence: open the notification channel for a
client generated job id, issue the triggering request only once the channel
is open, then fold channel events into a ``Job`` until one terminal event is
seen. The ``Job`` state machine ignores every transition out of a terminal
state, so the first terminal event wins and success, failure and
cancellation callbacks fire at most once between them.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generator, Optional

from fsclient.core.exceptions import FsClientError, JobFailedError, TransportError
from fsclient.core.http import HttpResponse, HttpTransport
from fsclient.core.job_context import job_context
from fsclient.core.routes import Route
from fsclient.core.tasks import invoke_callback
from fsclient.models import JobKind, JobProgress, JobStatus
from fsclient.services.notification_channel import ChannelFactory, NotificationChannel, SseEvent
from fsclient.services.utils.errors import describe_response_error, error_from_response, normalize_error

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    return uuid.uuid4().hex


class UpdateKind(str, Enum):
    PROGRESS = "progress"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


_STATUS_ALIASES = {
    None: UpdateKind.PROGRESS,
    "progress": UpdateKind.PROGRESS,
    "extracting": UpdateKind.PROGRESS,
    "archiving": UpdateKind.PROGRESS,
    "complete": UpdateKind.COMPLETE,
    "completed": UpdateKind.COMPLETE,
    "success": UpdateKind.COMPLETE,
    "cancelled": UpdateKind.CANCELLED,
    "canceled": UpdateKind.CANCELLED,
    "error": UpdateKind.ERROR,
    "failed": UpdateKind.ERROR,
}


def update_kind_for(status: Optional[str]) -> UpdateKind:
    key = status.strip().lower() if isinstance(status, str) else status
    try:
        return _STATUS_ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown job status {status!r}") from None


@dataclass(frozen=True)
class JobUpdate:
    """Decoded notification."""

    kind: UpdateKind
    progress: Optional[JobProgress] = None
    message: Optional[str] = None


EventDecoder = Callable[[SseEvent], Optional[JobUpdate]]
Trigger = Callable[[], Awaitable[HttpResponse]]


class Job:
    """Local state of one server-tracked job."""

    def __init__(self, job_id: str, kind: JobKind) -> None:
        self.job_id = job_id
        self.kind = kind
        self.status = JobStatus.PENDING
        self.progress = JobProgress()
        self.error: Optional[FsClientError] = None
        self.message: Optional[str] = None

    def __repr__(self) -> str:
        return f"Job(kind={self.kind.value}, job_id={self.job_id!r}, status={self.status.value})"

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def start(self) -> bool:
        if self.status is not JobStatus.PENDING:
            return False
        self.status = JobStatus.IN_PROGRESS
        return True

    def advance(self, progress: JobProgress) -> bool:
        if self.is_terminal:
            return False
        self.status = JobStatus.IN_PROGRESS
        merged = self.progress.merged(progress)
        if merged == self.progress:
            return False
        self.progress = merged
        return True

    def finish(
        self,
        status: JobStatus,
        error: Optional[FsClientError] = None,
        message: Optional[str] = None,
    ) -> bool:
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        if self.is_terminal:
            return False
        self.status = status
        self.error = error
        self.message = message
        return True


@dataclass
class JobSpec:
    """Everything the driver needs to run one job."""

    kind: JobKind
    job_id: str
    channel: Route
    decode: EventDecoder
    trigger: Optional[Trigger] = None
    trigger_action: str = "start job"
    cancel: Optional[Route] = None
    raise_on_failure: bool = False


@dataclass
class JobCallbacks:
    on_progress: Optional[Callable[[JobProgress], Any]] = None
    on_success: Optional[Callable[[], Any]] = None
    on_error: Optional[Callable[[str], Any]] = None
    on_cancelled: Optional[Callable[[], Any]] = None


class JobHandle:
    """Caller-side view of a running job.

    Awaiting the handle returns the final ``Job`` (or raises the job error
    for controllers that propagate failures).
    """

    def __init__(
        self,
        controller: "JobController",
        job: Job,
        spec: JobSpec,
        channel: NotificationChannel,
        callbacks: JobCallbacks,
    ) -> None:
        self._controller = controller
        self.job = job
        self.spec = spec
        self.channel = channel
        self.callbacks = callbacks
        self.opened: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self.completion: Optional[asyncio.Task[Job]] = None

    @property
    def job_id(self) -> str:
        return self.job.job_id

    @property
    def status(self) -> JobStatus:
        return self.job.status

    async def wait_opened(self) -> bool:
        """True once the channel is open, False if opening failed."""
        return await asyncio.shield(self.opened)

    async def cancel(self) -> bool:
        """Ask the server to cancel the job.

        The local job only becomes ``CANCELLED`` when the server confirms it
        on the channel. The request is sent even when the job already ended
        locally, since the server may still be running it after the channel
        failed. Returns whether the cancel request was accepted.
        """
        return await self._controller.cancel(self)

    def _mark_opened(self, opened: bool) -> None:
        if not self.opened.done():
            self.opened.set_result(opened)

    def __await__(self) -> Generator[Any, None, Job]:
        return self.completion.__await__()


def _retrieve_failure(task: asyncio.Task) -> None:
    # Failures are logged by the driver; awaiting the handle still raises them.
    if not task.cancelled():
        task.exception()


class JobController:
    """Run jobs against one transport and channel factory."""

    def __init__(self, transport: HttpTransport, channel_factory: ChannelFactory) -> None:
        self._transport = transport
        self._channel_factory = channel_factory

    def start(self, spec: JobSpec, callbacks: Optional[JobCallbacks] = None) -> JobHandle:
        """Schedule ``spec`` on the running loop and return its handle immediately."""
        job = Job(spec.job_id, spec.kind)
        channel = self._channel_factory(spec.channel.path, spec.channel.params)
        handle = JobHandle(self, job, spec, channel, callbacks or JobCallbacks())
        handle.completion = asyncio.create_task(
            self._drive(handle),
            name=f"{spec.kind.value}:{spec.job_id}",
        )
        handle.completion.add_done_callback(_retrieve_failure)
        return handle

    async def _drive(self, handle: JobHandle) -> Job:
        job, spec, channel = handle.job, handle.spec, handle.channel
        with job_context(job.job_id):
            trigger_task: Optional[asyncio.Task] = None
            try:
                try:
                    await channel.open()
                except Exception as exc:  # noqa: BLE001
                    handle._mark_opened(False)
                    self._fail(handle, normalize_error(exc, fallback="Notification channel failed"))
                    return self._result(handle)

                job.start()
                handle._mark_opened(True)
                logger.info("%s job %s subscribed", spec.kind.value, job.job_id)
                if spec.trigger is not None:
                    trigger_task = asyncio.create_task(self._run_trigger(handle))
                await self._consume(handle)
            except asyncio.CancelledError:
                if job.finish(JobStatus.CANCELLED):
                    logger.info("%s job %s abandoned by caller", spec.kind.value, job.job_id)
                raise
            finally:
                handle._mark_opened(False)
                channel.close()
                if trigger_task is not None and not trigger_task.done():
                    trigger_task.cancel()
        return self._result(handle)

    async def _run_trigger(self, handle: JobHandle) -> None:
        job, spec = handle.job, handle.spec
        try:
            response = await spec.trigger()
        except Exception as exc:  # noqa: BLE001
            self._fail(handle, normalize_error(exc, fallback=f"Failed to {spec.trigger_action}"))
            handle.channel.close()
            return
        if not response.ok:
            self._fail(handle, error_from_response(response, spec.trigger_action))
            handle.channel.close()
            return
        logger.debug("%s job %s trigger accepted (%s)", spec.kind.value, job.job_id, response.status)

    async def _consume(self, handle: JobHandle) -> None:
        job, spec = handle.job, handle.spec
        try:
            async for event in handle.channel:
                if job.is_terminal:
                    break
                try:
                    update = spec.decode(event)
                except ValueError as exc:
                    logger.warning("Ignoring malformed %s notification %r: %s", spec.kind.value, event.data, exc)
                    continue
                if update is not None:
                    self._apply(handle, update)
                if job.is_terminal:
                    break
        except FsClientError as exc:
            self._fail(handle, exc)
            return
        if not job.is_terminal:
            self._fail(handle, TransportError("Notification channel closed unexpectedly"))

    def _apply(self, handle: JobHandle, update: JobUpdate) -> None:
        job, callbacks = handle.job, handle.callbacks
        name = f"{job.kind.value}:{job.job_id}"
        if update.kind is UpdateKind.PROGRESS:
            if update.progress is not None and job.advance(update.progress):
                invoke_callback(callbacks.on_progress, job.progress, name=f"{name}:progress", logger=logger)
            return
        if update.progress is not None:
            job.advance(update.progress)
        if update.kind is UpdateKind.COMPLETE:
            if job.finish(JobStatus.COMPLETED, message=update.message):
                logger.info("%s job %s completed", job.kind.value, job.job_id)
                invoke_callback(callbacks.on_success, name=f"{name}:success", logger=logger)
        elif update.kind is UpdateKind.CANCELLED:
            if job.finish(JobStatus.CANCELLED, message=update.message):
                logger.info("%s job %s cancelled", job.kind.value, job.job_id)
                invoke_callback(callbacks.on_cancelled, name=f"{name}:cancelled", logger=logger)
        else:
            self._fail(handle, JobFailedError(job.job_id, update.message))

    def _fail(self, handle: JobHandle, error: FsClientError) -> None:
        job = handle.job
        if not job.finish(JobStatus.FAILED, error=error, message=error.detail):
            return
        logger.error("%s job %s failed: %s", job.kind.value, job.job_id, error.detail)
        invoke_callback(handle.callbacks.on_error, error.detail, name=f"{job.kind.value}:{job.job_id}:error", logger=logger)

    def _result(self, handle: JobHandle) -> Job:
        job = handle.job
        if handle.spec.raise_on_failure and job.status is JobStatus.FAILED and job.error is not None:
            raise job.error
        return job

    async def cancel(self, handle: JobHandle) -> bool:
        job, spec = handle.job, handle.spec
        if spec.cancel is None:
            if job.is_terminal:
                return False
            # No server-side cancel endpoint: dropping the subscription ends the job.
            if job.finish(JobStatus.CANCELLED):
                logger.info("%s job %s cancelled locally", job.kind.value, job.job_id)
                invoke_callback(
                    handle.callbacks.on_cancelled,
                    name=f"{job.kind.value}:{job.job_id}:cancelled",
                    logger=logger,
                )
            handle.channel.close()
            return True
        try:
            response = await self._transport.request(
                "POST",
                spec.cancel.path,
                params=spec.cancel.params or None,
                headers=spec.cancel.headers or None,
            )
        except FsClientError as exc:
            logger.error("Failed to cancel %s job %s: %s", job.kind.value, job.job_id, exc.detail)
            return False
        if not response.ok:
            logger.error(
                "Failed to cancel %s job %s: %s",
                job.kind.value,
                job.job_id,
                describe_response_error(response, "cancel"),
            )
            return False
        logger.info("Cancel requested for %s job %s", job.kind.value, job.job_id)
        return True
