"""High level client bound to one server's file tree."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from fsclient.core.config import Settings, get_settings
from fsclient.core.http import AbortToken, HttpTransport
from fsclient.core.routes import ApiRoutes
from fsclient.models import Entry, Listing
from fsclient.services.archive_service import ArchiveService, ProgressCallback
from fsclient.services.job_controller import JobController, JobHandle
from fsclient.services.listing_service import DirectoryView, ListingService, SearchSession
from fsclient.services.mutation_service import MutationService
from fsclient.services.notification_channel import ChannelFactory, sse_channel_factory
from fsclient.services.notifier import Notifier
from fsclient.services.transfer_service import TransferService, UploadSource
from fsclient.services.url_upload_service import UrlUploadService

logger = logging.getLogger(__name__)


class FileSystemClient:
    """Wire the file services for one server.

    Transport, channel factory and notifier can be injected; by default they
    are built from ``settings``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        server_id: Optional[str] = None,
        transport: Optional[HttpTransport] = None,
        channel_factory: Optional[ChannelFactory] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.server_id = server_id or self.settings.server_id
        self.transport = transport or HttpTransport(
            self.settings.base_url,
            timeout=self.settings.request_timeout,
            channel_timeout=self.settings.channel_timeout,
            headers=self.settings.headers,
        )
        self._channel_factory = channel_factory or sse_channel_factory(self.transport)
        self.notifier = notifier or Notifier()
        self.routes = ApiRoutes(self.settings.deployment_mode, self.server_id)

        self.jobs = JobController(self.transport, self._channel_factory)
        self.listing = ListingService(self.transport, self.routes, self.notifier)
        self.mutations = MutationService(self.transport, self.routes)
        self.transfers = TransferService(self.transport, self.routes, self.jobs)
        self.archives = ArchiveService(self.transport, self.routes, self.jobs)
        self.url_uploads = UrlUploadService(self.routes, self.jobs)
        self._handles: set[JobHandle] = set()

    def for_server(self, server_id: str) -> "FileSystemClient":
        """Client for another server sharing this transport and notifier."""
        return FileSystemClient(
            self.settings,
            server_id=server_id,
            transport=self.transport,
            channel_factory=self._channel_factory,
            notifier=self.notifier,
        )

    async def __aenter__(self) -> "FileSystemClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop following jobs that are still running; server-side work is left alone."""
        handles = [handle for handle in self._handles if not handle.completion.done()]
        self._handles.clear()
        for handle in handles:
            handle.completion.cancel()
        if handles:
            await asyncio.gather(*(handle.completion for handle in handles), return_exceptions=True)
            logger.info("Stopped following %d running job(s)", len(handles))

    def _track(self, handle: JobHandle) -> JobHandle:
        self._handles.add(handle)
        handle.completion.add_done_callback(lambda _task: self._handles.discard(handle))
        return handle

    # listing and search

    async def list(self, path: str, *, abort: Optional[AbortToken] = None) -> Listing:
        return await self.listing.list(path, abort=abort)

    async def search(self, query: str, filename_only: bool = False, *, abort: Optional[AbortToken] = None) -> list[Entry]:
        return await self.listing.search(query, filename_only, abort=abort)

    def search_session(self) -> SearchSession:
        return SearchSession(self.listing)

    def directory_view(self) -> DirectoryView:
        return DirectoryView(self.listing)

    async def path_exists(self, path: str) -> bool:
        return await self.listing.path_exists(path)

    async def get_info(self, path: str) -> Optional[Entry]:
        return await self.listing.get_info(path)

    # mutations

    async def copy(self, entries: Iterable[str], destination: str) -> None:
        await self.mutations.copy(entries, destination)

    async def move(self, entries: Iterable[str], destination: str) -> None:
        await self.mutations.move(entries, destination)

    async def rename(self, source: str, destination: str) -> None:
        await self.mutations.rename(source, destination)

    async def delete(self, paths: Union[str, Iterable[str]]) -> None:
        await self.mutations.delete(paths)

    async def create_entry(self, filename: str, cwd: str, is_directory: bool = False) -> None:
        await self.mutations.create_entry(filename, cwd, is_directory)

    async def read_contents(self, filepath: str) -> str:
        return await self.mutations.read_contents(filepath)

    async def write_contents(self, filepath: str, text: str) -> None:
        await self.mutations.write_contents(filepath, text)

    def download_url(self, paths: Iterable[str], cwd: str) -> str:
        return self.mutations.download_url(paths, cwd)

    async def download(self, paths: Iterable[str], cwd: str, destination: Union[str, Path]) -> Path:
        return await self.mutations.download(paths, cwd, destination)

    # jobs

    def upload(
        self,
        source: UploadSource,
        target_dir: str,
        *,
        filename: Optional[str] = None,
        on_progress: Optional[Callable[[int], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
    ) -> JobHandle:
        return self._track(self.transfers.upload(
            source,
            target_dir,
            filename=filename,
            on_progress=on_progress,
            on_cancelled=on_cancelled,
        ))

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
    ) -> JobHandle:
        return self._track(self.archives.archive(
            filename,
            entries,
            cwd,
            on_progress=on_progress,
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
        ))

    def extract(
        self,
        archive_path: str,
        output_path: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[Callable[[], Any]] = None,
        on_error: Optional[Callable[[str], Any]] = None,
        on_cancelled: Optional[Callable[[], Any]] = None,
    ) -> JobHandle:
        return self._track(self.archives.extract(
            archive_path,
            output_path,
            on_progress=on_progress,
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
        ))

    async def cancel_archive(self, tracker_id: str) -> None:
        await self.archives.cancel_archive(tracker_id)

    async def cancel_extract(self, tracker_id: str) -> None:
        await self.archives.cancel_extract(tracker_id)

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
        handle = await self.url_uploads.upload_from_url(
            url,
            filepath,
            on_progress=on_progress,
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
        )
        return self._track(handle)
