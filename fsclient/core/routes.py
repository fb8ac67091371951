"""URL layout of the file API for both deployment modes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

from fsclient.core.config import DeploymentMode
from fsclient.core.exceptions import ConfigurationError

PATH_HEADER = "X-Filesystem-Path"
UPLOAD_ID_HEADER = "X-Upload-ID"


@dataclass(frozen=True)
class Route:
    """Path, query parameters and headers of a single API call."""

    path: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


class ApiRoutes:
    """Build API routes for one server.

    ``DeploymentMode.SERVER`` addresses ``/api/server/{server_id}/fs``; the
    legacy ``DeploymentMode.SINGLE`` panel serves ``/api/filesystem`` and
    passes listing and upload paths through headers instead of the query.
    """

    def __init__(self, mode: DeploymentMode, server_id: Optional[str] = None) -> None:
        if mode is DeploymentMode.SERVER and not server_id:
            raise ConfigurationError("server_id is required for the server-scoped file API")
        self.mode = mode
        self.server_id = server_id

    @property
    def root(self) -> str:
        if self.mode is DeploymentMode.SINGLE:
            return "/api/filesystem"
        return f"/api/server/{quote(self.server_id or '', safe='')}/fs"

    def fs(self, *parts: str) -> str:
        segments = [quote(part, safe="") for part in parts if part]
        if not segments:
            return f"{self.root}/"
        return f"{self.root}/" + "/".join(segments)

    def files(self, path: str) -> Route:
        if self.mode is DeploymentMode.SINGLE:
            return Route(self.fs(), headers={PATH_HEADER: path})
        return Route(self.fs("files"), params={"path": path})

    def upload(self, path: str, upload_id: str) -> Route:
        if self.mode is DeploymentMode.SINGLE:
            return Route(self.fs("upload"), headers={PATH_HEADER: path, UPLOAD_ID_HEADER: upload_id})
        return Route(self.fs("upload"), params={"path": path, "upload_id": upload_id})

    def upload_progress(self, upload_id: str) -> Route:
        return Route(self.fs("upload", "progress", upload_id))

    def upload_cancel(self, upload_id: str) -> Route:
        return Route(self.fs("upload", "cancel", upload_id))

    def upload_url(self, url: str, filepath: str) -> Route:
        return Route(self.fs("upload-url"), params={"url": url, "filepath": filepath})

    def search(self, query: str, filename_only: bool) -> Route:
        return Route(self.fs("search"), params={"q": query, "filename_only": "true" if filename_only else "false"})

    def archive(self) -> Route:
        return Route(self.fs("archive"))

    def archive_status(self, tracker_id: str) -> Route:
        return Route(self.fs("archive", "status", tracker_id))

    def archive_cancel(self, tracker_id: str) -> Route:
        return Route(self.fs("archive", "cancel", tracker_id))

    def extract(self, archive: str, directory: str, tracker_id: str) -> Route:
        return Route(self.fs("extract"), params={"archive": archive, "directory": directory, "tracker": tracker_id})

    def extract_status(self, tracker_id: str) -> Route:
        return Route(self.fs("extract", "status", tracker_id))

    def extract_cancel(self, tracker_id: str) -> Route:
        return Route(self.fs("extract", "cancel", tracker_id))

    def contents(self, filepath: str) -> Route:
        return Route(self.fs("contents"), params={"filepath": filepath})

    def download(self, items: str, cwd: str) -> Route:
        return Route(self.fs("download"), params={"items": items, "cwd": cwd})
