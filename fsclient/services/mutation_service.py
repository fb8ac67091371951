"""Single-request file operations."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from fsclient.core.http import HttpResponse, HttpTransport
from fsclient.core.routes import ApiRoutes, Route
from fsclient.services.utils.errors import error_from_response
from fsclient.services.utils.paths import join, strip_leading_separator

logger = logging.getLogger(__name__)


class MutationService:
    """Copy, move, rename, delete, create and edit remote entries."""

    def __init__(self, transport: HttpTransport, routes: ApiRoutes) -> None:
        self._transport = transport
        self._routes = routes

    async def _call(
        self,
        action: str,
        method: str,
        route: Union[Route, str],
        *,
        json_body: Any = None,
        data: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        if isinstance(route, str):
            route = Route(route)
        response = await self._transport.request(
            method,
            route.path,
            params=route.params or None,
            json_body=json_body,
            data=data,
            headers=headers,
        )
        if not response.ok:
            error = error_from_response(response, action)
            logger.error("Failed to %s: %s", action, error.detail)
            raise error
        return response

    async def copy(self, entries: Iterable[str], destination: str) -> None:
        await self._call("copy", "POST", self._routes.fs("copy"), json_body={"entries": list(entries), "path": destination})

    async def move(self, entries: Iterable[str], destination: str) -> None:
        await self._call("move", "POST", self._routes.fs("move"), json_body={"entries": list(entries), "path": destination})

    async def rename(self, source: str, destination: str) -> None:
        body = {
            "source": strip_leading_separator(source),
            "destination": strip_leading_separator(destination),
        }
        await self._call("rename", "POST", self._routes.fs("rename"), json_body=body)

    async def delete(self, paths: Union[str, Iterable[str]]) -> None:
        items = [paths] if isinstance(paths, str) else list(paths)
        await self._call("delete", "DELETE", self._routes.fs(), json_body={"paths": items})

    async def create_entry(self, filename: str, cwd: str, is_directory: bool = False) -> None:
        body = {"path": strip_leading_separator(join(cwd, filename)), "is_directory": is_directory}
        await self._call("create", "POST", self._routes.fs("new"), json_body=body)

    async def read_contents(self, filepath: str) -> str:
        response = await self._call("read file", "GET", self._routes.contents(filepath))
        return response.text()

    async def write_contents(self, filepath: str, text: str) -> None:
        await self._call(
            "save file",
            "POST",
            self._routes.contents(filepath),
            data=text.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )

    def download_url(self, paths: Iterable[str], cwd: str) -> str:
        """Absolute URL that downloads ``paths`` (relative to ``cwd``) in one response."""
        route = self._download_route(paths, cwd)
        return self._transport.url_for(route.path, route.params)

    async def download(self, paths: Iterable[str], cwd: str, destination: Union[str, Path]) -> Path:
        route = self._download_route(paths, cwd)
        target = Path(destination)
        response = await self._transport.download_to(route.path, target, params=route.params)
        if not response.ok:
            error = error_from_response(response, "download")
            logger.error("Failed to download: %s", error.detail)
            raise error
        logger.info("Downloaded %s", target)
        return target

    def _download_route(self, paths: Iterable[str], cwd: str) -> Route:
        prefix = cwd.rstrip("/")
        items = []
        for path in paths:
            if prefix and path.startswith(prefix + "/"):
                path = path[len(prefix) + 1:]
            items.append(path)
        return self._routes.download(json.dumps(items), cwd)
