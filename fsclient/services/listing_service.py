"""Directory listing and abortable search."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from fsclient.core.exceptions import ApplicationError, FsClientError, HttpStatusError, RequestAborted
from fsclient.core.http import AbortToken, HttpResponse, HttpTransport
from fsclient.core.routes import ApiRoutes
from fsclient.models import Entry, Listing, Notification, NotificationLevel
from fsclient.services.normalizer import normalize_listing, normalize_search_result
from fsclient.services.notifier import Notifier
from fsclient.services.utils.errors import describe_response_error, error_from_response
from fsclient.services.utils.paths import split

logger = logging.getLogger(__name__)

LIST_FAILED_TITLE = "Failed to get Directory"


class ListingService:
    """Fetch directory listings and search results for one server."""

    def __init__(self, transport: HttpTransport, routes: ApiRoutes, notifier: Optional[Notifier] = None) -> None:
        self._transport = transport
        self._routes = routes
        self._notifier = notifier

    async def list(self, path: str, *, abort: Optional[AbortToken] = None) -> Listing:
        """Return a fresh listing of ``path``.

        Failures are logged, published through the notifier and re-raised.
        ``RequestAborted`` propagates silently.
        """
        route = self._routes.files(path)
        try:
            response = await self._transport.request(
                "GET",
                route.path,
                params=route.params or None,
                headers=route.headers or None,
                abort=abort,
            )
            if not response.ok:
                raise HttpStatusError(response.status, response.reason, describe_response_error(response))
            return self._parse_listing(response)
        except RequestAborted:
            raise
        except FsClientError as exc:
            logger.error("Error fetching directory %s: %s", path, exc.detail)
            await self._notify(Notification(LIST_FAILED_TITLE, exc.detail, NotificationLevel.DANGER))
            raise

    @staticmethod
    def _parse_listing(response: HttpResponse) -> Listing:
        try:
            return normalize_listing(response.json())
        except (ValueError, ValidationError) as exc:
            raise ApplicationError(f"Malformed directory listing: {exc}") from exc

    async def search(self, query: str, filename_only: bool = False, *, abort: Optional[AbortToken] = None) -> list[Entry]:
        route = self._routes.search(query, filename_only)
        response = await self._transport.request("GET", route.path, params=route.params, abort=abort)
        if not response.ok:
            error = error_from_response(response, "search")
            logger.error("Search for %r failed: %s", query, error.detail)
            raise error
        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("expected a list of results")
            return [normalize_search_result(item) for item in payload]
        except (ValueError, ValidationError) as exc:
            raise ApplicationError(f"Malformed search results: {exc}") from exc

    async def path_exists(self, path: str) -> bool:
        try:
            await self.list(path)
        except FsClientError:
            return False
        return True

    async def get_info(self, path: str) -> Optional[Entry]:
        """Look ``path`` up in its parent directory listing."""
        directory, name = split(path)
        try:
            listing = await self.list(directory)
        except FsClientError as exc:
            logger.error("Error getting file info for %s: %s", path, exc.detail)
            return None
        return listing.find(name)

    async def _notify(self, notification: Notification) -> None:
        if self._notifier is not None:
            await self._notifier.notify(notification)


class SearchSession:
    """One logical search box: each query supersedes the one in flight.

    ``results`` only ever holds the outcome of the latest query.
    """

    def __init__(self, listing: ListingService) -> None:
        self._listing = listing
        self._token: Optional[AbortToken] = None
        self.results: Optional[list[Entry]] = None
        self.query: Optional[str] = None

    def cancel(self) -> None:
        if self._token is not None:
            self._token.abort("cancelled")
            self._token = None

    async def search(self, query: str, filename_only: bool = False) -> Optional[list[Entry]]:
        """Run ``query``; returns None when a newer search superseded it."""
        if self._token is not None:
            self._token.abort("superseded")
        token = AbortToken()
        self._token = token
        try:
            results = await self._listing.search(query, filename_only, abort=token)
        except RequestAborted as exc:
            logger.debug("Search for %r aborted: %s", query, exc.reason)
            return None
        if token is not self._token or token.aborted:
            logger.debug("Discarding stale results for %r", query)
            return None
        self._token = None
        self.query = query
        self.results = results
        return results


class DirectoryView:
    """Current directory of a browser; navigating supersedes the pending fetch."""

    def __init__(self, listing: ListingService) -> None:
        self._listing = listing
        self._token: Optional[AbortToken] = None
        self.current: Optional[Listing] = None
        self.path: Optional[str] = None

    async def navigate(self, path: str) -> Optional[Listing]:
        if self._token is not None:
            self._token.abort("superseded")
        token = AbortToken()
        self._token = token
        try:
            listing = await self._listing.list(path, abort=token)
        except RequestAborted as exc:
            logger.debug("Listing of %s aborted: %s", path, exc.reason)
            return None
        if token is not self._token or token.aborted:
            return None
        self._token = None
        self.path = path
        self.current = listing
        return listing

    async def refresh(self) -> Optional[Listing]:
        if self.path is None:
            return None
        return await self.navigate(self.path)
