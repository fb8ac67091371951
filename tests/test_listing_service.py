"""Tests for directory listings and superseding searches."""
import asyncio
import unittest

from fsclient.core.config import DeploymentMode
from fsclient.core.exceptions import ApplicationError, HttpStatusError
from fsclient.core.http import HttpResponse
from fsclient.core.routes import ApiRoutes
from fsclient.models import NotificationLevel
from fsclient.services.listing_service import DirectoryView, ListingService, SearchSession
from fsclient.services.notifier import Notifier
from tests.fakes import FakeTransport, json_response, settle

FILES = "/api/server/srv/fs/files"
SEARCH = "/api/server/srv/fs/search"


def _hit(name):
    return {"filename": name, "path": f"/srv/{name}", "size": 1, "ctime": 0, "mtime": 0}


class TestListingService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.transport = FakeTransport()
        self.notifications = []
        notifier = Notifier()
        notifier.register(self.notifications.append)
        self.service = ListingService(self.transport, ApiRoutes(DeploymentMode.SERVER, "srv"), notifier)

    async def test_list_returns_normalized_listing(self):
        self.transport.respond("GET", FILES, json_response({
            "parent": "/",
            "current_path": "/world",
            "entries": [{"filename": "level.dat", "path": "\\world\\level.dat", "size": 3, "is_dir": False}],
        }))

        listing = await self.service.list("/world")

        self.assertEqual(self.transport.calls[0].params, {"path": "/world"})
        self.assertEqual(listing.parent_path, "/")
        self.assertEqual(listing.entries[0].path, "world/level.dat")

    async def test_failure_uses_body_text_and_notifies(self):
        self.transport.respond("GET", FILES, HttpResponse(500, "Internal Server Error", body=b"Path does not exist"))

        with self.assertLogs("fsclient.services.listing_service", "ERROR"):
            with self.assertRaises(HttpStatusError) as ctx:
                await self.service.list("/missing")

        self.assertEqual(ctx.exception.detail, "Path does not exist")
        self.assertEqual(len(self.notifications), 1)
        self.assertEqual(self.notifications[0].title, "Failed to get Directory")
        self.assertEqual(self.notifications[0].description, "Path does not exist")
        self.assertEqual(self.notifications[0].level, NotificationLevel.DANGER)

    async def test_failure_reports_full_body_even_when_json(self):
        body = b'{"error": "Path does not exist", "path": "/missing"}'
        self.transport.respond("GET", FILES, HttpResponse(404, "Not Found", body=body))

        with self.assertLogs("fsclient.services.listing_service", "ERROR"):
            with self.assertRaises(HttpStatusError) as ctx:
                await self.service.list("/missing")

        self.assertEqual(ctx.exception.detail, body.decode())
        self.assertEqual(self.notifications[0].description, body.decode())

    async def test_failure_without_body_uses_status(self):
        self.transport.respond("GET", FILES, HttpResponse(404, "Not Found"))

        with self.assertLogs("fsclient.services.listing_service", "ERROR"):
            with self.assertRaises(HttpStatusError) as ctx:
                await self.service.list("/missing")

        self.assertEqual(ctx.exception.detail, "Error: 404 - Not Found")

    async def test_malformed_listing(self):
        self.transport.respond("GET", FILES, HttpResponse(200, "OK", body=b"<html>"))

        with self.assertLogs("fsclient.services.listing_service", "ERROR"):
            with self.assertRaises(ApplicationError):
                await self.service.list("/")
        self.assertEqual(len(self.notifications), 1)

    async def test_single_server_mode_sends_path_header(self):
        service = ListingService(self.transport, ApiRoutes(DeploymentMode.SINGLE))
        self.transport.respond("GET", "/api/filesystem/", json_response({"parent": None, "entries": []}))

        await service.list("/world")

        call = self.transport.calls[0]
        self.assertEqual(call.headers, {"X-Filesystem-Path": "/world"})
        self.assertIsNone(call.params)

    async def test_search(self):
        self.transport.respond("GET", SEARCH, json_response([_hit("ops.json")]))

        results = await self.service.search("ops", filename_only=True)

        self.assertEqual(self.transport.calls[0].params, {"q": "ops", "filename_only": "true"})
        self.assertEqual([entry.name for entry in results], ["ops.json"])
        self.assertEqual(results[0].type_label, "JSON File")

    async def test_search_failure(self):
        self.transport.respond("GET", SEARCH, json_response({"error": "Server not found"}, 500, "Internal Server Error"))

        with self.assertRaises(HttpStatusError) as ctx:
            await self.service.search("ops")
        self.assertEqual(ctx.exception.detail, "Server not found")

    async def test_path_exists_and_get_info(self):
        listing = json_response({"parent": None, "entries": [{"filename": "eula.txt", "path": "/eula.txt", "size": 9}]})
        self.transport.respond("GET", FILES, listing)
        self.transport.respond("GET", FILES, HttpResponse(404, "Not Found"))
        self.transport.respond("GET", FILES, listing)

        self.assertTrue(await self.service.path_exists("/"))
        with self.assertLogs("fsclient.services.listing_service", "ERROR"):
            self.assertFalse(await self.service.path_exists("/nope"))
        info = await self.service.get_info("/eula.txt")

        self.assertEqual(self.transport.calls[2].params, {"path": "/"})
        self.assertEqual(info.size, 9)


class TestSupersession(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.transport = FakeTransport()
        self.service = ListingService(self.transport, ApiRoutes(DeploymentMode.SERVER, "srv"))

    async def test_newer_search_wins_regardless_of_completion_order(self):
        gate_a = asyncio.Event()
        self.transport.respond("GET", SEARCH, json_response([_hit("a.txt")]), gate=gate_a)
        self.transport.respond("GET", SEARCH, json_response([_hit("b.txt")]))
        session = SearchSession(self.service)

        search_a = asyncio.create_task(session.search("a"))
        await settle(lambda: len(self.transport.calls) == 1)
        results_b = await session.search("b")
        gate_a.set()
        results_a = await search_a

        self.assertIsNone(results_a)
        self.assertEqual([entry.name for entry in results_b], ["b.txt"])
        self.assertEqual([entry.name for entry in session.results], ["b.txt"])
        self.assertEqual(session.query, "b")

    async def test_older_search_finishing_late_is_discarded(self):
        gate_a = asyncio.Event()
        gate_b = asyncio.Event()
        self.transport.respond("GET", SEARCH, json_response([_hit("a.txt")]), gate=gate_a)
        self.transport.respond("GET", SEARCH, json_response([_hit("b.txt")]), gate=gate_b)
        session = SearchSession(self.service)

        search_a = asyncio.create_task(session.search("a"))
        await settle(lambda: len(self.transport.calls) == 1)
        search_b = asyncio.create_task(session.search("b"))
        await settle(lambda: len(self.transport.calls) == 2)
        gate_a.set()
        self.assertIsNone(await search_a)
        self.assertIsNone(session.results)
        gate_b.set()
        await search_b

        self.assertEqual([entry.name for entry in session.results], ["b.txt"])

    async def test_cancel_leaves_results_untouched(self):
        self.transport.respond("GET", SEARCH, json_response([_hit("a.txt")]))
        gate = asyncio.Event()
        self.transport.respond("GET", SEARCH, json_response([_hit("b.txt")]), gate=gate)
        session = SearchSession(self.service)
        await session.search("a")

        pending = asyncio.create_task(session.search("b"))
        await settle(lambda: len(self.transport.calls) == 2)
        session.cancel()

        self.assertIsNone(await pending)
        self.assertEqual([entry.name for entry in session.results], ["a.txt"])

    async def test_directory_view_navigation_supersedes(self):
        gate = asyncio.Event()
        self.transport.respond("GET", FILES, json_response({"parent": None, "entries": []}), gate=gate)
        self.transport.respond("GET", FILES, json_response({"parent": "/", "entries": []}))
        view = DirectoryView(self.service)

        first = asyncio.create_task(view.navigate("/"))
        await settle(lambda: len(self.transport.calls) == 1)
        await view.navigate("/world")
        gate.set()

        self.assertIsNone(await first)
        self.assertEqual(view.path, "/world")
        self.assertEqual(view.current.parent_path, "/")


if __name__ == "__main__":
    unittest.main()
