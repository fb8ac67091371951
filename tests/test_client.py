"""End-to-end tests of the client facade over fake transports."""
import unittest

from fsclient import FileSystemClient
from fsclient.core.config import DeploymentMode, Settings
from fsclient.models import JobStatus
from tests.fakes import FakeChannelFactory, FakeTransport, json_response, settle

LISTING = {
    "parent": None,
    "current_path": "/",
    "entries": [
        {"filename": "server.jar", "path": "/server.jar", "size": 4096, "is_dir": False,
         "last_modified": {"secs_since_epoch": 1700000000, "nanos_since_epoch": 500000000}},
        {"name": "world", "path": "/world", "size": 0, "is_directory": True},
    ],
}


class TestFileSystemClient(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.log = []
        self.transport = FakeTransport(self.log)
        self.channels = FakeChannelFactory(self.log)
        self.notifications = []
        self.client = FileSystemClient(
            Settings(base_url="http://panel.test", server_id="srv", deployment_mode=DeploymentMode.SERVER),
            transport=self.transport,
            channel_factory=self.channels,
        )
        self.client.notifier.register(self.notifications.append)

    async def asyncTearDown(self):
        await self.client.close()

    async def test_list_root(self):
        self.transport.respond("GET", "/api/server/srv/fs/files", json_response(LISTING))

        listing = await self.client.list("/")

        self.assertIsNone(listing.parent_path)
        jar, world = listing.entries
        self.assertEqual(jar.type_label, "Java Archive")
        self.assertEqual(jar.modified_ms, 1700000000500.0)
        self.assertEqual(world.type_label, "Folder")
        self.assertTrue(world.is_directory)
        self.assertEqual(self.notifications, [])

    async def test_for_server_shares_transport_and_notifier(self):
        other = self.client.for_server("creative")
        self.transport.respond("GET", "/api/server/creative/fs/files", json_response(LISTING))

        await other.list("/")

        self.assertIs(other.transport, self.transport)
        self.assertIs(other.notifier, self.client.notifier)
        self.assertEqual(self.transport.calls[0].path, "/api/server/creative/fs/files")

    async def test_close_stops_following_running_jobs(self):
        handle = self.client.archive("backup.zip", ["/world"], "/")
        await settle(lambda: self.transport.calls)
        channel = self.channels.last

        await self.client.close()

        self.assertTrue(handle.completion.done())
        self.assertEqual(handle.status, JobStatus.CANCELLED)
        self.assertTrue(channel.closed)

    async def test_context_manager(self):
        async with FileSystemClient(
            Settings(server_id="srv"),
            transport=self.transport,
            channel_factory=self.channels,
        ) as client:
            handle = client.extract("backup.zip", "restore")
            await settle(lambda: self.transport.calls)

        self.assertEqual(handle.status, JobStatus.CANCELLED)


if __name__ == "__main__":
    unittest.main()
