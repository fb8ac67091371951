"""Tests for archive creation and extraction jobs."""
import unittest

from fsclient.core.config import DeploymentMode
from fsclient.core.exceptions import HttpStatusError, TransportError
from fsclient.core.http import HttpResponse
from fsclient.core.routes import ApiRoutes
from fsclient.models import JobStatus
from fsclient.services.archive_service import ArchiveService
from fsclient.services.job_controller import JobController
from tests.fakes import FakeChannelFactory, FakeTransport, json_response, settle

ROOT = "/api/server/srv/fs"


class _Recorder:
    def __init__(self):
        self.progress = []
        self.success = 0
        self.errors = []
        self.cancelled = 0

    def on_progress(self, percent, processed, total):
        self.progress.append((percent, processed, total))

    def on_success(self):
        self.success += 1

    def on_error(self, message):
        self.errors.append(message)

    def on_cancelled(self):
        self.cancelled += 1

    def kwargs(self):
        return {
            "on_progress": self.on_progress,
            "on_success": self.on_success,
            "on_error": self.on_error,
            "on_cancelled": self.on_cancelled,
        }


class TestArchiveService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.log = []
        self.transport = FakeTransport(self.log)
        self.channels = FakeChannelFactory(self.log)
        self.service = ArchiveService(
            self.transport,
            ApiRoutes(DeploymentMode.SERVER, "srv"),
            JobController(self.transport, self.channels),
        )
        self.recorder = _Recorder()

    async def test_extract_end_to_end(self):
        handle = self.service.extract("/mods.zip", "/mods", job_id="x1", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        self.assertEqual(self.log[:2], [f"open {ROOT}/extract/status/x1", f"POST {ROOT}/extract"])
        self.assertEqual(self.transport.calls[0].params, {"archive": "mods.zip", "directory": "mods", "tracker": "x1"})
        self.assertIsNone(self.transport.calls[0].json_body)

        channel = self.channels.last
        channel.push({"progress": 50, "filesProcessed": 5, "totalFiles": 10})
        channel.push({"status": "complete"})
        job = await handle

        channel.push({"progress": 75, "filesProcessed": 7, "totalFiles": 10})
        await settle()

        self.assertEqual(job.status, JobStatus.COMPLETED)
        self.assertEqual(self.recorder.progress, [(50, 5, 10)])
        self.assertEqual(self.recorder.success, 1)
        self.assertEqual(self.recorder.errors, [])
        self.assertTrue(channel.closed)

    async def test_archive_request_strips_leading_separators(self):
        handle = self.service.archive("backup.zip", ["/world", "\\logs"], "/", job_id="a1", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        call = self.transport.calls[0]
        self.assertEqual(call.path, f"{ROOT}/archive")
        self.assertEqual(call.json_body, {"entries": ["world", "logs"], "cwd": "", "filename": "backup.zip", "tracker_id": "a1"})
        self.assertEqual(self.channels.last.path, f"{ROOT}/archive/status/a1")

        self.channels.last.push({"progress": 12.5})
        self.channels.last.push({"progress": 100.0, "status": "complete"})
        job = await handle

        self.assertEqual(job.status, JobStatus.COMPLETED)
        self.assertEqual(job.progress.percent, 100.0)
        self.assertEqual(self.recorder.progress, [(12.5, None, None)])
        self.assertEqual(self.recorder.success, 1)

    async def test_cancellation_is_terminal_and_not_an_error(self):
        handle = self.service.archive("b.zip", ["world"], "/", job_id="a2", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        self.assertTrue(await handle.cancel())
        self.assertEqual(len(self.transport.calls_to("POST", f"{ROOT}/archive/cancel/a2")), 1)
        self.assertEqual(self.recorder.cancelled, 0)

        channel = self.channels.last
        channel.push({"progress": 0, "status": "cancelled"})
        channel.push({"progress": 100.0, "status": "complete"})
        job = await handle

        self.assertEqual(job.status, JobStatus.CANCELLED)
        self.assertEqual(self.recorder.cancelled, 1)
        self.assertEqual(self.recorder.success, 0)
        self.assertEqual(self.recorder.errors, [])

    async def test_rejected_trigger_reports_server_message(self):
        self.transport.respond("POST", f"{ROOT}/archive", json_response({"error": "Invalid tracker id"}, 500, "Internal Server Error"))

        handle = self.service.archive("b.zip", ["world"], "/", **self.recorder.kwargs())
        job = await handle

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertIsInstance(job.error, HttpStatusError)
        self.assertEqual(self.recorder.errors, ["Invalid tracker id"])
        self.assertEqual(self.recorder.success, 0)
        self.assertTrue(self.channels.last.closed)

    async def test_network_failure_of_trigger_reports_error(self):
        self.transport.respond("POST", f"{ROOT}/extract", TransportError("connection reset"))

        job = await self.service.extract("a.zip", "out", **self.recorder.kwargs())

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(self.recorder.errors, ["connection reset"])

    async def test_error_event(self):
        handle = self.service.extract("a.zip", "out", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        self.channels.last.push({"status": "error", "message": "Corrupt archive"})
        job = await handle

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(self.recorder.errors, ["Corrupt archive"])

    async def test_unexpected_channel_end_is_an_error(self):
        handle = self.service.extract("a.zip", "out", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        self.channels.last.end()
        job = await handle

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(self.recorder.errors, ["Notification channel closed unexpectedly"])

    async def test_channel_open_failure_skips_trigger(self):
        self.channels.open_error = TransportError("refused")

        job = await self.service.extract("a.zip", "out", **self.recorder.kwargs())

        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(self.transport.calls, [])
        self.assertEqual(self.recorder.errors, ["refused"])

    async def test_raising_callback_does_not_break_the_job(self):
        def boom(*_args):
            raise RuntimeError("callback bug")

        handle = self.service.extract("a.zip", "out", on_progress=boom, on_success=self.recorder.on_success)
        await settle(lambda: self.transport.calls)

        with self.assertLogs("fsclient.services.job_controller", "WARNING"):
            self.channels.last.push({"progress": 10, "status": "extracting", "filesProcessed": 1, "totalFiles": 10})
            self.channels.last.push({"status": "complete"})
            job = await handle

        self.assertEqual(job.status, JobStatus.COMPLETED)
        self.assertEqual(self.recorder.success, 1)

    async def test_cancel_is_sent_after_the_job_failed(self):
        handle = self.service.extract("a.zip", "out", job_id="x1", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)
        self.channels.last.push({"status": "error", "message": "boom"})
        job = await handle

        self.assertTrue(await handle.cancel())

        self.assertEqual(len(self.transport.calls_to("POST", f"{ROOT}/extract/cancel/x1")), 1)
        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertEqual(self.recorder.errors, ["boom"])
        self.assertEqual(self.recorder.cancelled, 0)

    async def test_failed_cancel_request_is_logged(self):
        self.transport.respond("POST", f"{ROOT}/extract/cancel/x9", TransportError("offline"))
        handle = self.service.extract("a.zip", "out", job_id="x9", **self.recorder.kwargs())
        await settle(lambda: self.transport.calls)

        with self.assertLogs("fsclient.services.job_controller", "ERROR"):
            self.assertFalse(await handle.cancel())

        self.assertEqual(handle.status, JobStatus.IN_PROGRESS)
        self.channels.last.push({"status": "complete"})
        await handle

    async def test_standalone_cancel_raises_on_failure(self):
        self.transport.respond(
            "POST",
            f"{ROOT}/archive/cancel/gone",
            json_response({"status": "error", "message": "Archive operation not found"}, 404, "Not Found"),
        )

        with self.assertRaises(HttpStatusError) as ctx:
            await self.service.cancel_archive("gone")
        self.assertEqual(ctx.exception.detail, "Archive operation not found")

        await self.service.cancel_extract("running")
        self.assertEqual(len(self.transport.calls_to("POST", f"{ROOT}/extract/cancel/running")), 1)

    async def test_empty_error_body_uses_status_text(self):
        self.transport.respond("POST", f"{ROOT}/extract", HttpResponse(502, "Bad Gateway"))

        await self.service.extract("a.zip", "out", **self.recorder.kwargs())

        self.assertEqual(self.recorder.errors, ["Failed to extract: Bad Gateway"])


if __name__ == "__main__":
    unittest.main()
