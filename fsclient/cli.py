"""Command line front-end for the file client."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from fsclient.client import FileSystemClient
from fsclient.core.config import DeploymentMode, get_settings
from fsclient.core.exceptions import FsClientError
from fsclient.core.logging import configure_logging
from fsclient.models import JobStatus, Listing, Notification
from fsclient.services.job_controller import Job
from fsclient.services.utils.paths import format_size


def _print_listing(listing: Listing) -> None:
    for entry in listing.entries:
        size = "-" if entry.is_directory else format_size(entry.size)
        modified = entry.modified_at.strftime("%Y-%m-%d %H:%M") if entry.modified_at else "-"
        print(f"{entry.type_label:<24} {size:>10}  {modified:<16}  {entry.name}")


def _print_notification(notification: Notification) -> None:
    print(f"[{notification.level.value}] {notification.title}: {notification.description}", file=sys.stderr)


def _print_progress(percent: float, processed: Optional[int], total: Optional[int]) -> None:
    counts = f" ({processed}/{total})" if processed is not None and total is not None else ""
    print(f"\r{percent:6.2f}%{counts}", end="", flush=True)


async def _run(args: argparse.Namespace, client: FileSystemClient) -> int:
    command = args.command
    if command == "ls":
        _print_listing(await client.list(args.path))
    elif command == "search":
        for entry in await client.search(args.query, args.filename_only):
            print(f"{entry.path}  {format_size(entry.size)}")
    elif command == "cat":
        sys.stdout.write(await client.read_contents(args.path))
    elif command == "put":
        handle = client.upload(
            args.source,
            args.target,
            on_progress=lambda sent: print(f"\r{format_size(sent)}", end="", flush=True),
        )
        job = await handle
        print()
        return 0 if job.status is JobStatus.COMPLETED else 1
    elif command == "fetch":
        handle = await client.upload_from_url(args.url, args.path, on_progress=_print_progress)
        return _job_exit_code(await handle)
    elif command == "archive":
        handle = client.archive(args.filename, args.entries, args.cwd, on_progress=_print_progress)
        return _job_exit_code(await handle)
    elif command == "extract":
        handle = client.extract(args.archive, args.output, on_progress=_print_progress)
        return _job_exit_code(await handle)
    elif command == "cp":
        await client.copy(args.sources, args.destination)
    elif command == "mv":
        await client.move(args.sources, args.destination)
    elif command == "rename":
        await client.rename(args.source, args.destination)
    elif command == "rm":
        await client.delete(args.paths)
    elif command in ("mkdir", "touch"):
        await client.create_entry(args.name, args.cwd, is_directory=command == "mkdir")
    elif command == "download":
        target = await client.download(args.paths, args.cwd, args.output)
        print(f"Saved {target}")
    return 0


def _job_exit_code(job: Job) -> int:
    print()
    if job.status is JobStatus.COMPLETED:
        return 0
    if job.status is JobStatus.FAILED:
        print(f"Error: {job.message}", file=sys.stderr)
    else:
        print(f"Job {job.status.value}", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fsclient", description="Manage server files over the file API.")
    parser.add_argument("--base-url", help="Root URL of the panel (defaults to settings)")
    parser.add_argument("--server", help="Server id whose files are managed")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in DeploymentMode],
        help="server-scoped API or the legacy single-server API",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("ls", help="List a directory")
    ls.add_argument("path", nargs="?", default="/")

    search = sub.add_parser("search", help="Search files by name or path")
    search.add_argument("query")
    search.add_argument("--filename-only", action="store_true")

    cat = sub.add_parser("cat", help="Print a file")
    cat.add_argument("path")

    put = sub.add_parser("put", help="Upload a local file")
    put.add_argument("source")
    put.add_argument("target", nargs="?", default="/")

    fetch = sub.add_parser("fetch", help="Let the server download a URL")
    fetch.add_argument("url")
    fetch.add_argument("path", help="Destination file path on the server")

    archive = sub.add_parser("archive", help="Create an archive from entries")
    archive.add_argument("filename")
    archive.add_argument("entries", nargs="+")
    archive.add_argument("--cwd", default="/")

    extract = sub.add_parser("extract", help="Extract an archive")
    extract.add_argument("archive")
    extract.add_argument("output")

    for name, help_text in (("cp", "Copy entries"), ("mv", "Move entries")):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("sources", nargs="+")
        command.add_argument("destination")

    rename = sub.add_parser("rename", help="Rename an entry")
    rename.add_argument("source")
    rename.add_argument("destination")

    rm = sub.add_parser("rm", help="Delete entries")
    rm.add_argument("paths", nargs="+")

    for name, help_text in (("mkdir", "Create a directory"), ("touch", "Create an empty file")):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("name")
        command.add_argument("--cwd", default="/")

    download = sub.add_parser("download", help="Download entries to a local file")
    download.add_argument("paths", nargs="+")
    download.add_argument("--cwd", default="/")
    download.add_argument("--output", "-o", required=True)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(args.server)
    except FsClientError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        return 2
    overrides = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.server:
        overrides["server_id"] = args.server
    if args.mode:
        overrides["deployment_mode"] = DeploymentMode(args.mode)
    if overrides:
        settings = settings.model_copy(update=overrides)
    logger = configure_logging(settings)

    async def _main() -> int:
        async with FileSystemClient(settings) as client:
            client.notifier.register(_print_notification)
            return await _run(args, client)

    try:
        return asyncio.run(_main())
    except FsClientError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc.detail}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
