"""Path helpers shared by the file services."""
from __future__ import annotations


def strip_leading_separator(path: str) -> str:
    """Drop every leading ``/`` or ``\\`` so the server resolves ``path`` relative to its root."""
    return path.lstrip("/\\")


def normalize_path(path: str) -> str:
    """Canonical entry path: one leading backslash removed, remaining backslashes as ``/``."""
    if path.startswith("\\"):
        path = path[1:]
    return path.replace("\\", "/")


def join(directory: str, name: str) -> str:
    if not directory:
        return name
    return f"{directory.rstrip('/')}/{name}"


def split(path: str) -> tuple[str, str]:
    """Return ``(directory, name)``; the directory of a top-level path is ``/``."""
    index = path.rfind("/")
    if index <= 0:
        return "/", path[index + 1:]
    return path[:index], path[index + 1:]


_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_size(size: int) -> str:
    """Human readable size such as ``"2.5 MB"``."""
    if size <= 0:
        return "0 Bytes"
    index = 0
    while size >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1
    value = round(size / (1024 ** index), 2)
    return f"{value:g} {_SIZE_UNITS[index]}"
