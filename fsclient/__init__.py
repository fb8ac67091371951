"""Async client for the remote file-management API."""
from fsclient.client import FileSystemClient
from fsclient.core.config import DeploymentMode, Settings, get_settings
from fsclient.core.exceptions import (
    ApplicationError,
    ConfigurationError,
    FsClientError,
    HttpStatusError,
    JobFailedError,
    RequestAborted,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "DeploymentMode",
    "FileSystemClient",
    "FsClientError",
    "HttpStatusError",
    "JobFailedError",
    "RequestAborted",
    "Settings",
    "TransportError",
    "get_settings",
]
