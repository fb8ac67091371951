"""Payloads carried by job notification channels."""
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class JobNotification(BaseModel):
    """Common shape of a job notification: ``{status, ...}``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: Optional[str] = None
    message: Optional[str] = Field(default=None, validation_alias=AliasChoices("message", "error"))


class UploadNotification(JobNotification):
    bytes_uploaded: Optional[int] = Field(default=None, validation_alias=AliasChoices("bytesUploaded", "bytes_uploaded"))


class ArchiveNotification(JobNotification):
    progress: Optional[float] = None


class ExtractNotification(JobNotification):
    progress: Optional[float] = None
    files_processed: Optional[int] = Field(default=None, validation_alias=AliasChoices("filesProcessed", "files_processed"))
    total_files: Optional[int] = Field(default=None, validation_alias=AliasChoices("totalFiles", "total_files"))


class UrlProgressNotification(BaseModel):
    """``progress`` event of an upload-from-URL channel; ``progress`` is a 0-1 fraction."""

    model_config = ConfigDict(extra="ignore")

    progress: float = 0.0
    downloaded: Optional[int] = None
    total: Optional[int] = None


class UrlErrorNotification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: str = "Upload from URL failed"


class UrlCompleteNotification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
