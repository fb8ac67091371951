"""Wire schemas for directory listings and search results."""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RawTimestamp(BaseModel):
    """``SystemTime`` as serialized by the server."""

    secs_since_epoch: int = 0
    nanos_since_epoch: int = 0

    @property
    def milliseconds(self) -> float:
        return self.secs_since_epoch * 1000 + self.nanos_since_epoch / 1_000_000


class RawEntry(BaseModel):
    """Single entry of a ``fs/files`` listing."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    filename: str = Field(validation_alias=AliasChoices("filename", "name"))
    path: str = ""
    size: int = 0
    is_dir: bool = Field(default=False, validation_alias=AliasChoices("is_dir", "is_directory"))
    created: Optional[RawTimestamp] = None
    last_modified: Optional[RawTimestamp] = None


class RawListing(BaseModel):
    """Response body of ``fs/files``."""

    model_config = ConfigDict(extra="ignore")

    parent: Optional[str] = None
    current_path: Optional[str] = None
    entries: List[RawEntry] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Single ``fs/search`` hit; timestamps are seconds since the epoch."""

    model_config = ConfigDict(extra="ignore")

    filename: str
    path: str = ""
    size: int = 0
    ctime: Optional[float] = None
    mtime: Optional[float] = None
