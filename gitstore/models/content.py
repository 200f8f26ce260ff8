"""Models for content store entries and details summaries."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntryKind(str, Enum):
    """Kind of node in the remote content tree."""

    FILE = "file"
    DIRECTORY = "directory"


class Entry(BaseModel):
    """Immutable snapshot of one node fetched from the content store."""

    name: str = Field(..., description="Entry name (last path segment)")
    path: str = Field(..., description="Slash-separated path relative to repository root")
    kind: EntryKind = Field(..., description="File or directory")
    size: int = Field(0, ge=0, description="Size in bytes (0 for directories)")
    content_id: str | None = Field(None, description="Opaque upstream version identifier (blob sha)")

    model_config = ConfigDict(frozen=True)


class Summary(BaseModel):
    """Aggregated size, file count, and last modification for a path."""

    name: str = Field(..., description="Entry name")
    path: str = Field(..., description="Entry path")
    kind: EntryKind = Field(..., description="File or directory")
    total_size_bytes: int = Field(0, ge=0, alias="totalSizeBytes", description="Total size in bytes")
    file_count: int | None = Field(
        None,
        ge=0,
        alias="fileCount",
        description="Number of files in the subtree (directories only)",
    )
    last_modified: datetime | None = Field(
        None,
        alias="lastModified",
        description="Most recent commit timestamp among contributing files",
    )
    degraded: bool = Field(False, description="True if some descendants could not be resolved")
    skipped_count: int = Field(
        0,
        ge=0,
        alias="skippedCount",
        description="Number of descendants excluded from the summary",
    )
    content_id: str | None = Field(
        None,
        alias="contentId",
        description="Upstream blob sha of a file, usable as an update precondition",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def for_file(cls, entry: Entry, last_modified: datetime | None) -> Summary:
        """Build the summary of a single file entry."""
        return cls(
            name=entry.name,
            path=entry.path,
            kind=EntryKind.FILE,
            total_size_bytes=entry.size,
            last_modified=last_modified,
            content_id=entry.content_id,
        )


class ErrorResponse(BaseModel):
    """Structured error payload returned by the details API."""

    error: str = Field(..., description="Error kind")
    detail: str = Field(..., description="Human-readable error detail")
