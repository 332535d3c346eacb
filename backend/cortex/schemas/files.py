"""Pydantic schemas for the files API."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from cortex.schemas.common import BigIntStr, CamelModel


class DriveFileResponse(CamelModel):
    """A synced Drive file."""

    id: str
    name: str
    mime_type: str
    size: BigIntStr
    web_view_link: str
    owner_email: str
    owner_name: str
    last_modifier_name: str
    is_starred: bool
    is_shared: bool
    created_time: datetime
    modified_time: datetime
    indexed_at: datetime


class FileListMeta(CamelModel):
    """Pagination metadata for a file listing."""

    total: int = Field(description="Files matching the query")
    page: int = Field(description="Current page (1-based)")
    total_pages: int = Field(description="Pages available at this limit")
    limit: int = Field(description="Effective page size")


class FileListResponse(CamelModel):
    """Paginated list of files."""

    files: list[DriveFileResponse]
    meta: FileListMeta


class FileUpdateRequest(CamelModel):
    """Rename request body."""

    name: str | None = None


class FileDetailResponse(CamelModel):
    """Single file response."""

    file: DriveFileResponse
