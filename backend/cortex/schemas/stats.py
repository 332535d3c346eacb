"""Pydantic schemas for file statistics."""

from __future__ import annotations

from pydantic import Field

from cortex.schemas.common import BigIntStr, CamelModel


class TypeDistributionEntry(CamelModel):
    """Share of files with a given MIME type."""

    mime_type: str = Field(description="MIME type, or 'Other' for the long tail")
    count: int = Field(description="Files of this type")
    percentage: int = Field(description="Rounded share of all files, 0-100")


class FileStatsResponse(CamelModel):
    """Aggregate statistics over a user's synced files."""

    total_storage: BigIntStr = Field(default=0, description="Sum of file sizes in bytes")
    file_count: int = Field(default=0, description="Number of synced files")
    type_distribution: list[TypeDistributionEntry] = Field(
        default_factory=list,
        description="Top MIME types by count plus an Other bucket",
    )
