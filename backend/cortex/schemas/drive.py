"""Pydantic schemas for Drive sync."""

from __future__ import annotations

from cortex.schemas.common import CamelModel


class SyncResponse(CamelModel):
    """Result of a Drive synchronization."""

    message: str
    files_processed: int
