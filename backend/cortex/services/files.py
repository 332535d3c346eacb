"""File query and mutation services.

``FileQueryService`` serves paginated, searchable, sortable listings of a
user's synced files. Query parameters arrive as raw strings and are clamped
rather than rejected. ``FileService`` handles single-file lookups and the
rename/delete operations that are applied to Google Drive first and to the
local mirror second.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.config import settings
from cortex.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from cortex.core.logging import get_logger
from cortex.db.models import DriveFile, User
from cortex.services.google_auth import DriveCredentialProvider
from cortex.services.google_drive import GoogleDriveSource

logger = get_logger(__name__)

# API sort keys mapped to columns; anything else sorts by modification time
SORT_COLUMNS = {
    "name": DriveFile.name,
    "mimeType": DriveFile.mime_type,
    "size": DriveFile.size,
    "modifiedTime": DriveFile.modified_time,
    "createdTime": DriveFile.created_time,
    "indexedAt": DriveFile.indexed_at,
}
DEFAULT_SORT = "modifiedTime"


def _coerce_int(value: Any, default: int) -> int:
    """Parse a loosely typed query value, falling back to ``default``."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the search term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class FileQuery:
    """Raw listing parameters as received from the client."""

    page: Any = None
    limit: Any = None
    search: str | None = None
    sort_by: str | None = None
    order: str | None = None


@dataclass
class FilePage:
    """One page of files plus pagination metadata."""

    files: list[DriveFile]
    total: int
    page: int
    total_pages: int
    limit: int


class FileQueryService:
    """Paginated, user-scoped file listings."""

    def __init__(
        self,
        db: AsyncSession,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ):
        self.db = db
        self.default_limit = default_limit or settings.files_default_limit
        self.max_limit = max_limit or settings.files_max_limit

    def normalize(self, query: FileQuery) -> tuple[int, int, str | None, str, str]:
        """Clamp and validate raw parameters.

        Returns:
            Tuple of (page, limit, search or None, sort key, order).
        """
        page = max(1, _coerce_int(query.page, 1))
        limit = min(self.max_limit, max(1, _coerce_int(query.limit, self.default_limit)))
        search = (query.search or "").strip() or None
        sort_by = query.sort_by if query.sort_by in SORT_COLUMNS else DEFAULT_SORT
        order = "asc" if query.order == "asc" else "desc"
        return page, limit, search, sort_by, order

    async def list_files(self, user_id: str, query: FileQuery) -> FilePage:
        """List a user's files.

        Args:
            user_id: Owner whose files are listed. No other user's rows are
                ever visible.
            query: Raw pagination, search and sort parameters.

        Returns:
            The requested page.
        """
        page, limit, search, sort_by, order = self.normalize(query)

        conditions = [DriveFile.user_id == user_id]
        if search:
            conditions.append(DriveFile.name.ilike(f"%{_escape_like(search)}%", escape="\\"))

        count_result = await self.db.execute(
            select(func.count()).select_from(DriveFile).where(*conditions)
        )
        total = count_result.scalar() or 0

        sort_column = SORT_COLUMNS[sort_by]
        ordering = sort_column.asc() if order == "asc" else sort_column.desc()

        result = await self.db.execute(
            select(DriveFile)
            .where(*conditions)
            .order_by(ordering, DriveFile.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        files = list(result.scalars().all())

        return FilePage(
            files=files,
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            limit=limit,
        )


class FileService:
    """Single-file operations mirrored to Google Drive."""

    def __init__(
        self,
        db: AsyncSession,
        drive: GoogleDriveSource | None = None,
        credentials: DriveCredentialProvider | None = None,
    ):
        self.db = db
        self.drive = drive or GoogleDriveSource()
        self.credentials = credentials or DriveCredentialProvider()

    async def get_file(self, user_id: str, file_id: str) -> DriveFile:
        """Get one of the user's files.

        Raises:
            NotFoundError: If the user has no file with this ID.
        """
        file = await self.db.get(DriveFile, (file_id, user_id))
        if file is None:
            raise NotFoundError("File not found")
        return file

    async def delete_file(self, user: User, file_id: str) -> None:
        """Delete a file on Google Drive, then its local record.

        Only the caller's record is removed; other users holding the same
        remote file keep theirs.

        Raises:
            AuthorizationError: If Google Drive is not connected.
            NotFoundError: If the user has no file with this ID.
            RemoteMutationError: If Google Drive rejects the deletion. The local
                record is kept.
        """
        self._require_drive_connected(user)
        file = await self.get_file(user.id, file_id)

        access_token = await self.credentials.get_access_token(user)
        await self.drive.delete_file(access_token, file_id)

        await self.db.delete(file)
        await self.db.flush()
        logger.info("file_deleted", user_id=user.id, file_id=file_id)

    async def rename_file(self, user: User, file_id: str, name: str | None) -> DriveFile:
        """Rename a file on Google Drive, then locally.

        Raises:
            ValidationError: If the new name is missing or blank.
            AuthorizationError: If Google Drive is not connected.
            NotFoundError: If the user has no file with this ID.
            RemoteMutationError: If Google Drive rejects the rename.
        """
        new_name = (name or "").strip()
        if not new_name:
            raise ValidationError("Name is required")

        self._require_drive_connected(user)
        file = await self.get_file(user.id, file_id)

        access_token = await self.credentials.get_access_token(user)
        await self.drive.rename_file(access_token, file_id, new_name)

        file.name = new_name
        await self.db.flush()
        logger.info("file_renamed", user_id=user.id, file_id=file_id)
        return file

    @staticmethod
    def _require_drive_connected(user: User) -> None:
        if not user.drive_connected:
            raise AuthorizationError("Google Drive not connected. Please authenticate again.")
