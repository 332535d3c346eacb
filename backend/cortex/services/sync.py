"""Drive synchronization service.

Reconciles a user's Google Drive listing into the local ``files`` table:

1. Exchange the stored refresh token for an access token
2. Drain the remote listing, all pages
3. Map each remote file to a local row using explicit default rules
4. Upsert every row keyed by (remote id, user id) in one transaction
5. Stamp the user's ``last_sync_at``

Records for files that disappeared remotely are left in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.config import settings
from cortex.core.logging import get_logger
from cortex.db.models import DriveFile, User
from cortex.services.google_auth import DriveCredentialProvider
from cortex.services.google_drive import GoogleDriveSource, RemoteFile

logger = get_logger(__name__)

# Columns overwritten when a remote file is seen again. ``created_time`` is
# written on insert only.
UPDATE_COLUMNS = (
    "name",
    "mime_type",
    "size",
    "web_view_link",
    "owner_email",
    "owner_name",
    "last_modifier_name",
    "is_starred",
    "is_shared",
    "modified_time",
    "indexed_at",
)


@dataclass(frozen=True)
class MappingDefaults:
    """Values used when the Drive API omits an optional field.

    Missing created/modified timestamps fall back to the time of the sync
    pass, which is passed to ``map_remote_file`` separately.
    """

    size: int = 0
    owner_name: str = ""
    owner_email: str = ""
    web_view_link: str = ""
    last_modifier_name: str = "Unknown"
    is_starred: bool = False
    is_shared: bool = False


DEFAULT_MAPPING = MappingDefaults()


def map_remote_file(
    remote: RemoteFile,
    user_id: str,
    now: datetime,
    defaults: MappingDefaults = DEFAULT_MAPPING,
) -> dict[str, Any]:
    """Derive a ``files`` row from a remote file.

    Args:
        remote: File as listed by Google Drive.
        user_id: Owning local user.
        now: Timestamp of the sync pass, used for ``indexed_at`` and as the
            fallback for missing remote timestamps.
        defaults: Fallbacks for absent optional fields.

    Returns:
        Column values ready for an INSERT.
    """
    owner = remote.primary_owner
    return {
        "id": remote.id,
        "user_id": user_id,
        "name": remote.name,
        "mime_type": remote.mime_type,
        "size": int(remote.size) if remote.size else defaults.size,
        "web_view_link": remote.web_view_link or defaults.web_view_link,
        "owner_email": (owner.email_address if owner else None) or defaults.owner_email,
        "owner_name": (owner.display_name if owner else None) or defaults.owner_name,
        "last_modifier_name": remote.last_modifying_user_name or defaults.last_modifier_name,
        "is_starred": remote.starred if remote.starred is not None else defaults.is_starred,
        "is_shared": remote.shared if remote.shared is not None else defaults.is_shared,
        "created_time": remote.created_time or now,
        "modified_time": remote.modified_time or now,
        "indexed_at": now,
    }


class DriveSyncService:
    """Mirrors a user's Google Drive file metadata into the local store."""

    def __init__(
        self,
        db: AsyncSession,
        drive: GoogleDriveSource | None = None,
        credentials: DriveCredentialProvider | None = None,
        defaults: MappingDefaults = DEFAULT_MAPPING,
        chunk_size: int | None = None,
    ):
        """Initialize the sync service.

        Args:
            db: Async database session.
            drive: Google Drive adapter.
            credentials: Provider of access tokens for stored users.
            defaults: Mapping fallbacks for absent remote fields.
            chunk_size: Rows per INSERT statement.
        """
        self.db = db
        self.drive = drive or GoogleDriveSource()
        self.credentials = credentials or DriveCredentialProvider()
        self.defaults = defaults
        self.chunk_size = chunk_size or settings.upsert_chunk_size

    async def synchronize(self, user_id: str) -> int:
        """Synchronize a user's Drive listing into the local store.

        Args:
            user_id: ID of the user to synchronize.

        Returns:
            Number of remote files seen (not the number of rows changed).

        Raises:
            AuthorizationError: If the user has no usable Google credential.
            DriveListingError: If any listing page fails. Nothing is written.
        """
        user = await self.db.get(User, user_id)
        access_token = await self.credentials.get_access_token(user)

        logger.info("drive_sync_started", user_id=user_id)

        remote_files = await self.drive.list_all_files(access_token)
        if not remote_files:
            # An empty listing never deletes anything
            logger.info("drive_sync_empty", user_id=user_id)
            return 0

        now = datetime.now(timezone.utc)
        rows = [map_remote_file(f, user_id, now, self.defaults) for f in remote_files]

        try:
            await self._upsert_rows(rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(
                "drive_sync_upsert_failed",
                user_id=user_id,
                files=len(rows),
                exc_info=True,
            )
            raise

        user.last_sync_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info(
            "drive_sync_completed",
            user_id=user_id,
            files_processed=len(remote_files),
        )
        return len(remote_files)

    async def _upsert_rows(self, rows: list[dict[str, Any]]) -> None:
        """Insert or update rows keyed by (id, user_id) in the current transaction."""
        # A listing may repeat an id; a single statement cannot touch a row twice
        unique_rows = list({row["id"]: row for row in rows}.values())

        insert = self._dialect_insert()
        for start in range(0, len(unique_rows), self.chunk_size):
            chunk = unique_rows[start : start + self.chunk_size]
            stmt = insert(DriveFile).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=["id", "user_id"],
                set_={column: stmt.excluded[column] for column in UPDATE_COLUMNS},
            )
            await self.db.execute(stmt)

    def _dialect_insert(self):
        """Pick the INSERT construct supporting ON CONFLICT for the bound database."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        raise NotImplementedError(f"Upsert is not supported on {dialect}")
