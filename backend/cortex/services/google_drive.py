"""Google Drive source adapter.

Wraps the three Drive API calls the dashboard needs behind a narrow async
interface:
- Full file listing, draining ``nextPageToken`` pagination page by page
- File deletion
- File rename

The google-api-python-client is blocking, so every request runs in a worker
thread via ``asyncio.to_thread``. Remote failures are translated into the
application's error types; nothing is retried here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from cortex.core.config import settings
from cortex.core.exceptions import DriveListingError, RemoteMutationError
from cortex.core.logging import get_logger

logger = get_logger(__name__)

LIST_FIELDS = (
    "nextPageToken, files(id, name, mimeType, size, webViewLink, createdTime, "
    "modifiedTime, owners, lastModifyingUser(displayName), starred, shared)"
)

# Builds a Drive v3 resource from an access token
ServiceFactory = Callable[[str], Any]


class RemoteOwner(BaseModel):
    """Owner entry reported by the Drive API."""

    display_name: str | None = None
    email_address: str | None = None


class RemoteFile(BaseModel):
    """A file as reported by the Drive ``files.list`` endpoint."""

    id: str
    name: str
    mime_type: str
    # Drive reports byte counts as decimal strings
    size: str | None = Field(default=None, pattern=r"^\d+$")
    web_view_link: str | None = None
    created_time: datetime | None = None
    modified_time: datetime | None = None
    owners: list[RemoteOwner] = Field(default_factory=list)
    last_modifying_user_name: str | None = None
    starred: bool | None = None
    shared: bool | None = None

    @property
    def primary_owner(self) -> RemoteOwner | None:
        """First reported owner, if any."""
        return self.owners[0] if self.owners else None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteFile:
        """Build from a raw Drive API file resource."""
        last_modifier = data.get("lastModifyingUser") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", "application/octet-stream"),
            size=data.get("size"),
            web_view_link=data.get("webViewLink"),
            created_time=_parse_rfc3339(data.get("createdTime")),
            modified_time=_parse_rfc3339(data.get("modifiedTime")),
            owners=[
                RemoteOwner(
                    display_name=o.get("displayName"),
                    email_address=o.get("emailAddress"),
                )
                for o in data.get("owners") or []
            ],
            last_modifying_user_name=last_modifier.get("displayName"),
            starred=data.get("starred"),
            shared=data.get("shared"),
        )


def _parse_rfc3339(value: str | None) -> datetime | None:
    """Parse a Drive timestamp such as ``2024-06-01T10:00:00.000Z``."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def build_drive_service(access_token: str) -> Any:
    """Build a Drive v3 resource authorized with a bearer access token."""
    from google.oauth2.credentials import Credentials as OAuthCredentials
    from googleapiclient.discovery import build

    return build(
        "drive",
        "v3",
        credentials=OAuthCredentials(token=access_token),
        cache_discovery=False,
    )


class GoogleDriveSource:
    """Async adapter over the Google Drive v3 files API."""

    def __init__(
        self,
        service_factory: ServiceFactory | None = None,
        page_size: int | None = None,
    ):
        """Initialize the adapter.

        Args:
            service_factory: Callable building a Drive resource from an access
                token. Defaults to the real google-api-python-client resource.
            page_size: Files requested per listing page.
        """
        self._service_factory = service_factory or build_drive_service
        self.page_size = page_size or settings.drive_page_size

    async def list_all_files(self, access_token: str) -> list[RemoteFile]:
        """List every file visible to the token holder.

        Pages are requested strictly one after another, each with the
        previous response's continuation token, until none is returned.

        Raises:
            DriveListingError: If any page request fails. Already fetched
                pages are discarded.
        """
        service = self._service_factory(access_token)
        all_files: list[RemoteFile] = []
        page_token: str | None = None
        page_number = 0

        while True:
            page_number += 1
            files, page_token = await self._list_page(service, page_token, page_number)
            all_files.extend(files)

            logger.debug(
                "drive_list_page",
                page=page_number,
                page_files=len(files),
                total_files=len(all_files),
                has_more=page_token is not None,
            )

            if not page_token:
                break

        return all_files

    async def _list_page(
        self,
        service: Any,
        page_token: str | None,
        page_number: int,
    ) -> tuple[list[RemoteFile], str | None]:
        """Fetch a single listing page."""

        def _execute() -> dict[str, Any]:
            return service.files().list(
                pageSize=self.page_size,
                pageToken=page_token,
                fields=LIST_FIELDS,
            ).execute()

        try:
            result = await asyncio.to_thread(_execute)
        except Exception as e:
            logger.error(
                "drive_list_page_failed",
                page=page_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DriveListingError(
                f"Failed to list Google Drive files (page {page_number})"
            ) from e

        try:
            files = [RemoteFile.from_api(f) for f in result.get("files") or []]
        except (ValidationError, KeyError) as e:
            logger.error(
                "drive_list_page_malformed",
                page=page_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DriveListingError(
                f"Google Drive returned malformed file metadata (page {page_number})"
            ) from e

        return files, result.get("nextPageToken") or None

    async def delete_file(self, access_token: str, file_id: str) -> None:
        """Permanently delete a file on Google Drive.

        Raises:
            RemoteMutationError: If the Drive API call fails.
        """
        service = self._service_factory(access_token)
        await self._mutate(
            "delete",
            file_id,
            lambda: service.files().delete(fileId=file_id).execute(),
        )

    async def rename_file(self, access_token: str, file_id: str, new_name: str) -> None:
        """Rename a file on Google Drive.

        Raises:
            RemoteMutationError: If the Drive API call fails.
        """
        service = self._service_factory(access_token)
        await self._mutate(
            "rename",
            file_id,
            lambda: service.files().update(
                fileId=file_id, body={"name": new_name}
            ).execute(),
        )

    async def _mutate(self, operation: str, file_id: str, call: Callable[[], Any]) -> None:
        try:
            await asyncio.to_thread(call)
        except Exception as e:
            logger.error(
                "drive_mutation_failed",
                operation=operation,
                file_id=file_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RemoteMutationError(operation) from e

        logger.info("drive_mutation_completed", operation=operation, file_id=file_id)
