"""FastAPI dependencies shared by route modules.

Services are built per request from these providers, so tests can swap any
collaborator through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.exceptions import AuthorizationError
from cortex.core.security import decode_access_token
from cortex.db import get_db
from cortex.db.models import User
from cortex.services.auth import AuthService
from cortex.services.chat import ChatService
from cortex.services.files import FileQueryService, FileService
from cortex.services.google_auth import DriveCredentialProvider, GoogleAuthClient
from cortex.services.google_drive import GoogleDriveSource
from cortex.services.stats import FileStatsService
from cortex.services.sync import DriveSyncService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a stored user.

    Raises:
        AuthorizationError: If the token is missing, invalid or expired, or the
            user no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthorizationError("You are not logged in. Please log in to get access.")

    user_id = decode_access_token(credentials.credentials)
    user = await db.get(User, user_id)
    if user is None:
        raise AuthorizationError("The user belonging to this token no longer exists.")
    return user


def get_google_auth_client() -> GoogleAuthClient:
    """Google OAuth client."""
    return GoogleAuthClient()


def get_drive_source() -> GoogleDriveSource:
    """Google Drive adapter."""
    return GoogleDriveSource()


def get_credential_provider(
    google: GoogleAuthClient = Depends(get_google_auth_client),
) -> DriveCredentialProvider:
    """Access token provider for stored users."""
    return DriveCredentialProvider(auth_client=google)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    google: GoogleAuthClient = Depends(get_google_auth_client),
) -> AuthService:
    return AuthService(db, google=google)


def get_sync_service(
    db: AsyncSession = Depends(get_db),
    drive: GoogleDriveSource = Depends(get_drive_source),
    credentials: DriveCredentialProvider = Depends(get_credential_provider),
) -> DriveSyncService:
    return DriveSyncService(db, drive=drive, credentials=credentials)


def get_file_service(
    db: AsyncSession = Depends(get_db),
    drive: GoogleDriveSource = Depends(get_drive_source),
    credentials: DriveCredentialProvider = Depends(get_credential_provider),
) -> FileService:
    return FileService(db, drive=drive, credentials=credentials)


def get_file_query_service(db: AsyncSession = Depends(get_db)) -> FileQueryService:
    return FileQueryService(db)


def get_stats_service(db: AsyncSession = Depends(get_db)) -> FileStatsService:
    return FileStatsService(db)


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db)
