"""Google Drive sync endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cortex.api.deps import get_current_user, get_sync_service
from cortex.db.models import User
from cortex.schemas.drive import SyncResponse
from cortex.services.sync import DriveSyncService

router = APIRouter(prefix="/drive", tags=["drive"])


@router.post("/sync", response_model=SyncResponse)
async def sync_drive(
    user: User = Depends(get_current_user),
    service: DriveSyncService = Depends(get_sync_service),
) -> SyncResponse:
    """Synchronize the user's Google Drive file metadata.

    Returns the number of remote files seen. A 401 means Google Drive must be
    reconnected.
    """
    count = await service.synchronize(user.id)
    return SyncResponse(
        message="Drive sync completed successfully",
        files_processed=count,
    )
