"""Files API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from cortex.api.deps import (
    get_current_user,
    get_file_query_service,
    get_file_service,
    get_stats_service,
)
from cortex.db.models import User
from cortex.schemas.files import (
    DriveFileResponse,
    FileDetailResponse,
    FileListMeta,
    FileListResponse,
    FileUpdateRequest,
)
from cortex.schemas.stats import FileStatsResponse
from cortex.services.files import FileQuery, FileQueryService, FileService
from cortex.services.stats import FileStatsService

router = APIRouter(prefix="/files", tags=["files"])


@router.get("", response_model=FileListResponse)
async def list_files(
    # Raw strings: out-of-range values are clamped, not rejected
    page: str | None = Query(None, description="Page number (minimum 1)"),
    limit: str | None = Query(None, description="Items per page (1-2000, default 20)"),
    search: str | None = Query(None, description="Case-insensitive name filter"),
    sort_by: str | None = Query(None, alias="sortBy", description="Field to sort by"),
    order: str | None = Query(None, description="asc or desc (default)"),
    user: User = Depends(get_current_user),
    service: FileQueryService = Depends(get_file_query_service),
) -> FileListResponse:
    """List the user's synced files with pagination, search and sorting."""
    result = await service.list_files(
        user.id,
        FileQuery(page=page, limit=limit, search=search, sort_by=sort_by, order=order),
    )
    return FileListResponse(
        files=[DriveFileResponse.model_validate(f) for f in result.files],
        meta=FileListMeta(
            total=result.total,
            page=result.page,
            total_pages=result.total_pages,
            limit=result.limit,
        ),
    )


@router.get("/stats", response_model=FileStatsResponse)
async def get_file_stats(
    user: User = Depends(get_current_user),
    service: FileStatsService = Depends(get_stats_service),
) -> FileStatsResponse:
    """Get storage usage and MIME type distribution for the user's files."""
    return await service.compute_stats(user.id)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    user: User = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> Response:
    """Delete a file from Google Drive and from the dashboard."""
    await service.delete_file(user, file_id)
    return Response(status_code=204)


@router.patch("/{file_id}", response_model=FileDetailResponse)
async def rename_file(
    file_id: str,
    body: FileUpdateRequest | None = None,
    user: User = Depends(get_current_user),
    service: FileService = Depends(get_file_service),
) -> FileDetailResponse:
    """Rename a file on Google Drive and in the dashboard."""
    file = await service.rename_file(user, file_id, body.name if body else None)
    return FileDetailResponse(file=DriveFileResponse.model_validate(file))
