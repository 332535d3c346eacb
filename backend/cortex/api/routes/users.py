"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cortex.api.deps import get_current_user
from cortex.db.models import User
from cortex.schemas.user import ProfileResponse, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user)) -> ProfileResponse:
    """Get the signed-in user's profile."""
    return ProfileResponse(user=UserResponse.model_validate(user))
