"""Pydantic schemas for users and authentication."""

from __future__ import annotations

from datetime import datetime

from cortex.schemas.common import CamelModel


class UserResponse(CamelModel):
    """Public profile of the signed-in user."""

    id: str
    email: str
    name: str | None = None
    drive_connected: bool = False
    last_sync_at: datetime | None = None
    created_at: datetime | None = None


class ProfileResponse(CamelModel):
    """Profile endpoint response."""

    user: UserResponse


class LoginResult(CamelModel):
    """Bearer token issued after a successful Google login."""

    token: str
    user: UserResponse
