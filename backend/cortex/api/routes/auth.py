"""Google sign-in endpoints."""

from __future__ import annotations

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from cortex.api.deps import get_auth_service
from cortex.core.config import settings
from cortex.core.exceptions import ValidationError
from cortex.core.logging import get_logger
from cortex.services.auth import AuthService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.client_url}?{urlencode(params)}")


@router.get("/google")
async def google_login(
    service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""
    return RedirectResponse(service.get_auth_url())


@router.get("/google/callback")
async def google_callback(
    code: str | None = Query(None, description="Authorization code from Google"),
    error: str | None = Query(None, description="Error reported by Google"),
    service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Complete sign-in and hand the bearer token to the browser client."""
    if error:
        logger.info("google_login_declined", error=error)
        return _client_redirect(error=error)

    if not code:
        raise ValidationError("Authorization code is missing")

    result = await service.handle_login(code)
    return _client_redirect(token=result.token)
