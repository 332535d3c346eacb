"""Bearer token issuing and verification for API sessions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from cortex.core.config import settings
from cortex.core.exceptions import AuthorizationError


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Sign a bearer token identifying a user.

    Args:
        user_id: ID of the authenticated user.
        expires_minutes: Optional lifetime override.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Verify a bearer token and return the user ID it was issued for.

    Raises:
        AuthorizationError: If the token is malformed, tampered with or expired.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        raise AuthorizationError("Invalid or expired token.") from e

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise AuthorizationError("Invalid or expired token.")
    return user_id
