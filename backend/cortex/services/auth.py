"""Google sign-in service."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.exceptions import AuthorizationError
from cortex.core.logging import get_logger
from cortex.core.security import create_access_token
from cortex.db.models import User
from cortex.schemas.user import LoginResult, UserResponse
from cortex.services.google_auth import GoogleAuthClient, TokenCipher, get_token_cipher

logger = get_logger(__name__)


class AuthService:
    """Signs users in with Google and keeps their refresh token current."""

    def __init__(
        self,
        db: AsyncSession,
        google: GoogleAuthClient | None = None,
        cipher: TokenCipher | None = None,
    ):
        self.db = db
        self.google = google or GoogleAuthClient()
        self.cipher = cipher or get_token_cipher()

    def get_auth_url(self, state: str | None = None) -> str:
        """Get the Google consent URL."""
        return self.google.get_auth_url(state=state)

    async def handle_login(self, code: str) -> LoginResult:
        """Complete a Google sign-in.

        Exchanges the authorization code, upserts the user by email and issues
        an API bearer token. Google only returns a refresh token on first
        consent, so an existing one is kept when none is returned.

        Raises:
            AuthorizationError: If any step of the exchange fails.
        """
        try:
            tokens = await self.google.exchange_code(code)
            info = await self.google.get_user_info(tokens.access_token)
        except AuthorizationError:
            raise
        except Exception as e:
            logger.warning("google_login_failed", error=str(e), error_type=type(e).__name__)
            raise AuthorizationError(f"Authentication failed: {e}") from e

        result = await self.db.execute(select(User).where(User.email == info.email))
        user = result.scalar_one_or_none()

        encrypted = self.cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None

        if user is None:
            user = User(
                email=info.email,
                name=info.name,
                google_refresh_token_encrypted=encrypted,
            )
            self.db.add(user)
            await self.db.flush()
            logger.info("user_created", user_id=user.id)
        else:
            user.name = info.name or user.name
            if encrypted:
                user.google_refresh_token_encrypted = encrypted
            await self.db.flush()
            logger.info("user_logged_in", user_id=user.id, refresh_token_rotated=bool(encrypted))

        return LoginResult(
            token=create_access_token(user.id),
            user=UserResponse.model_validate(user),
        )
