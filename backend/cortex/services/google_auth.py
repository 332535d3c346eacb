"""Google OAuth2 client and refresh-token handling.

Provides:
- Consent URL generation (offline access, forced consent so Google issues a
  refresh token)
- Authorization code exchange and user info lookup
- Minting short-lived access tokens from a stored refresh token
- Fernet encryption of refresh tokens at rest
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from cryptography.fernet import Fernet, InvalidToken

from cortex.core.config import settings
from cortex.core.exceptions import AuthorizationError
from cortex.core.logging import get_logger

if TYPE_CHECKING:
    from cortex.db.models import User

logger = get_logger(__name__)

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Full Drive scope: the dashboard renames and deletes files
SCOPES = [
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/drive",
    "openid",  # Google auto-adds this with userinfo.email
]


@dataclass
class GoogleTokens:
    """Tokens returned by an authorization code exchange."""

    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None


@dataclass
class GoogleUserInfo:
    """Profile of the signed-in Google account."""

    email: str
    name: str | None = None
    picture: str | None = None


class TokenCipher:
    """Encrypts refresh tokens before they are persisted."""

    def __init__(self, key: str | bytes | None = None):
        key = key if key is not None else settings.encryption_key
        if key:
            # Fernet expects the key as base64-encoded bytes (not decoded)
            self._key = key.encode() if isinstance(key, str) else key
        else:
            self._key = Fernet.generate_key()
            logger.warning(
                "encryption_key_generated",
                message="Using auto-generated encryption key. Set CORTEX_ENCRYPTION_KEY for persistence.",
            )
        self._fernet = Fernet(self._key)

    def encrypt(self, data: str) -> str:
        """Encrypt a string using Fernet."""
        return self._fernet.encrypt(data.encode()).decode()

    def decrypt(self, encrypted_data: str) -> str:
        """Decrypt a Fernet-encrypted string.

        Raises:
            AuthorizationError: If the token was encrypted with another key.
        """
        try:
            return self._fernet.decrypt(encrypted_data.encode()).decode()
        except InvalidToken as e:
            raise AuthorizationError(
                "Stored Google credential is unreadable. Please authenticate again."
            ) from e


_cipher: TokenCipher | None = None


def get_token_cipher() -> TokenCipher:
    """Get the process-wide token cipher (its key must outlive requests)."""
    global _cipher
    if _cipher is None:
        _cipher = TokenCipher()
    return _cipher


class GoogleAuthClient:
    """Thin wrapper over google-auth for the OAuth2 web flow."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
    ):
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.redirect_uri = redirect_uri or settings.google_redirect_uri

    @property
    def configured(self) -> bool:
        """Check whether OAuth client credentials are available."""
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.configured:
            raise AuthorizationError(
                "Google OAuth not configured. Set CORTEX_GOOGLE_CLIENT_ID and CORTEX_GOOGLE_CLIENT_SECRET"
            )

    def _build_flow(self):
        from google_auth_oauthlib.flow import Flow

        return Flow.from_client_config(
            {
                "web": {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "auth_uri": GOOGLE_AUTH_URI,
                    "token_uri": GOOGLE_TOKEN_URI,
                }
            },
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
            # Flows are rebuilt per request, so a PKCE verifier would not survive
            autogenerate_code_verifier=False,
        )

    def get_auth_url(self, state: str | None = None) -> str:
        """Get the OAuth2 consent URL.

        Raises:
            AuthorizationError: If OAuth is not configured.
        """
        self._require_configured()

        auth_url, _ = self._build_flow().authorization_url(
            access_type="offline",
            include_granted_scopes="true",
            prompt="consent",
            state=state,
        )
        return auth_url

    async def exchange_code(self, code: str) -> GoogleTokens:
        """Exchange an authorization code for tokens."""
        self._require_configured()
        flow = self._build_flow()

        await asyncio.to_thread(flow.fetch_token, code=code)
        creds = flow.credentials
        return GoogleTokens(
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expiry=creds.expiry,
        )

    async def get_user_info(self, access_token: str) -> GoogleUserInfo:
        """Look up the profile of the account owning an access token."""
        from google.oauth2.credentials import Credentials as OAuthCredentials
        from googleapiclient.discovery import build

        def _fetch() -> dict:
            oauth2 = build(
                "oauth2",
                "v2",
                credentials=OAuthCredentials(token=access_token),
                cache_discovery=False,
            )
            return oauth2.userinfo().get().execute()

        data = await asyncio.to_thread(_fetch)
        email = data.get("email")
        if not email:
            raise AuthorizationError("Google account did not return an email address")
        return GoogleUserInfo(
            email=email,
            name=data.get("name"),
            picture=data.get("picture"),
        )

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Mint a short-lived access token from a refresh token.

        Raises:
            AuthorizationError: If Google rejects the refresh token or OAuth is
                not configured. The caller should ask the user to reconnect.
        """
        self._require_configured()

        from google.auth.exceptions import GoogleAuthError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials as OAuthCredentials

        creds = OAuthCredentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )

        try:
            await asyncio.to_thread(creds.refresh, Request())
        except GoogleAuthError as e:
            logger.warning("google_token_refresh_failed", error=str(e))
            raise AuthorizationError(
                "Google Drive access expired. Please authenticate again."
            ) from e

        return creds.token


class DriveCredentialProvider:
    """Turns a user's stored refresh token into a usable access token."""

    def __init__(
        self,
        auth_client: GoogleAuthClient | None = None,
        cipher: TokenCipher | None = None,
    ):
        self.auth_client = auth_client or GoogleAuthClient()
        self.cipher = cipher or get_token_cipher()

    async def get_access_token(self, user: User | None) -> str:
        """Get a fresh access token for a user.

        Raises:
            AuthorizationError: If the user has no stored refresh token or it
                can no longer be exchanged. Any failure here means the user
                must reconnect Google Drive.
        """
        if user is None or not user.google_refresh_token_encrypted:
            raise AuthorizationError(
                "Google Drive not connected. Please authenticate again."
            )

        try:
            refresh_token = self.cipher.decrypt(user.google_refresh_token_encrypted)
            return await self.auth_client.refresh_access_token(refresh_token)
        except AuthorizationError:
            raise
        except Exception as e:
            logger.warning(
                "access_token_unavailable",
                user_id=user.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AuthorizationError(
                "Google Drive access expired. Please authenticate again."
            ) from e
