"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CORTEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Cortex"
    version: str = "1.0.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=5000, description="Server port")

    # Paths
    config_path: Path = Field(
        default=Path("/config"),
        description="Path for configuration files and database",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Database connection URL (defaults to SQLite under config_path)",
    )

    # CORS / browser client
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins",
    )
    client_url: str = Field(
        default="http://localhost:5173",
        description="Browser client URL to redirect to after login",
    )

    # Google OAuth
    google_client_id: str | None = Field(default=None, description="Google OAuth client ID")
    google_client_secret: str | None = Field(
        default=None, description="Google OAuth client secret"
    )
    google_redirect_uri: str = Field(
        default="http://localhost:5000/api/auth/google/callback",
        description="OAuth redirect URI registered with Google",
    )
    encryption_key: str | None = Field(
        default=None,
        description="Fernet key used to encrypt stored refresh tokens",
    )

    # Bearer tokens
    jwt_secret: str = Field(
        default="change-me",
        description="Secret used to sign API bearer tokens",
    )
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = Field(
        default=7 * 24 * 60,
        ge=5,
        description="Bearer token lifetime in minutes (default 7 days)",
    )

    # Drive sync
    drive_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Files requested per Drive listing page",
    )
    upsert_chunk_size: int = Field(
        default=500,
        ge=1,
        description="Rows per INSERT statement during a sync batch",
    )

    # File queries and statistics
    files_default_limit: int = Field(default=20, ge=1)
    files_max_limit: int = Field(default=2000, ge=1)
    stats_top_types: int = Field(
        default=5,
        ge=1,
        description="MIME types listed individually before the Other bucket",
    )

    # LLM chat (OpenAI Responses API)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="Model used for chat")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    openai_timeout: float = Field(default=60.0, description="LLM request timeout in seconds")
    chat_max_context_files: int = Field(
        default=500,
        ge=1,
        description="Maximum files included in the chat context",
    )

    @property
    def google_oauth_configured(self) -> bool:
        """Check if Google OAuth client credentials are configured."""
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def llm_configured(self) -> bool:
        """Check if an LLM API key is configured."""
        return bool(self.openai_api_key)

    @property
    def db_path(self) -> Path:
        """Get the SQLite database file path."""
        return self.config_path / "cortex.db"


# Global settings instance
settings = Settings()
