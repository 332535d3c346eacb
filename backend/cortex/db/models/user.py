"""User model: identity anchor and Google Drive connection state."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cortex.db.base import Base

if TYPE_CHECKING:
    from cortex.db.models.drive_file import DriveFile


class User(Base):
    """A person who signed in with Google.

    The refresh token is stored Fernet-encrypted. A NULL refresh token means
    Google Drive is not connected and every Drive operation must ask the user
    to authenticate again.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Google account info
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Encrypted long-lived credential
    google_refresh_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Set only after a complete reconciliation pass
    last_sync_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    files: Mapped[list[DriveFile]] = relationship(
        "DriveFile",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def drive_connected(self) -> bool:
        """Whether a refresh token is stored for this user."""
        return self.google_refresh_token_encrypted is not None
