"""DriveFile model: local mirror of a Google Drive file's metadata."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cortex.db.base import Base

if TYPE_CHECKING:
    from cortex.db.models.user import User


class DriveFile(Base):
    """Metadata of one Drive file as seen by one user.

    The primary key is the composite (remote file id, user id): a file shared
    with two users is tracked as two independent rows.
    """

    __tablename__ = "files"

    # Composite primary key
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # File metadata
    name: Mapped[str] = mapped_column(String(1024), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    web_view_link: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Ownership
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_modifier_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )

    # Flags
    is_starred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    modified_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="files")

    # Indexes
    __table_args__ = (
        Index("ix_files_user_modified", "user_id", "modified_time"),
        Index("ix_files_user_mime_type", "user_id", "mime_type"),
    )
