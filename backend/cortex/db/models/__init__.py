"""Database models for Cortex."""

from cortex.db.models.drive_file import DriveFile
from cortex.db.models.user import User

__all__ = [
    "DriveFile",
    "User",
]
