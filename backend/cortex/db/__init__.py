"""Database package for Cortex."""

from cortex.db.base import Base
from cortex.db.session import async_session_maker, engine, get_db

__all__ = [
    "Base",
    "async_session_maker",
    "engine",
    "get_db",
]
