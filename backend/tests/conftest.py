"""Pytest configuration and fixtures."""

import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool, StaticPool

# Create a temporary directory for test paths
_test_tmp_dir = tempfile.mkdtemp(prefix="cortex_test_")

# Set config BEFORE importing app modules
os.environ["CORTEX_CONFIG_PATH"] = _test_tmp_dir
os.environ["CORTEX_JWT_SECRET"] = "test-jwt-secret"
os.environ["CORTEX_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ.pop("CORTEX_OPENAI_API_KEY", None)
os.environ.pop("CORTEX_DATABASE_URL", None)

from cortex.core.security import create_access_token
from cortex.db import get_db
from cortex.db.base import Base
from cortex.db.models import DriveFile, User
from cortex.main import app
from cortex.services.google_auth import get_token_cipher

REFRESH_TOKEN = "stored-refresh-token"


# =============================================================================
# Model factories
# =============================================================================


@pytest.fixture
def make_user():
    """Build (unsaved) users, connected to Google Drive by default."""

    def _make(email: str = "alice@example.com", connected: bool = True, **overrides) -> User:
        fields = {
            "id": str(uuid.uuid4()),
            "email": email,
            "name": email.split("@")[0].title(),
            "google_refresh_token_encrypted": (
                get_token_cipher().encrypt(REFRESH_TOKEN) if connected else None
            ),
        }
        fields.update(overrides)
        return User(**fields)

    return _make


@pytest.fixture
def make_file():
    """Build (unsaved) file rows with sensible defaults."""

    def _make(user: User, file_id: str, **overrides) -> DriveFile:
        stamp = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        fields = {
            "id": file_id,
            "user_id": user.id,
            "name": f"{file_id}.txt",
            "mime_type": "text/plain",
            "size": 100,
            "web_view_link": f"https://drive.google.com/file/d/{file_id}/view",
            "owner_email": user.email,
            "owner_name": user.name or "",
            "last_modifier_name": user.name or "",
            "is_starred": False,
            "is_shared": False,
            "created_time": stamp,
            "modified_time": stamp,
            "indexed_at": stamp,
        }
        fields.update(overrides)
        return DriveFile(**fields)

    return _make


# =============================================================================
# Service-level database (in-memory, async)
# =============================================================================


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


# =============================================================================
# API-level database (file-backed, shared by the test and the app)
# =============================================================================


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "cortex_test.db"


@pytest.fixture
def sync_engine(db_path):
    """Synchronous engine used to seed and inspect the API test database."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(sync_engine):
    """Session for arranging and asserting API test data."""
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def client(db_path, sync_engine):
    """Create a test client for the FastAPI application with test database."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool
    )
    test_session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # Override the dependency
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Clean up override
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for a stored user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    import shutil

    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
