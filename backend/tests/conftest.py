"""
Report Come Play Backend — Test Configuration (conftest.py)
=============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before any `reportcomeplay` import so the
       settings singleton picks them up; API tests run against an in-memory
       SQLite database through httpx's ASGITransport.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── temp_storage: empty storage root under tmp_path
    ├── db_engine / session_factory: in-memory SQLite with every table created
    ├── test_client: HTTPX AsyncClient wired to the app with the SQLite session
    ├── make_user: inserts a user and returns (user, auth headers)
    ├── png_bytes / jpeg_bytes: real images generated with Pillow
    └── three_images: the image list a valid field submission needs
"""

import io
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="reportcomeplay_test_")
os.environ["RESEND_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from reportcomeplay.database import Base, get_db_session  # noqa: E402
from reportcomeplay.models import Role, User  # noqa: E402
from reportcomeplay.security import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "secret123"


# ══════════════════════════════════════════════════════════════════════════
# Service Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_duplicate(mock_db_session):
            mock_db_session.execute.return_value = [row]
            await field_service.create_field(mock_db_session, user, data)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.bind.dialect.name = "sqlite"
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root for each test (pytest cleans tmp_path up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


# ══════════════════════════════════════════════════════════════════════════
# Database & API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    # StaticPool: every session shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden with the SQLite session factory; the
    commit/rollback behaviour matches the production dependency.
    """
    from reportcomeplay.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(session_factory):
    """
    Inserts a verified user and returns (user, headers) where headers carry
    a valid bearer token.

    Usage:
        admin, admin_headers = await make_user(role=Role.ADMIN)
    """
    counter = {"n": 0}

    async def _make_user(role: Role = Role.REPORTER, email=None, full_name=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            full_name=full_name or f"Test User {counter['n']}",
            role=role.value,
            email_verified=True,
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        token = create_access_token(user.id, user.role)
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


# ══════════════════════════════════════════════════════════════════════════
# Image Fixtures
# ══════════════════════════════════════════════════════════════════════════

def _image_bytes(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(30, 160, 60)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return _image_bytes("JPEG")


@pytest.fixture
def three_images():
    return [f"/api/files/uploads/photo-{i}.jpg" for i in range(3)]
