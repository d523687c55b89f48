"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection; a new connection would see an empty database.
- Foreign keys are switched on for the test engine so ON DELETE CASCADE
  behaves as it does on PostgreSQL.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one; image uploads
  go to a per-test temporary directory.
- All tables are created fresh before each test and dropped after.
- bcrypt runs at its minimum cost so registering users stays cheap.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blog_api.database import Base, enable_sqlite_foreign_keys, get_db
from blog_api.main import app
from blog_api.models import User
from blog_api.security import hash_password
from blog_api.storage import LocalImageStorage, get_image_storage

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

enable_sqlite_foreign_keys(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

DEFAULT_PASSWORD = "Password123!"


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def image_storage(tmp_path) -> LocalImageStorage:
    storage = LocalImageStorage(str(tmp_path / "images"), "http://test")
    app.dependency_overrides[get_image_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_image_storage, None)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly
    (seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory fixture: insert a user directly through the session."""

    async def _make_user(username: str = "alice", email: str | None = None) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(DEFAULT_PASSWORD),
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
def register_user(async_client: AsyncClient):
    """
    Factory fixture: register a user through the API, log in, and return
    ``(user_json, auth_headers)``.
    """

    async def _register(username: str = "alice", email: str | None = None):
        email = email or f"{username}@example.com"
        resp = await async_client.post("/api/v1/users", json={
            "email": email,
            "username": username,
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 201, resp.text
        login = await async_client.post("/api/v1/auth/login", json={
            "email": email,
            "password": DEFAULT_PASSWORD,
        })
        assert login.status_code == 200, login.text
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        return resp.json(), headers

    return _register
