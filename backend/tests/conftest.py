"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database (aiosqlite) with every table
created from ``Base.metadata``. External services (Stripe, Supabase Auth
admin API, Spotify) are always mocked.
"""

import os

# Settings are read at import time, so test defaults must be in place first.
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("PRICE_ID_PRO", "price_test_pro")
os.environ.setdefault("SPOTIFY_CLIENT_ID", "spotify-client-test")
os.environ.setdefault("SPOTIFY_CLIENT_SECRET", "spotify-secret-test")
os.environ.setdefault("SPOTIFY_REDIRECT_URI", "http://testserver/api/spotify/callback")
os.environ.setdefault("PUBLIC_APP_URL", "http://localhost:5173")

import time  # noqa: E402
import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import royally_tuned.models  # noqa: E402,F401
from royally_tuned.config import settings  # noqa: E402
from royally_tuned.database import Base, get_db  # noqa: E402
from royally_tuned.identity.admin import IdentityUser  # noqa: E402
from royally_tuned.main import app  # noqa: E402
from royally_tuned.models.profile import Profile  # noqa: E402

# ---------------------------------------------------------------------------
# Database: one in-memory SQLite database per test
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite defers BEGIN, which breaks SAVEPOINT; take over transaction control.
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Let the app render its own 500 responses instead of re-raising into the test
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------


def _make_identity_user(
    user_id: uuid.UUID | None = None,
    email: str | None = "artist@test.com",
    app_metadata: dict | None = None,
) -> IdentityUser:
    """Build an IdentityUser as the Supabase admin API would return it."""
    return IdentityUser(
        id=user_id or uuid.uuid4(),
        email=email,
        app_metadata=dict(app_metadata or {}),
    )


def _make_access_token(
    user_id: uuid.UUID,
    email: str = "artist@test.com",
    app_metadata: dict | None = None,
    expires_in: int = 3600,
) -> str:
    """Sign an access token the way Supabase does (HS256, audience 'authenticated')."""
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.supabase_jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        "app_metadata": app_metadata or {},
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


@pytest.fixture
def make_user():
    return _make_identity_user


@pytest.fixture
def make_token():
    return _make_access_token


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {_make_access_token(user_id)}"}


@pytest_asyncio.fixture
async def pro_profile(db_session: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = Profile(id=user_id, email="artist@test.com", subscription_status="pro")
    db_session.add(profile)
    await db_session.flush()
    return profile


@pytest_asyncio.fixture
async def free_profile(db_session: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = Profile(id=user_id, email="artist@test.com", subscription_status="free")
    db_session.add(profile)
    await db_session.flush()
    return profile
