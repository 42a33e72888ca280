"""Shared test configuration and fixtures.

Every test gets a fresh database so that routes can commit and roll back
freely:
- By default a throwaway SQLite file under the test's ``tmp_path``.
- Set ``TEST_DATABASE_URL`` to run against PostgreSQL instead; tables are
  created before and dropped after each test.

Fixtures that create rows commit them, so capture ids before a request
whose handler may roll back.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.auth.jwt import create_token_pair
from app.auth.passwords import hash_password
from app.database import Base, create_tables, get_db
from app.main import app
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User, UserRole
from app.security.rate_limit import auth_rate_limiter

TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create an engine with all tables, dropped again after the test."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False)
    await create_tables(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and asserting, separate from the request sessions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test database.

    Each request gets its own session with the same commit/rollback
    behaviour as :func:`app.database.get_db`.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Rate-limit counters are process-global; start every test from zero."""
    auth_rate_limiter.reset()
    yield
    auth_rate_limiter.reset()


# ---------------------------------------------------------------------------
# Account factories
# ---------------------------------------------------------------------------

CreateUser = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def create_user(db_session: AsyncSession) -> CreateUser:
    """Return a coroutine that creates (and commits) an account.

    ``subscription_status=None`` leaves the account without a subscription row.
    """

    async def _create(
        *,
        email: str | None = None,
        name: str | None = "Test User",
        role: UserRole = UserRole.USER,
        subscription_status: SubscriptionStatus | None = None,
        stripe_customer_id: str | None = None,
    ) -> User:
        unique = uuid.uuid4().hex[:8]
        user = User(
            email=email or f"testuser-{unique}@test.com",
            hashed_password=hash_password(TEST_PASSWORD),
            name=name,
            role=role,
        )
        db_session.add(user)
        await db_session.flush()

        if subscription_status is not None:
            db_session.add(
                Subscription(
                    user_id=user.id,
                    status=subscription_status,
                    stripe_customer_id=stripe_customer_id,
                )
            )
        await db_session.commit()
        return user

    return _create


def headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id), user.role.value)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def make_headers() -> Callable[[User], dict[str, str]]:
    """Return a function building Authorization headers for any account."""
    return headers_for


# ---------------------------------------------------------------------------
# Convenience fixtures: subscribed, unsubscribed and admin accounts
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_user(create_user: CreateUser) -> User:
    """An account with an ACTIVE subscription."""
    return await create_user(
        subscription_status=SubscriptionStatus.ACTIVE,
        stripe_customer_id=f"cus_test_{uuid.uuid4().hex[:8]}",
    )


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Return Authorization headers for the subscribed test user."""
    return headers_for(test_user)


@pytest_asyncio.fixture
async def free_user(create_user: CreateUser) -> User:
    """An account that has never checked out (no subscription row)."""
    return await create_user(name="Free User")


@pytest_asyncio.fixture
async def free_auth_headers(free_user: User) -> dict[str, str]:
    return headers_for(free_user)


@pytest_asyncio.fixture
async def admin_user(create_user: CreateUser) -> User:
    return await create_user(name="Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)
