"""Pytest configuration and fixtures for JobMarket tests.

Each test gets a fresh in-memory SQLite database (aiosqlite) with every
table created from the model metadata; the API client shares the test's
session so rows added by fixtures are visible to requests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jobmarket.auth.jwt import create_access_token
from jobmarket.auth.password import hash_password
from jobmarket.database import Base, get_db
from jobmarket.main import app
from jobmarket.models.business import Business
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User, UserType

TEST_PASSWORD = "testpassword123"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the database dependency bound to the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Factories ────────────────────────────────────────────────────

@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make(
        email: str,
        user_type: UserType = UserType.EMPLOYER,
        full_name: str | None = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            hashed_password=hash_password(TEST_PASSWORD),
            user_type=user_type,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_business(db_session: AsyncSession):
    async def _make(owner: User, name: str = "Corner Cafe", is_active: bool = True) -> Business:
        business = Business(owner_id=owner.id, name=name, is_active=is_active)
        db_session.add(business)
        await db_session.flush()
        return business

    return _make


@pytest.fixture
def make_member(db_session: AsyncSession):
    async def _make(
        business: Business,
        user: User,
        role: str = "staff",
        permissions: list[str] | None = None,
        active: bool = True,
    ) -> TeamMember:
        member = TeamMember(
            business_id=business.id,
            user_id=user.id,
            name=user.full_name,
            email=user.email,
            role=role,
            permissions=permissions or [],
            active=active,
            invited_by_id=business.owner_id,
        )
        db_session.add(member)
        await db_session.flush()
        return member

    return _make


# ── Common Data ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def owner(make_user) -> User:
    return await make_user("owner@example.com", full_name="Olivia Owner")


@pytest_asyncio.fixture
async def business(make_business, owner: User) -> Business:
    return await make_business(owner)


@pytest_asyncio.fixture
async def staff_user(make_user) -> User:
    return await make_user("staff@example.com", full_name="Sam Staff")


@pytest_asyncio.fixture
async def outsider(make_user) -> User:
    return await make_user("outsider@example.com", full_name="Oscar Outsider")


# ── Auth Helpers ─────────────────────────────────────────────────

@pytest.fixture
def headers_for():
    """Return a function building bearer headers for a user."""

    def _headers(user: User, **extra: str) -> dict:
        token = create_access_token(user_id=user.id, user_type=user.user_type.value)
        return {"Authorization": f"Bearer {token}", **extra}

    return _headers


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "access: Access resolution tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
