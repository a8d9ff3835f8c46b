"""Shared test fixtures for async database, sessions, HTTP client, and auth tokens."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ems_api.core.config import Settings
from ems_api.core.dependencies import get_async_session
from ems_api.core.roles import Role
from ems_api.core.security import TokenCodec, hash_password
from ems_api.models import Base
from ems_api.models.user import User


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=60,
        rate_limit_per_minute=1000,
    )


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


async def _add_user(session: AsyncSession, **fields: object) -> User:
    user = User(**fields)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def admin_user(async_session: AsyncSession) -> User:
    """The seeded administrator account."""
    return await _add_user(
        async_session,
        name="System Administrator",
        email="admin@company.com",
        hashed_password=hash_password("admin123"),
        role=Role.ADMIN,
        department="IT",
        employee_id="EMP001",
    )


@pytest.fixture
async def employee_user(async_session: AsyncSession) -> User:
    """An employee-role account linked to EMP010."""
    return await _add_user(
        async_session,
        name="Asha Rao",
        email="asha@company.com",
        hashed_password=hash_password("employee123"),
        role=Role.EMPLOYEE,
        department="Sales",
        employee_id="EMP010",
    )


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession) -> FastAPI:
    """Full application wired to the in-memory test session."""
    from ems_api.main import create_app

    application = create_app(settings)

    async def _session_override() -> AsyncGenerator[AsyncSession]:
        yield async_session

    application.dependency_overrides[get_async_session] = _session_override
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
