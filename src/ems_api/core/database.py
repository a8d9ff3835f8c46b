"""Async database engine and session management.

One engine per process, created by ``init_engine`` at startup (API lifespan or
a CLI command) and released by ``dispose_engine``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

_SERVER_POOL_DEFAULTS: dict[str, int] = {"pool_size": 10, "max_overflow": 5}


def get_engine() -> AsyncEngine:
    """Return the current async engine.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the current session factory.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def init_engine(database_url: str, **kwargs: object) -> AsyncEngine:
    """Create the process-wide engine and session factory.

    Server databases get a bounded connection pool unless the caller passes
    its own pool options. SQLite keeps SQLAlchemy's default pool.

    Args:
        database_url: Async connection string.
        **kwargs: Passed through to ``create_async_engine``.

    Returns:
        The new engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    if make_url(database_url).get_backend_name() != "sqlite" and "poolclass" not in kwargs:
        for option, value in _SERVER_POOL_DEFAULTS.items():
            kwargs.setdefault(option, value)
    _engine = create_async_engine(database_url, **kwargs)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session outside a request, e.g. for seeding or CLI work."""
    async with get_session_factory()() as session:
        yield session


async def create_all() -> None:
    """Create all tables on the current engine (development and tests only)."""
    from ems_api.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose of the engine and forget it; safe to call when none exists."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
