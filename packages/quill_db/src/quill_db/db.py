import logging
from collections.abc import AsyncGenerator
from typing import Any, Optional

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

# Queue pool options that SQLite engines reject
_POOL_OPTIONS = ("pool_size", "max_overflow", "pool_pre_ping", "pool_timeout")


def normalize_url(database_url: str) -> URL:
    """
    Parse ``database_url`` and select the async driver for bare backends.

    ``postgresql://`` becomes ``postgresql+asyncpg://`` and ``sqlite://``
    becomes ``sqlite+aiosqlite://``; explicit drivers are kept.
    """
    url = make_url(database_url)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+asyncpg")
    elif url.drivername == "sqlite":
        url = url.set(drivername="sqlite+aiosqlite")
    return url


def _engine_options(url: URL, echo: bool, overrides: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo, **overrides}
    if url.get_backend_name() != "sqlite":
        options.setdefault("pool_pre_ping", True)
        return options

    for key in _POOL_OPTIONS:
        options.pop(key, None)
    options.setdefault("connect_args", {"check_same_thread": False})
    if url.database in (None, "", ":memory:"):
        # Every session must see the same in-memory database
        options.setdefault("poolclass", StaticPool)
    return options


def _on_connect_enable_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")  # pragma: no cover
    def _pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


def init_db(
    database_url: str,
    *,
    echo: bool = False,
    **engine_kwargs: Any,
) -> None:
    """
    Create the process-wide async engine and session factory.

    Pool settings such as ``pool_size`` are accepted for every backend and
    silently dropped for SQLite. Foreign keys are enforced on SQLite so
    ``ON DELETE SET NULL`` behaves as on PostgreSQL.

    Example:
        >>> init_db("sqlite+aiosqlite:///quill.db", pool_size=5)
    """
    global _engine, _session_factory

    url = normalize_url(database_url)
    _engine = create_async_engine(url, **_engine_options(url, echo, engine_kwargs))
    if url.get_backend_name() == "sqlite":
        _on_connect_enable_foreign_keys(_engine)

    _session_factory = async_sessionmaker(
        bind=_engine,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("Database engine initialized for %s", url.render_as_string())


def _initialized() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    if _engine is None or _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine, _session_factory


def get_engine() -> AsyncEngine:
    return _initialized()[0]


async def create_all() -> None:
    """Create every table registered on the shared ``Model`` metadata."""
    from .models import Model

    async with get_engine().begin() as conn:
        await conn.run_sync(Model.metadata.create_all)


async def close_db() -> None:
    """
    Dispose of the engine. ``init_db`` must be called again before reuse.
    """
    global _engine, _session_factory

    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request, closed when the request ends.

    Used as a FastAPI dependency by every resource endpoint.
    """
    _, factory = _initialized()
    async with factory() as session:
        yield session
