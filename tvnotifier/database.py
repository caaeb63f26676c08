import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tvnotifier.models import Base

logger = logging.getLogger(__name__)

# Set by init_db() at startup, cleared by close_db()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_conn, _) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine, preparing the SQLite file location if needed"""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_async_engine(url, echo=False, pool_pre_ping=True)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        url,
        echo=False,
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


async def init_db(database_url: str, *, create_tables: bool = False) -> None:
    """
    Initialize the database engine and session factory

    Args:
        database_url: SQLAlchemy async URL

    Keyword Args:
        create_tables: Create missing tables (local SQLite setups and tests)
    """
    global _engine, _session_factory

    if _engine is not None:
        await close_db()

    logger.info("Initializing database at %s", make_url(database_url).render_as_string(hide_password=True))
    _engine = _build_engine(database_url)

    if create_tables:
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Dispose of the engine on shutdown"""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database connections closed")


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Open a session wrapped in a transaction.

    Commits when the block completes and rolls back if it raises.

    Raises:
        RuntimeError: If init_db() has not been called
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() during startup.")

    async with _session_factory() as session:
        async with session.begin():
            yield session
