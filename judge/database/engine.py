"""
Process-wide async engine for the judge's tables.

The API and the worker each call ``init_db`` once at startup (via
``judge_runtime``). SQLite URLs are accepted for local runs and tests.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

from judge.config import DatabaseConfig, get_settings
from judge.database.models import Base

logger = get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(url: str, config: DatabaseConfig) -> AsyncEngine:
    """Create an engine for *url*; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=config.echo)
    return create_async_engine(
        url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_pre_ping=True,
    )


async def init_db(url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Connect, create missing tables and return the session factory."""
    global _engine, _session_factory

    config = get_settings().database
    db_url = url or config.url

    _engine = build_engine(db_url, config)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Strip credentials before logging
    logger.info("Judge database ready", url=db_url.rsplit("@", 1)[-1])
    return _session_factory


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Judge database closed")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("init_db() has not been called in this process")
    return _session_factory
