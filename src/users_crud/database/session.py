"""
Engine / session-factory bootstrap.

Nothing here runs at import time: `create_engine_from_settings()` and
`create_session_factory()` are called from the application lifespan (and from
test fixtures), so importing the package never opens a connection.

The engine owns the connection pool, which is the only resource shared between
concurrent requests. Repositories receive the session factory and open one
short-lived session per operation.
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from users_crud.config.settings import Settings
from users_crud.database.base import Base

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the AsyncEngine for the configured database.

    - pool_pre_ping: health-check pooled connections before handing them out.
    - isolation_level: applied to every connection checked out of the pool
      (READ COMMITTED unless DB_ISOLATION_LEVEL says otherwise).
    """
    url = settings.DATABASE_URL
    engine_kwargs: dict = {
        "echo": settings.SQLALCHEMY_ECHO,
        "pool_pre_ping": True,
    }

    if url.startswith("sqlite"):
        # SQLite has no READ COMMITTED and allows a single writer: one pooled
        # connection makes concurrent transactions queue instead of failing
        # with "database is locked", or, for :memory:, sharing one transaction
        # through StaticPool. The pooled connection is kept, so an in-memory
        # database lives as long as the engine.
        engine_kwargs["poolclass"] = AsyncAdaptedQueuePool
        engine_kwargs["pool_size"] = 1
        engine_kwargs["max_overflow"] = 0
    else:
        engine_kwargs["isolation_level"] = settings.DB_ISOLATION_LEVEL
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW

    engine = create_async_engine(url, **engine_kwargs)
    logger.info(
        "db.engine.created",
        extra={"dialect": engine.dialect.name, "isolation_level": engine_kwargs.get("isolation_level")},
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Return the async session factory used by the repositories.

    expire_on_commit=False keeps attribute values readable on the returned
    (detached) records after the repository's transaction has committed.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create the schema if it does not exist yet.

    `create_all` checks for each table before issuing CREATE TABLE, so calling
    this on every startup is safe.
    """
    # Register models with Base.metadata
    from users_crud import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("db.schema.ready", extra={"tables": sorted(Base.metadata.tables)})
