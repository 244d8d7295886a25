"""
List Scanner Backend — Database Engine & Schema Management
===========================================================

What:  Async SQLAlchemy engine construction, the declarative Base, and
       schema lifecycle helpers.
How:   `build_engine()` creates an async engine from a URL. For SQLite it
       installs a connect hook that turns on `PRAGMA foreign_keys`, which
       is required for the items cascade and the lists.photo_id nullify
       rules to be enforced. `build_session_factory()` produces the
       AsyncSession factory the DataStore uses.
Who:   Used by the DataStore, Alembic and the test suite.
When:  Engines are created by DataStore.from_url(); sessions are opened per
       store operation.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping / pool_recycle are applied to
    server databases (PostgreSQL). SQLite engines keep SQLAlchemy's
    default pool for the URL.
"""

from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from listscanner.config import settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, `create_schema()` and
    Alembic's autogenerate.
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign key enforcement off for every new connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create an async engine for `database_url` (defaults to settings).

    Args:
        database_url: SQLAlchemy async URL; falls back to settings.database_url.
        echo: Log SQL statements; defaults to True when log_level is DEBUG.
    """
    url = database_url or settings.database_url
    if echo is None:
        echo = settings.log_level == "DEBUG"

    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps returned ORM objects readable after the
    transaction that loaded them has committed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create the photos, lists, items and preferences tables if they do not exist.

    Used at startup when `auto_create_schema` is on, and by the tests.
    """
    # Registers every model with Base.metadata
    import listscanner.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
