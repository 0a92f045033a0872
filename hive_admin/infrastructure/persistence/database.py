"""Persistence: async engine, session factory, Base, and transaction helper.

Engine and session factory are created lazily on first use (get_db) so
import does not trigger Settings validation. Schema is managed by Alembic
migrations in production; tests call Base.metadata.create_all.

Mutation services receive a session that has not begun a transaction and
open one with transaction(), which enforces a timeout and rolls back on
any error (including the timeout itself).
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hive_admin.core.config import get_settings
from hive_admin.domain.exceptions import TransactionTimeoutException

logger = logging.getLogger(__name__)

# Set by _ensure_engine() on first use; avoids get_settings() at import time.
engine: Any = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


# Execution option set by transaction(): take SQLite's write lock at BEGIN.
WRITE_LOCK_OPTION = "hive_write_lock"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_write_transaction(conn: Any) -> None:
    """Emit BEGIN IMMEDIATE for mutation transactions.

    The driver would otherwise defer BEGIN to the first write, leaving the
    reads that guard it outside the lock. Other transactions keep the
    driver's behaviour.
    """
    if conn.get_execution_options().get(WRITE_LOCK_OPTION):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with driver-appropriate options.

    PostgreSQL gets pool sizing and asyncpg command_timeout from settings;
    SQLite gets foreign key enforcement on every connection.
    """
    settings = get_settings()
    kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("postgresql"):
        kwargs.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size if settings.db_pool_size is not None else 20,
            max_overflow=(
                settings.db_max_overflow if settings.db_max_overflow is not None else 30
            ),
            pool_recycle=3600,
            connect_args={
                "command_timeout": (
                    settings.db_command_timeout
                    if settings.db_command_timeout is not None
                    else 60
                )
            },
        )
    new_engine = create_async_engine(database_url, **kwargs)
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        event.listen(new_engine.sync_engine, "begin", _begin_sqlite_write_transaction)
    return new_engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory shared by the app and tests (no expiry on commit, no autoflush)."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _ensure_engine() -> None:
    """Create engine and AsyncSessionLocal on first use."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    settings = get_settings()
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    AsyncSessionLocal = build_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating the engine if needed."""
    _ensure_engine()
    assert AsyncSessionLocal is not None
    return AsyncSessionLocal


async def dispose_engine() -> None:
    """Dispose the engine (called on app shutdown)."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    AsyncSessionLocal = None


async def _open_write_connection(session: AsyncSession, timeout_seconds: float) -> None:
    """Start the transaction on its connection.

    SQLite takes the database write lock up front; PostgreSQL bounds every
    statement (SET LOCAL takes no bind params) and relies on row locks.
    """
    conn = await session.connection(execution_options={WRITE_LOCK_OPTION: True})
    if conn.dialect.name != "postgresql":
        return
    millis = max(1, int(timeout_seconds * 1000))
    await conn.execute(text(f"SET LOCAL statement_timeout = {millis}"))


@asynccontextmanager
async def transaction(
    session: AsyncSession, timeout_seconds: float
) -> AsyncIterator[AsyncSession]:
    """Run the block in one transaction that commits on success and rolls back on error.

    The whole block, commit included, must finish within timeout_seconds;
    otherwise it is cancelled, rolled back, and TransactionTimeoutException
    is raised.

    Raises:
        TransactionTimeoutException: If the deadline passed.
    """
    try:
        async with asyncio.timeout(timeout_seconds):
            async with session.begin():
                await _open_write_connection(session, timeout_seconds)
                yield session
    except TimeoutError as exc:
        logger.warning(
            "Transaction exceeded %.1fs and was rolled back", timeout_seconds
        )
        raise TransactionTimeoutException(timeout_seconds) from exc


async def get_db() -> AsyncIterator[AsyncSession]:
    """Database session dependency for read operations and read-path permission gating.

    Does not commit. Yields a session and closes it on exit.
    """
    async with get_session_factory()() as session:
        yield session


async def get_db_for_write() -> AsyncIterator[AsyncSession]:
    """Database session dependency for mutation services.

    A distinct dependency from get_db so the request gets a second, untouched
    session: services open their own transaction with transaction() and a
    configured timeout.
    """
    async with get_session_factory()() as session:
        yield session
