"""
Worknest - Database Connection
==============================

Async SQLAlchemy setup with a bounded connection pool.

A single ``Database`` is constructed at startup and handed to every
repository. Each logical operation runs inside ``Database.transaction()``,
which checks out one connection, wraps the work in one transaction and
translates driver failures into the typed errors of ``worknest.core.errors``.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from worknest.core.config import Settings
from worknest.core.errors import ConflictError, Overloaded, StorageError

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# ==========================================================================
# Engine Setup
# ==========================================================================

def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(
    url: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: float = 10.0,
    echo: bool = False,
    **engine_kwargs: Any,
) -> AsyncEngine:
    """Create async database engine with connection pooling."""
    # SQLite doesn't support pool_size/max_overflow
    if "sqlite" in url:
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            **engine_kwargs,
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before use
        **engine_kwargs,
    )


# ==========================================================================
# Database Handle
# ==========================================================================

class Database:
    """
    Explicit connection pool shared by all repositories.

    Args:
        url: SQLAlchemy async database URL
        max_connections: Upper bound on concurrently checked-out connections
        acquire_timeout: Seconds to wait for a free connection before
            failing with ``Overloaded``
        **engine_kwargs: Passed through to ``create_engine``
    """

    def __init__(
        self,
        url: str,
        *,
        max_connections: int = 15,
        acquire_timeout: float = 10.0,
        **engine_kwargs: Any,
    ) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")

        self.url = url
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout
        self.engine = create_engine(url, pool_timeout=acquire_timeout, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._slots = asyncio.Semaphore(max_connections)

    @classmethod
    def from_settings(cls, settings: Settings, **engine_kwargs: Any) -> "Database":
        """Build the pool described by application settings."""
        return cls(
            settings.DATABASE_URL,
            max_connections=settings.DATABASE_POOL_SIZE + settings.DATABASE_MAX_OVERFLOW,
            acquire_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            echo=settings.DATABASE_ECHO,
            **engine_kwargs,
        )

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.url

    async def _acquire_slot(self) -> None:
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Connection pool exhausted",
                max_connections=self.max_connections,
                waited_seconds=self.acquire_timeout,
            )
            raise Overloaded() from None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Run one logical operation in a single transaction.

        Commits when the block exits normally and rolls back on any
        exception. Storage failures surface as ``ConflictError``,
        ``Overloaded`` or ``StorageError``; errors raised by the caller
        inside the block propagate unchanged.

        Usage:
            async with database.transaction() as session:
                session.add(obj)
        """
        await self._acquire_slot()
        try:
            async with self.session_factory() as session:
                try:
                    async with session.begin():
                        yield session
                except IntegrityError as exc:
                    logger.info("Constraint violation", error=str(exc.orig))
                    raise ConflictError() from exc
                except PoolTimeoutError as exc:
                    logger.warning("Timed out acquiring pooled connection")
                    raise Overloaded() from exc
                except SQLAlchemyError as exc:
                    logger.error("Storage failure", error=str(exc))
                    raise StorageError() from exc
        finally:
            self._slots.release()

    async def ping(self) -> bool:
        """Check that the store answers a trivial query."""
        try:
            async with self.transaction() as session:
                await session.execute(text("SELECT 1"))
        except StorageError:
            return False
        return True

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
