"""Database connection and transaction management.

There is no module-level engine: a ``Database`` is built from settings (or
handed an engine by tests) and passed explicitly to whoever needs it.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncGenerator

from sqlalchemy import Table, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from monthly_payroll.errors import StorageError
from monthly_payroll.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from monthly_payroll.config import Settings

logger = logging.getLogger(__name__)


def _connect_args(url: str, timeout_seconds: float) -> dict[str, Any]:
    """Driver-level timeouts so no storage call can hang indefinitely."""
    if url.startswith("postgresql+asyncpg"):
        return {"timeout": timeout_seconds, "command_timeout": timeout_seconds}
    if url.startswith("sqlite"):
        return {"timeout": timeout_seconds}
    return {}


def get_engine(settings: Settings) -> AsyncEngine:
    """Create async database engine."""
    kwargs: dict[str, Any] = {
        "echo": False,
        "pool_pre_ping": True,
        "connect_args": _connect_args(settings.database_url, settings.storage_timeout_seconds),
    }
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=10,
            max_overflow=20,
            pool_timeout=settings.storage_timeout_seconds,
        )
    return create_async_engine(settings.database_url, **kwargs)


class Database:
    """Store handle: an engine plus the session factory bound to it."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        return cls(get_engine(settings))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Run a unit of work in one transaction.

        Commits when the block exits normally; any exception, including
        cancellation, rolls the whole transaction back. SQLAlchemy failures
        are re-raised as StorageError.
        """
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as e:
                logger.exception("Transaction rolled back after storage failure")
                raise StorageError("transaction", str(e)) from e
            except asyncio.TimeoutError as e:
                logger.exception("Transaction rolled back after storage timeout")
                raise StorageError("transaction", "timed out") from e

    async def create_all(self) -> None:
        """Create all tables (dev/test helper; production uses migrations)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


def dialect_insert(session: AsyncSession, table: Table | type[Base]):
    """INSERT construct with ON CONFLICT support for the session's dialect."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise StorageError("insert", f"dialect {name!r} has no ON CONFLICT support")
