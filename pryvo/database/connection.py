"""Async database connection management for the Pryvo backend."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import sentry_sdk
from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pryvo.database.schema import Base
from pryvo.utils.errors import DatabaseError
from pryvo.utils.logging import get_logger

logger = get_logger(__name__)


def _redact(url: str) -> str:
    if "@" not in url:
        return url
    try:
        credentials, host = url.rsplit("@", 1)
        if ":" in credentials:
            scheme_user, _ = credentials.rsplit(":", 1)
            return f"{scheme_user}:***@{host}"
    except ValueError:
        return "REDACTED_MALFORMED_URL"
    return url


class Database:
    """
    Owns the async engine and hands out transactional sessions.

    One instance per process, created at start-up and disposed at shutdown.
    Driver-level failures (lost connection, locked database) surface as
    `DatabaseError`; integrity errors pass through untouched so the stores can
    turn them into business outcomes.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any) -> None:
        self.url = url
        try:
            self.engine: AsyncEngine = create_async_engine(url, echo=echo, pool_pre_ping=True, **engine_kwargs)
        except Exception as e:
            logger.error("Failed to create database engine", error=str(e), url=_redact(url))
            raise DatabaseError("Failed to connect to database", details={"error": str(e), "url": _redact(url)}) from e

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._sessions = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Database engine created", dialect=self.engine.dialect.name)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self, op: Optional[str] = None) -> AsyncIterator[AsyncSession]:
        """
        Open a session wrapped in a transaction.

        Commits when the block exits cleanly, rolls back otherwise.

        Args:
            op (Optional[str]): Name recorded on the tracing span.

        Raises:
            DatabaseError: If the driver reports an operational failure.
        """
        with sentry_sdk.start_span(op="db.session", name=op or "session"):
            try:
                async with self._sessions() as session:
                    async with session.begin():
                        yield session
            except (OperationalError, InterfaceError) as e:
                logger.error("Database operation failed", op=op, error=str(e))
                raise DatabaseError(f"Database operation failed: {op or 'session'}", details={"error": str(e)}) from e

    async def create_tables(self) -> None:
        """Create all tables that don't exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
