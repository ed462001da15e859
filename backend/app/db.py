"""Async database engine and session management"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.models.presale import Base

logger = logging.getLogger(__name__)


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    Make every SQLite write transaction take the write lock up front.

    Deferred transactions that read and then write deadlock each other under
    concurrency; BEGIN IMMEDIATE makes the second writer wait instead.
    Connections with the `read_only` execution option keep a deferred BEGIN
    so readers are not queued behind writers.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get("read_only"):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Database engine and session manager"""

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._read_engine: Optional[AsyncEngine] = None
        self._read_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    async def init(self, url: Optional[str] = None, create_schema: Optional[bool] = None) -> None:
        """
        Create the engine and, if configured, the tables.

        This should be called once at application startup.
        """
        url = url or settings.database_url
        if create_schema is None:
            create_schema = settings.database_create_schema

        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["timeout"] = 30

        self._engine = create_async_engine(url, echo=settings.database_echo, connect_args=connect_args)
        if url.startswith("sqlite"):
            _serialize_sqlite_writers(self._engine)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        self._read_engine = self._engine.execution_options(read_only=True)
        self._read_sessionmaker = async_sessionmaker(self._read_engine, expire_on_commit=False)

        if create_schema:
            try:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as e:
                logger.error(f"Database schema creation failed: {e}")
                raise
        logger.info(f"Database initialized ({self._engine.dialect.name})")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide a transactional scope around a series of database operations.

        Commits when the block exits normally and rolls back on any exception.

        Usage:
            async with db.session() as session:
                session.add(some_object)
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        async with self._sessionmaker() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def read_session(self) -> AsyncIterator[AsyncSession]:
        """Session for queries only. On SQLite it does not wait for writers to finish."""
        if self._read_sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        async with self._read_sessionmaker() as session:
            async with session.begin():
                yield session

    async def ping(self) -> bool:
        try:
            if self._read_engine is None:
                raise RuntimeError("Database not initialized. Call init() first.")
            async with self._read_engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError) as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    async def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            self._read_engine = None
            self._read_sessionmaker = None


# Global database instance
db = Database()
