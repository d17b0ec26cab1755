"""Database connection, session and schema management for the knowledge graph."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.schema import CreateIndex, CreateTable

from memory_graph.constants import DB_PATH_ENV, DB_URL_ENV, DEFAULT_DB_FILENAME

from .models import Base

logger = logging.getLogger(__name__)

# Global database manager instance
_db_manager: Optional["DatabaseManager"] = None


def _normalize_db_url(db_url: str) -> str:
    """Rewrite sync driver URLs to the async drivers used by the engine."""
    if db_url.startswith("sqlite://"):
        return db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if db_url.startswith("postgresql://"):
        return db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    if db_url.startswith("postgresql+asyncpg://"):
        return db_url.replace("postgresql+asyncpg://", "postgresql+psycopg://", 1)
    if db_url.startswith("postgresql+psycopg2://"):
        return db_url.replace("postgresql+psycopg2://", "postgresql+psycopg://", 1)
    return db_url


def _create_schema(connection) -> None:
    """Create every table and index, skipping the ones that already exist."""
    for table in Base.metadata.sorted_tables:
        connection.execute(CreateTable(table, if_not_exists=True))
        for index in sorted(table.indexes, key=lambda idx: idx.name):
            connection.execute(CreateIndex(index, if_not_exists=True))


class DatabaseManager:
    """Manages database connections, sessions and the graph schema.

    Every session opened through ``get_session`` is its own transaction:
    committed when the block completes, rolled back if it raises.
    """

    def __init__(
        self,
        db_url: Optional[str] = None,
        db_path: Optional[Path] = None,
        echo: bool = False,
    ):
        """Initialize database manager.

        Args:
            db_url: Database URL (SQLite or PostgreSQL)
            db_path: Path to the SQLite database file
            echo: Whether to echo SQL statements for debugging

        Note: Either db_url or db_path must be provided. If both are provided,
        db_url takes precedence.
        """
        if db_url:
            self.db_url = _normalize_db_url(db_url)
            self.is_sqlite = self.db_url.startswith("sqlite")
            self.db_path = None
        elif db_path:
            self.db_url = f"sqlite+aiosqlite:///{db_path}"
            self.is_sqlite = True
            self.db_path = db_path
        else:
            raise ValueError("Either db_url or db_path must be provided")

        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.SessionLocal: Optional[async_sessionmaker] = None

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (
            self.db_url.endswith(":memory:") or self.db_url.endswith("://")
        )

    @property
    def dialect_name(self) -> str:
        if self.engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.engine.dialect.name

    async def connect(self) -> None:
        """Create database engine and session factory."""
        if self.engine is not None:
            logger.warning("Database already connected")
            return

        if self.is_sqlite:
            # In-memory databases live inside one connection, so share it.
            self.engine = create_async_engine(
                self.db_url,
                echo=self.echo,
                poolclass=StaticPool if self.is_memory else NullPool,
                connect_args={"check_same_thread": False},
            )

            @event.listens_for(self.engine.sync_engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.close()

        else:
            self.engine = create_async_engine(
                self.db_url,
                echo=self.echo,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=3600,
                connect_args=(
                    {"connect_timeout": 10} if "postgresql" in self.db_url else {}
                ),
            )

        self.SessionLocal = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.debug(f"Database connected: {self.engine.url.render_as_string()}")

    async def init_schema(self) -> None:
        """Ensure the entities and relations tables exist.

        Safe to call on every startup, from several processes at once.

        Raises:
            RuntimeError: If database not connected
        """
        if self.engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self.engine.begin() as conn:
            await conn.run_sync(_create_schema)
        logger.debug("Knowledge graph schema ready")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a new database session with proper transaction management.

        Yields:
            SQLAlchemy async session instance

        Raises:
            RuntimeError: If database not connected
        """
        if self.SessionLocal is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self, close_connections: bool = True) -> None:
        """Close database connections and cleanup resources.

        Args:
            close_connections: Close pooled connections. Pass False when the
                event loop that opened them has already finished; the pool is
                then dropped without touching them.
        """
        if self.engine:
            await self.engine.dispose(close=close_connections)
            self.engine = None
            self.SessionLocal = None
            logger.debug("Database connections closed")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def get_database_manager(
    db_url: Optional[str] = None, db_path: Optional[Path] = None
) -> DatabaseManager:
    """Get or create the global database manager.

    Resolution order: explicit arguments, ``MEMORY_GRAPH_DB_URL``,
    ``DATABASE_PATH``, then ``memory_graph.db`` in the working directory.

    Returns:
        DatabaseManager instance
    """
    global _db_manager

    if _db_manager is None:
        if db_url is None and db_path is None:
            db_url = os.getenv(DB_URL_ENV)

        if db_url is None and db_path is None:
            db_path_env = os.getenv(DB_PATH_ENV)
            db_path = Path(db_path_env) if db_path_env else Path(DEFAULT_DB_FILENAME)

        _db_manager = DatabaseManager(db_url=db_url, db_path=db_path)

    return _db_manager


async def initialize_database(
    db_url: Optional[str] = None,
    db_path: Optional[Path] = None,
    echo: bool = False,
) -> DatabaseManager:
    """Connect the global database manager and make sure the schema exists.

    Returns:
        Initialized DatabaseManager instance
    """
    manager = get_database_manager(db_url=db_url, db_path=db_path)
    manager.echo = echo
    if manager.engine is None:
        await manager.connect()
    await manager.init_schema()
    return manager


async def close_database(close_connections: bool = True) -> None:
    """Close the global database manager."""
    global _db_manager
    if _db_manager:
        await _db_manager.close(close_connections=close_connections)
        _db_manager = None
