"""SQLAlchemy database manager for persisted session state."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ..config import Settings
from .models import Base


def to_async_url(database_url: str) -> str:
    """Select the async driver for a database URL."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


class SQLAlchemyManager:
    """Manages SQLAlchemy database connections and sessions."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._metadata = Base.metadata

    async def initialize(self, database_url: str) -> None:
        """Initialize the async engine and session factory."""
        database_url = to_async_url(database_url)

        engine_kwargs: dict[str, Any] = {"echo": False}
        if database_url.startswith("sqlite"):
            if ":memory:" in database_url or database_url.endswith("://"):
                # One shared connection, otherwise each session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs.update(pool_size=5, max_overflow=5, pool_pre_ping=True, pool_recycle=3600)

        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get an async database session."""
        if not self._sessionmaker:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all_tables(self) -> None:
        """Create all tables defined by models."""
        if not self._engine:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(self._metadata.create_all)

    async def drop_all_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        if not self._engine:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(self._metadata.drop_all)


# Global instance
_db_manager: SQLAlchemyManager | None = None


def get_db_manager() -> SQLAlchemyManager:
    """Get the global database manager instance."""
    if _db_manager is None:
        raise RuntimeError("Database manager not initialized")
    return _db_manager


def set_db_manager(manager: SQLAlchemyManager | None) -> None:
    """Set the global database manager instance."""
    global _db_manager
    _db_manager = manager


async def init_db(settings: Settings, database_url: str) -> SQLAlchemyManager:
    """Initialize the database manager and create the session tables."""
    manager = SQLAlchemyManager(settings)
    await manager.initialize(database_url)
    await manager.create_all_tables()
    set_db_manager(manager)
    return manager
