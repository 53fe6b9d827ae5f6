"""Database engine and session management for the per-user store."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .store.models import Base


def get_database_url(db_path: str) -> str:
    """SQLite URL for a database file, creating its directory."""
    if not db_path:
        raise ValueError("Database path is required")
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{db_path}"


class Database:
    """
    One engine and one session factory for a database file.

    Created once at startup from Settings.database_path and shared by
    the services that read and write the store.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_path(cls, db_path: str) -> "Database":
        return cls(create_async_engine(get_database_url(db_path), echo=False))

    async def init(self) -> None:
        """Create the store tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session committed on success and rolled back on error."""
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self.engine.dispose()
