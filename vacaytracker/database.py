"""Async SQLAlchemy engine, session management and the unit-of-work scope."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vacaytracker.config import settings

_engine_kwargs: dict = {
    "echo": settings.ENVIRONMENT == "development",
    "pool_pre_ping": True,
}
if not settings.DATABASE_URL.startswith("sqlite"):
    _engine_kwargs.update(pool_size=10, max_overflow=20)

# Async engine for FastAPI
engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

# Async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: yield an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block as one transaction on *session*.

    Commits when the block exits cleanly and rolls back on every other exit,
    including task cancellation, so nothing partial is ever committed::

        async with unit_of_work(db) as tx:
            ...
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
