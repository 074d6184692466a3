"""Database configuration and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from cashflow_report.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=3600,  # Recycle connections after 1 hour
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def create_session_maker_from_db(db: AsyncSession) -> async_sessionmaker[AsyncSession]:
    """Create a new session maker sharing the same engine as the provided session.

    An AsyncSession must not be used by concurrent tasks, so every report in a
    batch gets its own session from this maker.
    """
    bind = db.bind or db.get_bind()
    if isinstance(bind, AsyncEngine):
        async_engine = bind
    elif isinstance(bind, Engine) and getattr(bind, "_async_engine", None):
        async_engine = bind._async_engine
    else:
        async_engine = getattr(bind, "async_engine", None)

    if not isinstance(async_engine, AsyncEngine):
        raise RuntimeError("Async engine unavailable for session maker creation")

    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database session."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
