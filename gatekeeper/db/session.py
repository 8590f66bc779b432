"""Async database engine, session factory, and dependency injection."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gatekeeper.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_recycle=1800,
    pool_pre_ping=True,
    echo=settings.DATABASE_ECHO,
)

# Objects stay readable after commit; async sessions cannot lazy-refresh.
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides a DB session per request."""
    async with SessionLocal() as db:
        yield db
