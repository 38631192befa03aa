"""Async engine and session factory."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings


def _connect_args(url: str) -> dict[str, Any]:
    # Transaction-mode poolers reuse server connections across clients, which
    # breaks asyncpg's prepared statement cache.
    if settings.db_transaction_pooler or "pooler." in url:
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    connect_args=_connect_args(settings.database_url),
)

# Every unit of work opens its own session from here
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Session dependency for endpoints that query outside a unit of work."""
    async with async_session_factory() as session:
        yield session
