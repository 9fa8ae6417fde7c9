"""Async engine and session factory shared by the API, init_db and the admin script."""

from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from preschool.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.database_echo, "future": True}
    if url.startswith("sqlite"):
        # aiosqlite runs the connection on a worker thread
        options["connect_args"] = {"check_same_thread": False}
    else:
        # Postgres may drop idle connections; test them on checkout and recycle after 5 minutes
        options.update(pool_pre_ping=True, pool_recycle=300)
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request; services commit or roll back explicitly."""
    async with AsyncSessionLocal() as session:
        yield session
