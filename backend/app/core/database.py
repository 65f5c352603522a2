"""
Database engine and sessions

The engine is built on first use so importing models (or the settings
they read) never opens a connection. ``DATABASE_URL`` may use the plain
``sqlite:///`` / ``postgresql://`` schemes; they are mapped onto the
async drivers.
"""

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings


Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

_ASYNC_SCHEMES = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite:///": "sqlite+aiosqlite:///",
}


def get_database_url() -> str:
    url = settings.DATABASE_URL
    for plain, driver in _ASYNC_SCHEMES.items():
        if url.startswith(plain):
            return driver + url[len(plain):]
    return url


def _create_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        # aiosqlite runs each connection on its own thread
        return create_async_engine(
            url,
            echo=settings.DB_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
    return create_async_engine(url, echo=settings.DB_ECHO, pool_pre_ping=True)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = _create_engine(get_database_url())
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the application engine"""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency.

    Services commit their own work; anything a failed request left
    pending is rolled back.
    """
    async with get_session_local()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for scripts: commits on success, rolls back on error"""
    async with get_session_local()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_db() -> float:
    """Round-trip ``SELECT 1``; returns latency in milliseconds"""
    started = time.perf_counter()
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))
    return (time.perf_counter() - started) * 1000


async def init_db():
    """Create any missing tables"""
    import app.models  # noqa: F401 - registers the tables on Base.metadata

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
