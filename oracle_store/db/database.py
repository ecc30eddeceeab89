from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings


def _ensure_sqlite_dir(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _get_async_url(url: str) -> str:
    """Convert a plain sqlite URL to the aiosqlite driver when needed."""
    if url.startswith("sqlite+aiosqlite://"):
        return url
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_flat_engine(url: str, echo: bool = False) -> Engine:
    """Create the synchronous engine backing a flat record store."""
    _ensure_sqlite_dir(url)
    engine = create_engine(url, echo=echo, pool_pre_ping=True)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


def create_document_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine backing a document store."""
    async_url = _get_async_url(url)
    _ensure_sqlite_dir(async_url)
    return create_async_engine(async_url, echo=echo, pool_pre_ping=True)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()


@asynccontextmanager
async def async_session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async transactional scope around a series of operations."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            await session.rollback()
            raise


# ========================================
# Process-wide defaults
# ========================================

_flat_engine: Engine | None = None
_document_engine: AsyncEngine | None = None


def get_flat_engine() -> Engine:
    """Get or create the default flat store engine (lazy initialization)."""
    global _flat_engine
    if _flat_engine is None:
        settings = get_settings()
        _flat_engine = create_flat_engine(settings.flat_store_url, echo=settings.sql_echo)
        logger.debug(f"Flat store engine created: {settings.flat_store_url}")
    return _flat_engine


def get_document_engine() -> AsyncEngine:
    """Get or create the default document store engine (lazy initialization)."""
    global _document_engine
    if _document_engine is None:
        settings = get_settings()
        _document_engine = create_document_engine(settings.document_store_url, echo=settings.sql_echo)
        logger.debug(f"Document store engine created: {settings.document_store_url}")
    return _document_engine
