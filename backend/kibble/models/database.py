"""Database setup, connection management and the transactional unit of work."""

import logging
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..config import get_config
from ..errors import ConcurrentMoveConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE codes for serialization failure and deadlock
_SERIALIZATION_SQLSTATES = {"40001", "40P01"}


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


_engine = None
_async_session_factory = None


def get_database_url() -> str:
    """Get the database URL from configuration."""
    config = get_config()
    db_path = config.database.path

    # Ensure directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite+aiosqlite:///{db_path}"


async def init_db(database_url: Optional[str] = None) -> None:
    """Initialize the database, creating tables if needed."""
    global _engine, _async_session_factory

    if database_url is None:
        database_url = get_database_url()

    _engine = create_async_engine(
        database_url,
        echo=get_config().logging.level == "debug",
    )

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Import all models to register them
    from . import board, column, task  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    if _async_session_factory is None:
        await init_db()

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def is_serialization_failure(error: DBAPIError) -> bool:
    """Whether the store aborted the transaction because of a concurrent writer."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _SERIALIZATION_SQLSTATES:
        return True
    # SQLite reports writer contention as a locked database
    return "database is locked" in str(orig).lower()


async def _run_once(work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    try:
        async with _async_session_factory() as session:
            async with session.begin():
                if _engine.dialect.name == "sqlite":
                    # Take the write lock before the first read so sibling snapshots stay current
                    await session.execute(text("BEGIN IMMEDIATE"))
                return await work(session)
    except DBAPIError as e:
        if is_serialization_failure(e):
            raise ConcurrentMoveConflictError() from e
        raise


async def run_in_transaction(
    work: Callable[[AsyncSession], Awaitable[T]],
    attempts: Optional[int] = None,
) -> T:
    """Run ``work`` in one transaction, committing every write together.

    ``work`` must read everything it depends on through the session it is
    given: on a serialization failure the whole callable runs again against
    a fresh session, so no stale snapshot is ever replayed. Any other error
    rolls back and propagates unchanged.
    """
    if _async_session_factory is None:
        await init_db()

    if attempts is None:
        attempts = get_config().engine.transaction_attempts

    attempt = 1
    while True:
        try:
            return await _run_once(work)
        except ConcurrentMoveConflictError:
            if attempt >= attempts:
                logger.error(f"Transaction conflict persisted after {attempts} attempts")
                raise
            logger.warning(
                f"Transaction conflict, retrying with a fresh read ({attempt}/{attempts})"
            )
            attempt += 1
