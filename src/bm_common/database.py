"""Engine, session factory and the transaction runner (the ledger store seam).

Every state-changing operation goes through `run_in_transaction`: one fresh
session, one `BEGIN ... COMMIT`, all reads and writes inside. Under
SERIALIZABLE isolation PostgreSQL aborts one side of a write-write race with
SQLSTATE 40001; the whole unit of work is then re-run from scratch on a new
session, so nothing from the aborted attempt is ever observable.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.bm_common.errors import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    isolation_level=settings.DB_ISOLATION_LEVEL,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


def is_retryable(exc: DBAPIError) -> bool:
    """True if the driver error is a serialization failure or deadlock."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in RETRYABLE_SQLSTATES


async def run_in_transaction(
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    session_factory: Callable[[], AsyncSession] | None = None,
    max_attempts: int | None = None,
) -> T:
    """Run `work(session)` atomically, retrying the whole unit on store conflicts.

    `work` must be re-runnable: it reads everything it needs through the
    session it is given and keeps no state across attempts. AppError raised by
    `work` rolls the transaction back and propagates unchanged.
    """
    factory = session_factory or async_session_factory
    attempts = max_attempts or settings.TX_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            async with factory() as session:
                async with session.begin():
                    return await work(session)
        except DBAPIError as exc:
            if not is_retryable(exc):
                raise
            logger.warning(
                "Transaction conflict on attempt %d/%d: %s", attempt, attempts, exc.orig
            )
    raise TransactionConflictError(attempts)
