"""
Faxon Portal API — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, declarative Base and the
       FastAPI session dependency.
How:   One pooled engine per process; every request gets its own session,
       committed on success and rolled back on error.
Who:   Route handlers receive sessions through Depends(get_db_session);
       services never open sessions themselves.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600.
    SQLite URLs (used by the test suite) skip the pool options.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from faxon_api.config import settings
from faxon_api.exceptions import DatabaseError, TablesNotFoundError


# PostgreSQL SQLSTATE for "relation does not exist"
UNDEFINED_TABLE_SQLSTATE = "42P01"


def _engine_options(database_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: attributes stay readable after commit, which the
# services rely on when building responses after the transaction ends
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits whatever the handler left pending
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Services that need an explicit transaction boundary (document delete)
    call commit/rollback themselves; the final commit here is then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def is_undefined_table(exc: BaseException) -> bool:
    """
    Tell whether a database exception means "table does not exist".

    asyncpg exposes the SQLSTATE as `sqlstate`, psycopg as `pgcode`; both sit
    on the DBAPI error wrapped by SQLAlchemy (`exc.orig`). SQLite has no
    SQLSTATE, so its "no such table" message is matched instead.
    """
    orig = getattr(exc, "orig", None) or exc
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNDEFINED_TABLE_SQLSTATE:
        return True
    return "no such table" in str(orig).lower()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()


def translate_db_error(exc: BaseException, **context: Any) -> DatabaseError:
    """
    Map a SQLAlchemy failure to the application exception a route returns.

    Undefined-table errors get their own message so an operator can tell an
    unprovisioned schema apart from an ordinary failure.
    """
    context.setdefault("error_type", type(exc).__name__)
    if is_undefined_table(exc):
        return TablesNotFoundError(context=context)
    return DatabaseError(context=context)
