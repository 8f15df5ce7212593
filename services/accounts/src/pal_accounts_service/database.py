"""
Database Configuration and Session Management
============================================

Async engine construction, table creation, health checks and request-scoped
sessions for the accounts store.
"""

from typing import Any, AsyncGenerator, Dict, Tuple

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pal_logging import get_logger

from .models import Base

logger = get_logger(__name__)


def create_session_factory(
    database_url: str,
    echo: bool = False,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create the async engine and session factory for a database URL."""
    engine_kwargs: Dict[str, Any] = {
        "echo": echo,
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        engine_kwargs.update(pool_size=5, max_overflow=10, pool_recycle=300)

    engine = create_async_engine(database_url, **engine_kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )
    return engine, session_factory


@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
async def init_database(engine: AsyncEngine) -> None:
    """
    Create tables if they do not exist.

    Should be called during application startup.
    """
    logger.info("Initializing database")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")


async def close_database(engine: AsyncEngine) -> None:
    """Dispose of pooled connections."""
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))


async def check_database_health(session_factory: async_sessionmaker[AsyncSession]) -> Dict[str, Any]:
    """
    Check database health and return status information.

    Returns:
        dict: Health status information
    """
    try:
        async with session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            if result.scalar() != 1:
                return {"status": "unhealthy", "error": "Health check query failed"}
            await session.execute(text("SELECT 1 FROM accounts LIMIT 1"))
        return {"status": "healthy", "tables_accessible": True}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a request-scoped database session.

    Yields:
        AsyncSession: Database session
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
