"""
Async engine and session lifecycle for the billing database.
"""

from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

engine: AsyncEngine = None
async_session_maker: async_sessionmaker[AsyncSession] = None


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.SQL_ECHO}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return options


def create_engine() -> AsyncEngine:
    """Create the process-wide async engine from DATABASE_URL."""
    global engine

    options = _engine_options(settings.DATABASE_URL)
    engine = create_async_engine(settings.DATABASE_URL, **options)
    logger.info(
        "Database engine created",
        extra={"dialect": engine.dialect.name, "pool_size": options.get("pool_size")},
    )
    return engine


def create_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global async_session_maker

    if engine is None:
        create_engine()

    # Responses are built from ORM objects after commit
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.
    Commits when the handler returns and rolls back when it raises.
    """
    if async_session_maker is None:
        create_sessionmaker()

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Prepare the engine and sessionmaker; create tables when AUTO_CREATE_TABLES is set."""
    if async_session_maker is None:
        create_sessionmaker()

    if settings.AUTO_CREATE_TABLES:
        from app.db.init_db import create_tables
        await create_tables(engine)

    logger.info("Database initialized")


async def close_db() -> None:
    if engine is not None:
        await engine.dispose()
        logger.info("Database connections closed")
