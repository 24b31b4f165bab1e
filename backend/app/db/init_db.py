"""
Database bootstrapping for local and test runs.
Production schemas are managed by migrations.
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.base import Base
from app.core.logging import get_logger
import app.models  # noqa: F401  registers every model with Base.metadata

logger = get_logger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Database tables initialized",
        extra={"tables": sorted(Base.metadata.tables.keys())},
    )
