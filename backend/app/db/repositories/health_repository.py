"""
Health repository.
Checks database connectivity and the core billing tables.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text, select, func
from sqlalchemy.exc import SQLAlchemyError

from app.models.proposal import Proposal
from app.models.bill import Bill

logger = logging.getLogger(__name__)


class HealthRepository:
    """Repository for health check operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check_database(self) -> bool:
        """
        Check database connectivity.

        Returns:
            True if database is accessible, False otherwise
        """
        try:
            result = await self.session.execute(text("SELECT 1"))
            return result.scalar() == 1
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def check_billing_tables(self) -> bool:
        """True when the proposals and bills tables can be queried."""
        try:
            await self.session.execute(select(func.count(Proposal.id)))
            await self.session.execute(select(func.count(Bill.id)))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Billing tables health check failed: {e}")
            return False
