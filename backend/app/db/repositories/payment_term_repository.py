"""
Payment term repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base_repository import BaseRepository
from app.models.proposal import PaymentTerm


class PaymentTermRepository(BaseRepository[PaymentTerm]):
    """Repository for payment term operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(PaymentTerm, session)
