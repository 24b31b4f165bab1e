"""
Approval repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base_repository import BaseRepository
from app.models.proposal import Approval


class ApprovalRepository(BaseRepository[Approval]):
    """Repository for proposal approval records."""

    def __init__(self, session: AsyncSession):
        super().__init__(Approval, session)
