"""
Milestone repository for database operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.base_repository import BaseRepository
from app.models.proposal import Milestone


class MilestoneRepository(BaseRepository[Milestone]):
    """Repository for milestone operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Milestone, session)
