"""
Client and lead repositories for database operations.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.repositories.base_repository import BaseRepository
from app.models.client import Client, Lead


class ClientRepository(BaseRepository[Client]):
    """Repository for client operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Client, session)

    async def get_by_email(self, email: str) -> Optional[Client]:
        """Get the non-deleted client a portal user's email belongs to."""
        result = await self.session.execute(
            select(Client)
            .where(Client.email == email, Client.deleted_at.is_(None))
            .limit(1)
        )
        return result.scalar_one_or_none()


class LeadRepository(BaseRepository[Lead]):
    """Repository for lead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)
