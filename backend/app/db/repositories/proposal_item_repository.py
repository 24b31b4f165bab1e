"""
Proposal item repository for database operations.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update

from app.db.repositories.base_repository import BaseRepository
from app.models.proposal import ProposalItem


class ProposalItemRepository(BaseRepository[ProposalItem]):
    """Repository for proposal item operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ProposalItem, session)

    async def stamp_recurring_invoiced(self, item_ids: Sequence[UUID], invoiced_at: datetime) -> int:
        """Set last_recurring_invoice_date on the given items that have recurring enabled."""
        if not item_ids:
            return 0
        result = await self.session.execute(
            update(ProposalItem)
            .where(
                ProposalItem.id.in_(list(item_ids)),
                ProposalItem.recurring_enabled == True,
            )
            .values(last_recurring_invoice_date=invoiced_at)
        )
        await self.session.flush()
        return result.rowcount
