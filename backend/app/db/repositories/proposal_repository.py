"""
Proposal repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from app.db.repositories.base_repository import BaseRepository
from app.models.proposal import Proposal, ProposalItem


class ProposalRepository(BaseRepository[Proposal]):
    """Repository for proposal operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Proposal, session)

    def _base_query(self):
        """Base query with eager loading of everything billing code reads."""
        return select(Proposal).options(
            selectinload(Proposal.client),
            selectinload(Proposal.lead),
            selectinload(Proposal.creator),
            selectinload(Proposal.items).selectinload(ProposalItem.milestones),
            selectinload(Proposal.milestones),
            selectinload(Proposal.payment_terms),
        )

    def _filtered(self, query, filters: dict):
        query = query.where(Proposal.deleted_at.is_(None))
        return self._apply_filters(query, filters)

    async def get(self, id: UUID) -> Optional[Proposal]:
        """Get proposal by ID with relationships loaded."""
        query = self._base_query().where(Proposal.id == id)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_active(self, id: UUID) -> Optional[Proposal]:
        """Get proposal by ID unless it has been soft-deleted."""
        proposal = await self.get(id)
        if proposal is None or proposal.deleted_at is not None:
            return None
        return proposal

    async def list(
        self,
        skip: int = 0,
        limit: int = 100,
        **filters,
    ) -> List[Proposal]:
        """List non-deleted proposals, newest first."""
        query = self._filtered(self._base_query(), filters)
        query = query.order_by(Proposal.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters) -> int:
        """Count non-deleted proposals matching filters."""
        query = self._filtered(select(func.count(Proposal.id)), filters)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_latest_number_with_prefix(self, prefix: str) -> Optional[str]:
        """Highest proposal number starting with prefix."""
        result = await self.session.execute(
            select(Proposal.proposal_number)
            .where(Proposal.proposal_number.startswith(prefix))
            .order_by(Proposal.proposal_number.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_number(self, proposal_number: str) -> Optional[Proposal]:
        result = await self.session.execute(
            select(Proposal).where(Proposal.proposal_number == proposal_number)
        )
        return result.scalar_one_or_none()
