"""
Bill repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from app.db.repositories.base_repository import BaseRepository
from app.models.bill import Bill


class BillRepository(BaseRepository[Bill]):
    """Repository for bill operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Bill, session)

    def _base_query(self):
        """Base query with eager loading of relationships."""
        return select(Bill).options(
            selectinload(Bill.items),
            selectinload(Bill.client),
            selectinload(Bill.proposal),
        )

    async def get(self, id: UUID) -> Optional[Bill]:
        """Get bill by ID with items loaded."""
        query = self._base_query().where(Bill.id == id)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def list(
        self,
        skip: int = 0,
        limit: int = 100,
        **filters,
    ) -> List[Bill]:
        """List non-deleted bills, newest first."""
        query = self._apply_filters(self._base_query().where(Bill.deleted_at.is_(None)), filters)
        query = query.order_by(Bill.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters) -> int:
        query = self._apply_filters(
            select(func.count(Bill.id)).where(Bill.deleted_at.is_(None)),
            filters,
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_by_proposal(self, proposal_id: UUID) -> List[Bill]:
        """All bills ever generated for a proposal, deleted ones included."""
        result = await self.session.execute(
            select(Bill).where(Bill.proposal_id == proposal_id).order_by(Bill.created_at)
        )
        return list(result.scalars().all())

    async def get_by_invoice_number(self, invoice_number: str) -> Optional[Bill]:
        """Point read by exact invoice number."""
        result = await self.session.execute(
            select(Bill).where(Bill.invoice_number == invoice_number)
        )
        return result.scalar_one_or_none()

    async def get_latest_invoice_number_with_prefix(self, prefix: str) -> Optional[str]:
        """Highest invoice number starting with prefix."""
        result = await self.session.execute(
            select(Bill.invoice_number)
            .where(Bill.invoice_number.startswith(prefix))
            .order_by(Bill.invoice_number.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
