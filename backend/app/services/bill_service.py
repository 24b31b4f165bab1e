"""
Bill service for reading generated invoices.
"""

from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.services.base_service import BaseService
from app.db.repositories.bill_repository import BillRepository
from app.models.bill import BillStatus
from app.models.user import User
from app.schemas.bill import BillResponse


class BillService(BaseService):
    """Service for bill operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.bill_repo = BillRepository(session)

    async def get_bill(self, bill_id: UUID, current_user: User) -> BillResponse:
        bill = await self.bill_repo.get(bill_id)
        if not bill or bill.deleted_at is not None:
            raise NotFoundError("Bill not found")
        scope = await self.client_scope(current_user)
        if not scope.allows(bill.client_id, bill.created_by):
            raise ForbiddenError()
        return BillResponse.model_validate(bill)

    async def list_bills(
        self,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
        proposal_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        status: Optional[BillStatus] = None,
    ) -> Tuple[List[BillResponse], int]:
        """List bills; client users only ever see their own client's bills."""
        scope = await self.client_scope(current_user)
        if scope.sees_nothing:
            return [], 0

        filters = {"proposal_id": proposal_id, "client_id": client_id, "status": status}
        if not scope.unrestricted:
            if scope.client_id is not None:
                if client_id is not None and client_id != scope.client_id:
                    raise ForbiddenError()
                filters["client_id"] = scope.client_id
            else:
                filters["created_by"] = scope.created_by

        bills = await self.bill_repo.list(skip=skip, limit=limit, **filters)
        total = await self.bill_repo.count(**filters)
        return [BillResponse.model_validate(bill) for bill in bills], total
