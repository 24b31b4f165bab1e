"""
Bill controller.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.base_controller import BaseController
from app.services.bill_service import BillService
from app.models.bill import BillStatus
from app.models.user import User
from app.schemas.bill import BillResponse, BillListResponse


class BillController(BaseController):
    """Controller for bill operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.bill_service = BillService(session)

    async def get_bill(self, bill_id: UUID, current_user: User) -> BillResponse:
        return await self.bill_service.get_bill(bill_id, current_user)

    async def list_bills(
        self,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
        proposal_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        status: Optional[BillStatus] = None,
    ) -> BillListResponse:
        """List bills with optional filters."""
        bills, total = await self.bill_service.list_bills(
            current_user,
            skip=skip,
            limit=limit,
            proposal_id=proposal_id,
            client_id=client_id,
            status=status,
        )
        return BillListResponse(items=bills, total=total)
