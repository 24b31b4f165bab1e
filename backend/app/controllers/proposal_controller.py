"""
Proposal controller.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.controllers.base_controller import BaseController
from app.services.proposal_service import ProposalService
from app.services.proposal_approval_service import ProposalApprovalService
from app.services.invoice_generation_service import InvoiceGenerationService
from app.models.proposal import ProposalStatus, ClientApprovalStatus
from app.models.user import User
from app.schemas.proposal import (
    ProposalCreate,
    ProposalResponse,
    ProposalListResponse,
    PaymentTermsSummaryResponse,
    ProposalApprovalRequest,
    ApprovalResponse,
    ClientDecisionRequest,
)
from app.schemas.bill import InvoiceGenerationResponse


class ProposalController(BaseController):
    """Controller for proposal operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.proposal_service = ProposalService(session)
        self.approval_service = ProposalApprovalService(session)
        self.invoice_service = InvoiceGenerationService(session)

    async def create_proposal(self, proposal_data: ProposalCreate, current_user: User) -> ProposalResponse:
        return await self.proposal_service.create_proposal(proposal_data, current_user)

    async def get_proposal(self, proposal_id: UUID, current_user: User) -> ProposalResponse:
        return await self.proposal_service.get_proposal(proposal_id, current_user)

    async def list_proposals(
        self,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
        status: Optional[ProposalStatus] = None,
        client_approval_status: Optional[ClientApprovalStatus] = None,
        client_id: Optional[UUID] = None,
    ) -> ProposalListResponse:
        """List proposals with optional filters."""
        proposals, total = await self.proposal_service.list_proposals(
            current_user,
            skip=skip,
            limit=limit,
            status=status,
            client_approval_status=client_approval_status,
            client_id=client_id,
        )
        return ProposalListResponse(items=proposals, total=total)

    async def delete_proposal(self, proposal_id: UUID, current_user: User) -> None:
        await self.proposal_service.delete_proposal(proposal_id, current_user)

    async def get_payment_terms_summary(self, proposal_id: UUID, current_user: User) -> PaymentTermsSummaryResponse:
        return await self.proposal_service.get_payment_terms_summary(proposal_id, current_user)

    async def submit_proposal(self, proposal_id: UUID, current_user: User) -> ProposalResponse:
        return await self.approval_service.submit_proposal(proposal_id, current_user)

    async def approve_proposal(
        self,
        proposal_id: UUID,
        decision: ProposalApprovalRequest,
        current_user: User,
    ) -> ApprovalResponse:
        return await self.approval_service.approve_proposal(proposal_id, decision, current_user)

    async def record_client_decision(
        self,
        proposal_id: UUID,
        decision: ClientDecisionRequest,
        current_user: User,
    ) -> ProposalResponse:
        return await self.approval_service.record_client_decision(proposal_id, decision, current_user)

    async def generate_upfront_invoice(self, proposal_id: UUID, current_user: User) -> InvoiceGenerationResponse:
        """Generate the upfront-payment invoice."""
        return await self.invoice_service.generate_upfront_invoice(proposal_id, current_user)

    async def generate_first_recurring_invoice(self, proposal_id: UUID, current_user: User) -> InvoiceGenerationResponse:
        """Generate the first recurring invoice."""
        return await self.invoice_service.generate_first_recurring_invoice(proposal_id, current_user)
