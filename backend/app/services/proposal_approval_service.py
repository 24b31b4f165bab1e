"""
Proposal approval workflow: submission, internal approval and the client's decision.
"""

import logging
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError, PreconditionFailedError
from app.core.permissions import can_approve_proposal_of, is_client
from app.services.base_service import BaseService
from app.db.repositories.proposal_repository import ProposalRepository
from app.db.repositories.approval_repository import ApprovalRepository
from app.db.repositories.client_repository import ClientRepository, LeadRepository
from app.models.client import LeadStatus
from app.models.proposal import (
    Proposal,
    ProposalStatus,
    ClientApprovalStatus,
    ApprovalDecision,
)
from app.models.user import User, UserRole
from app.schemas.proposal import (
    ProposalResponse,
    ProposalApprovalRequest,
    ApprovalResponse,
    ClientDecisionRequest,
)
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class ProposalApprovalService(BaseService):
    """Service for moving proposals through the approval states."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.proposal_repo = ProposalRepository(session)
        self.approval_repo = ApprovalRepository(session)
        self.client_repo = ClientRepository(session)
        self.lead_repo = LeadRepository(session)

    async def _get_proposal(self, proposal_id: UUID) -> Proposal:
        proposal = await self.proposal_repo.get_active(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")
        return proposal

    async def submit_proposal(self, proposal_id: UUID, current_user: User) -> ProposalResponse:
        """DRAFT -> SUBMITTED, by the proposal's creator only."""
        proposal = await self._get_proposal(proposal_id)

        if proposal.created_by != current_user.id:
            raise ForbiddenError("Only the proposal creator can submit it")
        if proposal.status != ProposalStatus.DRAFT:
            raise PreconditionFailedError("Only draft proposals can be submitted")

        updated = await self.proposal_repo.update(
            proposal.id,
            status=ProposalStatus.SUBMITTED,
            submitted_at=utcnow(),
        )
        await self.commit(f"submit proposal {proposal.id}")
        logger.info(f"Proposal {proposal.id} submitted by {current_user.id}")
        return ProposalResponse.model_validate(updated)

    async def approve_proposal(
        self,
        proposal_id: UUID,
        decision: ProposalApprovalRequest,
        current_user: User,
    ) -> ApprovalResponse:
        """
        Record an internal approval decision.

        STAFF work is approved by a MANAGER, MANAGER work by an ADMIN,
        and an ADMIN may decide on anything.
        """
        if is_client(current_user):
            raise ForbiddenError()

        proposal = await self._get_proposal(proposal_id)

        creator = proposal.creator
        allowed = (
            can_approve_proposal_of(current_user, creator)
            if creator is not None
            else current_user.role == UserRole.ADMIN
        )
        if not allowed:
            raise ForbiddenError("You don't have permission to approve this item")

        approval = await self.approval_repo.create(
            proposal_id=proposal.id,
            approver_id=current_user.id,
            status=decision.status,
            comments=decision.comments,
        )
        approved = decision.status == ApprovalDecision.APPROVED
        await self.proposal_repo.update(
            proposal.id,
            status=ProposalStatus.APPROVED if approved else ProposalStatus.REJECTED,
            approved_at=utcnow() if approved else None,
        )
        await self.commit(f"record approval on proposal {proposal.id}")
        logger.info(f"Proposal {proposal.id} {decision.status.value.lower()} by {current_user.id}")
        return ApprovalResponse.model_validate(approval)

    async def record_client_decision(
        self,
        proposal_id: UUID,
        decision: ClientDecisionRequest,
        current_user: User,
    ) -> ProposalResponse:
        """
        Apply the client's approve/reject decision.

        Clients decide on their own proposals; ADMIN and MANAGER users may
        decide on a client's behalf. Approving a proposal addressed to a lead
        converts the lead into a client.
        """
        proposal = await self._get_proposal(proposal_id)

        if is_client(current_user):
            scope = await self.client_scope(current_user)
            if not scope.allows(proposal.client_id):
                raise ForbiddenError()
        elif current_user.role not in (UserRole.ADMIN, UserRole.MANAGER):
            raise ForbiddenError("Only administrators and managers can approve on behalf of clients")

        if proposal.client_approval_status != ClientApprovalStatus.PENDING:
            raise PreconditionFailedError(
                f"Proposal has already been {proposal.client_approval_status.value.lower()}"
            )

        now = utcnow()
        if decision.action == "approve":
            values = {
                "client_approval_status": ClientApprovalStatus.APPROVED,
                "status": ProposalStatus.APPROVED,
                "client_approved_at": now,
                "approved_at": now,
            }
            if proposal.lead_id and not proposal.client_id:
                values["client_id"] = await self._convert_lead(proposal)
        else:
            values = {
                "client_approval_status": ClientApprovalStatus.REJECTED,
                "status": ProposalStatus.REJECTED,
                "client_rejected_at": now,
            }
            if decision.reason:
                values["client_rejection_reason"] = decision.reason

        updated = await self.proposal_repo.update(proposal.id, **values)
        await self.commit(f"record client decision on proposal {proposal.id}")
        logger.info(
            f"Client decision '{decision.action}' recorded for proposal {proposal.id}",
            extra={"proposal_id": str(proposal.id), "decided_by": str(current_user.id)},
        )
        return ProposalResponse.model_validate(updated)

    async def _convert_lead(self, proposal: Proposal) -> UUID:
        """Client id for the proposal's lead, creating the client on first conversion."""
        lead = proposal.lead
        if lead.converted_client_id:
            return lead.converted_client_id

        client = await self.client_repo.create(
            name=lead.name,
            email=lead.email,
            company=lead.company,
            default_currency=proposal.currency,
        )
        await self.lead_repo.update(
            lead.id,
            status=LeadStatus.CONVERTED,
            converted_client_id=client.id,
            converted_at=utcnow(),
        )
        logger.info(f"Lead {lead.id} converted to client {client.id} on proposal approval")
        return client.id
