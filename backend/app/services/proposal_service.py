"""
Proposal service with business logic for proposal creation and retrieval.
"""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError, PreconditionFailedError
from app.core.permissions import can_create_proposals
from app.services.base_service import BaseService
from app.db.repositories.proposal_repository import ProposalRepository
from app.db.repositories.milestone_repository import MilestoneRepository
from app.db.repositories.payment_term_repository import PaymentTermRepository
from app.db.repositories.client_repository import ClientRepository, LeadRepository
from app.db.repositories.bill_repository import BillRepository
from app.models.proposal import (
    Proposal,
    ProposalItem,
    Milestone,
    BillingMethod,
    ProposalStatus,
    ClientApprovalStatus,
)
from app.models.user import User
from app.schemas.proposal import (
    ProposalCreate,
    ProposalItemCreate,
    PaymentTermCreate,
    ProposalResponse,
    PaymentTermsSummaryResponse,
)
from app.utils.billing_calculator import ZERO
from app.utils.clock import utcnow
from app.utils.invoice_eligibility import upfront_invoice_state, first_recurring_invoice_state
from app.utils.invoice_number import format_proposal_number
from app.utils.payment_terms import (
    classify_payment_term,
    describe_payment_arrangement,
    select_proposal_level_term,
)

logger = logging.getLogger(__name__)


def carries_payment_schedule(term: PaymentTermCreate) -> bool:
    """Only rows with upfront or installment data are worth storing."""
    has_upfront = term.upfront_type is not None and term.upfront_value is not None
    has_installments = term.installment_type is not None and bool(term.installment_count)
    return has_upfront or has_installments


class ProposalService(BaseService):
    """Service for proposal operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.proposal_repo = ProposalRepository(session)
        self.milestone_repo = MilestoneRepository(session)
        self.payment_term_repo = PaymentTermRepository(session)
        self.client_repo = ClientRepository(session)
        self.lead_repo = LeadRepository(session)
        self.bill_repo = BillRepository(session)

    async def create_proposal(self, proposal_data: ProposalCreate, current_user: User) -> ProposalResponse:
        """
        Create a DRAFT proposal with its milestones, items and payment terms.

        Milestones are written first so the temporary milestone ids used by
        items and payment terms in the request can be mapped to stored ids.
        """
        if not can_create_proposals(current_user):
            raise ForbiddenError()

        if not proposal_data.client_id and not proposal_data.lead_id:
            raise PreconditionFailedError("Either clientId or leadId must be provided")
        if proposal_data.client_id and proposal_data.lead_id:
            raise PreconditionFailedError("Cannot specify both clientId and leadId")

        if proposal_data.client_id:
            client = await self.client_repo.get(proposal_data.client_id)
            if not client or client.deleted_at is not None:
                raise NotFoundError("Client not found")
        else:
            lead = await self.lead_repo.get(proposal_data.lead_id)
            if not lead:
                raise NotFoundError("Lead not found")

        if (
            proposal_data.issue_date
            and proposal_data.expiry_date
            and proposal_data.expiry_date < proposal_data.issue_date
        ):
            raise PreconditionFailedError("Expiry date must be after issue date")

        if proposal_data.proposal_number:
            if await self.proposal_repo.get_by_number(proposal_data.proposal_number):
                raise PreconditionFailedError("Proposal number already exists")
            proposal_number = proposal_data.proposal_number
        else:
            proposal_number = await self._next_proposal_number()

        amount = proposal_data.amount
        if amount is None and proposal_data.items:
            amount = sum((item.amount for item in proposal_data.items), ZERO)

        proposal_dict = proposal_data.model_dump(
            exclude={"items", "milestones", "payment_terms", "proposal_number", "amount"}
        )
        proposal = await self.proposal_repo.create(
            **proposal_dict,
            proposal_number=proposal_number,
            amount=amount,
            created_by=current_user.id,
            status=ProposalStatus.DRAFT,
            client_approval_status=ClientApprovalStatus.PENDING,
        )

        milestones_by_temp_id: Dict[str, Milestone] = {}
        for milestone_data in proposal_data.milestones:
            milestone = await self.milestone_repo.create(
                proposal_id=proposal.id,
                **milestone_data.model_dump(exclude={"id"}),
            )
            if milestone_data.id:
                milestones_by_temp_id[milestone_data.id] = milestone

        items: List[ProposalItem] = []
        for index, item_data in enumerate(proposal_data.items):
            item = self._build_item(proposal.id, index, item_data, milestones_by_temp_id)
            self.session.add(item)
            items.append(item)
        await self.session.flush()

        await self._create_payment_terms(proposal, proposal_data.payment_terms, items, milestones_by_temp_id)

        await self.commit(f"create proposal {proposal_number}")
        logger.info(
            f"Created proposal {proposal_number} with {len(items)} items",
            extra={"proposal_id": str(proposal.id)},
        )
        return await self._get_response(proposal.id)

    def _build_item(
        self,
        proposal_id: UUID,
        row_order: int,
        item_data: ProposalItemCreate,
        milestones_by_temp_id: Dict[str, Milestone],
    ) -> ProposalItem:
        recurring = item_data.billing_method == BillingMethod.RECURRING
        return ProposalItem(
            proposal_id=proposal_id,
            billing_method=item_data.billing_method,
            description=item_data.description,
            quantity=item_data.quantity,
            rate=item_data.rate,
            unit_price=item_data.unit_price,
            amount=item_data.amount,
            row_order=row_order,
            recurring_enabled=item_data.recurring_enabled if recurring else False,
            recurring_frequency=item_data.recurring_frequency if recurring else None,
            recurring_custom_months=item_data.recurring_custom_months if recurring else None,
            recurring_start_date=item_data.recurring_start_date if recurring else None,
            milestones=[
                milestones_by_temp_id[temp_id]
                for temp_id in item_data.milestone_ids
                if temp_id in milestones_by_temp_id
            ],
        )

    async def _create_payment_terms(
        self,
        proposal: Proposal,
        terms: List[PaymentTermCreate],
        items: List[ProposalItem],
        milestones_by_temp_id: Dict[str, Milestone],
    ) -> None:
        """First kept row is the proposal-level term; without any, a one-time default is stored."""
        kept = [term for term in terms if carries_payment_schedule(term)]
        if not kept:
            await self.payment_term_repo.create(proposal_id=proposal.id, recurring_enabled=False)
            return

        for position, term in enumerate(kept):
            item_id = None
            if position > 0 and term.item_index is not None and term.item_index < len(items):
                item_id = items[term.item_index].id
            await self.payment_term_repo.create(
                proposal_id=proposal.id,
                proposal_item_id=item_id,
                upfront_type=term.upfront_type,
                upfront_value=term.upfront_value,
                balance_payment_type=term.balance_payment_type,
                balance_due_date=term.balance_due_date,
                installment_type=term.installment_type,
                installment_count=term.installment_count,
                installment_frequency=term.installment_frequency,
                installment_maturity_dates=[d.isoformat() for d in term.installment_maturity_dates],
                milestone_ids=[
                    str(milestones_by_temp_id[temp_id].id)
                    for temp_id in term.milestone_ids
                    if temp_id in milestones_by_temp_id
                ],
                recurring_enabled=term.recurring_enabled,
                recurring_frequency=term.recurring_frequency,
                recurring_custom_months=term.recurring_custom_months,
                recurring_start_date=term.recurring_start_date,
            )

    async def _next_proposal_number(self) -> str:
        year = utcnow().year
        last = await self.proposal_repo.get_latest_number_with_prefix(f"{year}-")
        return format_proposal_number(year, last)

    async def get_proposal(self, proposal_id: UUID, current_user: User) -> ProposalResponse:
        proposal = await self._get_visible(proposal_id, current_user)
        return ProposalResponse.model_validate(proposal)

    async def list_proposals(
        self,
        current_user: User,
        skip: int = 0,
        limit: int = 100,
        status: Optional[ProposalStatus] = None,
        client_approval_status: Optional[ClientApprovalStatus] = None,
        client_id: Optional[UUID] = None,
    ) -> Tuple[List[ProposalResponse], int]:
        """List proposals visible to the user with optional filters."""
        scope = await self.client_scope(current_user)
        if scope.sees_nothing:
            return [], 0

        filters = {
            "status": status,
            "client_approval_status": client_approval_status,
            "client_id": client_id,
        }
        if not scope.unrestricted:
            if scope.client_id is not None:
                if client_id is not None and client_id != scope.client_id:
                    raise ForbiddenError()
                filters["client_id"] = scope.client_id
            else:
                filters["created_by"] = scope.created_by

        proposals = await self.proposal_repo.list(skip=skip, limit=limit, **filters)
        total = await self.proposal_repo.count(**filters)
        return [ProposalResponse.model_validate(p) for p in proposals], total

    async def delete_proposal(self, proposal_id: UUID, current_user: User) -> None:
        """Soft delete; bills already generated from the proposal are kept."""
        if not can_create_proposals(current_user):
            raise ForbiddenError()
        proposal = await self._get_visible(proposal_id, current_user)
        await self.proposal_repo.update(proposal.id, deleted_at=utcnow())
        await self.commit(f"delete proposal {proposal.id}")
        logger.info(f"Soft-deleted proposal {proposal.id}")

    async def get_payment_terms_summary(self, proposal_id: UUID, current_user: User) -> PaymentTermsSummaryResponse:
        """Classify the proposal-level payment term and report which one-shot invoices exist."""
        proposal = await self._get_visible(proposal_id, current_user)
        term = select_proposal_level_term(proposal.payment_terms)
        arrangement = classify_payment_term(term, proposal.amount, proposal.milestones)
        bills = await self.bill_repo.list_by_proposal(proposal.id)
        return PaymentTermsSummaryResponse(
            proposal_id=proposal.id,
            arrangement=arrangement,
            description=describe_payment_arrangement(arrangement, proposal.currency or settings.DEFAULT_CURRENCY),
            upfront_invoice=upfront_invoice_state(bills),
            first_recurring_invoice=first_recurring_invoice_state(proposal),
        )

    async def _get_visible(self, proposal_id: UUID, current_user: User) -> Proposal:
        proposal = await self.proposal_repo.get_active(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")
        scope = await self.client_scope(current_user)
        if not scope.allows(proposal.client_id, proposal.created_by):
            raise ForbiddenError()
        return proposal

    async def _get_response(self, proposal_id: UUID) -> ProposalResponse:
        proposal = await self.proposal_repo.get(proposal_id)
        return ProposalResponse.model_validate(proposal)
