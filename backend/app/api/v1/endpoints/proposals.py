"""
Proposal API endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.v1.middleware import require_authentication
from app.db.session import get_db
from app.deps.di_container import get_container
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

router = APIRouter()


@router.post("", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    proposal_data: ProposalCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ProposalResponse:
    """Create a draft proposal with items, milestones and payment terms."""
    controller = get_container().proposal_controller(session=db)
    return await controller.create_proposal(proposal_data, current_user)


@router.get("", response_model=ProposalListResponse)
async def list_proposals(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[ProposalStatus] = Query(None),
    client_approval_status: Optional[ClientApprovalStatus] = Query(None),
    client_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ProposalListResponse:
    """List proposals with optional filters."""
    controller = get_container().proposal_controller(session=db)
    return await controller.list_proposals(
        current_user,
        skip=skip,
        limit=limit,
        status=status,
        client_approval_status=client_approval_status,
        client_id=client_id,
    )


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ProposalResponse:
    """Get proposal by ID."""
    controller = get_container().proposal_controller(session=db)
    return await controller.get_proposal(proposal_id, current_user)


@router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_proposal(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> None:
    """Soft-delete a proposal."""
    controller = get_container().proposal_controller(session=db)
    await controller.delete_proposal(proposal_id, current_user)


@router.get("/{proposal_id}/payment-terms", response_model=PaymentTermsSummaryResponse)
async def get_payment_terms_summary(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PaymentTermsSummaryResponse:
    """Classified payment arrangement and one-shot invoice state."""
    controller = get_container().proposal_controller(session=db)
    return await controller.get_payment_terms_summary(proposal_id, current_user)


@router.post("/{proposal_id}/submit", response_model=ProposalResponse)
async def submit_proposal(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ProposalResponse:
    """Submit a draft proposal for internal approval."""
    controller = get_container().proposal_controller(session=db)
    return await controller.submit_proposal(proposal_id, current_user)


@router.post(
    "/{proposal_id}/approvals",
    response_model=ApprovalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def approve_proposal(
    proposal_id: UUID,
    decision: ProposalApprovalRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ApprovalResponse:
    """Record an internal approval decision."""
    controller = get_container().proposal_controller(session=db)
    return await controller.approve_proposal(proposal_id, decision, current_user)


@router.post("/{proposal_id}/client-decision", response_model=ProposalResponse)
async def record_client_decision(
    proposal_id: UUID,
    decision: ClientDecisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ProposalResponse:
    """Client approves or rejects, directly or through staff acting on their behalf."""
    controller = get_container().proposal_controller(session=db)
    return await controller.record_client_decision(proposal_id, decision, current_user)


@router.post(
    "/{proposal_id}/generate-upfront-invoice",
    response_model=InvoiceGenerationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_upfront_invoice(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> InvoiceGenerationResponse:
    """Generate the upfront-payment invoice of a client-approved proposal."""
    controller = get_container().proposal_controller(session=db)
    return await controller.generate_upfront_invoice(proposal_id, current_user)


@router.post(
    "/{proposal_id}/generate-first-recurring-invoice",
    response_model=InvoiceGenerationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_first_recurring_invoice(
    proposal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> InvoiceGenerationResponse:
    """Generate the first invoice of an approved proposal with recurring billing."""
    controller = get_container().proposal_controller(session=db)
    return await controller.generate_first_recurring_invoice(proposal_id, current_user)
