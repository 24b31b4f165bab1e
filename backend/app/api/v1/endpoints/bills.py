"""
Bill API endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.v1.middleware import require_authentication
from app.db.session import get_db
from app.deps.di_container import get_container
from app.models.bill import BillStatus
from app.models.user import User
from app.schemas.bill import BillResponse, BillListResponse

router = APIRouter()


@router.get("", response_model=BillListResponse)
async def list_bills(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    proposal_id: Optional[UUID] = Query(None),
    client_id: Optional[UUID] = Query(None),
    status: Optional[BillStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> BillListResponse:
    """List bills with optional filters."""
    controller = get_container().bill_controller(session=db)
    return await controller.list_bills(
        current_user,
        skip=skip,
        limit=limit,
        proposal_id=proposal_id,
        client_id=client_id,
        status=status,
    )


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> BillResponse:
    """Get bill by ID."""
    controller = get_container().bill_controller(session=db)
    return await controller.get_bill(bill_id, current_user)
