"""
Bill Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID
from decimal import Decimal

from app.models.bill import BillStatus, BillItemType


class BillItemResponse(BaseModel):
    id: UUID
    type: BillItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    is_credit: bool = False

    class Config:
        from_attributes = True


class BillResponse(BaseModel):
    """Schema for bill response."""
    id: UUID
    invoice_number: Optional[str] = None
    proposal_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    status: BillStatus
    description: Optional[str] = None
    currency: str
    subtotal: Decimal
    amount: Decimal
    tax_inclusive: bool
    tax_rate: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    is_upfront_payment: bool
    due_date: Optional[date] = None
    created_at: Optional[datetime] = None
    items: List[BillItemResponse] = []

    class Config:
        from_attributes = True


class BillListResponse(BaseModel):
    """Schema for bill list response."""
    items: List[BillResponse]
    total: int


class InvoiceGenerationResponse(BaseModel):
    """Result of generating an invoice from a proposal."""
    success: bool = True
    invoice: BillResponse
    message: str
    discount_value: Decimal
    tax_amount: Decimal
