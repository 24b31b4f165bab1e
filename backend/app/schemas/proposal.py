"""
Proposal Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import date, datetime
from uuid import UUID
from decimal import Decimal

from app.models.proposal import (
    ProposalType,
    ProposalStatus,
    ClientApprovalStatus,
    BillingMethod,
    RecurringFrequency,
    UpfrontPaymentType,
    BalancePaymentType,
    InstallmentType,
    InstallmentFrequency,
    ApprovalDecision,
)
from app.utils.invoice_eligibility import GenerationState
from app.utils.payment_terms import PaymentArrangement


class MilestoneCreate(BaseModel):
    """Milestone in a create request. ``id`` is a client-side temporary id."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    amount: Optional[Decimal] = Field(None, ge=0)
    percent: Optional[Decimal] = Field(None, ge=0, le=100)
    due_date: Optional[date] = None


class MilestoneResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    percent: Optional[Decimal] = None
    due_date: Optional[date] = None

    class Config:
        from_attributes = True


class ProposalItemCreate(BaseModel):
    """Proposal line item. Recurring fields are ignored unless billing_method is RECURRING."""
    billing_method: Optional[BillingMethod] = None
    description: str = Field(..., min_length=1, max_length=1000)
    quantity: Optional[Decimal] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    amount: Decimal
    milestone_ids: List[str] = []  # temporary milestone ids from the same request
    recurring_enabled: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_custom_months: Optional[int] = Field(None, ge=1)
    recurring_start_date: Optional[date] = None


class ProposalItemResponse(BaseModel):
    id: UUID
    billing_method: Optional[BillingMethod] = None
    description: str
    quantity: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    amount: Decimal
    row_order: int = 0
    milestone_ids: List[UUID] = []
    recurring_enabled: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_custom_months: Optional[int] = None
    recurring_start_date: Optional[date] = None
    last_recurring_invoice_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentTermCreate(BaseModel):
    """
    Payment term in a create request.
    Only terms carrying an upfront or installment schedule are stored. The
    first stored term is always the proposal-level one and its ``item_index``
    is ignored; later terms attach to the request item at ``item_index``.
    """
    item_index: Optional[int] = Field(None, ge=0)
    upfront_type: Optional[UpfrontPaymentType] = None
    upfront_value: Optional[Decimal] = Field(None, ge=0)
    balance_payment_type: Optional[BalancePaymentType] = None
    balance_due_date: Optional[date] = None
    installment_type: Optional[InstallmentType] = None
    installment_count: Optional[int] = Field(None, ge=1)
    installment_frequency: Optional[InstallmentFrequency] = None
    installment_maturity_dates: List[date] = []
    milestone_ids: List[str] = []
    recurring_enabled: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_custom_months: Optional[int] = Field(None, ge=1)
    recurring_start_date: Optional[date] = None

    @model_validator(mode="after")
    def _upfront_percent_range(self):
        if self.upfront_type == UpfrontPaymentType.PERCENT and self.upfront_value is not None:
            if self.upfront_value > 100:
                raise ValueError("Upfront percent cannot exceed 100")
        return self


class PaymentTermResponse(BaseModel):
    id: UUID
    proposal_item_id: Optional[UUID] = None
    upfront_type: Optional[UpfrontPaymentType] = None
    upfront_value: Optional[Decimal] = None
    balance_payment_type: Optional[BalancePaymentType] = None
    balance_due_date: Optional[date] = None
    installment_type: Optional[InstallmentType] = None
    installment_count: Optional[int] = None
    installment_frequency: Optional[InstallmentFrequency] = None
    installment_maturity_dates: List[date] = []
    milestone_ids: List[str] = []
    recurring_enabled: Optional[bool] = None
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_custom_months: Optional[int] = None
    recurring_start_date: Optional[date] = None

    class Config:
        from_attributes = True


class ProposalBase(BaseModel):
    """Base proposal schema with common fields."""
    type: ProposalType = ProposalType.FIXED_FEE
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    tax_inclusive: bool = False
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    client_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    client_discount_amount: Optional[Decimal] = Field(None, ge=0)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    recurring_enabled: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_custom_months: Optional[int] = Field(None, ge=1)
    recurring_start_date: Optional[date] = None


class ProposalCreate(ProposalBase):
    """Schema for creating a proposal."""
    client_id: Optional[UUID] = None
    lead_id: Optional[UUID] = None
    proposal_number: Optional[str] = Field(None, max_length=100)
    items: List[ProposalItemCreate] = []
    milestones: List[MilestoneCreate] = []
    payment_terms: List[PaymentTermCreate] = []


class ProposalResponse(ProposalBase):
    """Schema for proposal response."""
    id: UUID
    proposal_number: Optional[str] = None
    client_id: Optional[UUID] = None
    lead_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    status: ProposalStatus
    client_approval_status: ClientApprovalStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    client_approved_at: Optional[datetime] = None
    client_rejected_at: Optional[datetime] = None
    client_rejection_reason: Optional[str] = None
    last_recurring_invoice_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[ProposalItemResponse] = []
    milestones: List[MilestoneResponse] = []
    payment_terms: List[PaymentTermResponse] = []

    class Config:
        from_attributes = True


class ProposalListResponse(BaseModel):
    """Schema for proposal list response."""
    items: List[ProposalResponse]
    total: int


class PaymentTermsSummaryResponse(BaseModel):
    """Classified payment arrangement plus the state of both one-shot invoices."""
    proposal_id: UUID
    arrangement: PaymentArrangement
    description: str
    upfront_invoice: GenerationState
    first_recurring_invoice: GenerationState


class ProposalApprovalRequest(BaseModel):
    """Internal approver decision."""
    status: ApprovalDecision
    comments: Optional[str] = Field(None, max_length=2000)


class ApprovalResponse(BaseModel):
    id: UUID
    proposal_id: UUID
    approver_id: Optional[UUID] = None
    status: ApprovalDecision
    comments: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientDecisionRequest(BaseModel):
    """Client acceptance, given by the client or by staff on the client's behalf."""
    action: Literal["approve", "reject"]
    reason: Optional[str] = Field(None, max_length=2000)
