"""
Proposal models: proposals, line items, milestones, payment terms and approvals.
"""

from sqlalchemy import (
    Column, String, Text, Date, DateTime, JSON, ForeignKey, Numeric, Integer, Boolean,
    Table, func, Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from app.db.base import Base


class ProposalType(str, enum.Enum):
    """Proposal type enumeration."""
    FIXED_FEE = "FIXED_FEE"
    HOURLY = "HOURLY"
    CAPPED_FEE = "CAPPED_FEE"
    RETAINER = "RETAINER"
    SUCCESS_FEE = "SUCCESS_FEE"
    MIXED_MODEL = "MIXED_MODEL"
    RECURRING = "RECURRING"


class ProposalStatus(str, enum.Enum):
    """Internal approval status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ClientApprovalStatus(str, enum.Enum):
    """Client-side acceptance status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BillingMethod(str, enum.Enum):
    """Billing method of a single proposal item."""
    FIXED_FEE = "FIXED_FEE"
    SUCCESS_FEE = "SUCCESS_FEE"
    RECURRING = "RECURRING"
    HOURLY = "HOURLY"
    CAPPED_FEE = "CAPPED_FEE"


class RecurringFrequency(str, enum.Enum):
    """Recurring billing cadence."""
    MONTHLY_1 = "MONTHLY_1"
    MONTHLY_3 = "MONTHLY_3"
    MONTHLY_6 = "MONTHLY_6"
    YEARLY_12 = "YEARLY_12"
    CUSTOM = "CUSTOM"


class UpfrontPaymentType(str, enum.Enum):
    PERCENT = "PERCENT"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class BalancePaymentType(str, enum.Enum):
    MILESTONE_BASED = "MILESTONE_BASED"
    TIME_BASED = "TIME_BASED"
    FULL_UPFRONT = "FULL_UPFRONT"


class InstallmentType(str, enum.Enum):
    TIME_BASED = "TIME_BASED"
    MILESTONE_BASED = "MILESTONE_BASED"


class InstallmentFrequency(str, enum.Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"


class ApprovalDecision(str, enum.Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


proposal_item_milestones = Table(
    "proposal_item_milestones",
    Base.metadata,
    Column("proposal_item_id", UUID(as_uuid=True), ForeignKey("proposal_items.id", ondelete="CASCADE"), primary_key=True),
    Column("milestone_id", UUID(as_uuid=True), ForeignKey("milestones.id", ondelete="CASCADE"), primary_key=True),
)


class Proposal(Base):
    """A billing arrangement offered to a client or lead."""

    __tablename__ = "proposals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    proposal_number = Column(String(100), nullable=True, unique=True, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(SQLEnum(ProposalType), nullable=False, default=ProposalType.FIXED_FEE)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Money
    amount = Column(Numeric(15, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")
    tax_inclusive = Column(Boolean, nullable=False, default=False)
    tax_rate = Column(Numeric(5, 2), nullable=True)  # percent
    client_discount_percent = Column(Numeric(5, 2), nullable=True)  # wins over flat amount
    client_discount_amount = Column(Numeric(15, 2), nullable=True)

    # Workflow
    status = Column(SQLEnum(ProposalStatus), nullable=False, default=ProposalStatus.DRAFT, index=True)
    client_approval_status = Column(SQLEnum(ClientApprovalStatus), nullable=False, default=ClientApprovalStatus.PENDING, index=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    client_approved_at = Column(DateTime, nullable=True)
    client_rejected_at = Column(DateTime, nullable=True)
    client_rejection_reason = Column(String(2000), nullable=True)

    # Proposal-level recurring billing
    recurring_enabled = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(SQLEnum(RecurringFrequency), nullable=True)
    recurring_custom_months = Column(Integer, nullable=True)
    recurring_start_date = Column(Date, nullable=True)
    last_recurring_invoice_date = Column(DateTime, nullable=True)  # set once, by first recurring invoice
    first_recurring_bill_id = Column(UUID(as_uuid=True), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    client = relationship("Client", back_populates="proposals")
    lead = relationship("Lead", back_populates="proposals")
    creator = relationship("User", foreign_keys=[created_by])
    items = relationship("ProposalItem", back_populates="proposal", cascade="all, delete-orphan", order_by="ProposalItem.row_order")
    milestones = relationship("Milestone", back_populates="proposal", cascade="all, delete-orphan")
    payment_terms = relationship("PaymentTerm", back_populates="proposal", cascade="all, delete-orphan")
    approvals = relationship("Approval", back_populates="proposal", cascade="all, delete-orphan")
    bills = relationship("Bill", back_populates="proposal")


class ProposalItem(Base):
    """Line item of a proposal. Recurring fields only apply when billing_method is RECURRING."""

    __tablename__ = "proposal_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    billing_method = Column(SQLEnum(BillingMethod), nullable=True)
    description = Column(String(1000), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=True)
    rate = Column(Numeric(15, 2), nullable=True)
    unit_price = Column(Numeric(15, 2), nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    row_order = Column(Integer, nullable=False, default=0)

    recurring_enabled = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(SQLEnum(RecurringFrequency), nullable=True)
    recurring_custom_months = Column(Integer, nullable=True)
    recurring_start_date = Column(Date, nullable=True)
    last_recurring_invoice_date = Column(DateTime, nullable=True)

    # Relationships
    proposal = relationship("Proposal", back_populates="items")
    milestones = relationship("Milestone", secondary=proposal_item_milestones, back_populates="items")

    @property
    def milestone_ids(self):
        return [milestone.id for milestone in self.milestones]


class Milestone(Base):
    """Named deliverable referenced by payment terms and items."""

    __tablename__ = "milestones"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    amount = Column(Numeric(15, 2), nullable=True)
    percent = Column(Numeric(5, 2), nullable=True)
    due_date = Column(Date, nullable=True)

    # Relationships
    proposal = relationship("Proposal", back_populates="milestones")
    items = relationship("ProposalItem", secondary=proposal_item_milestones, back_populates="milestones")


class PaymentTerm(Base):
    """
    Payment shape of a proposal (proposal_item_id NULL) or of one of its items.
    milestone_ids and installment_maturity_dates are plain JSON arrays
    (milestone ids / ISO dates), not relational joins.
    """

    __tablename__ = "payment_terms"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    proposal_item_id = Column(UUID(as_uuid=True), ForeignKey("proposal_items.id", ondelete="CASCADE"), nullable=True, index=True)

    upfront_type = Column(SQLEnum(UpfrontPaymentType), nullable=True)
    upfront_value = Column(Numeric(15, 2), nullable=True)
    balance_payment_type = Column(SQLEnum(BalancePaymentType), nullable=True)
    balance_due_date = Column(Date, nullable=True)

    installment_type = Column(SQLEnum(InstallmentType), nullable=True)
    installment_count = Column(Integer, nullable=True)
    installment_frequency = Column(SQLEnum(InstallmentFrequency), nullable=True)
    installment_maturity_dates = Column(JSON, nullable=False, default=list)
    milestone_ids = Column(JSON, nullable=False, default=list)

    recurring_enabled = Column(Boolean, nullable=True, default=False)
    recurring_frequency = Column(SQLEnum(RecurringFrequency), nullable=True)
    recurring_custom_months = Column(Integer, nullable=True)
    recurring_start_date = Column(Date, nullable=True)

    # Relationships
    proposal = relationship("Proposal", back_populates="payment_terms")


class Approval(Base):
    """Internal approval decision recorded against a proposal."""

    __tablename__ = "approvals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(SQLEnum(ApprovalDecision), nullable=False)
    comments = Column(String(2000), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    proposal = relationship("Proposal", back_populates="approvals")
    approver = relationship("User")
