"""
Bill (invoice) models.
"""

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Numeric, Boolean, func, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from app.db.base import Base


class BillStatus(str, enum.Enum):
    """Bill status enumeration."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    WRITTEN_OFF = "WRITTEN_OFF"


class BillItemType(str, enum.Enum):
    """Bill item type enumeration."""
    CHARGE = "CHARGE"
    TIMESHEET = "TIMESHEET"
    EXPENSE = "EXPENSE"


class Bill(Base):
    """
    Generated invoice.
    Tax and discount settings are copied from the proposal at generation time
    so later proposal edits do not change issued invoices.
    """

    __tablename__ = "bills"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    invoice_number = Column(String(100), nullable=True, unique=True, index=True)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(SQLEnum(BillStatus), nullable=False, default=BillStatus.DRAFT, index=True)
    description = Column(String(2000), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")

    subtotal = Column(Numeric(15, 2), nullable=False)  # pre-discount, pre-tax base
    amount = Column(Numeric(15, 2), nullable=False)  # final payable
    tax_inclusive = Column(Boolean, nullable=False, default=False)
    tax_rate = Column(Numeric(5, 2), nullable=True)
    discount_percent = Column(Numeric(5, 2), nullable=True)
    discount_amount = Column(Numeric(15, 2), nullable=True)
    is_upfront_payment = Column(Boolean, nullable=False, default=False, index=True)

    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    proposal = relationship("Proposal", back_populates="bills")
    client = relationship("Client", back_populates="bills")
    creator = relationship("User", foreign_keys=[created_by])
    items = relationship("BillItem", back_populates="bill", cascade="all, delete-orphan")


class BillItem(Base):
    """Line item of a bill."""

    __tablename__ = "bill_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    bill_id = Column(UUID(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(BillItemType), nullable=False, default=BillItemType.CHARGE)
    description = Column(String(1000), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_price = Column(Numeric(15, 2), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    is_credit = Column(Boolean, nullable=False, default=False)

    # Relationships
    bill = relationship("Bill", back_populates="items")
