"""
Client and Lead models.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, func, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from app.db.base import Base


class LeadStatus(str, enum.Enum):
    """Lead status enumeration."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"


class Client(Base):
    """Client model for customer management."""

    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    company = Column(String(255), nullable=True)
    default_currency = Column(String(3), default="EUR", nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    proposals = relationship("Proposal", back_populates="client")
    bills = relationship("Bill", back_populates="client")


class Lead(Base):
    """Prospective client; proposals may be addressed to a lead before conversion."""

    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    status = Column(SQLEnum(LeadStatus), nullable=False, default=LeadStatus.NEW)
    converted_client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    converted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    proposals = relationship("Proposal", back_populates="lead")
