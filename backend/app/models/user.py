"""
User model for internal staff and client portal accounts.
"""

from sqlalchemy import Column, String, Boolean, DateTime, func, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from app.db.base import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    CLIENT = "CLIENT"


class User(Base):
    """Authenticated user. CLIENT users are matched to their Client by email."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.STAFF)
    is_active = Column(Boolean, nullable=False, default=True)

    # Permission overrides (None = use role default)
    can_approve_proposals = Column(Boolean, nullable=True)
    can_view_all_clients = Column(Boolean, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
