"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from app.models.user import User, UserRole
from app.models.client import Client, Lead
from app.models.proposal import (
    Proposal,
    ProposalItem,
    Milestone,
    PaymentTerm,
    Approval,
    proposal_item_milestones,
)
from app.models.bill import Bill, BillItem

__all__ = [
    "User",
    "UserRole",
    "Client",
    "Lead",
    "Proposal",
    "ProposalItem",
    "Milestone",
    "PaymentTerm",
    "Approval",
    "proposal_item_milestones",
    "Bill",
    "BillItem",
]
