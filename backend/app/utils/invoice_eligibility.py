"""
One-shot invoice generation state for a proposal.

Each generated invoice type (upfront, first recurring) is unlocked once:
NotGenerated until a bill exists, then Generated for good.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel

from app.models.bill import Bill
from app.models.proposal import BillingMethod, Proposal, ProposalItem
from app.utils.billing_calculator import ZERO, to_decimal


class NotGenerated(BaseModel):
    state: Literal["not_generated"] = "not_generated"


class Generated(BaseModel):
    state: Literal["generated"] = "generated"
    at: Optional[datetime] = None
    bill_id: Optional[UUID] = None


GenerationState = Union[NotGenerated, Generated]


def upfront_invoice_state(bills: Iterable[Bill]) -> GenerationState:
    """Generated as soon as any bill of the proposal is flagged as the upfront payment."""
    for bill in bills:
        if bill.is_upfront_payment:
            return Generated(at=bill.created_at, bill_id=bill.id)
    return NotGenerated()


def first_recurring_invoice_state(proposal: Proposal) -> GenerationState:
    if proposal.last_recurring_invoice_date is None:
        return NotGenerated()
    return Generated(at=proposal.last_recurring_invoice_date, bill_id=proposal.first_recurring_bill_id)


def is_recurring_item(item: ProposalItem) -> bool:
    return item.billing_method == BillingMethod.RECURRING and bool(item.recurring_enabled)


def recurring_items(proposal: Proposal) -> List[ProposalItem]:
    return [item for item in (proposal.items or []) if is_recurring_item(item)]


def has_proposal_level_recurring(proposal: Proposal) -> bool:
    return bool(proposal.recurring_enabled and proposal.recurring_frequency)


def has_recurring_billing(proposal: Proposal) -> bool:
    return has_proposal_level_recurring(proposal) or bool(recurring_items(proposal))


def recurring_base_amount(proposal: Proposal) -> Decimal:
    """Proposal amount for proposal-level recurring, else the sum of recurring item amounts."""
    if has_proposal_level_recurring(proposal):
        return to_decimal(proposal.amount)
    return sum((to_decimal(item.amount) for item in recurring_items(proposal)), ZERO)


def recurring_description(proposal: Proposal) -> str:
    if has_proposal_level_recurring(proposal):
        return f"Recurring Payment - {proposal.title}"
    return "Recurring Payment - " + ", ".join(item.description for item in recurring_items(proposal))
