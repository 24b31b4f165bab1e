"""
Invoice generation service.
Turns an approved proposal into its upfront invoice or its first recurring invoice.

Both invoices are one-shot: the "already generated" checks are plain reads
followed by unguarded writes, so two concurrent requests for the same
proposal can both pass them.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    InvalidAmountError,
)
from app.core.integrations.observability import record_billing_event
from app.core.permissions import can_generate_invoices
from app.services.base_service import BaseService
from app.db.repositories.proposal_repository import ProposalRepository
from app.db.repositories.proposal_item_repository import ProposalItemRepository
from app.db.repositories.bill_repository import BillRepository
from app.models.bill import Bill, BillItem, BillItemType, BillStatus
from app.models.proposal import Proposal, PaymentTerm, ProposalStatus, ClientApprovalStatus
from app.models.user import User
from app.schemas.bill import BillResponse, InvoiceGenerationResponse
from app.utils.billing_calculator import (
    InvoiceAmounts,
    calculate_invoice_amounts,
    calculate_upfront_amount,
    quantize_money,
    to_decimal,
)
from app.utils.clock import utcnow
from app.utils.invoice_eligibility import (
    Generated,
    upfront_invoice_state,
    first_recurring_invoice_state,
    has_recurring_billing,
    has_proposal_level_recurring,
    recurring_items,
    recurring_base_amount,
    recurring_description,
)
from app.utils.invoice_number import (
    UPFRONT_SUFFIX,
    FIRST_RECURRING_SUFFIX,
    parse_proposal_number,
    derive_invoice_number,
    next_free_invoice_number,
    sequential_invoice_prefix,
    format_sequential_invoice_number,
)
from app.utils.payment_terms import has_upfront, select_proposal_level_term

logger = logging.getLogger(__name__)


def find_upfront_term(terms: Optional[Sequence[PaymentTerm]]) -> Optional[PaymentTerm]:
    """Proposal-level term when it carries the upfront payment, else the first item-level one that does."""
    proposal_level = select_proposal_level_term(terms)
    if has_upfront(proposal_level):
        return proposal_level
    for term in terms or []:
        if has_upfront(term):
            return term
    return None


class InvoiceGenerationService(BaseService):
    """Service for generating invoices from proposals."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.proposal_repo = ProposalRepository(session)
        self.proposal_item_repo = ProposalItemRepository(session)
        self.bill_repo = BillRepository(session)

    async def generate_upfront_invoice(self, proposal_id: UUID, current_user: User) -> InvoiceGenerationResponse:
        """
        Create the DRAFT upfront-payment bill for a client-approved proposal.

        Raises:
            ForbiddenError: Caller is a client
            NotFoundError: Proposal does not exist
            PreconditionFailedError: Not client-approved, already generated or no upfront configured
            InvalidAmountError: Upfront or final amount is not positive
        """
        if not can_generate_invoices(current_user):
            raise ForbiddenError()

        proposal = await self.proposal_repo.get_active(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")

        if proposal.client_approval_status != ClientApprovalStatus.APPROVED:
            raise PreconditionFailedError("Proposal must be approved before generating upfront payment invoice")

        existing_bills = await self.bill_repo.list_by_proposal(proposal.id)
        if isinstance(upfront_invoice_state(existing_bills), Generated):
            raise PreconditionFailedError("Upfront payment invoice already exists for this proposal")

        term = find_upfront_term(proposal.payment_terms)
        if term is None:
            raise PreconditionFailedError("No upfront payment configured for this proposal")

        upfront_amount = calculate_upfront_amount(term.upfront_type, term.upfront_value, proposal.amount)
        if upfront_amount <= 0:
            raise InvalidAmountError("Invalid upfront payment amount")

        amounts = self._amounts_for(proposal, upfront_amount)
        if amounts.final_amount <= 0:
            raise InvalidAmountError("Invalid invoice amount")

        invoice_number = await self._upfront_invoice_number(proposal, existing_bills)

        bill = self._build_bill(
            proposal,
            current_user,
            invoice_number=invoice_number,
            amounts=amounts,
            description=f"Upfront Payment - {proposal.title}",
            is_upfront_payment=True,
        )
        bill.items = [
            BillItem(
                type=BillItemType.CHARGE,
                description=f"Upfront Payment - {proposal.title}",
                quantity=Decimal("1"),
                unit_price=quantize_money(upfront_amount),
                amount=quantize_money(upfront_amount),
            )
        ]
        await self._save_bill(bill, proposal)

        logger.info(
            f"Generated upfront invoice {invoice_number} for proposal {proposal.id}",
            extra={"proposal_id": str(proposal.id), "invoice_number": invoice_number},
        )
        record_billing_event(
            "invoice.upfront_generated", proposal_id=proposal.id, bill_id=bill.id, amount=bill.amount
        )
        return await self._generation_response(
            bill.id, amounts, "Upfront payment invoice generated successfully"
        )

    async def generate_first_recurring_invoice(self, proposal_id: UUID, current_user: User) -> InvoiceGenerationResponse:
        """
        Create the first recurring bill for an approved proposal and stamp the proposal
        (and, for item-level recurring billing, its recurring items) as invoiced.

        Raises:
            ForbiddenError: Caller is a client
            NotFoundError: Proposal does not exist
            PreconditionFailedError: Not approved, no recurring billing, already generated or no client
            InvalidAmountError: Base or final amount is not positive
        """
        if not can_generate_invoices(current_user):
            raise ForbiddenError()

        proposal = await self.proposal_repo.get_active(proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")

        if proposal.status != ProposalStatus.APPROVED:
            raise PreconditionFailedError("Proposal must be approved before generating recurring invoice")

        if not has_recurring_billing(proposal):
            raise PreconditionFailedError("This proposal does not have recurring billing enabled")

        if isinstance(first_recurring_invoice_state(proposal), Generated):
            raise PreconditionFailedError("First recurring invoice has already been generated for this proposal")

        base_amount = recurring_base_amount(proposal)
        amounts = self._amounts_for(proposal, base_amount)
        if base_amount <= 0 or amounts.final_amount <= 0:
            raise InvalidAmountError("Invalid invoice amount")

        if proposal.client_id is None:
            raise PreconditionFailedError("Proposal must be associated with a client")

        invoice_number = await self._first_recurring_invoice_number(proposal)
        stamped_items = recurring_items(proposal)
        # Proposal-level recurring billing is one line; otherwise one line per recurring item
        billed_items = [] if has_proposal_level_recurring(proposal) else stamped_items

        bill = self._build_bill(
            proposal,
            current_user,
            invoice_number=invoice_number,
            amounts=amounts,
            description=recurring_description(proposal),
            is_upfront_payment=False,
        )
        bill.due_date = proposal.recurring_start_date or next(
            (item.recurring_start_date for item in billed_items if item.recurring_start_date), None
        )
        bill.items = self._recurring_bill_items(proposal, billed_items, base_amount)
        await self._save_bill(bill, proposal)

        # Bill is already committed; the stamps below are separate writes.
        invoiced_at = utcnow()
        await self.proposal_repo.update(
            proposal.id,
            last_recurring_invoice_date=invoiced_at,
            first_recurring_bill_id=bill.id,
        )
        await self.commit(f"stamp first recurring invoice on proposal {proposal.id}")

        if stamped_items:
            stamped = await self.proposal_item_repo.stamp_recurring_invoiced(
                [item.id for item in stamped_items], invoiced_at
            )
            await self.commit(f"stamp recurring items on proposal {proposal.id}")
            logger.info(f"Stamped {stamped} recurring items on proposal {proposal.id}")

        logger.info(
            f"Generated first recurring invoice {invoice_number} for proposal {proposal.id}",
            extra={"proposal_id": str(proposal.id), "invoice_number": invoice_number},
        )
        record_billing_event(
            "invoice.first_recurring_generated", proposal_id=proposal.id, bill_id=bill.id, amount=bill.amount
        )
        return await self._generation_response(
            bill.id, amounts, "First recurring invoice generated successfully"
        )

    def _amounts_for(self, proposal: Proposal, base_amount: Decimal) -> InvoiceAmounts:
        return calculate_invoice_amounts(
            base_amount,
            tax_rate=proposal.tax_rate,
            tax_inclusive=bool(proposal.tax_inclusive),
            discount_percent=proposal.client_discount_percent,
            discount_amount=proposal.client_discount_amount,
            proposal_total=proposal.amount,
        )

    def _build_bill(
        self,
        proposal: Proposal,
        current_user: User,
        *,
        invoice_number: str,
        amounts: InvoiceAmounts,
        description: str,
        is_upfront_payment: bool,
    ) -> Bill:
        return Bill(
            invoice_number=invoice_number,
            proposal_id=proposal.id,
            client_id=proposal.client_id,
            created_by=current_user.id,
            status=BillStatus.DRAFT,
            description=description,
            currency=proposal.currency,
            subtotal=quantize_money(amounts.base_amount),
            amount=quantize_money(amounts.final_amount),
            tax_inclusive=bool(proposal.tax_inclusive),
            tax_rate=proposal.tax_rate,
            discount_percent=proposal.client_discount_percent,
            discount_amount=proposal.client_discount_amount,
            is_upfront_payment=is_upfront_payment,
        )

    def _recurring_bill_items(self, proposal: Proposal, billed_items: list, base_amount: Decimal) -> List[BillItem]:
        """One line per recurring item, or a single line for proposal-level recurring billing."""
        if not billed_items:
            return [
                BillItem(
                    type=BillItemType.CHARGE,
                    description=recurring_description(proposal),
                    quantity=Decimal("1"),
                    unit_price=quantize_money(base_amount),
                    amount=quantize_money(base_amount),
                )
            ]
        lines = []
        for item in billed_items:
            amount = to_decimal(item.amount)
            quantity = to_decimal(item.quantity) if item.quantity else Decimal("1")
            price = item.unit_price if item.unit_price is not None else item.rate
            unit_price = to_decimal(price) if price is not None else amount / quantity
            lines.append(
                BillItem(
                    type=BillItemType.CHARGE,
                    description=item.description,
                    quantity=quantity,
                    unit_price=quantize_money(unit_price),
                    amount=quantize_money(amount),
                )
            )
        return lines

    async def _save_bill(self, bill: Bill, proposal: Proposal) -> None:
        self.session.add(bill)
        await self.commit(f"save invoice {bill.invoice_number} for proposal {proposal.id}")

    async def _next_sequential_invoice_number(self) -> str:
        """INV-YYYY-NNN, one past the highest number issued this year."""
        year = utcnow().year
        last = await self.bill_repo.get_latest_invoice_number_with_prefix(sequential_invoice_prefix(year))
        return format_sequential_invoice_number(year, last)

    async def _upfront_invoice_number(self, proposal: Proposal, existing_bills: Sequence[Bill]) -> str:
        parsed = parse_proposal_number(proposal.proposal_number)
        if parsed is None:
            return await self._next_sequential_invoice_number()

        candidate = derive_invoice_number(parsed, UPFRONT_SUFFIX)
        taken = [bill.invoice_number for bill in existing_bills]
        if candidate in taken:
            candidate = next_free_invoice_number(parsed, taken)
        if await self.bill_repo.get_by_invoice_number(candidate):
            # Taken by a bill of another proposal
            return await self._next_sequential_invoice_number()
        return candidate

    async def _first_recurring_invoice_number(self, proposal: Proposal) -> str:
        parsed = parse_proposal_number(proposal.proposal_number)
        if parsed is None:
            return await self._next_sequential_invoice_number()

        candidate = derive_invoice_number(parsed, FIRST_RECURRING_SUFFIX)
        if await self.bill_repo.get_by_invoice_number(candidate):
            return await self._next_sequential_invoice_number()
        return candidate

    async def _generation_response(
        self,
        bill_id: UUID,
        amounts: InvoiceAmounts,
        message: str,
    ) -> InvoiceGenerationResponse:
        bill = await self.bill_repo.get(bill_id)
        return InvoiceGenerationResponse(
            success=True,
            invoice=BillResponse.model_validate(bill),
            message=message,
            discount_value=quantize_money(amounts.discount_value),
            tax_amount=quantize_money(amounts.tax_amount),
        )
