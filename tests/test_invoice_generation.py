"""
Invoice generation service tests against an in-memory database.
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import (
    ForbiddenError,
    InvalidAmountError,
    NotFoundError,
    PreconditionFailedError,
)
from app.db.repositories.bill_repository import BillRepository
from app.db.repositories.proposal_repository import ProposalRepository
from app.models.bill import Bill, BillItemType, BillStatus
from app.models.proposal import (
    BillingMethod,
    ClientApprovalStatus,
    ProposalItem,
    ProposalStatus,
    RecurringFrequency,
    UpfrontPaymentType,
)
from app.services.invoice_generation_service import InvoiceGenerationService
from app.utils.clock import utcnow


@pytest.fixture
def service(test_db_session):
    return InvoiceGenerationService(test_db_session)


@pytest.mark.asyncio
async def test_upfront_invoice_applies_discount_to_the_slice(service, make_proposal, staff_user):
    proposal = await make_proposal()

    result = await service.generate_upfront_invoice(proposal.id, staff_user)

    invoice = result.invoice
    assert result.success is True
    assert result.message == "Upfront payment invoice generated successfully"
    assert invoice.subtotal == Decimal("200.00")
    assert result.discount_value == Decimal("20.00")
    assert invoice.amount == Decimal("180.00")
    assert invoice.invoice_number == "INV-2024-001-1"
    assert invoice.status == BillStatus.DRAFT
    assert invoice.is_upfront_payment is True
    assert invoice.discount_percent == Decimal("10")
    assert [item.description for item in invoice.items] == ["Upfront Payment - Website Redesign"]
    assert invoice.items[0].type == BillItemType.CHARGE


@pytest.mark.asyncio
async def test_upfront_invoice_only_once(service, make_proposal, staff_user):
    proposal = await make_proposal()
    await service.generate_upfront_invoice(proposal.id, staff_user)

    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_upfront_invoice(proposal.id, staff_user)
    assert exc.value.message == "Upfront payment invoice already exists for this proposal"

    bills = await BillRepository(service.session).list_by_proposal(proposal.id)
    assert len(bills) == 1


@pytest.mark.asyncio
async def test_upfront_invoice_with_inclusive_tax(service, make_proposal, staff_user):
    proposal = await make_proposal(
        client_discount_percent=None,
        tax_rate=Decimal("22"),
        tax_inclusive=True,
        term={"upfront_type": UpfrontPaymentType.FIXED_AMOUNT, "upfront_value": Decimal("122")},
    )

    result = await service.generate_upfront_invoice(proposal.id, staff_user)

    assert result.invoice.amount == Decimal("122.00")
    assert result.tax_amount == Decimal("22.00")


@pytest.mark.asyncio
async def test_client_users_cannot_generate(service, make_proposal, client_user):
    proposal = await make_proposal()
    with pytest.raises(ForbiddenError):
        await service.generate_upfront_invoice(proposal.id, client_user)
    with pytest.raises(ForbiddenError):
        await service.generate_first_recurring_invoice(proposal.id, client_user)


@pytest.mark.asyncio
async def test_missing_proposal(service, staff_user):
    with pytest.raises(NotFoundError) as exc:
        await service.generate_upfront_invoice(uuid.uuid4(), staff_user)
    assert exc.value.message == "Proposal not found"


@pytest.mark.asyncio
async def test_upfront_requires_client_approval(service, make_proposal, staff_user):
    proposal = await make_proposal(client_approval_status=ClientApprovalStatus.PENDING)
    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_upfront_invoice(proposal.id, staff_user)
    assert exc.value.message == "Proposal must be approved before generating upfront payment invoice"


@pytest.mark.asyncio
async def test_upfront_requires_configuration(service, make_proposal, staff_user):
    proposal = await make_proposal(term={})
    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_upfront_invoice(proposal.id, staff_user)
    assert exc.value.message == "No upfront payment configured for this proposal"


@pytest.mark.asyncio
async def test_zero_upfront_is_rejected(service, make_proposal, staff_user):
    proposal = await make_proposal(
        term={"upfront_type": UpfrontPaymentType.PERCENT, "upfront_value": Decimal("0")}
    )
    with pytest.raises(InvalidAmountError) as exc:
        await service.generate_upfront_invoice(proposal.id, staff_user)
    assert exc.value.message == "Invalid upfront payment amount"


@pytest.mark.asyncio
async def test_full_discount_is_rejected(service, make_proposal, staff_user):
    proposal = await make_proposal(client_discount_percent=Decimal("100"))
    with pytest.raises(InvalidAmountError) as exc:
        await service.generate_upfront_invoice(proposal.id, staff_user)
    assert exc.value.message == "Invalid invoice amount"


@pytest.mark.asyncio
async def test_upfront_number_from_sequence_without_proposal_number(service, make_proposal, staff_user):
    proposal = await make_proposal(proposal_number=None)
    result = await service.generate_upfront_invoice(proposal.id, staff_user)
    assert result.invoice.invoice_number.startswith("INV-")
    assert result.invoice.invoice_number.endswith("-001")


@pytest.mark.asyncio
async def test_first_recurring_invoice_stamps_proposal(service, make_proposal, staff_user):
    proposal = await make_proposal(
        amount=Decimal("300"),
        client_discount_percent=None,
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_1,
        recurring_start_date=date(2024, 6, 1),
        term={},
    )

    result = await service.generate_first_recurring_invoice(proposal.id, staff_user)

    assert result.message == "First recurring invoice generated successfully"
    assert result.invoice.invoice_number == "INV-2024-001-R1"
    assert result.invoice.amount == Decimal("300.00")
    assert result.invoice.is_upfront_payment is False
    assert result.invoice.due_date == date(2024, 6, 1)

    stored = await ProposalRepository(service.session).get(proposal.id)
    assert stored.last_recurring_invoice_date is not None
    assert stored.first_recurring_bill_id == result.invoice.id

    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_first_recurring_invoice(proposal.id, staff_user)
    assert exc.value.message == "First recurring invoice has already been generated for this proposal"


@pytest.mark.asyncio
async def test_first_recurring_invoice_for_recurring_items(service, make_proposal, staff_user, test_db_session):
    proposal = await make_proposal(client_discount_percent=None, term={})
    test_db_session.add_all([
        ProposalItem(
            proposal_id=proposal.id,
            description="Hosting",
            amount=Decimal("40"),
            billing_method=BillingMethod.RECURRING,
            recurring_enabled=True,
            recurring_frequency=RecurringFrequency.MONTHLY_1,
            row_order=0,
        ),
        ProposalItem(
            proposal_id=proposal.id,
            description="Build",
            amount=Decimal("960"),
            billing_method=BillingMethod.FIXED_FEE,
            row_order=1,
        ),
    ])
    await test_db_session.commit()

    result = await service.generate_first_recurring_invoice(proposal.id, staff_user)

    assert result.invoice.subtotal == Decimal("40.00")
    assert [item.description for item in result.invoice.items] == ["Hosting"]

    stored = await ProposalRepository(service.session).get(proposal.id)
    hosting = next(item for item in stored.items if item.description == "Hosting")
    build = next(item for item in stored.items if item.description == "Build")
    assert hosting.last_recurring_invoice_date is not None
    assert build.last_recurring_invoice_date is None


@pytest.mark.asyncio
async def test_first_recurring_invoice_stamps_items_alongside_proposal_level_billing(
    service, make_proposal, staff_user, test_db_session
):
    proposal = await make_proposal(
        amount=Decimal("300"),
        client_discount_percent=None,
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_1,
        term={},
    )
    test_db_session.add(
        ProposalItem(
            proposal_id=proposal.id,
            description="Support retainer",
            amount=Decimal("300"),
            billing_method=BillingMethod.RECURRING,
            recurring_enabled=True,
            recurring_frequency=RecurringFrequency.MONTHLY_1,
            row_order=0,
        )
    )
    await test_db_session.commit()

    result = await service.generate_first_recurring_invoice(proposal.id, staff_user)

    # Proposal-level billing still produces a single line for the proposal amount
    assert result.invoice.subtotal == Decimal("300.00")
    assert [item.description for item in result.invoice.items] == ["Recurring Payment - Website Redesign"]

    stored = await ProposalRepository(service.session).get(proposal.id)
    assert stored.last_recurring_invoice_date is not None
    assert stored.items[0].last_recurring_invoice_date is not None


@pytest.mark.asyncio
async def test_first_recurring_requires_internal_approval(service, make_proposal, staff_user):
    proposal = await make_proposal(
        status=ProposalStatus.SUBMITTED,
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_1,
    )
    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_first_recurring_invoice(proposal.id, staff_user)
    assert exc.value.message == "Proposal must be approved before generating recurring invoice"


@pytest.mark.asyncio
async def test_first_recurring_requires_recurring_billing(service, make_proposal, staff_user):
    proposal = await make_proposal()
    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_first_recurring_invoice(proposal.id, staff_user)
    assert exc.value.message == "This proposal does not have recurring billing enabled"


@pytest.mark.asyncio
async def test_first_recurring_requires_client(service, make_proposal, staff_user, lead_record):
    proposal = await make_proposal(
        client_id=None,
        lead_id=lead_record.id,
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_1,
    )
    with pytest.raises(PreconditionFailedError) as exc:
        await service.generate_first_recurring_invoice(proposal.id, staff_user)
    assert exc.value.message == "Proposal must be associated with a client"


async def _add_bill(session, invoice_number, proposal_id, client_id):
    bill = Bill(
        invoice_number=invoice_number,
        proposal_id=proposal_id,
        client_id=client_id,
        status=BillStatus.DRAFT,
        subtotal=Decimal("50.00"),
        amount=Decimal("50.00"),
        is_upfront_payment=False,
    )
    session.add(bill)
    await session.commit()
    return bill


@pytest.mark.asyncio
async def test_upfront_number_skips_the_proposals_own_bills(
    service, make_proposal, staff_user, client_record, test_db_session
):
    proposal = await make_proposal()
    await _add_bill(test_db_session, "INV-2024-001-1", proposal.id, client_record.id)

    result = await service.generate_upfront_invoice(proposal.id, staff_user)

    assert result.invoice.invoice_number == "INV-2024-001-2"


@pytest.mark.asyncio
async def test_upfront_number_taken_by_another_proposal_uses_sequence(
    service, make_proposal, staff_user, client_record, test_db_session
):
    proposal = await make_proposal(proposal_number="PROP-ACME-7")
    other = await make_proposal(proposal_number="PROP-2024-002")
    await _add_bill(test_db_session, "INV-ACME-7-1", other.id, client_record.id)

    result = await service.generate_upfront_invoice(proposal.id, staff_user)

    assert result.invoice.invoice_number == f"INV-{utcnow().year}-001"


@pytest.mark.asyncio
async def test_first_recurring_number_taken_uses_sequence(
    service, make_proposal, staff_user, client_record, test_db_session
):
    proposal = await make_proposal(
        proposal_number="PROP-ACME-7",
        client_discount_percent=None,
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_1,
    )
    await _add_bill(test_db_session, "INV-ACME-7-R1", None, client_record.id)

    result = await service.generate_first_recurring_invoice(proposal.id, staff_user)

    assert result.invoice.invoice_number == f"INV-{utcnow().year}-001"
