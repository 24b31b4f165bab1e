"""
Payment-term classification and description tests.
"""

import uuid
from datetime import date
from decimal import Decimal

from app.models.proposal import (
    BalancePaymentType,
    InstallmentFrequency,
    InstallmentType,
    Milestone,
    PaymentTerm,
    RecurringFrequency,
    UpfrontPaymentType,
)
from app.utils.payment_terms import (
    InstallmentArrangement,
    OneTimeArrangement,
    RecurringArrangement,
    UpfrontArrangement,
    classify_payment_term,
    describe_payment_arrangement,
    recurring_cadence_label,
    select_proposal_level_term,
)


def _milestones():
    return [
        Milestone(id=uuid.uuid4(), name="Design"),
        Milestone(id=uuid.uuid4(), name="Launch"),
    ]


def test_upfront_wins_over_installments():
    term = PaymentTerm(
        upfront_type=UpfrontPaymentType.PERCENT,
        upfront_value=Decimal("20"),
        installment_type=InstallmentType.TIME_BASED,
        installment_count=3,
        installment_frequency=InstallmentFrequency.MONTHLY,
    )
    arrangement = classify_payment_term(term, Decimal("1000"))
    assert isinstance(arrangement, UpfrontArrangement)
    assert arrangement.upfront_amount == Decimal("200")


def test_upfront_with_milestone_balance():
    milestones = _milestones()
    term = PaymentTerm(
        upfront_type=UpfrontPaymentType.PERCENT,
        upfront_value=Decimal("20"),
        balance_payment_type=BalancePaymentType.MILESTONE_BASED,
        milestone_ids=[str(m.id) for m in reversed(milestones)],
    )
    arrangement = classify_payment_term(term, Decimal("1000"), milestones)
    assert arrangement.balance.milestone_names == ["Launch", "Design"]
    assert describe_payment_arrangement(arrangement, "EUR") == (
        "Upfront payment: 20% (EUR 200.00); balance on milestones: Launch, Design"
    )


def test_upfront_fixed_amount_with_full_upfront_balance():
    term = PaymentTerm(
        upfront_type=UpfrontPaymentType.FIXED_AMOUNT,
        upfront_value=Decimal("1500"),
        balance_payment_type=BalancePaymentType.FULL_UPFRONT,
    )
    arrangement = classify_payment_term(term, Decimal("1500"))
    assert describe_payment_arrangement(arrangement, "USD") == (
        "Upfront payment: USD 1,500.00; full upfront (100%)"
    )


def test_time_based_installments_keep_entered_dates():
    term = PaymentTerm(
        installment_type=InstallmentType.TIME_BASED,
        installment_count=3,
        installment_frequency=InstallmentFrequency.MONTHLY,
        installment_maturity_dates=["2024-01-31", "2024-02-29", "2024-03-31"],
    )
    arrangement = classify_payment_term(term, Decimal("900"))
    assert isinstance(arrangement, InstallmentArrangement)
    assert arrangement.maturity_dates[1] == date(2024, 2, 29)
    assert describe_payment_arrangement(arrangement) == (
        "3 payments (monthly) - Time-based on 2024-01-31, 2024-02-29, 2024-03-31"
    )


def test_milestone_installments():
    milestones = _milestones()
    term = PaymentTerm(
        installment_type=InstallmentType.MILESTONE_BASED,
        installment_count=2,
        milestone_ids=[str(m.id) for m in milestones],
    )
    arrangement = classify_payment_term(term, Decimal("900"), milestones)
    assert describe_payment_arrangement(arrangement) == "2 payments - Based on milestones: Design, Launch"


def test_installments_need_a_count():
    term = PaymentTerm(installment_type=InstallmentType.TIME_BASED, installment_count=0)
    assert isinstance(classify_payment_term(term, Decimal("900")), OneTimeArrangement)


def test_recurring_requires_explicit_enable():
    enabled = PaymentTerm(
        recurring_enabled=True,
        recurring_frequency=RecurringFrequency.MONTHLY_3,
        recurring_start_date=date(2024, 5, 1),
    )
    arrangement = classify_payment_term(enabled, Decimal("100"))
    assert isinstance(arrangement, RecurringArrangement)
    assert describe_payment_arrangement(arrangement) == "Recurring payment: Every 3 months - Starting 2024-05-01"

    unset = PaymentTerm(recurring_enabled=None, recurring_frequency=RecurringFrequency.MONTHLY_1)
    assert isinstance(classify_payment_term(unset, Decimal("100")), OneTimeArrangement)


def test_custom_cadence_label():
    assert recurring_cadence_label(RecurringFrequency.CUSTOM, 1) == "Every 1 month"
    assert recurring_cadence_label(RecurringFrequency.CUSTOM, 4) == "Every 4 months"
    assert recurring_cadence_label(RecurringFrequency.YEARLY_12, None) == "Yearly"


def test_empty_term_is_one_time():
    assert describe_payment_arrangement(classify_payment_term(None, Decimal("10"))) == "Paid on completion"
    term = PaymentTerm(balance_due_date=date(2024, 9, 30))
    assert describe_payment_arrangement(classify_payment_term(term, Decimal("10"))) == "Due on 2024-09-30"


def test_proposal_level_term_is_selected():
    item_level = PaymentTerm(proposal_item_id=uuid.uuid4())
    proposal_level = PaymentTerm(proposal_item_id=None)
    assert select_proposal_level_term([item_level, proposal_level]) is proposal_level
    assert select_proposal_level_term([item_level]) is item_level
    assert select_proposal_level_term([]) is None
