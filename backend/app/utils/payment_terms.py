"""
Payment-term classification.

A proposal-level PaymentTerm row is turned once into exactly one arrangement
(upfront, installment, recurring or one-time). The precedence is fixed:
upfront, then installments, then explicitly enabled recurring, then one-time.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from app.models.proposal import (
    BalancePaymentType,
    InstallmentFrequency,
    InstallmentType,
    Milestone,
    PaymentTerm,
    RecurringFrequency,
    UpfrontPaymentType,
)
from app.utils.billing_calculator import Number, calculate_upfront_amount, quantize_money, to_decimal


RECURRING_CADENCE_LABELS = {
    RecurringFrequency.MONTHLY_1: "Monthly",
    RecurringFrequency.MONTHLY_3: "Every 3 months",
    RecurringFrequency.MONTHLY_6: "Every 6 months",
    RecurringFrequency.YEARLY_12: "Yearly",
}


class BalanceSchedule(BaseModel):
    """How the remainder is paid after an upfront payment."""
    balance_type: BalancePaymentType
    due_date: Optional[date] = None
    milestone_names: List[str] = []


class UpfrontArrangement(BaseModel):
    kind: Literal["upfront"] = "upfront"
    upfront_type: UpfrontPaymentType
    upfront_value: Decimal
    upfront_amount: Decimal
    balance: Optional[BalanceSchedule] = None


class InstallmentArrangement(BaseModel):
    kind: Literal["installment"] = "installment"
    installment_type: InstallmentType
    installment_count: int
    frequency: Optional[InstallmentFrequency] = None
    maturity_dates: List[date] = []  # user-entered overrides, not derived from frequency
    milestone_names: List[str] = []


class RecurringArrangement(BaseModel):
    kind: Literal["recurring"] = "recurring"
    frequency: RecurringFrequency
    custom_months: Optional[int] = None
    start_date: Optional[date] = None
    cadence_label: str


class OneTimeArrangement(BaseModel):
    kind: Literal["one_time"] = "one_time"
    due_date: Optional[date] = None


PaymentArrangement = Annotated[
    Union[UpfrontArrangement, InstallmentArrangement, RecurringArrangement, OneTimeArrangement],
    Field(discriminator="kind"),
]


def select_proposal_level_term(terms: Optional[Sequence[PaymentTerm]]) -> Optional[PaymentTerm]:
    """The row without a proposal item is authoritative; fall back to the first row."""
    if not terms:
        return None
    for term in terms:
        if term.proposal_item_id is None:
            return term
    return terms[0]


def has_upfront(term: Optional[PaymentTerm]) -> bool:
    return bool(term is not None and term.upfront_type and term.upfront_value is not None)


def recurring_cadence_label(frequency: Optional[RecurringFrequency], custom_months: Optional[int]) -> str:
    if frequency == RecurringFrequency.CUSTOM:
        if not custom_months:
            return ""
        return f"Every {custom_months} month{'s' if custom_months > 1 else ''}"
    return RECURRING_CADENCE_LABELS.get(frequency, "")


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _milestone_names(milestone_ids: Optional[Iterable], milestones: Optional[Iterable[Milestone]]) -> List[str]:
    """Resolve stored milestone ids against the proposal's milestones, keeping the stored order."""
    by_id = {str(m.id): m.name for m in (milestones or [])}
    return [by_id[str(mid)] for mid in (milestone_ids or []) if str(mid) in by_id]


def classify_payment_term(
    term: Optional[PaymentTerm],
    proposal_total: Optional[Number],
    milestones: Optional[Iterable[Milestone]] = None,
) -> Union[UpfrontArrangement, InstallmentArrangement, RecurringArrangement, OneTimeArrangement]:
    """
    Build the arrangement for a proposal-level payment term.

    Args:
        term: Proposal-level PaymentTerm row (None is treated as an empty row)
        proposal_total: Proposal amount, used for PERCENT upfront payments
        milestones: The proposal's milestones, for resolving milestone_ids

    Returns:
        Exactly one of the four arrangement models
    """
    if term is None:
        return OneTimeArrangement()

    milestones = list(milestones or [])

    if has_upfront(term):
        balance = None
        if term.balance_payment_type:
            balance = BalanceSchedule(balance_type=term.balance_payment_type)
            if term.balance_payment_type == BalancePaymentType.MILESTONE_BASED:
                balance.milestone_names = _milestone_names(term.milestone_ids, milestones)
            elif term.balance_payment_type == BalancePaymentType.TIME_BASED:
                balance.due_date = _parse_date(term.balance_due_date)
        return UpfrontArrangement(
            upfront_type=term.upfront_type,
            upfront_value=to_decimal(term.upfront_value),
            upfront_amount=calculate_upfront_amount(term.upfront_type, term.upfront_value, proposal_total),
            balance=balance,
        )

    if term.installment_type and term.installment_count:
        arrangement = InstallmentArrangement(
            installment_type=term.installment_type,
            installment_count=term.installment_count,
            frequency=term.installment_frequency,
        )
        if term.installment_type == InstallmentType.MILESTONE_BASED:
            arrangement.milestone_names = _milestone_names(term.milestone_ids, milestones)
        else:
            arrangement.maturity_dates = [
                d for d in (_parse_date(v) for v in (term.installment_maturity_dates or [])) if d
            ]
        return arrangement

    if term.recurring_enabled is True and term.recurring_frequency:
        return RecurringArrangement(
            frequency=term.recurring_frequency,
            custom_months=term.recurring_custom_months,
            start_date=_parse_date(term.recurring_start_date),
            cadence_label=recurring_cadence_label(term.recurring_frequency, term.recurring_custom_months),
        )

    return OneTimeArrangement(due_date=_parse_date(term.balance_due_date))


def _format_money(amount: Decimal, currency: str) -> str:
    return f"{currency} {quantize_money(amount):,.2f}"


def describe_payment_arrangement(arrangement: BaseModel, currency: str = "EUR") -> str:
    """Human-readable one-paragraph description of an arrangement."""
    if isinstance(arrangement, UpfrontArrangement):
        if arrangement.upfront_type == UpfrontPaymentType.PERCENT:
            text = (
                f"Upfront payment: {arrangement.upfront_value.normalize():f}% "
                f"({_format_money(arrangement.upfront_amount, currency)})"
            )
        else:
            text = f"Upfront payment: {_format_money(arrangement.upfront_amount, currency)}"
        balance = arrangement.balance
        if balance is None:
            return text
        if balance.balance_type == BalancePaymentType.MILESTONE_BASED:
            names = ", ".join(balance.milestone_names)
            return f"{text}; balance on milestones: {names}" if names else f"{text}; balance milestone-based"
        if balance.balance_type == BalancePaymentType.TIME_BASED:
            if balance.due_date:
                return f"{text}; balance due on {balance.due_date.isoformat()}"
            return f"{text}; balance due upon completion"
        return f"{text}; full upfront (100%)"

    if isinstance(arrangement, InstallmentArrangement):
        count = arrangement.installment_count
        text = f"{count} payment{'s' if count > 1 else ''}"
        if arrangement.frequency:
            text += f" ({arrangement.frequency.value.lower()})"
        if arrangement.installment_type == InstallmentType.MILESTONE_BASED:
            text += " - Based on milestones"
            if arrangement.milestone_names:
                text += f": {', '.join(arrangement.milestone_names)}"
            return text
        text += " - Time-based"
        if arrangement.maturity_dates:
            text += f" on {', '.join(d.isoformat() for d in arrangement.maturity_dates)}"
        return text

    if isinstance(arrangement, RecurringArrangement):
        text = f"Recurring payment: {arrangement.cadence_label}"
        if arrangement.start_date:
            text += f" - Starting {arrangement.start_date.isoformat()}"
        return text

    if isinstance(arrangement, OneTimeArrangement) and arrangement.due_date:
        return f"Due on {arrangement.due_date.isoformat()}"
    return "Paid on completion"
