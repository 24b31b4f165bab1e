"""
Invoice amount derivation from a proposal's tax and discount configuration.

The same math applies whether the base is the whole proposal, the sum of its
recurring items, or an upfront slice of it.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pydantic import BaseModel

from app.models.proposal import UpfrontPaymentType

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class InvoiceAmounts(BaseModel):
    """Result of applying discount and tax to a base amount."""
    base_amount: Decimal
    discount_value: Decimal
    after_discount: Decimal
    tax_amount: Decimal
    final_amount: Decimal


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce an optional numeric value to Decimal; None becomes 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents for persistence."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_discount(
    base_amount: Decimal,
    discount_percent: Optional[Number],
    discount_amount: Optional[Number],
    proposal_total: Optional[Number],
) -> Decimal:
    """
    Discount applied to base_amount.

    Percent wins whenever it is positive. A flat discount is a share of the
    whole proposal, so a partial invoice only receives
    ``base * discount_amount / proposal_total``; proposal_total falls back to
    the base itself when unset or zero.
    """
    percent = to_decimal(discount_percent)
    flat = to_decimal(discount_amount)

    if percent > 0:
        return base_amount * percent / HUNDRED
    if flat > 0:
        total = to_decimal(proposal_total)
        if total == 0:
            total = base_amount
        if total == 0:
            return ZERO
        return base_amount * flat / total
    return ZERO


def calculate_tax(after_discount: Decimal, tax_rate: Optional[Number], tax_inclusive: bool) -> tuple[Decimal, Decimal]:
    """
    Returns (tax_amount, final_amount).
    Inclusive rates are backed out of the amount, exclusive rates are added to it.
    """
    rate = to_decimal(tax_rate)
    if rate <= 0:
        return ZERO, after_discount
    if tax_inclusive:
        return after_discount * rate / (HUNDRED + rate), after_discount
    tax_amount = after_discount * rate / HUNDRED
    return tax_amount, after_discount + tax_amount


def calculate_invoice_amounts(
    base_amount: Number,
    *,
    tax_rate: Optional[Number] = None,
    tax_inclusive: bool = False,
    discount_percent: Optional[Number] = None,
    discount_amount: Optional[Number] = None,
    proposal_total: Optional[Number] = None,
) -> InvoiceAmounts:
    """
    Turn a base amount into discount, tax and final payable amounts.

    Never raises on the values themselves; callers reject a non-positive
    final amount before writing anything.

    Args:
        base_amount: Amount being invoiced (whole proposal, recurring sum or upfront slice)
        tax_rate: Percent, e.g. 22 for 22%
        tax_inclusive: Whether base_amount already contains the tax
        discount_percent: Proposal client discount percent
        discount_amount: Proposal client flat discount (for the whole proposal)
        proposal_total: Proposal total used to scale the flat discount

    Returns:
        InvoiceAmounts with unrounded Decimal values
    """
    base = to_decimal(base_amount)
    discount_value = calculate_discount(base, discount_percent, discount_amount, proposal_total)
    after_discount = base - discount_value
    tax_amount, final_amount = calculate_tax(after_discount, tax_rate, bool(tax_inclusive))

    return InvoiceAmounts(
        base_amount=base,
        discount_value=discount_value,
        after_discount=after_discount,
        tax_amount=tax_amount,
        final_amount=final_amount,
    )


def calculate_upfront_amount(
    upfront_type: Optional[UpfrontPaymentType],
    upfront_value: Optional[Number],
    proposal_total: Optional[Number],
) -> Decimal:
    """PERCENT is a share of the proposal total, FIXED_AMOUNT is taken as is."""
    value = to_decimal(upfront_value)
    if upfront_type == UpfrontPaymentType.PERCENT:
        return to_decimal(proposal_total) * value / HUNDRED
    if upfront_type == UpfrontPaymentType.FIXED_AMOUNT:
        return value
    return ZERO
