"""
Invoice numbers derived from proposal numbers.

PROP-2024-001 -> INV-2024-001-1 (upfront) / INV-2024-001-R1 (first recurring).
Numbers without the PROP- prefix get the suffix appended verbatim.
"""

import re
from typing import Iterable, Literal, Optional, Union

from pydantic import BaseModel

from app.core.config import settings

UPFRONT_SUFFIX = "1"
FIRST_RECURRING_SUFFIX = "R1"

_SEQUENCE_WIDTH = 3


class StructuredProposalNumber(BaseModel):
    """Proposal number carrying the conventional prefix."""
    kind: Literal["structured"] = "structured"
    prefix: str
    identifier: str


class OpaqueProposalNumber(BaseModel):
    """Anything else; used verbatim."""
    kind: Literal["opaque"] = "opaque"
    raw: str


ParsedProposalNumber = Union[StructuredProposalNumber, OpaqueProposalNumber]


def parse_proposal_number(raw: Optional[str]) -> Optional[ParsedProposalNumber]:
    """Classify a stored proposal number once; None when the proposal has none."""
    if not raw:
        return None
    prefix = settings.PROPOSAL_NUMBER_PREFIX
    if raw.startswith(prefix):
        return StructuredProposalNumber(prefix=prefix, identifier=raw[len(prefix):])
    return OpaqueProposalNumber(raw=raw)


def invoice_base_number(parsed: ParsedProposalNumber) -> str:
    if isinstance(parsed, StructuredProposalNumber):
        return f"{settings.INVOICE_NUMBER_PREFIX}{parsed.identifier}"
    return parsed.raw


def derive_invoice_number(parsed: ParsedProposalNumber, suffix: str) -> str:
    return f"{invoice_base_number(parsed)}-{suffix}"


def next_free_invoice_number(parsed: ParsedProposalNumber, taken: Iterable[Optional[str]], start: int = 1) -> str:
    """
    Try -1, -2, ... until the number is not among ``taken``
    (the invoice numbers already issued for the proposal).
    """
    taken_numbers = {number for number in taken if number}
    suffix = start
    candidate = derive_invoice_number(parsed, str(suffix))
    while candidate in taken_numbers:
        suffix += 1
        candidate = derive_invoice_number(parsed, str(suffix))
    return candidate


def _next_sequence(last_number: Optional[str], prefix: str) -> int:
    if not last_number or not last_number.startswith(prefix):
        return 1
    match = re.match(r"\d+", last_number[len(prefix):])
    if not match:
        return 1
    return int(match.group(0)) + 1


def sequential_invoice_prefix(year: int) -> str:
    return f"{settings.INVOICE_NUMBER_PREFIX}{year}-"


def format_sequential_invoice_number(year: int, last_number: Optional[str]) -> str:
    """Next INV-YYYY-NNN after the highest number issued this year."""
    prefix = sequential_invoice_prefix(year)
    return f"{prefix}{_next_sequence(last_number, prefix):0{_SEQUENCE_WIDTH}d}"


def format_proposal_number(year: int, last_number: Optional[str]) -> str:
    """Next YYYY-NNN proposal number."""
    prefix = f"{year}-"
    return f"{prefix}{_next_sequence(last_number, prefix):0{_SEQUENCE_WIDTH}d}"
