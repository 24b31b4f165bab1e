"""
Invoice number derivation and sequence formatting tests.
"""

from app.utils.invoice_number import (
    FIRST_RECURRING_SUFFIX,
    UPFRONT_SUFFIX,
    OpaqueProposalNumber,
    StructuredProposalNumber,
    derive_invoice_number,
    format_proposal_number,
    format_sequential_invoice_number,
    parse_proposal_number,
    next_free_invoice_number,
)


def test_structured_numbers_swap_prefix():
    parsed = parse_proposal_number("PROP-2024-001")
    assert isinstance(parsed, StructuredProposalNumber)
    assert derive_invoice_number(parsed, UPFRONT_SUFFIX) == "INV-2024-001-1"
    assert derive_invoice_number(parsed, FIRST_RECURRING_SUFFIX) == "INV-2024-001-R1"


def test_opaque_numbers_are_used_verbatim():
    parsed = parse_proposal_number("X-55")
    assert isinstance(parsed, OpaqueProposalNumber)
    assert derive_invoice_number(parsed, UPFRONT_SUFFIX) == "X-55-1"


def test_missing_number():
    assert parse_proposal_number(None) is None
    assert parse_proposal_number("") is None


def test_next_free_number_skips_taken_numbers():
    parsed = parse_proposal_number("PROP-2024-001")
    taken = ["INV-2024-001-1", "INV-2024-001-2", None]
    assert next_free_invoice_number(parsed, taken) == "INV-2024-001-3"
    assert next_free_invoice_number(parsed, []) == "INV-2024-001-1"


def test_sequential_invoice_numbers():
    assert format_sequential_invoice_number(2025, None) == "INV-2025-001"
    assert format_sequential_invoice_number(2025, "INV-2025-009") == "INV-2025-010"
    assert format_sequential_invoice_number(2025, "INV-2025-014-R1") == "INV-2025-015"
    assert format_sequential_invoice_number(2025, "INV-2024-120") == "INV-2025-001"


def test_proposal_numbers():
    assert format_proposal_number(2025, None) == "2025-001"
    assert format_proposal_number(2025, "2025-041") == "2025-042"
