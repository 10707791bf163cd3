"""
Line Item Totals Engine.

Pure functions with deterministic behavior. No I/O.

Computes subtotal, tax and total for a set of service or pro-rated line
items. Rounding to currency precision (2 decimal places, ROUND_HALF_UP)
happens once, at the aggregate level, so per-line rounding error never
compounds.

Usage:
    from billing_engines.totals import compute_totals
    from billing_kernel.domain.values import ServiceLineItem
    from decimal import Decimal

    totals = compute_totals(
        [ServiceLineItem("Consulting", Decimal("1"), Decimal("1000"))],
        Decimal("10"),
    )
    # subtotal=1000.00, tax_amount=100.00, total_amount=1100.00
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from billing_kernel.domain.values import BillingTotals, LineItem, to_decimal
from billing_kernel.exceptions import InvalidLineItemError, InvalidTaxRateError
from billing_kernel.logging_config import get_logger
from billing_engines.tracer import traced_engine

logger = get_logger("engines.totals")

_TWO_PLACES = Decimal("0.01")
_HUNDRED = Decimal("100")


def round_currency(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def validate_line_items(line_items: Sequence[LineItem]) -> None:
    """
    Reject line items that cannot be billed.

    Raises:
        InvalidLineItemError: for the first item with an empty description,
            a non-finite or negative quantity or unit price; ``index`` is
            its position in ``line_items``
    """
    for index, item in enumerate(line_items):
        description = item.description
        if not isinstance(description, str) or not description.strip():
            raise InvalidLineItemError(index, "description", description, "must not be empty")
        for field_name in ("quantity", "unit_price"):
            value = getattr(item, field_name)
            if not value.is_finite():
                raise InvalidLineItemError(index, field_name, value, "must be a finite number")
            if value < 0:
                raise InvalidLineItemError(index, field_name, value, "must be non-negative")


def validate_tax_rate(tax_rate: Decimal) -> Decimal:
    """Normalize a tax rate percentage and check it lies in 0-100."""
    try:
        rate = to_decimal(tax_rate, "tax_rate")
    except TypeError as exc:
        raise InvalidTaxRateError(tax_rate) from exc
    if not rate.is_finite() or rate < 0 or rate > _HUNDRED:
        raise InvalidTaxRateError(tax_rate)
    return rate


@traced_engine("totals", "1.0", fingerprint_fields=("line_items", "tax_rate"))
def compute_totals(
    line_items: Sequence[LineItem],
    tax_rate: Decimal,
) -> BillingTotals:
    """
    Total a set of line items with tax.

    Pure function.

    Each item's amount is derived rather than trusted: quantity x unit_price
    for service items, the scaled amount for pro-rated items.

    Args:
        line_items: Service or pro-rated line items
        tax_rate: Tax percentage (0-100)

    Returns:
        BillingTotals where total_amount == subtotal + tax_amount exactly

    Raises:
        InvalidLineItemError: if any item is invalid
        InvalidTaxRateError: if tax_rate is outside 0-100
    """
    rate = validate_tax_rate(tax_rate)
    validate_line_items(line_items)

    raw_subtotal = sum((item.amount for item in line_items), Decimal("0"))
    subtotal = round_currency(raw_subtotal)
    tax_amount = round_currency(subtotal * rate / _HUNDRED)
    total_amount = subtotal + tax_amount

    logger.debug("billing_totals_computed", extra={
        "line_item_count": len(line_items),
        "subtotal": str(subtotal),
        "tax_rate": str(rate),
        "tax_amount": str(tax_amount),
        "total_amount": str(total_amount),
    })

    return BillingTotals(
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )
