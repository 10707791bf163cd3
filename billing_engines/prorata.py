"""
Pro-Rata Engine - Scale line items to partial billing periods.

A service billed for part of a cycle (activated on the 15th, terminated
before the cycle completes) is charged amount x actual_days /
total_cycle_days. Each adjusted line is displayed and persisted on its own,
so rounding is applied per item here, unlike the aggregate totals.

Pure functions with no I/O.

Usage:
    from billing_engines.prorata import apply_pro_rata

    adjusted = apply_pro_rata(service.line_items, period)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from billing_kernel.domain.values import (
    BillingPeriod,
    LineItem,
    ProRataLineItem,
    ServiceLineItem,
)
from billing_kernel.logging_config import get_logger
from billing_engines.totals import round_currency
from billing_engines.tracer import traced_engine

logger = get_logger("engines.prorata")


def pro_rata_amount(full_amount: Decimal, actual_days: int, total_days: int) -> Decimal:
    """
    Scale a full-cycle amount to ``actual_days`` of ``total_days``.

    Returns the full amount when the period covers the whole cycle,
    otherwise the scaled amount; either way rounded to 2dp half-up.
    """
    if total_days <= 0:
        raise ValueError("total_days must be positive")
    if actual_days >= total_days:
        return round_currency(full_amount)
    return round_currency(full_amount * actual_days / total_days)


def pro_rate_item(item: ServiceLineItem, actual_days: int, total_days: int) -> ProRataLineItem:
    """Pro-rated copy of a single service line item."""
    return ProRataLineItem(
        description=item.description,
        quantity=item.quantity,
        unit_price=item.unit_price,
        amount=pro_rata_amount(item.amount, actual_days, total_days),
        pro_rata_days=actual_days,
        pro_rata_total_days=total_days,
        original_amount=item.amount,
    )


@traced_engine("prorata", "1.0", fingerprint_fields=("line_items", "period"))
def apply_pro_rata(
    line_items: Sequence[ServiceLineItem],
    period: BillingPeriod,
) -> list[LineItem]:
    """
    Pro-rate line items for a billing period.

    Pure function.

    Full-cycle periods return the items unchanged, with no pro-rata
    annotation. Partial periods return ProRataLineItems whose amount is
    scaled and whose quantity/unit_price keep their original values.

    Args:
        line_items: Full-cycle service line items
        period: Resolved billing period

    Returns:
        List of line items, in input order
    """
    if period.is_full_cycle:
        return list(line_items)

    adjusted = [
        pro_rate_item(item, period.actual_days, period.total_cycle_days)
        for item in line_items
    ]

    logger.info("pro_rata_applied", extra={
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "actual_days": period.actual_days,
        "total_cycle_days": period.total_cycle_days,
        "line_item_count": len(adjusted),
    })

    return adjusted
