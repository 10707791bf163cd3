"""
Billing Preview Engine.

Pure functions with deterministic behavior. No I/O.

Composes the billing engines in a fixed order for one service:

    resolve period (cycle) -> pro-rate (prorata / history) -> totals

and returns a preview the operator confirms before the outer layer writes
an invoice (outgoing service) or payment record (incoming service). The
preview carries no identifiers and is safe to recompute on every edit;
discarding a result needs no rollback.

Usage:
    from billing_engines.preview import preview_billing

    preview = preview_billing(service, as_of_date=date(2024, 3, 1))
    preview.totals.total_amount
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date

from billing_kernel.domain.values import (
    BillingPeriod,
    BillingTotals,
    LineItem,
    ServiceDefinition,
    ServiceDirection,
)
from billing_kernel.exceptions import InvalidCycleConfigurationError
from billing_kernel.logging_config import get_logger
from billing_engines.cycle import one_off_period, reference_date_for, resolve_period
from billing_engines.history import ProRataDetails, pro_rate_history
from billing_engines.prorata import apply_pro_rata
from billing_engines.totals import compute_totals, validate_line_items
from billing_engines.tracer import traced_engine

logger = get_logger("engines.preview")


@dataclass(frozen=True)
class BillingPreview:
    """
    What an invoice or payment for the period should contain.

    Attributes:
        direction: OUTGOING (invoice) or INCOMING (payment record)
        currency: Opaque currency code of the service, None if unset
        period: Billing period covered
        line_items: Line items as they should be written
        totals: Subtotal, tax and total of line_items
        pro_rata_applied: True if any amount was scaled for a partial period
        pro_rata_details: Segment breakdown when mid-period line-item
            changes were pro-rated, else None
    """

    direction: ServiceDirection
    currency: str | None
    period: BillingPeriod
    line_items: tuple[LineItem, ...]
    totals: BillingTotals
    pro_rata_applied: bool
    pro_rata_details: ProRataDetails | None = None


def resolve_service_period(service: ServiceDefinition, as_of_date: date) -> BillingPeriod:
    """
    Billing period for the next invoice or payment of a service.

    One-off services bill a single day (``as_of_date``). Recurring services
    bill the cycle starting the day after the last billed date, or on the
    service start date, capped at the service end date.
    """
    if not service.is_recurring:
        return one_off_period(as_of_date)

    if service.cycle is None:
        raise InvalidCycleConfigurationError(
            "recurring", "cycle_type", None, "recurring service requires a billing cycle"
        )

    reference = reference_date_for(service.start_date, service.last_billed_date)
    return resolve_period(service.cycle, reference, service.end_date)


@traced_engine("preview", "1.0", fingerprint_fields=("service", "as_of_date", "period"))
def preview_billing(
    service: ServiceDefinition,
    as_of_date: date,
    period: BillingPeriod | None = None,
) -> BillingPreview:
    """
    Compute the line items and totals to bill a service for one period.

    Pure function.

    Args:
        service: Service definition (cycle, line items, tax rate, dates)
        as_of_date: Generation date; the billed day for one-off services
        period: Operator-chosen period overriding cycle resolution

    Returns:
        BillingPreview

    Raises:
        InvalidCycleConfigurationError: missing or invalid cycle anchors
        InvalidLineItemError: a service line item is invalid
        InvalidPeriodError: the resolved period is empty
        InvalidTaxRateError: tax rate outside 0-100, or unset
    """
    t0 = time.monotonic()

    logger.info("billing_preview_started", extra={
        "service_id": service.service_id,
        "direction": service.direction.value,
        "service_type": service.service_type.value,
        "as_of_date": as_of_date.isoformat(),
        "currency": service.currency,
    })

    validate_line_items(service.line_items)

    if period is None:
        period = resolve_service_period(service, as_of_date)

    details: ProRataDetails | None = None
    history_result = None
    if service.is_recurring and service.history:
        history_result = pro_rate_history(service.history, period)

    if history_result is not None:
        line_items = history_result.line_items
        details = history_result.details
        pro_rata_applied = True
    else:
        line_items = tuple(apply_pro_rata(service.line_items, period))
        pro_rata_applied = not period.is_full_cycle and bool(line_items)

    totals = compute_totals(line_items, service.tax_rate)

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("billing_preview_completed", extra={
        "service_id": service.service_id,
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "actual_days": period.actual_days,
        "total_cycle_days": period.total_cycle_days,
        "pro_rata_applied": pro_rata_applied,
        "line_item_count": len(line_items),
        "subtotal": str(totals.subtotal),
        "tax_amount": str(totals.tax_amount),
        "total_amount": str(totals.total_amount),
        "duration_ms": duration_ms,
    })

    return BillingPreview(
        direction=service.direction,
        currency=service.currency,
        period=period,
        line_items=line_items,
        totals=totals,
        pro_rata_applied=pro_rata_applied,
        pro_rata_details=details,
    )
