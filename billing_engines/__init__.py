"""
Module: billing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    billing calculation engines.  This is the canonical import surface for
    higher layers (billing_services, UI adapters).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel (domain values, exceptions, logging).
    MUST NOT import billing_services or billing_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The generation date is passed in as ``as_of_date``.
    - Decimal-only arithmetic: floats are normalized through ``str``.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - BillingInputError subclasses propagated from individual engines on
      invalid input.

Usage:
    from billing_engines import preview_billing, resolve_period, compute_totals
"""

from billing_engines.cycle import (
    anchored_period,
    next_billing_date,
    one_off_period,
    period_for_range,
    previous_billing_date,
    reference_date_for,
    resolve_period,
    shift_months,
    validate_billing_period,
    validate_cycle,
)
from billing_engines.history import (
    HistoryProRataResult,
    ProRataDetails,
    ProRataSegment,
    pro_rate_history,
)
from billing_engines.preview import BillingPreview, preview_billing, resolve_service_period
from billing_engines.prorata import apply_pro_rata, pro_rata_amount, pro_rate_item
from billing_engines.totals import (
    compute_totals,
    round_currency,
    validate_line_items,
    validate_tax_rate,
)
from billing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Cycle
    "anchored_period",
    "next_billing_date",
    "one_off_period",
    "period_for_range",
    "previous_billing_date",
    "reference_date_for",
    "resolve_period",
    "shift_months",
    "validate_billing_period",
    "validate_cycle",
    # History
    "HistoryProRataResult",
    "ProRataDetails",
    "ProRataSegment",
    "pro_rate_history",
    # Preview
    "BillingPreview",
    "preview_billing",
    "resolve_service_period",
    # Pro-rata
    "apply_pro_rata",
    "pro_rata_amount",
    "pro_rate_item",
    # Totals
    "compute_totals",
    "round_currency",
    "validate_line_items",
    "validate_tax_rate",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
