"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Billing previews are recomputed on every edit of a service or a billing
period. The caller needs to know exactly which input was wrong so it can
highlight the offending field or line item, without parsing message text.

Every exception therefore:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA (index, field, value) as attributes

Example:
    try:
        totals = compute_totals(items, tax_rate)
    except InvalidLineItemError as e:
        highlight_row(e.index, e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- BillingInputError
    |   +-- InvalidCycleConfigurationError
    |   +-- InvalidLineItemError
    |   +-- InvalidPeriodError
    |   +-- InvalidTaxRateError
    |
    +-- BillingRecordError
    |   +-- ServiceDirectionError
    |
    +-- BillingConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                        | When Raised
-----------|-----------------------------|--------------------------------------
Input      | INVALID_CYCLE_CONFIGURATION | Cycle anchor missing or out of range
           | INVALID_LINE_ITEM           | Empty description, negative qty/price
           | INVALID_PERIOD              | start > end, span too long
           | INVALID_TAX_RATE            | Tax rate outside 0-100
-----------|-----------------------------|--------------------------------------
Record     | BILLING_RECORD_INVALID      | Preview cannot be mapped to a record
           | SERVICE_DIRECTION_MISMATCH  | Invoice for incoming service, etc.
-----------|-----------------------------|--------------------------------------
Config     | BILLING_CONFIG_INVALID      | Settings file malformed

None of these are retryable: the kernel performs no I/O.
"""

from __future__ import annotations

from datetime import date
from typing import Any


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Input validation


class BillingInputError(BillingKernelError):
    """Base exception for invalid calculation inputs."""

    code: str = "BILLING_INPUT_ERROR"


class InvalidCycleConfigurationError(BillingInputError):
    """A billing-cycle anchor field is missing or out of range."""

    code: str = "INVALID_CYCLE_CONFIGURATION"

    def __init__(self, cycle_type: str, field: str, value: Any, reason: str):
        self.cycle_type = cycle_type
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid {cycle_type} billing cycle: {field}={value!r} ({reason})"
        )


class InvalidLineItemError(BillingInputError):
    """
    A line item cannot be billed.

    ``index`` is the zero-based row of the offending item so the caller can
    point at it.
    """

    code: str = "INVALID_LINE_ITEM"

    def __init__(self, index: int, field: str, value: Any, reason: str):
        self.index = index
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid line item #{index}: {field}={value!r} ({reason})"
        )


class InvalidPeriodError(BillingInputError):
    """Billing period is empty, inverted or too long."""

    code: str = "INVALID_PERIOD"

    def __init__(self, start: date | None, end: date | None, reason: str):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid billing period {start} .. {end}: {reason}")


class InvalidTaxRateError(BillingInputError):
    """Tax rate percentage outside 0-100."""

    code: str = "INVALID_TAX_RATE"

    def __init__(self, tax_rate: Any):
        self.tax_rate = tax_rate
        super().__init__(f"Tax rate must be between 0 and 100, got {tax_rate}")


# Record mapping


class BillingRecordError(BillingKernelError):
    """A preview cannot be turned into an invoice or payment record."""

    code: str = "BILLING_RECORD_INVALID"

    def __init__(self, message: str, **context: Any):
        self.context = context
        super().__init__(message)


class ServiceDirectionError(BillingRecordError):
    """
    Record type does not match the service direction.

    Outgoing services produce invoices, incoming services produce payments.
    """

    code: str = "SERVICE_DIRECTION_MISMATCH"

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected a {expected} service, got {actual}",
            expected=expected,
            actual=actual,
        )


# Configuration


class BillingConfigError(BillingKernelError):
    """Billing settings could not be loaded or parsed."""

    code: str = "BILLING_CONFIG_INVALID"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid billing settings in {source}: {reason}")
