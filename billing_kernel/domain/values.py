"""
Values -- Immutable domain value objects for stakeholder billing.

Responsibility:
    Provides the data model every billing engine computes over: billing
    cycles, service line items, billing periods, pro-rated line items,
    totals and the service definition handed in by the outer layer.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine module. No outward dependencies except
    billing_kernel.exceptions.

Invariants enforced:
    - Decimal-only arithmetic: numeric inputs are normalized to Decimal on
      construction (floats go through ``str`` first).
    - ServiceLineItem.amount is always derived from quantity x unit_price,
      never stored.
    - BillingPeriod.start <= BillingPeriod.end and total_cycle_days >= 1.

Failure modes:
    - InvalidPeriodError on an inverted or zero-length cycle period.
    - TypeError when a numeric field receives a non-numeric value.

Non-goals:
    - No currency validation or formatting; currency is an opaque string
      carried through to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

from billing_kernel.exceptions import InvalidPeriodError


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Normalize an int/str/float/Decimal to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"{name} must be numeric, got bool")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (int, str)):
        try:
            return Decimal(value)
        except InvalidOperation as exc:
            raise TypeError(f"{name} must be numeric, got {value!r}") from exc
    raise TypeError(f"{name} must be numeric, got {type(value).__name__}")


class CycleType(str, Enum):
    """How a recurring service repeats."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"
    INTERVAL_DAYS = "interval_days"

    @classmethod
    def _missing_(cls, value: object) -> CycleType | None:
        # Stored service rows use "x_days" / "intervalDays"
        if value in ("x_days", "intervalDays"):
            return cls.INTERVAL_DAYS
        return None


class ServiceDirection(str, Enum):
    """
    Which side bills whom.

    OUTGOING: the company bills the stakeholder (invoices).
    INCOMING: the stakeholder bills the company (payment records).
    """

    OUTGOING = "outgoing"
    INCOMING = "incoming"


class ServiceType(str, Enum):
    """Recurring services follow a cycle; one-off services bill once."""

    RECURRING = "recurring"
    ONE_OFF = "one_off"


@dataclass(frozen=True)
class BillingCycle:
    """
    Recurrence rule for a recurring service.

    Only the anchor fields required by ``cycle_type`` are semantically
    active. The others are kept as-is so an edit form can round-trip them.
    Anchors are validated by the resolver, not here.
    """

    cycle_type: CycleType
    day_of_month: int | None = None  # 1-28, monthly and yearly
    day_of_week: int | None = None  # 1=Monday .. 7=Sunday, weekly
    month_of_year: int | None = None  # 1-12, yearly
    interval_days: int | None = None  # >= 1, interval_days

    def __post_init__(self) -> None:
        if not isinstance(self.cycle_type, CycleType):
            object.__setattr__(self, "cycle_type", CycleType(self.cycle_type))


@dataclass(frozen=True)
class ServiceLineItem:
    """
    One billable component of a service.

    ``amount`` is derived, so a stale cached amount can never leak into
    totals.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))

    @property
    def amount(self) -> Decimal:
        """Full-cycle amount (quantity x unit_price), unrounded."""
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class ProRataLineItem:
    """
    A line item scaled to a partial billing period.

    quantity and unit_price stay at their pre-scaling values so the ratio
    pro_rata_days / pro_rata_total_days can be reconstructed; only amount is
    scaled.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    pro_rata_days: int
    pro_rata_total_days: int
    original_amount: Decimal


LineItem = Union[ServiceLineItem, ProRataLineItem]


@dataclass(frozen=True)
class BillingPeriod:
    """
    A concrete, inclusive date range being billed.

    Attributes:
        start: First billed day (inclusive)
        end: Last billed day (inclusive)
        total_cycle_days: Length of the full standard cycle containing this
            period; the pro-rata denominator
    """

    start: date
    end: date
    total_cycle_days: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidPeriodError(self.start, self.end, "start is after end")
        if self.total_cycle_days < 1:
            raise InvalidPeriodError(
                self.start, self.end, "total_cycle_days must be at least 1"
            )

    @property
    def actual_days(self) -> int:
        """Inclusive day count of [start, end]."""
        return (self.end - self.start).days + 1

    @property
    def is_full_cycle(self) -> bool:
        return self.actual_days >= self.total_cycle_days


@dataclass(frozen=True)
class BillingTotals:
    """Aggregate of a set of line items. All amounts rounded to 2dp."""

    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class LineItemsChange:
    """
    One entry of a service's line-item history.

    The line items were in effect from ``effective_from`` through
    ``effective_to`` (inclusive); ``effective_to`` is None for the entry
    that is still current.
    """

    effective_from: date
    line_items: tuple[ServiceLineItem, ...]
    effective_to: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_items", tuple(self.line_items))

    def overlap(self, start: date, end: date) -> tuple[date, date] | None:
        """Portion of [start, end] during which this entry was in effect."""
        lo = max(self.effective_from, start)
        hi = end if self.effective_to is None else min(self.effective_to, end)
        if lo > hi:
            return None
        return lo, hi


@dataclass(frozen=True)
class ServiceDefinition:
    """
    A stakeholder service as supplied by the surrounding workflow layer.

    Only the data the calculation needs; identifiers are opaque and only
    carried through to the record builder. tax_rate and currency may be
    None, meaning the company defaults apply.
    """

    direction: ServiceDirection
    service_type: ServiceType
    line_items: tuple[ServiceLineItem, ...]
    tax_rate: Decimal | None
    currency: str | None
    start_date: date
    cycle: BillingCycle | None = None
    end_date: date | None = None
    last_billed_date: date | None = None
    history: tuple[LineItemsChange, ...] = field(default=())
    service_id: int | None = None
    stakeholder_id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", ServiceDirection(self.direction))
        object.__setattr__(self, "service_type", ServiceType(self.service_type))
        object.__setattr__(self, "line_items", tuple(self.line_items))
        object.__setattr__(self, "history", tuple(self.history))
        if self.tax_rate is not None:
            object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate, "tax_rate"))

    @property
    def is_recurring(self) -> bool:
        return self.service_type == ServiceType.RECURRING
