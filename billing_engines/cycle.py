"""
Module: billing_engines.cycle
Responsibility:
    Resolve concrete billing periods from a billing-cycle definition and a
    reference date, and compute anchor dates (next/previous billing day) for
    recurring services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel.domain and billing_kernel.exceptions.

Invariants enforced:
    - Purity: no clock access. "Today" is always an explicit argument.
    - A resolved period always starts on the reference date.
    - total_cycle_days is the length of the *unclamped* cycle, so a period
      clamped to the service end date has actual_days < total_cycle_days.

Failure modes:
    - InvalidCycleConfigurationError when a required anchor field is missing
      or out of range for the cycle type.
    - InvalidPeriodError when the service ended before the period starts, or
      when an operator-chosen range is inverted or too long.

Month arithmetic:
    Shifting a date by whole months keeps the day of month. When that day
    does not exist in the target month (31 January -> February) the date
    rolls to the 1st of the month after, so the period ending the day before
    still covers the whole of February.

Usage:
    from billing_engines.cycle import resolve_period
    from billing_kernel.domain.values import BillingCycle, CycleType
    from datetime import date

    cycle = BillingCycle(CycleType.MONTHLY, day_of_month=1)
    period = resolve_period(cycle, date(2024, 3, 1))
    # BillingPeriod(start=2024-03-01, end=2024-03-31, total_cycle_days=31)
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from billing_kernel.domain.values import BillingCycle, BillingPeriod, CycleType
from billing_kernel.exceptions import InvalidCycleConfigurationError, InvalidPeriodError
from billing_kernel.logging_config import get_logger
from billing_engines.tracer import traced_engine

logger = get_logger("engines.cycle")

DEFAULT_MAX_PERIOD_DAYS = 366

# (field, low, high) anchors required per cycle type; high None = unbounded
_REQUIRED_ANCHORS: dict[CycleType, tuple[tuple[str, int, int | None], ...]] = {
    CycleType.MONTHLY: (("day_of_month", 1, 28),),
    CycleType.WEEKLY: (("day_of_week", 1, 7),),
    CycleType.YEARLY: (("day_of_month", 1, 28), ("month_of_year", 1, 12)),
    CycleType.INTERVAL_DAYS: (("interval_days", 1, None),),
}


# ============================================================================
# Date helpers
# ============================================================================


def shift_months(value: date, months: int) -> date:
    """
    Move a date by whole calendar months.

    Keeps the day of month; a day missing from the target month rolls to
    the 1st of the following month.
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    if value.day <= last_day:
        return date(year, month, value.day)
    return date(year, month, last_day) + timedelta(days=1)


def inclusive_days(start: date, end: date) -> int:
    """Number of days in [start, end], both ends included."""
    return (end - start).days + 1


# ============================================================================
# Validation
# ============================================================================


def validate_cycle(cycle: BillingCycle) -> None:
    """
    Check that the anchors required by the cycle type are present and in range.

    Anchors not used by the cycle type are ignored.

    Raises:
        InvalidCycleConfigurationError: naming the first offending field
    """
    for field_name, low, high in _REQUIRED_ANCHORS[cycle.cycle_type]:
        value = getattr(cycle, field_name)
        if value is None:
            raise InvalidCycleConfigurationError(
                cycle.cycle_type.value, field_name, value, "required"
            )
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidCycleConfigurationError(
                cycle.cycle_type.value, field_name, value, "must be an integer"
            )
        if value < low or (high is not None and value > high):
            bounds = f">= {low}" if high is None else f"between {low} and {high}"
            raise InvalidCycleConfigurationError(
                cycle.cycle_type.value, field_name, value, f"must be {bounds}"
            )


def validate_billing_period(
    start: date,
    end: date,
    max_days: int = DEFAULT_MAX_PERIOD_DAYS,
) -> None:
    """
    Validate an operator-entered billing period.

    Raises:
        InvalidPeriodError: if end precedes start or end lies more than
            max_days after start
    """
    if end < start:
        raise InvalidPeriodError(start, end, "end date must not be before start date")
    if (end - start).days > max_days:
        raise InvalidPeriodError(
            start, end, f"billing period cannot exceed {max_days} days"
        )


# ============================================================================
# Period resolution
# ============================================================================


def next_period_start(cycle: BillingCycle, start: date) -> date:
    """Start of the cycle following the one that begins on ``start``."""
    cycle_type = cycle.cycle_type
    if cycle_type == CycleType.MONTHLY:
        return shift_months(start, 1)
    if cycle_type == CycleType.WEEKLY:
        return start + timedelta(days=7)
    if cycle_type == CycleType.YEARLY:
        return shift_months(start, 12)
    return start + timedelta(days=cycle.interval_days)


@traced_engine("cycle", "1.0", fingerprint_fields=("cycle", "reference_date", "service_end_date"))
def resolve_period(
    cycle: BillingCycle,
    reference_date: date,
    service_end_date: date | None = None,
) -> BillingPeriod:
    """
    Resolve the billing period that starts on ``reference_date``.

    Pure function.

    Args:
        cycle: Billing cycle of the service
        reference_date: Day after the last billed date, or the service start
        service_end_date: Optional last day of service; caps the period

    Returns:
        BillingPeriod whose total_cycle_days is the full cycle length

    Raises:
        InvalidCycleConfigurationError: invalid anchors for the cycle type
        InvalidPeriodError: service ended before reference_date
    """
    validate_cycle(cycle)

    full_end = next_period_start(cycle, reference_date) - timedelta(days=1)
    total_cycle_days = inclusive_days(reference_date, full_end)
    end = full_end

    if service_end_date is not None and service_end_date < full_end:
        if service_end_date < reference_date:
            raise InvalidPeriodError(
                reference_date,
                service_end_date,
                "service ended before the billing period starts",
            )
        logger.info("billing_period_clamped_to_service_end", extra={
            "cycle_type": cycle.cycle_type.value,
            "cycle_end": full_end.isoformat(),
            "service_end_date": service_end_date.isoformat(),
        })
        end = service_end_date

    period = BillingPeriod(
        start=reference_date, end=end, total_cycle_days=total_cycle_days
    )

    logger.debug("billing_period_resolved", extra={
        "cycle_type": cycle.cycle_type.value,
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "actual_days": period.actual_days,
        "total_cycle_days": period.total_cycle_days,
    })

    return period


def period_for_range(
    cycle: BillingCycle,
    start: date,
    end: date,
    max_days: int = DEFAULT_MAX_PERIOD_DAYS,
) -> BillingPeriod:
    """
    Price an operator-chosen date range against the cycle starting at ``start``.

    Raises:
        InvalidCycleConfigurationError: invalid anchors for the cycle type
        InvalidPeriodError: inverted range, range over max_days, or a range
            longer than one full cycle
    """
    validate_cycle(cycle)
    validate_billing_period(start, end, max_days)

    full_end = next_period_start(cycle, start) - timedelta(days=1)
    total_cycle_days = inclusive_days(start, full_end)
    if end > full_end:
        raise InvalidPeriodError(
            start,
            end,
            f"range is longer than one {cycle.cycle_type.value} cycle "
            f"({total_cycle_days} days)",
        )
    return BillingPeriod(start=start, end=end, total_cycle_days=total_cycle_days)


def one_off_period(as_of_date: date) -> BillingPeriod:
    """Single-day period used for one-off (non-recurring) services."""
    return BillingPeriod(start=as_of_date, end=as_of_date, total_cycle_days=1)


def reference_date_for(start_date: date, last_billed_date: date | None) -> date:
    """Day after the last billed date, or the service start when never billed."""
    if last_billed_date is None:
        return start_date
    return last_billed_date + timedelta(days=1)


# ============================================================================
# Anchor dates
# ============================================================================


def next_billing_date(cycle: BillingCycle, reference_date: date) -> date:
    """
    First anchor date strictly after ``reference_date``.

    monthly: next ``day_of_month``; weekly: next ``day_of_week`` (ISO, 1 =
    Monday); yearly: next ``month_of_year``/``day_of_month``; interval:
    reference + ``interval_days``.
    """
    validate_cycle(cycle)
    cycle_type = cycle.cycle_type

    if cycle_type == CycleType.MONTHLY:
        candidate = reference_date.replace(day=cycle.day_of_month)
        if candidate <= reference_date:
            candidate = shift_months(candidate, 1)
        return candidate

    if cycle_type == CycleType.WEEKLY:
        days_ahead = cycle.day_of_week - reference_date.isoweekday()
        if days_ahead <= 0:
            days_ahead += 7
        return reference_date + timedelta(days=days_ahead)

    if cycle_type == CycleType.YEARLY:
        candidate = date(reference_date.year, cycle.month_of_year, cycle.day_of_month)
        if candidate <= reference_date:
            candidate = candidate.replace(year=candidate.year + 1)
        return candidate

    return reference_date + timedelta(days=cycle.interval_days)


def previous_billing_date(cycle: BillingCycle, reference_date: date) -> date:
    """
    Latest anchor date on or before ``reference_date``.

    Raises:
        InvalidCycleConfigurationError: for interval cycles, which have no
            calendar anchor (the last billed date is needed instead)
    """
    validate_cycle(cycle)
    cycle_type = cycle.cycle_type

    if cycle_type == CycleType.MONTHLY:
        candidate = reference_date.replace(day=cycle.day_of_month)
        if candidate > reference_date:
            candidate = shift_months(candidate, -1)
        return candidate

    if cycle_type == CycleType.WEEKLY:
        days_back = (reference_date.isoweekday() - cycle.day_of_week) % 7
        return reference_date - timedelta(days=days_back)

    if cycle_type == CycleType.YEARLY:
        candidate = date(reference_date.year, cycle.month_of_year, cycle.day_of_month)
        if candidate > reference_date:
            candidate = candidate.replace(year=candidate.year - 1)
        return candidate

    raise InvalidCycleConfigurationError(
        cycle_type.value,
        "interval_days",
        cycle.interval_days,
        "interval cycles have no calendar anchor; use the last billed date",
    )


def anchored_period(cycle: BillingCycle, as_of_date: date) -> BillingPeriod:
    """
    Full cycle aligned to the calendar anchor containing ``as_of_date``.

    Runs from the previous billing date through the day before the next one.
    Not defined for interval cycles.
    """
    start = previous_billing_date(cycle, as_of_date)
    end = next_billing_date(cycle, start) - timedelta(days=1)
    return BillingPeriod(start=start, end=end, total_cycle_days=inclusive_days(start, end))
