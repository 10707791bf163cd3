"""
Module: billing_engines.history
Responsibility:
    Pro-rate a billing period across mid-period line-item changes.  When a
    service's line items were edited inside the period being billed, each
    version of the line items is charged only for the days it was in
    effect, and identical lines are consolidated for the invoice.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Each history segment is charged segment_days / total_cycle_days of its
      full-cycle amounts, rounded per item (same rule as billing_engines.prorata).
    - Lines are consolidated only when description, quantity and unit price
      all match, so every consolidated line stays reconstructable.
    - Entries never overlap: each one ends the day before the next one
      takes effect, so segment days never add up to more than the period.
    - Returns None when at most one history entry overlaps the period; the
      caller then bills the current line items normally.

Failure modes:
    - None of its own; line items are validated by the totals engine.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Sequence

from billing_kernel.domain.values import BillingPeriod, LineItemsChange, ProRataLineItem
from billing_kernel.logging_config import get_logger
from billing_engines.cycle import inclusive_days
from billing_engines.prorata import pro_rate_item
from billing_engines.tracer import traced_engine

logger = get_logger("engines.history")


@dataclass(frozen=True)
class ProRataSegment:
    """Part of a billing period during which one line-item version applied."""

    start: date
    end: date
    days: int
    amount: Decimal
    line_items: tuple[ProRataLineItem, ...]


@dataclass(frozen=True)
class ProRataDetails:
    """Disclosure of how a period was split across line-item versions."""

    segments: tuple[ProRataSegment, ...]
    total_days: int
    has_changes: bool = True


@dataclass(frozen=True)
class HistoryProRataResult:
    """Consolidated line items plus the per-segment breakdown."""

    line_items: tuple[ProRataLineItem, ...]
    details: ProRataDetails


def superseded_history(history: Sequence[LineItemsChange]) -> list[LineItemsChange]:
    """
    History in effective_from order, each entry ending where the next begins.

    An entry left open (or running past its successor) is closed the day
    before the next entry takes effect. Of two entries starting on the same
    day, the later one in ``history`` wins.
    """
    ordered = sorted(history, key=lambda change: change.effective_from)
    result = []
    for change, successor in zip(ordered, ordered[1:] + [None]):
        if successor is not None:
            cutoff = successor.effective_from - timedelta(days=1)
            if change.effective_to is None or change.effective_to > cutoff:
                if cutoff < change.effective_from:
                    continue
                change = replace(change, effective_to=cutoff)
        result.append(change)
    return result


def overlapping_changes(
    history: Sequence[LineItemsChange],
    period: BillingPeriod,
) -> list[tuple[LineItemsChange, date, date]]:
    """History entries in effect during the period, with their clamped range."""
    overlaps = []
    for change in superseded_history(history):
        window = change.overlap(period.start, period.end)
        if window is not None:
            overlaps.append((change, window[0], window[1]))
    return overlaps


@traced_engine("history", "1.0", fingerprint_fields=("history", "period"))
def pro_rate_history(
    history: Sequence[LineItemsChange],
    period: BillingPeriod,
) -> HistoryProRataResult | None:
    """
    Split a billing period across line-item versions.

    Pure function.

    Args:
        history: Line-item versions of the service, in any order
        period: Resolved billing period

    Returns:
        HistoryProRataResult, or None if there was no mid-period change
    """
    overlaps = overlapping_changes(history, period)
    if len(overlaps) <= 1:
        return None

    total_days = period.total_cycle_days
    segments: list[ProRataSegment] = []
    consolidated: dict[tuple[str, Decimal, Decimal], ProRataLineItem] = {}

    for change, start, end in overlaps:
        days = min(inclusive_days(start, end), total_days)
        items = tuple(pro_rate_item(item, days, total_days) for item in change.line_items)
        segments.append(ProRataSegment(
            start=start,
            end=end,
            days=days,
            amount=sum((item.amount for item in items), Decimal("0")),
            line_items=items,
        ))

        for item in items:
            key = (item.description, item.quantity, item.unit_price)
            existing = consolidated.get(key)
            if existing is None:
                consolidated[key] = item
            else:
                consolidated[key] = replace(
                    existing,
                    amount=existing.amount + item.amount,
                    pro_rata_days=existing.pro_rata_days + item.pro_rata_days,
                )

    details = ProRataDetails(
        segments=tuple(segments),
        total_days=sum(segment.days for segment in segments),
    )

    logger.info("history_pro_rata_applied", extra={
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "segment_count": len(segments),
        "consolidated_line_count": len(consolidated),
        "total_days": details.total_days,
    })

    return HistoryProRataResult(line_items=tuple(consolidated.values()), details=details)
