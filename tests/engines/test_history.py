"""
Tests for history-based pro-rata.

A service whose line items were edited mid-period is billed for each
version only for the days it was in effect.
"""

from datetime import date
from decimal import Decimal

import pytest

from billing_engines.history import overlapping_changes, pro_rate_history, superseded_history
from billing_kernel.domain.values import BillingPeriod, LineItemsChange, ServiceLineItem

MARCH = BillingPeriod(date(2024, 3, 1), date(2024, 3, 31), 31)


def line(description: str, unit_price: str, quantity: str = "1") -> ServiceLineItem:
    return ServiceLineItem(description, Decimal(quantity), Decimal(unit_price))


@pytest.fixture
def price_change_history():
    """Hosting doubled in price from 11 March; support unchanged."""
    return (
        LineItemsChange(
            effective_from=date(2024, 1, 1),
            effective_to=date(2024, 3, 10),
            line_items=(line("Support", "310"), line("Hosting", "310")),
        ),
        LineItemsChange(
            effective_from=date(2024, 3, 11),
            line_items=(line("Support", "310"), line("Hosting", "620")),
        ),
    )


class TestOverlappingChanges:
    def test_entries_outside_period_skipped(self):
        history = [
            LineItemsChange(date(2023, 1, 1), (line("Old", "1"),), date(2023, 12, 31)),
            LineItemsChange(date(2024, 1, 1), (line("New", "1"),)),
        ]
        overlaps = overlapping_changes(history, MARCH)
        assert len(overlaps) == 1
        assert overlaps[0][1:] == (date(2024, 3, 1), date(2024, 3, 31))

    def test_sorted_by_start(self, price_change_history):
        overlaps = overlapping_changes(list(reversed(price_change_history)), MARCH)
        assert [start for _, start, _ in overlaps] == [date(2024, 3, 1), date(2024, 3, 11)]

    def test_open_entry_ends_before_next(self):
        history = [
            LineItemsChange(date(2024, 3, 1), (line("Hosting", "310"),)),
            LineItemsChange(date(2024, 3, 16), (line("Hosting", "620"),)),
        ]
        overlaps = overlapping_changes(history, MARCH)
        assert [window for _, *window in overlaps] == [
            [date(2024, 3, 1), date(2024, 3, 15)],
            [date(2024, 3, 16), date(2024, 3, 31)],
        ]


class TestSupersededHistory:
    def test_overrunning_entry_is_cut_at_successor(self):
        history = [
            LineItemsChange(date(2024, 3, 1), (line("Hosting", "310"),), date(2024, 3, 25)),
            LineItemsChange(date(2024, 3, 16), (line("Hosting", "620"),)),
        ]
        first, second = superseded_history(history)
        assert first.effective_to == date(2024, 3, 15)
        assert second.effective_to is None

    def test_entry_closed_before_successor_kept(self):
        history = [
            LineItemsChange(date(2024, 3, 1), (line("Hosting", "310"),), date(2024, 3, 5)),
            LineItemsChange(date(2024, 3, 16), (line("Hosting", "620"),)),
        ]
        assert superseded_history(history) == history

    def test_same_start_later_entry_wins(self):
        replaced = LineItemsChange(date(2024, 3, 10), (line("Hosting", "310"),))
        correction = LineItemsChange(date(2024, 3, 10), (line("Hosting", "350"),))
        assert superseded_history([replaced, correction]) == [correction]


class TestProRateHistory:
    """Splitting and consolidating a period across line-item versions."""

    def test_no_change_in_period_returns_none(self):
        history = [LineItemsChange(date(2024, 1, 1), (line("Hosting", "310"),))]
        assert pro_rate_history(history, MARCH) is None

    def test_empty_history_returns_none(self):
        assert pro_rate_history((), MARCH) is None

    def test_segments_cover_the_period(self, price_change_history):
        result = pro_rate_history(price_change_history, MARCH)

        first, second = result.details.segments
        assert (first.start, first.end, first.days) == (date(2024, 3, 1), date(2024, 3, 10), 10)
        assert (second.start, second.end, second.days) == (date(2024, 3, 11), date(2024, 3, 31), 21)
        assert result.details.total_days == 31
        assert result.details.has_changes

    def test_segment_amounts(self, price_change_history):
        result = pro_rate_history(price_change_history, MARCH)
        first, second = result.details.segments
        # 10/31 of 620 and 21/31 of 930
        assert first.amount == Decimal("200.00")
        assert second.amount == Decimal("630.00")

    def test_identical_lines_consolidated(self, price_change_history):
        result = pro_rate_history(price_change_history, MARCH)

        support, old_hosting, new_hosting = result.line_items
        assert support.description == "Support"
        assert support.amount == Decimal("310.00")
        assert support.pro_rata_days == 31
        assert old_hosting.unit_price == Decimal("310")
        assert old_hosting.amount == Decimal("100.00")
        assert new_hosting.unit_price == Decimal("620")
        assert new_hosting.amount == Decimal("420.00")
        assert new_hosting.pro_rata_days == 21

    def test_open_entries_never_exceed_the_period(self):
        history = [
            LineItemsChange(date(2024, 3, 1), (line("Hosting", "310"),)),
            LineItemsChange(date(2024, 3, 16), (line("Hosting", "620"),)),
        ]
        result = pro_rate_history(history, MARCH)

        assert result.details.total_days == MARCH.actual_days
        # 15/31 of 310 and 16/31 of 620
        assert [s.amount for s in result.details.segments] == [Decimal("150.00"), Decimal("320.00")]
        assert sum(item.amount for item in result.line_items) == Decimal("470.00")

    def test_history_order_does_not_matter(self, price_change_history):
        forward = pro_rate_history(price_change_history, MARCH)
        backward = pro_rate_history(tuple(reversed(price_change_history)), MARCH)
        assert forward == backward

    def test_is_logged(self, price_change_history, log_capture):
        pro_rate_history(price_change_history, MARCH)
        [record] = log_capture.find("history_pro_rata_applied")
        assert record["segment_count"] == 2
        assert record["consolidated_line_count"] == 3
