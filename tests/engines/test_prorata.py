"""Tests for the pro-rata engine."""

from datetime import date
from decimal import Decimal

import pytest

from billing_engines.prorata import apply_pro_rata, pro_rata_amount, pro_rate_item
from billing_kernel.domain.values import BillingPeriod, ProRataLineItem, ServiceLineItem


@pytest.fixture
def items():
    return [
        ServiceLineItem("Consulting", Decimal("1"), Decimal("1000")),
        ServiceLineItem("Support hours", Decimal("4"), Decimal("25")),
    ]


class TestProRataAmount:
    def test_half_of_thirty_days(self):
        assert pro_rata_amount(Decimal("100"), 15, 30) == Decimal("50.00")

    def test_fifteen_of_thirty_one_days(self):
        assert pro_rata_amount(Decimal("1000"), 15, 31) == Decimal("483.87")

    def test_full_cycle_rounds_to_cents(self):
        assert pro_rata_amount(Decimal("99.999"), 31, 31) == Decimal("100.00")
        assert str(pro_rata_amount(Decimal("310"), 31, 31)) == "310.00"

    def test_zero_days(self):
        assert pro_rata_amount(Decimal("100"), 0, 30) == Decimal("0.00")

    def test_non_positive_total_rejected(self):
        with pytest.raises(ValueError):
            pro_rata_amount(Decimal("100"), 1, 0)


class TestProRateItem:
    def test_keeps_unscaled_quantity_and_price(self):
        adjusted = pro_rate_item(
            ServiceLineItem("Support hours", Decimal("4"), Decimal("25")), 10, 30,
        )
        assert adjusted == ProRataLineItem(
            description="Support hours",
            quantity=Decimal("4"),
            unit_price=Decimal("25"),
            amount=Decimal("33.33"),
            pro_rata_days=10,
            pro_rata_total_days=30,
            original_amount=Decimal("100"),
        )


class TestApplyProRata:
    """Pro-rating a set of line items for a period."""

    def test_full_cycle_is_identity(self, items):
        period = BillingPeriod(date(2024, 3, 1), date(2024, 3, 31), 31)
        assert apply_pro_rata(items, period) == items

    def test_partial_period_scales_each_item(self, items):
        period = BillingPeriod(date(2024, 3, 1), date(2024, 3, 15), 31)
        adjusted = apply_pro_rata(items, period)

        assert [item.amount for item in adjusted] == [Decimal("483.87"), Decimal("48.39")]
        assert all(item.pro_rata_days == 15 for item in adjusted)
        assert all(item.pro_rata_total_days == 31 for item in adjusted)
        assert [item.original_amount for item in adjusted] == [Decimal("1000"), Decimal("100")]

    def test_preserves_input_order(self, items):
        period = BillingPeriod(date(2024, 3, 1), date(2024, 3, 10), 31)
        adjusted = apply_pro_rata(list(reversed(items)), period)
        assert [item.description for item in adjusted] == ["Support hours", "Consulting"]

    def test_does_not_mutate_input(self, items):
        before = list(items)
        apply_pro_rata(items, BillingPeriod(date(2024, 3, 1), date(2024, 3, 10), 31))
        assert items == before

    def test_partial_period_is_logged(self, items, log_capture):
        apply_pro_rata(items, BillingPeriod(date(2024, 3, 1), date(2024, 3, 15), 31))
        [record] = log_capture.find("pro_rata_applied")
        assert record["actual_days"] == 15
        assert record["total_cycle_days"] == 31
