"""Tests for the billing domain value objects."""

from datetime import date
from decimal import Decimal

import pytest

from billing_kernel.domain.values import (
    BillingCycle,
    BillingPeriod,
    CycleType,
    LineItemsChange,
    ServiceDefinition,
    ServiceDirection,
    ServiceLineItem,
    ServiceType,
    to_decimal,
)
from billing_kernel.exceptions import InvalidPeriodError


class TestToDecimal:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self):
        assert to_decimal(3) == Decimal("3")
        assert to_decimal("19.99") == Decimal("19.99")

    def test_bool_rejected(self):
        with pytest.raises(TypeError, match="bool"):
            to_decimal(True, "quantity")

    def test_garbage_rejected(self):
        with pytest.raises(TypeError, match="unit_price"):
            to_decimal("abc", "unit_price")

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            to_decimal([1])


class TestCycleType:
    @pytest.mark.parametrize("raw", ["interval_days", "x_days", "intervalDays"])
    def test_interval_aliases(self, raw):
        assert CycleType(raw) is CycleType.INTERVAL_DAYS

    def test_unknown_rejected(self):
        with pytest.raises(ValueError):
            CycleType("fortnightly")

    def test_billing_cycle_coerces_string(self):
        assert BillingCycle("monthly", day_of_month=1).cycle_type is CycleType.MONTHLY

    def test_inactive_anchors_retained(self):
        cycle = BillingCycle(CycleType.WEEKLY, day_of_week=2, day_of_month=14)
        assert cycle.day_of_month == 14


class TestServiceLineItem:
    def test_amount_derived(self):
        item = ServiceLineItem("Hours", "7.5", 120)
        assert item.quantity == Decimal("7.5")
        assert item.amount == Decimal("900.0")

    def test_frozen(self):
        item = ServiceLineItem("Hours", Decimal("1"), Decimal("1"))
        with pytest.raises(AttributeError):
            item.quantity = Decimal("2")


class TestBillingPeriod:
    def test_actual_days_inclusive(self):
        assert BillingPeriod(date(2024, 3, 1), date(2024, 3, 1), 31).actual_days == 1

    def test_full_cycle(self):
        assert BillingPeriod(date(2024, 3, 1), date(2024, 3, 31), 31).is_full_cycle
        assert not BillingPeriod(date(2024, 3, 1), date(2024, 3, 30), 31).is_full_cycle

    def test_inverted_rejected(self):
        with pytest.raises(InvalidPeriodError, match="start is after end"):
            BillingPeriod(date(2024, 3, 2), date(2024, 3, 1), 31)

    def test_zero_cycle_rejected(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            BillingPeriod(date(2024, 3, 1), date(2024, 3, 1), 0)
        assert exc_info.value.code == "INVALID_PERIOD"


class TestLineItemsChange:
    def test_open_ended_overlap(self):
        change = LineItemsChange(date(2024, 3, 11), ())
        assert change.overlap(date(2024, 3, 1), date(2024, 3, 31)) == (
            date(2024, 3, 11), date(2024, 3, 31),
        )

    def test_no_overlap(self):
        change = LineItemsChange(date(2024, 1, 1), (), date(2024, 2, 29))
        assert change.overlap(date(2024, 3, 1), date(2024, 3, 31)) is None


class TestServiceDefinition:
    def test_coerces_inputs(self):
        service = ServiceDefinition(
            direction="incoming",
            service_type="one_off",
            line_items=[ServiceLineItem("Fee", 1, 10)],
            tax_rate=7.5,
            currency="GBP",
            start_date=date(2024, 3, 1),
        )
        assert service.direction is ServiceDirection.INCOMING
        assert service.service_type is ServiceType.ONE_OFF
        assert isinstance(service.line_items, tuple)
        assert service.tax_rate == Decimal("7.5")
        assert not service.is_recurring
