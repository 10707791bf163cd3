"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock boundary)
- I/O

All domain objects are immutable and deterministic.
"""

from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.values import (
    BillingCycle,
    BillingPeriod,
    BillingTotals,
    CycleType,
    LineItem,
    LineItemsChange,
    ProRataLineItem,
    ServiceDefinition,
    ServiceDirection,
    ServiceLineItem,
    ServiceType,
    to_decimal,
)

__all__ = [
    "BillingCycle",
    "BillingPeriod",
    "BillingTotals",
    "Clock",
    "CycleType",
    "DeterministicClock",
    "LineItem",
    "LineItemsChange",
    "ProRataLineItem",
    "ServiceDefinition",
    "ServiceDirection",
    "ServiceLineItem",
    "ServiceType",
    "SystemClock",
    "to_decimal",
]
