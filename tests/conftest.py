"""
Pytest fixtures for the stakeholder billing test suite.

Provides:
- Deterministic clock and billing settings
- Standard billing cycles, line items and service definitions
- In-memory SQLite sessions for the record models
- Structured log capture
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from billing_config.schema import BillingSettings
from billing_kernel.db.base import Base
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.domain.values import (
    BillingCycle,
    CycleType,
    ServiceDefinition,
    ServiceDirection,
    ServiceLineItem,
    ServiceType,
)
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Registers the record tables on Base.metadata
import billing_kernel.models  # noqa: F401


# ============================================================================
# Time and settings
# ============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-03-31 09:00 UTC."""
    return DeterministicClock(datetime(2024, 3, 31, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(invoice_prefix="INV", default_payment_terms_days=30)


@pytest.fixture
def actor_id() -> UUID:
    return uuid4()


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture
def monthly_cycle() -> BillingCycle:
    return BillingCycle(CycleType.MONTHLY, day_of_month=1)


@pytest.fixture
def consulting_item() -> ServiceLineItem:
    return ServiceLineItem("Consulting", Decimal("1"), Decimal("1000"))


@pytest.fixture
def outgoing_service(monthly_cycle, consulting_item) -> ServiceDefinition:
    """Monthly consulting retainer billed to a stakeholder from 2024-03-01, 10% tax."""
    return ServiceDefinition(
        direction=ServiceDirection.OUTGOING,
        service_type=ServiceType.RECURRING,
        line_items=(consulting_item,),
        tax_rate=Decimal("10"),
        currency="USD",
        start_date=date(2024, 3, 1),
        cycle=monthly_cycle,
        service_id=101,
        stakeholder_id=7,
    )


@pytest.fixture
def incoming_service(monthly_cycle) -> ServiceDefinition:
    """Monthly hosting fee a stakeholder bills the company."""
    return ServiceDefinition(
        direction=ServiceDirection.INCOMING,
        service_type=ServiceType.RECURRING,
        line_items=(ServiceLineItem("Hosting", Decimal("2"), Decimal("150")),),
        tax_rate=Decimal("0"),
        currency="EUR",
        start_date=date(2024, 3, 1),
        cycle=monthly_cycle,
        service_id=202,
        stakeholder_id=9,
    )


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Session bound to a fresh in-memory SQLite database."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    db = factory()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


# ============================================================================
# Logging
# ============================================================================


class LogCapture:
    """Structured log records written during a test."""

    def __init__(self, stream: StringIO):
        self._stream = stream

    @property
    def records(self) -> list[dict]:
        lines = self._stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    def messages(self) -> list[str]:
        return [record["message"] for record in self.records]

    def find(self, message: str) -> list[dict]:
        return [record for record in self.records if record["message"] == message]


@pytest.fixture
def log_capture() -> Generator[LogCapture, None, None]:
    """Capture billing_kernel logs as parsed JSON records at DEBUG level."""
    reset_logging()
    LogContext.clear()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level=logging.DEBUG)
    yield LogCapture(stream)
    LogContext.clear()
    reset_logging()
