"""
Module: billing_kernel.models.payment
Responsibility: ORM persistence shape for payment records created for
    incoming stakeholder services (the stakeholder bills the company) and
    their line items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Non-goals:
    - Status transitions (pending -> paid / cancelled) are owned by the
      surrounding workflow layer.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import Base, TrackedBase, UUIDString
from billing_kernel.models.line_item import LineItemColumnsMixin


class PaymentStatus(str, Enum):
    """Lifecycle status of a payment record: PENDING -> PAID or CANCELLED."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class ServicePayment(TrackedBase):
    """Payment owed to a stakeholder for one billing period of an incoming service."""

    __tablename__ = "service_payments"

    __table_args__ = (
        Index("idx_service_payment_service", "service_id"),
        Index("idx_service_payment_status", "status"),
    )

    service_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    stakeholder_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    billing_period_start: Mapped[date] = mapped_column(Date, nullable=False)

    billing_period_end: Mapped[date] = mapped_column(Date, nullable=False)

    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    tax_rate: Mapped[Decimal] = mapped_column(nullable=False)

    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    pro_rata_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    line_items: Mapped[list["PaymentLineItem"]] = relationship(
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="PaymentLineItem.item_order",
    )

    def __repr__(self) -> str:
        return f"<ServicePayment {self.id}: {self.total_amount} {self.currency} ({self.status})>"


class PaymentLineItem(LineItemColumnsMixin, Base):
    """Line item snapshot on a payment record."""

    __tablename__ = "service_payment_line_items"

    __table_args__ = (
        Index("idx_payment_line_item_payment", "payment_id"),
    )

    payment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("service_payments.id", ondelete="CASCADE"),
        nullable=False,
    )

    payment: Mapped[ServicePayment] = relationship(back_populates="line_items")
