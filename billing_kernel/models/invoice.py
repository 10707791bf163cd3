"""
Module: billing_kernel.models.invoice
Responsibility: ORM persistence shape for invoices raised on outgoing
    stakeholder services and their line items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - invoice_number is unique (uq_service_invoice_number).  Numbers are
      assigned by the persistence layer, never by the billing engines.
    - total_amount == subtotal + tax_amount as computed by the totals engine.

Non-goals:
    - Status transitions (draft -> sent -> paid ...) are owned by the
      surrounding workflow layer; this model only stores the status.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import Base, TrackedBase, UUIDString
from billing_kernel.models.line_item import LineItemColumnsMixin


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice.

    Transitions are owned by the workflow layer:
    DRAFT -> SENT -> VIEWED -> PAID / PARTIALLY_PAID / OVERDUE, with
    CANCELLED and VOID as terminal states.
    """

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    VOID = "void"


class ServiceInvoice(TrackedBase):
    """Invoice for one billing period of an outgoing service."""

    __tablename__ = "service_invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_service_invoice_number"),
        Index("idx_service_invoice_service", "service_id"),
        Index("idx_service_invoice_status", "status"),
    )

    service_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    stakeholder_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Format: PREFIX-YYYY-MM-DD-NNN
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)

    billing_period_start: Mapped[date] = mapped_column(Date, nullable=False)

    billing_period_end: Mapped[date] = mapped_column(Date, nullable=False)

    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    tax_rate: Mapped[Decimal] = mapped_column(nullable=False)

    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    pro_rata_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[InvoiceStatus] = mapped_column(
        String(20),
        default=InvoiceStatus.DRAFT,
        nullable=False,
    )

    paid_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    line_items: Mapped[list["InvoiceLineItem"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.item_order",
    )

    def __repr__(self) -> str:
        return f"<ServiceInvoice {self.invoice_number}: {self.total_amount} {self.currency}>"

    @property
    def balance_due(self) -> Decimal:
        """Amount still owed on the invoice."""
        return self.total_amount - (self.paid_amount or Decimal("0"))


class InvoiceLineItem(LineItemColumnsMixin, Base):
    """Line item snapshot on an invoice."""

    __tablename__ = "service_invoice_line_items"

    __table_args__ = (
        Index("idx_invoice_line_item_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("service_invoices.id", ondelete="CASCADE"),
        nullable=False,
    )

    invoice: Mapped[ServiceInvoice] = relationship(back_populates="line_items")

    def __repr__(self) -> str:
        return f"<InvoiceLineItem #{self.item_order} {self.description}: {self.amount}>"
