"""Persistence record shapes for invoices and payments."""

from billing_kernel.models.invoice import InvoiceLineItem, InvoiceStatus, ServiceInvoice
from billing_kernel.models.line_item import LineItemColumnsMixin
from billing_kernel.models.payment import PaymentLineItem, PaymentStatus, ServicePayment

__all__ = [
    "InvoiceLineItem",
    "InvoiceStatus",
    "LineItemColumnsMixin",
    "PaymentLineItem",
    "PaymentStatus",
    "ServiceInvoice",
    "ServicePayment",
]
