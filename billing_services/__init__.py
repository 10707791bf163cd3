"""
billing_services -- imperative shell around the billing engines.

Maps confirmed previews onto unsaved invoice and payment records.
"""

from billing_services.records import (
    BillingRecordBuilder,
    format_invoice_number,
    invoice_number_preview,
    serialize_pro_rata_details,
)

__all__ = [
    "BillingRecordBuilder",
    "format_invoice_number",
    "invoice_number_preview",
    "serialize_pro_rata_details",
]
