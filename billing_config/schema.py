"""
Billing settings schema.

Human-authored YAML settings are parsed into these frozen types by the
loader. Engines never read settings; services receive a ``BillingSettings``
instance and pass the relevant values into engine calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class BillingSettings:
    """
    Company-wide invoice and payment settings.

    Attributes:
        invoice_prefix: Prefix of generated invoice numbers (PREFIX-YYYY-MM-DD-NNN)
        default_payment_terms_days: Days after period end an invoice falls due
        max_period_days: Longest operator-chosen billing period accepted
        default_tax_rate: Tax percentage for services that do not set one
        currency: Default currency code for new services
        checksum: SHA-256 of the parsed source, for change detection
    """

    invoice_prefix: str = "INV"
    default_payment_terms_days: int = 30
    max_period_days: int = 366
    default_tax_rate: Decimal = Decimal("0")
    currency: str = "USD"
    checksum: str = ""
