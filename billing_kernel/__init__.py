"""
Billing Kernel

Pure calculation core for recurring stakeholder services:
- Billing cycle resolution (monthly, weekly, yearly, fixed interval)
- Pro-rata adjustment for partial periods
- Line item totals with tax
- Record shapes for persisting invoices and payments
"""

__version__ = "0.1.0"
