"""
Module: billing_kernel.models.line_item
Responsibility: Columns shared by invoice and payment line items.  Each row
    is a snapshot of a service line item at generation time, optionally
    pro-rated.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - amount is the billed amount (pro-rated when pro_rata_days is set).
    - quantity and unit_price are the unscaled service values.
    - pro_rata_days, pro_rata_total_days and original_amount are either all
      set or all NULL.
"""

from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class LineItemColumnsMixin:
    """Snapshot columns of one billed line."""

    item_order: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    pro_rata_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    pro_rata_total_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    original_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    @property
    def is_pro_rated(self) -> bool:
        return self.pro_rata_days is not None
