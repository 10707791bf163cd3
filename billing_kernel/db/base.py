"""
Module: billing_kernel.db.base
Responsibility: Declarative base for invoice and payment records: UUID
    keys, money column precision, and who/when audit columns.
Architecture position: Kernel > DB.  Imported by billing_kernel.models only.

Invariants enforced:
    - Every row has a uuid4 primary key stored as a 36-char string, so the
      same schema runs on PostgreSQL and SQLite.
    - ``Mapped[Decimal]`` columns are Numeric(38, 9); amounts are never float.
    - Tracked rows record their creator; created_by_id is NOT NULL.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """Python ``UUID`` in, ``UUID`` out; CHAR-like String(36) in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        return None if value is None else str(value)

    def process_result_value(self, value: Any, dialect: Any) -> PyUUID | None:
        if value is None or isinstance(value, PyUUID):
            return value
        return PyUUID(value)


_TYPE_ANNOTATION_MAP: dict[Any, Any] = {
    Decimal: Numeric(38, 9),
    datetime: DateTime(timezone=True),
    PyUUID: UUIDString(),
    int: BigInteger,
}


class Base(DeclarativeBase):
    """Declarative base; every model gets ``id: UUID``."""

    type_annotation_map: ClassVar[dict] = _TYPE_ANNOTATION_MAP

    id: Mapped[PyUUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base for top-level records (invoices, payments).

    created_at / updated_at are stamped by the database; the actor columns
    are filled by the service that builds or edits the record.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    created_by_id: Mapped[PyUUID] = mapped_column()

    updated_by_id: Mapped[PyUUID | None] = mapped_column()

