"""
BillingRecordBuilder -- previews and unsaved records under the company settings.

Responsibility:
    Runs ``preview_billing`` with the company defaults applied (tax rate,
    currency, longest operator-chosen period), then turns the confirmed
    ``BillingPreview`` into a ``ServiceInvoice`` (outgoing service) or
    ``ServicePayment`` (incoming service) with one line-item row per
    previewed line, ready for the caller to add to its session.

Architecture position:
    Services -- imperative shell around the pure engines.
    Receives ``BillingSettings`` and a ``Clock`` by injection; never reads
    configuration or the system time on its own.

Invariants enforced:
    - Records are built unsaved: this module never adds, flushes or
      commits.  The caller owns the transaction.
    - Invoice numbers are PREFIX-YYYY-MM-DD-NNN with the configured prefix.
      The caller allocates the sequence; uniqueness belongs to the
      persistence layer.
    - Amounts are copied from the preview verbatim; nothing is recomputed.

Failure modes:
    - ServiceDirectionError: an invoice requested for an incoming service,
      or a payment for an outgoing one.
    - BillingRecordError: missing service or stakeholder reference, a
      malformed invoice number, or a half-specified billing period.
    - Engine errors from ``preview`` propagate unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from billing_config.schema import BillingSettings
from billing_engines.cycle import period_for_range
from billing_engines.history import ProRataDetails
from billing_engines.preview import BillingPreview, preview_billing
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.values import (
    LineItem,
    ProRataLineItem,
    ServiceDefinition,
    ServiceDirection,
)
from billing_kernel.exceptions import BillingRecordError, ServiceDirectionError
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.invoice import InvoiceLineItem, InvoiceStatus, ServiceInvoice
from billing_kernel.models.payment import PaymentLineItem, PaymentStatus, ServicePayment

logger = get_logger("services.records")

_SEQUENCE_WIDTH = 3


def format_invoice_number(prefix: str, invoice_date: date, sequence: int) -> str:
    """Invoice number in the form PREFIX-YYYY-MM-DD-NNN."""
    if not prefix:
        raise BillingRecordError("Invoice prefix must not be empty")
    if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 1:
        raise BillingRecordError(
            f"Invoice sequence must be a positive integer, got {sequence!r}",
            sequence=sequence,
        )
    return f"{prefix}-{invoice_date.isoformat()}-{sequence:0{_SEQUENCE_WIDTH}d}"


def invoice_number_preview(prefix: str, invoice_date: date) -> str:
    """Placeholder number shown before the sequence is allocated."""
    return f"{prefix}-{invoice_date.isoformat()}-{'X' * _SEQUENCE_WIDTH}"


def serialize_pro_rata_details(details: ProRataDetails | None) -> dict[str, Any] | None:
    """JSON-safe form of a pro-rata breakdown for the record's JSON column."""
    if details is None:
        return None
    return {
        "has_changes": details.has_changes,
        "total_days": details.total_days,
        "segments": [
            {
                "start_date": segment.start.isoformat(),
                "end_date": segment.end.isoformat(),
                "days": segment.days,
                "amount": str(segment.amount),
                "line_items": [
                    {
                        "description": item.description,
                        "quantity": str(item.quantity),
                        "unit_price": str(item.unit_price),
                        "amount": str(item.amount),
                        "original_amount": str(item.original_amount),
                    }
                    for item in segment.line_items
                ],
            }
            for segment in details.segments
        ],
    }


def _line_item_columns(order: int, item: LineItem) -> dict[str, Any]:
    columns: dict[str, Any] = {
        "item_order": order,
        "description": item.description,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "amount": item.amount,
    }
    if isinstance(item, ProRataLineItem):
        columns["pro_rata_days"] = item.pro_rata_days
        columns["pro_rata_total_days"] = item.pro_rata_total_days
        columns["original_amount"] = item.original_amount
    return columns


class BillingRecordBuilder:
    """
    Builds invoice and payment records from billing previews.

    Contract:
        Accepts a preview produced by ``preview_billing`` for the same
        service and returns an unsaved ORM instance with its line items
        attached.  The actor id is stamped as ``created_by_id``.

    Non-goals:
        - Does NOT persist, allocate invoice sequences, or transition status.
    """

    def __init__(self, settings: BillingSettings, clock: Clock | None = None):
        self._settings = settings
        self._clock = clock or SystemClock()

    @property
    def settings(self) -> BillingSettings:
        return self._settings

    def default_due_date(self, preview: BillingPreview) -> date:
        """Period end plus the configured payment terms."""
        return preview.period.end + timedelta(days=self._settings.default_payment_terms_days)

    # ------------------------------------------------------------------
    # Settings applied to services
    # ------------------------------------------------------------------

    def with_defaults(self, service: ServiceDefinition) -> ServiceDefinition:
        """Service with an unset tax rate or currency taken from the settings."""
        changes: dict[str, Any] = {}
        if service.tax_rate is None:
            changes["tax_rate"] = self._settings.default_tax_rate
        if not service.currency:
            changes["currency"] = self._settings.currency
        if not changes:
            return service
        return replace(service, **changes)

    def preview(
        self,
        service: ServiceDefinition,
        as_of_date: date | None = None,
        *,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> BillingPreview:
        """
        Preview the next invoice or payment of a service.

        Unset tax rate and currency fall back to the settings. When the
        operator picks the period, both ends are required and the range may
        span at most ``max_period_days``; otherwise the period is resolved
        from the service's cycle.

        Args:
            service: Service to bill
            as_of_date: Generation date; defaults to the clock's today
            period_start: First day of an operator-chosen period
            period_end: Last day of an operator-chosen period

        Raises:
            BillingRecordError: only one end of the period given, or a
                period chosen for a service without a billing cycle
            InvalidPeriodError: chosen range inverted or too long
        """
        service = self.with_defaults(service)

        period = None
        if period_start is not None or period_end is not None:
            if period_start is None or period_end is None:
                raise BillingRecordError(
                    "Both period_start and period_end are required",
                    service_id=service.service_id,
                )
            if service.cycle is None:
                raise BillingRecordError(
                    "A chosen billing period needs a billing cycle",
                    service_id=service.service_id,
                )
            period = period_for_range(
                service.cycle, period_start, period_end, self._settings.max_period_days,
            )

        return preview_billing(service, as_of_date or self._clock.today(), period)

    def invoice_number(self, sequence: int, invoice_date: date | None = None) -> str:
        """Invoice number with the configured prefix, dated today by default."""
        return format_invoice_number(
            self._settings.invoice_prefix, invoice_date or self._clock.today(), sequence,
        )

    def invoice_number_placeholder(self, invoice_date: date | None = None) -> str:
        return invoice_number_preview(
            self._settings.invoice_prefix, invoice_date or self._clock.today(),
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def build_invoice(
        self,
        preview: BillingPreview,
        service: ServiceDefinition,
        invoice_number: str,
        actor_id: UUID,
        *,
        invoice_date: date | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        internal_notes: str | None = None,
    ) -> ServiceInvoice:
        """
        Invoice for an outgoing service.

        Args:
            preview: Confirmed preview for ``service``
            service: The billed service; supplies the references
            invoice_number: Number allocated by the persistence layer
            actor_id: User generating the invoice
            invoice_date: Defaults to the clock's today
            due_date: Defaults to period end + payment terms
            notes: Printed on the invoice
            internal_notes: Kept off the printed invoice

        Raises:
            ServiceDirectionError: ``preview`` is not for an outgoing service
            BillingRecordError: missing references or invoice number
        """
        self._check(preview, service, ServiceDirection.OUTGOING)
        if not invoice_number or not invoice_number.strip():
            raise BillingRecordError(
                "Invoice number is required", service_id=service.service_id,
            )

        with LogContext.bind(
            actor_id=str(actor_id),
            service_id=str(service.service_id),
            stakeholder_id=str(service.stakeholder_id),
        ):
            invoice = ServiceInvoice(
                service_id=service.service_id,
                stakeholder_id=service.stakeholder_id,
                invoice_number=invoice_number,
                billing_period_start=preview.period.start,
                billing_period_end=preview.period.end,
                currency=preview.currency or self._settings.currency,
                subtotal=preview.totals.subtotal,
                tax_rate=preview.totals.tax_rate,
                tax_amount=preview.totals.tax_amount,
                total_amount=preview.totals.total_amount,
                pro_rata_details=serialize_pro_rata_details(preview.pro_rata_details),
                invoice_date=invoice_date or self._clock.today(),
                due_date=due_date or self.default_due_date(preview),
                status=InvoiceStatus.DRAFT,
                notes=notes,
                internal_notes=internal_notes,
                created_by_id=actor_id,
            )
            invoice.line_items = [
                InvoiceLineItem(**_line_item_columns(order, item))
                for order, item in enumerate(preview.line_items)
            ]

            logger.info("invoice_record_built", extra={
                "invoice_number": invoice_number,
                "period_start": preview.period.start.isoformat(),
                "period_end": preview.period.end.isoformat(),
                "total_amount": str(preview.totals.total_amount),
                "line_item_count": len(invoice.line_items),
                "pro_rata_applied": preview.pro_rata_applied,
            })

        return invoice

    def build_payment(
        self,
        preview: BillingPreview,
        service: ServiceDefinition,
        actor_id: UUID,
        *,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> ServicePayment:
        """Pending payment record for an incoming service."""
        self._check(preview, service, ServiceDirection.INCOMING)

        with LogContext.bind(
            actor_id=str(actor_id),
            service_id=str(service.service_id),
            stakeholder_id=str(service.stakeholder_id),
        ):
            payment = ServicePayment(
                service_id=service.service_id,
                stakeholder_id=service.stakeholder_id,
                billing_period_start=preview.period.start,
                billing_period_end=preview.period.end,
                currency=preview.currency or self._settings.currency,
                subtotal=preview.totals.subtotal,
                tax_rate=preview.totals.tax_rate,
                tax_amount=preview.totals.tax_amount,
                total_amount=preview.totals.total_amount,
                pro_rata_details=serialize_pro_rata_details(preview.pro_rata_details),
                status=PaymentStatus.PENDING,
                reference_number=reference_number,
                notes=notes,
                created_by_id=actor_id,
            )
            payment.line_items = [
                PaymentLineItem(**_line_item_columns(order, item))
                for order, item in enumerate(preview.line_items)
            ]

            logger.info("payment_record_built", extra={
                "period_start": preview.period.start.isoformat(),
                "period_end": preview.period.end.isoformat(),
                "total_amount": str(preview.totals.total_amount),
                "line_item_count": len(payment.line_items),
                "pro_rata_applied": preview.pro_rata_applied,
            })

        return payment

    def build(
        self,
        preview: BillingPreview,
        service: ServiceDefinition,
        actor_id: UUID,
        *,
        invoice_number: str | None = None,
        sequence: int | None = None,
    ) -> ServiceInvoice | ServicePayment:
        """
        Invoice or payment record, whichever the service direction calls for.

        Outgoing services need either ``invoice_number`` or a ``sequence``
        to number the invoice with the configured prefix.
        """
        if service.direction == ServiceDirection.OUTGOING:
            if invoice_number is None and sequence is not None:
                invoice_number = self.invoice_number(sequence)
            if invoice_number is None:
                raise BillingRecordError(
                    "Invoice number is required for outgoing services",
                    service_id=service.service_id,
                )
            return self.build_invoice(preview, service, invoice_number, actor_id)
        return self.build_payment(preview, service, actor_id)

    def _check(
        self,
        preview: BillingPreview,
        service: ServiceDefinition,
        expected: ServiceDirection,
    ) -> None:
        if service.direction != expected:
            raise ServiceDirectionError(expected.value, service.direction.value)
        if preview.direction != service.direction:
            raise ServiceDirectionError(service.direction.value, preview.direction.value)
        if service.service_id is None:
            raise BillingRecordError("Service reference is required")
        if service.stakeholder_id is None:
            raise BillingRecordError(
                "Stakeholder reference is required", service_id=service.service_id,
            )
