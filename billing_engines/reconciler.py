"""
Invoice Reconciler - Validate amount received against the grand total.

Pure functions with no I/O. Produces the payment state of an invoice
(amount received, amount pending, derived status) and is the only place a
received amount is ever accepted, both at creation and on later updates.

Payment status is derived, never stored:

    UNPAID          received is None or 0
    PARTIALLY_PAID  0 < received < grand total
    PAID            received == grand total

Usage:
    from billing_engines.reconciler import InvoiceReconciler
    from billing_kernel.domain.records import InvoiceType

    reconciler = InvoiceReconciler()
    result = reconciler.reconcile(
        grand_total=Money.of("2360", "INR"),
        proposed_received=Decimal("1000"),
        invoice_type=InvoiceType.SALES_INVOICE,
    )
    print(result.total_pending)  # Money: 1360.00 INR
    print(result.status)         # PaymentStatus.PARTIALLY_PAID
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from billing_engines.tracer import traced_engine
from billing_kernel.domain.values import Money
from billing_kernel.domain.records import InvoiceType, to_decimal
from billing_kernel.exceptions import (
    InvalidAmountError,
    NegativeAmountError,
    OverPaymentError,
)
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.reconciler")


class PaymentStatus(str, Enum):
    """Derived payment state of an invoice."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


def payment_status(total_received: Money | None, grand_total: Money) -> PaymentStatus:
    """Derive the payment state. A zero-total invoice paid in full is PAID."""
    if total_received is None:
        return PaymentStatus.UNPAID
    if total_received.amount == grand_total.amount:
        return PaymentStatus.PAID
    if total_received.is_zero:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIALLY_PAID


@dataclass(frozen=True)
class PaymentReconciliation:
    """
    Payment state for one invoice.

    Both amounts are None when payment is not tracked for the invoice.
    """

    grand_total: Money
    total_received: Money | None
    total_pending: Money | None

    def __post_init__(self) -> None:
        if (self.total_received is None) != (self.total_pending is None):
            raise ValueError("total_received and total_pending are tracked together")
        if self.total_pending is not None and self.total_pending.is_negative:
            raise ValueError("total_pending cannot be negative")

    @property
    def is_tracked(self) -> bool:
        return self.total_received is not None

    @property
    def status(self) -> PaymentStatus:
        return payment_status(self.total_received, self.grand_total)


class InvoiceReconciler:
    """
    Reconcile a proposed amount received with an invoice grand total.

    Pure functions - no I/O.

    Rules:
        - proposal None: received and pending are both None
        - proposal not a number: InvalidAmountError
        - proposal < 0: NegativeAmountError
        - proposal rounded to currency precision > grand total:
          OverPaymentError
        - otherwise received is the rounded proposal and
          pending = grand total - received
    """

    @traced_engine(
        "reconciler", "1.0",
        fingerprint_fields=("grand_total", "proposed_received", "invoice_type"),
    )
    def reconcile(
        self,
        grand_total: Money,
        proposed_received: Money | Decimal | str | int | None,
        invoice_type: InvoiceType,
    ) -> PaymentReconciliation:
        """
        Validate a proposed amount received.

        Args:
            grand_total: Amount owed on the invoice
            proposed_received: Amount received so far, or None when payment
                is not being recorded
            invoice_type: Invoice type, recorded on the reconciliation log

        Returns:
            PaymentReconciliation

        Raises:
            InvalidAmountError: proposal is not a number
            NegativeAmountError: proposal below zero
            OverPaymentError: proposal above grand total
        """
        invoice_type = InvoiceType(invoice_type)
        if proposed_received is None:
            logger.debug("payment_not_tracked", extra={
                "invoice_type": invoice_type.value,
            })
            return PaymentReconciliation(grand_total, None, None)

        return self._validate(grand_total, proposed_received)

    @traced_engine("reconciler", "1.0", fingerprint_fields=("grand_total", "proposed_received"))
    def update(
        self,
        grand_total: Money,
        proposed_received: Money | Decimal | str | int,
    ) -> PaymentReconciliation:
        """
        Validate a new amount received for an existing invoice.

        Same rules as ``reconcile`` against the invoice's already-computed
        grand total. A tracked payment cannot be cleared back to None.

        Raises:
            InvalidAmountError: proposal is not a number
            NegativeAmountError: proposal below zero
            OverPaymentError: proposal above grand total
        """
        logger.info("payment_update_requested", extra={
            "grand_total": str(grand_total.amount),
            "proposed_received": str(proposed_received),
        })
        return self._validate(grand_total, proposed_received)

    def _validate(
        self,
        grand_total: Money,
        proposed_received: Money | Decimal | str | int,
    ) -> PaymentReconciliation:
        amount = self._as_decimal(proposed_received)

        if amount < 0:
            logger.warning("payment_rejected_negative", extra={"amount": str(amount)})
            raise NegativeAmountError(amount)

        # Received is held at currency precision so pending is zero exactly
        # when the invoice is paid.
        received = Money.of(amount, grand_total.currency).round()
        if received.amount > grand_total.amount:
            logger.warning("payment_rejected_overpayment", extra={
                "amount": str(received.amount),
                "grand_total": str(grand_total.amount),
                "excess": str(received.amount - grand_total.amount),
            })
            raise OverPaymentError(received.amount, grand_total.amount)

        pending = (grand_total - received).round()

        result = PaymentReconciliation(grand_total, received, pending)
        logger.info("payment_reconciled", extra={
            "grand_total": str(grand_total.amount),
            "total_received": str(received.amount),
            "total_pending": str(pending.amount),
            "status": result.status.value,
        })
        return result

    @staticmethod
    def _as_decimal(value: Money | Decimal | str | int) -> Decimal:
        if isinstance(value, Money):
            return value.amount
        try:
            return to_decimal(value, "proposed_received")
        except ValueError as e:
            logger.warning("payment_rejected_invalid", extra={"value": repr(value)})
            raise InvalidAmountError(value) from e
