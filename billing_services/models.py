"""
Invoice service result types.

``ComputedInvoice`` is the output of the invoice pipeline: everything a
renderer or a persistence collaborator needs, with every figure already
computed. ``InvoiceComputationResult`` wraps it with a status so callers
get either a complete invoice or a structured failure, never a partial
invoice.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from billing_engines.gst import GstTotals, HsnSummaryEntry, TaxedLine, TaxRegime
from billing_engines.reconciler import PaymentReconciliation, PaymentStatus
from billing_kernel.domain.dtos import ValidationFailure
from billing_kernel.domain.records import InvoiceType
from billing_kernel.domain.values import Money


class InvoiceComputationStatus(str, Enum):
    """Status of an invoice computation or payment update."""

    COMPUTED = "computed"
    EMPTY_INVOICE = "empty_invoice"
    INVALID_PRODUCT = "invalid_product"
    INVALID_QUANTITY = "invalid_quantity"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_AMOUNT = "invalid_amount"
    NEGATIVE_AMOUNT = "negative_amount"
    OVER_PAYMENT = "over_payment"

    @classmethod
    def for_error_code(cls, code: str) -> InvoiceComputationStatus:
        return cls(code.lower())


def _money(value: Money | None) -> str | None:
    return None if value is None else str(value.round().amount)


@dataclass(frozen=True)
class ComputedInvoice:
    """
    A fully computed invoice.

    Immutable. The received amount only changes through
    ``InvoiceService.update_received``, which returns a new instance.
    """

    id: str
    invoice_type: InvoiceType
    customer_id: str
    customer_name: str
    seller_state: str
    buyer_state: str
    regime: TaxRegime
    lines: tuple[TaxedLine, ...]
    hsn_summary: tuple[HsnSummaryEntry, ...]
    totals: GstTotals
    grand_total: Money  # rounded to currency precision; the amount owed
    amount_in_words: str
    payment: PaymentReconciliation
    created_at: datetime

    @property
    def currency(self) -> str:
        return self.grand_total.currency.code

    @property
    def total_received(self) -> Money | None:
        return self.payment.total_received

    @property
    def total_pending(self) -> Money | None:
        return self.payment.total_pending

    @property
    def payment_status(self) -> PaymentStatus:
        return self.payment.status

    def with_payment(self, payment: PaymentReconciliation) -> ComputedInvoice:
        """Return a copy carrying a new payment reconciliation."""
        if payment.grand_total != self.grand_total:
            raise ValueError(
                f"Reconciliation for {payment.grand_total} does not match "
                f"invoice grand total {self.grand_total}"
            )
        return replace(self, payment=payment)

    def to_dict(self) -> dict[str, Any]:
        """Flat, JSON-safe rendering with amounts rounded for presentation."""
        return {
            "id": self.id,
            "type": self.invoice_type.value,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "seller_state": self.seller_state,
            "buyer_state": self.buyer_state,
            "regime": self.regime.value,
            "currency": self.currency,
            "items": [
                {
                    "product_id": t.line.product_id,
                    "product_name": t.line.product_name,
                    "hsn_code": t.hsn_code,
                    "quantity": t.line.quantity,
                    "unit_price": _money(t.line.unit_price),
                    "tax_rate": str(t.line.tax_rate),
                    "taxable_amount": _money(t.taxable_amount),
                    "cgst": _money(t.cgst),
                    "sgst": _money(t.sgst),
                    "igst": _money(t.igst),
                    "total": _money(t.line_total),
                }
                for t in self.lines
            ],
            "hsn_summary": [
                {
                    "hsn_code": h.hsn_code,
                    "taxable_amount": _money(h.taxable_amount),
                    "cgst": _money(h.cgst),
                    "sgst": _money(h.sgst),
                    "igst": _money(h.igst),
                    "total": _money(h.line_total),
                    "tax_rates": [str(r) for r in h.tax_rates],
                }
                for h in self.hsn_summary
            ],
            "taxable_amount": _money(self.totals.taxable),
            "cgst": _money(self.totals.cgst),
            "sgst": _money(self.totals.sgst),
            "igst": _money(self.totals.igst),
            "tax_amount": _money(self.totals.tax),
            "total_amount": _money(self.grand_total),
            "total_in_words": self.amount_in_words,
            "total_received": _money(self.total_received),
            "total_pending": _money(self.total_pending),
            "payment_status": self.payment_status.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class InvoiceComputationResult:
    """Result of an invoice computation: an invoice or a failure, never both."""

    status: InvoiceComputationStatus
    invoice: ComputedInvoice | None = None
    failure: ValidationFailure | None = None

    def __post_init__(self) -> None:
        if self.status == InvoiceComputationStatus.COMPUTED:
            if self.invoice is None or self.failure is not None:
                raise ValueError("A computed result carries an invoice and no failure")
        elif self.invoice is not None or self.failure is None:
            raise ValueError("A failed result carries a failure and no invoice")

    @property
    def is_success(self) -> bool:
        return self.status == InvoiceComputationStatus.COMPUTED

    @classmethod
    def computed(cls, invoice: ComputedInvoice) -> InvoiceComputationResult:
        return cls(status=InvoiceComputationStatus.COMPUTED, invoice=invoice)

    @classmethod
    def rejected(cls, failure: ValidationFailure) -> InvoiceComputationResult:
        return cls(
            status=InvoiceComputationStatus.for_error_code(failure.code),
            failure=failure,
        )
