"""
Tests for the Invoice Reconciler.

Covers:
- Untracked payments (no proposal)
- Non-numeric proposals
- Negative and over-payment rejection
- Pending derivation and payment status
- The update path for existing invoices
"""

from decimal import Decimal

import pytest

from billing_engines.reconciler import (
    InvoiceReconciler,
    PaymentReconciliation,
    PaymentStatus,
    payment_status,
)
from billing_kernel.domain.records import InvoiceType
from billing_kernel.domain.values import Money
from billing_kernel.exceptions import (
    InvalidAmountError,
    NegativeAmountError,
    OverPaymentError,
)

GRAND = Money.of("2360.00", "INR")


class TestReconcile:

    def setup_method(self):
        self.reconciler = InvoiceReconciler()

    def test_no_proposal_is_untracked(self):
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received=None,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_received is None
        assert result.total_pending is None
        assert not result.is_tracked
        assert result.status == PaymentStatus.UNPAID

    def test_paid_in_full(self):
        """Grand 2360, received 2360: pending 0."""
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received=Decimal("2360"),
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_received == Money.of("2360", "INR")
        assert result.total_pending == Money.of("0", "INR")
        assert result.status == PaymentStatus.PAID

    def test_partial_payment(self):
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received="1000.50",
            invoice_type=InvoiceType.PURCHASE_INVOICE,
        )
        assert result.total_pending.amount == Decimal("1359.50")
        assert result.status == PaymentStatus.PARTIALLY_PAID

    def test_zero_received_is_unpaid(self):
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received=0,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_received.is_zero
        assert result.total_pending == GRAND
        assert result.status == PaymentStatus.UNPAID

    def test_over_payment_rejected(self):
        """Grand 2360, received 3000."""
        with pytest.raises(OverPaymentError) as exc_info:
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received=Decimal("3000"),
                invoice_type=InvoiceType.SALES_INVOICE,
            )
        err = exc_info.value
        assert err.code == "OVER_PAYMENT"
        assert err.excess == Decimal("640.00")
        assert err.grand_total == Decimal("2360.00")

    def test_one_paisa_over_rejected(self):
        with pytest.raises(OverPaymentError):
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received="2360.01",
                invoice_type=InvoiceType.SALES_INVOICE,
            )

    def test_negative_rejected(self):
        with pytest.raises(NegativeAmountError) as exc_info:
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received="-1",
                invoice_type=InvoiceType.SALES_INVOICE,
            )
        assert exc_info.value.field == "total_received"

    def test_money_proposal_accepted(self):
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received=Money.of("100", "INR"),
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_pending == Money.of("2260", "INR")

    @pytest.mark.parametrize("invoice_type", [InvoiceType.QUOTATION, InvoiceType.SALES_ORDER])
    def test_every_type_validates_proposal(self, invoice_type):
        with pytest.raises(OverPaymentError):
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received=Decimal("3000"),
                invoice_type=invoice_type,
            )
        with pytest.raises(NegativeAmountError):
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received=Decimal("-5"),
                invoice_type=invoice_type,
            )

    def test_quotation_payment_tracked(self):
        result = self.reconciler.reconcile(
            grand_total=GRAND,
            proposed_received="500",
            invoice_type=InvoiceType.QUOTATION,
        )
        assert result.total_pending == Money.of("1860", "INR")

    @pytest.mark.parametrize("value", ["abc", "", True, "NaN", [1]])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            self.reconciler.reconcile(
                grand_total=GRAND,
                proposed_received=value,
                invoice_type=InvoiceType.SALES_INVOICE,
            )
        assert exc_info.value.code == "INVALID_AMOUNT"
        assert exc_info.value.field == "total_received"

    def test_received_held_at_currency_precision(self):
        result = self.reconciler.reconcile(
            grand_total=Money.of("100.00", "INR"),
            proposed_received="99.999",
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_received.amount == Decimal("100.00")
        assert result.total_pending.is_zero
        assert result.status == PaymentStatus.PAID

    def test_pending_rounded_to_currency_precision(self):
        result = self.reconciler.reconcile(
            grand_total=Money.of("100.00", "INR"),
            proposed_received="33.333",
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.total_received.amount == Decimal("33.33")
        assert result.total_pending.amount == Decimal("66.67")

    def test_zero_total_paid_at_zero(self):
        result = self.reconciler.reconcile(
            grand_total=Money.zero("INR"),
            proposed_received=0,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert result.status == PaymentStatus.PAID


class TestUpdate:

    def setup_method(self):
        self.reconciler = InvoiceReconciler()

    def test_update_rederives_pending(self):
        result = self.reconciler.update(grand_total=GRAND, proposed_received="2000")
        assert result.total_pending == Money.of("360", "INR")

    def test_update_cannot_exceed_grand_total(self):
        with pytest.raises(OverPaymentError):
            self.reconciler.update(grand_total=GRAND, proposed_received="2400")

    def test_update_rejects_negative(self):
        with pytest.raises(NegativeAmountError):
            self.reconciler.update(grand_total=GRAND, proposed_received=-5)


class TestPaymentStatus:

    @pytest.mark.parametrize("received, expected", [
        (None, PaymentStatus.UNPAID),
        ("0", PaymentStatus.UNPAID),
        ("0.01", PaymentStatus.PARTIALLY_PAID),
        ("2359.99", PaymentStatus.PARTIALLY_PAID),
        ("2360", PaymentStatus.PAID),
    ])
    def test_status(self, received, expected):
        money = None if received is None else Money.of(received, "INR")
        assert payment_status(money, GRAND) == expected

    def test_reconciliation_requires_both_or_neither(self):
        with pytest.raises(ValueError):
            PaymentReconciliation(GRAND, Money.of("1", "INR"), None)

    def test_reconciliation_rejects_negative_pending(self):
        with pytest.raises(ValueError):
            PaymentReconciliation(GRAND, GRAND, Money.of("-1", "INR"))
