"""
Tests for the Line Resolver.

Covers:
- Pricing and HSN resolution
- Product and quantity validation (first error, index order)
- Cumulative stock checks for stock-bearing invoice types
- Collect-all validation for form display
"""

from decimal import Decimal

import pytest

from billing_engines.line_resolver import LineResolver, ResolvedLine, normalize_quantity
from billing_kernel.domain.records import InvoiceType, LineItem
from billing_kernel.domain.values import Money
from billing_kernel.exceptions import (
    EmptyInvoiceError,
    InsufficientStockError,
    InvalidProductError,
    InvalidQuantityError,
)


class TestNormalizeQuantity:
    """Loosely typed form quantities."""

    @pytest.mark.parametrize("value, expected", [
        (3, 3),
        ("3", 3),
        (" 4 ", 4),
        (Decimal("5"), 5),
        (Decimal("5.0"), 5),
        (2.0, 2),
        (0, 0),
        (-2, -2),
    ])
    def test_whole_numbers(self, value, expected):
        assert normalize_quantity(value) == expected

    @pytest.mark.parametrize("value", [
        True, False, None, "", "abc", "1.5", 2.5, Decimal("0.1"), "NaN", "inf", [1],
    ])
    def test_rejected(self, value):
        assert normalize_quantity(value) is None


class TestResolve:
    """Happy-path resolution."""

    def setup_method(self):
        self.resolver = LineResolver()

    def test_prices_line(self, catalog):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-widget", 2)],
            catalog=catalog,
            invoice_type=InvoiceType.SALES_INVOICE,
        )

        assert len(lines) == 1
        line = lines[0]
        assert line.index == 0
        assert line.product_name == "Widget"
        assert line.quantity == 2
        assert line.hsn_code == "8471"
        assert line.tax_rate == Decimal("18")
        assert line.taxable_amount == Money.of("2000", "INR")

    def test_catalog_as_sequence(self, widget, gadget):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-gadget", "3")],
            catalog=[widget, gadget],
            invoice_type=InvoiceType.QUOTATION,
        )
        assert lines[0].taxable_amount == Money.of("751.50", "INR")

    def test_preserves_draft_order(self, catalog):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-gadget", 1), LineItem("p-widget", 1), LineItem("p-gadget", 1)],
            catalog=catalog,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert [l.product_id for l in lines] == ["p-gadget", "p-widget", "p-gadget"]
        assert [l.index for l in lines] == [0, 1, 2]

    def test_missing_hsn_uses_fallback(self, catalog):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-plain", 1)],
            catalog=catalog,
            invoice_type=InvoiceType.QUOTATION,
        )
        assert lines[0].hsn_code == "0000"

    def test_configured_fallback(self, catalog):
        resolver = LineResolver(fallback_hsn_code="9999")
        lines = resolver.resolve(
            draft_lines=[LineItem("p-plain", 1)],
            catalog=catalog,
            invoice_type=InvoiceType.QUOTATION,
        )
        assert lines[0].hsn_code == "9999"

    def test_taxable_amount_exact(self, catalog):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-plain", 7)],
            catalog=catalog,
            invoice_type=InvoiceType.QUOTATION,
        )
        assert lines[0].taxable_amount.amount == Decimal("699.93")

    def test_resolved_line_rejects_zero_quantity(self):
        with pytest.raises(ValueError):
            ResolvedLine(
                index=0, product_id="p", product_name="P",
                unit_price=Money.of("1", "INR"), tax_rate=Decimal("5"),
                hsn_code="1", quantity=0,
            )


class TestResolveErrors:
    """First failing line is raised with its index."""

    def setup_method(self):
        self.resolver = LineResolver()

    def test_empty_draft(self, catalog):
        with pytest.raises(EmptyInvoiceError):
            self.resolver.resolve(
                draft_lines=[], catalog=catalog, invoice_type=InvoiceType.QUOTATION,
            )

    def test_unknown_product(self, catalog):
        with pytest.raises(InvalidProductError) as exc_info:
            self.resolver.resolve(
                draft_lines=[LineItem("p-widget", 1), LineItem("p-missing", 1)],
                catalog=catalog,
                invoice_type=InvoiceType.QUOTATION,
            )
        assert exc_info.value.index == 1
        assert exc_info.value.product_id == "p-missing"
        assert str(exc_info.value) == "Item 2: Select a valid product"

    def test_missing_product_id(self, catalog):
        with pytest.raises(InvalidProductError):
            self.resolver.resolve(
                draft_lines=[LineItem(None, 1)],
                catalog=catalog,
                invoice_type=InvoiceType.QUOTATION,
            )

    @pytest.mark.parametrize("quantity", [0, -1, "x", "1.5", 0.5, True, None])
    def test_bad_quantity(self, catalog, quantity):
        with pytest.raises(InvalidQuantityError) as exc_info:
            self.resolver.resolve(
                draft_lines=[LineItem("p-gadget", quantity)],
                catalog=catalog,
                invoice_type=InvoiceType.QUOTATION,
            )
        assert exc_info.value.index == 0
        assert exc_info.value.field == "quantity"

    def test_product_error_reported_before_quantity_error(self, catalog):
        with pytest.raises(InvalidProductError):
            self.resolver.resolve(
                draft_lines=[LineItem("p-missing", 0)],
                catalog=catalog,
                invoice_type=InvoiceType.QUOTATION,
            )

    def test_insufficient_stock(self, catalog):
        """Sales invoice for 5 when only 3 are in stock."""
        with pytest.raises(InsufficientStockError) as exc_info:
            self.resolver.resolve(
                draft_lines=[LineItem("p-widget", 5)],
                catalog=catalog,
                invoice_type=InvoiceType.SALES_INVOICE,
            )
        err = exc_info.value
        assert err.code == "INSUFFICIENT_STOCK"
        assert err.product_name == "Widget"
        assert err.available == 3
        assert err.requested == 5
        assert err.index == 0

    def test_stock_checked_cumulatively(self, catalog):
        with pytest.raises(InsufficientStockError) as exc_info:
            self.resolver.resolve(
                draft_lines=[LineItem("p-widget", 2), LineItem("p-widget", 2)],
                catalog=catalog,
                invoice_type=InvoiceType.SALES_INVOICE,
            )
        assert exc_info.value.index == 1
        assert exc_info.value.requested == 4

    def test_exact_stock_allowed(self, catalog):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-widget", 3)],
            catalog=catalog,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert lines[0].quantity == 3

    @pytest.mark.parametrize("invoice_type", [
        InvoiceType.QUOTATION, InvoiceType.SALES_ORDER, InvoiceType.PURCHASE_INVOICE,
    ])
    def test_stock_not_checked_for_other_types(self, catalog, invoice_type):
        lines = self.resolver.resolve(
            draft_lines=[LineItem("p-widget", 50)],
            catalog=catalog,
            invoice_type=invoice_type,
        )
        assert lines[0].quantity == 50

    def test_stock_bearing_types_configurable(self, catalog):
        resolver = LineResolver(stock_bearing_types=frozenset({InvoiceType.SALES_ORDER}))
        with pytest.raises(InsufficientStockError):
            resolver.resolve(
                draft_lines=[LineItem("p-widget", 4)],
                catalog=catalog,
                invoice_type=InvoiceType.SALES_ORDER,
            )

    def test_catalog_is_not_mutated(self, catalog, widget):
        self.resolver.resolve(
            draft_lines=[LineItem("p-widget", 3)],
            catalog=catalog,
            invoice_type=InvoiceType.SALES_INVOICE,
        )
        assert catalog["p-widget"].stock == 3
        assert catalog["p-widget"] == widget


class TestValidate:
    """Collect-all validation."""

    def setup_method(self):
        self.resolver = LineResolver()

    def test_valid_draft_has_no_failures(self, catalog):
        assert self.resolver.validate(
            [LineItem("p-widget", 1)], catalog, InvoiceType.SALES_INVOICE,
        ) == ()

    def test_reports_every_failure_in_order(self, catalog):
        failures = self.resolver.validate(
            [
                LineItem("p-missing", 1),
                LineItem("p-gadget", "two"),
                LineItem("p-widget", 9),
            ],
            catalog,
            InvoiceType.SALES_INVOICE,
        )
        assert [(f.code, f.index) for f in failures] == [
            ("INVALID_PRODUCT", 0),
            ("INVALID_QUANTITY", 1),
            ("INSUFFICIENT_STOCK", 2),
        ]

    def test_product_and_quantity_on_same_line(self, catalog):
        failures = self.resolver.validate(
            [LineItem("p-missing", 0)], catalog, InvoiceType.QUOTATION,
        )
        assert [f.code for f in failures] == ["INVALID_PRODUCT", "INVALID_QUANTITY"]

    def test_empty(self, catalog):
        failures = self.resolver.validate([], catalog, InvoiceType.QUOTATION)
        assert [f.code for f in failures] == ["EMPTY_INVOICE"]
        assert failures[0].field == "lines"


class TestLogging:

    def test_trace_and_events_emitted(self, catalog, captured_logs):
        LineResolver().resolve(
            draft_lines=[LineItem("p-plain", 1)],
            catalog=catalog,
            invoice_type=InvoiceType.QUOTATION,
        )
        messages = [r["message"] for r in captured_logs()]
        assert "line_resolution_started" in messages
        assert "hsn_fallback_applied" in messages
        assert "line_resolution_completed" in messages
        trace = next(r for r in captured_logs() if r["message"] == "BILLING_ENGINE_TRACE")
        assert trace["engine_name"] == "line_resolver"
        assert trace["outcome"] == "completed"

    def test_rejection_traced(self, catalog, captured_logs):
        with pytest.raises(InvalidProductError):
            LineResolver().resolve(
                draft_lines=[LineItem("nope", 1)],
                catalog=catalog,
                invoice_type=InvoiceType.QUOTATION,
            )
        records = captured_logs()
        rejected = next(r for r in records if r["message"] == "line_resolution_rejected")
        assert rejected["error_code"] == "INVALID_PRODUCT"
        trace = next(r for r in records if r["message"] == "BILLING_ENGINE_TRACE")
        assert trace["outcome"] == "rejected"
