"""
Pytest fixtures for the billing core test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock
- A sample catalog, customers and company profile
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from billing_config import BillingConfig
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.domain.records import (
    BankDetails,
    CompanyProfile,
    Customer,
    DraftInvoice,
    InvoiceType,
    LineItem,
    Product,
)
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture billing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.compute_invoice(...)
            logs = captured_logs()
            assert any(r["message"] == "invoice_computation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("billing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 4, 1, 10, 30, tzinfo=timezone.utc))


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def billing_config() -> BillingConfig:
    return BillingConfig()


@pytest.fixture
def widget() -> Product:
    """1000.00 @ 18%, HSN 8471, stock 3."""
    return Product(
        id="p-widget",
        name="Widget",
        unit_price=Decimal("1000.00"),
        tax_rate=Decimal("18"),
        hsn_code="8471",
        stock=3,
    )


@pytest.fixture
def gadget() -> Product:
    """250.50 @ 12%, HSN 8517, stock 10."""
    return Product(
        id="p-gadget",
        name="Gadget",
        unit_price=Decimal("250.50"),
        tax_rate=Decimal("12"),
        hsn_code="8517",
        stock=10,
    )


@pytest.fixture
def unlabelled() -> Product:
    """A product without an HSN code."""
    return Product(
        id="p-plain",
        name="Plain Item",
        unit_price=Decimal("99.99"),
        tax_rate=Decimal("5"),
        hsn_code=None,
        stock=100,
    )


@pytest.fixture
def catalog(widget, gadget, unlabelled) -> dict[str, Product]:
    return {p.id: p for p in (widget, gadget, unlabelled)}


@pytest.fixture
def company() -> CompanyProfile:
    return CompanyProfile(
        name="Shree Traders",
        state="Gujarat",
        gstin="24AAACS1234A1Z5",
        address="12 Ring Road",
        country="India",
        city="Surat",
        pincode="395002",
        bank_details=BankDetails(
            bank_name="State Bank",
            account_number="0001112223",
            ifsc="SBIN0000001",
            branch="Surat Main",
        ),
    )


@pytest.fixture
def local_customer() -> Customer:
    return Customer(id="c-local", name="Patel Stores", state="Gujarat", city="Ahmedabad")


@pytest.fixture
def outstation_customer() -> Customer:
    return Customer(id="c-out", name="Mehta & Sons", state="Maharashtra", city="Pune")


@pytest.fixture
def make_draft():
    """Factory for draft invoices: make_draft(customer, [(product_id, qty), ...])."""

    def _make(
        customer: Customer,
        lines: list[tuple[str | None, object]],
        invoice_type: InvoiceType = InvoiceType.SALES_INVOICE,
        proposed_received=None,
    ) -> DraftInvoice:
        return DraftInvoice(
            customer_id=customer.id,
            invoice_type=invoice_type,
            lines=tuple(LineItem(product_id=pid, quantity=qty) for pid, qty in lines),
            proposed_received=proposed_received,
        )

    return _make
