"""
Billing Domain Records.

Responsibility:
    Frozen dataclasses for the inputs the computation core receives from
    its collaborators: catalog products, customers, the seller's company
    profile, draft invoice requests, and ledger (account) entries.

Architecture position:
    Kernel > Domain -- pure data containers, no I/O. The core treats every
    record here as a read-only snapshot.

Invariants:
    - All records are ``frozen=True`` (immutable after construction).
    - Prices, rates and ledger amounts are ``Decimal`` / ``Money``; float
      inputs from JSON payloads are coerced through ``str`` on construction.
    - Product price >= 0, tax rate within [0, 100], stock a non-negative int.

Failure modes:
    - ``ValueError`` when a collaborator hands over a record that violates
      the invariants above (a contract violation, not a form error).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from billing_kernel.domain.values import Money

_HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a price/rate/amount from a collaborator payload to Decimal."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"{field_name} must be a number, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    return result


class InvoiceType(str, Enum):
    """Kinds of invoice document."""

    QUOTATION = "quotation"
    SALES_ORDER = "sales_order"
    SALES_INVOICE = "sales_invoice"
    PURCHASE_INVOICE = "purchase_invoice"


class AccountCategory(str, Enum):
    """Ledger account categories offered by the account history view."""

    ACCOUNTS_RECEIVABLE = "Accounts Receivable"
    SALES_REVENUE = "Sales Revenue"
    CASH = "Cash"
    EXPENSES = "Expenses"


class EntryDirection(str, Enum):
    """Side of a ledger entry."""

    CREDIT = "credit"
    DEBIT = "debit"


@dataclass(frozen=True)
class Product:
    """A catalog product as seen by the invoice core."""

    id: str
    name: str
    unit_price: Decimal
    tax_rate: Decimal  # percentage, e.g. 18 for 18%
    hsn_code: str | None = None
    stock: int = 0
    category: str | None = None

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise ValueError("Product id cannot be empty")
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate, "tax_rate"))
        if self.unit_price < 0:
            raise ValueError(f"Product {self.id}: unit_price cannot be negative")
        if not (Decimal("0") <= self.tax_rate <= _HUNDRED):
            raise ValueError(
                f"Product {self.id}: tax_rate must be between 0 and 100, "
                f"got {self.tax_rate}"
            )
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValueError(f"Product {self.id}: stock must be an integer")
        if self.stock < 0:
            raise ValueError(f"Product {self.id}: stock cannot be negative")


@dataclass(frozen=True)
class Customer:
    """A buyer. ``state`` decides the buyer-side GST jurisdiction."""

    id: str
    name: str
    state: str
    gstin: str | None = None
    address: str = ""
    country: str = ""
    city: str = ""
    pincode: str = ""


@dataclass(frozen=True)
class BankDetails:
    """Seller bank details printed on invoices."""

    bank_name: str = ""
    account_number: str = ""
    ifsc: str = ""
    branch: str = ""


@dataclass(frozen=True)
class CompanyProfile:
    """The seller. ``state`` decides the seller-side GST jurisdiction."""

    name: str
    state: str
    gstin: str | None = None
    address: str = ""
    country: str = ""
    city: str = ""
    pincode: str = ""
    bank_details: BankDetails = field(default_factory=BankDetails)
    terms_and_conditions: str = ""
    contact_number: str = ""

    REQUIRED_FIELDS = ("name", "address", "country", "state", "city", "pincode")

    def missing_required_fields(self) -> tuple[str, ...]:
        """Names of required settings fields that are blank."""
        return tuple(
            name for name in self.REQUIRED_FIELDS
            if not (getattr(self, name) or "").strip()
        )


@dataclass(frozen=True)
class LineItem:
    """A draft (product, quantity) pair, validated by the line resolver."""

    product_id: str | None
    quantity: Any


@dataclass(frozen=True)
class DraftInvoice:
    """A draft invoice request as submitted by a form."""

    customer_id: str
    invoice_type: InvoiceType
    lines: tuple[LineItem, ...]
    proposed_received: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "invoice_type", InvoiceType(self.invoice_type))
        object.__setattr__(self, "lines", tuple(self.lines))
        if self.proposed_received is not None:
            object.__setattr__(
                self,
                "proposed_received",
                to_decimal(self.proposed_received, "proposed_received"),
            )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> DraftInvoice:
        """
        Build a draft from a request payload.

        Expected shape::

            {"customerId": "...", "type": "sales_invoice",
             "lines": [{"productId": "...", "quantity": 2}],
             "proposedReceived": 100}
        """
        lines = tuple(
            LineItem(product_id=line.get("productId"), quantity=line.get("quantity"))
            for line in payload.get("lines") or ()
        )
        return cls(
            customer_id=payload["customerId"],
            invoice_type=InvoiceType(payload["type"]),
            lines=lines,
            proposed_received=payload.get("proposedReceived"),
        )


@dataclass(frozen=True)
class AccountEntry:
    """A credit or debit ledger record."""

    id: str
    account_category: AccountCategory
    direction: EntryDirection
    amount: Money
    description: str
    entry_date: date
    invoice_id: str | None = None
    customer_name: str | None = None

    def __post_init__(self) -> None:
        if self.amount.is_negative:
            raise ValueError(f"Account entry {self.id}: amount cannot be negative")
