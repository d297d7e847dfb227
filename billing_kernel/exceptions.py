"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Invoice validation failures are surfaced to a form layer as field-level
messages. Callers must be able to tell "product not found on line 3" from
"payment exceeds the grand total" without parsing message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (offending index, field, amounts)

Example - RIGHT way:
    try:
        lines = resolver.resolve(draft_lines=..., catalog=..., invoice_type=...)
    except InsufficientStockError as e:
        form.add_error(e.index, f"Only {e.available} of {e.product_name} left")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- InvoiceValidationError
    |   +-- InvalidProductError
    |   +-- InvalidQuantityError
    |   +-- InsufficientStockError
    |   +-- EmptyInvoiceError
    |   +-- InvalidAmountError
    |   +-- NegativeAmountError
    |   +-- OverPaymentError
    |
    +-- LedgerError
        +-- InvalidAccountEntryError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When Raised
----------------|------------------------|-----------------------------------------
Line            | INVALID_PRODUCT        | Product id missing from catalog
                | INVALID_QUANTITY       | Quantity not a positive integer
                | INSUFFICIENT_STOCK     | Stock-bearing invoice exceeds stock
                | EMPTY_INVOICE          | No lines submitted
----------------|------------------------|-----------------------------------------
Payment         | INVALID_AMOUNT         | Amount received is not a number
                | NEGATIVE_AMOUNT        | Amount received below zero
                | OVER_PAYMENT           | Amount received above grand total
----------------|------------------------|-----------------------------------------
Ledger          | INVALID_ACCOUNT_ENTRY  | Manual ledger entry failed validation

All of these are caller input errors. None of them is retried.
"""

from decimal import Decimal


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Invoice validation exceptions


class InvoiceValidationError(BillingKernelError):
    """Base exception for draft invoice validation failures."""

    code: str = "INVOICE_VALIDATION_ERROR"

    # Line position (0-based) or None for invoice-level failures.
    index: int | None = None
    field: str | None = None


class InvalidProductError(InvoiceValidationError):
    """Line references a product that is not in the catalog."""

    code: str = "INVALID_PRODUCT"

    def __init__(self, index: int, product_id: str | None):
        self.index = index
        self.field = "product_id"
        self.product_id = product_id
        super().__init__(f"Item {index + 1}: Select a valid product")


class InvalidQuantityError(InvoiceValidationError):
    """Line quantity is not a positive integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, index: int, quantity: object):
        self.index = index
        self.field = "quantity"
        self.quantity = quantity
        super().__init__(
            f"Item {index + 1}: Quantity must be a positive whole number, "
            f"got {quantity!r}"
        )


class InsufficientStockError(InvoiceValidationError):
    """Requested quantity exceeds available stock for a stock-bearing invoice."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        index: int,
        product_id: str,
        product_name: str,
        available: int,
        requested: int,
    ):
        self.index = index
        self.field = "quantity"
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Item {index + 1}: Insufficient stock for {product_name} "
            f"({available} available, {requested} requested)"
        )


class EmptyInvoiceError(InvoiceValidationError):
    """Draft invoice has no lines."""

    code: str = "EMPTY_INVOICE"

    def __init__(self) -> None:
        self.field = "lines"
        super().__init__("At least one item is required")


class InvalidAmountError(InvoiceValidationError):
    """Amount received is not a finite number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: object, field: str = "total_received"):
        self.field = field
        self.value = value
        super().__init__(f"Total received must be a number, got {value!r}")


class NegativeAmountError(InvoiceValidationError):
    """Amount received is below zero."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, amount: Decimal, field: str = "total_received"):
        self.field = field
        self.amount = amount
        super().__init__(f"Total received cannot be negative: {amount}")


class OverPaymentError(InvoiceValidationError):
    """Amount received exceeds the invoice grand total."""

    code: str = "OVER_PAYMENT"

    def __init__(
        self,
        amount: Decimal,
        grand_total: Decimal,
        field: str = "total_received",
    ):
        self.field = field
        self.amount = amount
        self.grand_total = grand_total
        self.excess = amount - grand_total
        super().__init__(
            f"Total received {amount} exceeds total amount {grand_total} "
            f"by {self.excess}"
        )


# Ledger exceptions


class LedgerError(BillingKernelError):
    """Base exception for ledger (account entry) errors."""

    code: str = "LEDGER_ERROR"


class InvalidAccountEntryError(LedgerError):
    """Account entry failed validation."""

    code: str = "INVALID_ACCOUNT_ENTRY"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid account entry {field}: {reason}")
