"""
AccountService -- ledger (account history) entries.

Creates validated manual credit/debit entries and the entries an invoice
produces as a side effect of its creation, using the configured ledger
postings. Storage of entries belongs to the persistence collaborator.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import uuid4

from billing_config import BillingConfig
from billing_engines.ledger import LedgerSummary, summarize
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.records import (
    AccountCategory,
    AccountEntry,
    EntryDirection,
    to_decimal,
)
from billing_kernel.domain.values import Money
from billing_kernel.exceptions import InvalidAccountEntryError
from billing_kernel.logging_config import get_logger
from billing_services.models import ComputedInvoice

logger = get_logger("services.account")

_INVOICE_LABELS = {
    "quotation": "Quotation",
    "sales_order": "Sales order",
    "sales_invoice": "Sales invoice",
    "purchase_invoice": "Purchase invoice",
}


class AccountService:
    """Builds ledger entries; never stores them."""

    def __init__(
        self,
        config: BillingConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or BillingConfig()
        self._clock = clock or SystemClock()

    def create_entry(
        self,
        account_category: AccountCategory | str,
        direction: EntryDirection | str,
        amount: Money | Decimal | str | int,
        description: str,
        entry_date: date | None = None,
        customer_name: str | None = None,
        invoice_id: str | None = None,
    ) -> AccountEntry:
        """
        Create a manual ledger entry.

        Raises:
            InvalidAccountEntryError: Unknown category or direction, an
                amount that is not a non-negative number, or a blank
                description.
        """
        try:
            category = AccountCategory(account_category)
        except ValueError:
            raise InvalidAccountEntryError(
                "account_category", f"unknown category {account_category!r}"
            ) from None
        try:
            side = EntryDirection(direction)
        except ValueError:
            raise InvalidAccountEntryError(
                "direction", f"must be credit or debit, got {direction!r}"
            ) from None

        money = self._to_money(amount)
        if money.is_negative:
            raise InvalidAccountEntryError("amount", "cannot be negative")
        if not description or not description.strip():
            raise InvalidAccountEntryError("description", "is required")

        entry = AccountEntry(
            id=str(uuid4()),
            account_category=category,
            direction=side,
            amount=money,
            description=description.strip(),
            entry_date=entry_date or self._clock.today(),
            invoice_id=invoice_id,
            customer_name=customer_name,
        )
        logger.info("account_entry_created", extra={
            "entry_id": entry.id,
            "account_category": category.value,
            "direction": side.value,
            "amount": str(money.amount),
            "invoice_id": invoice_id,
        })
        return entry

    def entries_for_invoice(self, invoice: ComputedInvoice) -> tuple[AccountEntry, ...]:
        """Ledger entries produced by creating ``invoice`` (possibly none)."""
        posting = self._config.posting_for(invoice.invoice_type)
        if posting is None:
            logger.debug("no_ledger_posting", extra={
                "invoice_type": invoice.invoice_type.value,
            })
            return ()

        label = _INVOICE_LABELS[invoice.invoice_type.value]
        return (
            self.create_entry(
                account_category=posting.account_category,
                direction=posting.direction,
                amount=invoice.grand_total,
                description=f"{label} {invoice.id} - {invoice.customer_name}",
                entry_date=invoice.created_at.date(),
                customer_name=invoice.customer_name,
                invoice_id=invoice.id,
            ),
        )

    def summary(
        self,
        entries: Iterable[AccountEntry],
        customer: str | None = None,
    ) -> LedgerSummary:
        """Credit/debit totals and balance, optionally for one customer."""
        return summarize(entries=entries, customer=customer, currency=self._config.currency)

    def _to_money(self, amount: Money | Decimal | str | int) -> Money:
        if isinstance(amount, Money):
            return amount
        try:
            return Money.of(to_decimal(amount, "amount"), self._config.currency)
        except ValueError as e:
            raise InvalidAccountEntryError("amount", str(e)) from e
