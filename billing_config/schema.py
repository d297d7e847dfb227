"""
Billing configuration schema.

Frozen dataclasses produced by ``billing_config.loader`` from YAML. Field
defaults mirror ``defaults.yaml`` so a bare ``BillingConfig()`` behaves like
the shipped configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from billing_kernel.domain.currency import normalize_currency_code
from billing_kernel.domain.records import AccountCategory, EntryDirection, InvoiceType


@dataclass(frozen=True)
class LedgerPostingDef:
    """Ledger entry an invoice type produces when it is created."""

    invoice_type: InvoiceType
    account_category: AccountCategory
    direction: EntryDirection


@dataclass(frozen=True)
class BillingConfig:
    """Active billing configuration."""

    currency: str = "INR"
    fallback_hsn_code: str = "0000"
    stock_bearing_types: frozenset[InvoiceType] = frozenset(
        {InvoiceType.SALES_INVOICE}
    )
    ledger_postings: tuple[LedgerPostingDef, ...] = field(
        default_factory=lambda: (
            LedgerPostingDef(
                InvoiceType.SALES_INVOICE,
                AccountCategory.ACCOUNTS_RECEIVABLE,
                EntryDirection.CREDIT,
            ),
            LedgerPostingDef(
                InvoiceType.PURCHASE_INVOICE,
                AccountCategory.EXPENSES,
                EntryDirection.DEBIT,
            ),
        )
    )
    checksum: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", normalize_currency_code(self.currency))
        if not self.fallback_hsn_code or not self.fallback_hsn_code.strip():
            raise ValueError("fallback_hsn_code cannot be empty")
        seen: set[InvoiceType] = set()
        for posting in self.ledger_postings:
            if posting.invoice_type in seen:
                raise ValueError(
                    f"Duplicate ledger posting for {posting.invoice_type.value}"
                )
            seen.add(posting.invoice_type)

    def posting_for(self, invoice_type: InvoiceType) -> LedgerPostingDef | None:
        for posting in self.ledger_postings:
            if posting.invoice_type == invoice_type:
                return posting
        return None
