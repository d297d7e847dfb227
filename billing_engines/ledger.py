"""
billing_engines.ledger -- Account history totals.

Responsibility:
    Summarize credit/debit ledger entries into totals and a running
    balance, optionally for a single customer, and list the customers that
    appear in a ledger. Entry creation lives in
    ``billing_services.account_service``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - balance == total_credit - total_debit
    - Totals are exact; entries in a different currency are rejected by
      Money arithmetic.

Usage:
    from billing_engines.ledger import summarize

    summary = summarize(entries=entries, customer="Acme Traders")
    print(summary.balance)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from billing_engines.tracer import traced_engine
from billing_kernel.domain.records import AccountEntry, EntryDirection
from billing_kernel.domain.values import Money, sum_money
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")


@dataclass(frozen=True)
class LedgerSummary:
    """
    Totals for a set of ledger entries.

    Immutable value object.
    """

    total_credit: Money
    total_debit: Money
    balance: Money  # credit - debit
    entry_count: int
    customer: str | None = None

    @property
    def is_zero(self) -> bool:
        return self.balance.is_zero


@traced_engine("ledger", "1.0", fingerprint_fields=("customer", "currency"))
def summarize(
    entries: Iterable[AccountEntry],
    customer: str | None = None,
    currency: str = "INR",
) -> LedgerSummary:
    """
    Total credits and debits, optionally for one customer.

    Args:
        entries: Ledger entries in any order
        customer: Only count entries with this customer name (exact match)
        currency: Currency of the zero totals when nothing matches

    Returns:
        LedgerSummary
    """
    selected = [
        e for e in entries
        if customer is None or e.customer_name == customer
    ]
    credit = sum_money(
        [e.amount for e in selected if e.direction == EntryDirection.CREDIT], currency
    )
    debit = sum_money(
        [e.amount for e in selected if e.direction == EntryDirection.DEBIT], currency
    )

    summary = LedgerSummary(
        total_credit=credit,
        total_debit=debit,
        balance=credit - debit,
        entry_count=len(selected),
        customer=customer,
    )
    logger.info("ledger_summarized", extra={
        "customer": customer,
        "entry_count": summary.entry_count,
        "total_credit": str(credit.amount),
        "total_debit": str(debit.amount),
        "balance": str(summary.balance.amount),
    })
    return summary


def customers(entries: Iterable[AccountEntry]) -> tuple[str, ...]:
    """Distinct customer names in first-seen order; entries without one are skipped."""
    seen: dict[str, None] = {}
    for entry in entries:
        if entry.customer_name:
            seen.setdefault(entry.customer_name, None)
    return tuple(seen)
