"""
Amount in words for printed invoices (Indian numbering system).

Only the whole-rupee part is spelled out; paise are dropped (floored), so
123456.99 renders the same as 123456.

    >>> amount_in_words(Decimal("123456"))
    'One Lakh Twenty Three Thousand Four Hundred Fifty Six Rupees only'
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from num2words import num2words

from billing_kernel.domain.values import Money

_CONNECTIVES = frozenset({"and"})


def rupees_in_words(rupees: int) -> str:
    """Title-cased words for a whole number using crore/lakh/thousand grouping."""
    if rupees < 0:
        raise ValueError(f"Cannot spell a negative amount: {rupees}")
    raw = num2words(rupees, lang="en_IN")
    tokens = raw.replace(",", " ").replace("-", " ").split()
    return " ".join(t.capitalize() for t in tokens if t.lower() not in _CONNECTIVES)


def amount_in_words(amount: Money | Decimal | int) -> str:
    """
    Render an invoice amount in words.

    Raises:
        ValueError: If the amount is negative.
    """
    value = amount.amount if isinstance(amount, Money) else Decimal(amount)
    if value < 0:
        raise ValueError(f"Cannot spell a negative amount: {value}")
    rupees = int(value.to_integral_value(rounding=ROUND_FLOOR))
    return f"{rupees_in_words(rupees)} Rupees only"
