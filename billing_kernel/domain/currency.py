"""
Billing currencies and their minor-unit exponents.

Invoices are raised in INR by default (``billing_config`` ``currency``).
The exponent is the number of decimal places ``Money.round()`` keeps:
2 for paise, 0 for yen, 3 for fils.
"""

from types import MappingProxyType

MINOR_UNITS = MappingProxyType({
    "INR": 2,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "AED": 2,
    "JPY": 0,
    "BHD": 3,
})


def normalize_currency_code(code: object) -> str:
    """
    Upper-case and strip a currency code, rejecting unsupported ones.

    Raises:
        ValueError: if the code is empty, not three letters, or not a
            billing currency.
    """
    if not isinstance(code, str) or not code.strip():
        raise ValueError(f"Invalid currency code: {code!r}")
    normalized = code.strip().upper()
    if len(normalized) != 3:
        raise ValueError(f"Currency code must be 3 characters: {code!r}")
    if normalized not in MINOR_UNITS:
        raise ValueError(f"Unsupported billing currency: {code!r}")
    return normalized


def minor_units(code: str) -> int:
    """Decimal places for a supported currency code."""
    return MINOR_UNITS[normalize_currency_code(code)]
