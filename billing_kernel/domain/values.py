"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides Currency and Money, the value types used for every monetary
    figure on an invoice: unit prices, taxable amounts, tax components,
    totals, amounts received and pending, and ledger amounts.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Money pairs a Decimal amount with its Currency; floats are rejected.
    - Arithmetic never mixes currencies.
    - Money never rounds implicitly; rounding happens only when a caller
      asks for a presentation figure via ``round()``.

Failure modes:
    - ValueError on construction with invalid amounts or currencies
    - TypeError when a float is passed as an amount
    - ValueError when arithmetic mixes different currencies
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing_kernel.domain.currency import minor_units, normalize_currency_code


@dataclass(frozen=True, slots=True)
class Currency:
    """
    Billing currency value object.

    Guarantees:
        - Immutable and hashable
        - code is always uppercase and stripped of whitespace
        - code is always a supported billing currency
    """

    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", normalize_currency_code(self.code))

    @property
    def decimal_places(self) -> int:
        return minor_units(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are NEVER separated.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal (never float)
        - Arithmetic operations enforce same-currency constraint

    Non-goals:
        - Does NOT auto-round -- callers must explicitly call .round()
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise TypeError(
                f"Money amount must not be float, got {self.amount!r}; "
                f"pass a str or Decimal"
            )
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e
        if not self.amount.is_finite():
            raise ValueError(f"Invalid amount: {self.amount}")

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            ValueError: If amount cannot be converted or currency is invalid.
            TypeError: If amount is a float.
        """
        if isinstance(amount, (str, int)) and not isinstance(amount, bool):
            try:
                amount = Decimal(str(amount).strip())
            except InvalidOperation as e:
                raise ValueError(f"Invalid amount: {amount!r}") from e
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """
        Round to the currency's decimal places.

        Returns a new Money instance; the original is unchanged.
        """
        exponent = Decimal(10) ** -self.currency.decimal_places
        return Money(
            amount=self.amount.quantize(exponent, rounding=rounding),
            currency=self.currency,
        )

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar."""
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        """Divide by a scalar."""
        if isinstance(divisor, (int, str)) and not isinstance(divisor, bool):
            divisor = Decimal(str(divisor))
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


def sum_money(amounts: list[Money] | tuple[Money, ...], currency: str | Currency) -> Money:
    """Sum Money values, starting from zero in ``currency``."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total
