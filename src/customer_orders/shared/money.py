"""Money value object for monetary amounts with currency.

Amounts are kept as decimal text so that totals never pick up binary
floating-point error. ``Money.of`` is the way in: it quantises the amount to
the currency's minor unit with half-up rounding.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from customer_orders.domain import customer_orders

VALID_CURRENCIES = frozenset(
    {
        "USD",
        "EUR",
        "GBP",
        "JPY",
        "CAD",
        "AUD",
        "CHF",
        "CNY",
        "INR",
        "MXN",
        "BRL",
        "KRW",
        "SGD",
        "HKD",
        "NOK",
        "SEK",
        "DKK",
        "NZD",
        "ZAR",
        "TWD",
    }
)

# Currencies without a minor unit; everything else uses two fraction digits
_ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW"})


def fraction_digits(currency: str) -> int:
    return 0 if currency in _ZERO_DECIMAL_CURRENCIES else 2


def _to_decimal(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError({"amount": [f"Invalid amount: {amount}"]}) from None
    if not value.is_finite():
        raise ValidationError({"amount": [f"Invalid amount: {amount}"]})
    return value


def _quantize(value: Decimal, currency: str) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-fraction_digits(currency)), rounding=ROUND_HALF_UP)


@customer_orders.value_object
class Money:
    """Value object representing a monetary amount with currency."""

    amount: String(required=True, max_length=40)
    currency: String(max_length=3, default="USD")

    @invariant.post
    def currency_must_be_valid_iso_4217(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def amount_must_be_a_decimal(self):
        _to_decimal(self.amount)

    @classmethod
    def of(cls, amount, currency: str = "USD") -> "Money":
        currency = (currency or "").strip().upper()
        value = _to_decimal(amount)
        return cls(amount=str(_quantize(value, currency)), currency=currency)

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls.of(0, currency)

    @property
    def value(self) -> Decimal:
        return Decimal(self.amount)

    def _assert_same_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise ValidationError(
                {"currency": [f"Currency mismatch: {self.currency} and {other.currency}"]},
            )

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money.of(self.value + other.value, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money.of(self.value - other.value, self.currency)

    def multiply(self, factor) -> "Money":
        return Money.of(self.value * _to_decimal(factor), self.currency)

    def is_positive(self) -> bool:
        return self.value > 0

    def is_zero(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
