"""Simple FX conversion service for expressing expenses in a company's base currency."""
from decimal import Decimal

# Static mid-market rates to USD (replace with live API in production)
RATES: dict[str, Decimal] = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("1.08"),
    "GBP": Decimal("1.27"),
    "CAD": Decimal("0.74"),
    "AUD": Decimal("0.65"),
    "JPY": Decimal("0.0067"),
    "CNY": Decimal("0.14"),
    "INR": Decimal("0.012"),
    "MXN": Decimal("0.058"),
    "CHF": Decimal("1.13"),
    "SGD": Decimal("0.74"),
    "NZD": Decimal("0.60"),
}


def exchange_rate(from_currency: str, to_currency: str) -> Decimal | None:
    """Rate such that ``amount * rate`` is in ``to_currency``; None if either side is unknown."""
    source = RATES.get(from_currency.upper())
    target = RATES.get(to_currency.upper())
    if source is None or target is None:
        return None
    return (source / target).quantize(Decimal("0.000001"))


def convert(amount: Decimal, from_currency: str, to_currency: str) -> tuple[Decimal, Decimal] | None:
    """Return ``(converted_amount, rate)`` or None when no rate is known."""
    rate = exchange_rate(from_currency, to_currency)
    if rate is None:
        return None
    return (amount * rate).quantize(Decimal("0.01")), rate
