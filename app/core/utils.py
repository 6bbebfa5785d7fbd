from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Dict

getcontext().prec = 28
CENTS = Decimal("0.01")

# Anything smaller than this is treated as settled
EPSILON = Decimal("0.01")
ZERO = Decimal("0")

DEFAULT_DECIMALS = 2

CURRENCY_DECIMALS: Dict[str, int] = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CAD": 2,
    "AUD": 2,
    "CHF": 2,
    "INR": 2,
    "CNY": 2,
    "NZD": 2,
    "SGD": 2,
    "HKD": 2,
    "MXN": 2,
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "ISK": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
    "JOD": 3,
}


def currency_decimals(currency: str) -> int:
    return CURRENCY_DECIMALS.get(currency.upper(), DEFAULT_DECIMALS)


def qround(d: Decimal, currency: str | None = None) -> Decimal:
    """Round to the minor unit of `currency` (cents when no currency is given)."""
    if currency is None:
        return d.quantize(CENTS, rounding=ROUND_HALF_UP)

    exp = Decimal(1).scaleb(-currency_decimals(currency))
    return d.quantize(exp, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # go through str so floats keep their printed value
    return Decimal(str(value))


def is_settled(amount: Decimal) -> bool:
    return abs(amount) < EPSILON


def fits_minor_unit(amount: Decimal, currency: str) -> bool:
    """True when `amount` needs no rounding in `currency` (100 JPY yes, 33.5 JPY no)."""
    return qround(amount, currency) == amount
