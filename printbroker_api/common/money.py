"""
Money helpers shared by the pricing services and serializers.

Amounts are carried as Decimal at full precision; rounding only happens
at the presentation boundary through the quantize helpers below.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings


ZERO = Decimal("0")
CENT = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")


def to_decimal(value, field: str = "value") -> Decimal:
    """
    Convert ints, floats, strings and Decimals to Decimal.
    Floats go through str() so 0.675 stays 0.675.
    Raises ValueError for booleans, None and anything non-numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"{field} must be a number, got {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"{field} must be a number, got {value!r}") from None
    else:
        raise ValueError(f"{field} must be a number, got {value!r}")

    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number, got {value!r}")
    return result


def quantize_money(amount: Decimal) -> Decimal:
    """Round a currency amount to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(rate: Decimal) -> Decimal:
    """Round a per-thousand rate to 4 places."""
    return rate.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """Format amount as a currency string, e.g. "$1,234.50"."""
    symbol = getattr(settings, "PRICING_CURRENCY_SYMBOL", "$")
    rounded = quantize_money(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"
