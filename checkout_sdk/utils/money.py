"""Currency arithmetic and display helpers"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from checkout_sdk.config import settings

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without inheriting binary float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def minor_unit(digits: int | None = None) -> Decimal:
    """Smallest currency unit, e.g. Decimal("0.01") for two minor digits"""
    digits = settings.minor_unit_digits if digits is None else digits
    return Decimal(1).scaleb(-digits)


def quantize(value: Number, digits: int | None = None) -> Decimal:
    """Round half-up to the currency's minor unit"""
    return to_decimal(value).quantize(minor_unit(digits), rounding=ROUND_HALF_UP)


def format_amount(value: Number, symbol: str | None = None) -> str:
    """
    Format a whole-unit amount with Indian digit grouping.

    Example:
        1234.56 -> "₹1,235"
        100000  -> "₹1,00,000"
    """
    symbol = settings.currency_symbol if symbol is None else symbol
    whole = int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    sign = "-" if whole < 0 else ""
    digits = str(abs(whole))

    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])

    return f"{sign}{symbol}{digits}"


def format_rate(rate: Number) -> str:
    """Format an annual rate with two decimals, e.g. 12.5 -> "12.50%" """
    return f"{quantize(rate, 2)}%"
