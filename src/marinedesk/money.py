from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Protocol

ZERO = Decimal("0")


class PricedLine(Protocol):
    price: Decimal
    quantity: int


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a valid amount: {value!r}") from e


def line_total(price: Decimal, quantity: int) -> Decimal:
    return to_decimal(price) * int(quantity)


def lines_total(lines: Iterable[PricedLine]) -> Decimal:
    return sum((line_total(ln.price, ln.quantity) for ln in lines), ZERO)


def format_lyd(amount) -> str:
    """Whole dinars, half-up, e.g. ``-15,000 LYD``. Display only."""
    rounded = to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(rounded):,} LYD"


def format_usd(amount) -> str:
    """Dollar amount with up to two fraction digits, e.g. ``$6,000`` or ``$12.5``."""
    value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, cents = f"{abs(value):,.2f}".partition(".")
    cents = cents.rstrip("0")
    return f"{sign}${whole}.{cents}" if cents else f"{sign}${whole}"
