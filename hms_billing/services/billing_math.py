# hms_billing/services/billing_math.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from hms_billing.core.config import settings
from hms_billing.core.errors import InvalidAmount

Q2 = Decimal("0.01")
_MINOR = Decimal("100")


def D(x: Any) -> Decimal:
    """Strict Decimal conversion; floats go through str() to avoid binary noise."""
    if x is None or isinstance(x, bool):
        raise InvalidAmount(x, "amount is required")
    if isinstance(x, Decimal):
        v = x
    else:
        s = str(x).strip()
        if not s:
            raise InvalidAmount(x, "amount is required")
        try:
            v = Decimal(s)
        except (InvalidOperation, ValueError):
            raise InvalidAmount(x, "amount is not a number")
    if not v.is_finite():
        raise InvalidAmount(x, "amount is not finite")
    return v


def to_minor(x: Any, *, allow_negative: bool = False) -> int:
    v = D(x)
    if v < 0 and not allow_negative:
        raise InvalidAmount(x, "amount must not be negative")
    try:
        return int((v * _MINOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # more digits than the decimal context can hold as cents
        raise InvalidAmount(x, "amount is out of range")


def from_minor(n: int) -> Decimal:
    try:
        return (Decimal(int(n)) / _MINOR).quantize(Q2)
    except InvalidOperation:
        raise InvalidAmount(n, "amount is out of range")


def money2(x: Any, *, allow_negative: bool = False) -> Decimal:
    return from_minor(to_minor(x, allow_negative=allow_negative))


def add(a: Any, b: Any) -> Decimal:
    return from_minor(
        to_minor(a, allow_negative=True) + to_minor(b, allow_negative=True))


def subtract(a: Any, b: Any) -> Decimal:
    return from_minor(
        to_minor(a, allow_negative=True) - to_minor(b, allow_negative=True))


def total(values: Iterable[Any]) -> Decimal:
    return from_minor(sum(to_minor(v, allow_negative=True) for v in values))


def fmt_money(amount: Any, symbol: Optional[str] = None) -> str:
    """`-1234.5` -> `-$1,234.50`; negatives are shown, never clamped."""
    if symbol is None:
        symbol = settings.CURRENCY_SYMBOL
    n = money2(amount, allow_negative=True)
    sign = "-" if n < 0 else ""
    return f"{sign}{symbol}{abs(n):,.2f}"
