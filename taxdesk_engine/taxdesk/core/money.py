"""
Kobo money arithmetic.

All monetary values are plain ints counting kobo (1 NGN = 100 kobo). Rates are
Decimal fractions (Decimal("0.15") == 15%). Every computed amount is rounded
exactly once, half-up (half away from zero).
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Union

from .exceptions import InvalidAmount

KOBO_FACTOR = 100

Rate = Union[Decimal, int, float, str]

_STRIP = re.compile(r"[,\s₦]|NGN", re.IGNORECASE)


def round_half_up(value: Union[Decimal, int]) -> int:
    if isinstance(value, int):
        return value
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_rate(value: Rate) -> Decimal:
    """Coerce a rate to Decimal. Floats go through str() so 0.15 stays 0.15."""
    if isinstance(value, bool):
        raise InvalidAmount(value, "not a numeric rate")
    if isinstance(value, Decimal):
        rate = value
    else:
        try:
            rate = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmount(value, "not a numeric rate") from None
    if not rate.is_finite():
        raise InvalidAmount(value, "not a finite rate")
    if rate < 0:
        raise InvalidAmount(value, "a negative rate")
    return rate


def require_kobo(value: Any, field: str = "amount", allow_negative: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(value, "not an integer kobo amount", field)
    if value < 0 and not allow_negative:
        raise InvalidAmount(value, "negative", field)
    return value


def parse_kobo(value: Any, field: str = "amount", allow_negative: bool = False) -> int:
    """
    Parse a kobo amount from an int, a whole-valued float or Decimal, or text
    such as "5,000,000" or "50000000.0". Fractional kobo is rejected.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(value, "not a whole kobo amount", field)
    if isinstance(value, int):
        return require_kobo(value, field, allow_negative)
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise InvalidAmount(value, "not a whole kobo amount", field) from None
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise InvalidAmount(value, "not a whole kobo amount", field)
    return require_kobo(int(amount), field, allow_negative)


def parse_ngn_to_kobo(value: Any, allow_negative: bool = False) -> int:
    """
    Parse a naira amount ("1,000,000", "2500.505", 1500, Decimal("12.3")) to kobo.

    The value is multiplied by 100 and rounded to the nearest kobo. Raises
    InvalidAmount for non-numeric input or a negative amount when negatives are
    not allowed.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(value, "not numeric")
    if isinstance(value, (int, Decimal)):
        naira = Decimal(value)
    elif isinstance(value, (float, str)):
        cleaned = _STRIP.sub("", str(value))
        if not cleaned:
            raise InvalidAmount(value, "empty")
        try:
            naira = Decimal(cleaned)
        except InvalidOperation:
            raise InvalidAmount(value, "not numeric") from None
    else:
        raise InvalidAmount(value, "not numeric")
    if not naira.is_finite():
        raise InvalidAmount(value, "not finite")
    if naira < 0 and not allow_negative:
        raise InvalidAmount(value, "negative")
    return round_half_up(naira * KOBO_FACTOR)


def kobo_to_decimal(kobo: int) -> Decimal:
    return Decimal(kobo) / KOBO_FACTOR


def add_kobo(a: int, b: int) -> int:
    return a + b


def sub_kobo(a: int, b: int) -> int:
    return a - b


def min_kobo(a: int, b: int) -> int:
    return a if a < b else b


def max_kobo(a: int, b: int) -> int:
    return a if a > b else b


def mul_kobo_by_rate(kobo: int, rate: Rate) -> int:
    """kobo x rate, exact product rounded once half-up."""
    return round_half_up(Decimal(kobo) * to_rate(rate))


def div_kobo(kobo: int, divisor: Union[int, Decimal]) -> int:
    """kobo / divisor rounded once half-up. Division by zero yields 0."""
    if divisor == 0:
        return 0
    return round_half_up(Decimal(kobo) / Decimal(divisor))


def effective_rate(tax_kobo: int, income_kobo: int) -> Decimal:
    """Tax as a percentage of income, two decimal places."""
    if income_kobo == 0:
        return Decimal("0.00")
    pct = Decimal(tax_kobo) * 100 / Decimal(income_kobo)
    return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
