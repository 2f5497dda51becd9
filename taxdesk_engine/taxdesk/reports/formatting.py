"""Display formatting for kobo amounts and rates. Used at the boundary only."""
from decimal import Decimal
from typing import Union

from ..core.money import KOBO_FACTOR, require_kobo


def format_kobo_plain(kobo: Union[int, str]) -> str:
    """
    Naira with thousands separators and no symbol: 100000000 -> "1,000,000",
    12345 -> "123.45". Kobo digits are shown only when non-zero.
    """
    if isinstance(kobo, str):
        kobo = int(kobo)
    kobo = require_kobo(kobo, "kobo", allow_negative=True)
    sign = "-" if kobo < 0 else ""
    whole, remainder = divmod(abs(kobo), KOBO_FACTOR)
    if remainder:
        return f"{sign}{whole:,}.{remainder:02d}"
    return f"{sign}{whole:,}"


def format_kobo_to_ngn(kobo: Union[int, str]) -> str:
    """Same as format_kobo_plain with the naira sign: "₦1,000,000", "-₦50.25"."""
    text = format_kobo_plain(kobo)
    if text.startswith("-"):
        return f"-₦{text[1:]}"
    return f"₦{text}"


def percent_label(rate: Decimal) -> str:
    # 0.025 -> "2.5%", 0.10 -> "10%"
    text = format((Decimal(rate) * 100).normalize(), "f")
    return f"{text}%"
