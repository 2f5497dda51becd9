from decimal import Decimal

import pytest

from taxdesk.core.exceptions import InvalidAmount
from taxdesk.core.money import (
    round_half_up, to_rate, require_kobo, parse_kobo, parse_ngn_to_kobo, mul_kobo_by_rate,
    div_kobo, effective_rate, min_kobo, max_kobo, kobo_to_decimal,
)


def test_round_half_up_away_from_zero():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.4999")) == 2
    assert round_half_up(Decimal("-2.5")) == -3
    assert round_half_up(7) == 7


def test_parse_ngn_to_kobo():
    assert parse_ngn_to_kobo("1,000,000") == 100_000_000
    assert parse_ngn_to_kobo("₦2,500.50") == 250_050
    assert parse_ngn_to_kobo("NGN 12.345") == 1_235
    assert parse_ngn_to_kobo(1500) == 150_000
    assert parse_ngn_to_kobo(Decimal("0.01")) == 1
    assert parse_ngn_to_kobo("-5", allow_negative=True) == -500


@pytest.mark.parametrize("bad", [None, True, "", "abc", "nan", "-1", object()])
def test_parse_ngn_to_kobo_rejects(bad):
    with pytest.raises(InvalidAmount):
        parse_ngn_to_kobo(bad)


def test_to_rate_keeps_float_text():
    assert to_rate(0.15) == Decimal("0.15")
    assert to_rate("0.025") == Decimal("0.025")
    with pytest.raises(InvalidAmount):
        to_rate(-0.1)
    with pytest.raises(InvalidAmount):
        to_rate(False)


def test_require_kobo():
    assert require_kobo(0) == 0
    assert require_kobo(-3, allow_negative=True) == -3
    with pytest.raises(InvalidAmount):
        require_kobo(1.5)
    with pytest.raises(InvalidAmount):
        require_kobo(-1)
    with pytest.raises(InvalidAmount):
        require_kobo(True)


def test_parse_kobo_accepts_whole_floats():
    assert parse_kobo(50_000_000) == 50_000_000
    assert parse_kobo(50_000_000.0) == 50_000_000
    assert parse_kobo("50000000.0") == 50_000_000
    assert parse_kobo("5,000,000") == 5_000_000
    assert parse_kobo(Decimal("12.00")) == 12
    for bad in (12.5, "1.5", "abc", None, True, float("nan"), -1):
        with pytest.raises(InvalidAmount):
            parse_kobo(bad)


def test_rate_and_division_round_once():
    assert mul_kobo_by_rate(5, Decimal("0.5")) == 3
    assert mul_kobo_by_rate(1_000_000, "0.025") == 25_000
    assert mul_kobo_by_rate(333, 0.15) == 50  # 49.95
    assert div_kobo(77_550_000, 12) == 6_462_500
    assert div_kobo(7, 2) == 4
    assert div_kobo(100, 0) == 0


def test_helpers():
    assert min_kobo(3, 9) == 3
    assert max_kobo(3, 9) == 9
    assert kobo_to_decimal(12345) == Decimal("123.45")
    assert effective_rate(3_000_000, 100_000_000) == Decimal("3.00")
    assert effective_rate(1, 0) == Decimal("0.00")
