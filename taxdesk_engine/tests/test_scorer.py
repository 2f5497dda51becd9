from datetime import date, datetime
from decimal import Decimal

from taxdesk.reconcile.scorer import (
    WHTCertificate, TransactionForMatch, calculate_match_score, levenshtein_distance, name_similarity,
)


def _cert(**kw):
    base = dict(id="C1", issuer_name="Dangote Cement Plc", issuer_tin="12345678-0001",
                amount_kobo=5_000_000, wht_rate=Decimal("0.05"), issue_date=date(2025, 3, 10), tax_year=2025)
    base.update(kw)
    return WHTCertificate(**base)


def _txn(**kw):
    base = dict(id="T1", description="Payment from Dangote Cement Plc", amount_kobo=100_000_000,
                date=date(2025, 3, 10), contact_name="Dangote Cement Plc", contact_tin="12345678-0001")
    base.update(kw)
    return TransactionForMatch(**base)


def test_levenshtein():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "abc") == 0
    assert levenshtein_distance("flaw", "lawn") == 2


def test_name_similarity():
    assert name_similarity("MTN Nigeria", "  mtn nigeria ") == 1.0
    assert name_similarity("MTN", "Payment to MTN Nigeria") == 0.9
    assert name_similarity("abcd", "abce") == 0.75
    assert name_similarity("", "x") == 0.0
    assert name_similarity(None, "x") == 0.0


def test_full_match_scores_high():
    r = calculate_match_score(_cert(), _txn())
    assert r.score >= 0.95
    assert r.reasons == ("TIN match", "Exact amount match", "Date within 7 days", "Name match")


def test_unrelated_pair_scores_zero():
    r = calculate_match_score(
        _cert(),
        _txn(contact_tin="99999999-0001", amount_kobo=50_000_000, date=date(2026, 3, 10),
             contact_name="Zenith Bank", description="POS purchase"),
    )
    assert r.score == 0.0
    assert r.reasons == ()


def test_amount_tiers_use_gross_up():
    # 5,000,000 / 0.05 = 100,000,000 gross; txn 104,000,000 is within 5%
    r = calculate_match_score(_cert(issuer_tin=None), _txn(amount_kobo=104_000_000))
    assert "Amount within 5%" in r.reasons
    r = calculate_match_score(_cert(issuer_tin=None), _txn(amount_kobo=108_000_000))
    assert "Amount within 10%" in r.reasons


def test_zero_rate_compares_raw_amounts():
    r = calculate_match_score(_cert(wht_rate=None), _txn(amount_kobo=5_000_000))
    assert "Exact amount match" in r.reasons
    r = calculate_match_score(_cert(wht_rate=Decimal("0")), _txn(amount_kobo=5_000_000))
    assert "Exact amount match" in r.reasons


def test_date_tiers_and_missing_date():
    assert "Date within 30 days" in calculate_match_score(_cert(), _txn(date=date(2025, 3, 30))).reasons
    assert "Date within 90 days" in calculate_match_score(_cert(), _txn(date=date(2025, 5, 1))).reasons
    r = calculate_match_score(_cert(issue_date=None), _txn())
    assert not any(reason.startswith("Date") for reason in r.reasons)


def test_partial_name_and_missing_tin():
    r = calculate_match_score(
        _cert(issuer_tin=None, issuer_name="Dangote Cement"),
        _txn(contact_tin=None, contact_name="Dangote Cemnt Ltd", description="x"),
    )
    assert "Partial name match" in r.reasons
    assert "TIN match" not in r.reasons


def test_scoring_is_pure():
    cert, a, b = _cert(), _txn(id="A"), _txn(id="B", amount_kobo=95_000_000)
    first = [calculate_match_score(cert, t).score for t in (a, b)]
    second = [calculate_match_score(cert, t).score for t in (b, a)]
    assert first == list(reversed(second))


def test_amount_tier_bounds_are_exclusive():
    # txn 100,000,000 against gross-ups of exactly 1%, 5% and 10% less
    reasons = calculate_match_score(_cert(amount_kobo=4_950_000), _txn()).reasons
    assert "Amount within 5%" in reasons
    reasons = calculate_match_score(_cert(amount_kobo=4_750_000), _txn()).reasons
    assert "Amount within 10%" in reasons
    reasons = calculate_match_score(_cert(amount_kobo=4_500_000), _txn()).reasons
    assert not any(reason.startswith(("Exact amount", "Amount")) for reason in reasons)


def test_date_tier_bounds_are_exclusive():
    assert "Date within 7 days" in calculate_match_score(_cert(), _txn(date=date(2025, 3, 16))).reasons
    assert "Date within 30 days" in calculate_match_score(_cert(), _txn(date=date(2025, 3, 17))).reasons
    assert "Date within 90 days" in calculate_match_score(_cert(), _txn(date=date(2025, 4, 9))).reasons
    reasons = calculate_match_score(_cert(), _txn(date=date(2025, 6, 8))).reasons
    assert not any(reason.startswith("Date") for reason in reasons)


def test_datetime_transactions_count_calendar_days():
    r = calculate_match_score(_cert(issue_date=date(2025, 1, 1)), _txn(date=datetime(2025, 1, 2, 10)))
    assert "Date within 7 days" in r.reasons
    r = calculate_match_score(_cert(issue_date=datetime(2025, 3, 10, 23, 59)), _txn(date=datetime(2025, 3, 17, 0, 1)))
    assert "Date within 30 days" in r.reasons
