"""
Certificate-to-transaction match scoring.

A score is the sum of four independent signals (tax identifier, amount, date,
name). Every contributing signal adds one reason string, so each score can be
explained line by line. Scoring is pure: the same pair always yields the same
result.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..core.money import to_rate
from .rules import DEFAULT_MATCH_RULES, MatchRules


@dataclass(frozen=True)
class WHTCertificate:
    id: str
    issuer_name: str
    amount_kobo: int
    issue_date: Optional[date]
    tax_year: int
    issuer_tin: Optional[str] = None
    wht_rate: Optional[Decimal] = None
    certificate_number: Optional[str] = None


@dataclass(frozen=True)
class TransactionForMatch:
    id: str
    description: str
    amount_kobo: int
    date: Optional[date]
    contact_name: Optional[str] = None
    contact_tin: Optional[str] = None


@dataclass(frozen=True)
class MatchResult:
    transaction: TransactionForMatch
    score: float
    reasons: Tuple[str, ...]


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance (insert, delete, substitute) keeping one row of the table."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity in [0, 1] after case-folding and trimming: 1.0 when equal,
    0.9 when one contains the other, otherwise 1 - distance / longer length.
    Missing or blank names score 0.
    """
    s1 = (a or "").strip().casefold()
    s2 = (b or "").strip().casefold()
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.9
    return 1.0 - levenshtein_distance(s1, s2) / max(len(s1), len(s2))


def _days_apart(a: Optional[date], b: Optional[date]) -> float:
    if a is None or b is None:
        return float("inf")
    # timestamps count by calendar day
    if isinstance(a, datetime):
        a = a.date()
    if isinstance(b, datetime):
        b = b.date()
    return float(abs((a - b).days))


def _gross_amount(cert: WHTCertificate) -> Decimal:
    # certificates carry the withheld amount; gross it up when the rate is known
    amount = Decimal(cert.amount_kobo)
    if cert.wht_rate:
        rate = to_rate(cert.wht_rate)
        if rate > 0:
            return amount / rate
    return amount


def calculate_match_score(cert: WHTCertificate, txn: TransactionForMatch,
                          rules: MatchRules = DEFAULT_MATCH_RULES) -> MatchResult:
    score = Decimal(0)
    reasons = []

    if cert.issuer_tin and txn.contact_tin and cert.issuer_tin == txn.contact_tin:
        score += rules.tin_weight
        reasons.append(rules.tin_reason)

    if cert.amount_kobo > 0 and txn.amount_kobo > 0:
        txn_amount = Decimal(txn.amount_kobo)
        diff = abs(_gross_amount(cert) - txn_amount) / txn_amount
        for tier in rules.amount_tiers:
            if diff < tier.bound:
                score += tier.weight
                reasons.append(tier.reason)
                break

    days = _days_apart(cert.issue_date, txn.date)
    for tier in rules.date_tiers:
        if days < float(tier.bound):
            score += tier.weight
            reasons.append(tier.reason)
            break

    similarity = max(
        name_similarity(cert.issuer_name, txn.contact_name),
        name_similarity(cert.issuer_name, txn.description),
    )
    for tier in rules.name_tiers:
        if similarity > float(tier.bound):
            score += tier.weight
            reasons.append(tier.reason)
            break

    return MatchResult(transaction=txn, score=float(score), reasons=tuple(reasons))
