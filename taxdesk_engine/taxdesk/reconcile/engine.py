from dataclasses import dataclass, field, asdict, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..core.utils import setup_logging
from .issuer_normalizer import IssuerNormalizer
from .rules import DEFAULT_MATCH_RULES, MatchRules
from .scorer import MatchResult, TransactionForMatch, WHTCertificate, calculate_match_score


def match_certificate_to_transactions(cert: WHTCertificate, transactions: Sequence[TransactionForMatch],
                                      min_score: Union[Decimal, float, None] = None,
                                      rules: MatchRules = DEFAULT_MATCH_RULES) -> List[MatchResult]:
    """
    Score every candidate, drop those strictly below `min_score` and return
    the rest best first. The sort is stable: equal scores keep input order.
    """
    threshold = float(rules.min_score if min_score is None else min_score)
    results = [calculate_match_score(cert, txn, rules) for txn in transactions]
    kept = [r for r in results if r.score >= threshold]
    return sorted(kept, key=lambda r: r.score, reverse=True)


def get_best_match(cert: WHTCertificate, transactions: Sequence[TransactionForMatch],
                   rules: MatchRules = DEFAULT_MATCH_RULES) -> Optional[MatchResult]:
    """Highest-scoring candidate at or above the best-match threshold, else None."""
    ranked = match_certificate_to_transactions(cert, transactions, rules.best_match_threshold, rules)
    return ranked[0] if ranked else None


def match_confidence_label(score: float) -> Tuple[str, str]:
    """(label, colour) for display."""
    if score >= 0.8:
        return "High Confidence", "green"
    if score >= 0.6:
        return "Medium Confidence", "yellow"
    if score >= 0.4:
        return "Low Confidence", "orange"
    return "No Match", "red"


@dataclass(frozen=True)
class CertificateMatch:
    certificate: WHTCertificate
    match: MatchResult

    @property
    def confidence(self) -> str:
        return match_confidence_label(self.match.score)[0]


@dataclass
class ReconciliationReport:
    tenant_id: str
    matches: List[CertificateMatch] = field(default_factory=list)
    unmatched_certificates: List[WHTCertificate] = field(default_factory=list)
    unused_transactions: List[TransactionForMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReconciliationEngine:
    """
    Pair WHT certificates with transactions.

    Certificates are taken in input order; each is paired with its best
    transaction not already claimed by an earlier certificate.
    """

    def __init__(self, tenant_id: str, rules: MatchRules = DEFAULT_MATCH_RULES,
                 normalizer: Optional[IssuerNormalizer] = None):
        self.tenant_id = tenant_id
        self.rules = rules
        self.normalizer = normalizer
        self.log = setup_logging(tenant_id)

    def _normalized_certificate(self, cert: WHTCertificate) -> WHTCertificate:
        if not self.normalizer:
            return cert
        return replace(cert, issuer_name=self.normalizer.canonical(cert.issuer_name))

    def _normalized_transaction(self, txn: TransactionForMatch) -> TransactionForMatch:
        if not self.normalizer or not txn.contact_name:
            return txn
        return replace(txn, contact_name=self.normalizer.canonical(txn.contact_name))

    def reconcile(self, certificates: Sequence[WHTCertificate],
                  transactions: Sequence[TransactionForMatch]) -> ReconciliationReport:
        report = ReconciliationReport(tenant_id=self.tenant_id)
        candidates = [self._normalized_transaction(t) for t in transactions]
        ledger_used = set()

        for cert in certificates:
            open_idx = [i for i in range(len(candidates)) if i not in ledger_used]
            best = get_best_match(self._normalized_certificate(cert), [candidates[i] for i in open_idx], self.rules)
            if best is None:
                report.unmatched_certificates.append(cert)
                self.log.debug("no match certificate=%s", cert.id)
                continue
            idx = next(i for i in open_idx if candidates[i] is best.transaction)
            ledger_used.add(idx)
            report.matches.append(CertificateMatch(cert, replace(best, transaction=transactions[idx])))
            self.log.debug("matched certificate=%s transaction=%s score=%.2f reasons=%s",
                           cert.id, transactions[idx].id, best.score, ", ".join(best.reasons))

        report.unused_transactions = [t for i, t in enumerate(transactions) if i not in ledger_used]
        self.log.info("reconcile tenant=%s certificates=%d matched=%d unmatched=%d",
                      self.tenant_id, len(certificates), len(report.matches), len(report.unmatched_certificates))
        return report
