"""
WHT credit ledger.

Every accepted WHT certificate becomes a credit that can be set off against
later filings. Credits lapse on 31 December of the sixth year after the year
of assessment.
"""
import uuid
from dataclasses import dataclass, asdict, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Any, Optional

from ..core.exceptions import CreditError
from ..core.money import require_kobo
from ..core.repositories import BaseRepository
from ..core.utils import setup_logging
from ..reconcile.scorer import WHTCertificate

CREDIT_LIFETIME_YEARS = 6
EXPIRY_WARNING_DAYS = 90

AVAILABLE = "available"
PARTIALLY_APPLIED = "partially_applied"
FULLY_APPLIED = "fully_applied"
EXPIRED = "expired"
OPEN_STATUSES = (AVAILABLE, PARTIALLY_APPLIED)


def credit_expiry(tax_year: int) -> date:
    return date(tax_year + CREDIT_LIFETIME_YEARS, 12, 31)


@dataclass
class WHTCredit:
    id: str
    tenant_id: str
    certificate_id: str
    tax_year: int
    credit_amount_kobo: int
    applied_amount_kobo: int
    remaining_amount_kobo: int
    expires_at: date
    status: str = AVAILABLE
    created_at: str = ""

    def is_expired(self, as_of: date) -> bool:
        return self.status == EXPIRED or self.expires_at < as_of

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["expires_at"] = self.expires_at.isoformat()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WHTCredit":
        fields = {k: d[k] for k in cls.__dataclass_fields__ if k in d}
        if isinstance(fields.get("expires_at"), str):
            fields["expires_at"] = date.fromisoformat(fields["expires_at"])
        return cls(**fields)


@dataclass
class YearCredit:
    available: int = 0
    applied: int = 0
    expiring_soon: int = 0


@dataclass
class CreditSummary:
    total_available_kobo: int = 0
    total_applied_kobo: int = 0
    total_expired_kobo: int = 0
    by_year: Dict[int, YearCredit] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class WHTCreditLedger:
    def __init__(self, repository: BaseRepository, tenant_id: str):
        self.repository = repository
        self.tenant_id = tenant_id
        self.log = setup_logging(tenant_id)

    def _credits(self) -> List[WHTCredit]:
        return [WHTCredit.from_dict(r) for r in self.repository.load_data()
                if r.get("tenant_id") == self.tenant_id]

    def _save(self, credit: WHTCredit):
        self.repository.bulk_upsert([credit.to_dict()], key_field="id")

    def get_credit(self, credit_id: str) -> WHTCredit:
        record = self.repository.find_by_key("id", credit_id)
        if not record or record.get("tenant_id") != self.tenant_id:
            raise CreditError(f"Credit not found: {credit_id}")
        return WHTCredit.from_dict(record)

    def create_credit_from_certificate(self, cert: WHTCertificate) -> WHTCredit:
        amount = require_kobo(cert.amount_kobo, "amount_kobo")
        if amount == 0:
            raise CreditError(f"Certificate {cert.id} carries no withheld amount")
        if not cert.tax_year:
            raise CreditError(f"Certificate {cert.id} has no tax year")
        credit = WHTCredit(
            id=str(uuid.uuid4()),
            tenant_id=self.tenant_id,
            certificate_id=cert.id,
            tax_year=cert.tax_year,
            credit_amount_kobo=amount,
            applied_amount_kobo=0,
            remaining_amount_kobo=amount,
            expires_at=credit_expiry(cert.tax_year),
            created_at=datetime.now().isoformat(),
        )
        self._save(credit)
        self.log.info("wht credit created id=%s certificate=%s year=%d amount=%d",
                      credit.id, cert.id, cert.tax_year, amount)
        return credit

    def available_credits(self, tax_year: Optional[int] = None) -> List[WHTCredit]:
        """Open credits, oldest tax year first."""
        credits = [c for c in self._credits() if c.status in OPEN_STATUSES]
        if tax_year is not None:
            credits = [c for c in credits if c.tax_year == tax_year]
        return sorted(credits, key=lambda c: c.tax_year)

    def total_available_credit(self) -> int:
        return sum(c.remaining_amount_kobo for c in self.available_credits())

    def apply_credit(self, credit_id: str, amount_kobo: int, as_of: Optional[date] = None) -> WHTCredit:
        """Set `amount_kobo` of a credit off against a filing."""
        amount = require_kobo(amount_kobo, "amount_kobo")
        if amount == 0:
            raise CreditError("Amount to apply must be positive")
        credit = self.get_credit(credit_id)
        if credit.is_expired(as_of or date.today()):
            raise CreditError(f"Credit {credit_id} expired on {credit.expires_at.isoformat()}")
        if amount > credit.remaining_amount_kobo:
            raise CreditError(
                f"Cannot apply {amount} kobo; only {credit.remaining_amount_kobo} kobo available"
            )
        credit.applied_amount_kobo += amount
        credit.remaining_amount_kobo = credit.credit_amount_kobo - credit.applied_amount_kobo
        credit.status = FULLY_APPLIED if credit.remaining_amount_kobo == 0 else PARTIALLY_APPLIED
        self._save(credit)
        self.log.info("wht credit applied id=%s amount=%d remaining=%d",
                      credit_id, amount, credit.remaining_amount_kobo)
        return credit

    def expire_credits(self, as_of: Optional[date] = None) -> List[WHTCredit]:
        """Mark open credits past their expiry date as expired."""
        as_of = as_of or date.today()
        expired = []
        for c in self._credits():
            if c.status in OPEN_STATUSES and c.expires_at < as_of:
                c.status = EXPIRED
                self._save(c)
                expired.append(c)
        if expired:
            self.log.info("wht credits expired count=%d as_of=%s", len(expired), as_of.isoformat())
        return expired

    def credit_summary(self, as_of: Optional[date] = None) -> CreditSummary:
        as_of = as_of or date.today()
        warn_before = as_of + timedelta(days=EXPIRY_WARNING_DAYS)
        summary = CreditSummary()
        for c in self._credits():
            year = summary.by_year.setdefault(c.tax_year, YearCredit())
            if c.is_expired(as_of):
                summary.total_expired_kobo += c.remaining_amount_kobo
            else:
                summary.total_available_kobo += c.remaining_amount_kobo
                year.available += c.remaining_amount_kobo
                if c.expires_at < warn_before:
                    year.expiring_soon += c.remaining_amount_kobo
            summary.total_applied_kobo += c.applied_amount_kobo
            year.applied += c.applied_amount_kobo
        return summary
