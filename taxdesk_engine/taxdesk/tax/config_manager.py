"""
Tax configuration management with versioning.

Rule sets are registered with the date from which they apply; a payroll for a
given date is computed with the latest rule set effective on that date, so a
historical period keeps reproducing its original figures after the law
changes.
"""
import json
import pandas as pd
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ConfigurationError, InvalidInput, RuleSetNotFound
from ..core.money import parse_ngn_to_kobo, to_rate
from ..core.repositories import BaseRepository, InMemoryRepository
from ..core.utils import atomic_write_json, setup_logging
from ..payroll.engine import PayrollInput, PayrollResult, compute_payroll
from .brackets import BracketTable
from .rules import PayrollRules


class RuleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    effective_date: date
    payroll: PayrollRules
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: PayrollRules = None) -> "RuleSet":
        """
        Build a rule set from a mapping. Keys missing from `payroll` are taken
        from `base` (the settings defaults when not given), so a file only
        needs to state what changed.
        """
        if "version" not in data or "effective_date" not in data:
            raise ConfigurationError("Rule set needs 'version' and 'effective_date'")
        base = base or PayrollRules.from_settings()
        payroll = base.model_dump(mode="json")
        payroll.update(data.get("payroll") or {})
        payroll["version"] = data["version"]
        try:
            return cls(
                version=data["version"],
                effective_date=data["effective_date"],
                description=data.get("description", ""),
                payroll=PayrollRules.from_dict(payroll),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid rule set {data['version']}: {e}", errors=e.errors()) from e

    @classmethod
    def from_settings(cls, s: Settings = None) -> "RuleSet":
        s = s or default_settings
        return cls(
            version=s.RULES_VERSION,
            effective_date=s.RULES_EFFECTIVE_DATE,
            payroll=PayrollRules.from_settings(s),
            description="Statutory defaults",
        )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class TaxConfigManager:
    """Versioned payroll rule sets for one tenant."""

    def __init__(self, tenant_id: str, repository: Optional[BaseRepository] = None,
                 include_defaults: bool = True):
        self.tenant_id = tenant_id
        self.repository = repository or InMemoryRepository(tenant_id, "tax_configs")
        self.log = setup_logging(tenant_id)
        if include_defaults and not self.repository.find_by_key("version", default_settings.RULES_VERSION):
            self.register(RuleSet.from_settings())

    def register(self, rule_set: RuleSet) -> Dict[str, int]:
        """Add a rule set, replacing any earlier registration of the same version."""
        result = self.repository.bulk_upsert([rule_set.to_record()], key_field="version")
        self.log.info("rule set registered version=%s effective=%s",
                      rule_set.version, rule_set.effective_date.isoformat())
        return result

    def rule_sets(self) -> List[RuleSet]:
        """All registered rule sets, oldest effective date first."""
        sets = []
        for record in self.repository.load_data():
            fields = {k: record[k] for k in ("version", "effective_date", "payroll", "description") if k in record}
            try:
                sets.append(RuleSet.model_validate(fields))
            except ValidationError as e:
                raise ConfigurationError(f"Stored rule set {record.get('version')} is invalid: {e}",
                                         errors=e.errors()) from e
        return sorted(sets, key=lambda r: r.effective_date)

    def get_version(self, version: str) -> RuleSet:
        for rs in self.rule_sets():
            if rs.version == version:
                return rs
        raise RuleSetNotFound(version)

    def get_active(self, on_date: Optional[date] = None) -> RuleSet:
        """Latest rule set whose effective date is on or before `on_date` (today by default)."""
        on_date = on_date or date.today()
        if isinstance(on_date, datetime):
            on_date = on_date.date()
        effective = [rs for rs in self.rule_sets() if rs.effective_date <= on_date]
        if not effective:
            raise RuleSetNotFound(on_date.isoformat())
        return effective[-1]

    def compute_payroll(self, payroll_input: PayrollInput, on_date: Optional[date] = None) -> PayrollResult:
        """
        Payroll with the rule set in force on `on_date`; defaults to the first
        day of the input's period.
        """
        if on_date is None:
            on_date = _period_start(payroll_input.period)
        return compute_payroll(payroll_input, self.get_active(on_date).payroll)

    def load_json(self, file_path: Union[str, Path]) -> List[RuleSet]:
        """
        Register rule sets from a JSON file holding one rule-set object or a
        list of them.
        """
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        records = data if isinstance(data, list) else [data]
        loaded = [RuleSet.from_dict(r) for r in records]
        for rs in loaded:
            self.register(rs)
        return loaded

    def load_brackets_csv(self, file_path: Union[str, Path]) -> BracketTable:
        """
        Read a bracket table from CSV with a `rate` column (fraction) and either
        `min_kobo` or `min_naira` lower edges.
        """
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        df.columns = [c.strip().lower() for c in df.columns]
        if 'rate' not in df.columns:
            raise ConfigurationError("Bracket CSV needs a 'rate' column")
        if 'min_kobo' in df.columns:
            mins = [_whole(v) for v in df['min_kobo']]
        elif 'min_naira' in df.columns:
            mins = [parse_ngn_to_kobo(v) for v in df['min_naira']]
        else:
            raise ConfigurationError("Bracket CSV needs a 'min_kobo' or 'min_naira' column")
        return BracketTable.from_pairs(list(zip(mins, [to_rate(r) for r in df['rate']])))

    def export_json(self, file_path: Union[str, Path]):
        atomic_write_json(str(file_path), [rs.to_record() for rs in self.rule_sets()])

    def get_config_stats(self) -> Dict[str, Any]:
        sets = self.rule_sets()
        today = date.today()
        active = [rs for rs in sets if rs.effective_date <= today]
        return {
            'total_rule_sets': len(sets),
            'versions': [rs.version for rs in sets],
            'active_version': active[-1].version if active else None,
        }


def _period_start(period: str) -> date:
    try:
        return datetime.strptime(str(period), "%Y-%m").date()
    except ValueError:
        raise InvalidInput("period", f"expected YYYY-MM, got {period!r}") from None


def _whole(val: str) -> int:
    try:
        return int(str(val).replace(',', '').strip())
    except ValueError:
        raise ConfigurationError(f"Bracket lower edge {val!r} is not whole kobo") from None
