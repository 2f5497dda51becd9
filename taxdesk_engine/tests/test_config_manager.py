import json
from datetime import date

import pandas as pd
import pytest

from taxdesk.core.config import settings
from taxdesk.core.exceptions import ConfigurationError, RuleSetNotFound
from taxdesk.core.repositories import JsonFileRepository
from taxdesk.payroll.engine import PayrollInput
from taxdesk.tax.brackets import BracketTable
from taxdesk.tax.config_manager import RuleSet, TaxConfigManager


def _flat_rules(version, effective, rate="0.10"):
    return {
        "version": version,
        "effective_date": effective,
        "payroll": {"brackets": [[0, rate]]},
    }


def test_default_rule_set_registered():
    mgr = TaxConfigManager("cfg-test")
    active = mgr.get_active(date(2026, 6, 1))
    assert active.version == settings.RULES_VERSION
    with pytest.raises(RuleSetNotFound):
        mgr.get_active(date(2020, 1, 1))


def test_rule_set_selected_by_effective_date():
    mgr = TaxConfigManager("cfg-test")
    mgr.register(RuleSet.from_dict(_flat_rules("FLAT-2027", "2027-01-01")))
    assert mgr.get_active(date(2026, 12, 31)).version == settings.RULES_VERSION
    assert mgr.get_active(date(2027, 1, 1)).version == "FLAT-2027"

    p = PayrollInput("Ada", 50_000_000, "2026-12")
    old = mgr.compute_payroll(p)
    new = mgr.compute_payroll(PayrollInput("Ada", 50_000_000, "2027-01"))
    assert old.paye_kobo == 6_462_500
    assert new.rules_version == "FLAT-2027"
    # flat 10% of (600m - 52.5m) / 12
    assert new.paye_kobo == 4_562_500


def test_missing_payroll_keys_come_from_defaults():
    rs = RuleSet.from_dict(_flat_rules("X", "2027-01-01"))
    assert rs.payroll.version == "X"
    assert rs.payroll.salary_split.basic == settings.SALARY_SPLIT["basic"]
    with pytest.raises(ConfigurationError):
        RuleSet.from_dict({"version": "no-date"})
    with pytest.raises(ConfigurationError):
        RuleSet.from_dict({"version": "bad", "effective_date": "not-a-date"})


def test_load_json_and_export(tmp_path):
    f = tmp_path / "rules.json"
    f.write_text(json.dumps([_flat_rules("A", "2027-01-01"), _flat_rules("B", "2028-01-01", "0.2")]))
    mgr = TaxConfigManager("cfg-test")
    loaded = mgr.load_json(f)
    assert [r.version for r in loaded] == ["A", "B"]
    assert mgr.get_config_stats()["versions"] == [settings.RULES_VERSION, "A", "B"]

    out = tmp_path / "export" / "rules.json"
    mgr.export_json(out)
    again = TaxConfigManager("cfg-test-2", include_defaults=False)
    again.load_json(out)
    assert [r.version for r in again.rule_sets()] == [settings.RULES_VERSION, "A", "B"]
    assert again.get_version("B") == mgr.get_version("B")


def test_load_brackets_csv(tmp_path):
    table = BracketTable.from_pairs(settings.PAYE_BRACKETS)
    kobo = tmp_path / "kobo.csv"
    pd.DataFrame([{"min_kobo": lo, "rate": str(rate)} for lo, rate in table.to_pairs()]).to_csv(kobo, index=False)
    naira = tmp_path / "naira.csv"
    pd.DataFrame([{"min_naira": f"{lo // 100:,}", "rate": str(rate)} for lo, rate in table.to_pairs()]).to_csv(naira, index=False)
    mgr = TaxConfigManager("cfg-test")
    assert mgr.load_brackets_csv(kobo) == table
    assert mgr.load_brackets_csv(naira) == table

    bad = tmp_path / "bad.csv"
    pd.DataFrame([{"lower": 0, "rate": "0.1"}]).to_csv(bad, index=False)
    with pytest.raises(ConfigurationError):
        mgr.load_brackets_csv(bad)


def test_file_backed_manager(tmp_path):
    repo = JsonFileRepository("cfg-file", "tax_configs", tmp_path)
    TaxConfigManager("cfg-file", repository=repo).register(RuleSet.from_dict(_flat_rules("F", "2030-01-01")))
    reopened = TaxConfigManager("cfg-file", repository=JsonFileRepository("cfg-file", "tax_configs", tmp_path))
    assert reopened.get_active(date(2030, 2, 1)).version == "F"
    assert reopened.repository.get_count() == 2
