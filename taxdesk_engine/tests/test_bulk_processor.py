import json

import pandas as pd
import pytest

from taxdesk.payroll.bulk_processor import PayrollBulkProcessor
from taxdesk.payroll.engine import PayrollInput


def _sheet(tmp_path):
    df = pd.DataFrame([
        {"employee_id": "E1", "employee_name": "Ada Obi", "monthly_gross": "500,000", "annual_rent_paid": ""},
        {"employee_id": "E2", "employee_name": "Musa Bello", "monthly_gross": "", "monthly_gross_kobo": "10000000",
         "annual_rent_paid": "1,200,000"},
        {"employee_id": "E3", "employee_name": "Bad Row", "monthly_gross": "abc", "annual_rent_paid": ""},
    ])
    f = tmp_path / "staff.csv"
    df.to_csv(f, index=False)
    return f


def test_inputs_from_frame(tmp_path):
    bp = PayrollBulkProcessor("bulk-test")
    inputs, errors = bp.inputs_from_frame(bp.load_file(_sheet(tmp_path)), "2026-01")
    assert [p.monthly_gross_kobo for p in inputs] == [50_000_000, 10_000_000]
    assert inputs[1].annual_rent_paid_kobo == 120_000_000
    assert inputs[0].annual_rent_paid_kobo is None
    assert inputs[0].period == "2026-01"
    assert errors[0]["row"] == 2
    assert errors[0]["code"] == "INVALID_AMOUNT"


def test_process_file_collects_row_errors(tmp_path):
    batch = PayrollBulkProcessor("bulk-test").process_file(_sheet(tmp_path), "2026-01")
    assert len(batch.results) == 2
    assert len(batch.row_errors) == 1
    assert not batch.success


def test_process_validation_errors_do_not_abort():
    inputs = [
        PayrollInput("Ada", 50_000_000, "2026-01", employee_id="E1"),
        PayrollInput("Bad", 1_000, "2026-99", employee_id="E2"),
    ]
    batch = PayrollBulkProcessor("bulk-test").process(inputs, "2026-01")
    assert [r.employee_id for r in batch.results] == ["E1"]
    assert batch.row_errors[0]["employee_id"] == "E2"
    assert batch.row_errors[0]["code"] == "INVALID_INPUT"


def test_threaded_run_matches_serial():
    inputs = [PayrollInput(f"Emp {i}", 1_000_000 * (i + 1), "2026-01", employee_id=str(i)) for i in range(20)]
    serial = PayrollBulkProcessor("bulk-test").process(inputs)
    threaded = PayrollBulkProcessor("bulk-test", max_workers=4).process(inputs)
    assert serial.results == threaded.results


def test_summary_and_remittance_totals():
    bp = PayrollBulkProcessor("bulk-test")
    batch = bp.process([
        PayrollInput("Ada", 50_000_000, "2026-01"),
        PayrollInput("Musa", 50_000_000, "2026-01", jurisdiction="Oyo"),
    ])
    summary = bp.summary_frame(batch.results)
    assert list(summary["net_kobo"]) == [36_662_500, 36_662_500]
    assert summary["paye_kobo"].sum() == 12_925_000

    totals = bp.remittance_totals(batch.results)
    paye = totals[totals["item"] == "PAYE"]
    assert len(paye) == 2  # one per state authority
    pension = totals[totals["item"] == "Pension (Employee + Employer)"]
    assert int(pension["amount_kobo"].iloc[0]) == 18_000_000
    assert list(totals["item"])[:2] == ["PAYE", "Pension (Employee + Employer)"]


def test_unsupported_file(tmp_path):
    f = tmp_path / "staff.txt"
    f.write_text("x")
    with pytest.raises(ValueError):
        PayrollBulkProcessor("bulk-test").load_file(f)
    with pytest.raises(FileNotFoundError):
        PayrollBulkProcessor("bulk-test").load_file(tmp_path / "missing.csv")


def test_json_sheet_mixing_kobo_and_naira_columns(tmp_path):
    f = tmp_path / "staff.json"
    f.write_text(json.dumps([
        {"employee_name": "Ada Obi", "monthly_gross_kobo": 50000000},
        {"employee_name": "Musa Bello", "monthly_gross": "300,000"},
    ]))
    batch = PayrollBulkProcessor("bulk-test").process_file(f, "2026-01")
    assert batch.row_errors == []
    assert [r.earnings.gross_salary_kobo for r in batch.results] == [50_000_000, 30_000_000]
