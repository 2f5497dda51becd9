"""
Bulk payroll processing: load an employee sheet, compute every payslip, and
summarise totals and statutory remittances for the period.
"""
import pandas as pd
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple, Union

from ..core.exceptions import InvalidInput, TaxDeskError
from ..core.money import parse_kobo, parse_ngn_to_kobo
from ..core.utils import setup_logging
from ..tax.rules import PayrollRules
from .engine import PayrollInput, PayrollResult, compute_payroll


@dataclass
class PayrollBatchResult:
    """Outcome of a batch; rows that fail validation land in row_errors."""
    period: str
    results: List[PayrollResult] = field(default_factory=list)
    row_errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.row_errors


class PayrollBulkProcessor:
    """Batch payroll over many employees; each payslip is independent."""

    def __init__(self, tenant_id: str, rules: PayrollRules = None, max_workers: int = 1):
        self.tenant_id = tenant_id
        self.rules = rules or PayrollRules.from_settings()
        self.max_workers = max_workers
        self.log = setup_logging(tenant_id)

    def load_file(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """Load employee rows from CSV, Excel, or JSON."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        ext = file_path.suffix.lower()
        if ext == '.csv':
            return pd.read_csv(file_path, dtype=str, keep_default_na=False)
        elif ext in ['.xlsx', '.xls']:
            return pd.read_excel(file_path, dtype=str, keep_default_na=False)
        elif ext == '.json':
            return pd.read_json(file_path, dtype=False)
        raise ValueError(f"Unsupported file format: {ext}")

    def inputs_from_frame(self, df: pd.DataFrame, period: str) -> Tuple[List[PayrollInput], List[Dict[str, Any]]]:
        """
        Convert rows to PayrollInput.

        Gross may be given as `monthly_gross_kobo` (integer kobo) or
        `monthly_gross` (naira, commas allowed); rent likewise as
        `annual_rent_paid_kobo` or `annual_rent_paid`. Returns the parsed
        inputs and one error entry per rejected row.
        """
        inputs = []
        errors = []
        for idx, row in df.iterrows():
            try:
                inputs.append(PayrollInput(
                    employee_name=_text(row.get('employee_name')) or _text(row.get('full_name')),
                    employee_id=_text(row.get('employee_id')),
                    monthly_gross_kobo=_kobo(row, 'monthly_gross'),
                    annual_rent_paid_kobo=_kobo(row, 'annual_rent_paid', required=False),
                    jurisdiction=_text(row.get('jurisdiction')),
                    period=_text(row.get('period')) or period,
                ))
            except TaxDeskError as e:
                errors.append({'row': int(idx), 'code': e.code, 'error': str(e)})
        return inputs, errors

    def process(self, inputs: List[PayrollInput], period: str = "") -> PayrollBatchResult:
        batch = PayrollBatchResult(period=period)

        def run(p: PayrollInput):
            try:
                return compute_payroll(p, self.rules), None
            except TaxDeskError as e:
                return None, {'employee_id': p.employee_id, 'employee_name': p.employee_name,
                              'code': e.code, 'error': str(e)}

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(run, inputs))
        else:
            outcomes = [run(p) for p in inputs]

        for result, error in outcomes:
            if error:
                batch.row_errors.append(error)
            else:
                batch.results.append(result)

        self.log.info("bulk payroll tenant=%s period=%s processed=%d errors=%d",
                      self.tenant_id, period, len(batch.results), len(batch.row_errors))
        return batch

    def process_file(self, file_path: Union[str, Path], period: str) -> PayrollBatchResult:
        df = self.load_file(file_path)
        inputs, errors = self.inputs_from_frame(df, period)
        batch = self.process(inputs, period)
        batch.row_errors = errors + batch.row_errors
        return batch

    def summary_frame(self, results: List[PayrollResult]) -> pd.DataFrame:
        """One row per payslip, kobo columns."""
        rows = []
        for r in results:
            row = {
                'employee_id': r.employee_id,
                'employee_name': r.employee_name,
                'period': r.period,
                'gross_kobo': r.earnings.gross_salary_kobo,
                'taxable_income_annual_kobo': r.tax.taxable_income_kobo,
            }
            for line in r.deductions:
                row[f'{line.code}_kobo'] = line.amount_kobo
            row['total_deductions_kobo'] = r.total_deductions_kobo
            row['net_kobo'] = r.net_salary_kobo
            row['employer_kobo'] = r.total_employer_kobo
            row['cost_to_employer_kobo'] = r.total_cost_to_employer_kobo
            rows.append(row)
        return pd.DataFrame(rows)

    def remittance_totals(self, results: List[PayrollResult]) -> pd.DataFrame:
        """Aggregate remittance schedule per item and authority, in schedule order."""
        rows = [
            {'item': item.item, 'remit_to': item.remit_to, 'deadline': item.deadline, 'amount_kobo': item.amount_kobo}
            for r in results for item in r.remittance_schedule
        ]
        if not rows:
            return pd.DataFrame(columns=['item', 'remit_to', 'deadline', 'amount_kobo'])
        df = pd.DataFrame(rows)
        return (df.groupby(['item', 'remit_to', 'deadline'], sort=False, as_index=False)['amount_kobo']
                  .sum())


def _text(val: Any) -> Optional[str]:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    s = str(val).strip()
    return s or None


def _kobo(row: pd.Series, name: str, required: bool = True) -> Optional[int]:
    # `<name>_kobo` wins over the naira column `<name>`
    kobo_val = row.get(f'{name}_kobo')
    if _text(kobo_val) is not None:
        # JSON columns with gaps come back as float64
        return parse_kobo(kobo_val, f'{name}_kobo')
    naira_val = _text(row.get(name))
    if naira_val is None:
        if required:
            raise InvalidInput(name, "required")
        return None
    return parse_ngn_to_kobo(naira_val)
