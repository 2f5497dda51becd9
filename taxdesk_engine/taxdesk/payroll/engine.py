"""
Single-employee payroll: salary structure, PAYE, statutory contributions,
net pay, employer cost and the remittance schedule.

All amounts are kobo ints; every computed value is rounded once, half-up.
"""
import re
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import InvalidInput
from ..core.money import div_kobo, min_kobo, mul_kobo_by_rate, require_kobo
from ..core.utils import setup_logging
from ..tax.brackets import compute_bracket_tax
from ..tax.rules import PayrollRules

PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@dataclass(frozen=True)
class PayrollInput:
    employee_name: str
    monthly_gross_kobo: int
    period: str  # YYYY-MM
    employee_id: Optional[str] = None
    annual_rent_paid_kobo: Optional[int] = None
    jurisdiction: Optional[str] = None


@dataclass(frozen=True)
class Earnings:
    basic_salary_kobo: int
    housing_allowance_kobo: int
    transport_allowance_kobo: int
    other_allowances_kobo: int
    gross_salary_kobo: int


@dataclass(frozen=True)
class PayLine:
    code: str
    name: str
    amount_kobo: int
    rate: Optional[Decimal] = None


@dataclass(frozen=True)
class TaxWorkings:
    annual_gross_kobo: int
    rent_relief_kobo: int
    deductible_contributions_kobo: int
    taxable_income_kobo: int
    annual_tax_kobo: int


@dataclass(frozen=True)
class RemittanceItem:
    item: str
    amount_kobo: int
    remit_to: str
    deadline: str
    note: str


@dataclass(frozen=True)
class PayrollResult:
    employee_name: str
    employee_id: Optional[str]
    period: str
    jurisdiction: str
    rules_version: str
    earnings: Earnings
    tax: TaxWorkings
    deductions: Tuple[PayLine, ...]
    total_deductions_kobo: int
    net_salary_kobo: int
    employer_contributions: Tuple[PayLine, ...]
    total_employer_kobo: int
    total_cost_to_employer_kobo: int
    remittance_schedule: Tuple[RemittanceItem, ...]

    @property
    def paye_kobo(self) -> int:
        return self.deduction("paye")

    def deduction(self, code: str) -> int:
        return _line_amount(self.deductions, code)

    def employer_contribution(self, code: str) -> int:
        return _line_amount(self.employer_contributions, code)

    def to_dict(self) -> Dict:
        return asdict(self)


def _line_amount(lines: Iterable[PayLine], code: str) -> int:
    for line in lines:
        if line.code == code:
            return line.amount_kobo
    return 0


def validate_input(payroll_input: PayrollInput) -> None:
    if not payroll_input.employee_name or not str(payroll_input.employee_name).strip():
        raise InvalidInput("employee_name", "required")
    gross = payroll_input.monthly_gross_kobo
    if isinstance(gross, bool) or not isinstance(gross, int):
        raise InvalidInput("monthly_gross_kobo", f"expected integer kobo, got {gross!r}")
    if gross < 0:
        raise InvalidInput("monthly_gross_kobo", f"negative gross {gross}")
    if not payroll_input.period or not PERIOD_RE.match(str(payroll_input.period)):
        raise InvalidInput("period", f"expected YYYY-MM, got {payroll_input.period!r}")
    if payroll_input.annual_rent_paid_kobo is not None:
        require_kobo(payroll_input.annual_rent_paid_kobo, "annual_rent_paid_kobo")


def split_salary(gross: int, rules: PayrollRules) -> Earnings:
    split = rules.salary_split
    basic = mul_kobo_by_rate(gross, split.basic)
    housing = mul_kobo_by_rate(gross, split.housing)
    transport = mul_kobo_by_rate(gross, split.transport)
    return Earnings(basic, housing, transport, gross - basic - housing - transport, gross)


def compute_rent_relief(annual_rent_kobo: int, rules: PayrollRules) -> int:
    relief = rules.rent_relief
    return min_kobo(mul_kobo_by_rate(annual_rent_kobo, relief.rate), relief.cap_kobo)


def compute_tax_workings(gross: int, annual_rent_kobo: int, rules: PayrollRules) -> TaxWorkings:
    annual_gross = gross * 12
    annual_basic = mul_kobo_by_rate(annual_gross, rules.salary_split.basic)
    bases = {"gross": annual_gross, "basic": annual_basic}
    deductible = sum(
        mul_kobo_by_rate(bases[c.base], c.employee_rate)
        for c in rules.contributions
        if c.tax_deductible and c.employee_rate > 0
    )
    relief = compute_rent_relief(annual_rent_kobo, rules)
    taxable = max(0, annual_gross - relief - deductible)
    return TaxWorkings(
        annual_gross_kobo=annual_gross,
        rent_relief_kobo=relief,
        deductible_contributions_kobo=deductible,
        taxable_income_kobo=taxable,
        annual_tax_kobo=compute_bracket_tax(rules.brackets, taxable),
    )


def compute_payroll(payroll_input: PayrollInput, rules: PayrollRules) -> PayrollResult:
    """
    Compute a payslip for one employee and one period.

    Raises InvalidInput for a missing name, malformed period or a negative
    gross, InvalidAmount for a negative rent. Rent defaults to zero and the
    jurisdiction to the rules' default.
    """
    validate_input(payroll_input)
    gross = payroll_input.monthly_gross_kobo
    rent = payroll_input.annual_rent_paid_kobo or 0
    jurisdiction = payroll_input.jurisdiction or rules.default_jurisdiction

    earnings = split_salary(gross, rules)
    workings = compute_tax_workings(gross, rent, rules)
    monthly_paye = div_kobo(workings.annual_tax_kobo, 12)

    bases = {"gross": gross, "basic": earnings.basic_salary_kobo}
    deductions = [PayLine("paye", rules.paye.item, monthly_paye)]
    employer = []
    schedule = [RemittanceItem(
        item=rules.paye.item,
        amount_kobo=monthly_paye,
        remit_to=rules.paye.authority(jurisdiction),
        deadline=rules.paye.deadline,
        note=rules.paye.note,
    )]
    for c in rules.contributions:
        base = bases[c.base]
        employee_part = mul_kobo_by_rate(base, c.employee_rate) if c.employee_rate > 0 else 0
        employer_part = mul_kobo_by_rate(base, c.employer_rate) if c.employer_rate > 0 else 0
        if c.employee_rate > 0:
            deductions.append(PayLine(c.code, c.name, employee_part, c.employee_rate))
        if c.employer_rate > 0:
            employer.append(PayLine(c.code, c.name, employer_part, c.employer_rate))
        schedule.append(RemittanceItem(c.item_name, employee_part + employer_part, c.remit_to, c.deadline, c.note))

    total_deductions = sum(d.amount_kobo for d in deductions)
    total_employer = sum(e.amount_kobo for e in employer)

    return PayrollResult(
        employee_name=payroll_input.employee_name,
        employee_id=payroll_input.employee_id,
        period=payroll_input.period,
        jurisdiction=jurisdiction,
        rules_version=rules.version,
        earnings=earnings,
        tax=workings,
        deductions=tuple(deductions),
        total_deductions_kobo=total_deductions,
        net_salary_kobo=gross - total_deductions,
        employer_contributions=tuple(employer),
        total_employer_kobo=total_employer,
        total_cost_to_employer_kobo=gross + total_employer,
        remittance_schedule=tuple(schedule),
    )


class PayrollEngine:
    def __init__(self, tenant_id: str, rules: PayrollRules = None):
        self.tenant_id = tenant_id
        self.rules = rules or PayrollRules.from_settings()
        self.log = setup_logging(tenant_id)

    def compute_paye(self, monthly_gross_kobo: int, annual_rent_paid_kobo: int = 0) -> int:
        """Monthly PAYE in kobo."""
        gross = require_kobo(monthly_gross_kobo, "monthly_gross_kobo")
        rent = require_kobo(annual_rent_paid_kobo, "annual_rent_paid_kobo")
        return div_kobo(compute_tax_workings(gross, rent, self.rules).annual_tax_kobo, 12)

    def compute_net_pay(self, payroll_input: PayrollInput) -> PayrollResult:
        return compute_payroll(payroll_input, self.rules)

    def run_payroll(self, inputs: List[PayrollInput]) -> List[PayrollResult]:
        results = []
        for p in inputs:
            results.append(self.compute_net_pay(p))
        self.log.info("payroll run tenant=%s rules=%s employees=%d gross=%d net=%d",
                      self.tenant_id, self.rules.version, len(results),
                      sum(r.earnings.gross_salary_kobo for r in results),
                      sum(r.net_salary_kobo for r in results))
        return results
