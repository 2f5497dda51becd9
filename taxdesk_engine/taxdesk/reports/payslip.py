from typing import Any, Dict, List

from ..payroll.engine import PayrollResult
from .formatting import format_kobo_to_ngn, percent_label

EARNING_LABELS = [
    ("basic_salary_kobo", "Basic Salary"),
    ("housing_allowance_kobo", "Housing Allowance"),
    ("transport_allowance_kobo", "Transport Allowance"),
    ("other_allowances_kobo", "Other Allowances"),
]


def _deduction_label(line) -> str:
    if line.code == "paye":
        return "PAYE Tax"
    if line.rate is not None:
        return f"{line.name} ({percent_label(line.rate)})"
    return line.name


def payslip_data(result: PayrollResult) -> Dict[str, Any]:
    """Payslip content; amounts stay in kobo, display strings sit alongside."""
    earnings = [
        {"label": label, "amount": getattr(result.earnings, attr)}
        for attr, label in EARNING_LABELS
    ]
    deductions: List[Dict[str, Any]] = [
        {"label": _deduction_label(line), "amount": line.amount_kobo}
        for line in result.deductions
    ]
    for row in earnings + deductions:
        row["display"] = format_kobo_to_ngn(row["amount"])
    return {
        "title": f"Payslip - {result.period}",
        "employee": result.employee_name,
        "employee_id": result.employee_id,
        "period": result.period,
        "earnings": earnings,
        "deductions": deductions,
        "gross": result.earnings.gross_salary_kobo,
        "total_deductions": result.total_deductions_kobo,
        "net": result.net_salary_kobo,
        "net_display": format_kobo_to_ngn(result.net_salary_kobo),
    }
