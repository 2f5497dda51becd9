"""
Payroll rule configuration.

Everything a payroll run depends on (brackets, salary split, relief, statutory
contributions, remittance wording) is an explicit, frozen rule object so that a
historical run can be reproduced against the rule version in force at the time.
"""
from decimal import Decimal
from typing import Any, Dict, Literal, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ConfigurationError
from ..reports.formatting import percent_label
from .brackets import BracketTable


class SalarySplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic: Decimal
    housing: Decimal
    transport: Decimal

    @model_validator(mode="after")
    def _check_fractions(self):
        parts = {"basic": self.basic, "housing": self.housing, "transport": self.transport}
        for name, value in parts.items():
            if value < 0:
                raise ConfigurationError(f"Salary split '{name}' is negative: {value}")
        if sum(parts.values()) > 1:
            raise ConfigurationError(f"Salary split exceeds 100% of gross: {sum(parts.values())}")
        return self


class RentRelief(BaseModel):
    model_config = ConfigDict(frozen=True)

    rate: Decimal
    cap_kobo: int

    @model_validator(mode="after")
    def _check(self):
        if self.rate < 0 or self.cap_kobo < 0:
            raise ConfigurationError("Rent relief rate and cap must be non-negative")
        return self


class StatutoryContribution(BaseModel):
    """One statutory obligation; employee and employer sides share a remittance entry."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    base: Literal["gross", "basic"] = "gross"
    employee_rate: Decimal = Decimal("0")
    employer_rate: Decimal = Decimal("0")
    tax_deductible: bool = False
    remit_to: str
    deadline: str
    note: str = ""

    @model_validator(mode="after")
    def _check_rates(self):
        if self.employee_rate < 0 or self.employer_rate < 0:
            raise ConfigurationError(f"Contribution '{self.code}' has a negative rate")
        return self

    @property
    def item_name(self) -> str:
        if self.employee_rate > 0 and self.employer_rate > 0:
            return f"{self.name} (Employee + Employer)"
        return self.name


class PayeRemittance(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: str = "PAYE"
    authority_template: str = "{jurisdiction} State Internal Revenue Service"
    deadline: str = "10th of following month"
    note: str = "State tax"

    @field_validator("authority_template")
    @classmethod
    def _check_template(cls, value: str) -> str:
        # only {jurisdiction} may be substituted
        try:
            value.format(jurisdiction="x")
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(f"Invalid PAYE authority template {value!r}: {e}") from None
        return value

    def authority(self, jurisdiction: str) -> str:
        return self.authority_template.format(jurisdiction=jurisdiction)


class PayrollRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    brackets: BracketTable
    salary_split: SalarySplit
    rent_relief: RentRelief
    contributions: Tuple[StatutoryContribution, ...]
    paye: PayeRemittance = PayeRemittance()
    default_jurisdiction: str = "Lagos"

    @field_validator("brackets", mode="before")
    @classmethod
    def _brackets_from_pairs(cls, value: Any):
        if isinstance(value, (list, tuple)) and value:
            if isinstance(value[0], dict):
                return {"brackets": value}
            return BracketTable.from_pairs(value)
        return value

    @model_validator(mode="after")
    def _unique_codes(self):
        codes = [c.code for c in self.contributions]
        if len(codes) != len(set(codes)):
            raise ConfigurationError(f"Duplicate contribution codes: {codes}")
        return self

    def contribution(self, code: str) -> StatutoryContribution:
        for c in self.contributions:
            if c.code == code:
                return c
        raise KeyError(code)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayrollRules":
        """Validate a rule mapping (JSON rule file, API payload)."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid payroll rules: {e}", errors=e.errors()) from e

    @classmethod
    def from_settings(cls, s: Settings = None) -> "PayrollRules":
        s = s or default_settings
        return cls.from_dict({
            "version": s.RULES_VERSION,
            "brackets": BracketTable.from_pairs(s.PAYE_BRACKETS),
            "salary_split": dict(s.SALARY_SPLIT),
            "rent_relief": {"rate": s.RENT_RELIEF_RATE, "cap_kobo": s.RENT_RELIEF_CAP_KOBO},
            "paye": {"authority_template": s.PAYE_AUTHORITY_TEMPLATE},
            "default_jurisdiction": s.DEFAULT_JURISDICTION,
            "contributions": default_contributions(s),
        })


def default_contributions(s: Settings) -> list:
    return [
        {
            "code": "pension", "name": "Pension", "base": "gross",
            "employee_rate": s.PENSION_EMPLOYEE_RATE, "employer_rate": s.PENSION_EMPLOYER_RATE,
            "tax_deductible": True,
            "remit_to": "PFA (Pension Fund Administrator)",
            "deadline": "7 days after salary payment",
            "note": f"Employee {percent_label(s.PENSION_EMPLOYEE_RATE)} + Employer {percent_label(s.PENSION_EMPLOYER_RATE)}",
        },
        {
            "code": "nhf", "name": "NHF", "base": "basic",
            "employee_rate": s.NHF_RATE,
            "tax_deductible": True,
            "remit_to": "Federal Mortgage Bank of Nigeria",
            "deadline": "Within 30 days",
            "note": f"{percent_label(s.NHF_RATE)} of basic salary",
        },
        {
            "code": "nhia", "name": "NHIA", "base": "gross",
            "employee_rate": s.NHIA_EMPLOYEE_RATE, "employer_rate": s.NHIA_EMPLOYER_RATE,
            "remit_to": "National Health Insurance Authority",
            "deadline": "10th of following month",
            "note": f"Employee {percent_label(s.NHIA_EMPLOYEE_RATE)} + Employer {percent_label(s.NHIA_EMPLOYER_RATE)}",
        },
        {
            "code": "nsitf", "name": "NSITF", "base": "gross",
            "employer_rate": s.NSITF_RATE,
            "remit_to": "Nigeria Social Insurance Trust Fund",
            "deadline": "16th of following month",
            "note": f"{percent_label(s.NSITF_RATE)} of payroll (employer only)",
        },
    ]

