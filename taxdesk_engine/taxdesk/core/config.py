from datetime import date
from decimal import Decimal
from typing import Dict, List, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = Field("TaxDesk", description="Logger namespace")
    LOG_LEVEL: str = "INFO"
    AUDIT_LOG_PATH: str = Field("./data/logs", description="Directory for rotating tenant logs")
    DEFAULT_JURISDICTION: str = Field("Lagos", description="State used when a payroll input names none")

    # Statutory defaults (Nigeria Tax Act 2025). Amounts in kobo.
    RULES_VERSION: str = "NTA-2025"
    RULES_EFFECTIVE_DATE: date = date(2026, 1, 1)

    # PAYE: (lower edge, marginal rate); the last band is unbounded
    PAYE_BRACKETS: List[Tuple[int, Decimal]] = [
        (0, Decimal("0.00")),               # first N800k exempt
        (80_000_000, Decimal("0.15")),      # N800k - N3m
        (300_000_000, Decimal("0.18")),     # N3m - N12m
        (1_200_000_000, Decimal("0.21")),   # N12m - N25m
        (2_500_000_000, Decimal("0.23")),   # N25m - N50m
        (5_000_000_000, Decimal("0.25")),   # above N50m
    ]

    # Salary structure as fractions of gross; "other" takes the remainder
    SALARY_SPLIT: Dict[str, Decimal] = {
        "basic": Decimal("0.30"),
        "housing": Decimal("0.35"),
        "transport": Decimal("0.15"),
    }

    # Rent relief replaces the abolished consolidated relief allowance
    RENT_RELIEF_RATE: Decimal = Decimal("0.20")
    RENT_RELIEF_CAP_KOBO: int = 50_000_000

    PENSION_EMPLOYEE_RATE: Decimal = Decimal("0.08")
    PENSION_EMPLOYER_RATE: Decimal = Decimal("0.10")
    NHF_RATE: Decimal = Decimal("0.025")          # of basic salary
    NHIA_EMPLOYEE_RATE: Decimal = Decimal("0.05")
    NHIA_EMPLOYER_RATE: Decimal = Decimal("0.10")
    NSITF_RATE: Decimal = Decimal("0.01")         # employer only

    PAYE_AUTHORITY_TEMPLATE: str = "{jurisdiction} State Internal Revenue Service"


settings = Settings()
