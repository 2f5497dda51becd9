"""
Typed exceptions for the tax and reconciliation engines.

Every error carries a `code` class attribute so callers (service layer, API
responses, audit logs) can branch on type instead of parsing messages.

    TaxDeskError
    +-- InvalidAmount        monetary input non-numeric or negative where disallowed
    +-- InvalidInput         required payroll field missing or malformed
    +-- ConfigurationError   rule table fails its structural checks
    +-- RuleSetNotFound      no rule version effective on the requested date
    +-- CreditError          WHT credit misuse (over-application, unknown id)

"No match" from the reconciliation ranker is a normal outcome (None), not an
exception.
"""
from typing import Any, Optional


class TaxDeskError(Exception):
    """Base exception for all engine errors."""

    code: str = "TAXDESK_ERROR"


class InvalidAmount(TaxDeskError, ValueError):
    code: str = "INVALID_AMOUNT"

    def __init__(self, value: Any, reason: str = "not a valid amount", field: Optional[str] = None):
        self.value = value
        self.field = field
        label = f"{field}: " if field else ""
        super().__init__(f"{label}{value!r} is {reason}")


class InvalidInput(TaxDeskError, ValueError):
    code: str = "INVALID_INPUT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid payroll input '{field}': {reason}")


class ConfigurationError(TaxDeskError):
    """
    Raised at configuration-load time, before any computation runs.

    Not a ValueError subclass, so pydantic lets it escape model validators
    unwrapped.
    """

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, errors: Optional[list] = None):
        self.errors = errors or []
        super().__init__(message)


class RuleSetNotFound(TaxDeskError, LookupError):
    code: str = "RULE_SET_NOT_FOUND"

    def __init__(self, on_date: Any):
        self.on_date = on_date
        super().__init__(f"No rule set effective on {on_date}")


class CreditError(TaxDeskError):
    code: str = "CREDIT_ERROR"
