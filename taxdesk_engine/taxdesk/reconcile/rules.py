"""
Weights, tiers and thresholds for certificate/transaction matching.
"""
from decimal import Decimal
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from ..core.exceptions import ConfigurationError


class ScoreTier(BaseModel):
    """A tier awards `weight` with `reason` when the signal clears `bound`."""

    model_config = ConfigDict(frozen=True)

    bound: Decimal
    weight: Decimal
    reason: str


def _tier(bound: str, weight: str, reason: str) -> ScoreTier:
    return ScoreTier(bound=Decimal(bound), weight=Decimal(weight), reason=reason)


class MatchRules(BaseModel):
    """
    Amount tiers compare the relative difference (`diff < bound`), date tiers
    the day distance (`days < bound`); both are checked in ascending order.
    Name tiers compare similarity (`similarity > bound`), checked in
    descending order. The first tier that applies wins.
    """

    model_config = ConfigDict(frozen=True)

    tin_weight: Decimal = Decimal("0.35")
    tin_reason: str = "TIN match"

    amount_weight: Decimal = Decimal("0.30")
    amount_tiers: Tuple[ScoreTier, ...] = (
        _tier("0.01", "0.30", "Exact amount match"),
        _tier("0.05", "0.25", "Amount within 5%"),
        _tier("0.10", "0.15", "Amount within 10%"),
    )

    date_weight: Decimal = Decimal("0.20")
    date_tiers: Tuple[ScoreTier, ...] = (
        _tier("7", "0.20", "Date within 7 days"),
        _tier("30", "0.15", "Date within 30 days"),
        _tier("90", "0.05", "Date within 90 days"),
    )

    name_weight: Decimal = Decimal("0.15")
    name_tiers: Tuple[ScoreTier, ...] = (
        _tier("0.8", "0.15", "Name match"),
        _tier("0.5", "0.08", "Partial name match"),
    )

    min_score: Decimal = Decimal("0.5")
    best_match_threshold: Decimal = Decimal("0.6")

    @model_validator(mode="after")
    def _check(self):
        total = self.tin_weight + self.amount_weight + self.date_weight + self.name_weight
        if total != 1:
            raise ConfigurationError(f"Signal weights must sum to 1, got {total}")
        signals = (
            ("amount", self.amount_weight, self.amount_tiers, True),
            ("date", self.date_weight, self.date_tiers, True),
            ("name", self.name_weight, self.name_tiers, False),
        )
        for name, full, tiers, ascending in signals:
            if full < 0:
                raise ConfigurationError(f"{name} weight is negative")
            for t in tiers:
                if t.weight < 0 or t.weight > full:
                    raise ConfigurationError(f"{name} tier '{t.reason}' weight {t.weight} outside [0, {full}]")
            bounds = [t.bound for t in tiers]
            ordered = all(a < b for a, b in zip(bounds, bounds[1:])) if ascending \
                else all(a > b for a, b in zip(bounds, bounds[1:]))
            if not ordered:
                raise ConfigurationError(f"{name} tier bounds out of order: {bounds}")
        for label, value in (("min_score", self.min_score), ("best_match_threshold", self.best_match_threshold)):
            if not 0 <= value <= 1:
                raise ConfigurationError(f"{label} must lie in [0, 1], got {value}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchRules":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid match rules: {e}", errors=e.errors()) from e


DEFAULT_MATCH_RULES = MatchRules()
