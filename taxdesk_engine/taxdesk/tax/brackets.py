"""
Progressive bracket tax over integer kobo.

A bracket table is an ordered run of half-open ranges [min, max) with one
marginal rate each; the last range is unbounded. Each bracket's tax is rounded
half-up on its own before summation.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from ..core.exceptions import ConfigurationError
from ..core.money import mul_kobo_by_rate, require_kobo, to_rate


class TaxBracket(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: Optional[int] = None
    rate: Decimal

    @property
    def width(self) -> Optional[int]:
        return None if self.max is None else self.max - self.min


class BracketTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    brackets: Tuple[TaxBracket, ...]

    @model_validator(mode="after")
    def _check_structure(self):
        brackets = self.brackets
        if not brackets:
            raise ConfigurationError("Bracket table is empty")
        if brackets[0].min != 0:
            raise ConfigurationError(f"First bracket must start at 0, not {brackets[0].min}")
        for i, b in enumerate(brackets):
            if b.rate < 0:
                raise ConfigurationError(f"Bracket {i} has a negative rate {b.rate}")
            last = i == len(brackets) - 1
            if b.max is None:
                if not last:
                    raise ConfigurationError(f"Only the last bracket may be unbounded (bracket {i})")
                continue
            if last:
                raise ConfigurationError("Last bracket must be unbounded")
            if b.max <= b.min:
                raise ConfigurationError(f"Bracket {i} is empty or inverted: [{b.min}, {b.max})")
            if brackets[i + 1].min != b.max:
                raise ConfigurationError(
                    f"Brackets {i} and {i + 1} are not contiguous: {b.max} != {brackets[i + 1].min}"
                )
        return self

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence]) -> "BracketTable":
        """Build a table from ordered (min_kobo, rate) pairs."""
        pairs = list(pairs)
        mins = [p[0] for p in pairs]
        if any(b <= a for a, b in zip(mins, mins[1:])):
            raise ConfigurationError(f"Bracket lower edges must ascend strictly: {mins}")
        try:
            rows = []
            for i, (lower, rate) in enumerate(pairs):
                upper = pairs[i + 1][0] if i + 1 < len(pairs) else None
                rows.append({"min": lower, "max": upper, "rate": to_rate(rate)})
            return cls(brackets=tuple(TaxBracket(**r) for r in rows))
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid bracket table: {e}") from e

    def to_pairs(self) -> List[Tuple[int, Decimal]]:
        return [(b.min, b.rate) for b in self.brackets]


@dataclass(frozen=True)
class BracketSlice:
    lower: int
    upper: Optional[int]
    rate: Decimal
    taxable_kobo: int
    tax_kobo: int


def compute_bracket_breakdown(table: BracketTable, taxable_base: int) -> List[BracketSlice]:
    require_kobo(taxable_base, "taxable_base", allow_negative=True)
    slices = []
    remaining = taxable_base
    for b in table.brackets:
        if remaining <= 0:
            break
        width = b.width
        in_bracket = remaining if width is None else min(remaining, width)
        slices.append(BracketSlice(b.min, b.max, b.rate, in_bracket, mul_kobo_by_rate(in_bracket, b.rate)))
        remaining -= in_bracket
    return slices


def compute_bracket_tax(table: BracketTable, taxable_base: int) -> int:
    """
    Total tax on a kobo base. Zero or negative bases (reliefs above income)
    yield zero rather than an error.
    """
    return sum(s.tax_kobo for s in compute_bracket_breakdown(table, taxable_base))
