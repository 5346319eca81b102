from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.constants import DEFAULT_TAX_A_BRACKETS, DEFAULT_TAX_B_BRACKETS, DEPENDENT_DEDUCTION
from .model import ZERO


@dataclass(frozen=True)
class TaxBracket:
    """One withholding bracket; None effective bounds are open-ended."""

    range_start: Decimal
    range_end: Optional[Decimal]
    rate: Decimal
    deduction: Decimal = ZERO
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None

    def in_force_on(self, on: date) -> bool:
        if self.effective_from is not None and on < self.effective_from:
            return False
        if self.effective_to is not None and on > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class TaxTable:
    """Withholding brackets used when tax amounts are not supplied per employee.

    Tax A is progressive (each slice of the base is taxed at its own rate).
    Tax B applies the rate of the bracket containing the base, minus that
    bracket's fixed deduction, to a base reduced by tax A and dependents.

    Brackets may be effective-dated; `for_date` narrows the table to the
    brackets in force on a day, falling back to the built-in defaults for a
    tax that has none.
    """

    tax_a: tuple[TaxBracket, ...]
    tax_b: tuple[TaxBracket, ...]
    dependent_deduction: Decimal = DEPENDENT_DEDUCTION

    def for_date(self, on: date) -> "TaxTable":
        tax_a = tuple(b for b in self.tax_a if b.in_force_on(on)) or _brackets(DEFAULT_TAX_A_BRACKETS)
        tax_b = tuple(b for b in self.tax_b if b.in_force_on(on)) or _brackets(DEFAULT_TAX_B_BRACKETS)
        return replace(self, tax_a=tax_a, tax_b=tax_b)

    def withhold_a(self, gross: Decimal) -> Decimal:
        return progressive_tax(gross, self.tax_a)

    def withhold_b(self, gross: Decimal, tax_a: Decimal, *, dependents: int = 0) -> Decimal:
        base_b = max(gross - tax_a - self.dependent_deduction * dependents, ZERO)
        return bracket_tax(base_b, self.tax_b)


def _brackets(rows) -> tuple[TaxBracket, ...]:
    return tuple(TaxBracket(range_start=s, range_end=e, rate=r, deduction=d) for s, e, r, d in rows)


def default_tax_table() -> TaxTable:
    return TaxTable(tax_a=_brackets(DEFAULT_TAX_A_BRACKETS), tax_b=_brackets(DEFAULT_TAX_B_BRACKETS))


def progressive_tax(base: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    if base <= 0 or not brackets:
        return ZERO

    total = ZERO
    for bracket in sorted(brackets, key=lambda b: b.range_start):
        if base <= bracket.range_start:
            break
        upper = bracket.range_end if bracket.range_end is not None else base
        portion = min(base, upper) - bracket.range_start
        if portion > 0:
            total += portion * bracket.rate
        if base <= upper:
            break
    return max(total, ZERO)


def bracket_tax(base: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    if base <= 0 or not brackets:
        return ZERO

    applied = None
    for bracket in sorted(brackets, key=lambda b: b.range_start, reverse=True):
        if base >= bracket.range_start:
            applied = bracket
            break
    if applied is None:
        return ZERO
    return max(base * applied.rate - applied.deduction, ZERO)
