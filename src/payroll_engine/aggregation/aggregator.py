from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Mapping, Optional, Sequence

from ..core.constants import TOTALS_QUANTUM
from ..core.exceptions import AggregationFailure
from ..entries.model import PayrollEntry
from .calculator.base import EmployeeCalculator
from .calculator.standard_calculator import StandardEmployeeCalculator
from .model import ZERO, Aggregation, EmployeeBase, PayrollResult, Totals


def round_total(value: Decimal) -> Decimal:
    """Banker's rounding to cents; applied once per total, never per employee."""
    return value.quantize(TOTALS_QUANTUM, rounding=ROUND_HALF_EVEN)


class PeriodAggregator:
    """Pure function from a period's entries and base inputs to its totals.

    Entries are processed in employee-id order so identical inputs give
    identical results regardless of the order they were supplied in.
    """

    def __init__(self, calculator: Optional[EmployeeCalculator] = None):
        self._calculator = calculator or StandardEmployeeCalculator()

    def run(
        self,
        entries: Sequence[PayrollEntry],
        base_amounts: Mapping[int, EmployeeBase],
        *,
        on: Optional[date] = None,
    ) -> Aggregation:
        if not entries:
            raise AggregationFailure("No entries to aggregate")

        ordered = sorted(entries, key=lambda e: e.employee_id)
        missing = [e.employee_id for e in ordered if e.employee_id not in base_amounts]
        if missing:
            raise AggregationFailure(f"Missing base amount for employee(s): {', '.join(map(str, missing))}")

        results = tuple(self._calculator.calculate(e, base_amounts[e.employee_id], on=on) for e in ordered)
        return Aggregation(totals=self.totals_for(results), results=results)

    def aggregate(
        self,
        entries: Sequence[PayrollEntry],
        base_amounts: Mapping[int, EmployeeBase],
        *,
        on: Optional[date] = None,
    ) -> Totals:
        return self.run(entries, base_amounts, on=on).totals

    @staticmethod
    def totals_for(results: Sequence[PayrollResult]) -> Totals:
        gross = sum((r.gross for r in results), ZERO)
        tax_a = sum((r.tax_a for r in results), ZERO)
        tax_b = sum((r.tax_b for r in results), ZERO)
        employer_cost = sum((r.employer_cost for r in results), ZERO)
        return Totals(
            gross=round_total(gross),
            net=round_total(gross - tax_a - tax_b),
            tax_a=round_total(tax_a),
            tax_b=round_total(tax_b),
            employer_cost=round_total(employer_cost),
        )
