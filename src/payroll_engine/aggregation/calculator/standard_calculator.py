from __future__ import annotations

from dataclasses import fields, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from ...common.validators import to_decimal
from ...core.exceptions import AggregationFailure, ValidationError
from ...entries.model import PayrollEntry
from ..model import ZERO, AggregationRates, EmployeeBase, PayrollResult
from ..taxes import TaxTable
from .base import EmployeeCalculator


def _qty(value: Optional[Decimal]) -> Decimal:
    return value if value is not None else ZERO


_OPTIONAL_AMOUNTS = ("overtime_hourly", "absence_daily", "tardiness_hourly", "tax_a", "tax_b")


def _checked_base(employee_id: int, base: EmployeeBase) -> EmployeeBase:
    """Normalize the supplied amounts to Decimal or fail the aggregation."""
    if not isinstance(base, EmployeeBase):
        raise AggregationFailure(f"Base amount for employee {employee_id} is not an EmployeeBase")

    dependents = base.dependents
    if isinstance(dependents, bool) or not isinstance(dependents, int) or dependents < 0:
        raise AggregationFailure(f"Invalid dependents for employee {employee_id}: {dependents!r}")

    try:
        amounts = {"base_gross": to_decimal(base.base_gross, f"base_gross for employee {employee_id}")}
        for name in _OPTIONAL_AMOUNTS:
            value = getattr(base, name)
            if value is not None:
                amounts[name] = to_decimal(value, f"{name} for employee {employee_id}")
    except ValidationError as exc:
        raise AggregationFailure(str(exc)) from exc
    return replace(base, **amounts)


def _checked_rates(rates: AggregationRates) -> AggregationRates:
    return replace(rates, **{f.name: to_decimal(getattr(rates, f.name), f.name) for f in fields(rates)})


class StandardEmployeeCalculator(EmployeeCalculator):
    """Standard rule: base + overtime - uncredited absences - tardiness, not below 0.

    No rounding here; callers round once on the period totals.
    """

    def __init__(self, rates: Optional[AggregationRates] = None, *, tax_table: Optional[TaxTable] = None):
        self._rates = _checked_rates(rates or AggregationRates())
        self._tax_table = tax_table

    @property
    def rates(self) -> AggregationRates:
        return self._rates

    def calculate(self, entry: PayrollEntry, base: EmployeeBase, *, on: Optional[date] = None) -> PayrollResult:
        base = _checked_base(entry.employee_id, base)
        if base.base_gross < 0:
            raise AggregationFailure(f"Negative base amount for employee {entry.employee_id}")

        overtime_rate = base.overtime_hourly if base.overtime_hourly is not None else self._rates.overtime_hourly
        absence_rate = base.absence_daily if base.absence_daily is not None else self._rates.absence_daily
        tardiness_rate = base.tardiness_hourly if base.tardiness_hourly is not None else self._rates.tardiness_hourly

        chargeable_absences = max(_qty(entry.absences) - _qty(entry.credited_absences), ZERO)

        overtime_amount = _qty(entry.overtime_hours) * overtime_rate
        absence_deduction = chargeable_absences * absence_rate
        tardiness_deduction = _qty(entry.tardiness_hours) * tardiness_rate

        gross = max(base.base_gross + overtime_amount - absence_deduction - tardiness_deduction, ZERO)
        tax_a, tax_b = self._withholdings(gross, base, on)

        return PayrollResult(
            employee_id=entry.employee_id,
            employee_name=entry.employee_name,
            base_gross=base.base_gross,
            overtime_amount=overtime_amount,
            absence_deduction=absence_deduction,
            tardiness_deduction=tardiness_deduction,
            gross=gross,
            tax_a=tax_a,
            tax_b=tax_b,
            net=gross - tax_a - tax_b,
            employer_cost=gross + gross * self._rates.employer_burden,
        )

    def _withholdings(self, gross: Decimal, base: EmployeeBase, on: Optional[date]) -> tuple[Decimal, Decimal]:
        table = self._tax_table
        if table is not None and on is not None:
            table = table.for_date(on)

        tax_a = base.tax_a
        if tax_a is None:
            tax_a = table.withhold_a(gross) if table is not None else ZERO
        tax_b = base.tax_b
        if tax_b is None:
            tax_b = (
                table.withhold_b(gross, tax_a, dependents=base.dependents)
                if table is not None
                else ZERO
            )
        if tax_a < 0 or tax_b < 0:
            raise AggregationFailure("Tax withholdings cannot be negative")
        return tax_a, tax_b
