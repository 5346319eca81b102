from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.constants import (
    DEFAULT_ABSENCE_DAILY_DEDUCTION,
    DEFAULT_EMPLOYER_BURDEN_RATE,
    DEFAULT_OVERTIME_HOURLY_RATE,
    DEFAULT_TARDINESS_HOURLY_DEDUCTION,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class Totals:
    gross: Decimal = ZERO
    net: Decimal = ZERO
    tax_a: Decimal = ZERO
    tax_b: Decimal = ZERO
    employer_cost: Decimal = ZERO

    @classmethod
    def zero(cls) -> "Totals":
        return cls()

    def is_zero(self) -> bool:
        return not any((self.gross, self.net, self.tax_a, self.tax_b, self.employer_cost))

    def to_dict(self) -> dict:
        return {
            "gross": str(self.gross),
            "net": str(self.net),
            "tax_a": str(self.tax_a),
            "tax_b": str(self.tax_b),
            "employer_cost": str(self.employer_cost),
        }


@dataclass(frozen=True)
class AggregationRates:
    """Period-wide rates. Configuration, never derived from entries."""

    overtime_hourly: Decimal = DEFAULT_OVERTIME_HOURLY_RATE
    absence_daily: Decimal = DEFAULT_ABSENCE_DAILY_DEDUCTION
    tardiness_hourly: Decimal = DEFAULT_TARDINESS_HOURLY_DEDUCTION
    employer_burden: Decimal = DEFAULT_EMPLOYER_BURDEN_RATE


@dataclass(frozen=True)
class EmployeeBase:
    """Externally supplied compensation input for one employee.

    Rate fields override the period-wide `AggregationRates`; tax fields, when
    given, bypass the tax table.
    """

    base_gross: Decimal
    overtime_hourly: Optional[Decimal] = None
    absence_daily: Optional[Decimal] = None
    tardiness_hourly: Optional[Decimal] = None
    tax_a: Optional[Decimal] = None
    tax_b: Optional[Decimal] = None
    dependents: int = 0


@dataclass(frozen=True)
class PayrollResult:
    """Per-employee breakdown at full precision."""

    employee_id: int
    employee_name: str
    base_gross: Decimal
    overtime_amount: Decimal
    absence_deduction: Decimal
    tardiness_deduction: Decimal
    gross: Decimal
    tax_a: Decimal
    tax_b: Decimal
    net: Decimal
    employer_cost: Decimal

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "base_gross": str(self.base_gross),
            "overtime_amount": str(self.overtime_amount),
            "absence_deduction": str(self.absence_deduction),
            "tardiness_deduction": str(self.tardiness_deduction),
            "gross": str(self.gross),
            "tax_a": str(self.tax_a),
            "tax_b": str(self.tax_b),
            "net": str(self.net),
            "employer_cost": str(self.employer_cost),
        }


@dataclass(frozen=True)
class Aggregation:
    totals: Totals
    results: tuple[PayrollResult, ...] = field(default_factory=tuple)
