from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Optional, Protocol

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, decimal_or_none, fetchall
from ..periods.model import PayrollPeriod
from .model import EmployeeBase


class CompensationSource(Protocol):
    """Supplies per-employee base amounts for a period's calculation."""

    def base_amounts(self, period: PayrollPeriod, employee_ids: Iterable[int]) -> Mapping[int, EmployeeBase]:
        raise NotImplementedError


class StaticCompensationSource(CompensationSource):
    def __init__(self, amounts: Optional[Mapping[int, EmployeeBase]] = None):
        self._amounts = dict(amounts or {})

    def set(self, employee_id: int, base: EmployeeBase) -> None:
        self._amounts[int(employee_id)] = base

    def base_amounts(self, period: PayrollPeriod, employee_ids: Iterable[int]) -> Mapping[int, EmployeeBase]:
        wanted = {int(i) for i in employee_ids}
        return {k: v for k, v in self._amounts.items() if k in wanted}


class MySQLCompensationSource(CompensationSource):
    """Reads the base salary and dependents kept on the identity system's employees table.

    Employees without a salary are left out, which the aggregator reports as a failure.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def base_amounts(self, period: PayrollPeriod, employee_ids: Iterable[int]) -> Mapping[int, EmployeeBase]:
        ids = sorted({int(i) for i in employee_ids})
        if not ids:
            return {}

        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, base_salary, dependents
                FROM employees
                WHERE tenant_id=%s AND employee_id IN ({placeholders})
                """,
                tuple([period.tenant_id] + ids),
            )
            out: dict[int, EmployeeBase] = {}
            for r in fetchall(cur):
                salary: Optional[Decimal] = decimal_or_none(r.get("base_salary"))
                if salary is None:
                    continue
                out[int(r["employee_id"])] = EmployeeBase(
                    base_gross=salary,
                    dependents=int(r.get("dependents") or 0),
                )
            return out
