from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, decimal_or_none, fetchall, fetchone
from .directory import EmployeeDirectory
from .model import Employee

_COLUMNS = "employee_id, tenant_id, full_name, is_active, base_salary, dependents"


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        tenant_id=str(row["tenant_id"]),
        full_name=row["full_name"],
        is_active=bool(row.get("is_active", True)),
        base_salary=decimal_or_none(row.get("base_salary")),
        dependents=int(row.get("dependents") or 0),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_employee(self, tenant_id: str, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE tenant_id=%s AND employee_id=%s
                """,
                (tenant_id, int(employee_id)),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_active_employees(self, tenant_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE tenant_id=%s AND is_active=1
                ORDER BY full_name, employee_id
                """,
                (tenant_id,),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
