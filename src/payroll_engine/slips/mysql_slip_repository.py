from __future__ import annotations

from typing import AbstractSet, Optional, Sequence

from ..common.audit import AuditStamp
from ..common.datetime_utils import to_naive_utc
from ..core.enums import PeriodStatus
from ..core.exceptions import PeriodNotFound, SlipNotAvailable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PayrollSlip
from .repository import SlipRepository

_SLIP_COLUMNS = """
    slip_id, period_id, tenant_id, employee_id, employee_name,
    reference_month, reference_year, content, content_hash, content_type,
    generated_by, generated_at, notes
"""


def _row_to_slip(r: dict) -> PayrollSlip:
    return PayrollSlip(
        slip_id=int(r["slip_id"]),
        period_id=int(r["period_id"]),
        tenant_id=str(r["tenant_id"]),
        employee_id=int(r["employee_id"]),
        employee_name=r["employee_name"],
        reference_month=int(r["reference_month"]),
        reference_year=int(r["reference_year"]),
        content=r["content"],
        content_hash=r["content_hash"],
        content_type=r["content_type"],
        generated=AuditStamp.from_columns(r["generated_by"], r["generated_at"]),
        notes=r.get("notes"),
    )


class MySQLSlipRepository(SlipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save_slip(self, slip: PayrollSlip, *, period_statuses: AbstractSet[PeriodStatus]) -> PayrollSlip:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status FROM payroll_periods WHERE period_id=%s FOR UPDATE",
                (int(slip.period_id),),
            )
            r = fetchone(cur)
            if r is None:
                raise PeriodNotFound(f"Period {slip.period_id} not found")
            if PeriodStatus(r["status"]) not in period_statuses:
                raise SlipNotAvailable(f"Period {slip.period_id} is {r['status']}")

            cur.execute(
                """
                INSERT INTO payroll_slips(
                    period_id, tenant_id, employee_id, employee_name,
                    reference_month, reference_year, content, content_hash,
                    content_type, content_size, generated_by, generated_at, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    employee_name=VALUES(employee_name),
                    content=VALUES(content),
                    content_hash=VALUES(content_hash),
                    content_type=VALUES(content_type),
                    content_size=VALUES(content_size),
                    generated_by=VALUES(generated_by),
                    generated_at=VALUES(generated_at),
                    notes=VALUES(notes)
                """,
                (
                    int(slip.period_id),
                    slip.tenant_id,
                    int(slip.employee_id),
                    slip.employee_name,
                    int(slip.reference_month),
                    int(slip.reference_year),
                    slip.content,
                    slip.content_hash,
                    slip.content_type,
                    slip.content_size,
                    int(slip.generated.actor_id),
                    to_naive_utc(slip.generated.at),
                    slip.notes,
                ),
            )

        stored = self.get_slip(slip.period_id, slip.employee_id)
        if stored is None:
            raise RuntimeError(f"Slip for employee {slip.employee_id} vanished after save")
        return stored

    def get_slip(self, period_id: int, employee_id: int) -> Optional[PayrollSlip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SLIP_COLUMNS}
                FROM payroll_slips
                WHERE period_id=%s AND employee_id=%s
                """,
                (int(period_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _row_to_slip(r) if r else None

    def list_slips(self, period_id: int) -> Sequence[PayrollSlip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SLIP_COLUMNS} FROM payroll_slips WHERE period_id=%s",
                (int(period_id),),
            )
            items = [_row_to_slip(r) for r in fetchall(cur)]
        items.sort(key=lambda s: (s.employee_name.casefold(), s.employee_id))
        return items
