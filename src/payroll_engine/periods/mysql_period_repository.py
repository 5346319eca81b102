from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..aggregation.model import PayrollResult, Totals
from ..common.audit import AuditStamp
from ..common.datetime_utils import to_naive_utc
from ..core.enums import AuditAction, PeriodStatus
from ..core.exceptions import DuplicatePeriod, InvalidTransition, PeriodNotEditable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, decimal_or_zero, fetchall, fetchone
from ..entries.model import PayrollEntry
from .model import AuditRecord, PayrollPeriod, PeriodSummary
from .repository import PeriodRepository

_PERIOD_COLUMNS = """
    p.period_id, p.tenant_id, p.reference_month, p.reference_year, p.status,
    p.created_by, p.created_at, p.updated_by, p.updated_at,
    p.locked_by, p.locked_at, p.calculated_by, p.calculated_at,
    p.approved_by, p.approved_at, p.paid_by, p.paid_at, p.payment_date,
    p.total_gross, p.total_net, p.total_tax_a, p.total_tax_b, p.total_employer_cost,
    p.notes
"""


def _stamp_columns(stamp: Optional[AuditStamp]) -> tuple:
    if stamp is None:
        return None, None
    return stamp.actor_id, to_naive_utc(stamp.at)


def _row_to_totals(r: dict) -> Totals:
    return Totals(
        gross=decimal_or_zero(r.get("total_gross")),
        net=decimal_or_zero(r.get("total_net")),
        tax_a=decimal_or_zero(r.get("total_tax_a")),
        tax_b=decimal_or_zero(r.get("total_tax_b")),
        employer_cost=decimal_or_zero(r.get("total_employer_cost")),
    )


def _row_to_period(r: dict) -> PayrollPeriod:
    return PayrollPeriod(
        period_id=int(r["period_id"]),
        tenant_id=str(r["tenant_id"]),
        reference_month=int(r["reference_month"]),
        reference_year=int(r["reference_year"]),
        status=PeriodStatus(r["status"]),
        created=AuditStamp.from_columns(r["created_by"], r["created_at"]),
        updated=AuditStamp.from_columns(r.get("updated_by"), r.get("updated_at")),
        locked=AuditStamp.from_columns(r.get("locked_by"), r.get("locked_at")),
        calculated=AuditStamp.from_columns(r.get("calculated_by"), r.get("calculated_at")),
        approved=AuditStamp.from_columns(r.get("approved_by"), r.get("approved_at")),
        paid=AuditStamp.from_columns(r.get("paid_by"), r.get("paid_at")),
        payment_date=r.get("payment_date"),
        totals=_row_to_totals(r),
        notes=r.get("notes"),
    )


def _row_to_result(r: dict) -> PayrollResult:
    return PayrollResult(
        employee_id=int(r["employee_id"]),
        employee_name=r["employee_name"],
        base_gross=decimal_or_zero(r["base_gross"]),
        overtime_amount=decimal_or_zero(r["overtime_amount"]),
        absence_deduction=decimal_or_zero(r["absence_deduction"]),
        tardiness_deduction=decimal_or_zero(r["tardiness_deduction"]),
        gross=decimal_or_zero(r["gross"]),
        tax_a=decimal_or_zero(r["tax_a"]),
        tax_b=decimal_or_zero(r["tax_b"]),
        net=decimal_or_zero(r["net"]),
        employer_cost=decimal_or_zero(r["employer_cost"]),
    )


def _insert_audit(cur, audit: AuditRecord) -> None:
    cur.execute(
        """
        INSERT INTO payroll_audit_log(
            period_id, tenant_id, action, from_status, to_status, actor_id, created_at, notes
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
        """,
        (
            int(audit.period_id),
            audit.tenant_id,
            audit.action.value,
            audit.from_status.value if audit.from_status else None,
            audit.to_status.value if audit.to_status else None,
            int(audit.stamp.actor_id),
            to_naive_utc(audit.stamp.at),
            audit.notes,
        ),
    )


class MySQLPeriodRepository(PeriodRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_period(
        self,
        period: PayrollPeriod,
        *,
        audit: AuditRecord,
        seed_entries: Sequence[PayrollEntry] = (),
    ) -> PayrollPeriod:
        created_by, created_at = _stamp_columns(period.created)
        updated_by, updated_at = _stamp_columns(period.updated)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_periods(
                        tenant_id, reference_month, reference_year, status,
                        created_by, created_at, updated_by, updated_at, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        period.tenant_id,
                        int(period.reference_month),
                        int(period.reference_year),
                        period.status.value,
                        created_by,
                        created_at,
                        updated_by,
                        updated_at,
                        period.notes,
                    ),
                )
                period_id = int(cur.lastrowid)
                for entry in seed_entries:
                    entry_by, entry_at = _stamp_columns(entry.created)
                    cur.execute(
                        """
                        INSERT INTO payroll_entries(
                            period_id, employee_id, employee_name, created_by, created_at
                        )
                        VALUES(%s,%s,%s,%s,%s)
                        """,
                        (period_id, int(entry.employee_id), entry.employee_name, entry_by, entry_at),
                    )
                _insert_audit(cur, AuditRecord(
                    period_id=period_id,
                    tenant_id=audit.tenant_id,
                    action=audit.action,
                    stamp=audit.stamp,
                    from_status=audit.from_status,
                    to_status=audit.to_status,
                    notes=audit.notes,
                ))
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicatePeriod(
                    f"Period {period.reference} already exists for tenant {period.tenant_id}"
                ) from exc
            raise

        stored = self.get_period(period_id)
        if stored is None:
            raise RuntimeError(f"Period {period_id} vanished after insert")
        return stored

    def get_period(self, period_id: int) -> Optional[PayrollPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PERIOD_COLUMNS} FROM payroll_periods p WHERE p.period_id=%s",
                (int(period_id),),
            )
            r = fetchone(cur)
            return _row_to_period(r) if r else None

    def find_by_reference(self, tenant_id: str, month: int, year: int) -> Optional[PayrollPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PERIOD_COLUMNS}
                FROM payroll_periods p
                WHERE p.tenant_id=%s AND p.reference_month=%s AND p.reference_year=%s
                """,
                (tenant_id, int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_period(r) if r else None

    def list_periods(
        self,
        tenant_id: str,
        *,
        year: Optional[int] = None,
        status: Optional[PeriodStatus] = None,
    ) -> Sequence[PeriodSummary]:
        clauses = ["p.tenant_id=%s"]
        params: list[object] = [tenant_id]

        if year is not None:
            clauses.append("p.reference_year=%s")
            params.append(int(year))
        if status is not None:
            clauses.append("p.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PERIOD_COLUMNS},
                       (SELECT COUNT(*) FROM payroll_entries e WHERE e.period_id = p.period_id) AS entry_count
                FROM payroll_periods p
                WHERE {where}
                ORDER BY p.reference_year DESC, p.reference_month DESC
                """,
                tuple(params),
            )
            out: list[PeriodSummary] = []
            for r in fetchall(cur):
                period = _row_to_period(r)
                out.append(
                    PeriodSummary(
                        period_id=period.period_id,
                        tenant_id=period.tenant_id,
                        reference_month=period.reference_month,
                        reference_year=period.reference_year,
                        status=period.status,
                        entry_count=int(r.get("entry_count") or 0),
                        totals=period.totals,
                        created=period.created,
                        updated=period.updated,
                    )
                )
            return out

    def list_results(self, period_id: int) -> Sequence[PayrollResult]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, employee_name, base_gross, overtime_amount,
                       absence_deduction, tardiness_deduction, gross, tax_a, tax_b,
                       net, employer_cost
                FROM payroll_results
                WHERE period_id=%s
                ORDER BY employee_name, employee_id
                """,
                (int(period_id),),
            )
            return [_row_to_result(r) for r in fetchall(cur)]

    def save_transition(
        self,
        period: PayrollPeriod,
        *,
        expected_status: PeriodStatus,
        results: Optional[Sequence[PayrollResult]],
        audit: AuditRecord,
    ) -> PayrollPeriod:
        updated_by, updated_at = _stamp_columns(period.updated)
        locked_by, locked_at = _stamp_columns(period.locked)
        calculated_by, calculated_at = _stamp_columns(period.calculated)
        approved_by, approved_at = _stamp_columns(period.approved)
        paid_by, paid_at = _stamp_columns(period.paid)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_periods
                SET status=%s, updated_by=%s, updated_at=%s,
                    locked_by=%s, locked_at=%s, calculated_by=%s, calculated_at=%s,
                    approved_by=%s, approved_at=%s, paid_by=%s, paid_at=%s, payment_date=%s,
                    total_gross=%s, total_net=%s, total_tax_a=%s, total_tax_b=%s,
                    total_employer_cost=%s, notes=%s
                WHERE period_id=%s AND status=%s
                """,
                (
                    period.status.value,
                    updated_by,
                    updated_at,
                    locked_by,
                    locked_at,
                    calculated_by,
                    calculated_at,
                    approved_by,
                    approved_at,
                    paid_by,
                    paid_at,
                    period.payment_date,
                    period.totals.gross,
                    period.totals.net,
                    period.totals.tax_a,
                    period.totals.tax_b,
                    period.totals.employer_cost,
                    period.notes,
                    int(period.period_id),
                    expected_status.value,
                ),
            )
            # rowcount counts matched rows (FOUND_ROWS), so 0 means the status moved on
            if cur.rowcount == 0:
                raise InvalidTransition(
                    f"Period {period.period_id} is no longer {expected_status.value}"
                )
            if results is not None:
                cur.execute("DELETE FROM payroll_slips WHERE period_id=%s", (int(period.period_id),))
                cur.execute("DELETE FROM payroll_results WHERE period_id=%s", (int(period.period_id),))
                if results:
                    cur.executemany(
                        """
                        INSERT INTO payroll_results(
                            period_id, employee_id, employee_name, base_gross, overtime_amount,
                            absence_deduction, tardiness_deduction, gross, tax_a, tax_b,
                            net, employer_cost
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        [
                            (
                                int(period.period_id),
                                int(r.employee_id),
                                r.employee_name,
                                r.base_gross,
                                r.overtime_amount,
                                r.absence_deduction,
                                r.tardiness_deduction,
                                r.gross,
                                r.tax_a,
                                r.tax_b,
                                r.net,
                                r.employer_cost,
                            )
                            for r in results
                        ],
                    )

            _insert_audit(cur, audit)

        return period

    def delete_period(
        self,
        period_id: int,
        *,
        expected_status: PeriodStatus,
        audit: AuditRecord,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # FK cascades remove entries, results and slips in the same transaction.
            cur.execute(
                "DELETE FROM payroll_periods WHERE period_id=%s AND status=%s",
                (int(period_id), expected_status.value),
            )
            if cur.rowcount == 0:
                cur.execute("SELECT status FROM payroll_periods WHERE period_id=%s", (int(period_id),))
                r = fetchone(cur)
                if r is None:
                    return False
                raise PeriodNotEditable(
                    f"Period {period_id} is {r['status']}, not {expected_status.value}"
                )
            _insert_audit(cur, audit)
            return True

    def list_audit(self, period_id: int) -> Sequence[AuditRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, tenant_id, action, from_status, to_status, actor_id, created_at, notes
                FROM payroll_audit_log
                WHERE period_id=%s
                ORDER BY audit_id
                """,
                (int(period_id),),
            )
            return [
                AuditRecord(
                    period_id=int(r["period_id"]),
                    tenant_id=str(r["tenant_id"]),
                    action=AuditAction(r["action"]),
                    stamp=AuditStamp.from_columns(r["actor_id"], r["created_at"]),
                    from_status=PeriodStatus(r["from_status"]) if r.get("from_status") else None,
                    to_status=PeriodStatus(r["to_status"]) if r.get("to_status") else None,
                    notes=r.get("notes"),
                )
                for r in fetchall(cur)
            ]
