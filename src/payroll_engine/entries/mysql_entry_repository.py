from __future__ import annotations

from typing import Optional, Sequence

from ..common.audit import AuditStamp
from ..common.datetime_utils import to_naive_utc
from ..core.enums import PeriodStatus
from ..core.exceptions import PeriodNotEditable, PeriodNotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, decimal_or_none, fetchall, fetchone
from .model import EntryFields, PayrollEntry
from .repository import EntryRepository

_ENTRY_COLUMNS = """
    entry_id, period_id, employee_id, employee_name,
    absences, credited_absences, overtime_hours, tardiness_hours, note,
    created_by, created_at, updated_by, updated_at
"""


def _row_to_entry(r: dict) -> PayrollEntry:
    return PayrollEntry(
        entry_id=int(r["entry_id"]),
        period_id=int(r["period_id"]),
        employee_id=int(r["employee_id"]),
        employee_name=r["employee_name"],
        fields=EntryFields(
            absences=decimal_or_none(r.get("absences")),
            credited_absences=decimal_or_none(r.get("credited_absences")),
            overtime_hours=decimal_or_none(r.get("overtime_hours")),
            tardiness_hours=decimal_or_none(r.get("tardiness_hours")),
            note=r.get("note"),
        ),
        created=AuditStamp.from_columns(r["created_by"], r["created_at"]),
        updated=AuditStamp.from_columns(r.get("updated_by"), r.get("updated_at")),
    )


def _upsert(cur, entry: PayrollEntry) -> None:
    updated_by = entry.updated.actor_id if entry.updated else None
    updated_at = to_naive_utc(entry.updated.at) if entry.updated else None
    cur.execute(
        """
        INSERT INTO payroll_entries(
            period_id, employee_id, employee_name,
            absences, credited_absences, overtime_hours, tardiness_hours, note,
            created_by, created_at, updated_by, updated_at
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE
            employee_name=VALUES(employee_name),
            absences=VALUES(absences),
            credited_absences=VALUES(credited_absences),
            overtime_hours=VALUES(overtime_hours),
            tardiness_hours=VALUES(tardiness_hours),
            note=VALUES(note),
            updated_by=VALUES(updated_by),
            updated_at=VALUES(updated_at)
        """,
        (
            int(entry.period_id),
            int(entry.employee_id),
            entry.employee_name,
            entry.absences,
            entry.credited_absences,
            entry.overtime_hours,
            entry.tardiness_hours,
            entry.note,
            int(entry.created.actor_id),
            to_naive_utc(entry.created.at),
            updated_by,
            updated_at,
        ),
    )


def _require_draft(cur, period_id: int) -> None:
    """Row-lock the owning period and check it is still a draft.

    A concurrent status change blocks on the same row lock, so an entry write
    and a lock cannot interleave across processes.
    """
    cur.execute(
        "SELECT status FROM payroll_periods WHERE period_id=%s FOR UPDATE",
        (int(period_id),),
    )
    r = fetchone(cur)
    if r is None:
        raise PeriodNotFound(f"Period {period_id} not found")
    if r["status"] != PeriodStatus.DRAFT.value:
        raise PeriodNotEditable(f"Period {period_id} is {r['status']}")


class MySQLEntryRepository(EntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_entry(self, period_id: int, employee_id: int) -> Optional[PayrollEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM payroll_entries
                WHERE period_id=%s AND employee_id=%s
                """,
                (int(period_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def list_entries(self, period_id: int) -> Sequence[PayrollEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM payroll_entries
                WHERE period_id=%s
                """,
                (int(period_id),),
            )
            items = [_row_to_entry(r) for r in fetchall(cur)]
        # collation-independent ordering, same as the in-memory store
        items.sort(key=PayrollEntry.sort_key)
        return items

    def count_entries(self, period_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM payroll_entries WHERE period_id=%s", (int(period_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def save_entry(self, entry: PayrollEntry) -> PayrollEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            _require_draft(cur, entry.period_id)
            _upsert(cur, entry)
        stored = self.get_entry(entry.period_id, entry.employee_id)
        return stored if stored is not None else entry

    def save_entries(self, entries: Sequence[PayrollEntry]) -> Sequence[PayrollEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            for period_id in sorted({e.period_id for e in entries}):
                _require_draft(cur, period_id)
            for entry in entries:
                _upsert(cur, entry)
        return [self.get_entry(e.period_id, e.employee_id) or e for e in entries]

    def delete_entry(self, period_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            _require_draft(cur, period_id)
            cur.execute(
                "DELETE FROM payroll_entries WHERE period_id=%s AND employee_id=%s",
                (int(period_id), int(employee_id)),
            )
            return cur.rowcount > 0
