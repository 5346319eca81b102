from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Sequence

from ..common.audit import AuditStamp
from ..common.datetime_utils import now_utc
from ..core.exceptions import EmployeeNotFound, EntryNotFound, PeriodNotEditable, PeriodNotFound
from ..identity.directory import EmployeeDirectory
from ..identity.model import Employee
from ..periods import lifecycle
from ..periods.model import PayrollPeriod
from ..periods.repository import PeriodRepository
from .model import EntryFields, PayrollEntry
from .repository import EntryRepository

log = logging.getLogger(__name__)


class EntryStore:
    """Adjustment rows of a period, writable only while the period is a draft.

    Callers resolve employees (an external call) before entering the period's
    exclusive section, then pass the resolved record to the write methods.
    """

    def __init__(
        self,
        entries: EntryRepository,
        periods: PeriodRepository,
        directory: EmployeeDirectory,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._entries = entries
        self._periods = periods
        self._directory = directory
        self._clock = clock

    def resolve_employee(self, tenant_id: str, employee_id: int) -> Employee:
        employee = self._directory.get_employee(tenant_id, int(employee_id))
        if employee is None:
            raise EmployeeNotFound(f"Employee {employee_id} not found for tenant {tenant_id}")
        return employee

    def _editable_period(self, period_id: int) -> PayrollPeriod:
        period = self._periods.get_period(int(period_id))
        if period is None:
            raise PeriodNotFound(f"Payroll period {period_id} not found")
        if not lifecycle.entries_editable(period.status):
            raise PeriodNotEditable(f"Period {period.reference} is {period.status.value}; entries are read-only")
        return period

    def _build(self, period: PayrollPeriod, employee: Employee, fields: EntryFields, stamp: AuditStamp):
        """Return the row to write, or None when the stored row already matches."""

        if employee.tenant_id != period.tenant_id:
            raise EmployeeNotFound(f"Employee {employee.employee_id} not found for tenant {period.tenant_id}")

        existing = self._entries.get_entry(period.period_id, employee.employee_id)
        if existing is None:
            return PayrollEntry(
                entry_id=0,
                period_id=period.period_id,
                employee_id=employee.employee_id,
                employee_name=employee.full_name,
                fields=fields,
                created=stamp,
                updated=stamp,
            )
        if existing.fields == fields and existing.employee_name == employee.full_name:
            return None
        return replace(existing, fields=fields, employee_name=employee.full_name, updated=stamp)

    def upsert_entry(self, period_id: int, employee: Employee, fields: EntryFields, actor_id: int) -> PayrollEntry:
        period = self._editable_period(period_id)
        fields = fields.normalized()
        stamp = AuditStamp(actor_id=int(actor_id), at=self._clock())

        entry = self._build(period, employee, fields, stamp)
        if entry is None:
            return self._entries.get_entry(period.period_id, employee.employee_id)

        saved = self._entries.save_entry(entry)
        log.info("entry saved period=%s employee=%s actor=%s", period.period_id, employee.employee_id, actor_id)
        return saved

    def upsert_entries(
        self,
        period_id: int,
        rows: Sequence[tuple[Employee, EntryFields]],
        actor_id: int,
    ) -> list[PayrollEntry]:
        period = self._editable_period(period_id)
        stamp = AuditStamp(actor_id=int(actor_id), at=self._clock())

        pending: list[PayrollEntry] = []
        for employee, fields in rows:
            entry = self._build(period, employee, fields.normalized(), stamp)
            if entry is not None:
                pending.append(entry)

        if pending:
            self._entries.save_entries(pending)
            log.info("bulk entry save period=%s rows=%s actor=%s", period.period_id, len(pending), actor_id)

        wanted = {employee.employee_id for employee, _ in rows}
        return [e for e in self._entries.list_entries(period.period_id) if e.employee_id in wanted]

    def list_entries(self, period_id: int) -> list[PayrollEntry]:
        return list(self._entries.list_entries(int(period_id)))

    def count_entries(self, period_id: int) -> int:
        return self._entries.count_entries(int(period_id))

    def remove_entry(self, period_id: int, employee_id: int, actor_id: int) -> None:
        period = self._editable_period(period_id)
        if not self._entries.delete_entry(period.period_id, int(employee_id)):
            raise EntryNotFound(f"No entry for employee {employee_id} in period {period.reference}")
        log.info("entry removed period=%s employee=%s actor=%s", period.period_id, employee_id, actor_id)
