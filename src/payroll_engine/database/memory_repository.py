"""
In-memory persistence for payroll periods and entries.

Used by the tests, the examples and callers that embed the engine without a
database. It implements PeriodRepository, EntryRepository and SlipRepository over one
set of tables so that period writes and their seeded entries commit together.
"""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from ..aggregation.model import PayrollResult
from ..core.enums import PeriodStatus
from ..core.exceptions import (
    DuplicatePeriod,
    InvalidTransition,
    PeriodNotEditable,
    PeriodNotFound,
    SlipNotAvailable,
)
from ..entries.model import PayrollEntry
from ..entries.repository import EntryRepository
from ..periods.model import AuditRecord, PayrollPeriod, PeriodSummary
from ..periods.repository import PeriodRepository
from ..slips.model import PayrollSlip
from ..slips.repository import SlipRepository


class InMemoryPayrollRepository(PeriodRepository, EntryRepository, SlipRepository):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._periods: Dict[int, PayrollPeriod] = {}
        self._entries: Dict[Tuple[int, int], PayrollEntry] = {}
        self._results: Dict[int, Tuple[PayrollResult, ...]] = {}
        self._audit: List[AuditRecord] = []
        self._slips: Dict[Tuple[int, int], PayrollSlip] = {}
        self._next_period_id = 1
        self._next_entry_id = 1
        self._next_slip_id = 1

    # -------- Periods --------
    def add_period(
        self,
        period: PayrollPeriod,
        *,
        audit: AuditRecord,
        seed_entries: Sequence[PayrollEntry] = (),
    ) -> PayrollPeriod:
        with self._lock:
            if self._find(period.tenant_id, period.reference_month, period.reference_year):
                raise DuplicatePeriod(
                    f"Period {period.reference} already exists for tenant {period.tenant_id}"
                )
            period_id = self._next_period_id
            self._next_period_id += 1
            stored = replace(period, period_id=period_id, entries=(), results=())
            self._periods[period_id] = stored
            for entry in seed_entries:
                self._put_entry(replace(entry, period_id=period_id))
            self._audit.append(replace(audit, period_id=period_id))
            return stored

    def get_period(self, period_id: int) -> Optional[PayrollPeriod]:
        with self._lock:
            return self._periods.get(int(period_id))

    def find_by_reference(self, tenant_id: str, month: int, year: int) -> Optional[PayrollPeriod]:
        with self._lock:
            return self._find(tenant_id, int(month), int(year))

    def _find(self, tenant_id: str, month: int, year: int) -> Optional[PayrollPeriod]:
        for p in self._periods.values():
            if p.tenant_id == tenant_id and p.reference_month == month and p.reference_year == year:
                return p
        return None

    def list_periods(
        self,
        tenant_id: str,
        *,
        year: Optional[int] = None,
        status: Optional[PeriodStatus] = None,
    ) -> Sequence[PeriodSummary]:
        with self._lock:
            items = [
                p
                for p in self._periods.values()
                if p.tenant_id == tenant_id
                and (year is None or p.reference_year == int(year))
                and (status is None or p.status == status)
            ]
            items.sort(key=lambda p: (p.reference_year, p.reference_month), reverse=True)
            return [
                PeriodSummary(
                    period_id=p.period_id,
                    tenant_id=p.tenant_id,
                    reference_month=p.reference_month,
                    reference_year=p.reference_year,
                    status=p.status,
                    entry_count=self.count_entries(p.period_id),
                    totals=p.totals,
                    created=p.created,
                    updated=p.updated,
                )
                for p in items
            ]

    def list_results(self, period_id: int) -> Sequence[PayrollResult]:
        with self._lock:
            results = self._results.get(int(period_id), ())
            return sorted(results, key=lambda r: (r.employee_name.casefold(), r.employee_id))

    def save_transition(
        self,
        period: PayrollPeriod,
        *,
        expected_status: PeriodStatus,
        results: Optional[Sequence[PayrollResult]],
        audit: AuditRecord,
    ) -> PayrollPeriod:
        with self._lock:
            current = self._periods.get(period.period_id)
            if current is None or current.status != expected_status:
                raise InvalidTransition(
                    f"Period {period.period_id} is no longer {expected_status.value}"
                )
            stored = replace(period, entries=(), results=())
            self._periods[period.period_id] = stored
            if results is not None:
                self._results[period.period_id] = tuple(results)
                self._drop_slips(period.period_id)
            self._audit.append(audit)
            return stored

    def delete_period(
        self,
        period_id: int,
        *,
        expected_status: PeriodStatus,
        audit: AuditRecord,
    ) -> bool:
        with self._lock:
            period_id = int(period_id)
            current = self._periods.get(period_id)
            if current is None:
                return False
            if current.status != expected_status:
                raise PeriodNotEditable(
                    f"Period {period_id} is {current.status.value}, not {expected_status.value}"
                )
            del self._periods[period_id]
            self._drop_slips(period_id)
            for key in [k for k in self._entries if k[0] == period_id]:
                del self._entries[key]
            self._results.pop(period_id, None)
            self._audit.append(audit)
            return True

    def list_audit(self, period_id: int) -> Sequence[AuditRecord]:
        with self._lock:
            return [a for a in self._audit if a.period_id == int(period_id)]

    # -------- Entries --------
    def get_entry(self, period_id: int, employee_id: int) -> Optional[PayrollEntry]:
        with self._lock:
            return self._entries.get((int(period_id), int(employee_id)))

    def list_entries(self, period_id: int) -> Sequence[PayrollEntry]:
        with self._lock:
            items = [e for (pid, _), e in self._entries.items() if pid == int(period_id)]
        items.sort(key=PayrollEntry.sort_key)
        return items

    def count_entries(self, period_id: int) -> int:
        with self._lock:
            return sum(1 for (pid, _) in self._entries if pid == int(period_id))

    def save_entry(self, entry: PayrollEntry) -> PayrollEntry:
        with self._lock:
            self._require_draft(entry.period_id)
            return self._put_entry(entry)

    def save_entries(self, entries: Sequence[PayrollEntry]) -> Sequence[PayrollEntry]:
        with self._lock:
            for period_id in {e.period_id for e in entries}:
                self._require_draft(period_id)
            return [self._put_entry(e) for e in entries]

    def _require_draft(self, period_id: int) -> None:
        period = self._periods.get(int(period_id))
        if period is None:
            raise PeriodNotFound(f"Period {period_id} not found")
        if period.status != PeriodStatus.DRAFT:
            raise PeriodNotEditable(f"Period {period_id} is {period.status.value}")

    def _put_entry(self, entry: PayrollEntry) -> PayrollEntry:
        key = (entry.period_id, entry.employee_id)
        existing = self._entries.get(key)
        if existing is not None:
            entry = replace(entry, entry_id=existing.entry_id, created=existing.created)
        else:
            entry = replace(entry, entry_id=self._next_entry_id)
            self._next_entry_id += 1
        self._entries[key] = entry
        return entry

    def delete_entry(self, period_id: int, employee_id: int) -> bool:
        with self._lock:
            self._require_draft(period_id)
            return self._entries.pop((int(period_id), int(employee_id)), None) is not None

    # -------- Slips --------
    def save_slip(self, slip: PayrollSlip, *, period_statuses: AbstractSet[PeriodStatus]) -> PayrollSlip:
        with self._lock:
            period = self._periods.get(slip.period_id)
            if period is None:
                raise PeriodNotFound(f"Period {slip.period_id} not found")
            if period.status not in period_statuses:
                raise SlipNotAvailable(f"Period {slip.period_id} is {period.status.value}")
            key = (slip.period_id, slip.employee_id)
            existing = self._slips.get(key)
            if existing is not None:
                slip = replace(slip, slip_id=existing.slip_id)
            else:
                slip = replace(slip, slip_id=self._next_slip_id)
                self._next_slip_id += 1
            self._slips[key] = slip
            return slip

    def get_slip(self, period_id: int, employee_id: int) -> Optional[PayrollSlip]:
        with self._lock:
            return self._slips.get((int(period_id), int(employee_id)))

    def list_slips(self, period_id: int) -> Sequence[PayrollSlip]:
        with self._lock:
            items = [s for (pid, _), s in self._slips.items() if pid == int(period_id)]
        items.sort(key=lambda s: (s.employee_name.casefold(), s.employee_id))
        return items

    def _drop_slips(self, period_id: int) -> None:
        for key in [k for k in self._slips if k[0] == period_id]:
            del self._slips[key]
