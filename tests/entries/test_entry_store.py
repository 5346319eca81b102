from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payroll_engine.common.audit import AuditStamp
from payroll_engine.core.enums import AuditAction, PeriodStatus
from payroll_engine.core.exceptions import EmployeeNotFound, EntryNotFound, PeriodNotEditable, PeriodNotFound
from payroll_engine.database.memory_repository import InMemoryPayrollRepository
from payroll_engine.entries.model import EntryFields
from payroll_engine.entries.store import EntryStore
from payroll_engine.identity.directory import InMemoryEmployeeDirectory
from payroll_engine.identity.model import Employee
from payroll_engine.periods.model import AuditRecord, PayrollPeriod


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


ANA = Employee(employee_id=1, tenant_id="acme", full_name="Ana")
BRUNO = Employee(employee_id=2, tenant_id="acme", full_name="bruno")
OUTSIDER = Employee(employee_id=3, tenant_id="other", full_name="Carla")


def _store():
    repo = InMemoryPayrollRepository()
    stamp = AuditStamp(actor_id=1, at=datetime(2025, 3, 1, tzinfo=timezone.utc))
    period = repo.add_period(
        PayrollPeriod(
            period_id=0,
            tenant_id="acme",
            reference_month=3,
            reference_year=2025,
            status=PeriodStatus.DRAFT,
            created=stamp,
        ),
        audit=AuditRecord(period_id=0, tenant_id="acme", action=AuditAction.CREATED, stamp=stamp),
    )
    clock = FakeClock()
    store = EntryStore(repo, repo, InMemoryEmployeeDirectory([ANA, BRUNO, OUTSIDER]), clock=clock)
    return store, repo, period, clock


def test_upsert_creates_then_overwrites():
    store, _, period, _ = _store()

    first = store.upsert_entry(period.period_id, ANA, EntryFields.of(overtime_hours="10"), actor_id=7)
    second = store.upsert_entry(period.period_id, ANA, EntryFields.of(overtime_hours="4"), actor_id=8)

    assert first.entry_id == second.entry_id
    assert second.overtime_hours == Decimal("4.00")
    assert second.created.actor_id == 7
    assert second.updated.actor_id == 8
    assert store.count_entries(period.period_id) == 1


def test_identical_upsert_leaves_stored_state_alone():
    store, repo, period, clock = _store()
    fields = EntryFields.of(absences="2", note="doctor")

    first = store.upsert_entry(period.period_id, ANA, fields, actor_id=7)
    clock.now = datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc)
    again = store.upsert_entry(period.period_id, ANA, EntryFields.of(absences="2.00", note=" doctor "), actor_id=8)

    assert again == first
    assert repo.get_entry(period.period_id, ANA.employee_id) == first


def test_upsert_outside_draft_is_refused_and_store_unchanged():
    for status in (PeriodStatus.LOCKED, PeriodStatus.CALCULATED, PeriodStatus.APPROVED, PeriodStatus.PAID):
        store, repo, period, _ = _store()
        store.upsert_entry(period.period_id, ANA, EntryFields.of(overtime_hours="1"), actor_id=1)
        before = list(repo.list_entries(period.period_id))

        repo.save_transition(
            replace(period, status=status),
            expected_status=PeriodStatus.DRAFT,
            results=None,
            audit=AuditRecord(period_id=period.period_id, tenant_id="acme", action=AuditAction.TRANSITIONED, stamp=period.created),
        )

        with pytest.raises(PeriodNotEditable):
            store.upsert_entry(period.period_id, ANA, EntryFields.of(overtime_hours="2"), actor_id=1)
        with pytest.raises(PeriodNotEditable):
            store.upsert_entry(period.period_id, BRUNO, EntryFields.of(overtime_hours="2"), actor_id=1)
        with pytest.raises(PeriodNotEditable):
            store.remove_entry(period.period_id, ANA.employee_id, actor_id=1)

        assert list(repo.list_entries(period.period_id)) == before


def test_unknown_period_and_employee():
    store, _, period, _ = _store()

    with pytest.raises(PeriodNotFound):
        store.upsert_entry(999, ANA, EntryFields(), actor_id=1)
    with pytest.raises(EmployeeNotFound):
        store.resolve_employee("acme", 42)
    with pytest.raises(EmployeeNotFound):
        store.resolve_employee("acme", OUTSIDER.employee_id)
    with pytest.raises(EmployeeNotFound):
        store.upsert_entry(period.period_id, OUTSIDER, EntryFields(), actor_id=1)


def test_list_entries_orders_by_name_then_id():
    store, _, period, _ = _store()
    twin = Employee(employee_id=0, tenant_id="acme", full_name="ana")

    store.upsert_entries(
        period.period_id,
        [(BRUNO, EntryFields()), (ANA, EntryFields()), (twin, EntryFields())],
        actor_id=1,
    )

    assert [e.employee_id for e in store.list_entries(period.period_id)] == [0, 1, 2]


def test_bulk_upsert_returns_requested_rows_only():
    store, _, period, _ = _store()
    store.upsert_entry(period.period_id, BRUNO, EntryFields.of(absences="1"), actor_id=1)

    saved = store.upsert_entries(period.period_id, [(ANA, EntryFields.of(overtime_hours="3"))], actor_id=1)

    assert [e.employee_id for e in saved] == [ANA.employee_id]
    assert store.count_entries(period.period_id) == 2


def test_remove_entry():
    store, _, period, _ = _store()
    store.upsert_entry(period.period_id, ANA, EntryFields(), actor_id=1)

    store.remove_entry(period.period_id, ANA.employee_id, actor_id=1)

    assert store.list_entries(period.period_id) == []
    with pytest.raises(EntryNotFound):
        store.remove_entry(period.period_id, ANA.employee_id, actor_id=1)

