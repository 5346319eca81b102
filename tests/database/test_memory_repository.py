from dataclasses import replace
from datetime import datetime, timezone

import pytest

from payroll_engine.common.audit import AuditStamp
from payroll_engine.core.enums import AuditAction, PeriodStatus
from payroll_engine.core.exceptions import (
    DuplicatePeriod,
    InvalidTransition,
    PeriodNotEditable,
    PeriodNotFound,
    SlipNotAvailable,
)
from payroll_engine.database.memory_repository import InMemoryPayrollRepository
from payroll_engine.entries.model import EntryFields, PayrollEntry
from payroll_engine.periods.model import AuditRecord, PayrollPeriod
from payroll_engine.slips.model import PayrollSlip

STAMP = AuditStamp(actor_id=1, at=datetime(2025, 3, 1, tzinfo=timezone.utc))


def _period(month=3):
    return PayrollPeriod(
        period_id=0,
        tenant_id="acme",
        reference_month=month,
        reference_year=2025,
        status=PeriodStatus.DRAFT,
        created=STAMP,
    )


def _audit(action=AuditAction.CREATED, period_id=0):
    return AuditRecord(period_id=period_id, tenant_id="acme", action=action, stamp=STAMP)


def _entry(period_id, employee_id, name):
    return PayrollEntry(
        entry_id=0,
        period_id=period_id,
        employee_id=employee_id,
        employee_name=name,
        fields=EntryFields(),
        created=STAMP,
    )


def test_add_period_assigns_ids_and_seeds_entries():
    repo = InMemoryPayrollRepository()

    period = repo.add_period(_period(), audit=_audit(), seed_entries=[_entry(0, 1, "Ana"), _entry(0, 2, "Bia")])

    assert period.period_id == 1
    assert repo.count_entries(period.period_id) == 2
    assert {e.entry_id for e in repo.list_entries(period.period_id)} == {1, 2}
    assert repo.list_audit(period.period_id)[0].period_id == 1


def test_duplicate_reference_is_rejected():
    repo = InMemoryPayrollRepository()
    repo.add_period(_period(), audit=_audit())

    with pytest.raises(DuplicatePeriod):
        repo.add_period(_period(), audit=_audit())
    assert len(repo.list_periods("acme")) == 1


def test_save_entries_writes_nothing_for_unknown_period():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit())

    with pytest.raises(PeriodNotFound):
        repo.save_entries([_entry(period.period_id, 1, "Ana"), _entry(99, 2, "Bia")])
    assert repo.count_entries(period.period_id) == 0


def test_save_entry_keeps_identity_on_overwrite():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit())
    first = repo.save_entry(_entry(period.period_id, 1, "Ana"))

    later = AuditStamp(actor_id=2, at=datetime(2025, 3, 2, tzinfo=timezone.utc))
    second = repo.save_entry(replace(_entry(period.period_id, 1, "Ana"), created=later, updated=later))

    assert second.entry_id == first.entry_id
    assert second.created == STAMP
    assert second.updated == later


def test_delete_period_cascades():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit(), seed_entries=[_entry(0, 1, "Ana")])

    assert repo.delete_period(period.period_id, expected_status=PeriodStatus.DRAFT, audit=_audit(AuditAction.DELETED, period.period_id))
    assert repo.get_period(period.period_id) is None
    assert repo.count_entries(period.period_id) == 0
    assert not repo.delete_period(period.period_id, expected_status=PeriodStatus.DRAFT, audit=_audit(AuditAction.DELETED, period.period_id))


def _move(repo, period, status, expected):
    return repo.save_transition(
        replace(period, status=status),
        expected_status=expected,
        results=None,
        audit=_audit(AuditAction.TRANSITIONED, period.period_id),
    )


def test_save_transition_requires_the_expected_status():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit())
    locked = _move(repo, period, PeriodStatus.LOCKED, PeriodStatus.DRAFT)

    # a second writer still holding the DRAFT snapshot
    with pytest.raises(InvalidTransition):
        _move(repo, period, PeriodStatus.LOCKED, PeriodStatus.DRAFT)

    assert repo.get_period(period.period_id) == locked
    assert len(repo.list_audit(period.period_id)) == 2


def test_entry_writes_need_a_draft_period():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit(), seed_entries=[_entry(0, 1, "Ana")])
    _move(repo, period, PeriodStatus.LOCKED, PeriodStatus.DRAFT)

    with pytest.raises(PeriodNotEditable):
        repo.save_entry(_entry(period.period_id, 2, "Bia"))
    with pytest.raises(PeriodNotEditable):
        repo.save_entries([_entry(period.period_id, 2, "Bia")])
    with pytest.raises(PeriodNotEditable):
        repo.delete_entry(period.period_id, 1)

    assert [e.employee_id for e in repo.list_entries(period.period_id)] == [1]


def test_delete_period_refuses_an_unexpected_status():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit())
    _move(repo, period, PeriodStatus.LOCKED, PeriodStatus.DRAFT)

    with pytest.raises(PeriodNotEditable):
        repo.delete_period(
            period.period_id,
            expected_status=PeriodStatus.DRAFT,
            audit=_audit(AuditAction.DELETED, period.period_id),
        )
    assert repo.get_period(period.period_id) is not None


def _slip(period_id, content="v1"):
    return PayrollSlip(
        slip_id=0,
        period_id=period_id,
        tenant_id="acme",
        employee_id=1,
        employee_name="Ana",
        reference_month=3,
        reference_year=2025,
        content=content,
        content_hash="0" * 64,
        generated=STAMP,
    )


def test_slips_are_regenerated_in_place_and_dropped_with_new_results():
    repo = InMemoryPayrollRepository()
    period = repo.add_period(_period(), audit=_audit())
    allowed = frozenset({PeriodStatus.APPROVED, PeriodStatus.PAID})

    with pytest.raises(SlipNotAvailable):
        repo.save_slip(_slip(period.period_id), period_statuses=allowed)

    approved = _move(repo, period, PeriodStatus.APPROVED, PeriodStatus.DRAFT)
    first = repo.save_slip(_slip(period.period_id), period_statuses=allowed)
    second = repo.save_slip(_slip(period.period_id, content="v2"), period_statuses=allowed)

    assert second.slip_id == first.slip_id
    assert repo.get_slip(period.period_id, 1).content == "v2"
    assert repo.list_slips(period.period_id) == [second]

    repo.save_transition(
        replace(approved, status=PeriodStatus.CALCULATED),
        expected_status=PeriodStatus.APPROVED,
        results=[],
        audit=_audit(AuditAction.RECALCULATED, period.period_id),
    )
    assert repo.list_slips(period.period_id) == []
