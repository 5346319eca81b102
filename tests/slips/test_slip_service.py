from __future__ import annotations

import hashlib
from decimal import Decimal

import pytest

from payroll_engine.aggregation.compensation import StaticCompensationSource
from payroll_engine.aggregation.model import AggregationRates, EmployeeBase
from payroll_engine.container import build_memory_container
from payroll_engine.core.enums import PeriodStatus, Role
from payroll_engine.core.exceptions import (
    EntryNotFound,
    PermissionDenied,
    SlipNotAvailable,
    SlipNotFound,
)
from payroll_engine.entries.model import EntryFields
from payroll_engine.identity.directory import InMemoryEmployeeDirectory
from payroll_engine.identity.model import Actor, Employee

ADMIN = Actor(user_id=1, tenant_id="acme", role=Role.ADMIN)
HR = Actor(user_id=3, tenant_id="acme", role=Role.HR)
FINANCE = Actor(user_id=4, tenant_id="acme", role=Role.FINANCE)
STAFF = Actor(user_id=5, tenant_id="acme", role=Role.STAFF)
FOREIGN_ADMIN = Actor(user_id=9, tenant_id="globex", role=Role.ADMIN)

BASES = {1: EmployeeBase(Decimal("3000")), 2: EmployeeBase(Decimal("2800"))}


def _container():
    directory = InMemoryEmployeeDirectory(
        [
            Employee(employee_id=1, tenant_id="acme", full_name="Ana Souza"),
            Employee(employee_id=2, tenant_id="acme", full_name="Bruno Lima"),
        ]
    )
    return build_memory_container(
        directory=directory,
        compensation=StaticCompensationSource(BASES),
        rates=AggregationRates(overtime_hourly=Decimal("50"), absence_daily=Decimal("93.33")),
    )


def _period_in(container, status):
    service = container.period_service
    period = service.create_period("acme", 3, 2025, ADMIN)
    service.upsert_entry(period.period_id, 1, EntryFields.of(overtime_hours="10"), ADMIN)
    service.upsert_entry(period.period_id, 2, EntryFields.of(absences="2"), ADMIN)
    path = [PeriodStatus.LOCKED, PeriodStatus.CALCULATED, PeriodStatus.APPROVED, PeriodStatus.PAID]
    for target in path[: path.index(status) + 1]:
        period = service.transition(period.period_id, target, ADMIN)
    return period


def test_slip_renders_the_stored_result():
    container = _container()
    period = _period_in(container, PeriodStatus.APPROVED)

    slip = container.slip_service.generate_slip(period.period_id, 1, HR)

    assert slip.slip_id > 0
    assert (slip.reference_month, slip.reference_year) == (3, 2025)
    assert slip.employee_name == "Ana Souza"
    assert slip.content.startswith("Payslip 03/2025\n")
    assert "Employee: Ana Souza (#1)" in slip.content
    net_line = [line for line in slip.content.splitlines() if line.startswith("Net pay")]
    assert net_line and net_line[0].endswith("3,500.00")
    assert slip.content_hash == hashlib.sha256(slip.content.encode("utf-8")).hexdigest()
    assert slip.content_type == "text/plain"
    assert slip.generated.actor_id == HR.user_id
    assert container.slip_service.get_slip(period.period_id, 1) == slip


def test_slips_need_an_approved_or_paid_period():
    container = _container()
    period = _period_in(container, PeriodStatus.CALCULATED)

    with pytest.raises(SlipNotAvailable):
        container.slip_service.generate_slip(period.period_id, 1, ADMIN)
    assert container.slip_service.list_slips(period.period_id) == []

    container.period_service.transition(period.period_id, PeriodStatus.APPROVED, ADMIN)
    container.period_service.transition(period.period_id, PeriodStatus.PAID, ADMIN)
    paid_slip = container.slip_service.generate_slip(period.period_id, 2, FINANCE)
    assert "Employee: Bruno Lima (#2)" in paid_slip.content


def test_regenerating_keeps_the_slip_and_its_digest():
    container = _container()
    period = _period_in(container, PeriodStatus.APPROVED)

    first = container.slip_service.generate_slip(period.period_id, 1, ADMIN)
    second = container.slip_service.generate_slip(period.period_id, 1, HR, notes=" reissued ")

    assert second.slip_id == first.slip_id
    assert second.content_hash == first.content_hash
    assert second.generated.actor_id == HR.user_id
    assert second.notes == "reissued"
    assert container.slip_service.list_slips(period.period_id) == [second]


def test_generate_slips_covers_every_result():
    container = _container()
    period = _period_in(container, PeriodStatus.PAID)

    slips = container.slip_service.generate_slips(period.period_id, ADMIN)

    assert [s.employee_id for s in slips] == [1, 2]
    assert len({s.content_hash for s in slips}) == 2


def test_recalculation_discards_existing_slips():
    container = _container()
    period = _period_in(container, PeriodStatus.APPROVED)
    container.slip_service.generate_slip(period.period_id, 1, ADMIN)

    container.period_service.recalculate(period.period_id, ADMIN)

    assert container.slip_service.list_slips(period.period_id) == []
    with pytest.raises(SlipNotFound):
        container.slip_service.get_slip(period.period_id, 1)


def test_slip_access_rules():
    container = _container()
    period = _period_in(container, PeriodStatus.APPROVED)

    with pytest.raises(PermissionDenied):
        container.slip_service.generate_slip(period.period_id, 1, STAFF)
    with pytest.raises(PermissionDenied):
        container.slip_service.generate_slip(period.period_id, 1, FOREIGN_ADMIN)
    with pytest.raises(EntryNotFound):
        container.slip_service.generate_slip(period.period_id, 99, ADMIN)
