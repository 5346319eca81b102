"""Example: drive a payroll period through its lifecycle without a database.

The same service runs over MySQL when built with `build_container(db_config=...)`.
"""

from decimal import Decimal

from payroll_engine.aggregation.compensation import StaticCompensationSource
from payroll_engine.aggregation.model import AggregationRates, EmployeeBase
from payroll_engine.common.logging_utils import configure_logging
from payroll_engine.container import build_memory_container
from payroll_engine.core.enums import PeriodStatus, Role
from payroll_engine.entries.model import EntryFields
from payroll_engine.identity.directory import InMemoryEmployeeDirectory
from payroll_engine.identity.model import Actor, Employee


def main():
    configure_logging("INFO")

    directory = InMemoryEmployeeDirectory(
        [
            Employee(employee_id=1, tenant_id="acme", full_name="Ana Souza"),
            Employee(employee_id=2, tenant_id="acme", full_name="Bruno Lima"),
        ]
    )
    compensation = StaticCompensationSource(
        {1: EmployeeBase(Decimal("3000")), 2: EmployeeBase(Decimal("2800"))}
    )
    container = build_memory_container(
        directory=directory,
        compensation=compensation,
        rates=AggregationRates(overtime_hourly=Decimal("50"), absence_daily=Decimal("93.33")),
    )
    service = container.period_service

    admin = Actor(user_id=1, tenant_id="acme", role=Role.ADMIN)
    period = service.create_period("acme", 3, 2025, admin, seed_active_employees=True)
    service.upsert_entry(period.period_id, 1, EntryFields.of(overtime_hours="10"), admin)
    service.upsert_entry(period.period_id, 2, EntryFields.of(absences="2"), admin)

    for target in (PeriodStatus.LOCKED, PeriodStatus.CALCULATED, PeriodStatus.APPROVED, PeriodStatus.PAID):
        period = service.transition(period.period_id, target, admin)

    print(period.to_dict())
    for slip in container.slip_service.generate_slips(period.period_id, admin):
        print(slip.employee_name, slip.content_hash)
        print(slip.content)
    for record in service.audit_trail(period.period_id):
        print(record.action.value, record.stamp.at.isoformat(), record.to_status.value if record.to_status else "-")


if __name__ == "__main__":
    main()
