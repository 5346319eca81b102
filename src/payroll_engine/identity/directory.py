from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Employee


class EmployeeDirectory(Protocol):
    """Identity collaborator. The engine never creates or deletes employees."""

    def get_employee(self, tenant_id: str, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active_employees(self, tenant_id: str) -> Sequence[Employee]:
        raise NotImplementedError


class InMemoryEmployeeDirectory(EmployeeDirectory):
    def __init__(self, employees: Iterable[Employee] = ()):
        self._by_key: dict[tuple[str, int], Employee] = {}
        for employee in employees:
            self.add(employee)

    def add(self, employee: Employee) -> None:
        self._by_key[(employee.tenant_id, int(employee.employee_id))] = employee

    def get_employee(self, tenant_id: str, employee_id: int) -> Optional[Employee]:
        return self._by_key.get((tenant_id, int(employee_id)))

    def list_active_employees(self, tenant_id: str) -> Sequence[Employee]:
        items = [e for (t, _), e in self._by_key.items() if t == tenant_id and e.is_active]
        items.sort(key=lambda e: (e.full_name.casefold(), e.employee_id))
        return items
