from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Read-only view of an employee owned by the identity system."""

    employee_id: int
    tenant_id: str
    full_name: str
    is_active: bool = True
    base_salary: Optional[Decimal] = None
    dependents: int = 0


@dataclass(frozen=True)
class Actor:
    """The user performing an operation, as supplied by the calling layer."""

    user_id: int
    tenant_id: str
    role: Role
