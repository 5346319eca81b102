from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used by the role-based period authorizer."""

    ADMIN = "admin"
    MANAGER = "manager"
    HR = "hr"
    FINANCE = "finance"
    STAFF = "staff"


class PeriodStatus(str, Enum):
    """Lifecycle status of a payroll period, stored as-is in the database."""

    DRAFT = "DRAFT"
    LOCKED = "LOCKED"
    CALCULATED = "CALCULATED"
    APPROVED = "APPROVED"
    PAID = "PAID"


class Capability(str, Enum):
    MANAGE = "manage"
    LOCK = "lock"
    UNLOCK = "unlock"
    APPROVE = "approve"
    PAY = "pay"


class AuditAction(str, Enum):
    CREATED = "CREATED"
    TRANSITIONED = "TRANSITIONED"
    RECALCULATED = "RECALCULATED"
    DELETED = "DELETED"
