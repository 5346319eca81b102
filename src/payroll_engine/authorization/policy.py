from __future__ import annotations

from typing import Mapping, Optional, Protocol

from ..core.enums import Capability, Role
from ..identity.model import Actor
from ..periods.model import PayrollPeriod


class PeriodAuthorizer(Protocol):
    """Authorization collaborator: boolean capability checks for an actor on a period.

    `period` is None for checks made before a period exists (creation).
    """

    def can_manage(self, actor: Actor, period: Optional[PayrollPeriod]) -> bool:
        raise NotImplementedError

    def can_lock(self, actor: Actor, period: PayrollPeriod) -> bool:
        raise NotImplementedError

    def can_unlock(self, actor: Actor, period: PayrollPeriod) -> bool:
        raise NotImplementedError

    def can_approve(self, actor: Actor, period: PayrollPeriod) -> bool:
        raise NotImplementedError

    def can_pay(self, actor: Actor, period: PayrollPeriod) -> bool:
        raise NotImplementedError


def check_capability(
    authorizer: PeriodAuthorizer,
    capability: Capability,
    actor: Actor,
    period: Optional[PayrollPeriod],
) -> bool:
    return bool(getattr(authorizer, f"can_{capability.value}")(actor, period))


DEFAULT_ROLE_CAPABILITIES: Mapping[Role, frozenset] = {
    Role.ADMIN: frozenset(Capability),
    Role.MANAGER: frozenset({Capability.MANAGE, Capability.LOCK, Capability.UNLOCK, Capability.APPROVE}),
    Role.HR: frozenset({Capability.MANAGE, Capability.LOCK}),
    Role.FINANCE: frozenset({Capability.PAY}),
    Role.STAFF: frozenset(),
}


class RoleBasedAuthorizer(PeriodAuthorizer):
    """Grants capabilities by role; actors never act outside their own tenant."""

    def __init__(self, capabilities: Optional[Mapping[Role, frozenset]] = None):
        self._capabilities = dict(capabilities or DEFAULT_ROLE_CAPABILITIES)

    def _allows(self, actor: Actor, period: Optional[PayrollPeriod], capability: Capability) -> bool:
        if period is not None and period.tenant_id != actor.tenant_id:
            return False
        return capability in self._capabilities.get(actor.role, frozenset())

    def can_manage(self, actor: Actor, period: Optional[PayrollPeriod]) -> bool:
        return self._allows(actor, period, Capability.MANAGE)

    def can_lock(self, actor: Actor, period: PayrollPeriod) -> bool:
        return self._allows(actor, period, Capability.LOCK)

    def can_unlock(self, actor: Actor, period: PayrollPeriod) -> bool:
        return self._allows(actor, period, Capability.UNLOCK)

    def can_approve(self, actor: Actor, period: PayrollPeriod) -> bool:
        return self._allows(actor, period, Capability.APPROVE)

    def can_pay(self, actor: Actor, period: PayrollPeriod) -> bool:
        return self._allows(actor, period, Capability.PAY)
