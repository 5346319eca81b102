"""Lifecycle state machine for payroll periods.

    DRAFT -> LOCKED -> CALCULATED -> APPROVED -> PAID
      ^        |  ^        |            |
      +--------+  +--------+            |
                  ^---------------------+  (correction before payment)

Every function here is pure: it validates the graph and returns new period
values. Privilege checks are left to the caller, which asks
`required_capability` which capability a step needs.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Union

from ..aggregation.model import Aggregation, PayrollResult, Totals
from ..common.audit import AuditStamp
from ..core.enums import Capability, PeriodStatus
from ..core.exceptions import InvalidTransition
from .model import PayrollPeriod

D, L, C, A, P = (
    PeriodStatus.DRAFT,
    PeriodStatus.LOCKED,
    PeriodStatus.CALCULATED,
    PeriodStatus.APPROVED,
    PeriodStatus.PAID,
)

INITIAL_STATUS = D
TERMINAL_STATUSES = frozenset({P})


@dataclass(frozen=True)
class TransitionRule:
    source: PeriodStatus
    target: PeriodStatus
    capability: Capability
    description: str


TRANSITIONS: dict[tuple[PeriodStatus, PeriodStatus], TransitionRule] = {
    (D, L): TransitionRule(D, L, Capability.LOCK, "lock entries"),
    (L, D): TransitionRule(L, D, Capability.UNLOCK, "reopen entries"),
    (L, C): TransitionRule(L, C, Capability.LOCK, "calculate totals"),
    (C, L): TransitionRule(C, L, Capability.LOCK, "discard totals for recalculation"),
    (C, A): TransitionRule(C, A, Capability.APPROVE, "approve"),
    (A, P): TransitionRule(A, P, Capability.PAY, "register payment"),
    (A, C): TransitionRule(A, C, Capability.APPROVE, "reopen for correction"),
}

# Statuses a period may be recalculated from, and who may do it.
RECALCULATION_CAPABILITY: dict[PeriodStatus, Capability] = {
    L: Capability.LOCK,
    C: Capability.LOCK,
    A: Capability.APPROVE,
}


def parse_status(value: Union[PeriodStatus, str]) -> PeriodStatus:
    """Accept a status or its name in any letter case."""
    if isinstance(value, PeriodStatus):
        return value
    try:
        return PeriodStatus(str(value).strip().upper())
    except ValueError:
        raise InvalidTransition(f"Unknown status {value!r}") from None


def entries_editable(status: PeriodStatus) -> bool:
    return status == D


def allowed_targets(status: PeriodStatus) -> list[PeriodStatus]:
    return [target for (source, target) in TRANSITIONS if source == status]


def rule_for(source: PeriodStatus, target: PeriodStatus) -> TransitionRule:
    rule = TRANSITIONS.get((source, target))
    if rule is None:
        allowed = ", ".join(s.value for s in allowed_targets(source)) or "none"
        raise InvalidTransition(f"Cannot move from {source.value} to {target.value} (allowed: {allowed})")
    return rule


def required_capability(source: PeriodStatus, target: PeriodStatus) -> Capability:
    return rule_for(source, target).capability


def recalculation_capability(status: PeriodStatus) -> Capability:
    capability = RECALCULATION_CAPABILITY.get(status)
    if capability is None:
        raise InvalidTransition(f"A {status.value} period cannot be recalculated")
    return capability


def apply_transition(
    period: PayrollPeriod,
    target: PeriodStatus,
    stamp: AuditStamp,
    *,
    entry_count: int = 0,
    aggregation: Optional[Aggregation] = None,
    notes: Optional[str] = None,
    payment_date: Optional[date] = None,
) -> tuple[PayrollPeriod, Optional[tuple[PayrollResult, ...]]]:
    """Return the period after moving to `target` and the results to persist.

    The second element is None when stored results stay as they are and an
    empty tuple when they must be cleared.
    """

    rule_for(period.status, target)
    changes: dict = {"status": target, "updated": stamp}
    if notes:
        changes["notes"] = notes
    results: Optional[tuple[PayrollResult, ...]] = None

    if (period.status, target) == (D, L):
        if entry_count < 1:
            raise InvalidTransition("A period needs at least one entry before it can be locked")
        changes["locked"] = stamp

    elif (period.status, target) == (L, D):
        changes.update(locked=None, calculated=None, totals=Totals.zero())
        results = ()

    elif (period.status, target) == (L, C):
        if aggregation is None:
            raise InvalidTransition("Calculating a period requires aggregated totals")
        changes.update(totals=aggregation.totals, calculated=stamp)
        results = tuple(aggregation.results)

    elif (period.status, target) == (C, L):
        changes.update(totals=Totals.zero(), calculated=None)
        results = ()

    elif (period.status, target) == (C, A):
        changes["approved"] = stamp

    elif (period.status, target) == (A, P):
        changes.update(paid=stamp, payment_date=payment_date or stamp.at.date())

    elif (period.status, target) == (A, C):
        # totals stay until the next recalculation
        changes["approved"] = None

    return replace(period, **changes), results


def apply_recalculation(
    period: PayrollPeriod,
    stamp: AuditStamp,
    aggregation: Aggregation,
) -> tuple[PayrollPeriod, tuple[PayrollResult, ...]]:
    """Recompute totals from LOCKED, CALCULATED or APPROVED; always lands in CALCULATED."""

    recalculation_capability(period.status)
    updated = replace(
        period,
        status=C,
        updated=stamp,
        calculated=stamp,
        approved=None,
        totals=aggregation.totals,
    )
    return updated, tuple(aggregation.results)
