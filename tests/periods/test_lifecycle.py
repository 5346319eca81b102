from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_engine.aggregation.model import Aggregation, Totals
from payroll_engine.common.audit import AuditStamp
from payroll_engine.core.enums import Capability, PeriodStatus
from payroll_engine.core.exceptions import InvalidTransition
from payroll_engine.periods import lifecycle
from payroll_engine.periods.model import PayrollPeriod

D, L, C, A, P = (
    PeriodStatus.DRAFT,
    PeriodStatus.LOCKED,
    PeriodStatus.CALCULATED,
    PeriodStatus.APPROVED,
    PeriodStatus.PAID,
)

STAMP = AuditStamp(actor_id=5, at=datetime(2025, 4, 2, 12, 0, tzinfo=timezone.utc))
TOTALS = Totals(
    gross=Decimal("6113.34"),
    net=Decimal("6113.34"),
    tax_a=Decimal("0.00"),
    tax_b=Decimal("0.00"),
    employer_cost=Decimal("6113.34"),
)


def _period(status: PeriodStatus, **kwargs) -> PayrollPeriod:
    return PayrollPeriod(
        period_id=1,
        tenant_id="acme",
        reference_month=3,
        reference_year=2025,
        status=status,
        created=AuditStamp(actor_id=1, at=datetime(2025, 3, 1, tzinfo=timezone.utc)),
        **kwargs,
    )


def test_only_listed_pairs_are_transitions():
    for source in PeriodStatus:
        for target in PeriodStatus:
            if (source, target) in lifecycle.TRANSITIONS:
                assert lifecycle.rule_for(source, target).target == target
            else:
                with pytest.raises(InvalidTransition):
                    lifecycle.rule_for(source, target)


def test_paid_is_unreachable_without_approved():
    reachable = {D}
    frontier = [D]
    while frontier:
        current = frontier.pop()
        for target in lifecycle.allowed_targets(current):
            if target != A and target not in reachable:
                reachable.add(target)
                frontier.append(target)

    assert P not in reachable
    assert [source for (source, target) in lifecycle.TRANSITIONS if target == P] == [A]


def test_draft_to_approved_is_invalid():
    with pytest.raises(InvalidTransition):
        lifecycle.apply_transition(_period(D), A, STAMP, entry_count=3)


def test_paid_is_terminal():
    assert lifecycle.allowed_targets(P) == []
    assert P in lifecycle.TERMINAL_STATUSES


def test_lock_requires_an_entry():
    with pytest.raises(InvalidTransition):
        lifecycle.apply_transition(_period(D), L, STAMP, entry_count=0)

    locked, results = lifecycle.apply_transition(_period(D), L, STAMP, entry_count=1)
    assert locked.status == L
    assert locked.locked == STAMP
    assert locked.totals.is_zero()
    assert results is None


def test_calculate_requires_aggregation_and_sets_totals():
    with pytest.raises(InvalidTransition):
        lifecycle.apply_transition(_period(L, locked=STAMP), C, STAMP)

    calculated, results = lifecycle.apply_transition(
        _period(L, locked=STAMP), C, STAMP, aggregation=Aggregation(totals=TOTALS)
    )
    assert calculated.status == C
    assert calculated.totals == TOTALS
    assert calculated.calculated == STAMP
    assert results == ()


def test_back_to_locked_or_draft_clears_totals():
    calculated = _period(C, locked=STAMP, calculated=STAMP, totals=TOTALS)

    relocked, results = lifecycle.apply_transition(calculated, L, STAMP)
    assert relocked.totals.is_zero()
    assert relocked.calculated is None
    assert results == ()

    reopened, results = lifecycle.apply_transition(relocked, D, STAMP)
    assert reopened.status == D
    assert reopened.locked is None
    assert reopened.totals.is_zero()


def test_pay_defaults_payment_date_to_stamp_day():
    approved = _period(A, totals=TOTALS, approved=STAMP)

    paid, _ = lifecycle.apply_transition(approved, P, STAMP, notes="bank batch 12")
    assert paid.paid == STAMP
    assert paid.payment_date == date(2025, 4, 2)
    assert paid.notes == "bank batch 12"

    paid, _ = lifecycle.apply_transition(approved, P, STAMP, payment_date=date(2025, 4, 5))
    assert paid.payment_date == date(2025, 4, 5)


def test_correction_keeps_totals_and_clears_approval():
    approved = _period(A, totals=TOTALS, approved=STAMP)

    corrected, results = lifecycle.apply_transition(approved, C, STAMP)

    assert corrected.status == C
    assert corrected.approved is None
    assert corrected.totals == TOTALS
    assert results is None


def test_recalculation_lands_in_calculated():
    new_totals = replace(TOTALS, gross=Decimal("7000.00"))
    for status in (L, C, A):
        period, _ = lifecycle.apply_recalculation(
            _period(status, totals=TOTALS, approved=STAMP if status == A else None),
            STAMP,
            Aggregation(totals=new_totals),
        )
        assert period.status == C
        assert period.approved is None
        assert period.totals.gross == Decimal("7000.00")

    for status in (D, P):
        with pytest.raises(InvalidTransition):
            lifecycle.apply_recalculation(_period(status), STAMP, Aggregation(totals=new_totals))


def test_required_capabilities():
    assert lifecycle.required_capability(D, L) == Capability.LOCK
    assert lifecycle.required_capability(L, D) == Capability.UNLOCK
    assert lifecycle.required_capability(C, A) == Capability.APPROVE
    assert lifecycle.required_capability(A, P) == Capability.PAY
    assert lifecycle.recalculation_capability(A) == Capability.APPROVE


def test_parse_status_accepts_any_letter_case():
    assert lifecycle.parse_status("calculated") == C
    assert lifecycle.parse_status(" Paid ") == P
    assert lifecycle.parse_status(L) == L
    for value in ("Calculating", "", None):
        with pytest.raises(InvalidTransition):
            lifecycle.parse_status(value)
