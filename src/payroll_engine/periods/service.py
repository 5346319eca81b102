from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Collection, Iterable, Mapping, Optional, Union

from ..aggregation.aggregator import PeriodAggregator
from ..aggregation.compensation import CompensationSource
from ..aggregation.model import Aggregation, EmployeeBase
from ..authorization.policy import PeriodAuthorizer, check_capability
from ..common.audit import AuditStamp
from ..common.datetime_utils import now_utc
from ..common.locks import KeyedLocks
from ..common.validators import normalize_note, require_reference
from ..core.constants import MAX_NOTE_LENGTH
from ..core.enums import AuditAction, Capability, PeriodStatus
from ..core.exceptions import (
    AggregationFailure,
    DuplicatePeriod,
    InvalidTransition,
    PeriodNotEditable,
    PeriodNotFound,
    PermissionDenied,
)
from ..entries.model import EntryFields, PayrollEntry
from ..entries.repository import EntryRepository
from ..entries.store import EntryStore
from ..identity.directory import EmployeeDirectory
from ..identity.model import Actor
from . import lifecycle
from .model import AuditRecord, PayrollPeriod, PeriodSummary
from .repository import PeriodRepository

log = logging.getLogger(__name__)

DELETABLE_STATUSES = frozenset({PeriodStatus.DRAFT, PeriodStatus.LOCKED})


class PayrollPeriodService:
    """Entry point for payroll period use cases.

    Mutations on one period run inside that period's exclusive section; the
    identity, authorization and compensation collaborators are always called
    before the section is entered. Inside it the period is re-read, so a
    caller that lost a race sees the new state and gets a typed error instead
    of overwriting it. Reads take no lock.
    """

    def __init__(
        self,
        periods: PeriodRepository,
        entries: EntryRepository,
        directory: EmployeeDirectory,
        authorizer: PeriodAuthorizer,
        *,
        aggregator: Optional[PeriodAggregator] = None,
        compensation: Optional[CompensationSource] = None,
        clock: Callable[[], datetime] = now_utc,
        locks: Optional[KeyedLocks] = None,
    ):
        self._periods = periods
        self._entries = entries
        self._directory = directory
        self._authorizer = authorizer
        self._aggregator = aggregator or PeriodAggregator()
        self._compensation = compensation
        self._clock = clock
        self._locks = locks or KeyedLocks()
        self._store = EntryStore(entries, periods, directory, clock=clock)

    # -------- Helpers --------
    def _require(self, period_id: int) -> PayrollPeriod:
        period = self._periods.get_period(int(period_id))
        if period is None:
            raise PeriodNotFound(f"Payroll period {period_id} not found")
        return period

    def _authorize(self, capability: Capability, actor: Actor, period: Optional[PayrollPeriod]) -> None:
        if not check_capability(self._authorizer, capability, actor, period):
            where = period.reference if period is not None else "new period"
            log.warning("permission denied actor=%s capability=%s period=%s", actor.user_id, capability.value, where)
            raise PermissionDenied(f"User {actor.user_id} may not {capability.value} ({where})")

    def _stamp(self, actor: Actor) -> AuditStamp:
        return AuditStamp(actor_id=int(actor.user_id), at=self._clock())

    def _materialize(self, period: PayrollPeriod) -> PayrollPeriod:
        return replace(
            period,
            entries=tuple(self._entries.list_entries(period.period_id)),
            results=tuple(self._periods.list_results(period.period_id)),
        )

    def _base_amounts(
        self,
        period: PayrollPeriod,
        employee_ids: Iterable[int],
        supplied: Optional[Mapping[int, EmployeeBase]],
    ) -> Mapping[int, EmployeeBase]:
        if supplied is not None:
            return dict(supplied)
        if self._compensation is None:
            raise AggregationFailure(f"No base amounts supplied for period {period.reference}")
        return dict(self._compensation.base_amounts(period, list(employee_ids)))

    @staticmethod
    def _calculation_date(period: PayrollPeriod) -> date:
        """Last day of the reference month; selects the tax brackets in force."""
        last_day = calendar.monthrange(period.reference_year, period.reference_month)[1]
        return date(period.reference_year, period.reference_month, last_day)

    def _aggregate(
        self,
        period: PayrollPeriod,
        bases: Mapping[int, EmployeeBase],
        employee_ids: Collection[int],
    ) -> Aggregation:
        entries = self._entries.list_entries(period.period_id)
        if {e.employee_id for e in entries} != set(employee_ids):
            raise InvalidTransition(
                f"Entries of period {period.reference} changed while the request was being processed"
            )
        try:
            return self._aggregator.run(entries, bases, on=self._calculation_date(period))
        except AggregationFailure as exc:
            log.warning("aggregation failed period=%s: %s", period.period_id, exc)
            raise

    @staticmethod
    def _ensure_unchanged(snapshot: PayrollPeriod, current: PayrollPeriod) -> None:
        # an unlock and relock in between leaves the status equal but restamps the lock
        if current.status != snapshot.status or current.locked != snapshot.locked:
            raise InvalidTransition(
                f"Period {current.reference} changed while the request was being processed "
                f"(was {snapshot.status.value}, now {current.status.value})"
            )

    # -------- Periods --------
    def create_period(
        self,
        tenant_id: str,
        month: int,
        year: int,
        actor: Actor,
        *,
        seed_active_employees: bool = False,
        notes: Optional[str] = None,
    ) -> PayrollPeriod:
        month, year = require_reference(month, year)
        if actor.tenant_id != tenant_id:
            raise PermissionDenied(f"User {actor.user_id} does not belong to tenant {tenant_id}")
        self._authorize(Capability.MANAGE, actor, None)

        employees = self._directory.list_active_employees(tenant_id) if seed_active_employees else []
        stamp = self._stamp(actor)
        period = PayrollPeriod(
            period_id=0,
            tenant_id=tenant_id,
            reference_month=month,
            reference_year=year,
            status=lifecycle.INITIAL_STATUS,
            created=stamp,
            updated=stamp,
            notes=normalize_note(notes, max_length=MAX_NOTE_LENGTH),
        )
        seeds = [
            PayrollEntry(
                entry_id=0,
                period_id=0,
                employee_id=e.employee_id,
                employee_name=e.full_name,
                fields=EntryFields(),
                created=stamp,
            )
            for e in employees
        ]
        audit = AuditRecord(
            period_id=0,
            tenant_id=tenant_id,
            action=AuditAction.CREATED,
            stamp=stamp,
            to_status=period.status,
        )

        with self._locks.exclusive(("reference", tenant_id, month, year)):
            if self._periods.find_by_reference(tenant_id, month, year) is not None:
                raise DuplicatePeriod(f"Period {period.reference} already exists for tenant {tenant_id}")
            created = self._periods.add_period(period, audit=audit, seed_entries=seeds)

        log.info("period created id=%s tenant=%s ref=%s seeded=%s", created.period_id, tenant_id, created.reference, len(seeds))
        return self._materialize(created)

    def get_period(self, period_id: int) -> PayrollPeriod:
        return self._materialize(self._require(period_id))

    def list_periods(
        self,
        tenant_id: str,
        *,
        year: Optional[int] = None,
        status: Optional[PeriodStatus] = None,
    ) -> list[PeriodSummary]:
        return list(self._periods.list_periods(tenant_id, year=year, status=status))

    def audit_trail(self, period_id: int) -> list[AuditRecord]:
        return list(self._periods.list_audit(int(period_id)))

    def transition(
        self,
        period_id: int,
        target: Union[PeriodStatus, str],
        actor: Actor,
        *,
        base_amounts: Optional[Mapping[int, EmployeeBase]] = None,
        notes: Optional[str] = None,
        payment_date: Optional[date] = None,
    ) -> PayrollPeriod:
        target = lifecycle.parse_status(target)
        snapshot = self._require(period_id)
        rule = lifecycle.rule_for(snapshot.status, target)
        self._authorize(rule.capability, actor, snapshot)
        notes = normalize_note(notes, max_length=MAX_NOTE_LENGTH)

        ids: list[int] = []
        bases = None
        if target == PeriodStatus.CALCULATED and snapshot.status == PeriodStatus.LOCKED:
            ids = [e.employee_id for e in self._entries.list_entries(snapshot.period_id)]
            bases = self._base_amounts(snapshot, ids, base_amounts)

        with self._locks.exclusive(snapshot.period_id):
            period = self._require(period_id)
            self._ensure_unchanged(snapshot, period)

            aggregation = self._aggregate(period, bases, ids) if bases is not None else None
            stamp = self._stamp(actor)
            updated, results = lifecycle.apply_transition(
                period,
                target,
                stamp,
                entry_count=self._entries.count_entries(period.period_id),
                aggregation=aggregation,
                notes=notes,
                payment_date=payment_date,
            )
            audit = AuditRecord(
                period_id=period.period_id,
                tenant_id=period.tenant_id,
                action=AuditAction.TRANSITIONED,
                stamp=stamp,
                from_status=period.status,
                to_status=target,
                notes=notes,
            )
            saved = self._periods.save_transition(
                updated, expected_status=period.status, results=results, audit=audit
            )

        log.info(
            "period transitioned id=%s %s->%s actor=%s",
            saved.period_id,
            period.status.value,
            saved.status.value,
            actor.user_id,
        )
        return self._materialize(saved)

    def recalculate(
        self,
        period_id: int,
        actor: Actor,
        *,
        base_amounts: Optional[Mapping[int, EmployeeBase]] = None,
        notes: Optional[str] = None,
    ) -> PayrollPeriod:
        snapshot = self._require(period_id)
        capability = lifecycle.recalculation_capability(snapshot.status)
        self._authorize(capability, actor, snapshot)
        notes = normalize_note(notes, max_length=MAX_NOTE_LENGTH)

        ids = [e.employee_id for e in self._entries.list_entries(snapshot.period_id)]
        bases = self._base_amounts(snapshot, ids, base_amounts)

        with self._locks.exclusive(snapshot.period_id):
            period = self._require(period_id)
            self._ensure_unchanged(snapshot, period)

            aggregation = self._aggregate(period, bases, ids)
            stamp = self._stamp(actor)
            updated, results = lifecycle.apply_recalculation(period, stamp, aggregation)
            if notes:
                updated = replace(updated, notes=notes)
            audit = AuditRecord(
                period_id=period.period_id,
                tenant_id=period.tenant_id,
                action=AuditAction.RECALCULATED,
                stamp=stamp,
                from_status=period.status,
                to_status=updated.status,
                notes=notes,
            )
            saved = self._periods.save_transition(
                updated, expected_status=period.status, results=results, audit=audit
            )

        log.info("period recalculated id=%s gross=%s actor=%s", saved.period_id, saved.totals.gross, actor.user_id)
        return self._materialize(saved)

    def delete_period(self, period_id: int, actor: Actor) -> None:
        snapshot = self._require(period_id)
        self._authorize(Capability.MANAGE, actor, snapshot)

        with self._locks.exclusive(snapshot.period_id):
            period = self._require(period_id)
            if period.status not in DELETABLE_STATUSES:
                raise PeriodNotEditable(f"Period {period.reference} is {period.status.value} and cannot be deleted")
            audit = AuditRecord(
                period_id=period.period_id,
                tenant_id=period.tenant_id,
                action=AuditAction.DELETED,
                stamp=self._stamp(actor),
                from_status=period.status,
            )
            if not self._periods.delete_period(period.period_id, expected_status=period.status, audit=audit):
                raise PeriodNotFound(f"Payroll period {period_id} not found")

        log.info("period deleted id=%s actor=%s", period_id, actor.user_id)

    # -------- Entries --------
    def list_entries(self, period_id: int) -> list[PayrollEntry]:
        self._require(period_id)
        return self._store.list_entries(period_id)

    def upsert_entry(
        self,
        period_id: int,
        employee_id: int,
        fields: EntryFields,
        actor: Actor,
    ) -> PayrollEntry:
        snapshot = self._require(period_id)
        self._authorize(Capability.MANAGE, actor, snapshot)
        if not lifecycle.entries_editable(snapshot.status):
            raise PeriodNotEditable(f"Period {snapshot.reference} is {snapshot.status.value}; entries are read-only")
        employee = self._store.resolve_employee(snapshot.tenant_id, employee_id)

        with self._locks.exclusive(snapshot.period_id):
            return self._store.upsert_entry(snapshot.period_id, employee, fields, actor.user_id)

    def upsert_entries(
        self,
        period_id: int,
        fields_by_employee: Mapping[int, EntryFields],
        actor: Actor,
    ) -> list[PayrollEntry]:
        snapshot = self._require(period_id)
        self._authorize(Capability.MANAGE, actor, snapshot)
        if not lifecycle.entries_editable(snapshot.status):
            raise PeriodNotEditable(f"Period {snapshot.reference} is {snapshot.status.value}; entries are read-only")
        employees = {
            int(employee_id): self._store.resolve_employee(snapshot.tenant_id, employee_id)
            for employee_id in fields_by_employee
        }
        rows = [(employees[int(k)], f) for k, f in fields_by_employee.items()]

        with self._locks.exclusive(snapshot.period_id):
            return self._store.upsert_entries(snapshot.period_id, rows, actor.user_id)

    def remove_entry(self, period_id: int, employee_id: int, actor: Actor) -> None:
        snapshot = self._require(period_id)
        self._authorize(Capability.MANAGE, actor, snapshot)

        with self._locks.exclusive(snapshot.period_id):
            self._store.remove_entry(snapshot.period_id, employee_id, actor.user_id)

