from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..aggregation.model import PayrollResult
from ..authorization.policy import PeriodAuthorizer, check_capability
from ..common.audit import AuditStamp
from ..common.datetime_utils import now_utc
from ..common.locks import KeyedLocks
from ..common.validators import normalize_note
from ..core.enums import Capability, PeriodStatus
from ..core.exceptions import EntryNotFound, PeriodNotFound, PermissionDenied, SlipNotAvailable, SlipNotFound
from ..identity.model import Actor
from ..periods.model import PayrollPeriod
from ..periods.repository import PeriodRepository
from .model import PayrollSlip
from .render import content_hash, render_slip
from .repository import SlipRepository

log = logging.getLogger(__name__)

SLIP_STATUSES = frozenset({PeriodStatus.APPROVED, PeriodStatus.PAID})
SLIP_CAPABILITIES = (Capability.MANAGE, Capability.PAY)
MAX_SLIP_NOTE_LENGTH = 500


class PayrollSlipService:
    """Payslips rendered from the stored results of approved or paid periods.

    Generation shares the period's exclusive section with the lifecycle
    service, so a slip is never rendered from results that are being replaced.
    Regenerating overwrites the previous slip of the same employee.
    """

    def __init__(
        self,
        periods: PeriodRepository,
        slips: SlipRepository,
        authorizer: PeriodAuthorizer,
        *,
        clock: Callable[[], datetime] = now_utc,
        locks: Optional[KeyedLocks] = None,
    ):
        self._periods = periods
        self._slips = slips
        self._authorizer = authorizer
        self._clock = clock
        self._locks = locks or KeyedLocks()

    def _require(self, period_id: int) -> PayrollPeriod:
        period = self._periods.get_period(int(period_id))
        if period is None:
            raise PeriodNotFound(f"Payroll period {period_id} not found")
        return period

    def _authorize(self, actor: Actor, period: PayrollPeriod) -> None:
        if not any(check_capability(self._authorizer, c, actor, period) for c in SLIP_CAPABILITIES):
            log.warning("permission denied actor=%s action=slip period=%s", actor.user_id, period.reference)
            raise PermissionDenied(f"User {actor.user_id} may not generate payslips ({period.reference})")

    @staticmethod
    def _ensure_available(period: PayrollPeriod) -> None:
        if period.status not in SLIP_STATUSES:
            raise SlipNotAvailable(
                f"Period {period.reference} is {period.status.value}; payslips need an approved or paid period"
            )

    def _build(self, period: PayrollPeriod, result: PayrollResult, stamp: AuditStamp, notes: Optional[str]) -> PayrollSlip:
        content = render_slip(period, result)
        return PayrollSlip(
            slip_id=0,
            period_id=period.period_id,
            tenant_id=period.tenant_id,
            employee_id=result.employee_id,
            employee_name=result.employee_name,
            reference_month=period.reference_month,
            reference_year=period.reference_year,
            content=content,
            content_hash=content_hash(content),
            generated=stamp,
            notes=notes,
        )

    def generate_slip(
        self,
        period_id: int,
        employee_id: int,
        actor: Actor,
        *,
        notes: Optional[str] = None,
    ) -> PayrollSlip:
        snapshot = self._require(period_id)
        self._authorize(actor, snapshot)
        self._ensure_available(snapshot)
        notes = normalize_note(notes, max_length=MAX_SLIP_NOTE_LENGTH)

        with self._locks.exclusive(snapshot.period_id):
            period = self._require(period_id)
            self._ensure_available(period)
            result = next(
                (r for r in self._periods.list_results(period.period_id) if r.employee_id == int(employee_id)),
                None,
            )
            if result is None:
                raise EntryNotFound(f"No payroll result for employee {employee_id} in period {period.reference}")
            stamp = AuditStamp(actor_id=int(actor.user_id), at=self._clock())
            saved = self._slips.save_slip(self._build(period, result, stamp, notes), period_statuses=SLIP_STATUSES)

        log.info(
            "payslip generated period=%s employee=%s hash=%s actor=%s",
            saved.period_id,
            saved.employee_id,
            saved.content_hash[:12],
            actor.user_id,
        )
        return saved

    def generate_slips(self, period_id: int, actor: Actor) -> list[PayrollSlip]:
        """One slip per stored result, in one exclusive section."""
        snapshot = self._require(period_id)
        self._authorize(actor, snapshot)
        self._ensure_available(snapshot)

        with self._locks.exclusive(snapshot.period_id):
            period = self._require(period_id)
            self._ensure_available(period)
            stamp = AuditStamp(actor_id=int(actor.user_id), at=self._clock())
            saved = [
                self._slips.save_slip(self._build(period, r, stamp, None), period_statuses=SLIP_STATUSES)
                for r in self._periods.list_results(period.period_id)
            ]

        log.info("payslips generated period=%s count=%s actor=%s", period_id, len(saved), actor.user_id)
        return saved

    def get_slip(self, period_id: int, employee_id: int) -> PayrollSlip:
        self._require(period_id)
        slip = self._slips.get_slip(int(period_id), int(employee_id))
        if slip is None:
            raise SlipNotFound(f"No payslip for employee {employee_id} in period {period_id}")
        return slip

    def list_slips(self, period_id: int) -> list[PayrollSlip]:
        self._require(period_id)
        return list(self._slips.list_slips(int(period_id)))
